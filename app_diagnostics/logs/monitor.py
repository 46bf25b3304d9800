"""Crash monitoring: uncaught exceptions are written to the log."""

import logging
import sys
import threading
import traceback
from typing import Callable, Optional

from .entries import ErrorLog, Origin

logger = logging.getLogger(__name__)

UNCAUGHT_EXCEPTION = "Uncaught Exception"


def _origin_from_traceback(tb) -> Origin:
    frames = traceback.extract_tb(tb) if tb is not None else []
    if not frames:
        return Origin(file="<unknown>", function="<module>", line=0)
    last = frames[-1]
    return Origin(file=last.filename, function=last.name, line=last.lineno or 0)


def exception_entry(
    exc_type, exc_value, exc_tb, description: str = UNCAUGHT_EXCEPTION
) -> ErrorLog:
    """Build an error entry with the full traceback of an exception."""
    if exc_value is None:
        exc_value = exc_type()
    if exc_value.__traceback__ is None and exc_tb is not None:
        exc_value = exc_value.with_traceback(exc_tb)
    return ErrorLog.from_exception(
        exc_value,
        origin=_origin_from_traceback(exc_tb),
        description=description,
        include_traceback=True,
    )


class CrashMonitor:
    """Installs exception hooks that log crashes and chain to prior hooks.

    Usage:
        monitor = CrashMonitor(on_crash=logger.log_entry)
        monitor.start()
        ...
        monitor.stop()
    """

    def __init__(self, on_crash: Callable[[ErrorLog], None]):
        self.on_crash = on_crash
        self._previous_excepthook: Optional[Callable] = None
        self._previous_threading_hook: Optional[Callable] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._previous_excepthook = sys.excepthook
        self._previous_threading_hook = threading.excepthook
        sys.excepthook = self._handle_exception
        threading.excepthook = self._handle_thread_exception
        self._running = True
        logger.debug("Crash monitoring started")

    def stop(self) -> None:
        if not self._running:
            return
        if sys.excepthook == self._handle_exception:
            sys.excepthook = self._previous_excepthook or sys.__excepthook__
        if threading.excepthook == self._handle_thread_exception:
            threading.excepthook = self._previous_threading_hook or threading.__excepthook__
        self._running = False
        logger.debug("Crash monitoring stopped")

    def _record(self, exc_type, exc_value, exc_tb, description: str) -> None:
        if exc_type is not None and issubclass(exc_type, KeyboardInterrupt):
            return
        try:
            self.on_crash(exception_entry(exc_type, exc_value, exc_tb, description))
        except Exception as e:
            logger.error(f"Recording crash failed: {e}")

    def _handle_exception(self, exc_type, exc_value, exc_tb) -> None:
        self._record(exc_type, exc_value, exc_tb, UNCAUGHT_EXCEPTION)
        previous = self._previous_excepthook or sys.__excepthook__
        previous(exc_type, exc_value, exc_tb)

    def _handle_thread_exception(self, args) -> None:
        thread_name = args.thread.name if args.thread is not None else "unknown"
        self._record(
            args.exc_type,
            args.exc_value,
            args.exc_traceback,
            f"{UNCAUGHT_EXCEPTION} in thread {thread_name}",
        )
        previous = self._previous_threading_hook or threading.__excepthook__
        previous(args)
