"""Process-wide diagnostics logger.

One ``DiagnosticsLogger`` owns the log store for the lifetime of the
process. Construct it once at startup and pass it to whatever needs to log
or build reports; there is no implicit global instance.

All store operations run on one worker thread fed by a FIFO queue, so
entries land in the file in the order they were enqueued regardless of
whether they came from application code, captured output, or a crash.
"""

import asyncio
import logging
import queue
import threading
from concurrent.futures import Future
from enum import Enum
from typing import Callable, Optional, TypeVar

from app_diagnostics.config import DiagnosticsConfig
from app_diagnostics.system import SystemInfo
from app_diagnostics.utils.errors import LoggerNotSetUpError
from .entries import DebugLog, ErrorLog, LogEntry, Origin, SessionMarker, SystemLog
from .interceptor import OutputCapture, OutputInterceptor
from .monitor import CrashMonitor
from .store import LogStore

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "app_diagnostics"

T = TypeVar("T")

_STOP = object()


class LoggerState(str, Enum):
    """Lifecycle of a diagnostics logger."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


class DiagnosticsLogger:
    """Logs messages and errors to a size-bounded file for diagnostics reports.

    Usage:
        diagnostics = DiagnosticsLogger(DiagnosticsConfig.from_env())
        diagnostics.setup()

        diagnostics.log("Upload started")
        try:
            upload()
        except UploadError as e:
            diagnostics.log_error(e, description="Upload failed")

        data = diagnostics.read_log()
        diagnostics.shutdown()
    """

    def __init__(
        self,
        config: Optional[DiagnosticsConfig] = None,
        store: Optional[LogStore] = None,
        interceptor: Optional[OutputCapture] = None,
        crash_monitor: Optional[CrashMonitor] = None,
        system_info: Optional[SystemInfo] = None,
    ):
        """Initialize the logger. Nothing is touched until ``setup()``.

        Args:
            config: Settings (default: read from the environment)
            store: Log store (default: built from the config)
            interceptor: Output capture (default: stdout/stderr capture when
                the config allows it, otherwise a no-op)
            crash_monitor: Exception hooks (default: logs into this logger)
            system_info: Metadata for session markers (default: collected)
        """
        self.config = config or DiagnosticsConfig.from_env()
        self.store = store or LogStore(
            self.config.log_path,
            maximum_size=self.config.maximum_log_size,
            trim_batch_size=self.config.trim_batch_size,
        )
        if interceptor is None:
            if self.config.intercepts_output:
                interceptor = OutputInterceptor(on_line=self._log_captured_line)
            else:
                interceptor = OutputCapture()
        self.interceptor = interceptor
        self.crash_monitor = crash_monitor or CrashMonitor(on_crash=self.log_entry)
        self.system_info = system_info

        self._state = LoggerState.UNINITIALIZED
        self._queue: "queue.Queue" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._setup_lock = threading.Lock()
        self._console_handler: Optional[logging.Handler] = None
        self._console_propagate = True

    def __enter__(self) -> "DiagnosticsLogger":
        self.setup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    @property
    def state(self) -> LoggerState:
        return self._state

    @property
    def is_set_up(self) -> bool:
        """Whether the logger is set up and ready to use."""
        return self._state is LoggerState.READY

    # Setup

    def setup(self) -> None:
        """Prepare the log file, install hooks and start a new session.

        Calling this again while set up is a no-op, except under a test
        harness where the setup runs again.

        Raises:
            OSError: If the log file or its directory cannot be created, or
                the output capture cannot be installed. A failed setup
                leaves the logger uninitialized.
        """
        with self._setup_lock:
            if self.is_set_up and not self.config.testing:
                return

            self.store.create()
            self._start_worker()
            self._state = LoggerState.READY

            try:
                if not self.interceptor.is_installed:
                    self.interceptor.install()
                    self._route_package_logs_to_console()
                if self.config.monitor_crashes:
                    self.crash_monitor.start()
            except Exception:
                self._stop()
                raise

            self.start_new_session()
            logger.debug(f"Diagnostics logger set up at {self.store.path}")

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """Restore hooks, drain pending writes and stop the worker."""
        with self._setup_lock:
            self._stop(timeout)

    def _stop(self, timeout: Optional[float] = 5.0) -> None:
        if self._worker is None:
            self._state = LoggerState.UNINITIALIZED
            return

        self.crash_monitor.stop()
        self._restore_package_logs()
        self.interceptor.uninstall()

        self._state = LoggerState.UNINITIALIZED
        self._queue.put(_STOP)
        self._worker.join(timeout=timeout)
        if self._worker.is_alive():
            logger.warning("Diagnostics log worker did not stop in time")
        self._worker = None

    def _start_worker(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(
            target=self._run_worker,
            name="app-diagnostics-log-writer",
            daemon=True,
        )
        self._worker.start()

    def _run_worker(self) -> None:
        while True:
            task = self._queue.get()
            try:
                if task is _STOP:
                    return
                task()
            except Exception as e:
                logger.error(f"Diagnostics log task failed: {e}")
            finally:
                self._queue.task_done()

    def _route_package_logs_to_console(self) -> None:
        # Internal messages must not be captured back into the log.
        console = self.interceptor.console
        if console is None:
            return
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        handler = logging.StreamHandler(console)
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        self._console_propagate = package_logger.propagate
        package_logger.addHandler(handler)
        package_logger.propagate = False
        self._console_handler = handler

    def _restore_package_logs(self) -> None:
        if self._console_handler is None:
            return
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.removeHandler(self._console_handler)
        package_logger.propagate = self._console_propagate
        self._console_handler = None

    # Logging

    def start_new_session(self) -> None:
        """Write a session marker carrying system information."""
        info = self.system_info or SystemInfo.collect()
        self.log_entry(SessionMarker.from_metadata(info.metadata()))

    def log(
        self,
        message: str,
        origin: Optional[Origin] = None,
        stacklevel: int = 1,
    ) -> None:
        """Log a debug message. Returns immediately; the write is queued.

        Args:
            message: The message to log
            origin: Source location (default: the caller)
            stacklevel: Frames to skip when resolving the caller
        """
        self._require_setup("log a message")
        self.log_entry(
            DebugLog(message=message, origin=origin or Origin.caller(stacklevel))
        )

    def log_error(
        self,
        error: BaseException,
        description: Optional[str] = None,
        origin: Optional[Origin] = None,
        stacklevel: int = 1,
    ) -> None:
        """Log an error with an optional description. The write is queued.

        Args:
            error: The error to log
            description: Extra information about the error
            origin: Source location (default: the caller)
            stacklevel: Frames to skip when resolving the caller
        """
        self._require_setup("log an error")
        self.log_entry(
            ErrorLog.from_exception(
                error,
                origin=origin or Origin.caller(stacklevel),
                description=description,
            )
        )

    def log_entry(self, entry: LogEntry) -> None:
        """Queue any entry for writing."""
        self._require_setup("log an entry")
        self._queue.put(lambda: self.store.append(entry))

    def _log_captured_line(self, line: str) -> None:
        if self.is_set_up:
            self.log_entry(SystemLog(line=line))

    def _require_setup(self, operation: str) -> None:
        if not self.is_set_up:
            raise LoggerNotSetUpError(operation)

    # Reading

    def _submit(self, func: Callable[[], T]) -> "Future[T]":
        future: "Future[T]" = Future()

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(func())
            except BaseException as e:
                future.set_exception(e)

        self._queue.put(run)
        return future

    def read_log(self, timeout: Optional[float] = None) -> bytes:
        """Read the full log once all previously queued writes are done.

        Raises:
            LoggerNotSetUpError: If called before ``setup()``
            LogStoreError: If the log cannot be read
        """
        self._require_setup("read the log")
        return self._submit(self.store.read).result(timeout=timeout)

    async def read_log_async(self) -> bytes:
        """Awaitable variant of ``read_log`` for use inside an event loop."""
        self._require_setup("read the log")
        return await asyncio.wrap_future(self._submit(self.store.read))

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every write queued so far has been applied."""
        if self._worker is None:
            return
        self._submit(lambda: None).result(timeout=timeout)

    def delete_logs(self) -> None:
        """Remove the log file. Should only be used for resets and tests."""
        if self._worker is None:
            self.store.delete()
            return
        self._submit(self.store.delete).result()


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
