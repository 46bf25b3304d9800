"""Capture of the process's standard output and error streams.

File descriptors 1 and 2 are redirected into pipes. A reader thread per
stream echoes every chunk back to the original descriptor, so the console
keeps working, and forwards each complete, non-empty line to a callback.
"""

import codecs
import logging
import os
import sys
import threading
from typing import Callable, Dict, List, Optional, Sequence, TextIO

logger = logging.getLogger(__name__)

STDOUT_FILENO = 1
STDERR_FILENO = 2

READ_CHUNK_SIZE = 4096
JOIN_TIMEOUT = 2.0


class LineSplitter:
    """Incrementally decodes bytes into complete lines.

    Undecodable bytes and multi-byte sequences split across chunks are
    handled by an incremental decoder with replacement characters.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> List[str]:
        """Decode a chunk and return the lines it completed."""
        return self._split(self._pending + self._decoder.decode(data))

    def flush(self) -> List[str]:
        """Return whatever is left, including an unterminated last line."""
        text = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        return [line for line in text.splitlines() if line.strip()]

    def _split(self, text: str) -> List[str]:
        lines = text.splitlines(keepends=True)
        self._pending = ""
        if lines and not lines[-1].endswith(("\n", "\r")):
            self._pending = lines.pop()
        stripped = (line.rstrip("\r\n") for line in lines)
        return [line for line in stripped if line.strip()]


class OutputCapture:
    """Interface for stream capture; this base implementation does nothing.

    Used as-is when capture is disabled, e.g. under a test runner.
    """

    @property
    def is_installed(self) -> bool:
        return False

    @property
    def console(self) -> Optional[TextIO]:
        """A text stream writing to the original, uncaptured console."""
        return None

    def install(self) -> None:
        pass

    def uninstall(self) -> None:
        pass


NullInterceptor = OutputCapture


class _Tap:
    """Redirection state for a single file descriptor."""

    def __init__(self, fd: int, original: int, read_fd: int):
        self.fd = fd
        self.original = original
        self.read_fd = read_fd
        self.splitter = LineSplitter()
        self.thread: Optional[threading.Thread] = None


class OutputInterceptor(OutputCapture):
    """Redirects file descriptors into pipes and taps their lines.

    Usage:
        interceptor = OutputInterceptor(on_line=lambda line: print(line))
        interceptor.install()
        ...
        interceptor.uninstall()
    """

    def __init__(
        self,
        on_line: Callable[[str], None],
        fds: Sequence[int] = (STDOUT_FILENO, STDERR_FILENO),
    ):
        """Initialize the interceptor.

        Args:
            on_line: Called from a reader thread with every captured line
            fds: File descriptors to capture (default: stdout and stderr)
        """
        self.on_line = on_line
        self.fds = tuple(fds)
        self._taps: Dict[int, _Tap] = {}
        self._console: Optional[TextIO] = None
        self._lock = threading.Lock()

    @property
    def is_installed(self) -> bool:
        return bool(self._taps)

    @property
    def console(self) -> Optional[TextIO]:
        return self._console

    def install(self) -> None:
        with self._lock:
            if self._taps:
                return
            _flush_std_streams()
            try:
                for fd in self.fds:
                    self._taps[fd] = self._redirect(fd)
            except OSError:
                self._restore_all()
                raise

            console_fd = self._console_fd()
            if console_fd is not None:
                self._console = open(
                    console_fd,
                    "w",
                    buffering=1,
                    encoding="utf-8",
                    errors="replace",
                    closefd=False,
                )

            for tap in self._taps.values():
                tap.thread = threading.Thread(
                    target=self._pump,
                    args=(tap,),
                    name=f"app-diagnostics-fd{tap.fd}-tap",
                    daemon=True,
                )
                tap.thread.start()
            logger.debug(f"Capturing output of file descriptors {list(self._taps)}")

    def uninstall(self) -> None:
        with self._lock:
            if not self._taps:
                return
            _flush_std_streams()
            if self._console is not None:
                self._console.flush()
            self._restore_all()
            self._console = None

    def _console_fd(self) -> Optional[int]:
        for fd in (STDERR_FILENO, STDOUT_FILENO):
            if fd in self._taps:
                return self._taps[fd].original
        return None

    def _redirect(self, fd: int) -> _Tap:
        original = os.dup(fd)
        read_fd, write_fd = os.pipe()
        try:
            os.dup2(write_fd, fd)
        except OSError:
            os.close(read_fd)
            os.close(original)
            raise
        finally:
            os.close(write_fd)
        return _Tap(fd=fd, original=original, read_fd=read_fd)

    def _restore_all(self) -> None:
        taps = list(self._taps.values())
        self._taps = {}

        # Restoring the descriptor closes the pipe's last write end,
        # which lets the reader thread drain and exit.
        for tap in taps:
            os.dup2(tap.original, tap.fd)
        for tap in taps:
            if tap.thread is not None:
                tap.thread.join(timeout=JOIN_TIMEOUT)
                if tap.thread.is_alive():
                    logger.warning(f"Reader thread for fd {tap.fd} did not stop")
                    continue
            else:
                os.close(tap.read_fd)
            os.close(tap.original)

    def _pump(self, tap: _Tap) -> None:
        try:
            while True:
                try:
                    data = os.read(tap.read_fd, READ_CHUNK_SIZE)
                except OSError:
                    break
                if not data:
                    break
                _write_all(tap.original, data)
                self._deliver(tap, tap.splitter.feed(data))
            self._deliver(tap, tap.splitter.flush())
        finally:
            os.close(tap.read_fd)

    def _deliver(self, tap: _Tap, lines: List[str]) -> None:
        for line in lines:
            try:
                self.on_line(line)
            except Exception as e:
                message = f"Forwarding captured output failed: {e}\n"
                _write_all(tap.original, message.encode("utf-8", errors="replace"))


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        try:
            written = os.write(fd, view)
        except OSError:
            return
        view = view[written:]


def _flush_std_streams() -> None:
    for stream in (sys.stdout, sys.stderr):
        try:
            if stream is not None:
                stream.flush()
        except (OSError, ValueError):
            pass
