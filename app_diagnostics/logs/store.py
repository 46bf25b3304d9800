"""Durable, size-bounded, append-only log file.

The store does not serialize concurrent writers itself beyond one lock
around each file operation; the owning ``DiagnosticsLogger`` funnels all
appends through a single worker. The lock guarantees a reader never sees
a file that is halfway through a trim rewrite.
"""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from app_diagnostics.config import (
    DEFAULT_MAXIMUM_LOG_SIZE,
    DEFAULT_TRIM_BATCH_SIZE,
    MINIMUM_LOG_SIZE,
)
from app_diagnostics.utils.errors import DiagnosticsError, LogStoreError
from .entries import LogEntry
from .trimmer import LogTrimmer

logger = logging.getLogger(__name__)


class LogStore:
    """Append-only log file that trims its oldest entries past a maximum size.

    Usage:
        store = LogStore(Path("diagnostics_log.html"), maximum_size=1024 * 1024)
        store.create()
        store.append(SystemLog(line="Started"))
        data = store.read()
    """

    def __init__(
        self,
        path: Path,
        maximum_size: int = DEFAULT_MAXIMUM_LOG_SIZE,
        trim_batch_size: int = DEFAULT_TRIM_BATCH_SIZE,
    ):
        """Initialize the store.

        Args:
            path: Location of the log file
            maximum_size: Maximum size in bytes after any append completes
            trim_batch_size: Minimum number of fragments removed per trim
        """
        if maximum_size < MINIMUM_LOG_SIZE:
            raise ValueError(
                f"maximum_size must be at least {MINIMUM_LOG_SIZE} bytes, got {maximum_size}"
            )
        self.path = Path(path)
        self.maximum_size = maximum_size
        self.trimmer = LogTrimmer(batch_size=trim_batch_size)
        self._lock = threading.RLock()

    def exists(self) -> bool:
        return self.path.is_file()

    def create(self) -> None:
        """Ensure the log file and its parent directory exist."""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self.path.touch()
                logger.debug(f"Created log file at {self.path}")

    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except FileNotFoundError:
            return 0

    def append(self, entry: LogEntry) -> Optional[int]:
        """Append one entry and trim if the file grew past the maximum.

        Failures are logged and swallowed so a broken log can never take
        the host application down.

        Returns:
            The file size after the append (and any trim), or None on failure
        """
        data = entry.encode(limit=self.maximum_size)

        with self._lock:
            try:
                with open(self.path, "ab") as f:
                    f.seek(0, os.SEEK_END)
                    f.write(data)
                    f.flush()
                    size = f.tell()
            except OSError as e:
                logger.error(f"Writing log entry to {self.path} failed: {e}")
                return None

            if size <= self.maximum_size:
                return size

            try:
                self.trim()
            except DiagnosticsError as e:
                logger.error(f"Trimming log {self.path} failed: {e}")
            return self.size()

    def trim(self, count: Optional[int] = None) -> int:
        """Remove the oldest fragments and atomically rewrite the file.

        Args:
            count: Minimum fragments to remove (default: the trim batch size)

        Returns:
            Number of fragments removed

        Raises:
            LogTrimError: If the file holds no parseable fragments
            LogStoreError: If the file cannot be read or rewritten
        """
        trimmer = self.trimmer if count is None else LogTrimmer(batch_size=count)

        with self._lock:
            data = self.read()
            result = trimmer.trim(data, self.maximum_size)
            if result.removed == 0 and len(result.data) == len(data):
                return 0
            self._replace(result.data)
            return result.removed

    def _replace(self, data: bytes) -> None:
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, self.path)
        except OSError as e:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise LogStoreError(
                f"Could not write trimmed log to {self.path}: {e}", path=str(self.path)
            ) from e

    def read(self) -> bytes:
        """Return the full current content of the log file.

        Raises:
            LogStoreError: If the file cannot be read
        """
        with self._lock:
            try:
                return self.path.read_bytes()
            except OSError as e:
                raise LogStoreError(
                    f"Reading log {self.path} failed: {e}", path=str(self.path)
                ) from e

    def delete(self) -> None:
        """Remove the log file. Intended for resets and tests only."""
        with self._lock:
            try:
                self.path.unlink()
                logger.debug(f"Deleted log file at {self.path}")
            except FileNotFoundError:
                pass
            except OSError as e:
                raise LogStoreError(
                    f"Deleting log {self.path} failed: {e}", path=str(self.path)
                ) from e
