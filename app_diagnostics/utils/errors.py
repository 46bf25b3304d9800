"""Error hierarchy for app diagnostics.

Programmer errors (logging before setup) are raised loudly. I/O failures on
the write path are logged and swallowed by the caller; read and compile
failures surface as the types below.
"""

from typing import Optional


class DiagnosticsError(Exception):
    """Base exception for all app diagnostics errors."""

    pass


class LoggerNotSetUpError(DiagnosticsError):
    """Raised when the logger is used before ``setup()`` completed."""

    def __init__(self, operation: str = "log"):
        super().__init__(
            f"Trying to {operation} while the diagnostics logger is not set up"
        )
        self.operation = operation


class LogStoreError(DiagnosticsError):
    """Raised when the log file cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class LogTrimError(LogStoreError):
    """Raised when the log file holds no parseable fragments to trim."""

    pass


class ReporterError(DiagnosticsError):
    """Raised when a reporter fails to produce its chapter."""

    def __init__(self, message: str, reporter: Optional[str] = None):
        super().__init__(message)
        self.reporter = reporter


class FilterError(DiagnosticsError):
    """Raised when a filter fails on a chapter's content."""

    def __init__(
        self,
        message: str,
        filter_name: Optional[str] = None,
        chapter: Optional[str] = None,
    ):
        super().__init__(message)
        self.filter_name = filter_name
        self.chapter = chapter


class InsightLookupError(DiagnosticsError):
    """Raised when an insight's external lookup fails."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DirectoryTreeError(DiagnosticsError):
    """Raised when a directory tree cannot be built from its root."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
