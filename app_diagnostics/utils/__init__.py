"""Utility modules for app diagnostics."""

from .errors import (
    DiagnosticsError,
    LoggerNotSetUpError,
    LogStoreError,
    LogTrimError,
    ReporterError,
    FilterError,
    InsightLookupError,
    DirectoryTreeError,
)
from .retry import retry_with_backoff

__all__ = [
    "DiagnosticsError",
    "LoggerNotSetUpError",
    "LogStoreError",
    "LogTrimError",
    "ReporterError",
    "FilterError",
    "InsightLookupError",
    "DirectoryTreeError",
    "retry_with_backoff",
]
