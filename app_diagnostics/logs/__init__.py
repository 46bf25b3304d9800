"""Bounded diagnostics log: entries, store, output capture and the logger."""

from .entries import (
    LogCategory,
    LogEntry,
    SystemLog,
    DebugLog,
    ErrorLog,
    SessionMarker,
    Origin,
    Fragment,
    parse_fragments,
)
from .store import LogStore
from .trimmer import LogTrimmer
from .interceptor import OutputCapture, OutputInterceptor, NullInterceptor, LineSplitter
from .monitor import CrashMonitor
from .logger import DiagnosticsLogger, LoggerState, setup_logging

__all__ = [
    "LogCategory",
    "LogEntry",
    "SystemLog",
    "DebugLog",
    "ErrorLog",
    "SessionMarker",
    "Origin",
    "Fragment",
    "parse_fragments",
    "LogStore",
    "LogTrimmer",
    "OutputCapture",
    "OutputInterceptor",
    "NullInterceptor",
    "LineSplitter",
    "CrashMonitor",
    "DiagnosticsLogger",
    "LoggerState",
    "setup_logging",
]
