"""App diagnostics: a bounded on-disk diagnostics log and HTML report compilation."""

__version__ = "0.1.0"

from .config import DiagnosticsConfig
from .system import SystemInfo
from .logs import DiagnosticsLogger, setup_logging
from .report import (
    Chapter,
    DiagnosticsReport,
    ReportCompiler,
    compile_report,
    default_reporters,
)
from .utils.errors import DiagnosticsError, LoggerNotSetUpError

__all__ = [
    "__version__",
    "DiagnosticsConfig",
    "SystemInfo",
    "DiagnosticsLogger",
    "setup_logging",
    "Chapter",
    "DiagnosticsReport",
    "ReportCompiler",
    "compile_report",
    "default_reporters",
    "DiagnosticsError",
    "LoggerNotSetUpError",
]
