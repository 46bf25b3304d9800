"""Report compilation: chapters, reporters, filters, insights and the compiler."""

from .chapter import Chapter, Diagnostics, anchor
from .filters import ReportFilter, RedactPatternFilter, EmailRedactionFilter, RemoveKeysFilter
from .insights import (
    InsightStatus,
    InsightResult,
    Insight,
    StaticInsight,
    DeviceStorageInsight,
    UpdateAvailableInsight,
    InsightsProvider,
    ErrorPattern,
    ErrorPatternInsightsProvider,
    default_insights,
    evaluate_insights,
)
from .directory_tree import DirectoryTreeFactory, DirectoryTreeNode, NodeKind
from .reporters import (
    Reporter,
    GeneralInfoReporter,
    AppSystemMetadataReporter,
    LogsReporter,
    InsightsReporter,
    DirectoryTreeReporter,
    default_reporters,
)
from .report import DiagnosticsReport
from .compiler import ReportCompiler, compile_report, DEFAULT_FILENAME

__all__ = [
    "Chapter",
    "Diagnostics",
    "anchor",
    "ReportFilter",
    "RedactPatternFilter",
    "EmailRedactionFilter",
    "RemoveKeysFilter",
    "InsightStatus",
    "InsightResult",
    "Insight",
    "StaticInsight",
    "DeviceStorageInsight",
    "UpdateAvailableInsight",
    "InsightsProvider",
    "ErrorPattern",
    "ErrorPatternInsightsProvider",
    "default_insights",
    "evaluate_insights",
    "DirectoryTreeFactory",
    "DirectoryTreeNode",
    "NodeKind",
    "Reporter",
    "GeneralInfoReporter",
    "AppSystemMetadataReporter",
    "LogsReporter",
    "InsightsReporter",
    "DirectoryTreeReporter",
    "default_reporters",
    "DiagnosticsReport",
    "ReportCompiler",
    "compile_report",
    "DEFAULT_FILENAME",
]
