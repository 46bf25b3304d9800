"""Reporters: each produces one chapter of the diagnostics report."""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Union

from app_diagnostics.config import DEFAULT_INSIGHT_TIMEOUT
from app_diagnostics.logs.entries import SESSION_CLASS, parse_fragments, escape
from app_diagnostics.logs.logger import DiagnosticsLogger
from app_diagnostics.system import SystemInfo
from app_diagnostics.utils.errors import DirectoryTreeError
from .chapter import Chapter
from .directory_tree import DirectoryTreeFactory
from .insights import Insight, default_insights, evaluate_insights

logger = logging.getLogger(__name__)

DEFAULT_GENERAL_INFO = (
    "This report contains the recent logs, system information and smart "
    "insights of the app. Use the menu to jump to a chapter and the "
    "checkboxes to hide log categories."
)


class Reporter(ABC):
    """Produces one chapter from a single data source."""

    title: str

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def report(self) -> Chapter:
        """Create the chapter. May be called more than once."""


class GeneralInfoReporter(Reporter):
    """Introductory chapter explaining the report."""

    title = "Information"

    def __init__(self, description: str = DEFAULT_GENERAL_INFO):
        self.description = description

    async def report(self) -> Chapter:
        return Chapter(self.title, f"<p>{escape(self.description)}</p>")


class AppSystemMetadataReporter(Reporter):
    """App and system metadata as key/value pairs."""

    title = "App System Metadata"

    def __init__(
        self,
        system_info: Optional[SystemInfo] = None,
        extra: Optional[dict] = None,
    ):
        self.system_info = system_info
        self.extra = dict(extra or {})

    async def report(self) -> Chapter:
        info = self.system_info or SystemInfo.collect()
        metadata = info.metadata()
        metadata.update(self.extra)
        return Chapter(self.title, metadata)


class LogsReporter(Reporter):
    """The diagnostics log, grouped into collapsible sessions."""

    title = "Logs"

    def __init__(self, diagnostics_logger: DiagnosticsLogger):
        self.diagnostics_logger = diagnostics_logger

    async def report(self) -> Chapter:
        data = await self.diagnostics_logger.read_log_async()
        return Chapter(self.title, render_log(data.decode("utf-8", errors="replace")))


def render_log(text: str) -> str:
    """Group log fragments into ``<details>`` sessions, oldest first.

    Fragments written before the first session marker that survived
    trimming are grouped under "Earlier logs".
    """
    html = '<div class="logs">'
    open_session = False
    for fragment in parse_fragments(text):
        if fragment.css_class == SESSION_CLASS:
            if open_session:
                html += "</details>"
            html += f'<details class="session" open><summary>{fragment.html}</summary>'
            open_session = True
            continue
        if not open_session:
            html += '<details class="session" open><summary>Earlier logs</summary>'
            open_session = True
        html += fragment.html
    if open_session:
        html += "</details>"
    html += "</div>"
    return html


class InsightsReporter(Reporter):
    """Smart insights, evaluated concurrently and deduplicated by name."""

    title = "Smart Insights"

    def __init__(
        self,
        insights: Optional[Sequence[Insight]] = None,
        timeout: Optional[float] = DEFAULT_INSIGHT_TIMEOUT,
    ):
        """Initialize the reporter.

        Args:
            insights: Insights to evaluate (default: the built-in insights)
            timeout: Seconds an insight may take before it counts as no result
        """
        self.insights: List[Insight] = (
            list(insights) if insights is not None else default_insights()
        )
        self.timeout = timeout

    def with_insights(self, insights: Iterable[Insight]) -> "InsightsReporter":
        """Copy of this reporter with extra insights appended."""
        reporter = copy.copy(self)
        reporter.insights = self.insights + list(insights)
        return reporter

    async def report(self) -> Chapter:
        return Chapter(self.title, await evaluate_insights(self.insights, self.timeout))


class DirectoryTreeReporter(Reporter):
    """Directory trees of the given paths."""

    title = "Directory Trees"

    def __init__(self, trunks: Sequence[Union[str, DirectoryTreeFactory]]):
        self.trunks = [
            trunk if isinstance(trunk, DirectoryTreeFactory) else DirectoryTreeFactory(str(trunk))
            for trunk in trunks
        ]

    async def report(self) -> Chapter:
        html = ""
        for factory in self.trunks:
            try:
                tree = factory.make().render()
            except DirectoryTreeError as e:
                logger.info(f"Skipping directory tree: {e}")
                continue
            html += f'<h4>{escape(str(factory.path))}</h4><pre class="directory-tree">{escape(tree)}</pre>'
        return Chapter(self.title, html)


def default_reporters(
    diagnostics_logger: DiagnosticsLogger,
    system_info: Optional[SystemInfo] = None,
) -> List[Reporter]:
    """General info, app/system metadata, smart insights and logs, in that order."""
    info = system_info or SystemInfo.collect()
    return [
        GeneralInfoReporter(),
        AppSystemMetadataReporter(info),
        InsightsReporter(
            default_insights(info),
            timeout=diagnostics_logger.config.insight_timeout,
        ),
        LogsReporter(diagnostics_logger),
    ]
