"""Report compilation: reporters, filters and insights into one document."""

import logging
from typing import List, Mapping, Optional, Sequence, Tuple

from app_diagnostics.system import default_app_name
from app_diagnostics.utils.errors import FilterError, ReporterError
from .chapter import Chapter
from .document import render_document
from .filters import ReportFilter
from .insights import Insight, InsightsProvider
from .report import DiagnosticsReport, HTML_MIME_TYPE
from .reporters import InsightsReporter, Reporter

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "Diagnostics-Report.html"


def default_report_title() -> str:
    return f"{default_app_name()} - Diagnostics Report"


class ReportCompiler:
    """Compiles the chapters of all reporters into a single HTML report.

    Insights reporters run last so they can include insights derived from
    the other chapters, but their chapter keeps the position of the
    reporter in the given order. A reporter that fails is left out of the
    report; the others are unaffected.

    Usage:
        compiler = ReportCompiler(
            default_reporters(diagnostics_logger),
            filters=[EmailRedactionFilter()],
        )
        report = await compiler.compile()
        report.save("~/Desktop")
    """

    def __init__(
        self,
        reporters: Sequence[Reporter],
        filters: Optional[Sequence[ReportFilter]] = None,
        insights_provider: Optional[InsightsProvider] = None,
        filename: str = DEFAULT_FILENAME,
        report_title: Optional[str] = None,
    ):
        """Initialize the compiler.

        Args:
            reporters: Reporters in the order their chapters should appear
            filters: Filters applied to every chapter, in order
            insights_provider: Derives extra insights from each chapter
            filename: Filename of the compiled report
            report_title: Page title (default: "<app name> - Diagnostics Report")
        """
        self.reporters = list(reporters)
        self.filters = list(filters or [])
        self.insights_provider = insights_provider
        self.filename = filename
        self.report_title = report_title or default_report_title()

    async def compile(self) -> DiagnosticsReport:
        """Run every reporter and serialize the resulting chapters.

        Returns:
            The compiled report
        """
        chapters: List[Tuple[int, Chapter]] = []
        derived: List[Insight] = []
        deferred: List[Tuple[int, InsightsReporter]] = []

        for index, reporter in enumerate(self.reporters):
            if isinstance(reporter, InsightsReporter):
                deferred.append((index, reporter))
                continue
            chapter = await self._run_reporter(reporter)
            if chapter is None:
                continue
            chapters.append((index, chapter))
            derived.extend(self._derive_insights(chapter))

        for index, reporter in deferred:
            chapter = await self._run_reporter(reporter.with_insights(derived))
            if chapter is not None:
                chapters.append((index, chapter))

        chapters.sort(key=lambda item: item[0])
        ordered = [chapter for _, chapter in chapters]
        html = render_document(ordered, self.report_title)
        logger.info(f"Compiled diagnostics report with {len(ordered)} chapter(s)")
        return DiagnosticsReport(
            filename=self.filename,
            data=html.encode("utf-8"),
            mime_type=HTML_MIME_TYPE,
        )

    async def _run_reporter(self, reporter: Reporter) -> Optional[Chapter]:
        try:
            chapter = await self._report(reporter)
        except ReporterError as e:
            logger.warning(f"Leaving out chapter of {e.reporter}: {e}")
            return None
        return self._apply_filters(chapter)

    async def _report(self, reporter: Reporter) -> Chapter:
        try:
            chapter = await reporter.report()
        except Exception as e:
            raise ReporterError(str(e), reporter=reporter.name) from e
        if not isinstance(chapter, Chapter):
            raise ReporterError(
                f"Expected a Chapter, got {type(chapter).__name__}",
                reporter=reporter.name,
            )
        return chapter

    def _apply_filters(self, chapter: Chapter) -> Chapter:
        for report_filter in self.filters:
            try:
                chapter = self._apply_filter(report_filter, chapter)
            except FilterError as e:
                logger.warning(f"Skipping filter {e.filter_name} on '{e.chapter}': {e}")
        return chapter

    def _apply_filter(self, report_filter: ReportFilter, chapter: Chapter) -> Chapter:
        try:
            filtered = report_filter.apply(chapter.diagnostics)
        except Exception as e:
            raise FilterError(
                str(e), filter_name=report_filter.name, chapter=chapter.title
            ) from e
        expected = str if isinstance(chapter.diagnostics, str) else Mapping
        if not isinstance(filtered, expected):
            raise FilterError(
                "Filter changed the shape of the chapter content",
                filter_name=report_filter.name,
                chapter=chapter.title,
            )
        return chapter.with_diagnostics(filtered)

    def _derive_insights(self, chapter: Chapter) -> List[Insight]:
        if self.insights_provider is None:
            return []
        try:
            return list(self.insights_provider.insights_for(chapter))
        except Exception as e:
            logger.warning(f"Insights provider failed on '{chapter.title}': {e}")
            return []


async def compile_report(
    reporters: Sequence[Reporter],
    filters: Optional[Sequence[ReportFilter]] = None,
    insights_provider: Optional[InsightsProvider] = None,
    filename: str = DEFAULT_FILENAME,
    report_title: Optional[str] = None,
) -> DiagnosticsReport:
    """Compile a report in one call. See ``ReportCompiler``."""
    compiler = ReportCompiler(
        reporters,
        filters=filters,
        insights_provider=insights_provider,
        filename=filename,
        report_title=report_title,
    )
    return await compiler.compile()
