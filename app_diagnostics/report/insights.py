"""Smart insights: independently evaluated advisory results.

Insights are evaluated concurrently. An insight may produce no result
(for example when a lookup fails or times out); it is then left out.
Results are merged by insight name, so duplicates collapse to one entry.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import httpx
from packaging.version import InvalidVersion, Version

from app_diagnostics.config import DEFAULT_INSIGHT_TIMEOUT
from app_diagnostics.logs.entries import messages_by_category, LogCategory
from app_diagnostics.system import SystemInfo, format_bytes
from app_diagnostics.utils.errors import InsightLookupError
from app_diagnostics.utils.retry import retry_with_backoff
from .chapter import Chapter
from .pypi import PackageIndexClient, DEFAULT_INDEX_URL

logger = logging.getLogger(__name__)

LOW_STORAGE_THRESHOLD = 1000 * 1000 * 1000  # 1 GB


class InsightStatus(str, Enum):
    """Outcome of an insight."""

    SUCCESS = "success"
    WARN = "warn"
    ERROR = "error"


_STATUS_SYMBOLS = {
    InsightStatus.SUCCESS: "✅",
    InsightStatus.WARN: "⚠️",
    InsightStatus.ERROR: "❌",
}


@dataclass(frozen=True)
class InsightResult:
    """Result of evaluating one insight."""

    status: InsightStatus
    message: str

    @classmethod
    def success(cls, message: str) -> "InsightResult":
        return cls(InsightStatus.SUCCESS, message)

    @classmethod
    def warn(cls, message: str) -> "InsightResult":
        return cls(InsightStatus.WARN, message)

    @classmethod
    def error(cls, message: str) -> "InsightResult":
        return cls(InsightStatus.ERROR, message)

    @property
    def display(self) -> str:
        return f"{_STATUS_SYMBOLS[self.status]} {self.message}"


class Insight(ABC):
    """An advisory check. ``name`` doubles as its deduplication key."""

    name: str

    @abstractmethod
    async def generate_result(self) -> Optional[InsightResult]:
        """Evaluate the insight, or return None when it cannot tell."""


class StaticInsight(Insight):
    """An insight with a fixed result, e.g. derived from chapter content."""

    def __init__(self, name: str, result: InsightResult):
        self.name = name
        self.result = result

    async def generate_result(self) -> Optional[InsightResult]:
        return self.result

    def __repr__(self) -> str:
        return f"StaticInsight(name={self.name!r}, result={self.result!r})"


class DeviceStorageInsight(Insight):
    """Warns when the device is low on free disk space."""

    name = "Device storage"

    def __init__(
        self,
        free_disk_bytes: int,
        total_disk_space: str,
        threshold: int = LOW_STORAGE_THRESHOLD,
    ):
        self.free_disk_bytes = free_disk_bytes
        self.total_disk_space = total_disk_space
        self.threshold = threshold

    @classmethod
    def from_system_info(cls, info: SystemInfo) -> "DeviceStorageInsight":
        return cls(info.free_disk_bytes, info.total_disk_space)

    @property
    def result(self) -> InsightResult:
        free = format_bytes(self.free_disk_bytes)
        if self.free_disk_bytes < self.threshold:
            return InsightResult.warn(
                f"The user is low on storage ({free} of {self.total_disk_space} left)"
            )
        return InsightResult.success(
            f"The user has enough storage ({free} of {self.total_disk_space} left)"
        )

    async def generate_result(self) -> Optional[InsightResult]:
        return self.result


def _version_key(version: str) -> Tuple[Tuple[int, Union[int, str]], ...]:
    parts = []
    for part in re.split(r"[.\-+]", version.strip().lstrip("vV")):
        if part.isdigit():
            parts.append((1, int(part)))
        elif part:
            parts.append((0, part))
    while parts and parts[-1] == (1, 0):
        parts.pop()
    return tuple(parts)


def compare_versions(current: str, latest: str) -> int:
    """Return -1, 0 or 1 as ``current`` is older, equal or newer than ``latest``.

    Versions are compared as PEP 440 versions; a plain dotted comparison is
    used only when either one does not parse.
    """
    try:
        a, b = Version(current.strip()), Version(latest.strip())
    except InvalidVersion:
        a, b = _version_key(current), _version_key(latest)
    return (a > b) - (a < b)


class UpdateAvailableInsight(Insight):
    """Looks up the latest release of the app on a package index."""

    name = "Update available"

    def __init__(
        self,
        distribution: str,
        current_version: str,
        index_url: str = DEFAULT_INDEX_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_attempts: int = 2,
    ):
        self.distribution = distribution
        self.current_version = current_version
        self.index_url = index_url
        self.transport = transport
        self.max_attempts = max_attempts

    @classmethod
    def from_system_info(cls, info: SystemInfo) -> Optional["UpdateAvailableInsight"]:
        """None when the app is not an installed distribution."""
        if not info.distribution or info.app_version == "Unknown":
            return None
        return cls(info.distribution, info.app_version)

    async def fetch_latest_version(self) -> str:
        async with PackageIndexClient(self.index_url, transport=self.transport) as index:
            metadata = await retry_with_backoff(
                lambda: index.get_package(self.distribution),
                max_attempts=self.max_attempts,
                retryable_exceptions=(InsightLookupError,),
            )
        return metadata.info.version

    async def generate_result(self) -> Optional[InsightResult]:
        try:
            latest = await self.fetch_latest_version()
        except InsightLookupError as e:
            logger.debug(f"Update check for {self.distribution} failed: {e}")
            return None

        comparison = compare_versions(self.current_version, latest)
        if comparison == 0:
            return InsightResult.success(f"The user is using the latest app version {latest}")
        if comparison > 0:
            return InsightResult.success(
                f"The user is using a newer version {self.current_version}"
            )
        return InsightResult.warn(f"The user could update to {latest}")


def default_insights(system_info: Optional[SystemInfo] = None) -> List[Insight]:
    """Built-in insights for the running app."""
    info = system_info or SystemInfo.collect()
    insights: List[Optional[Insight]] = [
        DeviceStorageInsight.from_system_info(info),
        UpdateAvailableInsight.from_system_info(info),
    ]
    return [insight for insight in insights if insight is not None]


async def _evaluate(insight: Insight, timeout: Optional[float]) -> Optional[InsightResult]:
    try:
        return await asyncio.wait_for(insight.generate_result(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.info(f"Insight '{insight.name}' timed out after {timeout}s")
    except Exception as e:
        logger.info(f"Insight '{insight.name}' produced no result: {e}")
    return None


async def evaluate_insights(
    insights: Sequence[Insight],
    timeout: Optional[float] = DEFAULT_INSIGHT_TIMEOUT,
) -> Dict[str, str]:
    """Evaluate insights concurrently and merge them by name.

    Results are merged on the event loop in input order after all
    evaluations finish; the last insight with a given name wins.
    """
    results = await asyncio.gather(*(_evaluate(insight, timeout) for insight in insights))

    merged: Dict[str, str] = {}
    for insight, result in zip(insights, results):
        if result is None:
            continue
        merged[insight.name] = result.display
    return merged


class InsightsProvider(ABC):
    """Derives extra insights from a chapter's already rendered content."""

    @abstractmethod
    def insights_for(self, chapter: Chapter) -> List[Insight]:
        pass


@dataclass(frozen=True)
class ErrorPattern:
    """A known error signature and the insight it raises."""

    name: str
    pattern: str
    message: str
    status: InsightStatus = InsightStatus.WARN


class ErrorPatternInsightsProvider(InsightsProvider):
    """Raises an insight for every known pattern found in logged errors.

    Usage:
        provider = ErrorPatternInsightsProvider([
            ErrorPattern(
                name="Localized data",
                pattern=r"MissingLocalizationError",
                message="An error was found regarding missing localisation.",
            ),
        ])
    """

    def __init__(self, patterns: Iterable[ErrorPattern]):
        self.patterns = [(p, re.compile(p.pattern)) for p in patterns]

    def insights_for(self, chapter: Chapter) -> List[Insight]:
        if not isinstance(chapter.diagnostics, str):
            return []
        errors = messages_by_category(chapter.diagnostics).get(LogCategory.ERROR.value, [])
        if not errors:
            return []

        insights: List[Insight] = []
        for pattern, regex in self.patterns:
            if any(regex.search(error) for error in errors):
                insights.append(
                    StaticInsight(pattern.name, InsightResult(pattern.status, pattern.message))
                )
        return insights
