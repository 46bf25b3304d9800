"""Log entries and their on-disk fragment format.

Every entry serializes to one self-delimiting HTML fragment:

    <p class="debug"><span class="log-date">...</span>...</p>

User text is HTML-escaped, so ``</p>`` can never occur inside a fragment
and the log file can always be split back into whole entries.
"""

import html
import re
import sys
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Tuple, Mapping

ELLIPSIS = "…"

FRAGMENT_PATTERN = re.compile(
    r'<p class="(system|debug|error|session)">(.*?)</p>\n?',
    re.DOTALL,
)
_TAG_PATTERN = re.compile(r"<[^>]+>")


class LogCategory(str, Enum):
    """Categories a reader can toggle in the compiled report."""

    SYSTEM = "system"
    DEBUG = "debug"
    ERROR = "error"


SESSION_CLASS = "session"


def _now() -> datetime:
    return datetime.now()


def escape(text: str) -> str:
    """HTML-encode text, e.g. ``<CONTENT>`` becomes ``&lt;CONTENT&gt;``."""
    return html.escape(text, quote=False)


@dataclass(frozen=True)
class Origin:
    """Source location a log call was made from."""

    file: str
    function: str
    line: int

    @classmethod
    def caller(cls, stacklevel: int = 1) -> "Origin":
        """Origin of the frame ``stacklevel`` levels above the caller."""
        try:
            frame = sys._getframe(stacklevel + 1)
        except ValueError:
            return cls(file="<unknown>", function="<unknown>", line=0)
        code = frame.f_code
        return cls(file=code.co_filename, function=code.co_name, line=frame.f_lineno)

    def __str__(self) -> str:
        return f"{Path(self.file).name}:{self.line} {self.function}()"


class LogEntry:
    """Base class for everything written to the log store.

    Subclasses provide ``category``, ``css_class``, ``text`` and may add a
    ``prefix`` (origin) and ``details`` (multi-line payload).
    """

    category: LogCategory
    css_class: str
    timestamp: datetime

    @property
    def text(self) -> str:
        raise NotImplementedError

    @property
    def prefix(self) -> Optional[str]:
        return None

    @property
    def details(self) -> Optional[str]:
        return None

    def _render(self, text: str, compact: bool = False) -> str:
        parts = [f'<p class="{self.css_class}">']
        if not compact:
            date = self.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            parts.append(f'<span class="log-date">{date}</span>')
            if self.prefix:
                parts.append(f'<span class="log-prefix">{escape(self.prefix)}</span>')
        parts.append(f'<span class="log-message">{escape(text)}</span>')
        if not compact and self.details:
            parts.append(f'<span class="log-details">{escape(self.details)}</span>')
        parts.append("</p>\n")
        return "".join(parts)

    def fragment(self, compact: bool = False) -> str:
        """The HTML fragment written to disk for this entry."""
        return self._render(self.text, compact=compact)

    def encode(self, limit: Optional[int] = None) -> bytes:
        """Serialize to bytes, shrinking the fragment to fit ``limit``.

        Oversized entries drop their date/origin first and then have their
        message truncated; the result is always one whole fragment.
        """
        data = self.fragment().encode("utf-8")
        if limit is None or len(data) <= limit:
            return data

        data = self.fragment(compact=True).encode("utf-8")
        if len(data) <= limit:
            return data

        text = self.text
        keep = len(text)
        while keep > 0:
            data = self._render(text[:keep] + ELLIPSIS, compact=True).encode("utf-8")
            overshoot = len(data) - limit
            if overshoot <= 0:
                return data
            keep -= max(1, min(overshoot, keep))
        return self._render(ELLIPSIS, compact=True).encode("utf-8")


@dataclass(frozen=True)
class SystemLog(LogEntry):
    """A line captured from the process's standard output or error."""

    line: str
    timestamp: datetime = field(default_factory=_now)

    category = LogCategory.SYSTEM
    css_class = LogCategory.SYSTEM.value

    @property
    def text(self) -> str:
        return self.line


@dataclass(frozen=True)
class DebugLog(LogEntry):
    """A message logged by application code."""

    message: str
    origin: Origin
    timestamp: datetime = field(default_factory=_now)

    category = LogCategory.DEBUG
    css_class = LogCategory.DEBUG.value

    @property
    def text(self) -> str:
        return self.message

    @property
    def prefix(self) -> Optional[str]:
        return str(self.origin)


@dataclass(frozen=True)
class ErrorLog(LogEntry):
    """An error logged by application code or caught by the crash monitor."""

    description: str
    origin: Origin
    error_type: Optional[str] = None
    details: Optional[str] = None
    timestamp: datetime = field(default_factory=_now)

    category = LogCategory.ERROR
    css_class = LogCategory.ERROR.value

    @property
    def text(self) -> str:
        if self.error_type:
            return f"ERROR: {self.error_type}: {self.description}"
        return f"ERROR: {self.description}"

    @property
    def prefix(self) -> Optional[str]:
        return str(self.origin)

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        origin: Origin,
        description: Optional[str] = None,
        include_traceback: bool = False,
    ) -> "ErrorLog":
        message = str(error) or type(error).__name__
        if description:
            message = f"{message} | {description}"
        details = None
        if include_traceback:
            details = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ).rstrip()
        return cls(
            description=message,
            origin=origin,
            error_type=type(error).__name__,
            details=details,
        )


@dataclass(frozen=True)
class SessionMarker(LogEntry):
    """Written once per process start to delimit one run's logs."""

    metadata: Tuple[Tuple[str, str], ...] = ()
    timestamp: datetime = field(default_factory=_now)

    category = LogCategory.SYSTEM
    css_class = SESSION_CLASS

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, str]) -> "SessionMarker":
        return cls(metadata=tuple((str(k), str(v)) for k, v in metadata.items()))

    @property
    def text(self) -> str:
        date = self.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        return f"Session started at {date}"

    @property
    def details(self) -> Optional[str]:
        if not self.metadata:
            return None
        return "\n".join(f"{key}: {value}" for key, value in self.metadata)


@dataclass(frozen=True)
class Fragment:
    """One whole entry fragment located in the log's text."""

    css_class: str
    html: str
    start: int
    end: int

    @property
    def text(self) -> str:
        return fragment_text(self.html)

    @property
    def message(self) -> str:
        match = re.search(r'<span class="log-message">(.*?)</span>', self.html, re.DOTALL)
        return html.unescape(match.group(1)) if match else self.text


def parse_fragments(text: str) -> List[Fragment]:
    """Split log text into its whole entry fragments, oldest first."""
    return [
        Fragment(
            css_class=match.group(1),
            html=match.group(0),
            start=match.start(),
            end=match.end(),
        )
        for match in FRAGMENT_PATTERN.finditer(text)
    ]


def fragment_text(fragment_html: str) -> str:
    """Plain text of a fragment with tags stripped and entities decoded."""
    return html.unescape(_TAG_PATTERN.sub(" ", fragment_html)).strip()


def messages_by_category(text: str) -> Dict[str, List[str]]:
    """Group fragment messages by their CSS class."""
    grouped: Dict[str, List[str]] = {}
    for fragment in parse_fragments(text):
        grouped.setdefault(fragment.css_class, []).append(fragment.message)
    return grouped
