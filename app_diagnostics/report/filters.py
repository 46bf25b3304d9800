"""Filters that redact chapter content before it is serialized.

A filter receives a chapter's content and returns content of the same
shape. Text filters leave mappings alone and vice versa.
"""

import re
from typing import Dict, Iterable, Mapping, Pattern, Union

from .chapter import Diagnostics

DEFAULT_REPLACEMENT = "[REDACTED]"

EMAIL_PATTERN = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"

# Substitution passes before a value is redacted as a whole
MAX_REDACTION_PASSES = 100


class ReportFilter:
    """Base filter; both hooks return their input unchanged."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def apply(self, diagnostics: Diagnostics) -> Diagnostics:
        if isinstance(diagnostics, str):
            return self.filter_text(diagnostics)
        if isinstance(diagnostics, Mapping):
            return self.filter_mapping(diagnostics)
        return diagnostics

    def filter_text(self, text: str) -> str:
        return text

    def filter_mapping(self, mapping: Mapping[str, str]) -> Dict[str, str]:
        return dict(mapping)


class RedactPatternFilter(ReportFilter):
    """Replaces every match of a pattern in text and in mapping values."""

    def __init__(
        self,
        pattern: Union[str, Pattern[str]],
        replacement: str = DEFAULT_REPLACEMENT,
        flags: int = 0,
        redact_keys: bool = False,
    ):
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern
        if self.pattern.search(replacement):
            raise ValueError("replacement must not match the redacted pattern")
        self.replacement = replacement
        self.redact_keys = redact_keys

    def filter_text(self, text: str) -> str:
        """Substitute until no match is left.

        A replacement can join with its neighbours into a new match, so one
        pass is not enough. Text that still matches after
        ``MAX_REDACTION_PASSES`` passes is replaced entirely.
        """
        for _ in range(MAX_REDACTION_PASSES):
            text, count = self.pattern.subn(self.replacement, text)
            if count == 0:
                return text
        if self.pattern.search(text):
            return self.replacement
        return text

    def filter_mapping(self, mapping: Mapping[str, str]) -> Dict[str, str]:
        redacted = {}
        for key, value in mapping.items():
            if self.redact_keys:
                key = self.filter_text(key)
            redacted[key] = self.filter_text(value)
        return redacted


class EmailRedactionFilter(RedactPatternFilter):
    """Redacts email addresses."""

    def __init__(self, replacement: str = DEFAULT_REPLACEMENT):
        super().__init__(EMAIL_PATTERN, replacement=replacement)


class RemoveKeysFilter(ReportFilter):
    """Drops the given keys from key/value chapters."""

    def __init__(self, keys: Iterable[str]):
        self.keys = frozenset(keys)

    def filter_mapping(self, mapping: Mapping[str, str]) -> Dict[str, str]:
        return {k: v for k, v in mapping.items() if k not in self.keys}
