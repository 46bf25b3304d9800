"""Tests for report filters."""

import pytest

from app_diagnostics.report.filters import (
    EmailRedactionFilter,
    RedactPatternFilter,
    RemoveKeysFilter,
    ReportFilter,
)


class TestReportFilter:
    """Tests for the base filter."""

    def test_identity(self):
        report_filter = ReportFilter()
        assert report_filter.apply("text") == "text"
        assert report_filter.apply({"a": "b"}) == {"a": "b"}
        assert report_filter.name == "ReportFilter"


class TestRedactPatternFilter:
    """Tests for RedactPatternFilter."""

    def test_text(self):
        report_filter = RedactPatternFilter(r"sk-[a-z0-9]+")
        assert report_filter.apply("key=sk-abc123 ok") == "key=[REDACTED] ok"

    def test_mapping_values(self):
        report_filter = RedactPatternFilter(r"sk-[a-z0-9]+")

        result = report_filter.apply({"token sk-key": "sk-abc123"})

        assert result == {"token sk-key": "[REDACTED]"}

    def test_mapping_keys(self):
        report_filter = RedactPatternFilter(r"sk-[a-z0-9]+", redact_keys=True)
        assert report_filter.apply({"sk-key": "v"}) == {"[REDACTED]": "v"}

    def test_no_match_left_when_replacement_joins_neighbours(self):
        """Substituting "ab" with "a" in "abb" forms a new "ab"."""
        report_filter = RedactPatternFilter("ab", replacement="a")

        result = report_filter.apply("abb and xabbbz")

        assert "ab" not in result
        assert result == "a and xaz"

    def test_replacement_must_not_match(self):
        with pytest.raises(ValueError):
            RedactPatternFilter(r"\w+", replacement="hidden")


class TestEmailRedactionFilter:
    """Tests for EmailRedactionFilter."""

    def test_redacts_addresses(self):
        result = EmailRedactionFilter().apply("Signed in as jane.doe@example.com today")

        assert "jane.doe@example.com" not in result
        assert "@" not in result

    def test_custom_replacement(self):
        assert EmailRedactionFilter("<email>").apply("a@b.io") == "<email>"


class TestRemoveKeysFilter:
    """Tests for RemoveKeysFilter."""

    def test_removes_keys(self):
        report_filter = RemoveKeysFilter(["Machine"])
        assert report_filter.apply({"Machine": "x86_64", "Python": "3.12"}) == {"Python": "3.12"}

    def test_text_untouched(self):
        assert RemoveKeysFilter(["Machine"]).apply("Machine: x86_64") == "Machine: x86_64"
