"""Tests for error hierarchy."""

import pytest
from app_diagnostics.utils.errors import (
    DiagnosticsError,
    LoggerNotSetUpError,
    LogStoreError,
    LogTrimError,
    ReporterError,
    FilterError,
    InsightLookupError,
    DirectoryTreeError,
)


class TestErrorHierarchy:
    """Tests for error class hierarchy."""

    def test_all_errors_inherit_from_base(self):
        """All errors should inherit from DiagnosticsError."""
        errors = [
            LoggerNotSetUpError(),
            LogStoreError("test"),
            LogTrimError("test"),
            ReporterError("test"),
            FilterError("test"),
            InsightLookupError("test"),
            DirectoryTreeError("test"),
        ]
        for error in errors:
            assert isinstance(error, DiagnosticsError)

    def test_trim_error_is_store_error(self):
        """Trim failures should be catchable as store failures."""
        assert isinstance(LogTrimError("test", path="/tmp/log"), LogStoreError)


class TestLoggerNotSetUpError:
    """Tests for LoggerNotSetUpError."""

    def test_default_message(self):
        """Should name the attempted operation."""
        error = LoggerNotSetUpError()
        assert error.operation == "log"
        assert "Trying to log while the diagnostics logger is not set up" in str(error)

    def test_custom_operation(self):
        """Should use the given operation in the message."""
        error = LoggerNotSetUpError("read the log")
        assert "Trying to read the log" in str(error)


class TestLogStoreError:
    """Tests for LogStoreError."""

    def test_captures_path(self):
        """Should capture the log path."""
        error = LogStoreError("Reading failed", path="/var/log/app.html")
        assert error.path == "/var/log/app.html"
        assert "Reading failed" in str(error)


class TestReporterError:
    """Tests for ReporterError."""

    def test_captures_reporter(self):
        """Should capture the failing reporter."""
        error = ReporterError("No data", reporter="LogsReporter")
        assert error.reporter == "LogsReporter"


class TestFilterError:
    """Tests for FilterError."""

    def test_captures_filter_and_chapter(self):
        """Should capture filter name and chapter title."""
        error = FilterError("Bad pattern", filter_name="RedactPatternFilter", chapter="Logs")
        assert error.filter_name == "RedactPatternFilter"
        assert error.chapter == "Logs"


class TestInsightLookupError:
    """Tests for InsightLookupError."""

    def test_captures_url_and_status(self):
        """Should capture the request URL and status code."""
        error = InsightLookupError(
            "Not found", url="https://pypi.org/pypi/demo/json", status_code=404
        )
        assert error.url == "https://pypi.org/pypi/demo/json"
        assert error.status_code == 404

    def test_status_code_optional(self):
        """Transport failures have no status code."""
        assert InsightLookupError("Timeout").status_code is None


class TestDirectoryTreeError:
    """Tests for DirectoryTreeError."""

    def test_raise_and_catch(self):
        """Should be raisable with its path."""
        with pytest.raises(DiagnosticsError) as exc_info:
            raise DirectoryTreeError("Unreadable", path="/root")
        assert exc_info.value.path == "/root"
