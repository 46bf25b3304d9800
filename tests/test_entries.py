"""Tests for log entries and the fragment format."""

from app_diagnostics.logs.entries import (
    ELLIPSIS,
    DebugLog,
    ErrorLog,
    LogCategory,
    Origin,
    SessionMarker,
    SystemLog,
    escape,
    messages_by_category,
    parse_fragments,
)

ORIGIN = Origin(file="/srv/app/uploads.py", function="handle_upload", line=42)


class TestEscape:
    """Tests for HTML encoding."""

    def test_encodes_markup(self):
        assert escape("<CONTENT>") == "&lt;CONTENT&gt;"

    def test_encodes_ampersand(self):
        assert escape("a & b") == "a &amp; b"


class TestOrigin:
    """Tests for Origin."""

    def test_caller(self):
        """Should resolve the calling function."""
        origin = Origin.caller(0)
        assert origin.function == "test_caller"
        assert origin.file.endswith("test_entries.py")

    def test_str(self):
        assert str(ORIGIN) == "uploads.py:42 handle_upload()"


class TestFragments:
    """Tests for entry fragments."""

    def test_debug_fragment(self):
        """Should render one escaped, self-delimiting paragraph."""
        fragment = DebugLog(message="<b>hello</b>", origin=ORIGIN).fragment()

        assert fragment.startswith('<p class="debug">')
        assert fragment.endswith("</p>\n")
        assert "&lt;b&gt;hello&lt;/b&gt;" in fragment
        assert "uploads.py:42 handle_upload()" in fragment

    def test_system_fragment(self):
        fragment = SystemLog(line="Server listening").fragment()
        assert fragment.startswith('<p class="system">')
        assert "Server listening" in fragment

    def test_error_text(self):
        """Errors carry their type and description."""
        entry = ErrorLog.from_exception(
            ValueError("boom"), origin=ORIGIN, description="while parsing"
        )
        assert entry.category == LogCategory.ERROR
        assert entry.text == "ERROR: ValueError: boom | while parsing"

    def test_error_with_traceback(self):
        try:
            raise RuntimeError("exploded")
        except RuntimeError as e:
            entry = ErrorLog.from_exception(e, origin=ORIGIN, include_traceback=True)

        assert "Traceback" in entry.details
        assert "exploded" in entry.fragment()

    def test_session_marker(self):
        """Session markers list their metadata."""
        marker = SessionMarker.from_metadata({"App name": "Demo", "Python": "3.12"})
        fragment = marker.fragment()

        assert fragment.startswith('<p class="session">')
        assert "Session started at" in fragment
        assert "App name: Demo" in fragment


class TestEncode:
    """Tests for size-limited encoding."""

    def test_fits_unchanged(self):
        entry = DebugLog(message="short", origin=ORIGIN)
        assert entry.encode(limit=4096) == entry.fragment().encode("utf-8")

    def test_compact_form(self):
        """Date and origin are dropped first."""
        entry = DebugLog(message="short", origin=ORIGIN)
        compact = entry.fragment(compact=True).encode("utf-8")

        assert entry.encode(limit=len(compact)) == compact
        assert b"log-date" not in compact

    def test_truncates_oversized_message(self):
        """An oversized message is truncated to one whole fragment."""
        entry = DebugLog(message="x" * 1000, origin=ORIGIN)
        data = entry.encode(limit=200)

        assert len(data) <= 200
        fragments = parse_fragments(data.decode("utf-8"))
        assert len(fragments) == 1
        assert fragments[0].message.endswith(ELLIPSIS)


class TestParseFragments:
    """Tests for parsing log text back into entries."""

    def test_round_trip_order(self):
        """Fragments come back oldest first with their categories."""
        entries = [
            SessionMarker.from_metadata({"App name": "Demo"}),
            DebugLog(message="first", origin=ORIGIN),
            SystemLog(line="second"),
            ErrorLog(description="third", origin=ORIGIN),
        ]
        text = "".join(entry.fragment() for entry in entries)

        fragments = parse_fragments(text)

        assert [f.css_class for f in fragments] == ["session", "debug", "system", "error"]
        assert [f.message for f in fragments[1:]] == ["first", "second", "ERROR: third"]

    def test_closing_tag_in_message(self):
        """Escaped user text never splits a fragment."""
        text = DebugLog(message="a </p> b", origin=ORIGIN).fragment()

        fragments = parse_fragments(text)

        assert len(fragments) == 1
        assert fragments[0].message == "a </p> b"

    def test_offsets(self):
        text = SystemLog(line="one").fragment() + SystemLog(line="two").fragment()
        first, second = parse_fragments(text)
        assert first.start == 0
        assert first.end == second.start
        assert second.end == len(text)

    def test_messages_by_category(self):
        text = (
            DebugLog(message="debug message", origin=ORIGIN).fragment()
            + ErrorLog(description="MissingLocalizationError", origin=ORIGIN).fragment()
        )
        grouped = messages_by_category(text)
        assert grouped["debug"] == ["debug message"]
        assert grouped["error"] == ["ERROR: MissingLocalizationError"]
