"""Tests for the HTML document."""

from app_diagnostics.report.chapter import Chapter
from app_diagnostics.report.document import read_asset, render_document


class TestRenderDocument:
    """Tests for render_document."""

    def test_navigation_and_anchor(self):
        """A chapter titled Logs is linked and targeted by the slug logs."""
        html = render_document([Chapter("Logs", "<p>entries</p>")], "Demo - Diagnostics Report")

        assert '<a href="#logs">Logs</a>' in html
        assert 'id="logs"' in html
        assert "<h1>Demo - Diagnostics Report</h1>" in html

    def test_chapter_order(self):
        chapters = [Chapter("Alpha", "a"), Chapter("Beta", "b"), Chapter("Gamma", "g")]

        html = render_document(chapters, "Report")

        assert html.index('href="#alpha"') < html.index('href="#beta"') < html.index('href="#gamma"')
        assert html.index('id="alpha"') < html.index('id="beta"') < html.index('id="gamma"')

    def test_controls(self):
        html = render_document([], "Report")

        for element_id in (
            "expand-sections",
            "collapse-sections",
            "system-logs",
            "error-logs",
            "debug-logs",
            "log-filter",
            "filter-btn",
        ):
            assert f'id="{element_id}"' in html
        assert "<footer>Built using" in html

    def test_assets_inlined(self):
        html = render_document([], "Report")

        assert read_asset("functions.js")
        assert read_asset("functions.js") in html
        assert read_asset("style.css") in html

    def test_missing_asset(self):
        assert read_asset("missing.css") == ""

    def test_title_escaped(self):
        html = render_document([Chapter("<Danger>", "x")], "<Title>")

        assert "<title>&lt;Title&gt;</title>" in html
        assert ">&lt;Danger&gt;</a>" in html
