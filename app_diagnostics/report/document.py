"""HTML serialization of a compiled report."""

import logging
from pathlib import Path
from typing import Sequence

from app_diagnostics.logs.entries import escape
from .chapter import Chapter

logger = logging.getLogger(__name__)

ASSETS_PATH = Path(__file__).parent / "assets"
PROJECT_URL = "https://pypi.org/project/app-diagnostics/"


def read_asset(name: str) -> str:
    """Contents of a bundled asset, or an empty string if it can't be read."""
    path = ASSETS_PATH / name
    try:
        if path.exists():
            return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to read report asset {name}: {e}")
    return ""


def render_document(chapters: Sequence[Chapter], title: str) -> str:
    """Render chapters, in order, into one self-contained HTML document.

    Args:
        chapters: Chapters in display order
        title: Title shown in the page header

    Returns:
        The complete HTML document
    """
    html = "<!DOCTYPE html><html>"
    html += _head(title)
    html += "<body>"
    html += '<main class="container">'
    html += _menu(chapters)
    html += _main_content(chapters, title)
    html += "</main>"
    html += _footer()
    html += "</body></html>"
    return html


def _head(title: str) -> str:
    html = "<head>"
    html += '<meta charset="utf-8">'
    html += '<meta name="viewport" content="width=device-width, initial-scale=1">'
    html += f"<title>{escape(title)}</title>"
    html += f"<style>{read_asset('style.css')}</style>"
    html += f'<script type="text/javascript">{read_asset("functions.js")}</script>'
    html += "</head>"
    return html


def _menu(chapters: Sequence[Chapter]) -> str:
    html = '<aside class="nav-container"><nav><ul>'
    for chapter in chapters:
        html += f'<li><a href="#{escape(chapter.anchor)}">{escape(chapter.title)}</a></li>'
    html += '<li><button id="expand-sections">Expand sessions</button></li>'
    html += '<li><button id="collapse-sections">Collapse sessions</button></li>'
    for category in ("system", "error", "debug"):
        html += (
            f'<li><input type="checkbox" id="{category}-logs" name="{category}-logs" checked>'
            f'<label for="{category}-logs">Show {category} logs</label></li>'
        )
    html += '<li><input type="text" id="log-filter" placeholder="Filter logs"></li>'
    html += '<li><button id="filter-btn">Filter</button></li>'
    html += "</ul></nav></aside>"
    return html


def _main_content(chapters: Sequence[Chapter], title: str) -> str:
    html = '<div class="main-content">'
    html += f"<header><h1>{escape(title)}</h1></header>"
    for chapter in chapters:
        html += chapter.html()
    html += "</div>"
    return html


def _footer() -> str:
    return f'<footer>Built using <a href="{PROJECT_URL}">app-diagnostics</a></footer>'
