"""Chapters: titled units of report content."""

from dataclasses import dataclass, replace
from typing import Dict, Mapping, Union

from app_diagnostics.logs.entries import escape

# Free-form HTML-safe text, or key/value pairs
Diagnostics = Union[str, Dict[str, str]]


def anchor(title: str) -> str:
    """Slug used to link a chapter from the navigation, e.g. ``smart-insights``."""
    return title.lower().replace(" ", "-")


@dataclass(frozen=True)
class Chapter:
    """One titled section of the compiled report."""

    title: str
    diagnostics: Diagnostics
    should_show_title: bool = True

    def __post_init__(self):
        if isinstance(self.diagnostics, Mapping):
            object.__setattr__(
                self,
                "diagnostics",
                {str(k): str(v) for k, v in self.diagnostics.items()},
            )

    @property
    def anchor(self) -> str:
        return anchor(self.title)

    @property
    def is_mapping(self) -> bool:
        return isinstance(self.diagnostics, dict)

    def with_diagnostics(self, diagnostics: Diagnostics) -> "Chapter":
        """Copy of this chapter carrying different content."""
        return replace(self, diagnostics=diagnostics)

    def html(self) -> str:
        html = '<div class="chapter">'
        html += f'<span class="anchor" id="{escape(self.anchor)}"></span>'
        if self.should_show_title:
            html += f"<h3>{escape(self.title)}</h3>"
        html += '<div class="chapter-content">'
        if isinstance(self.diagnostics, dict):
            html += mapping_table(self.diagnostics)
        else:
            html += self.diagnostics
        html += "</div></div>"
        return html


def mapping_table(mapping: Mapping[str, str]) -> str:
    """Render key/value pairs as a two column table, sorted by key."""
    html = "<table><tbody>"
    for key in sorted(mapping):
        html += f"<tr><th>{escape(key)}</th><td>{escape(mapping[key])}</td></tr>"
    html += "</tbody></table>"
    return html
