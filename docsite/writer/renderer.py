r"""Render document bodies to HTML with highlighted code and a table of contents.

:class:`DocumentRenderer` wraps Python-Markdown with the ``codehilite`` and
``toc`` extensions. Code blocks are highlighted with one Pygments style per
color mode, and heading anchors are collected into :class:`TocEntry` records
limited to the theme's ``tableOfContents`` heading levels.

Example
-------
>>> from docsite.writer.renderer import DocumentRenderer
>>> page = DocumentRenderer().render("## Install\n\n```python\nprint(1)\n```\n")
>>> [(entry.level, entry.anchor) for entry in page.toc]
[(2, 'install')]
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from html import escape, unescape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension

    from docsite.theme import ThemeConfig
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

FENCE_OPEN_PATTERN = re.compile(
    r"^[ ]{0,3}(?P<fence>`{3,}|~{3,})(?P<lang>[A-Za-z0-9_+#.-]+)?(?P<extra>[^\r\n]*)$",
    re.MULTILINE,
)
HIGHLIGHT_OPEN_TAG = '<div class="codehilite">'
DARK_SCOPE = '[data-theme="dark"] .codehilite'
DEFAULT_TOC_LEVELS = (2, 3)


@dc.dataclass(slots=True, frozen=True)
class TocEntry:
    """One heading listed in a page's table of contents."""

    level: int
    anchor: str
    title: str


@dc.dataclass(slots=True, frozen=True)
class RenderedDocument:
    """HTML body of a document together with its table of contents."""

    html: str
    toc: tuple[TocEntry, ...] = ()


def toc_levels(theme: ThemeConfig) -> tuple[int, int]:
    """Return the ``(min, max)`` heading levels listed in tables of contents."""
    low = theme.get("tableOfContents.minHeadingLevel", DEFAULT_TOC_LEVELS[0])
    high = theme.get("tableOfContents.maxHeadingLevel", DEFAULT_TOC_LEVELS[1])
    try:
        low, high = int(low), int(high)
    except (TypeError, ValueError):
        return DEFAULT_TOC_LEVELS
    low = min(max(low, 2), 6)
    return low, min(max(high, low), 6)


class DocumentRenderer:
    """Convert document Markdown into HTML for both color modes."""

    def __init__(
        self,
        light_style: str = "default",
        dark_style: str = "dracula",
        *,
        levels: tuple[int, int] = DEFAULT_TOC_LEVELS,
    ) -> None:
        """Configure the renderer.

        Parameters
        ----------
        light_style : str, optional
            Pygments style applied in the light color mode.
        dark_style : str, optional
            Pygments style applied under ``[data-theme="dark"]``.
        levels : tuple[int, int], optional
            Inclusive heading range kept in the table of contents.
        """
        self.light_style = light_style
        self.dark_style = dark_style
        self.levels = levels

    @property
    def stylesheet(self) -> str:
        """Return highlight CSS, with dark rules scoped to the dark theme."""
        light = HtmlFormatter(style=self.light_style).get_style_defs(".codehilite")
        dark = HtmlFormatter(style=self.dark_style).get_style_defs(DARK_SCOPE)
        return f"{light}\n{dark}"

    def render(self, body: str, *, link_extension: Extension | None = None) -> RenderedDocument:
        """Render ``body`` and collect its table of contents.

        Parameters
        ----------
        body : str
            Markdown with front-matter already removed.
        link_extension : Extension, optional
            Extension rewriting link targets, applied after parsing.
        """
        source, languages = self._prepare_fences(body)
        if not source.strip():
            return RenderedDocument(html="")
        extensions: list[Extension | str] = [
            "fenced_code",
            "codehilite",
            "tables",
            "sane_lists",
            "toc",
        ]
        if link_extension is not None:
            extensions.append(link_extension)
        md = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.light_style,
                },
                "toc": {"toc_depth": f"{self.levels[0]}-{self.levels[1]}"},
            },
        )
        html = self._label_highlighted(md.convert(source), languages)
        tokens = getattr(md, "toc_tokens", [])
        return RenderedDocument(html=html, toc=tuple(_flatten_toc(tokens, self.levels)))

    @staticmethod
    def _prepare_fences(body: str) -> tuple[str, list[str]]:
        """Outdent fence openers and drop ``title=``/option suffixes.

        Returns the cleaned Markdown and the language of every fenced block
        in order (``text`` when unlabelled).
        """
        languages: list[str] = []
        open_fence: str | None = None

        def _clean(match: re.Match[str]) -> str:
            nonlocal open_fence
            fence = match.group("fence")
            lang = match.group("lang") or ""
            if open_fence is None:
                open_fence = fence
                languages.append(lang or "text")
                return f"{fence}{lang}"
            if fence.startswith(open_fence[0]) and len(fence) >= len(open_fence) and not lang:
                open_fence = None
                return fence
            return match.group(0)

        return FENCE_OPEN_PATTERN.sub(_clean, body), languages

    @staticmethod
    def _label_highlighted(html: str, languages: list[str]) -> str:
        """Add ``data-language`` to highlighted blocks in document order."""
        if not languages:
            return html
        parts = html.split(HIGHLIGHT_OPEN_TAG)
        labelled = [parts[0]]
        for idx, part in enumerate(parts[1:]):
            lang = languages[idx] if idx < len(languages) else "text"
            labelled.append(
                f'<div class="codehilite" data-language="{escape(lang, quote=True)}">{part}'
            )
        return "".join(labelled)


def _flatten_toc(
    tokens: typ.Iterable[dict[str, typ.Any]], levels: tuple[int, int]
) -> typ.Iterator[TocEntry]:
    """Yield headings within ``levels`` depth-first."""
    low, high = levels
    for token in tokens:
        level = int(token.get("level", 0))
        if low <= level <= high:
            title = unescape(str(token["name"]))
            yield TocEntry(level=level, anchor=str(token["id"]), title=title)
        yield from _flatten_toc(token.get("children", []), levels)


__all__ = ["DocumentRenderer", "RenderedDocument", "TocEntry", "toc_levels"]
