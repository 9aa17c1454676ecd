"""Rewrite validated Markdown links to the permalinks of their routes."""

from __future__ import annotations

import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

LINK_ATTRIBUTES = {"a": "href", "img": "src"}


class RouteLinkExtension(Extension):
    """Rewrite internal links using a resolved ``href -> permalink`` mapping.

    The mapping comes from link validation, so only links the validator
    resolved are touched. Query strings and fragments of the original href are
    carried over, and ``.md`` file links become page URLs.
    """

    def __init__(self, permalinks: typ.Mapping[str, str]) -> None:
        super().__init__()
        self.permalinks = dict(permalinks)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the route-link treeprocessor on the Markdown instance."""
        processor = RouteLinkTreeprocessor(md, self.permalinks)
        md.treeprocessors.register(processor, "docsite_route_links", 15)


class RouteLinkTreeprocessor(Treeprocessor):
    """Replace resolved link targets in the parsed Markdown tree."""

    def __init__(self, md: Markdown, permalinks: dict[str, str]) -> None:
        super().__init__(md)
        self.permalinks = permalinks

    def run(self, root: Element) -> Element:
        """Rewrite ``a[href]`` and ``img[src]`` values that have a permalink."""
        for element in root.iter():
            attribute = LINK_ATTRIBUTES.get(element.tag)
            if attribute is None:
                continue
            rewritten = self._rewrite(element.get(attribute))
            if rewritten:
                element.set(attribute, rewritten)
        return root

    def _rewrite(self, target: str | None) -> str | None:
        """Return the permalink for ``target`` with its query and fragment."""
        if not target:
            return None
        permalink = self.permalinks.get(target)
        if permalink is None:
            return None
        parsed = urlsplit(target)
        url = permalink
        if parsed.query:
            url = f"{url}?{parsed.query}"
        if parsed.fragment:
            url = f"{url}#{parsed.fragment}"
        return url


__all__ = ["RouteLinkExtension", "RouteLinkTreeprocessor"]
