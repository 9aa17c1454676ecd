"""Extract cross-references and validate them against the route set.

Links come from three places: Markdown bodies (collected with a
Python-Markdown tree processor, so links inside code blocks are ignored),
navbar and footer configuration, and sidebar link entries. Each reference is
a :class:`LinkTarget`; :class:`LinkValidator` resolves it to a route path and
applies the ``onBrokenLinks`` policy. External targets are never resolved,
only recorded.

Example
-------
>>> from docsite.links import LinkTarget, LinkValidator
>>> validator = LinkValidator({"/docs/intro"}, policy="warn")
>>> report = validator.validate([LinkTarget("/docs/nope", "intro.md", "content")])
>>> [item.target for item in report.broken]
['/docs/nope']
"""

from __future__ import annotations

import dataclasses as dc
import logging
import posixpath
import typing as typ
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import unquote, urlsplit

from markdown import Markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from .errors import LinkError

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from .config import LinkPolicy
    from .scanner import ContentNode
    from .sidebar import Sidebar
    from .theme import ThemeConfig

logger = logging.getLogger(__name__)

LinkOrigin = typ.Literal["content", "navbar", "footer", "sidebar"]
RefKind = typ.Literal["href", "doc"]
DOC_FILE_SUFFIXES = (".md", ".mdx")
LINK_ATTRIBUTES = {"a": "href", "img": "src"}


@dc.dataclass(slots=True, frozen=True)
class LinkTarget:
    """A reference extracted from content or configuration.

    Attributes
    ----------
    href : str
        Raw reference (URL, absolute or relative path, or a doc id when
        ``ref_kind`` is ``"doc"``).
    source : str
        Where the reference was found (file path or config location).
    origin : {"content", "navbar", "footer", "sidebar"}
        Kind of place the reference came from.
    locale : str
        Locale code the referencing page or config belongs to.
    locale_prefix : str
        Route prefix of that locale (``""`` for the default locale).
    page_base : str
        Directory URL that relative references resolve against.
    ref_kind : {"href", "doc"}
        Whether ``href`` is a URL/path or a document id.
    """

    href: str
    source: str
    origin: LinkOrigin
    locale: str = ""
    locale_prefix: str = ""
    page_base: str = "/"
    ref_kind: RefKind = "href"


@dc.dataclass(slots=True, frozen=True)
class BrokenLink:
    """An internal reference that did not resolve to any route."""

    source: str
    target: str
    origin: str
    locale: str


@dc.dataclass(slots=True)
class LinkReport:
    """Outcome of link validation."""

    resolved: dict[LinkTarget, str] = dc.field(default_factory=dict)
    broken: list[BrokenLink] = dc.field(default_factory=list)
    external: list[str] = dc.field(default_factory=list)

    def lookup(self, target: LinkTarget) -> str | None:
        """Return the resolved route or URL for ``target``."""
        return self.resolved.get(target)


def is_external(href: str) -> bool:
    """Return True for references with a scheme or network location."""
    parts = urlsplit(href)
    return bool(parts.scheme or parts.netloc)


def normalize_route(path: str) -> str:
    """Normalize a route path: leading slash, no trailing slash, no dot segments."""
    return posixpath.normpath("/" + path.lstrip("/"))


class _LinkCollector(Treeprocessor):
    """Record link and image targets found in the parsed Markdown tree."""

    def __init__(self, md: Markdown, sink: list[str]) -> None:
        super().__init__(md)
        self.sink = sink

    def run(self, root: Element) -> Element:
        """Append every ``a[href]`` and ``img[src]`` to the sink."""
        for element in root.iter():
            attribute = LINK_ATTRIBUTES.get(element.tag)
            if attribute is None:
                continue
            value = element.get(attribute)
            if value:
                self.sink.append(value)
        return root


class LinkCollectorExtension(Extension):
    """Markdown extension that collects outgoing references while converting."""

    def __init__(self) -> None:
        super().__init__()
        self.links: list[str] = []

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the collecting treeprocessor on the Markdown instance."""
        md.treeprocessors.register(_LinkCollector(md, self.links), "docsite_link_collector", 5)


def collect_markdown_links(body: str) -> list[str]:
    """Return link and image targets referenced from a Markdown body."""
    collector = LinkCollectorExtension()
    Markdown(extensions=["fenced_code", "tables", collector]).convert(body)
    return list(collector.links)


def page_base(route_path: str, *, is_index: bool) -> str:
    """Return the directory URL relative links on a page resolve against."""
    if is_index:
        return route_path.rstrip("/") + "/"
    parent = posixpath.dirname(route_path.rstrip("/"))
    return parent.rstrip("/") + "/"


def extract_content_links(
    node: ContentNode, *, locale: str, locale_prefix: str, route_path: str
) -> list[LinkTarget]:
    """Return the references found in a document body."""
    base = page_base(route_path, is_index=node.kind == "index")
    return [
        LinkTarget(
            href=href,
            source=node.source,
            origin="content",
            locale=locale,
            locale_prefix=locale_prefix,
            page_base=base,
        )
        for href in collect_markdown_links(node.body)
    ]


def extract_theme_links(
    theme: ThemeConfig, *, locale: str, locale_prefix: str
) -> list[LinkTarget]:
    """Return references from navbar and footer items.

    ``docSidebar`` navbar items are resolved by the route emitter and are not
    returned here; ``doc`` items become doc-id references.
    """
    targets: list[LinkTarget] = []
    for idx, item in enumerate(theme.get("navbar.items", []) or []):
        if not isinstance(item, dict):
            continue
        where = f"navbar.items[{idx}]"
        if item.get("type") == "doc" and item.get("docId"):
            targets.append(
                LinkTarget(
                    href=str(item["docId"]),
                    source=where,
                    origin="navbar",
                    locale=locale,
                    locale_prefix=locale_prefix,
                    ref_kind="doc",
                )
            )
            continue
        href = item.get("to") or item.get("href")
        if href:
            targets.append(
                LinkTarget(str(href), where, "navbar", locale, locale_prefix)
            )
    for where, item in _footer_items(theme.get("footer.links", []) or []):
        href = item.get("to") or item.get("href")
        if href:
            targets.append(LinkTarget(str(href), where, "footer", locale, locale_prefix))
    return targets


def _footer_items(links: list[typ.Any]) -> list[tuple[str, dict[str, typ.Any]]]:
    """Flatten grouped or flat footer link lists."""
    flattened: list[tuple[str, dict[str, typ.Any]]] = []
    for idx, entry in enumerate(links):
        if not isinstance(entry, dict):
            continue
        if isinstance(entry.get("items"), list):
            for child_idx, child in enumerate(entry["items"]):
                if isinstance(child, dict):
                    flattened.append((f"footer.links[{idx}].items[{child_idx}]", child))
        else:
            flattened.append((f"footer.links[{idx}]", entry))
    return flattened


def extract_sidebar_links(
    sidebars: typ.Mapping[str, Sidebar], *, locale: str, locale_prefix: str
) -> list[LinkTarget]:
    """Return references from sidebar ``link`` entries."""
    targets: list[LinkTarget] = []
    for name, sidebar in sidebars.items():
        for link in sidebar.links():
            targets.append(
                LinkTarget(link.href, f"sidebars.{name}", "sidebar", locale, locale_prefix)
            )
    return targets


class LinkValidator:
    """Resolve link targets against the route set and apply the broken-link policy."""

    def __init__(
        self,
        routes: typ.Iterable[str],
        *,
        policy: LinkPolicy = "throw",
        base_url: str = "/",
        doc_routes: typ.Mapping[tuple[str, str], str] | None = None,
        file_routes: typ.Mapping[tuple[str, str], str] | None = None,
        jobs: int = 4,
    ) -> None:
        """Configure the validator.

        Parameters
        ----------
        routes : Iterable[str]
            Every emitted route path (locale prefixes included).
        policy : {"ignore", "warn", "throw"}, optional
            Broken-link policy; ``throw`` by default.
        base_url : str, optional
            Site base URL stripped from absolute references.
        doc_routes : Mapping[tuple[str, str], str], optional
            ``(locale, doc id) -> route`` lookup for doc-id references.
        file_routes : Mapping[tuple[str, str], str], optional
            ``(locale, source path) -> route`` lookup for page and asset files.
        jobs : int, optional
            Worker threads used for resolution.
        """
        self.routes = frozenset(normalize_route(path) for path in routes)
        self.policy = policy
        self.base_url = base_url
        self.doc_routes = dict(doc_routes or {})
        self.file_routes = dict(file_routes or {})
        self.jobs = max(1, jobs)

    def validate(self, targets: typ.Iterable[LinkTarget]) -> LinkReport:
        """Resolve ``targets`` and apply the configured policy.

        Returns
        -------
        LinkReport
            Resolved targets, sorted broken links and external references.

        Raises
        ------
        LinkError
            Under the ``throw`` policy when any internal reference is broken.
        """
        unique = sorted(
            set(targets), key=lambda item: (item.locale, item.source, item.href)
        )
        report = LinkReport()
        report.external = sorted(
            {item.href for item in unique if item.ref_kind == "href" and is_external(item.href)}
        )
        if self.policy == "ignore":
            return report

        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            outcomes = list(pool.map(self.resolve, unique))

        broken: list[BrokenLink] = []
        for target, outcome in zip(unique, outcomes, strict=True):
            if outcome is None:
                broken.append(
                    BrokenLink(
                        source=target.source,
                        target=target.href,
                        origin=target.origin,
                        locale=target.locale,
                    )
                )
            else:
                report.resolved[target] = outcome
        broken.sort(key=lambda item: (item.source, item.target, item.locale))
        report.broken = broken

        if broken and self.policy == "throw":
            raise LinkError(broken)
        for item in broken:
            logger.warning(
                "Broken link in %s (%s): %s", item.source, item.locale, item.target
            )
        return report

    def resolve(self, target: LinkTarget) -> str | None:
        """Return the route (or URL) ``target`` points at, or ``None`` if broken."""
        if target.ref_kind == "doc":
            return self.doc_routes.get((target.locale, target.href))

        href = target.href.strip()
        if not href or href.startswith("#") or is_external(href):
            return href

        parts = urlsplit(href)
        path = unquote(parts.path)
        if not path:
            return href
        if path.lower().endswith(DOC_FILE_SUFFIXES):
            return self._resolve_file(target, path)

        if target.origin == "content" and not path.startswith("/"):
            colocated = self._resolve_file(target, path)
            if colocated is not None:
                return colocated

        if path.startswith("/"):
            candidate = self._strip_base(path)
            if target.locale_prefix and not _has_prefix(candidate, target.locale_prefix):
                candidate = target.locale_prefix + candidate
        else:
            candidate = posixpath.join(target.page_base, path)
        route = normalize_route(candidate)
        if route in self.routes:
            return route
        if target.locale_prefix and _has_prefix(route, target.locale_prefix):
            shared = route[len(target.locale_prefix) :] or "/"
            if shared in self.routes:
                return shared
        return None

    def _resolve_file(self, target: LinkTarget, path: str) -> str | None:
        """Resolve a link to a page or colocated asset through the file index."""
        if path.startswith("/"):
            source = path.lstrip("/")
        else:
            source = posixpath.normpath(
                posixpath.join(posixpath.dirname(target.source), path)
            )
        return self.file_routes.get((target.locale, source))

    def _strip_base(self, path: str) -> str:
        """Remove the site base URL from an absolute path."""
        base = self.base_url.rstrip("/")
        if base and (path == base or path.startswith(base + "/")):
            return path[len(base) :] or "/"
        return path


def _has_prefix(path: str, prefix: str) -> bool:
    """Return True when ``path`` already starts with the locale ``prefix``."""
    return path == prefix or path.startswith(prefix + "/")


__all__ = [
    "BrokenLink",
    "LinkCollectorExtension",
    "LinkReport",
    "LinkTarget",
    "LinkValidator",
    "collect_markdown_links",
    "extract_content_links",
    "extract_sidebar_links",
    "extract_theme_links",
    "is_external",
    "normalize_route",
    "page_base",
]
