"""Plan route paths and emit the final route-to-descriptor table.

Route planning happens before link validation so the validator has the full
set of addressable paths. :class:`RouteEmitter` then combines the planned
routes with the resolved theme, per-locale sidebars and the link report into
:class:`RouteDescriptor` records. Emission is a pure function of its inputs;
the resulting :class:`RouteTable` serializes to byte-identical JSON for
identical content and configuration.

Example
-------
>>> from docsite.routes import join_route
>>> join_route("/fr", "docs", "guides/setup")
'/fr/docs/guides/setup'
>>> join_route("", "docs", "")
'/docs'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import posixpath
import typing as typ

import msgspec.json as msgspec_json

from .errors import RouteError, SidebarError
from .links import is_external, normalize_route
from .sidebar import Sidebar, SidebarCategory, SidebarDoc, SidebarEntry, SidebarLink, sidebar_of

if typ.TYPE_CHECKING:
    from .config import SiteConfig
    from .links import LinkReport
    from .locales import LocaleView
    from .scanner import ContentNode
    from .theme import ThemeConfig

logger = logging.getLogger(__name__)

RouteKind = typ.Literal["doc", "index", "asset", "page"]


def join_route(*segments: str) -> str:
    """Join route segments into a normalized absolute path."""
    parts = [segment.strip("/") for segment in segments if segment and segment.strip("/")]
    return normalize_route("/".join(parts))


def locale_prefix(code: str, default_code: str) -> str:
    """Return the route prefix for ``code`` (empty for the default locale)."""
    return "" if code == default_code else f"/{code}"


@dc.dataclass(slots=True, frozen=True)
class Route:
    """A planned route before emission."""

    path: str
    kind: RouteKind
    locale: str
    node: ContentNode | None = None
    translated: bool = True

    @property
    def doc_id(self) -> str | None:
        """Return the doc id for page routes."""
        if self.node is None or not self.node.is_page:
            return None
        return self.node.doc_id


@dc.dataclass(slots=True)
class RoutePlan:
    """Planned routes with lookups used by link validation."""

    routes: list[Route]
    doc_routes: dict[tuple[str, str], str]
    file_routes: dict[tuple[str, str], str]

    def paths(self) -> list[str]:
        """Return every planned path."""
        return [route.path for route in self.routes]


def plan_routes(
    config: SiteConfig,
    views: typ.Mapping[str, LocaleView],
    *,
    doc_assets: typ.Sequence[ContentNode] = (),
    static_assets: typ.Sequence[ContentNode] = (),
) -> RoutePlan:
    """Plan every route of the site.

    Parameters
    ----------
    config : SiteConfig
        Site configuration (route base path, default locale).
    views : Mapping[str, LocaleView]
        Effective content per locale from the locale composer.
    doc_assets : Sequence[ContentNode], optional
        Assets colocated with docs, served under the docs route base.
    static_assets : Sequence[ContentNode], optional
        Files from static directories, served from the site root.

    Returns
    -------
    RoutePlan
        Routes sorted by path with doc-id and source-file lookups.

    Raises
    ------
    RouteError
        If two pages or assets claim the same path.
    """
    default_code = config.i18n.default_locale
    base = config.docs.route_base_path
    routes: list[Route] = []
    doc_routes: dict[tuple[str, str], str] = {}
    file_routes: dict[tuple[str, str], str] = {}

    for code, view in views.items():
        prefix = locale_prefix(code, default_code)
        default_nodes = views[default_code].nodes if default_code in views else view.nodes
        for doc_id in sorted(view.nodes):
            node = view.nodes[doc_id]
            path = join_route(prefix, base, node.doc_path)
            kind: RouteKind = "index" if node.kind == "index" else "doc"
            routes.append(
                Route(
                    path=path,
                    kind=kind,
                    locale=code,
                    node=node,
                    translated=not view.is_fallback(doc_id),
                )
            )
            doc_routes[(code, doc_id)] = path
            file_routes[(code, node.source)] = path
            origin = default_nodes.get(doc_id)
            if origin is not None:
                file_routes.setdefault((code, origin.source), path)

    for node in doc_assets:
        path = join_route(base, node.source)
        routes.append(Route(path, "asset", default_code, node))
        for code in views:
            file_routes[(code, node.source)] = path
    for node in static_assets:
        routes.append(Route(join_route(node.source), "asset", default_code, node))

    claimed = {route.path for route in routes}
    for code in views:
        landing = join_route(locale_prefix(code, default_code))
        if landing not in claimed:
            routes.append(Route(landing, "page", code))
            claimed.add(landing)

    routes.sort(key=lambda route: (route.path, route.locale))
    _ensure_unique(routes)
    return RoutePlan(routes=routes, doc_routes=doc_routes, file_routes=file_routes)


def _ensure_unique(routes: typ.Sequence[Route]) -> None:
    """Raise RouteError naming both claimants of a duplicated path."""
    owners: dict[str, Route] = {}
    for route in routes:
        previous = owners.get(route.path)
        if previous is not None:
            first = previous.node.source if previous.node else previous.kind
            second = route.node.source if route.node else route.kind
            msg = f"Route '{route.path}' is claimed by both '{first}' and '{second}'."
            raise RouteError(msg, path=route.path)
        owners[route.path] = route


@dc.dataclass(slots=True, frozen=True)
class NavLink:
    """Resolved navigation link."""

    label: str
    href: str
    external: bool = False
    position: str | None = None


@dc.dataclass(slots=True, frozen=True)
class FooterGroup:
    """Titled group of footer links."""

    title: str
    items: list[NavLink]


@dc.dataclass(slots=True, frozen=True)
class LocaleChrome:
    """Per-locale site chrome: navbar, footer and sidebars."""

    code: str
    label: str
    direction: str
    home: str
    navbar_title: str
    navbar: list[NavLink]
    footer: list[FooterGroup]
    footer_style: str
    copyright: str
    sidebars: dict[str, list[dict[str, typ.Any]]]
    logo_src: str = ""
    logo_alt: str = ""


@dc.dataclass(slots=True, frozen=True)
class RouteDescriptor:
    """Rendered-page descriptor for one emitted route."""

    path: str
    permalink: str
    kind: str
    locale: str
    title: str
    description: str = ""
    source: str | None = None
    doc_id: str | None = None
    translated: bool = True
    sidebar: str | None = None
    previous: NavLink | None = None
    next: NavLink | None = None
    edit_url: str | None = None
    links: list[str] = dc.field(default_factory=list)
    front_matter: dict[str, typ.Any] = dc.field(default_factory=dict)
    theme: dict[str, typ.Any] = dc.field(default_factory=dict)


@dc.dataclass(slots=True, frozen=True)
class RouteTable:
    """Emitted site: descriptors keyed by path plus per-locale chrome."""

    title: str
    tagline: str
    base_url: str
    default_locale: str
    routes: dict[str, RouteDescriptor]
    locales: dict[str, LocaleChrome]
    external_links: list[str] = dc.field(default_factory=list)

    def to_json(self) -> bytes:
        """Serialize deterministically (sorted mapping keys) to JSON bytes."""
        return msgspec_json.encode(self, order="deterministic")

    def get(self, path: str) -> RouteDescriptor | None:
        """Return the descriptor emitted for ``path``."""
        return self.routes.get(path)


class RouteEmitter:
    """Combine planned routes, theme, sidebars and links into a RouteTable."""

    def __init__(
        self,
        plan: RoutePlan,
        *,
        config: SiteConfig,
        theme: ThemeConfig,
        views: typ.Mapping[str, LocaleView],
        sidebars: typ.Mapping[str, typ.Mapping[str, Sidebar]],
        links: LinkReport,
    ) -> None:
        self.plan = plan
        self.config = config
        self.theme = theme
        self.views = views
        self.sidebars = sidebars
        self.links = links
        self._owners = {code: sidebar_of(items) for code, items in sidebars.items()}

    def emit(self) -> RouteTable:
        """Return the route table, sorted by path.

        Raises
        ------
        RouteError
            If the plan contains a duplicated path.
        SidebarError
            If a ``docSidebar`` navbar item names an unknown or empty sidebar.
        """
        _ensure_unique(self.plan.routes)
        theme_snapshot = self.theme.to_dict()
        outgoing = self._outgoing_links()
        chrome = {code: self._chrome(code) for code in self.views}

        descriptors: dict[str, RouteDescriptor] = {}
        for route in sorted(self.plan.routes, key=lambda item: item.path):
            descriptors[route.path] = self._describe(route, theme_snapshot, outgoing)
        logger.debug("Emitted %d routes", len(descriptors))
        return RouteTable(
            title=self.config.title,
            tagline=self.config.tagline,
            base_url=self.config.base_url,
            default_locale=self.config.i18n.default_locale,
            routes=descriptors,
            locales=chrome,
            external_links=list(self.links.external),
        )

    def permalink(self, path: str) -> str:
        """Return ``path`` joined onto the site base URL."""
        base = self.config.base_url.rstrip("/")
        if path == "/":
            return base + "/"
        return base + path

    def _describe(
        self,
        route: Route,
        theme_snapshot: dict[str, typ.Any],
        outgoing: dict[tuple[str, str], list[str]],
    ) -> RouteDescriptor:
        """Build the descriptor for a single route."""
        node = route.node
        if route.kind == "page" or node is None:
            return RouteDescriptor(
                path=route.path,
                permalink=self.permalink(route.path),
                kind=route.kind,
                locale=route.locale,
                title=self.config.title,
                description=self.config.tagline,
                theme=theme_snapshot,
            )
        if route.kind == "asset":
            return RouteDescriptor(
                path=route.path,
                permalink=self.permalink(route.path),
                kind="asset",
                locale=route.locale,
                title=posixpath.basename(node.source),
                source=node.source,
            )

        sidebar_name = self._owners.get(route.locale, {}).get(node.doc_id)
        previous, following = self._pagination(route.locale, sidebar_name, node.doc_id)
        return RouteDescriptor(
            path=route.path,
            permalink=self.permalink(route.path),
            kind=route.kind,
            locale=route.locale,
            title=node.title,
            description=node.description,
            source=node.source,
            doc_id=node.doc_id,
            translated=route.translated,
            sidebar=sidebar_name,
            previous=previous,
            next=following,
            edit_url=self._edit_url(route, node),
            links=outgoing.get((route.locale, node.source), []),
            front_matter={key: value.to_python() for key, value in sorted(node.front_matter.items())},
            theme=theme_snapshot,
        )

    def _pagination(
        self, locale: str, sidebar_name: str | None, doc_id: str
    ) -> tuple[NavLink | None, NavLink | None]:
        """Return previous/next links from the owning sidebar's order."""
        if sidebar_name is None:
            return None, None
        order = self.sidebars[locale][sidebar_name].doc_ids()
        labels = {
            entry.doc_id: entry.label
            for entry in _walk_docs(self.sidebars[locale][sidebar_name].items)
        }
        index = order.index(doc_id)
        previous = self._doc_link(locale, order[index - 1], labels) if index > 0 else None
        following = (
            self._doc_link(locale, order[index + 1], labels)
            if index + 1 < len(order)
            else None
        )
        return previous, following

    def _doc_link(self, locale: str, doc_id: str, labels: dict[str, str]) -> NavLink:
        """Return a NavLink to ``doc_id`` within ``locale``."""
        path = self.plan.doc_routes[(locale, doc_id)]
        return NavLink(label=labels.get(doc_id, doc_id), href=self.permalink(path))

    def _edit_url(self, route: Route, node: ContentNode) -> str | None:
        """Return the edit URL for a page's source file."""
        edit_url = self.config.docs.edit_url
        if not edit_url:
            return None
        if route.translated and route.locale != self.config.i18n.default_locale:
            root = (self.config.i18n.path / route.locale / "docs").as_posix()
        else:
            root = self.config.docs.path.as_posix()
        return f"{edit_url.rstrip('/')}/{root}/{node.source}"

    def _outgoing_links(self) -> dict[tuple[str, str], list[str]]:
        """Group resolved internal content links by ``(locale, source)``."""
        grouped: dict[tuple[str, str], set[str]] = {}
        for target, resolved in self.links.resolved.items():
            if target.origin != "content" or is_external(resolved) or not resolved.startswith("/"):
                continue
            grouped.setdefault((target.locale, target.source), set()).add(resolved)
        return {key: sorted(values) for key, values in grouped.items()}

    def _resolved_href(self, locale: str, href: str, *, where: str) -> NavLink:
        """Resolve a configured href to a NavLink (external links kept as-is)."""
        if is_external(href):
            return NavLink(label="", href=href, external=True)
        for target, resolved in self.links.resolved.items():
            if target.locale == locale and target.source == where and target.href == href:
                return NavLink(label="", href=self.permalink(resolved))
        prefix = locale_prefix(locale, self.config.i18n.default_locale)
        path = href if href.startswith("/") else f"/{href}"
        if prefix and not path.startswith(prefix + "/"):
            path = prefix + path
        return NavLink(label="", href=self.permalink(normalize_route(path)))

    def _chrome(self, code: str) -> LocaleChrome:
        """Build navbar, footer and sidebar trees for locale ``code``."""
        locale = self.views[code].locale
        prefix = locale_prefix(code, self.config.i18n.default_locale)
        navbar: list[NavLink] = []
        for idx, item in enumerate(self.theme.get("navbar.items", []) or []):
            if not isinstance(item, dict):
                continue
            label = locale.translate(str(item.get("label", "")))
            position = str(item.get("position", "left"))
            link = self._navbar_link(code, idx, item)
            navbar.append(dc.replace(link, label=label, position=position))

        footer: list[FooterGroup] = []
        loose: list[NavLink] = []
        for idx, entry in enumerate(self.theme.get("footer.links", []) or []):
            if not isinstance(entry, dict):
                continue
            if isinstance(entry.get("items"), list):
                items = [
                    self._footer_link(code, f"footer.links[{idx}].items[{child_idx}]", child)
                    for child_idx, child in enumerate(entry["items"])
                    if isinstance(child, dict)
                ]
                title = locale.translate(str(entry.get("title", "")))
                footer.append(FooterGroup(title=title, items=items))
            else:
                loose.append(self._footer_link(code, f"footer.links[{idx}]", entry))
        if loose:
            footer.append(FooterGroup(title="", items=loose))

        sidebars = {
            name: [_entry_dict(entry, self, code) for entry in sidebar.items]
            for name, sidebar in self.sidebars.get(code, {}).items()
        }
        return LocaleChrome(
            code=code,
            label=locale.label or code,
            direction=locale.direction,
            home=self.permalink(join_route(prefix)),
            navbar_title=locale.translate(str(self.theme.get("navbar.title") or self.config.title)),
            navbar=navbar,
            footer=footer,
            footer_style=str(self.theme.get("footer.style", "light")),
            copyright=locale.translate(str(self.theme.get("footer.copyright") or "")),
            sidebars=sidebars,
            logo_src=self._logo_src(),
            logo_alt=str(self.theme.get("navbar.logo.alt") or ""),
        )

    def _logo_src(self) -> str:
        """Return the navbar logo URL, joined onto the base URL when local."""
        src = str(self.theme.get("navbar.logo.src") or "").strip()
        if not src or is_external(src):
            return src
        return self.permalink("/" + src.lstrip("/"))

    def _navbar_link(self, code: str, idx: int, item: dict[str, typ.Any]) -> NavLink:
        """Resolve a navbar item into a NavLink."""
        where = f"navbar.items[{idx}]"
        match item.get("type"):
            case "docSidebar":
                sidebar_id = str(item.get("sidebarId", ""))
                sidebar = self.sidebars.get(code, {}).get(sidebar_id)
                if sidebar is None or not sidebar.doc_ids():
                    msg = f"Navbar item {where} references unknown or empty sidebar '{sidebar_id}'."
                    raise SidebarError(msg, path=sidebar_id)
                first = sidebar.doc_ids()[0]
                return NavLink(label="", href=self.permalink(self.plan.doc_routes[(code, first)]))
            case "doc":
                doc_id = str(item.get("docId", ""))
                path = self.plan.doc_routes.get((code, doc_id))
                return NavLink(label="", href=self.permalink(path) if path else doc_id)
            case _:
                href = str(item.get("to") or item.get("href") or "")
                return self._resolved_href(code, href, where=where)

    def _footer_link(self, code: str, where: str, item: dict[str, typ.Any]) -> NavLink:
        """Resolve a footer item into a NavLink."""
        locale = self.views[code].locale
        href = str(item.get("to") or item.get("href") or "")
        link = self._resolved_href(code, href, where=where)
        return dc.replace(link, label=locale.translate(str(item.get("label", ""))))


def _walk_docs(items: typ.Iterable[SidebarEntry]) -> typ.Iterator[SidebarDoc]:
    """Yield doc leaves depth-first."""
    for entry in items:
        if isinstance(entry, SidebarDoc):
            yield entry
        elif isinstance(entry, SidebarCategory):
            yield from _walk_docs(entry.items)


def _entry_dict(entry: SidebarEntry, emitter: RouteEmitter, code: str) -> dict[str, typ.Any]:
    """Serialize a sidebar entry with resolved hrefs."""
    match entry:
        case SidebarDoc(doc_id=doc_id, label=label):
            path = emitter.plan.doc_routes[(code, doc_id)]
            return {"type": "doc", "label": label, "docId": doc_id, "href": emitter.permalink(path)}
        case SidebarLink(label=label, href=href):
            external = is_external(href)
            target = href if external else emitter.permalink(normalize_route(href))
            return {"type": "link", "label": label, "href": target, "external": external}
        case SidebarCategory(label=label, items=items, collapsed=collapsed):
            return {
                "type": "category",
                "label": label,
                "collapsed": collapsed,
                "items": [_entry_dict(child, emitter, code) for child in items],
            }
        case _:
            msg = f"Unsupported sidebar entry {entry!r}"
            raise TypeError(msg)


__all__ = [
    "FooterGroup",
    "LocaleChrome",
    "NavLink",
    "Route",
    "RouteDescriptor",
    "RouteEmitter",
    "RoutePlan",
    "RouteTable",
    "join_route",
    "locale_prefix",
    "plan_routes",
]
