"""Resolve named sidebars into ordered navigation trees.

Sidebar definitions come from the site configuration and list documents,
categories, plain links and ``autogenerated`` directory blocks. Explicit
entries keep their declared order. Every page not placed explicitly (or by an
``autogenerated`` block) is appended to the auto sidebar under categories
inferred from its directory, so each page appears exactly once across the
resolved sidebars.

Example
-------
>>> from docsite.scanner import ContentNode
>>> from docsite.sidebar import SidebarResolver
>>> nodes = [
...     ContentNode("intro", "intro.md", "document"),
...     ContentNode("guides/setup", "guides/setup.md", "document"),
... ]
>>> sidebars = SidebarResolver(nodes, {"technicalSidebar": ["intro"]}).resolve()
>>> sidebars["technicalSidebar"].doc_ids()
['intro', 'guides/setup']
"""

from __future__ import annotations

import dataclasses as dc
import logging
import math
import posixpath
import typing as typ

from .errors import SidebarError
from .scanner import ContentNode, strip_number_prefix

logger = logging.getLogger(__name__)

DEFAULT_SIDEBAR = "defaultSidebar"


@dc.dataclass(slots=True, frozen=True)
class SidebarDoc:
    """Leaf entry pointing at one document."""

    doc_id: str
    label: str


@dc.dataclass(slots=True, frozen=True)
class SidebarLink:
    """Leaf entry pointing at an arbitrary href."""

    label: str
    href: str


@dc.dataclass(slots=True, frozen=True)
class SidebarCategory:
    """Labelled group of entries."""

    label: str
    items: tuple[SidebarEntry, ...]
    collapsed: bool = True
    inferred: bool = False


SidebarEntry = SidebarDoc | SidebarLink | SidebarCategory


@dc.dataclass(slots=True, frozen=True)
class Sidebar:
    """A named, ordered navigation tree."""

    name: str
    items: tuple[SidebarEntry, ...]

    def doc_ids(self) -> list[str]:
        """Return document ids in depth-first display order."""
        return [entry.doc_id for entry in _walk(self.items) if isinstance(entry, SidebarDoc)]

    def links(self) -> list[SidebarLink]:
        """Return every link entry in display order."""
        return [entry for entry in _walk(self.items) if isinstance(entry, SidebarLink)]


def _walk(items: typ.Iterable[SidebarEntry]) -> typ.Iterator[SidebarEntry]:
    """Yield entries depth-first, categories before their children."""
    for entry in items:
        yield entry
        if isinstance(entry, SidebarCategory):
            yield from _walk(entry.items)


class SidebarResolver:
    """Build :class:`Sidebar` trees from scanned nodes and explicit definitions."""

    def __init__(
        self,
        nodes: typ.Sequence[ContentNode],
        definitions: typ.Mapping[str, typ.Sequence[typ.Any]] | None = None,
        *,
        auto_sidebar: str | None = None,
    ) -> None:
        """Store the inputs used by :meth:`resolve`.

        Parameters
        ----------
        nodes : Sequence[ContentNode]
            Scanned nodes in scan order.
        definitions : Mapping[str, Sequence[Any]], optional
            Explicit sidebar definitions keyed by sidebar id.
        auto_sidebar : str, optional
            Sidebar receiving pages nobody placed explicitly; defaults to the
            first declared sidebar, or ``defaultSidebar`` when none exist.
        """
        self.nodes = list(nodes)
        self.definitions = dict(definitions or {})
        self.auto_sidebar = auto_sidebar or next(iter(self.definitions), DEFAULT_SIDEBAR)
        self._pages = [node for node in self.nodes if node.is_page]
        self._by_id = {node.doc_id: node for node in self._pages}
        self._scan_index = {node.doc_id: idx for idx, node in enumerate(self._pages)}
        self._categories = {
            node.directory: node for node in self.nodes if node.kind == "config"
        }
        self._directories = _page_directories(self._pages)
        self._placed: set[str] = set()

    def resolve(self) -> dict[str, Sidebar]:
        """Resolve every sidebar, appending unplaced pages to the auto sidebar.

        Returns
        -------
        dict[str, Sidebar]
            Sidebars keyed by id in declaration order (the auto sidebar last
            when it was not declared).

        Raises
        ------
        SidebarError
            If an entry references an unknown document, an item is malformed,
            or a definition contains itself.
        """
        self._placed = set()
        for name, items in self.definitions.items():
            self._collect_explicit(items, name, ())

        resolved: dict[str, Sidebar] = {}
        for name, items in self.definitions.items():
            entries = self._parse_items(items, name, ())
            resolved[name] = Sidebar(name=name, items=tuple(entries))

        leftovers = [node for node in self._pages if node.doc_id not in self._placed]
        if leftovers or self.auto_sidebar not in resolved:
            inferred = self._infer(leftovers, base_dir="")
            current = resolved.get(self.auto_sidebar)
            existing = current.items if current else ()
            resolved[self.auto_sidebar] = Sidebar(
                name=self.auto_sidebar, items=(*existing, *inferred)
            )
            logger.debug(
                "Appended %d unplaced pages to sidebar %s",
                len(leftovers),
                self.auto_sidebar,
            )
        return resolved

    def _collect_explicit(
        self, items: object, sidebar: str, trail: tuple[int, ...]
    ) -> None:
        """Record doc ids referenced explicitly so inference skips them."""
        if id(items) in trail:
            msg = f"Sidebar '{sidebar}' contains a cyclic category definition."
            raise SidebarError(msg, path=sidebar)
        if not isinstance(items, list | tuple):
            return
        trail = (*trail, id(items))
        for item in items:
            match item:
                case str():
                    self._placed.add(item)
                case {"type": "doc", "id": doc_id}:
                    self._placed.add(str(doc_id))
                case {"type": "category", **rest}:
                    if id(item) in trail:
                        msg = f"Sidebar '{sidebar}' contains a cyclic category definition."
                        raise SidebarError(msg, path=sidebar)
                    self._collect_explicit(rest.get("items", []), sidebar, (*trail, id(item)))
                case _:
                    continue

    def _parse_items(
        self, items: object, sidebar: str, trail: tuple[int, ...]
    ) -> list[SidebarEntry]:
        """Convert raw definition items into sidebar entries."""
        if id(items) in trail:
            msg = f"Sidebar '{sidebar}' contains a cyclic category definition."
            raise SidebarError(msg, path=sidebar)
        if not isinstance(items, list | tuple):
            msg = f"Sidebar '{sidebar}' items must be a list."
            raise SidebarError(msg, path=sidebar)
        trail = (*trail, id(items))
        entries: list[SidebarEntry] = []
        for item in items:
            match item:
                case str():
                    entries.append(self._doc_entry(item, None, sidebar))
                case {"type": "doc", "id": doc_id, **rest}:
                    entries.append(self._doc_entry(str(doc_id), rest.get("label"), sidebar))
                case {"type": "link", "label": label, "href": href}:
                    entries.append(SidebarLink(label=str(label), href=str(href)))
                case {"type": "category", "label": label, **rest}:
                    if id(item) in trail:
                        msg = f"Sidebar '{sidebar}' contains a cyclic category definition."
                        raise SidebarError(msg, path=sidebar)
                    children = self._parse_items(
                        rest.get("items", []), sidebar, (*trail, id(item))
                    )
                    entries.append(
                        SidebarCategory(
                            label=str(label),
                            items=tuple(children),
                            collapsed=bool(rest.get("collapsed", True)),
                        )
                    )
                case {"type": "autogenerated", **rest}:
                    entries.extend(self._autogenerated(rest.get("dirName", "."), sidebar))
                case _:
                    msg = f"Sidebar '{sidebar}' has an unrecognised item: {item!r}"
                    raise SidebarError(msg, path=sidebar)
        return entries

    def _doc_entry(self, doc_id: str, label: object, sidebar: str) -> SidebarDoc:
        """Return a doc leaf, failing when ``doc_id`` was not scanned."""
        node = self._by_id.get(doc_id)
        if node is None:
            msg = f"Sidebar '{sidebar}' references unknown document '{doc_id}'."
            raise SidebarError(msg, path=doc_id)
        text = str(label).strip() if label else ""
        return SidebarDoc(doc_id=doc_id, label=text or node.sidebar_label)

    def _autogenerated(self, dir_name: object, sidebar: str) -> list[SidebarEntry]:
        """Infer entries for pages under ``dir_name`` not yet placed.

        ``dir_name`` may be written with or without number prefixes.
        """
        base = str(dir_name or ".").strip("/")
        base = "" if base == "." else base
        if base and base not in self._directories:
            msg = f"Sidebar '{sidebar}' autogenerates from unknown directory '{base}'."
            raise SidebarError(msg, path=base)
        selected = [
            node
            for node in self._pages
            if node.doc_id not in self._placed
            and (
                _is_within(posixpath.dirname(node.source), base)
                or _is_within(node.directory, base)
            )
        ]
        for node in selected:
            self._placed.add(node.doc_id)
        return self._infer(selected, base_dir=base)

    def _infer(self, nodes: list[ContentNode], *, base_dir: str) -> list[SidebarEntry]:
        """Group ``nodes`` into categories mirroring their directories."""
        root = _DirBucket(name="", raw_name="")
        for node in nodes:
            raw_dir = posixpath.dirname(node.source)
            raw_parts = [part for part in raw_dir.split("/") if part]
            skip = len([part for part in base_dir.split("/") if part])
            bucket = root
            cleaned: list[str] = []
            for idx, raw_part in enumerate(raw_parts):
                cleaned.append(strip_number_prefix(raw_part)[0])
                if idx < skip:
                    continue
                bucket = bucket.child(raw_part, "/".join(cleaned))
            bucket.nodes.append(node)
        return self._bucket_entries(root)

    def _bucket_entries(self, bucket: _DirBucket) -> list[SidebarEntry]:
        """Return ordered entries for one directory bucket."""
        keyed: list[tuple[tuple[float, float, int, int], SidebarEntry]] = []
        for node in bucket.nodes:
            position = node.sidebar_position
            key = (
                math.inf if position is None else position,
                0 if node.kind == "index" else 1,
                self._scan_index[node.doc_id],
                0,
            )
            keyed.append((key, SidebarDoc(doc_id=node.doc_id, label=node.sidebar_label)))
        for child in bucket.children.values():
            children = self._bucket_entries(child)
            if not children:
                continue
            config = self._categories.get(child.path)
            label_value = config.meta("label") if config else None
            collapsed_value = config.meta("collapsed") if config else None
            position = config.sidebar_position if config else None
            if position is None:
                position = strip_number_prefix(child.raw_name)[1]
            first_index = min(self._scan_index[doc] for doc in child.doc_ids())
            key = (
                math.inf if position is None else float(position),
                1,
                first_index,
                1,
            )
            keyed.append(
                (
                    key,
                    SidebarCategory(
                        label=label_value.as_str() if label_value else child.name,
                        items=tuple(children),
                        collapsed=collapsed_value.as_bool() if collapsed_value else True,
                        inferred=True,
                    ),
                )
            )
        keyed.sort(key=lambda pair: pair[0])
        return [entry for _key, entry in keyed]


@dc.dataclass(slots=True)
class _DirBucket:
    """Mutable directory node used while inferring categories."""

    name: str
    raw_name: str
    path: str = ""
    nodes: list[ContentNode] = dc.field(default_factory=list)
    children: dict[str, _DirBucket] = dc.field(default_factory=dict)

    def child(self, raw_name: str, path: str) -> _DirBucket:
        """Return (creating on demand) the sub-bucket for ``raw_name``."""
        if raw_name not in self.children:
            name = strip_number_prefix(raw_name)[0]
            self.children[raw_name] = _DirBucket(name=name, raw_name=raw_name, path=path)
        return self.children[raw_name]

    def doc_ids(self) -> list[str]:
        """Return every doc id contained in this bucket and its children."""
        ids = [node.doc_id for node in self.nodes]
        for child in self.children.values():
            ids.extend(child.doc_ids())
        return ids


def _page_directories(pages: typ.Iterable[ContentNode]) -> set[str]:
    """Return every raw and prefix-stripped directory holding a page."""
    found: set[str] = set()
    for node in pages:
        for directory in (posixpath.dirname(node.source), node.directory):
            while directory:
                found.add(directory)
                directory = posixpath.dirname(directory)
    return found


def _is_within(directory: str, base: str) -> bool:
    """Return True when ``directory`` equals or sits under ``base``."""
    if not base:
        return True
    return directory == base or directory.startswith(f"{base}/")


def sidebar_of(sidebars: typ.Mapping[str, Sidebar]) -> dict[str, str]:
    """Map each doc id to the first sidebar (in declaration order) listing it."""
    owners: dict[str, str] = {}
    for name, sidebar in sidebars.items():
        for doc_id in sidebar.doc_ids():
            owners.setdefault(doc_id, name)
    return owners


__all__ = [
    "DEFAULT_SIDEBAR",
    "Sidebar",
    "SidebarCategory",
    "SidebarDoc",
    "SidebarEntry",
    "SidebarLink",
    "SidebarResolver",
    "sidebar_of",
]
