"""Walk a content directory and classify every file into a ContentNode.

The scanner is the first pipeline stage. It reads documents (``.md`` and
``.mdx``), splits their front-matter, recognises ``_category_`` files that
configure inferred sidebar categories, and treats everything else as a static
asset. Per-file parsing is independent, so it runs on a thread pool; the
result is always sorted by source path so downstream stages see a
deterministic order.

Example
-------
>>> from pathlib import Path
>>> from docsite.scanner import ContentScanner
>>> nodes = ContentScanner(Path("docs")).scan()  # doctest: +SKIP
>>> [node.doc_id for node in nodes]  # doctest: +SKIP
['guides/setup', 'intro']
"""

from __future__ import annotations

import dataclasses as dc
import logging
import posixpath
import re
import typing as typ
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ScanError
from .frontmatter import FrontMatterError, FrontMatterValue, parse_document, tag_value

logger = logging.getLogger(__name__)

NodeKind = typ.Literal["document", "index", "asset", "config"]

DOCUMENT_SUFFIXES = (".md", ".mdx")
INDEX_STEMS = ("index", "readme")
CATEGORY_FILES = ("_category_.yml", "_category_.yaml", "_category_.json")
CATEGORY_KEYS = ("label", "position", "collapsed", "description")
NUMBER_PREFIX_PATTERN = re.compile(r"^(\d+)[-_.\s]+(?=.)")
HEADING_PATTERN = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


def strip_number_prefix(segment: str) -> tuple[str, int | None]:
    """Return ``segment`` without an ordering prefix such as ``01-``.

    >>> strip_number_prefix("02-setup")
    ('setup', 2)
    >>> strip_number_prefix("setup")
    ('setup', None)
    """
    match = NUMBER_PREFIX_PATTERN.match(segment)
    if match is None:
        return segment, None
    return segment[match.end() :], int(match.group(1))


def _clean_dir(directory: str) -> str:
    """Strip ordering prefixes from every segment of a POSIX directory path."""
    if not directory:
        return ""
    return "/".join(strip_number_prefix(part)[0] for part in directory.split("/"))


@dc.dataclass(slots=True, frozen=True)
class ContentNode:
    """A scanned content file.

    Attributes
    ----------
    doc_id : str
        Stable identity used by sidebars, translations and links.
    source : str
        POSIX path relative to the scanned root.
    kind : {"document", "index", "asset", "config"}
        Classification assigned at scan time.
    front_matter : dict[str, FrontMatterValue]
        Parsed front-matter (category options for ``config`` nodes).
    body : str
        Markdown body with front-matter removed; empty for assets.
    """

    doc_id: str
    source: str
    kind: NodeKind
    front_matter: dict[str, FrontMatterValue] = dc.field(
        default_factory=dict, hash=False, compare=True
    )
    body: str = dc.field(default="", repr=False)

    @property
    def directory(self) -> str:
        """Return the cleaned directory of the source file (``""`` at root)."""
        return _clean_dir(posixpath.dirname(self.source))

    @property
    def is_page(self) -> bool:
        """Return True for nodes that become documentation pages."""
        return self.kind in ("document", "index")

    def meta(self, key: str) -> FrontMatterValue | None:
        """Return the tagged front-matter value for ``key``, if any."""
        return self.front_matter.get(key)

    @property
    def title(self) -> str:
        """Return the page title from front-matter, first heading, or id."""
        value = self.meta("title")
        if value is not None:
            return value.as_str()
        heading = HEADING_PATTERN.search(self.body)
        if heading:
            return heading.group(1).strip()
        tail = self.doc_id.rsplit("/", 1)[-1]
        if self.kind == "index" and self.directory:
            tail = self.directory.rsplit("/", 1)[-1]
        return tail.replace("-", " ").replace("_", " ").strip().title() or "Home"

    @property
    def sidebar_label(self) -> str:
        """Return the label shown for this node in sidebars."""
        value = self.meta("sidebar_label")
        return value.as_str() if value is not None else self.title

    @property
    def sidebar_position(self) -> float | None:
        """Return the ordering hint from front-matter or the filename prefix."""
        value = self.meta("sidebar_position")
        if value is not None:
            return value.as_number()
        value = self.meta("position")
        if value is not None:
            return value.as_number()
        _name, number = strip_number_prefix(posixpath.basename(self.source))
        return float(number) if number is not None else None

    @property
    def description(self) -> str:
        """Return the front-matter description or an empty string."""
        value = self.meta("description")
        return value.as_str() if value is not None else ""

    @property
    def doc_path(self) -> str:
        """Return the page path relative to the docs route base.

        A front-matter ``slug`` wins: absolute slugs are taken as-is, relative
        ones are joined to the node directory. Index nodes map to their
        directory; other documents to ``directory/<id tail>``.
        """
        slug = self.meta("slug")
        if slug is not None:
            text = slug.as_str().strip()
            if text.startswith("/"):
                return text.strip("/")
            return posixpath.join(self.directory, text).strip("/")
        if self.kind == "index":
            return self.directory
        if self.kind in ("asset", "config"):
            return self.source
        tail = self.doc_id.rsplit("/", 1)[-1]
        return posixpath.join(self.directory, tail)


class ContentScanner:
    """Scan a directory tree into sorted :class:`ContentNode` records."""

    def __init__(self, root: Path, *, jobs: int = 4, assets_only: bool = False) -> None:
        """Configure the scanner.

        Parameters
        ----------
        root : Path
            Directory to walk.
        jobs : int, optional
            Number of worker threads used for per-file parsing.
        assets_only : bool, optional
            Classify every file as an asset (used for static directories).
        """
        self.root = root
        self.jobs = max(1, jobs)
        self.assets_only = assets_only

    def scan(self) -> list[ContentNode]:
        """Return ContentNodes for every file under the root, sorted by path.

        Raises
        ------
        ScanError
            If the root does not exist, a file cannot be read or decoded,
            front-matter is malformed, or two documents share an identity.
        """
        if not self.root.is_dir():
            msg = f"Content directory '{self.root}' does not exist."
            raise ScanError(msg, path=str(self.root))

        paths = sorted(self._discover(), key=lambda path: path.as_posix())
        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            nodes = list(pool.map(self._scan_file, paths))
        nodes.sort(key=lambda node: (node.source, node.doc_id))
        self._check_unique_ids(nodes)
        logger.debug("Scanned %d files under %s", len(nodes), self.root)
        return nodes

    def _discover(self) -> list[Path]:
        """Return candidate file paths, skipping hidden and private entries."""
        found: list[Path] = []
        for path in self.root.rglob("*"):
            if not path.is_file():
                continue
            relative = path.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if not self.assets_only and self._is_private(relative):
                continue
            found.append(path)
        return found

    @staticmethod
    def _is_private(relative: Path) -> bool:
        """Return True for ``_``-prefixed entries other than category files."""
        *dirs, name = relative.parts
        if any(part.startswith("_") for part in dirs):
            return True
        return name.startswith("_") and name not in CATEGORY_FILES

    def _scan_file(self, path: Path) -> ContentNode:
        """Classify and parse a single file."""
        source = path.relative_to(self.root).as_posix()
        if self.assets_only:
            return ContentNode(doc_id=source, source=source, kind="asset")
        name = path.name
        if name in CATEGORY_FILES:
            return self._scan_category(path, source)
        if path.suffix.lower() not in DOCUMENT_SUFFIXES:
            return ContentNode(doc_id=source, source=source, kind="asset")
        return self._scan_document(path, source)

    def _read_text(self, path: Path, source: str) -> str:
        """Read a UTF-8 file, converting IO and decoding failures to ScanError."""
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            msg = f"File '{source}' is not valid UTF-8."
            raise ScanError(msg, path=source) from exc
        except OSError as exc:
            msg = f"File '{source}' could not be read: {exc}"
            raise ScanError(msg, path=source) from exc

    def _scan_document(self, path: Path, source: str) -> ContentNode:
        """Parse a Markdown document into a ``document`` or ``index`` node."""
        text = self._read_text(path, source)
        try:
            front_matter, body = parse_document(text)
        except FrontMatterError as exc:
            msg = f"Malformed front-matter in '{source}': {exc}"
            raise ScanError(msg, path=source) from exc

        stem, _number = strip_number_prefix(path.stem)
        kind: NodeKind = "index" if stem.lower() in INDEX_STEMS else "document"
        directory = _clean_dir(posixpath.dirname(source))
        explicit_id = front_matter.get("id")
        if explicit_id is not None:
            stem = explicit_id.as_str().strip()
            if not stem or "/" in stem:
                msg = f"Front-matter id in '{source}' must be a non-empty name without '/'."
                raise ScanError(msg, path=source)
        doc_id = posixpath.join(directory, stem) if directory else stem
        return ContentNode(
            doc_id=doc_id,
            source=source,
            kind=kind,
            front_matter=front_matter,
            body=body,
        )

    def _scan_category(self, path: Path, source: str) -> ContentNode:
        """Parse a ``_category_`` file holding inferred-category options."""
        text = self._read_text(path, source)
        loader = YAML(typ="safe")
        loader.version = (1, 2)
        try:
            loaded = loader.load(text) or {}
        except YAMLError as exc:
            msg = f"Malformed category file '{source}': {exc}"
            raise ScanError(msg, path=source) from exc
        if not isinstance(loaded, dict):
            msg = f"Category file '{source}' must contain a mapping."
            raise ScanError(msg, path=source)
        options: dict[str, FrontMatterValue] = {}
        for key in CATEGORY_KEYS:
            if loaded.get(key) is None:
                continue
            try:
                options[key] = tag_value(loaded[key], key=key)
            except FrontMatterError as exc:
                msg = f"Malformed category file '{source}': {exc}"
                raise ScanError(msg, path=source) from exc
        directory = _clean_dir(posixpath.dirname(source))
        return ContentNode(
            doc_id=posixpath.join(directory, "_category_"),
            source=source,
            kind="config",
            front_matter=options,
        )

    @staticmethod
    def _check_unique_ids(nodes: list[ContentNode]) -> None:
        """Fail when two page nodes resolve to the same identity."""
        seen: dict[str, str] = {}
        for node in nodes:
            if not node.is_page:
                continue
            previous = seen.get(node.doc_id)
            if previous is not None:
                msg = (
                    f"Documents '{previous}' and '{node.source}' share the id "
                    f"'{node.doc_id}'."
                )
                raise ScanError(msg, path=node.source)
            seen[node.doc_id] = node.source


def scan_content(root: Path, *, jobs: int = 4) -> list[ContentNode]:
    """Scan ``root`` as a docs content directory."""
    return ContentScanner(root, jobs=jobs).scan()


def scan_static(root: Path, *, jobs: int = 4) -> list[ContentNode]:
    """Scan ``root`` as a static directory; missing directories yield nothing."""
    if not root.is_dir():
        return []
    return ContentScanner(root, jobs=jobs, assets_only=True).scan()


__all__ = [
    "ContentNode",
    "ContentScanner",
    "NodeKind",
    "scan_content",
    "scan_static",
    "strip_number_prefix",
]
