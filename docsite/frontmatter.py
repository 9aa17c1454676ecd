r"""Split content files into front-matter metadata and Markdown body.

Front-matter is the YAML block delimited by ``---`` lines at the head of a
document. Values are modelled as :class:`FrontMatterValue`, a small tagged
type (string, number, bool or list) that callers resolve explicitly per key
instead of trusting whatever the YAML loader produced.

Example
-------
>>> from docsite.frontmatter import parse_document
>>> meta, body = parse_document("---\ntitle: Intro\nsidebar_position: 2\n---\nHello")
>>> meta["title"].as_str(), meta["sidebar_position"].as_int(), body
('Intro', 2, 'Hello')
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

ValueKind = typ.Literal["string", "number", "bool", "list"]

FRONT_MATTER_PATTERN = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(?P<meta>.*?)(?:^|\r?\n)---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
OPENING_FENCE_PATTERN = re.compile(r"\A\ufeff?---[ \t]*\r?\n")


class FrontMatterError(ValueError):
    """Raised when a front-matter block is present but malformed."""


@dc.dataclass(slots=True, frozen=True)
class FrontMatterValue:
    """Tagged front-matter scalar or list.

    Attributes
    ----------
    kind : {"string", "number", "bool", "list"}
        Tag describing which accessor is valid.
    value : str | int | float | bool | tuple[FrontMatterValue, ...]
        Underlying Python value; lists hold nested tagged values.
    """

    kind: ValueKind
    value: str | int | float | bool | tuple[FrontMatterValue, ...]

    def as_str(self) -> str:
        """Return the value rendered as a string (lists are comma-joined)."""
        match self.kind:
            case "string":
                return typ.cast("str", self.value)
            case "bool":
                return "true" if self.value else "false"
            case "list":
                items = typ.cast("tuple[FrontMatterValue, ...]", self.value)
                return ", ".join(item.as_str() for item in items)
            case _:
                return str(self.value)

    def as_int(self) -> int | None:
        """Return the value as an integer or ``None`` when it is not numeric."""
        if self.kind == "number":
            return int(typ.cast("float", self.value))
        if self.kind == "string":
            try:
                return int(typ.cast("str", self.value).strip())
            except ValueError:
                return None
        return None

    def as_number(self) -> float | None:
        """Return the value as a float or ``None`` when it is not numeric."""
        if self.kind == "number":
            return float(typ.cast("float", self.value))
        if self.kind == "string":
            try:
                return float(typ.cast("str", self.value).strip())
            except ValueError:
                return None
        return None

    def as_bool(self) -> bool:
        """Return the value as a boolean using YAML-style truthy strings."""
        match self.kind:
            case "bool":
                return bool(self.value)
            case "string":
                text = typ.cast("str", self.value).strip().lower()
                return text in {"true", "yes", "on", "1"}
            case "number":
                return bool(self.value)
            case _:
                return bool(self.value)

    def as_list(self) -> list[str]:
        """Return list items as strings; scalars become one-item lists."""
        if self.kind == "list":
            items = typ.cast("tuple[FrontMatterValue, ...]", self.value)
            return [item.as_str() for item in items]
        return [self.as_str()]

    def to_python(self) -> str | int | float | bool | list[typ.Any]:
        """Return a plain Python value suitable for JSON serialization."""
        if self.kind == "list":
            items = typ.cast("tuple[FrontMatterValue, ...]", self.value)
            return [item.to_python() for item in items]
        return typ.cast("str | int | float | bool", self.value)


FrontMatter = typ.Mapping[str, FrontMatterValue]


def tag_value(raw: object, *, key: str) -> FrontMatterValue:
    """Convert a parsed YAML value into a :class:`FrontMatterValue`.

    Raises
    ------
    FrontMatterError
        If the value is a mapping or another unsupported type.
    """
    match raw:
        case bool():
            return FrontMatterValue("bool", raw)
        case int() | float():
            return FrontMatterValue("number", raw)
        case str():
            return FrontMatterValue("string", raw)
        case dt.datetime() | dt.date():
            return FrontMatterValue("string", raw.isoformat())
        case list() | tuple():
            items = tuple(
                tag_value(item, key=f"{key}[{idx}]")
                for idx, item in enumerate(raw)
                if item is not None
            )
            return FrontMatterValue("list", items)
        case dict():
            msg = f"Front-matter key '{key}' holds a mapping; only scalars and lists are allowed."
            raise FrontMatterError(msg)
        case _:
            msg = f"Front-matter key '{key}' has unsupported type {type(raw).__name__}."
            raise FrontMatterError(msg)


def _load_meta(block: str) -> dict[str, FrontMatterValue]:
    """Parse the YAML block into tagged values."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(block)
    except YAMLError as exc:
        msg = f"Invalid front-matter YAML: {exc}"
        raise FrontMatterError(msg) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        msg = "Front-matter must be a mapping of keys to values."
        raise FrontMatterError(msg)
    meta: dict[str, FrontMatterValue] = {}
    for key, raw in loaded.items():
        if raw is None:
            continue
        meta[str(key)] = tag_value(raw, key=str(key))
    return meta


def parse_document(text: str) -> tuple[dict[str, FrontMatterValue], str]:
    """Split ``text`` into tagged front-matter and the remaining body.

    Parameters
    ----------
    text : str
        Full content file text.

    Returns
    -------
    tuple[dict[str, FrontMatterValue], str]
        Front-matter mapping (empty when the file has none) and the body with
        the front-matter block removed.

    Raises
    ------
    FrontMatterError
        If an opening ``---`` fence has no closing fence, the YAML is
        invalid, or the block is not a mapping of scalars and lists.
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if match is None:
        if OPENING_FENCE_PATTERN.match(text):
            msg = "Front-matter block is missing its closing '---' line."
            raise FrontMatterError(msg)
        return {}, text.removeprefix("\ufeff")
    meta = _load_meta(match.group("meta"))
    return meta, text[match.end() :]


__all__ = [
    "FrontMatter",
    "FrontMatterError",
    "FrontMatterValue",
    "parse_document",
    "tag_value",
]
