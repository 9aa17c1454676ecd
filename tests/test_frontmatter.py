"""Unit tests for front-matter parsing and tagged values."""

from __future__ import annotations

import pytest

from docsite.frontmatter import FrontMatterError, FrontMatterValue, parse_document


def test_parse_document_splits_meta_and_body() -> None:
    """Front-matter keys should be tagged and removed from the body."""
    meta, body = parse_document(
        "---\ntitle: Intro\nsidebar_position: 2\ndraft: false\n---\n# Heading\n"
    )
    assert meta["title"] == FrontMatterValue("string", "Intro")
    assert meta["sidebar_position"].as_int() == 2
    assert meta["draft"].as_bool() is False
    assert body == "# Heading\n"


def test_parse_document_without_front_matter_returns_text() -> None:
    """Documents without a fence keep their full text as the body."""
    meta, body = parse_document("# Only a heading\n")
    assert meta == {}
    assert body == "# Only a heading\n"


def test_parse_document_accepts_byte_order_mark() -> None:
    """A UTF-8 BOM before the opening fence should not hide the metadata."""
    meta, body = parse_document("\ufeff---\ntitle: Bom\n---\nbody")
    assert meta["title"].as_str() == "Bom"
    assert body == "body"


def test_parse_document_skips_null_values() -> None:
    """Keys with empty values are treated as absent."""
    meta, _body = parse_document("---\ntitle:\nslug: /start\n---\n")
    assert "title" not in meta
    assert meta["slug"].as_str() == "/start"


def test_lists_are_tagged_recursively() -> None:
    """List values become tagged lists that render as strings."""
    meta, _body = parse_document("---\ntags: [alpha, 2, true]\n---\n")
    tags = meta["tags"]
    assert tags.kind == "list"
    assert tags.as_list() == ["alpha", "2", "true"]
    assert tags.to_python() == ["alpha", 2, True]


@pytest.mark.parametrize(
    "text",
    [
        "---\ntitle: Unclosed\n# Heading\n",
        "---\ntitle: [unbalanced\n---\n",
        "---\n- just\n- a list\n---\n",
        "---\nauthor:\n  name: Nested\n---\n",
    ],
    ids=["missing-fence", "invalid-yaml", "not-a-mapping", "nested-mapping"],
)
def test_malformed_front_matter_raises(text: str) -> None:
    """Malformed blocks should raise FrontMatterError rather than be ignored."""
    with pytest.raises(FrontMatterError):
        parse_document(text)


def test_numeric_strings_convert_on_request() -> None:
    """String values that look numeric still resolve through as_int."""
    value = FrontMatterValue("string", " 7 ")
    assert value.as_int() == 7
    assert FrontMatterValue("string", "seven").as_number() is None
