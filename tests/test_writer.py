"""End-to-end tests for SiteWriter output.

The sample site from ``conftest.py`` is built and written to a temporary
directory. Assertions parse the generated pages with BeautifulSoup so they
check structure (sidebar, pagination, highlighted code, rewritten links)
rather than exact markup.
"""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

import msgspec.json
import pytest
from bs4 import BeautifulSoup

from docsite.config import SiteConfig
from docsite.pipeline import build_site
from docsite.writer import SiteWriter


@pytest.fixture
def output_dir(site_config: SiteConfig, tmp_path: Path) -> Path:
    result = build_site(site_config)
    assert result.report.ok, result.report.lines()
    target = tmp_path / "out"
    SiteWriter(site_config, result, output_dir=target).run()
    return target


def _soup(path: Path) -> BeautifulSoup:
    return BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")


def test_every_route_is_written(output_dir: Path) -> None:
    expected = [
        "index.html",
        "docs/intro/index.html",
        "docs/guides/setup/index.html",
        "docs/reference/index.html",
        "docs/img/logo.png",
        "robots.txt",
        "fr/index.html",
        "fr/docs/intro/index.html",
        "fr/docs/guides/setup/index.html",
        "routes.json",
    ]
    missing = [name for name in expected if not (output_dir / name).is_file()]
    assert not missing, f"expected written files, missing {missing!r}"
    assert (output_dir / "robots.txt").read_text(encoding="utf-8") == "User-agent: *\n"


def test_doc_page_has_sidebar_and_pagination(output_dir: Path) -> None:
    soup = _soup(output_dir / "docs" / "intro" / "index.html")
    assert soup.title is not None
    assert soup.title.get_text() == "Introduction | Example Docs"
    active = soup.select_one(".menu__link--active")
    assert active is not None
    assert active["href"] == "/docs/intro"
    categories = [node.get_text(strip=True) for node in soup.select(".menu__category-label")]
    assert categories == ["Guides"]
    next_link = soup.select_one(".pagination-nav__link--next")
    assert next_link is not None
    assert next_link["href"] == "/docs/guides/setup"
    assert soup.select_one(".pagination-nav__link--prev") is None
    edit = soup.select_one(".doc-edit-link")
    assert edit is not None
    assert edit["href"].endswith("/docs/intro.md")


def test_content_links_point_at_permalinks(output_dir: Path) -> None:
    soup = _soup(output_dir / "docs" / "intro" / "index.html")
    hrefs = [anchor["href"] for anchor in soup.select(".doc-content a")]
    assert hrefs == ["/docs/guides/setup", "/docs/reference"]
    image = soup.select_one(".doc-content img")
    assert image is not None
    assert image["src"] == "/docs/img/logo.png"

    setup = _soup(output_dir / "docs" / "guides" / "setup" / "index.html")
    back = setup.select_one(".doc-content a")
    assert back is not None
    assert back["href"] == "/docs/intro#top"


def test_code_blocks_are_highlighted(output_dir: Path) -> None:
    soup = _soup(output_dir / "docs" / "guides" / "setup" / "index.html")
    block = soup.select_one(".doc-content .codehilite")
    assert block is not None
    assert block.get("data-language") == "python"
    assert "print" in block.get_text()
    style = soup.find("style")
    assert style is not None
    assert '[data-theme="dark"] .codehilite' in style.get_text()


def test_fallback_pages_are_marked(output_dir: Path) -> None:
    translated = _soup(output_dir / "fr" / "docs" / "intro" / "index.html")
    fallback = _soup(output_dir / "fr" / "docs" / "guides" / "setup" / "index.html")
    assert translated.select_one(".doc-fallback-notice") is None
    assert fallback.select_one(".doc-fallback-notice") is not None
    html = translated.find("html")
    assert html is not None
    assert html["lang"] == "fr"
    brand_links = [link.get_text() for link in translated.select(".navbar__item")]
    assert brand_links == ["Documentation", "GitHub"]


def test_landing_page_links_to_docs(output_dir: Path) -> None:
    soup = _soup(output_dir / "index.html")
    title = soup.select_one(".hero__title")
    assert title is not None
    assert title.get_text() == "Example Docs"
    button = soup.select_one(".hero__button")
    assert button is not None
    assert button["href"] == "/docs/intro"


def test_manifest_matches_route_table(output_dir: Path, site_config: SiteConfig) -> None:
    manifest = msgspec.json.decode((output_dir / "routes.json").read_bytes())
    table = build_site(site_config).table
    assert table is not None
    assert sorted(manifest["routes"]) == sorted(table.routes)
    assert manifest["routes"]["/docs/intro"]["permalink"] == "/docs/intro"


def test_permalinks_include_base_url(site_config: SiteConfig, tmp_path: Path) -> None:
    config = dc.replace(site_config, base_url="/project/")
    result = build_site(config)
    assert result.report.ok, result.report.lines()
    SiteWriter(config, result, output_dir=tmp_path / "out").run()
    soup = _soup(tmp_path / "out" / "docs" / "intro" / "index.html")
    hrefs = [anchor["href"] for anchor in soup.select(".doc-content a")]
    assert hrefs == ["/project/docs/guides/setup", "/project/docs/reference"]


def test_failed_builds_are_not_written(site_config: SiteConfig) -> None:
    docs = dc.replace(site_config.docs, sidebars={"main": ["missing-doc"]})
    config = dc.replace(site_config, docs=docs)
    with pytest.raises(ValueError, match="failed build"):
        SiteWriter(config, build_site(config))


def test_colocated_images_point_at_copied_assets(
    site_config: SiteConfig, site_dir: Path, tmp_path: Path
) -> None:
    page = site_dir / "docs" / "01-tutorial" / "02-start.md"
    page.parent.mkdir(parents=True)
    page.write_text("# Start\n\n![diagram](./diagram.png)\n", encoding="utf-8")
    (page.parent / "diagram.png").write_bytes(b"png")
    result = build_site(site_config)
    assert result.report.ok, result.report.lines()
    SiteWriter(site_config, result, output_dir=tmp_path / "out").run()
    soup = _soup(tmp_path / "out" / "docs" / "tutorial" / "start" / "index.html")
    image = soup.select_one(".doc-content img")
    assert image is not None
    assert image["src"] == "/docs/01-tutorial/diagram.png"
    assert (tmp_path / "out" / "docs" / "01-tutorial" / "diagram.png").read_bytes() == b"png"


def test_navbar_shows_logo_beside_title(output_dir: Path) -> None:
    soup = _soup(output_dir / "docs" / "intro" / "index.html")
    logo = soup.select_one(".navbar__brand img.navbar__logo")
    assert logo is not None
    assert logo["src"] == "/img/logo.svg"
    assert logo["alt"] == "Example logo"
    title = soup.select_one(".navbar__brand .navbar__title")
    assert title is not None
    assert title.get_text() == "Example"
