"""Tests for route planning and RouteEmitter descriptors."""

from __future__ import annotations

import dataclasses as dc

import msgspec.json
import pytest

from docsite.config import SiteConfig
from docsite.errors import RouteError
from docsite.frontmatter import FrontMatterValue
from docsite.locales import Locale, LocaleComposer
from docsite.pipeline import BuildStage, build_site
from docsite.routes import NavLink, join_route, locale_prefix, plan_routes
from docsite.scanner import ContentNode


@pytest.mark.parametrize(
    ("segments", "expected"),
    [
        (("", "docs", "intro"), "/docs/intro"),
        (("/fr", "docs", ""), "/fr/docs"),
        (("", "", ""), "/"),
        (("docs", "guides/../intro"), "/docs/intro"),
    ],
)
def test_join_route(segments: tuple[str, ...], expected: str) -> None:
    assert join_route(*segments) == expected


def test_locale_prefix_is_empty_for_default() -> None:
    assert locale_prefix("en", "en") == ""
    assert locale_prefix("fr", "en") == "/fr"


def test_plan_routes_rejects_duplicate_paths(site_config: SiteConfig) -> None:
    """Two pages claiming one path fail with both sources named."""
    nodes = [
        ContentNode("intro", "intro.md", "document"),
        ContentNode(
            "start", "start.md", "document", {"slug": FrontMatterValue("string", "/intro")}
        ),
    ]
    views = LocaleComposer([Locale("en", default=True)], nodes).compose()
    with pytest.raises(RouteError) as excinfo:
        plan_routes(site_config, views)
    assert excinfo.value.path == "/docs/intro"
    assert "intro.md" in str(excinfo.value)
    assert "start.md" in str(excinfo.value)


def test_plan_routes_adds_landing_pages_and_assets(site_config: SiteConfig) -> None:
    nodes = [
        ContentNode("intro", "intro.md", "document"),
        ContentNode("img/logo.png", "img/logo.png", "asset"),
    ]
    views = LocaleComposer(
        [Locale("en", default=True), Locale("fr")], nodes
    ).compose()
    plan = plan_routes(
        site_config,
        views,
        doc_assets=[nodes[1]],
        static_assets=[ContentNode("robots.txt", "robots.txt", "asset")],
    )
    assert plan.paths() == [
        "/",
        "/docs/img/logo.png",
        "/docs/intro",
        "/fr",
        "/fr/docs/intro",
        "/robots.txt",
    ]
    assert plan.doc_routes[("fr", "intro")] == "/fr/docs/intro"
    assert plan.file_routes[("en", "intro.md")] == "/docs/intro"


def test_emitted_descriptors_carry_page_context(site_config: SiteConfig) -> None:
    """Descriptors include sidebar, pagination, edit links and outgoing links."""
    result = build_site(site_config)
    assert result.report.ok, result.report.lines()
    table = result.table
    assert table is not None

    intro = table.routes["/docs/intro"]
    assert intro.title == "Introduction"
    assert intro.description == "Start here"
    assert intro.sidebar == "technicalSidebar"
    assert intro.previous is None
    assert intro.next == NavLink(label="Setup", href="/docs/guides/setup")
    assert intro.edit_url == "https://github.com/example/docs/edit/main/docs/intro.md"
    assert intro.links == ["/docs/guides/setup", "/docs/img/logo.png", "/docs/reference"]

    setup = table.routes["/docs/guides/setup"]
    assert setup.previous == NavLink(label="Introduction", href="/docs/intro")
    assert setup.next == NavLink(label="Reference", href="/docs/reference")

    fr_intro = table.routes["/fr/docs/intro"]
    assert fr_intro.translated
    assert fr_intro.title == "Présentation"
    assert fr_intro.edit_url == (
        "https://github.com/example/docs/edit/main/i18n/fr/docs/intro.md"
    )
    fr_setup = table.routes["/fr/docs/guides/setup"]
    assert not fr_setup.translated
    assert fr_setup.title == "Setup"

    assert table.routes["/"].kind == "page"
    assert table.routes["/docs/img/logo.png"].kind == "asset"
    assert table.routes["/robots.txt"].kind == "asset"
    assert table.external_links == ["https://github.com/example/docs"]


def test_locale_chrome_is_translated(site_config: SiteConfig) -> None:
    table = build_site(site_config).table
    assert table is not None
    en, fr = table.locales["en"], table.locales["fr"]
    assert en.navbar[0] == NavLink("Docs", "/docs/intro", False, "left")
    assert en.navbar[1] == NavLink("GitHub", "https://github.com/example/docs", True, "right")
    assert fr.navbar[0] == NavLink("Documentation", "/fr/docs/intro", False, "left")
    assert fr.footer[0].title == "Documentation"
    assert fr.footer[0].items[0].href == "/fr/docs/intro"
    assert fr.label == "Français"
    assert en.copyright == "Copyright Example"
    labels = [entry["label"] for entry in fr.sidebars["technicalSidebar"]]
    assert labels == ["Présentation", "Guides pratiques", "Reference"]


def test_unknown_navbar_sidebar_fails_emission(site_config: SiteConfig) -> None:
    config = dc.replace(
        site_config,
        navbar={"items": [{"type": "docSidebar", "sidebarId": "nope", "label": "Docs"}]},
    )
    report = build_site(config).report
    assert report.failure is not None
    assert report.failure.kind == "SidebarError"
    assert report.failure.stage is BuildStage.EMITTING
    assert report.failure.path == "nope"


def test_route_table_serializes_deterministically(site_config: SiteConfig) -> None:
    """Two builds of unchanged inputs produce byte-identical JSON."""
    first = build_site(site_config).table
    second = build_site(site_config).table
    assert first is not None
    assert second is not None
    assert first.to_json() == second.to_json()
    decoded = msgspec.json.decode(first.to_json())
    assert list(decoded["routes"]) == sorted(decoded["routes"])


def test_navbar_logo_is_joined_onto_base_url(site_config: SiteConfig) -> None:
    table = build_site(dc.replace(site_config, base_url="/project/")).table
    assert table is not None
    chrome = table.locales["en"]
    assert chrome.logo_src == "/project/img/logo.svg"
    assert chrome.logo_alt == "Example logo"
