"""Tests for locale composition and per-document fallback."""

from __future__ import annotations

import pytest

from docsite.config import SiteConfig
from docsite.errors import LocaleError
from docsite.locales import Locale, LocaleComposer, load_locales, translate_sidebar
from docsite.scanner import ContentNode
from docsite.sidebar import Sidebar, SidebarCategory, SidebarDoc

NODES = [
    ContentNode("intro", "intro.md", "document", body="# Intro\n"),
    ContentNode("guides/setup", "guides/setup.md", "document", body="# Setup\n"),
    ContentNode("logo.png", "logo.png", "asset"),
]
FR_INTRO = ContentNode("intro", "intro.md", "document", body="# Présentation\n")


@pytest.mark.parametrize(
    "locales",
    [
        [Locale("en"), Locale("fr")],
        [Locale("en", default=True), Locale("fr", default=True)],
    ],
    ids=["no-default", "two-defaults"],
)
def test_default_locale_must_be_unique(locales: list[Locale]) -> None:
    """Composition fails unless exactly one locale is the default."""
    with pytest.raises(LocaleError) as excinfo:
        LocaleComposer(locales, NODES).compose()
    assert excinfo.value.path == "i18n.defaultLocale"


def test_missing_translations_fall_back_per_document() -> None:
    """Untranslated pages are served from the default locale."""
    views = LocaleComposer(
        [Locale("en", default=True), Locale("fr", translations={"intro": FR_INTRO})],
        NODES,
    ).compose()
    assert list(views) == ["en", "fr"]
    fr = views["fr"]
    assert set(fr.nodes) == {"intro", "guides/setup"}
    assert fr.nodes["intro"] is FR_INTRO
    assert fr.nodes["guides/setup"] is NODES[1]
    assert fr.is_fallback("guides/setup")
    assert not fr.is_fallback("intro")
    assert not views["en"].is_fallback("guides/setup")


def test_translation_of_unknown_document_raises() -> None:
    """Translations must target a page of the default locale."""
    orphan = ContentNode("ghost", "ghost.md", "document")
    composer = LocaleComposer(
        [Locale("en", default=True), Locale("fr", translations={"ghost": orphan})],
        NODES,
    )
    with pytest.raises(LocaleError, match="ghost"):
        composer.compose()


def test_duplicate_locale_codes_raise() -> None:
    composer = LocaleComposer(
        [Locale("en", default=True), Locale("fr"), Locale("fr")], NODES
    )
    with pytest.raises(LocaleError, match="declared twice"):
        composer.compose()


def test_translate_sidebar_uses_strings_and_translated_labels() -> None:
    """Translated pages use their own labels; other labels use the string table."""
    locale = Locale(
        "fr",
        translations={"intro": FR_INTRO},
        strings={"Guides": "Guides pratiques", "Setup": "Installation"},
    )
    view = LocaleComposer([Locale("en", default=True), locale], NODES).compose()["fr"]
    sidebar = Sidebar(
        "main",
        (
            SidebarDoc("intro", "Intro"),
            SidebarCategory("Guides", (SidebarDoc("guides/setup", "Setup"),)),
        ),
    )
    translated = translate_sidebar(sidebar, locale, view)
    assert translated.items[0] == SidebarDoc("intro", "Présentation")
    category = translated.items[1]
    assert isinstance(category, SidebarCategory)
    assert category.label == "Guides pratiques"
    assert category.items == (SidebarDoc("guides/setup", "Installation"),)


def test_load_locales_reads_translations_and_strings(site_config: SiteConfig) -> None:
    """Locale records come from the i18n directory of the site."""
    locales = {locale.code: locale for locale in load_locales(site_config)}
    assert locales["en"].default
    assert locales["en"].translations == {}
    fr = locales["fr"]
    assert not fr.default
    assert fr.label == "Français"
    assert set(fr.translations) == {"intro"}
    assert fr.translate("Guides") == "Guides pratiques"
    assert fr.translate("Untranslated") == "Untranslated"
