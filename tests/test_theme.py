"""Tests for layered theme composition."""

from __future__ import annotations

import copy

from docsite.theme import (
    ThemeConfig,
    code_styles,
    compose_site_theme,
    compose_theme,
    pygments_style,
)

PRESET = {
    "navbar": {"title": "Preset", "logo": {"src": "preset.svg", "alt": "Preset"}},
    "prism": {"theme": "github", "darkTheme": "dracula"},
    "announcement": "hello",
}
USER = {
    "navbar": {"logo": {"src": "user.svg"}},
    "prism": {"darkTheme": "oneDark"},
    "announcement": {"content": "structured"},
}
LOCAL = {"navbar": {"title": "Local"}, "customAspect": {"enabled": True}}


def test_later_layers_win_per_key() -> None:
    """Mapping aspects merge one level deep; deeper values are replaced."""
    theme = compose_theme([PRESET, USER])
    assert theme.get("navbar.title") == "Preset"
    assert theme.get("navbar.logo") == {"src": "user.svg"}
    assert theme.get("prism.theme") == "github"
    assert theme.get("prism.darkTheme") == "oneDark"
    assert theme.get("announcement") == {"content": "structured"}


def test_composition_is_associative() -> None:
    """Composing in two steps equals composing all layers at once."""
    flat = compose_theme([PRESET, USER, LOCAL])
    left = compose_theme([compose_theme([PRESET, USER]), LOCAL])
    right = compose_theme([PRESET, compose_theme([USER, LOCAL])])
    assert flat == left == right


def test_unknown_aspects_pass_through() -> None:
    theme = compose_theme([PRESET, LOCAL])
    assert theme.aspect("customAspect") == {"enabled": True}
    assert theme.get("customAspect.missing", "fallback") == "fallback"


def test_composition_does_not_mutate_layers() -> None:
    before = copy.deepcopy(PRESET)
    theme = compose_theme([PRESET, USER])
    theme.aspects["navbar"]["title"] = "Changed"
    assert before == PRESET


def test_site_theme_starts_from_classic_preset() -> None:
    """The preset supplies code themes and footer defaults."""
    theme = compose_site_theme([{"footer": {"style": "dark"}}])
    assert theme.get("prism.theme") == "github"
    assert theme.get("footer.style") == "dark"
    assert theme.get("footer.links") == []


def test_prism_names_map_to_pygments_styles() -> None:
    assert pygments_style("dracula") == "dracula"
    assert pygments_style("monokai") == "monokai"
    assert pygments_style("no-such-theme") == "default"
    assert pygments_style(None) == "default"
    theme = ThemeConfig({"prism": {"theme": "vsLight"}})
    assert code_styles(theme) == ("vs", "vs")
