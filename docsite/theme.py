"""Compose layered theme configuration into one resolved ThemeConfig.

Layers are applied left to right (preset first, user overrides last). Each
top-level aspect (``navbar``, ``footer``, ``prism``...) is merged
independently: keys inside a mapping aspect are merged one level deep and
anything nested below that is replaced wholesale by the last layer that sets
it. Non-mapping aspects are simply replaced. Unknown aspects pass through
untouched.

Example
-------
>>> from docsite.theme import compose_theme
>>> theme = compose_theme([{"prism": {"theme": "github"}}, {"prism": {"darkTheme": "dracula"}}])
>>> theme.get("prism.theme"), theme.get("prism.darkTheme")
('github', 'dracula')
"""

from __future__ import annotations

import copy
import dataclasses as dc
import typing as typ

from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

CLASSIC_PRESET: dict[str, typ.Any] = {
    "colorMode": {
        "defaultMode": "light",
        "disableSwitch": False,
        "respectPrefersColorScheme": False,
    },
    "prism": {"theme": "github", "darkTheme": "dracula", "additionalLanguages": []},
    "navbar": {"hideOnScroll": False, "items": []},
    "footer": {"style": "light", "links": [], "copyright": ""},
    "docs": {"sidebar": {"hideable": False, "autoCollapseCategories": False}},
    "tableOfContents": {"minHeadingLevel": 2, "maxHeadingLevel": 3},
}

PRISM_TO_PYGMENTS: dict[str, str] = {
    "github": "default",
    "dracula": "dracula",
    "vsLight": "vs",
    "vsDark": "native",
    "oneLight": "default",
    "oneDark": "one-dark",
    "okaidia": "monokai",
    "nightOwl": "monokai",
    "nightOwlLight": "friendly",
    "oceanicNext": "monokai",
    "palenight": "material",
    "shadesOfPurple": "material",
    "duotoneDark": "paraiso-dark",
    "duotoneLight": "paraiso-light",
    "gruvboxMaterialDark": "gruvbox-dark",
    "gruvboxMaterialLight": "gruvbox-light",
    "synthwave84": "fruity",
    "ultramin": "bw",
}
FALLBACK_PYGMENTS_STYLE = "default"


@dc.dataclass(slots=True, frozen=True)
class ThemeConfig:
    """Resolved presentation configuration keyed by aspect name."""

    aspects: dict[str, typ.Any] = dc.field(default_factory=dict, hash=False)

    def get(self, key: str, default: typ.Any = None) -> typ.Any:
        """Return the value at a dotted key such as ``"prism.theme"``."""
        current: typ.Any = self.aspects
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def aspect(self, name: str) -> dict[str, typ.Any]:
        """Return a mapping aspect, or an empty dict when absent or scalar."""
        value = self.aspects.get(name)
        return value if isinstance(value, dict) else {}

    def to_dict(self) -> dict[str, typ.Any]:
        """Return a deep copy suitable for embedding in route descriptors."""
        return copy.deepcopy(self.aspects)


def merge_layers(layers: typ.Iterable[typ.Mapping[str, typ.Any]]) -> dict[str, typ.Any]:
    """Right-biased per-aspect merge of ``layers`` into a new dict."""
    merged: dict[str, typ.Any] = {}
    for layer in layers:
        for aspect, value in layer.items():
            current = merged.get(aspect)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[aspect] = {**current, **copy.deepcopy(value)}
            else:
                merged[aspect] = copy.deepcopy(value)
    return merged


def compose_theme(
    layers: typ.Sequence[typ.Mapping[str, typ.Any] | ThemeConfig],
) -> ThemeConfig:
    """Merge an ordered sequence of partial layers into a :class:`ThemeConfig`.

    Parameters
    ----------
    layers : Sequence[Mapping[str, Any] | ThemeConfig]
        Layers in increasing precedence; resolved configs may be reused as
        layers, so ``compose_theme([compose_theme([a, b]), c])`` equals
        ``compose_theme([a, b, c])``.

    Returns
    -------
    ThemeConfig
        The merged configuration. Composition never fails.
    """
    raw = [layer.aspects if isinstance(layer, ThemeConfig) else layer for layer in layers]
    return ThemeConfig(aspects=merge_layers(raw))


def compose_site_theme(site_layers: typ.Sequence[typ.Mapping[str, typ.Any]]) -> ThemeConfig:
    """Compose the classic preset with the site's own layers."""
    return compose_theme([CLASSIC_PRESET, *site_layers])


def pygments_style(prism_theme: object) -> str:
    """Return the Pygments style used for a Prism theme name."""
    name = str(prism_theme or "")
    if not name:
        return FALLBACK_PYGMENTS_STYLE
    if name in PRISM_TO_PYGMENTS:
        return PRISM_TO_PYGMENTS[name]
    try:
        get_style_by_name(name)
    except ClassNotFound:
        return FALLBACK_PYGMENTS_STYLE
    return name


def code_styles(theme: ThemeConfig) -> tuple[str, str]:
    """Return the ``(light, dark)`` Pygments styles for ``theme``."""
    light = pygments_style(theme.get("prism.theme"))
    dark = pygments_style(theme.get("prism.darkTheme", theme.get("prism.theme")))
    return light, dark


__all__ = [
    "CLASSIC_PRESET",
    "PRISM_TO_PYGMENTS",
    "ThemeConfig",
    "code_styles",
    "compose_site_theme",
    "compose_theme",
    "merge_layers",
    "pygments_style",
]
