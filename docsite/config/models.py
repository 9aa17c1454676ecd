"""Typed dataclasses describing docsite site configuration structures."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from docsite.errors import SiteConfigError

LinkPolicy = typ.Literal["ignore", "warn", "throw"]
LINK_POLICIES: tuple[str, ...] = ("ignore", "warn", "throw")


@dc.dataclass(slots=True, frozen=True)
class LocaleConfig:
    """Presentation metadata for a single locale."""

    label: str
    direction: str = "ltr"
    html_lang: str | None = None


@dc.dataclass(slots=True, frozen=True)
class I18nConfig:
    """Locale declarations from the ``i18n`` block."""

    default_locale: str = "en"
    locales: tuple[str, ...] = ("en",)
    locale_configs: dict[str, LocaleConfig] = dc.field(default_factory=dict)
    path: Path = Path("i18n")

    def locale_config(self, code: str) -> LocaleConfig:
        """Return the configured metadata for ``code`` or a derived default."""
        return self.locale_configs.get(code, LocaleConfig(label=code))


@dc.dataclass(slots=True, frozen=True)
class DocsConfig:
    """Options of the docs content plugin (``docs`` block)."""

    path: Path = Path("docs")
    route_base_path: str = "docs"
    edit_url: str | None = None
    sidebars: dict[str, list[typ.Any]] = dc.field(default_factory=dict)
    auto_sidebar: str | None = None


@dc.dataclass(slots=True, frozen=True)
class SiteConfig:
    """Fully resolved site configuration passed through the build pipeline."""

    title: str
    site_dir: Path
    tagline: str = ""
    url: str | None = None
    base_url: str = "/"
    favicon: str | None = None
    organization_name: str | None = None
    project_name: str | None = None
    on_broken_links: LinkPolicy = "throw"
    i18n: I18nConfig = dc.field(default_factory=I18nConfig)
    docs: DocsConfig = dc.field(default_factory=DocsConfig)
    static_directories: tuple[Path, ...] = (Path("static"),)
    theme_config: dict[str, typ.Any] = dc.field(default_factory=dict)
    navbar: dict[str, typ.Any] | None = None
    footer: dict[str, typ.Any] | None = None
    output_dir: Path = Path("build")
    jobs: int = 4

    @property
    def docs_dir(self) -> Path:
        """Return the absolute content directory."""
        return self.site_dir / self.docs.path

    @property
    def static_dirs(self) -> list[Path]:
        """Return absolute static asset directories."""
        return [self.site_dir / entry for entry in self.static_directories]

    def translation_dir(self, locale: str) -> Path:
        """Return the directory holding translated docs for ``locale``."""
        return self.site_dir / self.i18n.path / locale / "docs"

    def strings_path(self, locale: str) -> Path:
        """Return the translated string table for ``locale``."""
        return self.site_dir / self.i18n.path / locale / "strings.yml"

    def theme_layers(self) -> list[dict[str, typ.Any]]:
        """Return the site-supplied theme layers in override order."""
        layers: list[dict[str, typ.Any]] = [dict(self.theme_config)]
        overrides: dict[str, typ.Any] = {}
        if self.navbar is not None:
            overrides["navbar"] = self.navbar
        if self.footer is not None:
            overrides["footer"] = self.footer
        if overrides:
            layers.append(overrides)
        return layers

    def with_policy(self, policy: str) -> SiteConfig:
        """Return a copy using ``policy`` for broken links."""
        if policy not in LINK_POLICIES:
            msg = f"Unknown onBrokenLinks policy '{policy}'."
            raise SiteConfigError(msg, path="onBrokenLinks")
        return dc.replace(self, on_broken_links=typ.cast("LinkPolicy", policy))


__all__ = [
    "LINK_POLICIES",
    "DocsConfig",
    "I18nConfig",
    "LinkPolicy",
    "LocaleConfig",
    "SiteConfig",
    "SiteConfigError",
]
