"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .helpers import (
    _as_mapping,
    _build_locale_configs,
    _load_yaml_file,
    _normalize_base_url,
    _normalize_route_base,
    _optional_str,
    _parse_policy,
    _parse_positive_int,
)
from .models import DocsConfig, I18nConfig, SiteConfig, SiteConfigError


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing a documentation site.

    Parameters
    ----------
    path : Path
        Filesystem path to the site configuration file (for example,
        ``site.yaml``). Relative paths inside the file resolve against its
        parent directory.

    Returns
    -------
    SiteConfig
        Parsed site configuration with defaults applied.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    SiteConfigError
        If the YAML is malformed, the top level is not a mapping, or a
        required option is missing or invalid.

    Examples
    --------
    >>> from pathlib import Path
    >>> from docsite.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
    >>> config.on_broken_links  # doctest: +SKIP
    'throw'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loaded = _load_yaml_file(path) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise SiteConfigError(msg, path=str(path))
    return build_site_config(loaded, site_dir=path.resolve().parent)


def build_site_config(raw: typ.Mapping[str, typ.Any], *, site_dir: Path) -> SiteConfig:
    """Build a :class:`SiteConfig` from an already parsed mapping.

    Parameters
    ----------
    raw : Mapping[str, Any]
        Parsed configuration using the camelCase option names.
    site_dir : Path
        Directory that relative paths (docs, static, i18n) resolve against.

    Returns
    -------
    SiteConfig
        The resolved configuration.

    Raises
    ------
    SiteConfigError
        If a required option is missing or an option has the wrong shape.
    """
    title = _optional_str(raw.get("title"))
    if not title:
        msg = "Site configuration requires a 'title'."
        raise SiteConfigError(msg, path="title")

    i18n = _build_i18n_config(_as_mapping(raw.get("i18n"), "i18n"))
    docs = _build_docs_config(_as_mapping(raw.get("docs"), "docs"), site_dir)

    static_raw = raw.get("staticDirectories", ["static"])
    if not isinstance(static_raw, list):
        msg = "'staticDirectories' must be a list of paths."
        raise SiteConfigError(msg, path="staticDirectories")

    navbar = raw.get("navbar")
    footer = raw.get("footer")
    return SiteConfig(
        title=title,
        site_dir=site_dir,
        tagline=_optional_str(raw.get("tagline")) or "",
        url=_optional_str(raw.get("url")),
        base_url=_normalize_base_url(raw.get("baseUrl")),
        favicon=_optional_str(raw.get("favicon")),
        organization_name=_optional_str(raw.get("organizationName")),
        project_name=_optional_str(raw.get("projectName")),
        on_broken_links=_parse_policy(raw.get("onBrokenLinks")),
        i18n=i18n,
        docs=docs,
        static_directories=tuple(Path(str(entry)) for entry in static_raw),
        theme_config=_as_mapping(raw.get("themeConfig"), "themeConfig"),
        navbar=_as_mapping(navbar, "navbar") if navbar is not None else None,
        footer=_as_mapping(footer, "footer") if footer is not None else None,
        output_dir=Path(_optional_str(raw.get("outDir")) or "build"),
        jobs=_parse_positive_int(raw.get("jobs"), "jobs", 4),
    )


def _build_i18n_config(payload: typ.Mapping[str, typ.Any]) -> I18nConfig:
    """Build the locale declarations, keeping the declared locale order."""
    default_locale = _optional_str(payload.get("defaultLocale")) or "en"
    locales_raw = payload.get("locales") or [default_locale]
    if not isinstance(locales_raw, list):
        msg = "'i18n.locales' must be a list of locale codes."
        raise SiteConfigError(msg, path="i18n.locales")
    locales: list[str] = []
    for entry in locales_raw:
        code = _optional_str(entry)
        if code and code not in locales:
            locales.append(code)
    return I18nConfig(
        default_locale=default_locale,
        locales=tuple(locales),
        locale_configs=_build_locale_configs(payload.get("localeConfigs")),
        path=Path(_optional_str(payload.get("path")) or "i18n"),
    )


def _build_docs_config(payload: typ.Mapping[str, typ.Any], site_dir: Path) -> DocsConfig:
    """Build docs plugin options, merging file and inline sidebar definitions."""
    sidebars: dict[str, list[typ.Any]] = {}
    sidebar_path = _optional_str(payload.get("sidebarPath"))
    if sidebar_path:
        sidebar_file = site_dir / sidebar_path
        if not sidebar_file.exists():
            msg = f"Sidebar file '{sidebar_file}' not found."
            raise SiteConfigError(msg, path=sidebar_path)
        loaded = _load_yaml_file(sidebar_file) or {}
        sidebars.update(_sidebar_mapping(loaded, sidebar_path))
    sidebars.update(_sidebar_mapping(payload.get("sidebars") or {}, "docs.sidebars"))

    auto_sidebar = _optional_str(payload.get("autoSidebar"))
    return DocsConfig(
        path=Path(_optional_str(payload.get("path")) or "docs"),
        route_base_path=_normalize_route_base(payload.get("routeBasePath")),
        edit_url=_optional_str(payload.get("editUrl")),
        sidebars=sidebars,
        auto_sidebar=auto_sidebar,
    )


def _sidebar_mapping(value: object, origin: str) -> dict[str, list[typ.Any]]:
    """Validate a mapping of sidebar id to item list."""
    result: dict[str, list[typ.Any]] = {}
    for name, items in _as_mapping(value, origin).items():
        if not isinstance(items, list):
            msg = f"Sidebar '{name}' in {origin} must be a list of items."
            raise SiteConfigError(msg, path=str(name))
        result[str(name)] = items
    return result


__all__ = ["build_site_config", "load_site_config"]
