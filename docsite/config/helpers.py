"""Utility helpers shared by the docsite configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .models import LINK_POLICIES, LinkPolicy, LocaleConfig, SiteConfigError


def _safe_yaml() -> YAML:
    """Return a safe YAML 1.2 loader."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    return loader


def _load_yaml_file(path: Path) -> typ.Any:
    """Load a YAML document, raising SiteConfigError for syntax problems."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return _safe_yaml().load(handle)
    except YAMLError as exc:
        msg = f"Could not parse YAML file '{path}': {exc}"
        raise SiteConfigError(msg, path=str(path)) from exc


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_mapping(value: object, key: str) -> dict[str, typ.Any]:
    """Return ``value`` as a dict, treating ``None`` as empty."""
    match value:
        case None:
            return {}
        case dict():
            return dict(value)
        case _:
            msg = f"'{key}' must be a mapping."
            raise SiteConfigError(msg, path=key)


def _normalize_base_url(value: object | None) -> str:
    """Return a base URL that starts and ends with a slash."""
    text = _optional_str(value) or "/"
    if not text.startswith("/"):
        text = f"/{text}"
    if not text.endswith("/"):
        text = f"{text}/"
    return text


def _normalize_route_base(value: object | None) -> str:
    """Strip surrounding slashes from the docs route base path."""
    text = _optional_str(value)
    if text is None:
        return "docs"
    return text.strip("/")


def _parse_policy(value: object | None) -> LinkPolicy:
    """Validate the ``onBrokenLinks`` setting, defaulting to ``throw``."""
    text = _optional_str(value) or "throw"
    if text not in LINK_POLICIES:
        allowed = ", ".join(LINK_POLICIES)
        msg = f"onBrokenLinks must be one of {allowed}; got '{text}'."
        raise SiteConfigError(msg, path="onBrokenLinks")
    return typ.cast("LinkPolicy", text)


def _build_locale_configs(payload: object) -> dict[str, LocaleConfig]:
    """Build per-locale metadata from ``i18n.localeConfigs``."""
    configs: dict[str, LocaleConfig] = {}
    for code, entry in _as_mapping(payload, "i18n.localeConfigs").items():
        data = _as_mapping(entry, f"i18n.localeConfigs.{code}")
        direction = _optional_str(data.get("direction")) or "ltr"
        if direction not in ("ltr", "rtl"):
            msg = f"Locale '{code}' direction must be 'ltr' or 'rtl'."
            raise SiteConfigError(msg, path=f"i18n.localeConfigs.{code}")
        configs[str(code)] = LocaleConfig(
            label=_optional_str(data.get("label")) or str(code),
            direction=direction,
            html_lang=_optional_str(data.get("htmlLang")),
        )
    return configs


def _parse_positive_int(value: object, key: str, default: int) -> int:
    """Return ``value`` as a positive integer."""
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        msg = f"'{key}' must be a positive integer."
        raise SiteConfigError(msg, path=key)
    return value


__all__ = [
    "_as_mapping",
    "_build_locale_configs",
    "_load_yaml_file",
    "_normalize_base_url",
    "_normalize_route_base",
    "_optional_str",
    "_parse_policy",
    "_parse_positive_int",
    "_safe_yaml",
]
