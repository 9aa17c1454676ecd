"""Load and validate site configuration YAML for docsite builds.

This subpackage parses the project's ``site.yaml`` file (camelCase option
names such as ``baseUrl`` and ``onBrokenLinks``), applies defaults, loads
sidebar definitions, and produces frozen dataclasses that are constructed
once and passed explicitly through every pipeline stage. The primary entry
point is :func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from docsite.config import load_site_config
>>> site = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> site.i18n.default_locale  # doctest: +SKIP
'en'
"""

from .loader import build_site_config, load_site_config
from .models import (
    LINK_POLICIES,
    DocsConfig,
    I18nConfig,
    LinkPolicy,
    LocaleConfig,
    SiteConfig,
    SiteConfigError,
)

__all__ = [
    "LINK_POLICIES",
    "DocsConfig",
    "I18nConfig",
    "LinkPolicy",
    "LocaleConfig",
    "SiteConfig",
    "SiteConfigError",
    "build_site_config",
    "load_site_config",
]
