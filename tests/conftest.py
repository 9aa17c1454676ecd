"""Shared fixtures that lay out a small bilingual documentation site on disk.

The ``site_dir`` fixture writes a ``site.yaml`` together with an English docs
tree, a partial French translation, a colocated image and a static file. Tests
mutate individual files through ``write_file`` to provoke specific failures
(broken links, unknown sidebar documents) without repeating the whole layout.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from docsite.config import SiteConfig, load_site_config

SITE_YAML = """
title: Example Docs
tagline: Guides for the example project
url: https://docs.example.com
baseUrl: /
onBrokenLinks: throw
i18n:
  defaultLocale: en
  locales: [en, fr]
  localeConfigs:
    fr:
      label: Français
docs:
  editUrl: https://github.com/example/docs/edit/main
  sidebars:
    technicalSidebar:
      - intro
      - type: category
        label: Guides
        collapsed: false
        items:
          - guides/setup
navbar:
  title: Example
  logo:
    alt: Example logo
    src: img/logo.svg
  items:
    - type: docSidebar
      sidebarId: technicalSidebar
      label: Docs
      position: left
    - href: https://github.com/example/docs
      label: GitHub
      position: right
footer:
  style: dark
  links:
    - title: Docs
      items:
        - label: Introduction
          to: /docs/intro
  copyright: Copyright Example
"""

DOCS = {
    "docs/intro.md": (
        "---\n"
        "title: Introduction\n"
        "description: Start here\n"
        "---\n"
        "# Introduction\n\n"
        "Read the [setup guide](guides/setup.md) and the [reference](/docs/reference).\n\n"
        "![logo](img/logo.png)\n"
    ),
    "docs/guides/setup.md": (
        "# Setup\n\n"
        "```python\n"
        "print('hello')\n"
        "```\n\n"
        "Back to the [introduction](../intro#top).\n"
    ),
    "docs/reference.md": "# Reference\n\nSee [GitHub](https://github.com/example/docs).\n",
    "docs/img/logo.png": "not really a png\n",
    "static/robots.txt": "User-agent: *\n",
    "i18n/fr/docs/intro.md": (
        "---\n"
        "title: Présentation\n"
        "---\n"
        "# Présentation\n\n"
        "Lisez le [guide](guides/setup.md).\n"
    ),
    "i18n/fr/strings.yml": "Guides: Guides pratiques\nDocs: Documentation\n",
}


def write_file(root: Path, relative: str, text: str) -> Path:
    """Write ``text`` to ``root / relative``, creating parent directories."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Return a directory containing the sample bilingual site."""
    root = tmp_path / "site"
    write_file(root, "site.yaml", SITE_YAML.lstrip())
    for relative, text in DOCS.items():
        write_file(root, relative, text)
    return root


@pytest.fixture
def site_config(site_dir: Path) -> SiteConfig:
    """Return the parsed configuration of the sample site."""
    return load_site_config(site_dir / "site.yaml")


@pytest.fixture
def load_config(site_dir: Path) -> typ.Callable[[], SiteConfig]:
    """Return a loader that re-reads ``site.yaml`` after a test edits the tree."""
    return lambda: load_site_config(site_dir / "site.yaml")


@pytest.fixture
def edit_site(site_dir: Path) -> typ.Callable[[str, str], Path]:
    """Return a helper that overwrites one file of the sample site."""
    return lambda relative, text: write_file(site_dir, relative, text)
