"""Compose per-locale views of the scanned content.

Each configured locale owns a partial set of translated documents (scanned
from ``i18n/<code>/docs``) and a table of translated UI strings
(``i18n/<code>/strings.yml``). The composer validates that exactly one locale
is the default and produces, for every locale, an effective document mapping
where missing translations fall back per document to the default locale.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import LocaleError, ScanError
from .scanner import ContentNode, scan_content
from .sidebar import Sidebar, SidebarCategory, SidebarDoc, SidebarEntry, SidebarLink

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import SiteConfig

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True, frozen=True)
class Locale:
    """A language variant of the site.

    Attributes
    ----------
    code : str
        Locale code such as ``"en"`` or ``"fr"``.
    default : bool
        Whether this is the site's default locale.
    translations : dict[str, ContentNode]
        Translated pages keyed by the default-locale doc id.
    label : str
        Human-readable name for locale pickers.
    direction : str
        Text direction, ``"ltr"`` or ``"rtl"``.
    strings : dict[str, str]
        Translated UI strings keyed by their default-locale text.
    """

    code: str
    default: bool = False
    translations: dict[str, ContentNode] = dc.field(default_factory=dict, hash=False)
    label: str = ""
    direction: str = "ltr"
    strings: dict[str, str] = dc.field(default_factory=dict, hash=False)

    def translate(self, text: str) -> str:
        """Return the translated string for ``text`` or ``text`` itself."""
        return self.strings.get(text, text)


@dc.dataclass(slots=True, frozen=True)
class LocaleView:
    """Effective content for one locale after fallback."""

    locale: Locale
    nodes: dict[str, ContentNode]
    translated: frozenset[str]

    @property
    def code(self) -> str:
        """Return the locale code."""
        return self.locale.code

    def is_fallback(self, doc_id: str) -> bool:
        """Return True when ``doc_id`` is served from the default locale."""
        return not self.locale.default and doc_id not in self.translated


class LocaleComposer:
    """Resolve effective per-locale document sets with per-document fallback."""

    def __init__(
        self, locales: typ.Sequence[Locale], nodes: typ.Sequence[ContentNode]
    ) -> None:
        self.locales = list(locales)
        self.nodes = [node for node in nodes if node.is_page]

    @property
    def default_locale(self) -> Locale:
        """Return the single default locale.

        Raises
        ------
        LocaleError
            If no locale, or more than one, is marked as default.
        """
        defaults = [locale for locale in self.locales if locale.default]
        if not defaults:
            msg = "No locale is marked as default."
            raise LocaleError(msg, path="i18n.defaultLocale")
        if len(defaults) > 1:
            codes = ", ".join(locale.code for locale in defaults)
            msg = f"Several locales are marked as default: {codes}."
            raise LocaleError(msg, path="i18n.defaultLocale")
        return defaults[0]

    def compose(self) -> dict[str, LocaleView]:
        """Return an effective view per locale, default locale first.

        Returns
        -------
        dict[str, LocaleView]
            Views keyed by locale code. The default view maps every scanned
            page to itself; other views substitute translations where present.

        Raises
        ------
        LocaleError
            On a missing or duplicated default, or when a translation targets a
            document absent from the default locale.
        """
        default = self.default_locale
        base = {node.doc_id: node for node in self.nodes}
        views: dict[str, LocaleView] = {
            default.code: LocaleView(locale=default, nodes=dict(base), translated=frozenset())
        }
        for locale in self.locales:
            if locale.default:
                continue
            if locale.code in views:
                msg = f"Locale '{locale.code}' is declared twice."
                raise LocaleError(msg, path=locale.code)
            unknown = sorted(set(locale.translations) - set(base))
            if unknown:
                source = locale.translations[unknown[0]].source
                msg = (
                    f"Locale '{locale.code}' translates '{unknown[0]}' ({source}), "
                    "which does not exist in the default locale."
                )
                raise LocaleError(msg, path=source)
            effective = {
                doc_id: locale.translations.get(doc_id, node)
                for doc_id, node in base.items()
            }
            translated = frozenset(locale.translations)
            logger.debug(
                "Locale %s: %d of %d pages translated",
                locale.code,
                len(translated),
                len(base),
            )
            views[locale.code] = LocaleView(
                locale=locale, nodes=effective, translated=translated
            )
        return views


def _load_strings(path: Path) -> dict[str, str]:
    """Load a flat ``source text -> translation`` mapping."""
    if not path.exists():
        return {}
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(path.read_text(encoding="utf-8")) or {}
    except YAMLError as exc:
        msg = f"Malformed string table '{path}': {exc}"
        raise ScanError(msg, path=str(path)) from exc
    if not isinstance(loaded, dict):
        msg = f"String table '{path}' must be a mapping."
        raise ScanError(msg, path=str(path))
    return {str(key): str(value) for key, value in loaded.items() if value is not None}


def load_locales(config: SiteConfig) -> list[Locale]:
    """Build :class:`Locale` records from the site configuration.

    Translations are scanned from each non-default locale's docs directory.
    The default flag is set from ``i18n.defaultLocale``; a default locale that
    is not listed in ``i18n.locales`` leaves the set without a default, which
    :class:`LocaleComposer` reports.
    """
    locales: list[Locale] = []
    for code in config.i18n.locales:
        is_default = code == config.i18n.default_locale
        translations: dict[str, ContentNode] = {}
        translation_dir = config.translation_dir(code)
        if not is_default and translation_dir.is_dir():
            for node in scan_content(translation_dir, jobs=config.jobs):
                if node.is_page:
                    translations[node.doc_id] = node
        meta = config.i18n.locale_config(code)
        locales.append(
            Locale(
                code=code,
                default=is_default,
                translations=translations,
                label=meta.label,
                direction=meta.direction,
                strings=_load_strings(config.strings_path(code)),
            )
        )
    return locales


def translate_sidebar(sidebar: Sidebar, locale: Locale, view: LocaleView) -> Sidebar:
    """Return ``sidebar`` with labels translated for ``locale``.

    Doc leaves take the translated page's sidebar label when a translation
    exists; category and link labels go through the locale string table.
    """
    if locale.default:
        return sidebar

    def _entry(entry: SidebarEntry) -> SidebarEntry:
        match entry:
            case SidebarDoc(doc_id=doc_id, label=label):
                if doc_id in view.translated:
                    return SidebarDoc(doc_id=doc_id, label=view.nodes[doc_id].sidebar_label)
                return SidebarDoc(doc_id=doc_id, label=locale.translate(label))
            case SidebarLink(label=label, href=href):
                return SidebarLink(label=locale.translate(label), href=href)
            case SidebarCategory():
                return dc.replace(
                    entry,
                    label=locale.translate(entry.label),
                    items=tuple(_entry(child) for child in entry.items),
                )
            case _:
                return entry

    return Sidebar(name=sidebar.name, items=tuple(_entry(item) for item in sidebar.items))


__all__ = [
    "Locale",
    "LocaleComposer",
    "LocaleView",
    "load_locales",
    "translate_sidebar",
]
