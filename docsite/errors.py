"""Exception hierarchy raised by the docsite build pipeline.

Every failure carries the pipeline stage that detected it and, where one
exists, the offending path or reference so diagnostics never collapse into a
generic "build failed" message.

Examples
--------
>>> from docsite.errors import SidebarError
>>> err = SidebarError("Unknown doc 'missing-doc'.", path="missing-doc")
>>> err.stage, err.path
('sidebar', 'missing-doc')
>>> str(err)
"[sidebar] Unknown doc 'missing-doc'."
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from .links import BrokenLink


class DocsiteError(Exception):
    """Base class for terminal build failures."""

    stage: typ.ClassVar[str] = "build"
    kind: typ.ClassVar[str] = "DocsiteError"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class SiteConfigError(DocsiteError, ValueError):
    """Raised when the site configuration is invalid or incomplete."""

    stage = "config"
    kind = "SiteConfigError"


class ScanError(DocsiteError):
    """Raised when the content tree is missing or a file cannot be parsed."""

    stage = "scan"
    kind = "ScanError"


class SidebarError(DocsiteError):
    """Raised for dangling sidebar references or cyclic definitions."""

    stage = "sidebar"
    kind = "SidebarError"


class LocaleError(DocsiteError):
    """Raised when the locale set has no default, several, or bad translations."""

    stage = "locale"
    kind = "LocaleError"


class LinkError(DocsiteError):
    """Raised under the ``throw`` policy when internal links do not resolve."""

    stage = "links"
    kind = "LinkError"

    def __init__(self, broken: typ.Sequence[BrokenLink]) -> None:
        self.broken = list(broken)
        lines = [f"  {item.source}: {item.target}" for item in self.broken]
        message = f"{len(self.broken)} broken link(s) found:\n" + "\n".join(lines)
        first = self.broken[0].target if self.broken else None
        super().__init__(message, path=first)


class RouteError(DocsiteError):
    """Raised when two pages claim the same route path."""

    stage = "emit"
    kind = "RouteError"


class BuildCancelled(DocsiteError):
    """Raised when a build is aborted between stages."""

    stage = "cancelled"
    kind = "BuildCancelled"


__all__ = [
    "BuildCancelled",
    "DocsiteError",
    "LinkError",
    "LocaleError",
    "RouteError",
    "ScanError",
    "SidebarError",
    "SiteConfigError",
]
