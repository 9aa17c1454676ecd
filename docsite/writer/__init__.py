"""Utilities for rendering and writing an emitted docsite route table."""

from .link_rewriter import RouteLinkExtension
from .renderer import DocumentRenderer, RenderedDocument, TocEntry
from .site_writer import SiteWriter

__all__ = [
    "DocumentRenderer",
    "RenderedDocument",
    "RouteLinkExtension",
    "SiteWriter",
    "TocEntry",
]
