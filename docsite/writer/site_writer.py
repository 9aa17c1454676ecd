"""Write an emitted route table to a static file tree.

:class:`SiteWriter` consumes a successful :class:`~docsite.pipeline.BuildResult`
and renders every page route through Jinja templates, copies assets to their
route paths, and writes the ``routes.json`` manifest. Rendering is driven
purely by the route table and the locale views, so two builds of the same
inputs write the same pages.

Example
-------
>>> from pathlib import Path
>>> from docsite.config import load_site_config
>>> from docsite.pipeline import build_site
>>> from docsite.writer import SiteWriter
>>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> result = build_site(config)  # doctest: +SKIP
>>> SiteWriter(config, result).run()  # doctest: +SKIP
[PosixPath('build/index.html'), ...]
"""

from __future__ import annotations

import logging
import shutil
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from docsite._constants import MANIFEST_FILENAME, PAGE_FILENAME
from docsite.routes import join_route
from docsite.theme import code_styles

from .link_rewriter import RouteLinkExtension
from .renderer import DocumentRenderer, toc_levels

if typ.TYPE_CHECKING:
    from docsite.config import SiteConfig
    from docsite.pipeline import BuildResult
    from docsite.routes import RouteDescriptor, RouteTable

logger = logging.getLogger(__name__)


class SiteWriter:
    """Render route descriptors into HTML files and copy assets."""

    def __init__(
        self,
        config: SiteConfig,
        result: BuildResult,
        *,
        output_dir: Path | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the writer with a successful build result.

        Parameters
        ----------
        config : SiteConfig
            Configuration the build ran with.
        result : BuildResult
            Result whose report is ``ok`` and whose table is populated.
        output_dir : Path, optional
            Override for the output directory; defaults to ``config.output_dir``
            resolved against the site directory.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package
            templates.

        Raises
        ------
        ValueError
            If the build failed, since failed builds are never emitted.
        """
        if not result.report.ok or result.table is None or result.theme is None:
            msg = "Cannot write a site from a failed build."
            raise ValueError(msg)
        self.config = config
        self.result = result
        self.table: RouteTable = result.table
        self.output_dir = output_dir or (config.site_dir / config.output_dir)
        default_templates = Path(__file__).resolve().parents[1] / "templates"
        self.templates_dir = templates_dir or default_templates
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        light, dark = code_styles(result.theme)
        self.renderer = DocumentRenderer(light, dark, levels=toc_levels(result.theme))
        self._permalinks = self._index_permalinks()

    def run(self) -> list[Path]:
        """Write every route and the manifest, returning the written paths.

        Returns
        -------
        list[Path]
            Files written, ordered by route path with the manifest last.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stylesheet = self.renderer.stylesheet
        written: list[Path] = []
        for path, descriptor in self.table.routes.items():
            match descriptor.kind:
                case "asset":
                    target = self._copy_asset(descriptor)
                case "page":
                    target = self._write_page(descriptor, stylesheet)
                case _:
                    target = self._write_doc(descriptor, stylesheet)
            if target is not None:
                written.append(target)
            logger.debug("Wrote route %s", path)
        manifest = self.output_dir / MANIFEST_FILENAME
        manifest.write_bytes(self.table.to_json())
        written.append(manifest)
        return written

    def _index_permalinks(self) -> dict[tuple[str, str], dict[str, str]]:
        """Group resolved content links by page for the link rewriter."""
        grouped: dict[tuple[str, str], dict[str, str]] = {}
        report = self.result.links
        if report is None:
            return grouped
        base = self.config.base_url.rstrip("/")
        for target, resolved in report.resolved.items():
            if target.origin != "content" or not resolved.startswith("/"):
                continue
            permalink = base + resolved if resolved != "/" else base + "/"
            grouped.setdefault((target.locale, target.source), {})[target.href] = permalink
        return grouped

    def _output_path(self, route_path: str) -> Path:
        """Return the HTML file that serves ``route_path``."""
        relative = route_path.strip("/")
        if not relative:
            return self.output_dir / PAGE_FILENAME
        return self.output_dir / relative / PAGE_FILENAME

    def _copy_asset(self, descriptor: RouteDescriptor) -> Path | None:
        """Copy an asset file to its route path."""
        source = descriptor.source or ""
        candidates: list[Path] = []
        if descriptor.path == join_route(self.config.docs.route_base_path, source):
            candidates.append(self.config.docs_dir / source)
        if descriptor.path == join_route(source):
            candidates.extend(directory / source for directory in self.config.static_dirs)
        for candidate in candidates:
            if candidate.is_file():
                target = self.output_dir / descriptor.path.lstrip("/")
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(candidate, target)
                return target
        logger.warning("Asset for route %s has no source file", descriptor.path)
        return None

    def _render(self, template_name: str, descriptor: RouteDescriptor, **context: typ.Any) -> str:
        """Render ``template_name`` with the shared page context."""
        chrome = self.table.locales[descriptor.locale]
        html = self.env.get_template(template_name).render(
            site=self.table,
            page=descriptor,
            chrome=chrome,
            color_mode=self.result.theme.aspect("colorMode") if self.result.theme else {},
            favicon=self.config.favicon,
            base_url=self.config.base_url,
            **context,
        )
        if not html.endswith("\n"):
            html += "\n"
        return html

    def _write_page(self, descriptor: RouteDescriptor, stylesheet: str) -> Path:
        """Render the synthetic landing page for a locale."""
        target = self._output_path(descriptor.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            self._render("landing_page.jinja", descriptor, pygments_css=stylesheet),
            encoding="utf-8",
        )
        return target

    def _write_doc(self, descriptor: RouteDescriptor, stylesheet: str) -> Path:
        """Render a documentation page with its sidebar and pagination."""
        view = self.result.views[descriptor.locale]
        node = view.nodes[descriptor.doc_id or ""]
        rendered = self.renderer.render(
            node.body,
            link_extension=RouteLinkExtension(
                self._permalinks.get((descriptor.locale, node.source), {})
            ),
        )
        chrome = self.table.locales[descriptor.locale]
        sidebar = chrome.sidebars.get(descriptor.sidebar or "", [])
        target = self._output_path(descriptor.path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            self._render(
                "doc_page.jinja",
                descriptor,
                content_html=rendered.html,
                toc=rendered.toc,
                sidebar=sidebar,
                pygments_css=stylesheet,
            ),
            encoding="utf-8",
        )
        return target


__all__ = ["SiteWriter"]
