"""Run the documentation build as an explicit sequence of stages.

:class:`SiteBuilder` drives ``Scanning → SidebarBuilding → LocaleComposing →
ThemeComposing → LinkValidating → Emitting → Done``. Any pipeline error moves
the build to ``Failed`` and is recorded in the :class:`BuildReport` together
with the stage that detected it; nothing from a failed build is emitted. A
builder instance may be run repeatedly, and every run restarts from
``Scanning`` with fresh state.

Example
-------
>>> from pathlib import Path
>>> from docsite.config import load_site_config
>>> from docsite.pipeline import SiteBuilder
>>> result = SiteBuilder(load_site_config(Path("site.yaml"))).run()  # doctest: +SKIP
>>> result.report.exit_code  # doctest: +SKIP
0
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import typing as typ

from .errors import BuildCancelled, DocsiteError, LinkError
from .links import (
    BrokenLink,
    LinkTarget,
    LinkValidator,
    extract_content_links,
    extract_sidebar_links,
    extract_theme_links,
)
from .locales import LocaleComposer, LocaleView, load_locales, translate_sidebar
from .routes import RouteEmitter, RouteTable, locale_prefix, plan_routes
from .scanner import ContentNode, scan_content, scan_static
from .sidebar import Sidebar, SidebarResolver
from .theme import ThemeConfig, compose_site_theme

if typ.TYPE_CHECKING:
    import threading

    from .config import SiteConfig
    from .links import LinkReport
    from .locales import Locale
    from .routes import RoutePlan

logger = logging.getLogger(__name__)


class BuildStage(enum.Enum):
    """States of the build pipeline."""

    SCANNING = "Scanning"
    SIDEBAR_BUILDING = "SidebarBuilding"
    LOCALE_COMPOSING = "LocaleComposing"
    THEME_COMPOSING = "ThemeComposing"
    LINK_VALIDATING = "LinkValidating"
    EMITTING = "Emitting"
    DONE = "Done"
    FAILED = "Failed"


@dc.dataclass(slots=True, frozen=True)
class BuildFailure:
    """Terminal failure recorded in the report."""

    kind: str
    stage: BuildStage
    message: str
    path: str | None


@dc.dataclass(slots=True)
class BuildReport:
    """Outcome of one build run."""

    stage: BuildStage = BuildStage.SCANNING
    history: list[BuildStage] = dc.field(default_factory=list)
    failure: BuildFailure | None = None
    broken_links: list[BrokenLink] = dc.field(default_factory=list)
    external_links: list[str] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when the build reached ``Done``."""
        return self.failure is None and self.stage is BuildStage.DONE

    @property
    def exit_code(self) -> int:
        """Return the process exit code for this build (0 on success)."""
        return 0 if self.ok else 1

    def lines(self) -> list[str]:
        """Return human-readable diagnostic lines."""
        failed_on_links = self.failure is not None and self.failure.kind == "LinkError"
        level = "error" if failed_on_links else "warning"
        lines = [
            f"{level}: broken link in {item.source} [{item.locale}]: {item.target}"
            for item in self.broken_links
        ]
        if self.failure is not None:
            where = f" ({self.failure.path})" if self.failure.path else ""
            lines.append(
                f"error: {self.failure.kind} during {self.failure.stage.value}{where}: "
                f"{self.failure.message}"
            )
        return lines


@dc.dataclass(slots=True)
class BuildResult:
    """Route table (when successful) together with the build report."""

    report: BuildReport
    table: RouteTable | None = None
    views: dict[str, LocaleView] = dc.field(default_factory=dict)
    theme: ThemeConfig | None = None
    links: LinkReport | None = None


@dc.dataclass(slots=True)
class _BuildState:
    """Intermediate products of a single run; discarded on failure."""

    nodes: list[ContentNode] = dc.field(default_factory=list)
    static_assets: list[ContentNode] = dc.field(default_factory=list)
    locales: list[Locale] = dc.field(default_factory=list)
    sidebars: dict[str, Sidebar] = dc.field(default_factory=dict)
    views: dict[str, LocaleView] = dc.field(default_factory=dict)
    localized_sidebars: dict[str, dict[str, Sidebar]] = dc.field(default_factory=dict)
    theme: ThemeConfig | None = None
    plan: RoutePlan | None = None
    link_report: LinkReport | None = None
    table: RouteTable | None = None


class SiteBuilder:
    """Drive the staged build for one site configuration."""

    def __init__(
        self, config: SiteConfig, *, cancel_event: threading.Event | None = None
    ) -> None:
        """Store the configuration used by every run.

        Parameters
        ----------
        config : SiteConfig
            Explicit configuration passed to every stage.
        cancel_event : threading.Event, optional
            When set, the build aborts before entering the next stage.
        """
        self.config = config
        self.cancel_event = cancel_event

    def run(self) -> BuildResult:
        """Run every stage and return the result.

        Pipeline errors never escape this method; they are recorded in the
        report and the route table is withheld.
        """
        report = BuildReport()
        state = _BuildState()
        stages: list[tuple[BuildStage, typ.Callable[[_BuildState, BuildReport], None]]] = [
            (BuildStage.SCANNING, self._scan),
            (BuildStage.SIDEBAR_BUILDING, self._build_sidebars),
            (BuildStage.LOCALE_COMPOSING, self._compose_locales),
            (BuildStage.THEME_COMPOSING, self._compose_theme),
            (BuildStage.LINK_VALIDATING, self._validate_links),
            (BuildStage.EMITTING, self._emit),
        ]
        try:
            for stage, step in stages:
                self._enter(report, stage)
                step(state, report)
        except DocsiteError as exc:
            if isinstance(exc, LinkError):
                report.broken_links = list(exc.broken)
            report.failure = BuildFailure(
                kind=exc.kind, stage=report.stage, message=exc.message, path=exc.path
            )
            self._transition(report, BuildStage.FAILED)
            logger.debug("Build failed in %s: %s", report.failure.stage.value, exc)
            return BuildResult(report=report)

        self._transition(report, BuildStage.DONE)
        return BuildResult(
            report=report,
            table=state.table,
            views=state.views,
            theme=state.theme,
            links=state.link_report,
        )

    def _enter(self, report: BuildReport, stage: BuildStage) -> None:
        """Move to ``stage`` unless the build was cancelled."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            msg = f"Build cancelled before {stage.value}."
            raise BuildCancelled(msg)
        self._transition(report, stage)

    @staticmethod
    def _transition(report: BuildReport, stage: BuildStage) -> None:
        """Record a state transition."""
        logger.debug("Build stage: %s", stage.value)
        report.stage = stage
        report.history.append(stage)

    def _scan(self, state: _BuildState, report: BuildReport) -> None:
        jobs = self.config.jobs
        state.nodes = scan_content(self.config.docs_dir, jobs=jobs)
        for directory in self.config.static_dirs:
            state.static_assets.extend(scan_static(directory, jobs=jobs))
        state.locales = load_locales(self.config)

    def _build_sidebars(self, state: _BuildState, report: BuildReport) -> None:
        resolver = SidebarResolver(
            state.nodes,
            self.config.docs.sidebars,
            auto_sidebar=self.config.docs.auto_sidebar,
        )
        state.sidebars = resolver.resolve()

    def _compose_locales(self, state: _BuildState, report: BuildReport) -> None:
        state.views = LocaleComposer(state.locales, state.nodes).compose()
        state.localized_sidebars = {
            code: {
                name: translate_sidebar(sidebar, view.locale, view)
                for name, sidebar in state.sidebars.items()
            }
            for code, view in state.views.items()
        }

    def _compose_theme(self, state: _BuildState, report: BuildReport) -> None:
        state.theme = compose_site_theme(self.config.theme_layers())

    def _validate_links(self, state: _BuildState, report: BuildReport) -> None:
        theme = state.theme
        if theme is None:
            msg = "Theme must be composed before links are validated."
            raise RuntimeError(msg)
        doc_assets = [node for node in state.nodes if node.kind == "asset"]
        plan = state.plan = plan_routes(
            self.config,
            state.views,
            doc_assets=doc_assets,
            static_assets=state.static_assets,
        )
        targets = self._collect_targets(state, plan, theme)
        validator = LinkValidator(
            plan.paths(),
            policy=self.config.on_broken_links,
            base_url=self.config.base_url,
            doc_routes=plan.doc_routes,
            file_routes=plan.file_routes,
            jobs=self.config.jobs,
        )
        state.link_report = validator.validate(targets)
        report.broken_links = state.link_report.broken
        report.external_links = state.link_report.external

    def _collect_targets(
        self, state: _BuildState, plan: RoutePlan, theme: ThemeConfig
    ) -> list[LinkTarget]:
        """Gather every link target across locales."""
        default_code = self.config.i18n.default_locale
        targets: list[LinkTarget] = []
        for code, view in state.views.items():
            prefix = locale_prefix(code, default_code)
            for doc_id in sorted(view.nodes):
                node = view.nodes[doc_id]
                targets.extend(
                    extract_content_links(
                        node,
                        locale=code,
                        locale_prefix=prefix,
                        route_path=plan.doc_routes[(code, doc_id)],
                    )
                )
            targets.extend(extract_theme_links(theme, locale=code, locale_prefix=prefix))
            targets.extend(
                extract_sidebar_links(
                    state.localized_sidebars[code], locale=code, locale_prefix=prefix
                )
            )
        return targets

    def _emit(self, state: _BuildState, report: BuildReport) -> None:
        plan, theme, links = state.plan, state.theme, state.link_report
        if plan is None or theme is None or links is None:
            msg = "Routes, theme and links must be resolved before emitting."
            raise RuntimeError(msg)
        emitter = RouteEmitter(
            plan,
            config=self.config,
            theme=theme,
            views=state.views,
            sidebars=state.localized_sidebars,
            links=links,
        )
        state.table = emitter.emit()


def build_site(config: SiteConfig, **kwargs: typ.Any) -> BuildResult:
    """Convenience wrapper running a fresh :class:`SiteBuilder`."""
    return SiteBuilder(config, **kwargs).run()


__all__ = [
    "BuildFailure",
    "BuildReport",
    "BuildResult",
    "BuildStage",
    "SiteBuilder",
    "build_site",
]
