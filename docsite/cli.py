"""Cyclopts CLI entrypoint for building and checking documentation sites.

The ``docsite`` console script loads ``site.yaml``, runs the staged build and
either writes the static site (``docsite build``) or only reports what the
build would find (``docsite check``). Both commands exit non-zero when the
build fails, for example on a broken link under the ``throw`` policy, so the
script can gate CI jobs.

Examples
--------
Build the site described by ``site.yaml`` in the current directory:

>>> from docsite.cli import main
>>> main()  # doctest: +SKIP

Check links without writing output, downgrading broken links to warnings:

>>> from docsite.cli import app
>>> app.run(["check", "--on-broken-links", "warn"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_FILENAME
from .config import SiteConfigError, load_site_config
from .pipeline import build_site
from .writer import SiteWriter

if typ.TYPE_CHECKING:
    from .config import SiteConfig
    from .pipeline import BuildResult

DEFAULT_CONFIG = Path(DEFAULT_CONFIG_FILENAME)

app = App(name="docsite", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(verbose: bool) -> None:
    """Send pipeline log records to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(config: Path, on_broken_links: str | None) -> SiteConfig:
    """Load the site configuration and apply a policy override."""
    try:
        site_config = load_site_config(config)
        if on_broken_links:
            site_config = site_config.with_policy(on_broken_links)
    except (FileNotFoundError, SiteConfigError) as exc:
        print(f"error: {exc}")
        raise SystemExit(1) from exc
    return site_config


def _report(result: BuildResult) -> None:
    """Print diagnostics and exit non-zero for failed builds."""
    for line in result.report.lines():
        print(line)
    if not result.report.ok:
        raise SystemExit(result.report.exit_code)


@app.command(help="Build the documentation site into static HTML.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
    on_broken_links: typ.Annotated[
        str | None,
        Parameter(
            help="Override onBrokenLinks (throw, warn or ignore)",
            env_var="INPUT_ON_BROKEN_LINKS",
        ),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log every build stage", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Build the site and write every route to the output directory.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    output_dir : Path or None, optional
        Output directory; defaults to ``outDir`` from the configuration.
    on_broken_links : str or None, optional
        Broken-link policy overriding the configured ``onBrokenLinks``.
    verbose : bool, optional
        Emit debug logging for each stage transition.

    Raises
    ------
    SystemExit
        With status 1 when the configuration is invalid or the build fails.
    """
    _configure_logging(verbose)
    site_config = _load(config, on_broken_links)
    result = build_site(site_config)
    _report(result)
    written = SiteWriter(site_config, result, output_dir=output_dir).run()
    for path in written:
        print(f"wrote {_format_path(path)}")


@app.command(help="Run the build without writing output and report problems.")
def check(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    on_broken_links: typ.Annotated[
        str | None,
        Parameter(
            help="Override onBrokenLinks (throw, warn or ignore)",
            env_var="INPUT_ON_BROKEN_LINKS",
        ),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log every build stage", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Validate content, sidebars and links without emitting files."""
    _configure_logging(verbose)
    site_config = _load(config, on_broken_links)
    result = build_site(site_config)
    _report(result)
    count = len(result.table.routes) if result.table is not None else 0
    print(f"ok: {count} routes")


def main() -> None:
    """Run the docsite CLI application."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
