"""Behaviour tests for the onBrokenLinks policy.

These pytest-bdd scenarios build the sample site from ``tests/conftest.py``
after pointing the reference page at a missing route. The feature file
``broken_links.feature`` checks that ``throw`` fails the build with the link
listed in the report, while ``warn`` still emits every route.

Usage
-----
Run ``pytest tests/bdd/test_broken_links.py -v`` after installing the test
dependencies (``pip install -e .[test]``).
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from docsite.config import load_site_config
from docsite.pipeline import BuildResult, build_site

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "broken_links.feature"
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("the sample documentation site")
def given_site(site_dir: Path, scenario_state: dict[str, object]) -> None:
    """Record the sample site's config path."""
    scenario_state["config_path"] = site_dir / "site.yaml"


@given(parsers.parse('the reference page links to "{href}"'))
def given_broken_reference(
    edit_site: typ.Callable[[str, str], Path], href: str
) -> None:
    """Replace the reference page with one linking to ``href``."""
    edit_site("docs/reference.md", f"# Reference\n\nSee [this page]({href}).\n")


@when(parsers.parse('I build the site with the "{policy}" policy'))
def when_build(scenario_state: dict[str, object], policy: str) -> None:
    """Run the pipeline with the requested broken-link policy."""
    config_path = typ.cast("Path", scenario_state["config_path"])
    config = load_site_config(config_path).with_policy(policy)
    scenario_state["result"] = build_site(config)


@then(parsers.parse("the build exits with status {code:d}"))
def then_exit_code(scenario_state: dict[str, object], code: int) -> None:
    """Verify the report's exit code."""
    result = typ.cast("BuildResult", scenario_state["result"])
    assert result.report.exit_code == code, (
        f"expected exit code {code}, got {result.report.exit_code}: {result.report.lines()}"
    )


@then(parsers.parse('the report lists a broken link to "{href}"'))
def then_broken_link_listed(scenario_state: dict[str, object], href: str) -> None:
    """Verify the broken link appears with its source page."""
    result = typ.cast("BuildResult", scenario_state["result"])
    listed = {(item.source, item.target) for item in result.report.broken_links}
    assert ("reference.md", href) in listed, f"expected {href!r} in {listed!r}"
    assert any(href in line for line in result.report.lines())


@then("no route table is emitted")
def then_no_table(scenario_state: dict[str, object]) -> None:
    """Failed builds withhold the route table."""
    result = typ.cast("BuildResult", scenario_state["result"])
    assert result.table is None


@then(parsers.parse('the route table contains "{path}"'))
def then_table_contains(scenario_state: dict[str, object], path: str) -> None:
    """Verify the route table includes ``path``."""
    result = typ.cast("BuildResult", scenario_state["result"])
    assert result.table is not None
    assert result.table.get(path) is not None
