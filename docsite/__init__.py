"""Build static, multi-locale documentation sites from Markdown trees.

This package exposes the CLI entry points used by ``docsite build`` and
``docsite check`` to scan a docs tree, resolve sidebars and translations,
validate links and emit the site's route table.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from docsite import main
>>> main()  # doctest: +SKIP
>>> from docsite import app
>>> app.name  # doctest: +SKIP
('docsite',)
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
