"""Common literal values used across docsite.

These constants keep output filenames centralized so the writer, CLI and
tests can import the same values without drifting. Intended for internal use
within the docsite package.

Examples
--------
>>> from docsite import _constants
>>> _constants.MANIFEST_FILENAME
'routes.json'
"""

MANIFEST_FILENAME = "routes.json"
PAGE_FILENAME = "index.html"
DEFAULT_CONFIG_FILENAME = "site.yaml"
