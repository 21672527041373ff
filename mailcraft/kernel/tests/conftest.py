"""
Mailcraft kernel test configuration.

Shared fixtures: a fixed-id empty template and a sequential id factory, so
assertions can name node ids instead of fishing them out of the tree.
PostgresStorage tests that need DATABASE_URL are skipped automatically when not set.
"""

import itertools

import pytest

from mailcraft.kernel.defaults import empty_template

TS = "2026-01-15T10:00:00Z"


@pytest.fixture
def empty():
    """Fresh empty template with a stable id and timestamp."""
    return empty_template(template_id="tpl_test", timestamp=TS)


@pytest.fixture
def ids():
    """Id factory yielding n1, n2, n3, ..."""
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"
