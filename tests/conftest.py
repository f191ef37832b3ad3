"""Pytest configuration for tests.

No sys.path hacks - tests should import from installed xmlbind package.
Shared target types live in sample_models.py next to this file.
"""

import pytest

from xmlbind import SchemaRegistry


@pytest.fixture
def registry():
    """A fresh schema registry isolated from the process-wide one."""
    return SchemaRegistry()
