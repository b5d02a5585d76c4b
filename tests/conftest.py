"""
Pytest configuration for unit tests.

Driver fakes live in fakes.py; no live database is needed.
"""

import pytest

from unidb.db.session import DatabaseSessions


@pytest.fixture
def sessions() -> DatabaseSessions:
    return DatabaseSessions()
