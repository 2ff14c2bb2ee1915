"""Shared fixtures for active users tests."""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from helpers import FakeStore, make_record, make_user

TODAY = date(2024, 1, 10)


@pytest.fixture()
def today() -> date:
    """Fixed 'today' (a Wednesday) so windows are reproducible."""
    return TODAY


@pytest.fixture()
def fixed_today() -> date:
    """Pin the report's notion of today to TODAY for code that defaults it."""
    with patch("active_users.utc_today", return_value=TODAY):
        yield TODAY


@pytest.fixture()
def sample_records() -> list[dict]:
    """Sparse, unordered records inside the 7-day window ending at TODAY."""
    ada = make_user("Ada", "Lovelace", "ada@example.com")
    alan = make_user("Alan", "Turing", "alan@example.com")
    return [
        make_record(date(2024, 1, 8), [ada, alan]),
        make_record(date(2024, 1, 4), [alan]),
    ]


@pytest.fixture()
def store(sample_records) -> FakeStore:
    return FakeStore(sample_records)


@pytest.fixture()
def client(store):
    """TestClient for app.py backed by a FakeStore.

    Patches get_store and utc_today so no MongoDB is needed, and resets the
    module-level cache between tests.
    """
    import app as app_module

    with patch.object(app_module, "_cache", {}):
        with patch("app.get_store", return_value=store):
            with patch("app.utc_today", return_value=TODAY):
                with TestClient(app_module.app) as tc:
                    yield tc
