import random
from datetime import date

import pytest

from synergy import notifications
from synergy.data_manager import create_profile
from synergy.db_sqlite import SqliteStore

TODAY = date(2024, 3, 15)


@pytest.fixture
def store(tmp_path):
    return SqliteStore(str(tmp_path / "synergy.db"))


@pytest.fixture
def user(store):
    create_profile("u1", display_name="Jin", email="jin@example.com", store=store)
    return "u1"


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture(autouse=True)
def clean_handlers():
    notifications.clear()
    yield
    notifications.clear()
