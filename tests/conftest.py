"""
Shared fixtures: a throwaway SQLite store per test and a record factory.
"""

import pytest

import config
from config import reload_settings
from db_engine import init_db, reset_engine
from models import AssetRecord


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Point the engine at a fresh database file for the duration of a test."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.delenv("DEFAULT_CURRENCY", raising=False)
    reload_settings()
    reset_engine()
    init_db()
    yield tmp_path / 'test.db'
    reset_engine()
    config._settings = None


def make_record(**overrides) -> AssetRecord:
    fields = dict(
        date="2024-01-01",
        asset_type="Stock",
        name="FFB",
        action="Buy",
        amount=1000.0,
        status="Active",
        currency="MYR",
        remarks="",
    )
    fields.update(overrides)
    return AssetRecord(**fields)


@pytest.fixture
def record_factory():
    return make_record
