"""Shared fixtures: in-memory store and a quiet config."""

from __future__ import annotations

import pytest

from policy_feed.config import AppConfig
from policy_feed.store import Store


@pytest.fixture
def store():
    db = Store.from_url("sqlite://")
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def cfg():
    config = AppConfig()
    config.logging.console = False
    config.logging.file = False
    config.summary.request_delay_seconds = 0
    return config
