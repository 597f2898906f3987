"""Shared fixtures for repository tests."""

import pytest

from debtdesk.core.config import set_config
from debtdesk.core.retry import RetryPolicy
from debtdesk.services.repository import Repository
from debtdesk.storage import InMemoryRecordStore, InMemoryRemoteStoreClient


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Isolate tests from DEBTDESK_* variables and the global config."""
    for name in (
        "DEBTDESK_CONFIG",
        "DEBTDESK_REMOTE_URL",
        "DEBTDESK_REMOTE_API_KEY",
        "DEBTDESK_REMOTE_TIMEOUT",
        "DEBTDESK_LOCAL_BACKEND",
        "DEBTDESK_DATABASE_URL",
        "DEBTDESK_LOG_LEVEL",
        "DEBTDESK_MAX_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def remote():
    return InMemoryRemoteStoreClient()


@pytest.fixture
def repo(store, remote):
    return Repository(store=store, remote=remote, retry_policy=RetryPolicy.none())
