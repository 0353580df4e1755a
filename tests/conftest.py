"""
Shared pytest fixtures for taskpool tests.

- Settings cache and ``TASKPOOL_*`` environment isolation
- Logging context cleanup
- A recorder for inter-pass sleeps
"""

import asyncio
import os

import pytest
import structlog

from taskpool.core.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Drop TASKPOOL_* env vars and the cached settings around every test."""
    for key in list(os.environ):
        if key.startswith("TASKPOOL_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def sleep_calls(monkeypatch):
    """Record every asyncio.sleep delay without actually waiting."""
    calls: list[float] = []
    real_sleep = asyncio.sleep

    async def _fake_sleep(delay, *args, **kwargs):
        calls.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", _fake_sleep)
    return calls
