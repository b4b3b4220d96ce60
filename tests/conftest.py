"""
Pytest configuration and shared fixtures

Provides a fake GitHub served through httpx.MockTransport, a fixed clock
and a repository handle.
"""

from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from critscore.adapters.github import GitHubClient
from critscore.config import Settings
from critscore.models.schemas import RepositoryHandle
from fakes import FakeGitHub

NOW = datetime(2026, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed 'current' time for age-based metrics"""
    return NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def settings():
    """Default settings with retry delays removed"""
    return Settings(dependents_retry_delay=0.0)


@pytest.fixture
def repo_handle(now):
    """A repository created ten years before NOW"""
    return RepositoryHandle(
        owner="acme",
        name="widget",
        language="Python",
        created_at=now.replace(year=now.year - 10),
        html_url="https://github.com/acme/widget",
    )


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest_asyncio.fixture
async def http_client(fake_github):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_github)) as client:
        yield client


@pytest.fixture
def github_client(http_client):
    return GitHubClient(token="test-token", client=http_client)


@pytest.fixture
def no_sleep():
    """Async sleep replacement recording requested durations"""
    slept: list[float] = []

    async def _sleep(seconds: float) -> None:
        slept.append(seconds)

    _sleep.slept = slept
    return _sleep
