"""Test configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lastfm_embed.lastfm_client import LastFMClient
from lastfm_embed.response_cache import MemoryResponseCache
from tests.fixtures.lastfm_payloads import FakeSession


@pytest.fixture()
def session():
    """Fake requests.Session with no routes; tests add what they need."""
    return FakeSession()


@pytest.fixture()
def cache():
    return MemoryResponseCache(max_size=16)


@pytest.fixture()
def client(session, cache):
    """Last.fm client wired to the fake session, with retries disabled."""
    return LastFMClient(
        api_key="test-key",
        session=session,
        cache=cache,
        timeout=1.0,
        max_retries=0,
        retry_initial_delay=0.0,
    )
