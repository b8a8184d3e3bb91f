"""Shared test fixtures for the pishock test suite.

Provides common fixtures used across the unit tests: credential pairs,
a recording browser stand-in, canned REST API responses, and a mock
Redis client.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from pishock.domain.models import Credentials
from pishock.login.result import LoginResultSlot


# ---------------------------------------------------------------------------
# Login Fixtures
# ---------------------------------------------------------------------------


class RecordingBrowser:
    """Stands in for webbrowser.open; records every URL it is asked to open."""

    def __init__(self, opened: bool = True) -> None:
        self.urls: list[str] = []
        self._opened = opened

    def __call__(self, url: str) -> bool:
        self.urls.append(url)
        return self._opened


@pytest.fixture
def browser() -> RecordingBrowser:
    return RecordingBrowser()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(user_id=42, token="abc")


@pytest.fixture
def result_slot() -> LoginResultSlot:
    return LoginResultSlot()


# ---------------------------------------------------------------------------
# REST API Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_devices_response() -> list[dict[str, Any]]:
    """GetUserDevices body: two hubs, one without a shocker list."""
    return [
        {
            "clientId": 1001,
            "name": "Desk hub",
            "userId": 42,
            "username": "alice",
            "shockers": [
                {"name": "Left", "shockerId": 501, "isPaused": False},
                {"name": None, "shockerId": 502, "isPaused": True},
            ],
        },
        {
            "clientId": 1002,
            "name": None,
            "userId": 42,
            "username": "alice",
            "shockers": None,
        },
    ]


@pytest.fixture
def share_codes_response() -> dict[str, list[int]]:
    """GetShareCodesByOwner body: share id 7 listed twice."""
    return {"bob": [7, 8], "carol": [7, 9]}


@pytest.fixture
def shared_shockers_response() -> dict[str, list[dict[str, Any]]]:
    """GetShockersByShareIds body."""
    return {
        "bob": [
            {
                "shareId": 7,
                "clientId": 2001,
                "shockerId": 601,
                "shockerName": "Bob's collar",
                "isPaused": False,
                "maxIntensity": 40,
                "canContinuous": True,
                "canShock": False,
                "canVibrate": True,
                "canBeep": True,
                "canLog": False,
                "shareCode": "ABC123",
            }
        ],
        "carol": [
            {
                "shareId": 9,
                "clientId": 3001,
                "shockerId": 701,
                "shockerName": None,
                "isPaused": True,
                "maxIntensity": 100,
                "canShock": True,
                "shareCode": None,
            }
        ],
    }


# ---------------------------------------------------------------------------
# Broker Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_redis() -> AsyncMock:
    """A mock redis.asyncio.Redis client that delivers to one receiver."""
    mock = AsyncMock()
    mock.ping.return_value = True
    mock.publish.return_value = 1
    return mock
