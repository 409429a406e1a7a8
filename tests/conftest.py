"""Shared pytest configuration and fixtures for the test suite.

This module centralizes:
- Path setup (so codewars_leaderboard and scripts import without installing)
- Pytest markers for test categorization (unit, integration)
- A fake Codewars users service built on httpx.MockTransport
- Flask app/client fixtures wired to that fake service
"""
from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import Callable, Dict, List, Union

import httpx
import pytest


# ==============================================================================
# Path Setup
# ==============================================================================

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from codewars_leaderboard.fetcher import UserFetcher  # noqa: E402

BASE_URL = "https://www.codewars.com/api/v1/users"
USERS_PATH = "/api/v1/users/"


# ==============================================================================
# Pytest Configuration
# ==============================================================================

def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "unit: Fast tests with no I/O (mocked dependencies)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests exercising the Flask app or file system",
    )


# ==============================================================================
# Fake users service
# ==============================================================================

Reply = Union[dict, int, Callable[[httpx.Request], httpx.Response]]


class FakeUsersService:
    """Route table for a mocked ``GET /api/v1/users/<name>`` endpoint.

    Each username maps to a JSON body (200), a bare status code, or a
    callable producing the response. Unknown names get 404. Every request
    path is recorded, thread-safely, in ``requests``.
    """

    def __init__(self, replies: Dict[str, Reply]) -> None:
        self.replies = dict(replies)
        self.requests: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request.url.path)
        name = request.url.path[len(USERS_PATH):]
        reply = self.replies.get(name, 404)
        if callable(reply):
            return reply(request)
        if isinstance(reply, int):
            return httpx.Response(reply, json={"success": False, "reason": "not found"})
        return httpx.Response(200, json=reply)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def user_payload() -> Callable[..., dict]:
    """Build a Codewars-shaped user body."""

    def _build(username: str, *, clan=None, overall=None, languages=None) -> dict:
        ranks: dict = {"languages": {}}
        if overall is not None:
            ranks["overall"] = {"rank": -3, "name": "3 kyu", "color": "blue", "score": overall}
        for language, score in (languages or {}).items():
            ranks["languages"][language] = {"rank": -5, "name": "5 kyu", "color": "yellow", "score": score}
        return {"username": username, "clan": clan, "honor": 10, "ranks": ranks}

    return _build


@pytest.fixture
def fake_service() -> Callable[[Dict[str, Reply]], FakeUsersService]:
    return FakeUsersService


@pytest.fixture
def make_fetcher():
    """Create UserFetchers backed by a FakeUsersService; clients closed on teardown."""
    clients: List[httpx.Client] = []

    def _make(service: FakeUsersService, max_workers: int = 4) -> UserFetcher:
        client = service.client()
        clients.append(client)
        return UserFetcher(BASE_URL, http_client=client, max_workers=max_workers)

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def make_client(tmp_path, make_fetcher):
    """Flask test client whose lookups go to the given fake service."""
    from codewars_leaderboard.api.server import create_app

    root = logging.getLogger()
    handlers_before = root.handlers[:]
    level_before = root.level

    def _make(service: FakeUsersService):
        app = create_app({
            "TESTING": True,
            "USER_FETCHER": make_fetcher(service),
            "LOG_DIR": str(tmp_path / "logs"),
        })
        return app.test_client()

    yield _make

    # create_app attaches a rotating api.log handler to the root logger
    for handler in root.handlers[:]:
        if handler not in handlers_before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level_before)
