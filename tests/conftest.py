"""
Pytest configuration and shared fixtures.
"""

import json
from typing import Any, Dict, List

import pytest
import requests

from jobrank.database import init_database, get_session
from jobrank.models import Posting


def _make_response(status: int = 200, payload: Any = None, body: str = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    if body is None:
        body = json.dumps(payload if payload is not None else {})
    resp._content = body.encode("utf-8")
    resp.encoding = "utf-8"
    resp.headers["Content-Type"] = "application/json"
    resp.url = "https://api.hh.ru/vacancies"
    return resp


class FakeSession:
    """Stands in for requests.Session: replays queued responses, records calls.

    Queue entries are Responses or exceptions (raised instead of returned).
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, params=None, headers=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "params": dict(params or {}),
            "headers": dict(headers or {}),
            "timeout": timeout,
        })
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url} {params}")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    def close(self):
        pass


class FakeModel:
    """Generative model double returning a fixed reply text."""

    class _Reply:
        def __init__(self, text):
            self.text = text

    def __init__(self, text: str = "[]", error: Exception = None):
        self.text = text
        self.error = error
        self.prompts: List[str] = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self._Reply(self.text)


class Sleeper:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fake_model_cls():
    return FakeModel


@pytest.fixture
def sleeper() -> Sleeper:
    return Sleeper()


@pytest.fixture
def make_item():
    """Factory for one listing-endpoint item."""
    def _make(vacancy_id: int, name: str = "Engineer", area_id: int = 1, schedule_id: str = "fullDay"):
        return {
            "id": str(vacancy_id),
            "name": name,
            "area": {"id": str(area_id), "name": "Moscow"},
            "schedule": {"id": schedule_id},
            "alternate_url": f"https://hh.ru/vacancy/{vacancy_id}",
            "published_at": "2024-05-01T10:00:00+0300",
        }
    return _make


@pytest.fixture
def make_posting():
    """Factory for a posting that is already normalized."""
    def _make(posting_id: int, title="Engineer", area_id: int = 1, schedule_id: str = "A"):
        return Posting(
            id=posting_id,
            raw_title=f"Senior {title}" if title else "Untitled",
            area_id=area_id,
            schedule_id=schedule_id,
            normalized_title=title,
        )
    return _make


@pytest.fixture
def db_session(tmp_path):
    """Create a temporary database and return a session."""
    engine = init_database(f"sqlite:///{tmp_path / 'test.db'}")
    session = get_session(engine)
    yield session
    session.close()
