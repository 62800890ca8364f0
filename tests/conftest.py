"""
Shared fixtures: an in-memory stand-in for a FreeIPA server.

``FakeSession`` replaces requests.Session inside IPAClient. It routes POSTs
to ``FakeIPAServer`` which behaves like the real endpoints:

- /ipa/session/login_password: user "test" / "testpassword" opens a session,
  anything else is a 401 with X-IPA-Rejection-Reason: invalid-password.
- /ipa/session/login_kerberos: succeeds unless ``kerberos_status`` is changed.
- /ipa/session/json: 401 without a session, otherwise answers user_add,
  user_find and ping from tests/data/, any other method gets the
  JSONError envelope.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from requests.structures import CaseInsensitiveDict

DATA_DIR = Path(__file__).parent / "data"

HOST = "ipa.example.com"
BASE = f"https://{HOST}/ipa"


def load_fixture(name: str) -> bytes:
    return (DATA_DIR / name).read_bytes()


class FakeResponse:
    def __init__(self, status_code: int, content: bytes = b"", headers: dict | None = None) -> None:
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class FakeIPAServer:
    METHOD_FIXTURES = {
        "user_add": "user_add_response.json",
        "user_find": "user_find_response.json",
        "ping": "ping_response.json",
    }

    def __init__(self) -> None:
        self.session_open = False
        self.calls: list[dict] = []
        self.rejection_reason = "invalid-password"
        self.kerberos_status = 200
        # Forced status codes for the next /session/json answers (FIFO).
        self.json_statuses: list[int] = []
        # Forced status codes for the next login answers (FIFO).
        self.login_statuses: list[int] = []

    def expire(self) -> None:
        self.session_open = False

    def count(self, endpoint: str) -> int:
        return sum(1 for c in self.calls if c["url"].endswith(endpoint))

    def handle(self, url: str, data=None, headers=None, auth=None) -> FakeResponse:
        self.calls.append({"url": url, "data": data, "headers": dict(headers or {}), "auth": auth})
        path = url[len(BASE):]

        if path == "/session/login_password":
            if self.login_statuses:
                status = self.login_statuses.pop(0)
                if status != 200:
                    return FakeResponse(status, b"", {"X-IPA-Rejection-Reason": self.rejection_reason})
            form = data or {}
            if form.get("user") == "test" and form.get("password") == "testpassword":
                self.session_open = True
                return FakeResponse(200, b"")
            return FakeResponse(
                401,
                b"<html><body><h1>Invalid Authentication</h1></body></html>",
                {"X-IPA-Rejection-Reason": self.rejection_reason},
            )

        if path == "/session/login_kerberos":
            if self.kerberos_status == 200:
                self.session_open = True
            return FakeResponse(self.kerberos_status, b"")

        if path == "/session/json":
            if self.json_statuses:
                status = self.json_statuses.pop(0)
                if status != 200:
                    return FakeResponse(status, b"")
            if not self.session_open:
                return FakeResponse(401, b"Unauthorized")
            req = json.loads(data)
            fixture = self.METHOD_FIXTURES.get(req["method"], "invalid_json.json")
            return FakeResponse(200, load_fixture(fixture), {"Content-Type": "application/json"})

        return FakeResponse(404, b"")


class FakeSession:
    def __init__(self, server: FakeIPAServer) -> None:
        self.server = server
        self.verify = True
        self.cert = None
        self.proxies: dict = {}
        self.closed = False

    def post(self, url, data=None, headers=None, auth=None, timeout=None):
        return self.server.handle(url, data=data, headers=headers, auth=auth)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def server() -> FakeIPAServer:
    return FakeIPAServer()


@pytest.fixture
def fake_session(server, monkeypatch) -> FakeSession:
    """Every IPAClient created in the test talks to ``server``."""
    sess = FakeSession(server)
    monkeypatch.setattr("ipa_client.client.requests.Session", lambda: sess)
    return sess


@pytest.fixture
def root_logging():
    """Puts the root logger's handlers and level back after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
