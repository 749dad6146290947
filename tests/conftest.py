"""Shared fixtures: unsigned JWT builder and a scripted ``requests`` session."""

from __future__ import annotations

import base64
import json
from typing import Any, Callable

import pytest
import requests


def _b64e(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def build_token(claims: dict[str, Any]) -> str:
    """Return an unsigned three-segment JWT carrying *claims*."""
    header = _b64e(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    payload = _b64e(json.dumps(claims).encode())
    return f"{header}.{payload}.signature"


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stand-in for ``requests.Session`` replaying scripted responses."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.responses: list[FakeResponse | Exception] = []
        self.closed = False

    def queue(self, item: FakeResponse | Exception) -> None:
        self.responses.append(item)

    def queue_data(self, data: dict[str, Any]) -> None:
        self.queue(FakeResponse(200, {"data": data}))

    def queue_status(self, status_code: int, payload: Any = None, text: str | None = None) -> None:
        self.queue(FakeResponse(status_code, payload, text))

    def post(self, url: str, *, json: Any, headers: dict[str, str], timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if not self.responses:
            raise AssertionError(f"unexpected request: {json.get('operationName')}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True

    def operations(self) -> list[str]:
        return [call["json"]["operationName"] for call in self.calls]


@pytest.fixture()
def make_token() -> Callable[..., str]:
    """Return ``make_token(exp=..., **claims)``; ``exp=None`` omits the claim."""

    def _make(exp: Any = None, **claims: Any) -> str:
        if exp is not None:
            claims["exp"] = exp
        return build_token(claims)

    return _make


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def network_down() -> requests.ConnectionError:
    return requests.ConnectionError("Failed to establish a new connection: [Errno 111] Connection refused")


# --------------------------------------------------------------------------- #
# Integration opt-in                                                          #
# --------------------------------------------------------------------------- #
def pytest_addoption(parser):
    """Add integration option to pytest."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly requested.

    Tests marked with 'ci_safe' are always run because they stub all
    network calls.
    """
    if config.getoption("--integration", default=False):
        return
    skip_integration = pytest.mark.skip(reason="Need --integration option to run")
    for item in items:
        if "integration" in item.keywords and "ci_safe" not in item.keywords:
            item.add_marker(skip_integration)
