"""Shared test fixtures."""

import json
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from launcher_auth.client import AuthenticationClient
from launcher_auth.config import AuthProperties

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """주입용 시계. advance()로만 움직인다."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeServer:
    """URL별 응답 큐를 가진 MockTransport 핸들러.

    받은 요청을 모두 기록하므로 네트워크 호출 수를 셀 수 있다.
    """

    def __init__(self):
        self.routes: dict[str, list] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, status_code: int = 200, json=None, content=None, headers=None):
        if json is not None:
            response = httpx.Response(status_code, json=json, headers=headers)
        else:
            response = httpx.Response(status_code, content=content or b"", headers=headers)
        self.routes.setdefault(url, []).append(response)

    def fail(self, url: str, error: Exception):
        self.routes.setdefault(url, []).append(error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(str(request.url))
        if not queue:
            raise AssertionError(f"unexpected request: {request.url}")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]

    def form(self, index: int) -> dict[str, str]:
        parsed = parse_qs(self.requests[index].content.decode())
        return {key: values[0] for key, values in parsed.items()}

    def json(self, index: int) -> dict:
        return json.loads(self.requests[index].content)


def microsoft_token_payload(
    access_token: str = "ms-access", refresh_token: str = "ms-refresh", expires_in: int = 3600
) -> dict:
    return {
        "token_type": "Bearer",
        "scope": "XboxLive.signin offline_access",
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_in": expires_in,
    }


def xbox_payload(token: str, not_after: datetime, user_hash: str | None = "uhs-123") -> dict:
    claims = [{"uhs": user_hash}] if user_hash is not None else []
    return {
        "IssueInstant": "2024-01-01T12:00:00.0000000Z",
        "NotAfter": not_after.strftime("%Y-%m-%dT%H:%M:%S.1234567Z"),
        "Token": token,
        "DisplayClaims": {"xui": claims},
    }


def minecraft_payload(token: str = "mc-token", expires_in: int = 86400) -> dict:
    return {
        "username": "00000000-0000-0000-0000-000000000000",
        "roles": [],
        "access_token": token,
        "token_type": "Bearer",
        "expires_in": expires_in,
    }


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def properties():
    return AuthProperties(client_id="test-client-id")


@pytest.fixture
def client(properties, server, clock):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
    return AuthenticationClient(properties, http_client=http_client, clock=clock)
