"""
Pytest fixtures for auth gateway tests
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from auth_gateway.config import Settings
from auth_gateway.main import create_app
from auth_gateway.utils.downstream_client import DownstreamClient

ACCOUNT_BASE = "http://account.test/api"
TOKEN_BASE = "http://token.test/api"


class DownstreamStub:
    """
    Scripted account and token services behind an httpx.MockTransport

    Responses are registered per (method, url); unregistered calls get a 404.
    Every request is recorded together with its body.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        url: str,
        status: int = 200,
        json_body: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        error: Optional[type] = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if error is not None:
                raise error("connection refused", request=request)
            if content is not None:
                return httpx.Response(status, content=content, headers=headers)
            return httpx.Response(status, json=json_body, headers=headers)

        self.routes[(method.upper(), url)] = respond

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        respond = self.routes.get((request.method, url))
        if respond is None:
            return httpx.Response(404, json={"message": f"No stub for {request.method} {url}"})
        return respond(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, url: str) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if f"{r.url.scheme}://{r.url.host}{r.url.path}" == url
        ]

    @staticmethod
    def body_of(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the stubbed services"""
    return Settings(
        account_service_url=ACCOUNT_BASE,
        account_service_key="account-key",
        token_service_url=TOKEN_BASE,
        token_service_key="token-key",
        log_level="WARNING",
        log_format="console",
        disconnect_poll_interval_seconds=0.05,
    )


@pytest.fixture
def stub() -> DownstreamStub:
    """Empty downstream stub"""
    return DownstreamStub()


@pytest_asyncio.fixture
async def downstream_client(settings, stub):
    """Started DownstreamClient wired to the stub"""
    client = DownstreamClient(settings, transport=stub.transport)
    await client.start()
    yield client
    await client.stop()


@pytest.fixture
def account_user() -> Dict[str, Any]:
    """Account-service user as returned on success"""
    return {
        "id": "u-123",
        "email": "jane@example.com",
        "firstName": "Jane",
        "lastName": "Doe",
        "role": "User",
    }


@pytest.fixture
def token_pair() -> Dict[str, Any]:
    """Token-service success body"""
    return {
        "succeeded": True,
        "accessToken": "access-abc",
        "refreshToken": "refresh-xyz",
    }


@pytest.fixture
def app(settings, stub):
    """Gateway app whose downstream calls hit the stub"""
    return create_app(settings, transport=stub.transport)


@pytest.fixture
def client(app):
    """Test client with the app lifespan running"""
    with TestClient(app) as test_client:
        yield test_client
