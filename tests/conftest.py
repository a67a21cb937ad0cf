"""
Pytest fixtures and configuration for mount proxy tests
"""
import pytest
from typing import Callable, Generator, List
from fastapi.testclient import TestClient

import httpx

from app.api.proxy import get_proxy_service
from app.config import Settings
from app.main import app
from app.schemas.mount import MountConfig
from app.services.content_rewriter import ContentRewriter
from app.services.proxy_service import ProxyService


MOUNT_PATH = "/multiplier"
ORIGIN_HOST = "multiplier-origin.captivateiq.com"
LEGACY_HOST = "multiplier.captivateiq.com"
CANONICAL_BASE = "https://www.captivateiq.com/multiplier"
PUBLIC_HOST = "www.captivateiq.com"


class MockOrigin:
    """
    Stand-in for the origin and for bypass destinations

    Records every request it receives and answers through a per-test handler.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, headers={"content-type": "text/plain"}, content=b"OK"
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


def make_send(origin: MockOrigin):
    """Build a send capability backed by httpx.MockTransport, redirects not followed"""
    client = httpx.AsyncClient(transport=httpx.MockTransport(origin), follow_redirects=False)

    async def send(request: httpx.Request) -> httpx.Response:
        return await client.send(request, stream=True)

    return send


@pytest.fixture
def mount_config() -> MountConfig:
    """Mount configuration matching the production deployment"""
    return MountConfig(
        mount_path=MOUNT_PATH,
        origin_host=ORIGIN_HOST,
        legacy_hosts=(LEGACY_HOST,),
        canonical_base=CANONICAL_BASE,
    )


@pytest.fixture
def rewriter(mount_config: MountConfig) -> ContentRewriter:
    return ContentRewriter(mount_config)


@pytest.fixture
def origin() -> MockOrigin:
    return MockOrigin()


@pytest.fixture
def proxy_service(mount_config: MountConfig, origin: MockOrigin) -> ProxyService:
    """ProxyService talking to the mock origin"""
    return ProxyService(mount_config, make_send(origin))


@pytest.fixture
def client(proxy_service: ProxyService) -> Generator[TestClient, None, None]:
    """
    Create a test client whose proxy service talks to the mock origin

    Requests are addressed to the public host so bypass targets are recognisable.
    """
    app.dependency_overrides[get_proxy_service] = lambda: proxy_service

    with TestClient(app, base_url=f"https://{PUBLIC_HOST}") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def test_settings() -> Settings:
    """
    Create test settings with explicit values

    Overrides environment settings with test-safe values
    """
    return Settings(
        PROJECT_NAME="Multiplier Proxy Test",
        VERSION="1.0.0-test",
        DEBUG=True,
        MOUNT_PATH="/multiplier/",
        ORIGIN_HOST=ORIGIN_HOST,
        LEGACY_HOSTS=f"{LEGACY_HOST}, old.captivateiq.com",
        CANONICAL_BASE=CANONICAL_BASE + "/",
    )
