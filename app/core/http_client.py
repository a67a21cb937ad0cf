from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Optional

import httpx

from app.config import settings

# Origin HTTP client singleton
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """
    Get origin HTTP client singleton.
    Creates client on first call, returns same instance on subsequent calls.

    Redirects are never followed (3xx responses are rewritten, not chased)
    and Set-Cookie headers are never stored, so requests share nothing
    but the connection pool.

    Returns:
        httpx.AsyncClient instance
    """
    global _http_client

    if _http_client is None:
        _http_client = httpx.AsyncClient(
            follow_redirects=False,
            timeout=settings.PROXY_TIMEOUT,
            verify=settings.VERIFY_SSL,
            cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        )

    return _http_client


async def send_upstream(request: httpx.Request) -> httpx.Response:
    """Send a prepared request, returning the response with its body unread"""
    return await get_http_client().send(request, stream=True)


async def close_http_client():
    """Close origin HTTP client"""
    global _http_client

    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
