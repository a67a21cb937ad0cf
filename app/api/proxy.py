import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import StreamingResponse
from loguru import logger
from starlette.background import BackgroundTask

from app.config import settings
from app.core.http_client import send_upstream
from app.services.proxy_service import ProxyService

router = APIRouter()

# Framing headers owned by the server in front of us, never relayed as-is
HOP_BY_HOP_HEADERS = {
    b"connection",
    b"keep-alive",
    b"transfer-encoding",
}

_proxy_service = None


def get_proxy_service() -> ProxyService:
    """Get the process-wide ProxyService built from settings"""
    global _proxy_service

    if _proxy_service is None:
        _proxy_service = ProxyService(
            config=settings.mount_config(),
            send=send_upstream,
            rewrite_sitemap=settings.REWRITE_SITEMAP,
        )

    return _proxy_service


class RequestBodyStream(httpx.AsyncByteStream):
    """Inbound request body relayed chunk by chunk without buffering"""

    def __init__(self, request: Request):
        self._request = request

    async def __aiter__(self):
        async for chunk in self._request.stream():
            if chunk:
                yield chunk


def build_inbound_request(request: Request) -> httpx.Request:
    """
    Convert the Starlette request into an httpx request for the same destination

    The percent-encoded path is taken from the ASGI scope so the original
    target survives byte for byte; headers are copied in order, duplicates included.
    """
    raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    query = request.scope.get("query_string", b"")
    if query:
        raw_path = raw_path + b"?" + query

    url = httpx.URL(str(request.url)).copy_with(raw_path=raw_path)
    return httpx.Request(
        method=request.method,
        url=url,
        headers=request.headers.raw,
        stream=RequestBodyStream(request),
    )


async def _relay(response: httpx.Response):
    try:
        async for chunk in response.aiter_raw():
            yield chunk
    finally:
        await response.aclose()


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD", "TRACE"],
)
async def proxy(
    request: Request,
    proxy_service: ProxyService = Depends(get_proxy_service),
):
    """
    Catch-all proxy route

    **IMPORTANT:** This route must be registered LAST, it matches every path.

    Paths under the mount path are fetched from the origin and rewritten;
    every other path is forwarded untouched to where it was addressed.

    **Example:**
        GET /multiplier/pricing
        → https://{ORIGIN_HOST}/pricing, links rewritten to /multiplier/...

    Returns:
        StreamingResponse relaying the (possibly rewritten) upstream body

    Errors:
        504 when the upstream times out, 502 when it cannot be reached
    """
    inbound = build_inbound_request(request)
    target = f"{inbound.method} {inbound.url.raw_path.decode('ascii')}"

    try:
        with logger.contextualize(request=target):
            response = await proxy_service.handle(inbound)
    except httpx.TimeoutException:
        logger.error(f"Proxy timeout: {inbound.method} {inbound.url}")
        return Response(
            content="Gateway Timeout: upstream server did not respond",
            status_code=504,
        )
    except httpx.RequestError as e:
        logger.error(f"Proxy error: {inbound.method} {inbound.url} - {e}")
        return Response(
            content=f"Bad Gateway: Unable to reach upstream server - {str(e)}",
            status_code=502,
        )

    streaming = StreamingResponse(
        _relay(response),
        status_code=response.status_code,
        background=BackgroundTask(response.aclose),
    )
    # Assigned raw so repeated headers (Set-Cookie) survive
    streaming.raw_headers = [
        (key, value)
        for key, value in response.headers.raw
        if key.lower() not in HOP_BY_HOP_HEADERS
    ]
    return streaming
