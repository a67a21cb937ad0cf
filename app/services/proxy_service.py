from typing import AsyncIterator, Awaitable, Callable, Tuple

import httpx
from loguru import logger

from app.schemas.mount import MountConfig
from app.services.content_rewriter import ContentRewriter
from app.services.html_rewriter import rewrite_html_stream
from app.services.path_router import upstream_path


Send = Callable[[httpx.Request], Awaitable[httpx.Response]]

# Element/attribute pairs rewritten in HTML documents
HTML_REWRITE_TARGETS: Tuple[Tuple[str, str], ...] = (
    ("a", "href"),
    ("link", "href"),
    ("img", "src"),
    ("script", "src"),
    ("form", "action"),
)

SITEMAP_PATH = "/sitemap.xml"
ROBOTS_PATH = "/robots.txt"


class RewrittenStream(httpx.AsyncByteStream):
    """Response body produced by a rewrite pipeline over an origin response"""

    def __init__(self, chunks: AsyncIterator[bytes], source: httpx.Response):
        self._chunks = chunks
        self._source = source

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._chunks:
            yield chunk

    async def aclose(self) -> None:
        # Abandon the transform and release the origin connection
        await self._chunks.aclose()
        await self._source.aclose()


class ProxyService:
    """Service for proxying mounted requests to the origin and rewriting responses"""

    def __init__(self, config: MountConfig, send: Send, rewrite_sitemap: bool = True):
        """
        Args:
            config: Immutable mount configuration
            send: Transport capability, called once per request; must not follow
                redirects and must return the response with its body unread
            rewrite_sitemap: Whether /sitemap.xml gets whole-body rewriting
        """
        self.config = config
        self.send = send
        self.rewriter = ContentRewriter(config)
        self.special_paths = {ROBOTS_PATH}
        if rewrite_sitemap:
            self.special_paths.add(SITEMAP_PATH)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        """
        Route an inbound request

        Requests outside the mount are sent unmodified to their original
        destination. Mounted requests go to the origin and the response is
        rewritten. Transport errors propagate; nothing is retried.

        Args:
            request: Inbound request as received

        Returns:
            httpx.Response: Origin (or bypass) response, rewritten where needed
        """
        logger.debug(f"Incoming request: {request.method} {request.url}")

        raw_path = request.url.raw_path.partition(b"?")[0].decode("ascii")
        path = upstream_path(self.config.mount_path, raw_path)
        if path is None:
            logger.debug(f"Bypass: {raw_path} is outside {self.config.mount_path}")
            return await self.send(request)

        upstream_request = self.build_upstream_request(request, path)
        logger.info(f"Proxying to: {upstream_request.method} {upstream_request.url}")

        response = await self.send(upstream_request)
        logger.info(f"Origin responded | Status: {response.status_code}")

        return await self.post_process(response, path)

    def build_upstream_request(self, request: httpx.Request, path: str) -> httpx.Request:
        """
        Build the request sent to the origin

        Scheme forced to https, host swapped for the origin host, path
        replaced by the stripped upstream path. Query string and fragment
        are kept as received. Host header set to the origin host and
        Accept-Encoding dropped so the body comes back uncompressed.

        Args:
            request: Inbound request under the mount path
            path: Upstream path (percent-encoded) as computed by the router
        """
        raw_path = path.encode("ascii")
        if request.url.query:
            raw_path += b"?" + request.url.query

        url = request.url.copy_with(
            scheme="https",
            host=self.config.origin_host,
            port=None,
            raw_path=raw_path,
        )

        headers = request.headers.copy()
        headers["Host"] = self.config.origin_host
        headers.pop("Accept-Encoding", None)

        return httpx.Request(
            method=request.method,
            url=url,
            headers=headers,
            stream=request.stream,
            extensions=request.extensions,
        )

    async def post_process(self, response: httpx.Response, path: str) -> httpx.Response:
        """
        Rewrite an origin response in fixed order

        1. Location header (always, body untouched)
        2. robots.txt / sitemap.xml whole-body rewrite
        3. Streaming HTML attribute rewrite
        4. Anything else passes through as is

        Returns:
            The same response object when nothing was rewritten, otherwise a
            new envelope carrying the original status
        """
        response = self.rewrite_location_header(response)

        if path in self.special_paths:
            return await self.rewrite_special_document(response, path)

        content_type = response.headers.get("content-type")
        logger.debug(f"Content-Type: {content_type}")
        if content_type and "text/html" in content_type.lower():
            return self.rewrite_html(response)

        return response

    def rewrite_location_header(self, response: httpx.Response) -> httpx.Response:
        """Rewrite the Location header, returning the same response when nothing changes"""
        location = response.headers.get("location")
        if not location:
            return response

        new_location = self.rewriter.rewrite_redirect_location(location)
        if new_location == location:
            return response

        logger.info(f"Rewriting Location header: {location} → {new_location}")
        headers = response.headers.copy()
        headers["Location"] = new_location
        # Body stream is handed over unread
        return self._clone(response, headers, response.stream)

    async def rewrite_special_document(self, response: httpx.Response, path: str) -> httpx.Response:
        """Buffer robots.txt/sitemap.xml, replace origin URLs, drop Content-Length"""
        try:
            body = await response.aread()
        finally:
            await response.aclose()

        encoding = response.encoding or "utf-8"
        text = body.decode(encoding, errors="surrogateescape")
        rewritten = self.rewriter.rewrite_text_document(text)
        if rewritten != text:
            logger.info(f"Rewrote origin URLs in {path}")

        headers = response.headers.copy()
        headers.pop("Content-Length", None)
        # aread() already undid any Content-Encoding
        headers.pop("Content-Encoding", None)
        content = rewritten.encode(encoding, errors="surrogateescape")
        return self._clone(response, headers, httpx.ByteStream(content))

    def rewrite_html(self, response: httpx.Response) -> httpx.Response:
        """Chain the streaming attribute rewriter onto the response body"""
        headers = response.headers.copy()
        headers.pop("Content-Length", None)
        headers.pop("Content-Encoding", None)

        chunks = rewrite_html_stream(
            response.aiter_bytes(),
            HTML_REWRITE_TARGETS,
            self.rewriter.rewrite_attribute,
            encoding=response.charset_encoding,
        )
        return self._clone(response, headers, RewrittenStream(chunks, response))

    @staticmethod
    def _clone(
        response: httpx.Response, headers: httpx.Headers, stream: httpx.AsyncByteStream
    ) -> httpx.Response:
        return httpx.Response(
            status_code=response.status_code,
            headers=headers,
            stream=stream,
            request=response.request,
            extensions=response.extensions,
        )
