"""
Content Rewriter for the mount proxy
Rewrites origin URL references so the mirrored site lives under the mount path
"""
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from loguru import logger

from app.schemas.mount import MountConfig


def is_root_relative(value: str) -> bool:
    """Root-relative path: single leading slash, no scheme, no host"""
    return value.startswith("/") and not value.startswith("//")


class ContentRewriter:
    """Rewrites URLs in attributes, headers and text documents for the mount"""

    def __init__(self, config: MountConfig):
        """
        Args:
            config: Immutable mount configuration (mount path, hosts, canonical base)
        """
        self.config = config
        self.mount_path = config.mount_path
        self.canonical_base = config.canonical_base

        # Absolute prefixes in priority order: origin host first, then legacy hosts
        self.absolute_prefixes = tuple(f"https://{host}" for host in config.origin_hosts)
        self.origin_base = f"https://{config.origin_host}"

        canonical = urlsplit(self.canonical_base)
        self._canonical_scheme = canonical.scheme
        self._canonical_netloc = canonical.netloc
        self._canonical_path = canonical.path.rstrip("/")

        logger.info(
            f"ContentRewriter: {', '.join(config.origin_hosts)} → "
            f"{self.canonical_base} (mount {self.mount_path})"
        )

    def rewrite_absolute(self, url: str) -> str:
        """
        Replace an https origin/legacy host prefix with the canonical base

        The remainder (path, query, fragment) is copied verbatim. Only the
        first matching host is applied.
        """
        for prefix in self.absolute_prefixes:
            if url.startswith(prefix):
                return self.canonical_base + url[len(prefix):]
        return url

    def rewrite_root_relative(self, path: str) -> str:
        """Prefix a root-relative path with the mount path unless already mounted"""
        if not is_root_relative(path):
            return path
        if path.startswith(self.mount_path):
            return path
        return self.mount_path + path

    def rewrite_attribute(self, value: Optional[str]) -> Optional[str]:
        """
        Rewrite an HTML attribute value

        Absolute origin URLs are tried first; when one matches, the
        root-relative rule is not applied. Empty or missing values are left alone.
        """
        if not value:
            return value

        rewritten = self.rewrite_absolute(value)
        if rewritten != value:
            return rewritten

        return self.rewrite_root_relative(value)

    def rewrite_redirect_location(self, location: Optional[str]) -> Optional[str]:
        """
        Rewrite a Location header value

        Relative redirects are always mounted. Absolute redirects are only
        rewritten when their hostname is exactly the origin host; legacy
        hosts are deliberately left untouched here.
        """
        if not location:
            return location

        if is_root_relative(location):
            return self.mount_path + location

        try:
            parsed = urlsplit(location)
            hostname = parsed.hostname
            # Force port validation so a malformed netloc is treated as no-match
            parsed.port
        except ValueError as e:
            logger.debug(f"Unparsable Location header left unchanged: {location!r} ({e})")
            return location

        if not parsed.scheme or hostname != self.config.origin_host:
            return location

        return urlunsplit((
            self._canonical_scheme,
            self._canonical_netloc,
            self._canonical_path + (parsed.path or "/"),
            parsed.query,
            parsed.fragment,
        ))

    def rewrite_text_document(self, body: str) -> str:
        """Replace every literal https://{origin_host} with the canonical base"""
        return body.replace(self.origin_base, self.canonical_base)
