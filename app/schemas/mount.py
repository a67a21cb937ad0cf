"""
Mount Configuration Schema

Immutable description of where the mirrored site is mounted and which
hosts it replaces. Built once at startup and shared by every request.
"""

from typing import Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.exceptions import MountConfigError


class MountConfig(BaseModel):
    """Mount path, origin host, legacy hosts and canonical public base"""

    model_config = ConfigDict(frozen=True)

    mount_path: str = Field(..., description="Public subpath, e.g. /multiplier")
    origin_host: str = Field(..., description="Upstream DNS name")
    legacy_hosts: Tuple[str, ...] = Field(
        default=(), description="Historical hostnames whose absolute URLs are rewritten"
    )
    canonical_base: str = Field(
        ..., description="Public URL prefix, e.g. https://public.example.com/multiplier"
    )

    @field_validator("mount_path")
    @classmethod
    def normalize_mount_path(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith("/") or v.startswith("//"):
            raise MountConfigError(f"mount_path must be a non-root path starting with '/': {v!r}")
        return v

    @field_validator("origin_host")
    @classmethod
    def require_origin_host(cls, v: str) -> str:
        v = v.strip().lower()
        if not v or "/" in v:
            raise MountConfigError(f"origin_host must be a bare hostname: {v!r}")
        return v

    @field_validator("legacy_hosts")
    @classmethod
    def dedupe_legacy_hosts(cls, v: Tuple[str, ...], info) -> Tuple[str, ...]:
        # Declared order is the match priority; the origin host always comes first
        seen = {info.data.get("origin_host")}
        hosts = []
        for host in v:
            host = host.strip().lower()
            if host and host not in seen:
                seen.add(host)
                hosts.append(host)
        return tuple(hosts)

    @field_validator("canonical_base")
    @classmethod
    def normalize_canonical_base(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        parts = urlsplit(v)
        if not parts.scheme or not parts.netloc:
            raise MountConfigError(f"canonical_base must be an absolute URL: {v!r}")
        return v

    @property
    def origin_hosts(self) -> Tuple[str, ...]:
        """Hosts whose absolute https URLs are rewritten, in priority order"""
        return (self.origin_host, *self.legacy_hosts)
