"""
Mount path routing

Decides whether an inbound path belongs to the mounted site and, if it
does, which path to request from the origin.
"""
from typing import Optional


def match_mount_path(mount_path: str, path: str) -> bool:
    """
    Check whether path falls under mount_path

    The character right after the prefix must be '/', so sibling paths
    sharing the prefix (/multiplier-test, /multiplierX) do not match.
    """
    if path == mount_path:
        return True
    return path.startswith(mount_path) and path[len(mount_path)] == "/"


def upstream_path(mount_path: str, path: str) -> Optional[str]:
    """
    Compute the origin path for an inbound path

    Returns:
        The path with the mount prefix stripped ("/" when nothing is left),
        or None when the request is not under the mount and must bypass the proxy.

    Example:
        >>> upstream_path("/multiplier", "/multiplier/pricing")
        '/pricing'
        >>> upstream_path("/multiplier", "/multiplier")
        '/'
        >>> upstream_path("/multiplier", "/multiplier-test") is None
        True
    """
    if not match_mount_path(mount_path, path):
        return None
    return path[len(mount_path):] or "/"
