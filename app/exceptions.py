"""
Custom exceptions for the mount proxy

This module defines application-specific exceptions raised while
configuring or serving the mounted site.
"""


class MountConfigError(ValueError):
    """
    Raised when the mount configuration is structurally invalid.

    Subclasses ValueError so that pydantic validators turn it into a
    ValidationError and the process refuses to start.

    Example:
        >>> MountConfig(mount_path="multiplier", ...)
        Traceback (most recent call last):
        ...
        pydantic_core.ValidationError: mount_path must be a non-root path ...
    """
    pass
