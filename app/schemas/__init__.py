from app.schemas.mount import MountConfig

__all__ = [
    "MountConfig",
]
