import json
from typing import Annotated, List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from app.schemas.mount import MountConfig


class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Multiplier Proxy"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_DIR: str = "logs"

    # Mount
    MOUNT_PATH: str = "/multiplier"
    ORIGIN_HOST: str = "multiplier-origin.captivateiq.com"
    LEGACY_HOSTS: Annotated[List[str], NoDecode] = ["multiplier.captivateiq.com"]
    CANONICAL_BASE: str = "https://www.captivateiq.com/multiplier"

    @field_validator("LEGACY_HOSTS", mode="before")
    @classmethod
    def split_legacy_hosts(cls, v: Union[str, List[str], None]) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return [str(host).strip() for host in json.loads(v) if str(host).strip()]
            return [host.strip() for host in v.split(",") if host.strip()]
        return list(v)

    # Sitemap rewrite can be switched off while redirects settle after a launch
    REWRITE_SITEMAP: bool = True

    # Upstream transport
    PROXY_TIMEOUT: float = 60.0
    VERIFY_SSL: bool = True

    def mount_config(self) -> MountConfig:
        """Build the immutable mount configuration shared by all requests"""
        return MountConfig(
            mount_path=self.MOUNT_PATH,
            origin_host=self.ORIGIN_HOST,
            legacy_hosts=tuple(self.LEGACY_HOSTS),
            canonical_base=self.CANONICAL_BASE,
        )

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
