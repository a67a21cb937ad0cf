"""
Tests for settings loading and the immutable mount configuration
"""
import pytest
from pydantic import ValidationError

from app.config import Settings
from app.schemas.mount import MountConfig
from tests.conftest import CANONICAL_BASE, LEGACY_HOST, ORIGIN_HOST


class TestSettings:
    """Tests for Settings → MountConfig"""

    def test_mount_config_normalized(self, test_settings: Settings):
        config = test_settings.mount_config()

        assert config.mount_path == "/multiplier"
        assert config.canonical_base == CANONICAL_BASE
        assert config.origin_host == ORIGIN_HOST
        assert config.legacy_hosts == (LEGACY_HOST, "old.captivateiq.com")

    def test_legacy_hosts_from_env(self, monkeypatch):
        monkeypatch.setenv("LEGACY_HOSTS", "a.example.com,b.example.com")

        assert Settings().LEGACY_HOSTS == ["a.example.com", "b.example.com"]

    def test_legacy_hosts_from_json_env(self, monkeypatch):
        monkeypatch.setenv("LEGACY_HOSTS", '["a.example.com", "b.example.com"]')

        assert Settings().LEGACY_HOSTS == ["a.example.com", "b.example.com"]

    def test_empty_legacy_hosts(self, monkeypatch):
        monkeypatch.setenv("LEGACY_HOSTS", "")

        assert Settings().mount_config().legacy_hosts == ()

    def test_sitemap_switch_from_env(self, monkeypatch):
        monkeypatch.setenv("REWRITE_SITEMAP", "false")

        assert Settings().REWRITE_SITEMAP is False


class TestMountConfig:
    """Tests for MountConfig validation"""

    def test_frozen(self):
        config = MountConfig(
            mount_path="/m", origin_host="origin.example.com", canonical_base="https://p.example.com/m"
        )

        with pytest.raises(ValidationError):
            config.mount_path = "/other"

    def test_origin_hosts_priority(self):
        config = MountConfig(
            mount_path="/m",
            origin_host="Origin.Example.com",
            legacy_hosts=("legacy.example.com", "origin.example.com", "legacy.example.com", ""),
            canonical_base="https://p.example.com/m",
        )

        assert config.origin_hosts == ("origin.example.com", "legacy.example.com")

    @pytest.mark.parametrize("mount_path", ["multiplier", "/", "", "//multiplier"])
    def test_invalid_mount_path(self, mount_path: str):
        with pytest.raises(ValidationError):
            MountConfig(
                mount_path=mount_path, origin_host="o.example.com", canonical_base="https://p.example.com/m"
            )

    @pytest.mark.parametrize("canonical_base", ["/multiplier", "www.example.com/m", ""])
    def test_invalid_canonical_base(self, canonical_base: str):
        with pytest.raises(ValidationError):
            MountConfig(mount_path="/m", origin_host="o.example.com", canonical_base=canonical_base)

    @pytest.mark.parametrize("origin_host", ["", "  ", "https://o.example.com"])
    def test_invalid_origin_host(self, origin_host: str):
        with pytest.raises(ValidationError):
            MountConfig(mount_path="/m", origin_host=origin_host, canonical_base="https://p.example.com/m")
