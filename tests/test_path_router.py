"""
Tests for mount path matching and upstream path computation
"""
import pytest

from app.services.path_router import match_mount_path, upstream_path


MOUNT = "/multiplier"


class TestMatchMountPath:
    """Tests for match_mount_path"""

    @pytest.mark.parametrize("path", ["/multiplier", "/multiplier/", "/multiplier/pricing", "/multiplier//x"])
    def test_mounted_paths_match(self, path: str):
        assert match_mount_path(MOUNT, path) is True

    @pytest.mark.parametrize(
        "path",
        ["/", "/multiplierX", "/multiplier-test", "/multiplie", "/other/multiplier", "/Multiplier", ""],
    )
    def test_other_paths_do_not_match(self, path: str):
        assert match_mount_path(MOUNT, path) is False


class TestUpstreamPath:
    """Tests for upstream_path"""

    def test_mount_root_maps_to_slash(self):
        assert upstream_path(MOUNT, "/multiplier") == "/"

    def test_mount_root_with_trailing_slash_maps_to_slash(self):
        assert upstream_path(MOUNT, "/multiplier/") == "/"

    def test_nested_path_stripped(self):
        assert upstream_path(MOUNT, "/multiplier/a/b/c") == "/a/b/c"

    def test_encoded_path_kept(self):
        assert upstream_path(MOUNT, "/multiplier/a%20b/%2F") == "/a%20b/%2F"

    @pytest.mark.parametrize("path", ["/multiplierX", "/multiplier-test", "/pricing"])
    def test_bypass_returns_none(self, path: str):
        assert upstream_path(MOUNT, path) is None
