"""Tests for installation detection and the per-layout file operations."""

import pytest

from hypragent.configuration.backends import (
    HyDEBackend,
    NativeBackend,
    OmarchyBackend,
    default_backends,
    detect_backend,
)
from hypragent.core.domain import BackendType
from hypragent.core.errors import PatchApplyConflict, ToolExecutionError


class TestDetection:
    def test_native_layout(self, hypr_root):
        backend = detect_backend(default_backends(hypr_root))
        assert backend.type == BackendType.NATIVE
        assert backend.list_sources() == [str(hypr_root / "hyprland.conf")]

    def test_hyde_marker_file(self, hypr_root):
        (hypr_root / "hyde.conf").write_text("$theme = x\n")
        (hypr_root / "keybindings.conf").write_text("bind = SUPER, Q, killactive\n")
        backend = detect_backend(default_backends(hypr_root))
        assert backend.type == BackendType.HYDE
        assert backend.list_sources() == [
            str(hypr_root / "hyprland.conf"),
            str(hypr_root / "hyde.conf"),
            str(hypr_root / "keybindings.conf"),
        ]

    def test_hyde_marker_dir(self, hypr_root):
        (hypr_root / "Configs").mkdir()
        assert detect_backend(default_backends(hypr_root)).type == BackendType.HYDE

    def test_hyde_environment_variable(self, hypr_root, monkeypatch):
        monkeypatch.setenv("HYDE_CONFIG_HOME", str(hypr_root))
        assert detect_backend(default_backends(hypr_root)).type == BackendType.HYDE

    def test_omarchy_wins_over_native(self, hypr_root):
        (hypr_root / "omarchy").mkdir()
        backend = detect_backend(default_backends(hypr_root))
        assert backend.type == BackendType.OMARCHY
        assert backend.list_sources() == [str(hypr_root / "hyprland.conf")]

    def test_omarchy_needs_primary_config(self, tmp_path):
        (tmp_path / "omarchy").mkdir()
        assert not OmarchyBackend(tmp_path).detect()

    def test_nothing_detected(self, tmp_path):
        assert detect_backend(default_backends(tmp_path)) is None

    def test_sources_before_detection(self, tmp_path):
        with pytest.raises(ToolExecutionError):
            NativeBackend(tmp_path).list_sources()

    def test_hyde_without_any_config_file(self, tmp_path):
        (tmp_path / "scripts").mkdir()
        backend = HyDEBackend(tmp_path)
        assert backend.detect()
        with pytest.raises(ToolExecutionError):
            backend.list_sources()


class TestFileOperations:
    def test_parse_round_trips(self, backend, hypr_root):
        text = "# top\r\n$mod = SUPER\r\ngeneral {\n  gaps_in = 5\n}"
        (hypr_root / "hyprland.conf").write_bytes(text.encode())
        assert backend.parse().to_text() == text

    def test_generate_and_apply(self, backend, hypr_root):
        old_ir = backend.parse()
        new_ir = backend.parse()
        new_ir.lines[0].raw = "a=2"

        patch = backend.generate_patch(old_ir, new_ir)
        assert "hyprland.conf" in patch

        written = backend.apply_patch(None, patch)
        assert written == str(hypr_root / "hyprland.conf")
        assert (hypr_root / "hyprland.conf").read_text() == "a=2\n"

    def test_conflict_leaves_file_untouched(self, backend, hypr_root):
        config = hypr_root / "hyprland.conf"
        config.write_text("a=1\nb=2\n")
        before = config.read_bytes()
        patch = "@@ -1,2 +1,2 @@\n-a=9\n+a=10\n b=2\n"
        with pytest.raises(PatchApplyConflict):
            backend.apply_patch(config, patch)
        assert config.read_bytes() == before

    def test_apply_to_missing_file(self, backend, hypr_root):
        with pytest.raises(ToolExecutionError):
            backend.apply_patch(hypr_root / "missing.conf", "@@ -1 +1 @@\n-a\n+b\n")
