"""Shared fixtures: a throwaway Hyprland config tree and the services around it."""

import os

import pytest

from hypragent.config import SecuritySettings
from hypragent.configuration.backends import NativeBackend, default_backends
from hypragent.core.tools import build_registry
from hypragent.safety.gate import SecurityGate
from hypragent.safety.snapshot import SnapshotService


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of detection and settings."""
    for name in (
        "HYDE_CONFIG_HOME", "LLM_PROVIDER", "DEBUG",
        "OPENAI_API_KEY", "OPENAI_MODEL", "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL",
        "GEMINI_API_KEY", "GEMINI_MODEL", "OLLAMA_HOST", "OLLAMA_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)
    for name in [n for n in os.environ if n.upper().startswith("HYPRAGENT_")]:
        monkeypatch.delenv(name)


@pytest.fixture
def hypr_root(tmp_path):
    """A native layout: just a hyprland.conf under the config root."""
    root = tmp_path / "hypr"
    root.mkdir()
    (root / "hyprland.conf").write_text("a=1\n")
    return root


@pytest.fixture
def gate(hypr_root):
    return SecurityGate(hypr_root, SecuritySettings().policies())


@pytest.fixture
def snapshots(tmp_path):
    return SnapshotService(tmp_path / "backups")


@pytest.fixture
def backend(hypr_root):
    native = NativeBackend(hypr_root)
    assert native.detect()
    return native


@pytest.fixture
def registry(hypr_root, gate, backend, snapshots):
    return build_registry(gate, backend, default_backends(hypr_root), snapshots)
