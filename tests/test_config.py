"""Tests for settings loading, agent wiring and logging setup."""

import logging
from pathlib import Path

import pytest

from hypragent.config import load_settings
from hypragent.core.agent import build_agent
from hypragent.core.domain import BackendType
from hypragent.core.errors import ConfigError
from hypragent.log import setup_logging
from hypragent.models import Message

CONFIG = """
config_root = "{root}"
backup_dir = "{backups}"

[llm]
provider = "ollama"
ollama_model = "qwen2.5"

[agent]
max_turns = 7

[security.native]
allowed_dirs = ["./scripts"]
allowed_files = ["hyprland.conf"]
"""


@pytest.fixture
def config_file(tmp_path, hypr_root):
    path = tmp_path / "config.toml"
    path.write_text(CONFIG.format(root=hypr_root, backups=tmp_path / "backups"))
    return path


class TestLoadSettings:
    def test_defaults_without_file(self, tmp_path):
        settings = load_settings([tmp_path / "missing.toml"], use_dotenv=False)
        assert settings.source is None
        assert settings.llm.provider == "openai"
        assert settings.agent.max_turns == 25
        assert settings.config_root == Path("~/.config/hypr").expanduser()
        assert "hyde.conf" in settings.security.hyde.allowed_files

    def test_file_values(self, config_file, hypr_root):
        settings = load_settings([config_file], use_dotenv=False)
        assert settings.source == config_file
        assert settings.config_root == hypr_root
        assert settings.llm.provider == "ollama"
        assert settings.llm.ollama_model == "qwen2.5"
        assert settings.agent.max_turns == 7
        assert settings.security.native.allowed_dirs == ["./scripts"]
        # sections not in the file keep their defaults
        assert "./Configs" in settings.security.hyde.allowed_dirs

    def test_first_existing_file_wins(self, tmp_path, config_file):
        other = tmp_path / "other.toml"
        other.write_text("[agent]\nmax_turns = 2\n")
        settings = load_settings([tmp_path / "missing.toml", config_file, other], use_dotenv=False)
        assert settings.agent.max_turns == 7

    def test_environment_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openai")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("HYPRAGENT_CONFIG_ROOT", "/srv/hypr")
        settings = load_settings([config_file], use_dotenv=False)
        assert settings.llm.provider == "openai"
        assert settings.llm.openai_api_key == "sk-env"
        assert settings.agent.debug is True
        assert settings.config_root == Path("/srv/hypr")

    def test_debug_is_parsed_as_boolean(self, tmp_path, monkeypatch):
        missing = [tmp_path / "missing.toml"]
        monkeypatch.setenv("DEBUG", "false")
        assert load_settings(missing, use_dotenv=False).agent.debug is False
        monkeypatch.setenv("DEBUG", "1")
        assert load_settings(missing, use_dotenv=False).agent.debug is True
        monkeypatch.setenv("DEBUG", "sometimes")
        with pytest.raises(ConfigError):
            load_settings(missing, use_dotenv=False)

    def test_prefixed_environment_names(self, config_file, monkeypatch):
        monkeypatch.setenv("HYPRAGENT_MAX_TURNS", "3")
        monkeypatch.setenv("HYPRAGENT_BACKUP_DIR", "~/hypr-snapshots")
        settings = load_settings([config_file], use_dotenv=False)
        assert settings.agent.max_turns == 3
        assert settings.backup_dir == Path.home() / "hypr-snapshots"

    def test_bare_field_names_are_not_read_from_environment(self, config_file, monkeypatch):
        monkeypatch.setenv("PROVIDER", "openai")
        monkeypatch.setenv("CONFIG_ROOT", "/elsewhere")
        settings = load_settings([config_file], use_dotenv=False)
        assert settings.llm.provider == "ollama"
        assert settings.config_root != Path("/elsewhere")

        monkeypatch.setenv("HYPRAGENT_PROVIDER", "gemini")
        assert load_settings([config_file], use_dotenv=False).llm.provider == "gemini"

    def test_file_keys_for_every_provider(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text(
            '[llm]\nprovider = "anthropic"\nanthropic_api_key = "sk-ant-file"\n'
            'gemini_model = "gemini-2.0-flash"\n'
        )
        monkeypatch.setenv("ANTHROPIC_MODEL", "claude-sonnet-4-0")
        monkeypatch.setenv("GEMINI_API_KEY", "g-env")
        llm = load_settings([path], use_dotenv=False).llm
        assert llm.provider == "anthropic"
        assert llm.anthropic_api_key == "sk-ant-file"
        assert llm.anthropic_model == "claude-sonnet-4-0"
        assert llm.gemini_api_key == "g-env"
        assert llm.gemini_model == "gemini-2.0-flash"

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[llm\nprovider = ")
        with pytest.raises(ConfigError):
            load_settings([path], use_dotenv=False)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[agent]\nmax_turns = 0\n")
        with pytest.raises(ConfigError) as exc:
            load_settings([path], use_dotenv=False)
        assert str(path) in str(exc.value)


class StaticProvider:
    async def chat(self, history, tools):
        return Message.assistant("ok")


class TestBuildAgent:
    def test_detects_backend_and_uses_policy(self, config_file, hypr_root, tmp_path):
        settings = load_settings([config_file], use_dotenv=False)
        agent = build_agent(settings, provider=StaticProvider())

        assert agent.detected
        assert agent.backend.type == BackendType.NATIVE
        assert agent.snapshots.backup_dir == tmp_path / "backups"
        assert agent.orchestrator.settings.max_turns == 7
        assert "Installation Type: native" in agent.orchestrator.system_prompt
        assert not agent.gate.is_path_allowed(BackendType.NATIVE, "themes/x.conf")

    def test_falls_back_to_native(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        settings = load_settings([tmp_path / "missing.toml"], use_dotenv=False)
        settings = settings.model_copy(update={"config_root": empty, "backup_dir": tmp_path / "b"})

        agent = build_agent(settings, provider=StaticProvider())
        assert not agent.detected
        assert agent.backend.type == BackendType.NATIVE

    @pytest.mark.asyncio
    async def test_answers(self, config_file):
        agent = build_agent(load_settings([config_file], use_dotenv=False), provider=StaticProvider())
        assert await agent.orchestrator.process_message("hi") == "ok"

    def test_missing_api_key(self, tmp_path, hypr_root):
        path = tmp_path / "config.toml"
        path.write_text(f'config_root = "{hypr_root}"\nbackup_dir = "{tmp_path / "b"}"\n')
        with pytest.raises(ConfigError):
            build_agent(load_settings([path], use_dotenv=False))


class TestLogging:
    def test_writes_to_file_only(self, tmp_path):
        log_file = tmp_path / "debug.log"
        logger = setup_logging(debug=True, log_file=log_file)
        try:
            logging.getLogger("hypragent.core.orchestrator").debug("hello from the loop")
            for handler in logger.handlers:
                handler.flush()
            assert "hello from the loop" in log_file.read_text()
            assert logger.propagate is False
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

    def test_quiet_by_default(self, tmp_path):
        logger = setup_logging(log_file=tmp_path / "debug.log")
        try:
            assert logger.level == logging.WARNING
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
