"""
Application settings.

Values come from the first TOML file found in SEARCH_PATHS and are handed
to the settings classes as init values; pydantic-settings then lets
environment variables override them (a .env file in the working directory
is loaded first). The resulting Settings object is passed explicitly to
whatever needs it.
"""
import logging
import tomllib
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hypragent.core.domain import BackendType
from hypragent.core.errors import ConfigError

logger = logging.getLogger(__name__)

SEARCH_PATHS = (
    Path('config.toml'),
    Path('~/.config/hypragent/config.toml').expanduser(),
    Path('/etc/hypragent/config.toml'),
)


def _env(name: str, env_name: str) -> AliasChoices:
    # aliases are environment names only; file values arrive by field name
    return AliasChoices(*dict.fromkeys([env_name, f'HYPRAGENT_{name.upper()}']))


class EnvOverrides(BaseSettings):
    """Settings section where environment variables win over init values."""
    model_config = SettingsConfigDict(
        env_prefix='HYPRAGENT_', case_sensitive=False, populate_by_name=True, extra='ignore',
    )

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings):
        return env_settings, init_settings


class LLMSettings(EnvOverrides):
    provider: str = Field(default='openai', validation_alias=_env('provider', 'LLM_PROVIDER'))
    openai_api_key: str = Field(default='', validation_alias=_env('openai_api_key', 'OPENAI_API_KEY'))
    openai_model: str = Field(default='gpt-4o', validation_alias=_env('openai_model', 'OPENAI_MODEL'))
    anthropic_api_key: str = Field(default='', validation_alias=_env('anthropic_api_key', 'ANTHROPIC_API_KEY'))
    anthropic_model: str = Field(
        default='claude-3-5-sonnet-20240620',
        validation_alias=_env('anthropic_model', 'ANTHROPIC_MODEL'),
    )
    gemini_api_key: str = Field(default='', validation_alias=_env('gemini_api_key', 'GEMINI_API_KEY'))
    gemini_model: str = Field(default='gemini-2.5-pro', validation_alias=_env('gemini_model', 'GEMINI_MODEL'))
    ollama_host: str = Field(default='http://localhost:11434', validation_alias=_env('ollama_host', 'OLLAMA_HOST'))
    ollama_model: str = Field(default='llama3.1', validation_alias=_env('ollama_model', 'OLLAMA_MODEL'))
    temperature: float = 0
    max_attempts: int = Field(default=3, ge=1)


class AgentSettings(EnvOverrides):
    max_turns: int = Field(default=25, ge=1)
    debug: bool = Field(default=False, validation_alias=_env('debug', 'DEBUG'))
    status_buffer: int = Field(default=10, ge=1)
    request_timeout: Optional[float] = 300.0
    log_file: str = 'debug.log'


class BackendSecurity(BaseModel):
    allowed_dirs: list[str] = Field(default_factory=list)
    allowed_files: list[str] = Field(default_factory=list)


class SecuritySettings(BaseModel):
    native: BackendSecurity = Field(default_factory=lambda: BackendSecurity(
        allowed_dirs=['.', './scripts', './themes'],
        allowed_files=[
            'hyprland.conf', 'hyprpaper.conf', 'hypridle.conf', 'hyprlock.conf',
            'keybindings.conf', 'windowrules.conf', 'monitors.conf',
            'workspaces.conf', 'animations.conf', 'userprefs.conf',
        ],
    ))
    hyde: BackendSecurity = Field(default_factory=lambda: BackendSecurity(
        allowed_dirs=[
            '.', './Configs', './scripts', './themes', './animations',
            './shaders', './hyprlock', './workflows',
        ],
        allowed_files=[
            'hyprland.conf', 'hyde.conf', 'hypridle.conf', 'hyprlock.conf',
            'keybindings.conf', 'windowrules.conf', 'monitors.conf',
            'workspaces.conf', 'workflows.conf', 'animations.conf',
            'shaders.conf', 'userprefs.conf', 'pyprland.toml',
        ],
    ))
    omarchy: BackendSecurity = Field(default_factory=lambda: BackendSecurity(
        allowed_dirs=['.', './omarchy', './scripts', './themes'],
        allowed_files=[
            'hyprland.conf', 'keybindings.conf', 'windowrules.conf',
            'monitors.conf', 'workspaces.conf',
        ],
    ))

    def policies(self) -> dict[BackendType, BackendSecurity]:
        return {
            BackendType.NATIVE: self.native,
            BackendType.HYDE: self.hyde,
            BackendType.OMARCHY: self.omarchy,
        }

    def for_backend(self, backend_type: BackendType) -> BackendSecurity:
        return self.policies().get(BackendType(backend_type), self.native)


class Settings(EnvOverrides):
    llm: LLMSettings = Field(default_factory=LLMSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    config_root: Path = Field(
        default=Path('~/.config/hypr').expanduser(),
        validation_alias=_env('config_root', 'HYPRAGENT_CONFIG_ROOT'),
    )
    backup_dir: Path = Field(
        default=Path('~/.local/share/hyprAgent/backups').expanduser(),
        validation_alias=_env('backup_dir', 'HYPRAGENT_BACKUP_DIR'),
    )
    source: Optional[Path] = None

    @field_validator('config_root', 'backup_dir')
    @classmethod
    def expand_home(cls, v: Path) -> Path:
        return v.expanduser()


def _read_toml(paths: Sequence[Path]) -> tuple[dict, Optional[Path]]:
    for path in map(Path, paths):
        if not path.is_file():
            continue
        try:
            with open(path, 'rb') as fh:
                return tomllib.load(fh), path
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"failed to parse config file {path}: {e}") from e
    return {}, None


def load_settings(paths: Optional[Sequence[Path]] = None, use_dotenv: bool = True) -> Settings:
    """
    Build Settings from the first existing file in `paths`, then the environment.
    """
    if use_dotenv:
        load_dotenv()

    data, source = _read_toml(paths if paths is not None else SEARCH_PATHS)
    data.pop('source', None)
    try:
        llm = LLMSettings(**data.pop('llm', {}))
        agent = AgentSettings(**data.pop('agent', {}))
        settings = Settings(**data, llm=llm, agent=agent, source=source)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration{f' in {source}' if source else ''}: {e}") from e

    if source:
        logger.info("Loaded config from %s", source)
    else:
        logger.info("No config file found, using defaults")
    return settings
