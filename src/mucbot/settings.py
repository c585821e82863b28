"""Load bot settings from a TOML file and ``MUCBOT__*`` environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import BotConfig
from .errors import ConfigError

HOME_CONFIG_PATH = Path.home() / ".mucbot" / "mucbot.toml"


def _resolve_config_path(path: str | Path | None) -> Path:
    return Path(path).expanduser() if path else HOME_CONFIG_PATH


def _ensure_config_file(cfg_path: Path) -> None:
    if cfg_path.exists() and not cfg_path.is_file():
        raise ConfigError(f"Config path {cfg_path} exists but is not a file.") from None
    if not cfg_path.exists():
        raise ConfigError(f"Missing config file {cfg_path}.") from None


class MucBotSettings(BaseSettings):
    """Raw settings; required-field checks happen in :class:`BotConfig`."""

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="MUCBOT__",
        env_nested_delimiter="__",
    )

    nick: str | None = None
    server: str | None = None
    password: str | None = None
    room: str | None = None
    jid: str | None = None
    debug: bool = False
    keep_alive: bool = True
    muc_service: str | None = None
    reconnect_attempts: int = 1
    reconnect_delay: float = 1.0
    reconnect_max_delay: float = 60.0
    connect_timeout: float = 30.0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(path: str | Path | None = None) -> tuple[MucBotSettings, Path]:
    """Load settings from a TOML config file, letting the environment override it."""
    cfg_path = _resolve_config_path(path)
    _ensure_config_file(cfg_path)

    cfg = dict(MucBotSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "MucBotSettingsBound",
        (MucBotSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound(), cfg_path
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
    except Exception as exc:
        raise ConfigError(f"Failed to load config {cfg_path}: {exc}") from exc


def load_config(path: str | Path | None = None) -> BotConfig:
    settings, _ = load_settings(path)
    return BotConfig.from_mapping(settings.model_dump(exclude_none=True))
