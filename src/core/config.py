"""Pydantic settings loaded from YAML configuration and the environment."""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError, field_validator

from src.core.exceptions import ConfigError

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")

# Environment variable -> (section, key). Environment wins over YAML.
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "KENER_WEBHOOK_SECRET": ("auth", "webhook_secret"),
    "TELEGRAM_BOT_TOKEN": ("telegram", "bot_token"),
    "TELEGRAM_CHAT_ID": ("telegram", "chat_id"),
    "TELEGRAM_API_BASE": ("telegram", "api_base"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
}


class ServerConfig(BaseModel):
    """Inbound HTTP listener configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 3000
    max_body_bytes: int = 256 * 1024

    @field_validator("port", mode="before")
    @classmethod
    def _parse_port(cls, value: Any) -> int:
        if value is None or value == "":
            return 3000
        raw = str(value).strip()
        try:
            port = float(raw)
        except ValueError:
            raise ValueError(f'Invalid PORT value "{raw}"') from None
        if not math.isfinite(port) or port <= 0 or not port.is_integer():
            raise ValueError(f'Invalid PORT value "{raw}"')
        return int(port)


class AuthConfig(BaseModel):
    """Inbound webhook authentication. An empty secret disables the check."""

    model_config = ConfigDict(frozen=True)

    webhook_secret: SecretStr = SecretStr("")
    token_header: str = "x-kener-token"

    @field_validator("webhook_secret", mode="before")
    @classmethod
    def _strip_secret(cls, value: Any) -> Any:
        if isinstance(value, SecretStr):
            return SecretStr(value.get_secret_value().strip())
        return str(value or "").strip()


class TelegramConfig(BaseModel):
    """Telegram Bot API destination."""

    model_config = ConfigDict(frozen=True)

    bot_token: SecretStr = SecretStr("")
    chat_id: str = ""
    api_base: str = "https://api.telegram.org"

    @field_validator("bot_token", mode="before")
    @classmethod
    def _strip_token(cls, value: Any) -> Any:
        if isinstance(value, SecretStr):
            return SecretStr(value.get_secret_value().strip())
        return str(value or "").strip()

    @field_validator("chat_id", mode="before")
    @classmethod
    def _strip_chat_id(cls, value: Any) -> str:
        return str(value if value is not None else "").strip()

    @field_validator("api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    model_config = ConfigDict(frozen=True)

    server: ServerConfig = ServerConfig()
    auth: AuthConfig = AuthConfig()
    telegram: TelegramConfig = TelegramConfig()
    logging: LoggingConfig = LoggingConfig()

    @property
    def auth_enabled(self) -> bool:
        return bool(self.auth.webhook_secret.get_secret_value())


def _apply_env(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        # An empty variable counts as unset, so it never erases a YAML value.
        if value is None or value == "":
            continue
        current = data.get(section)
        merged = dict(current) if isinstance(current, dict) else {}
        merged[key] = value
        data[section] = merged
    return data


def _check_required(settings: Settings) -> None:
    if not settings.telegram.bot_token.get_secret_value():
        raise ConfigError("Missing TELEGRAM_BOT_TOKEN")
    if not settings.telegram.chat_id:
        raise ConfigError("Missing TELEGRAM_CHAT_ID")


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from a YAML file plus environment overrides and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml; a missing
            file is skipped.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Parsed, validated Settings instance.

    Raises:
        ConfigError: the port is invalid or a Telegram credential is blank.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    data = _apply_env(data, env)

    try:
        settings = Settings(**data)
    except ValidationError as exc:
        messages = "; ".join(str(err["msg"]).removeprefix("Value error, ") for err in exc.errors())
        raise ConfigError(messages) from exc

    _check_required(settings)
    _settings = settings
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading them if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
