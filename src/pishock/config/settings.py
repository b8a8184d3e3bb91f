"""Configuration management for pishock.

Loads settings from a YAML configuration file with environment variable
overrides for the credential pair. Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/pishock.yaml")


class LoginConfig(BaseModel):
    port: int | None = Field(default=None, ge=1, le=65535, description="Fixed local port; random when unset")
    timeout: float = Field(default=120.0, gt=0, description="Seconds to wait for the browser callback")
    shutdown_timeout: float = Field(default=5.0, gt=0)
    login_origin: str = Field(default="https://login.pishock.com")


class ApiConfig(BaseModel):
    base_url: str = Field(default="https://ps.pishock.com/PiShock")
    timeout: float = Field(default=10.0, gt=0)


class BrokerConfig(BaseModel):
    host: str = Field(default="redis.pishock.com")
    port: int = Field(default=6379, ge=1, le=65535)
    connect_timeout: float = Field(default=5.0, gt=0)
    origin: str = Field(default="pishock", description="Name shown in the shocker logs")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the pishock SDK.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "PISHOCK_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # Credentials (never persisted by the SDK itself)
    user_id: int = Field(default=0, ge=0)
    token: SecretStr = Field(default=SecretStr(""))

    # Configuration sections
    login: LoginConfig = Field(default_factory=LoginConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    broker: BrokerConfig = Field(default_factory=BrokerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def has_credentials(self) -> bool:
        return self.user_id > 0 and bool(self.token.get_secret_value().strip())


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: YAML file > env vars > .env file > defaults

    YAML values are passed to :class:`Settings` as init arguments, so a
    key set in the file wins over the same key in the environment; the
    environment only fills in what the file leaves out.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
