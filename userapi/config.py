import logging
import os
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from typing_extensions import Self


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by USER_API_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        config_file = os.environ.get("USER_API_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class ServiceConfig(BaseModel):
    """Service identity (nested in Config, uses env_nested_delimiter)."""

    name: str = "user-api"
    version: str = "0.1.0"
    env: str = "local"  # local, dev01, test01, prod01, ...

    @property
    def is_prod_like(self) -> bool:
        return self.env.lower().startswith("prod")


class DatabaseConfig(BaseModel):
    """Database configuration (nested in Config, uses env_nested_delimiter)."""

    url: str = "sqlite+aiosqlite:///~/.user-api/user-api.db"
    echo: bool = False
    pool_size: int = 5  # PostgreSQL only
    max_overflow: int = 10  # PostgreSQL only
    auto_migrate: bool = True  # Run alembic upgrade on startup


class CacheConfig(BaseModel):
    """Cache configuration (nested in Config, uses env_nested_delimiter).

    The cache is never authoritative. When disabled, or when the backend
    cannot be reached at startup, every read goes to the database.
    """

    enabled: bool = False
    backend: Literal["memory", "redis"] = "redis"
    url: str = "redis://localhost:6379/0"
    key_prefix: str = "user-api"
    user_ttl: int = Field(default=300, ge=1)  # seconds
    role_ttl: int = Field(default=600, ge=1)  # seconds
    list_ttl: int = Field(default=60, ge=1)  # seconds; lists churn more than entities
    max_entries: int = Field(default=10_000, ge=1)  # memory backend only
    socket_timeout: float = 1.0  # redis backend only

    @model_validator(mode="after")
    def check_prefix(self) -> Self:
        if not self.key_prefix or any(c in self.key_prefix for c in "*?[]"):
            raise ValueError("cache.key_prefix must be non-empty and free of glob characters")
        return self


class PaginationConfig(BaseModel):
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def check_bounds(self) -> Self:
        if self.default_page_size > self.max_page_size:
            raise ValueError("pagination.default_page_size must not exceed max_page_size")
        return self


class RolesConfig(BaseModel):
    # Applies to uniqueness and lookup by name. Changing it on a populated
    # database requires re-deriving roles.name_key.
    case_sensitive_names: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from USER_API_LOG_FILE env var."""
        return os.environ.get("USER_API_LOG_FILE")


class Config(BaseSettings):
    service: ServiceConfig = ServiceConfig()
    database: DatabaseConfig = DatabaseConfig()
    cache: CacheConfig = CacheConfig()
    pagination: PaginationConfig = PaginationConfig()
    roles: RolesConfig = RolesConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "USER_API_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows USER_API_CACHE__ENABLED override
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - USER_API_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup so every module logger
    picks up the handlers.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
