"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of ALMREST, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Configuration management for ALMREST.

This module provides a central location for all configuration settings in ALMREST.
It handles environment variables, default values, and validation of configuration
parameters for the ALM connection and for logging.
"""

import logging
import os
from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from almrest.core.logging import get_logger

logger = get_logger(__name__)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class BaseConfig(BaseModel):
    """Base configuration class with common functionality."""

    # Class variable to store environment variable prefixes
    ENV_PREFIX: ClassVar[str] = "ALMREST_"

    @classmethod
    def from_env(cls, **overrides) -> "BaseConfig":
        """
        Create a configuration instance from environment variables.

        Args:
        ----
            **overrides: Key-value pairs that override environment variables

        """
        raise NotImplementedError("Subclasses must implement from_env method")

    @classmethod
    def get_env_var(cls, key: str, default: Any = None) -> Any:
        """
        Get an environment variable with the class prefix.

        Args:
        ----
            key: Key name without prefix
            default: Default value if environment variable is not found

        Returns:
        -------
            The environment variable value or default

        """
        env_key = f"{cls.ENV_PREFIX}{key.upper()}"
        return os.environ.get(env_key, default)


class LoggingConfig(BaseConfig):
    """Configuration for logging settings."""

    level: str = Field(
        default_factory=lambda: os.environ.get("ALMREST_LOG_LEVEL", "INFO"),
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    use_rich: bool = Field(
        default=True,
        description="Whether to use rich for logging formatting",
    )
    log_file: str | None = Field(
        default=None,
        description="Path to the log file (None for console-only logging)",
    )
    json_format: bool = Field(
        default=False,
        description="Whether to use JSON format for logs",
    )
    include_correlation_id: bool = Field(
        default=True,
        description="Whether to include correlation IDs in logs",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, value):
        """Validate that the log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        value = value.upper()
        if value not in valid_levels:
            logger.warning(f"Invalid log level '{value}', defaulting to INFO")
            return "INFO"
        return value

    @classmethod
    def from_env(cls, **overrides) -> "LoggingConfig":
        """Create a logging configuration from environment variables."""
        config = {
            "level": cls.get_env_var("LOG_LEVEL", "INFO"),
            "use_rich": _as_bool(cls.get_env_var("LOG_USE_RICH", "true")),
            "log_file": cls.get_env_var("LOG_FILE", None),
            "json_format": _as_bool(cls.get_env_var("LOG_JSON", "false")),
            "include_correlation_id": _as_bool(cls.get_env_var("LOG_CORRELATION_ID", "true")),
        }

        # Override with any directly provided values
        config.update(overrides)

        return cls(**config)

    def get_log_level_int(self) -> int:
        """Get the numeric logging level."""
        return getattr(logging, self.level)

    def configure_logging(self, debug: bool = False) -> None:
        """
        Configure logging based on the settings.

        Args:
        ----
            debug: Whether to force debug mode

        """
        from almrest.core.logging import configure_logging as configure_contextual_logging

        configure_contextual_logging(
            level=self.get_log_level_int(),
            log_file=self.log_file,
            json_format=self.json_format,
            include_timestamp=True,
            use_rich=self.use_rich,
            include_correlation_id=self.include_correlation_id,
            debug=debug,
        )


class ALMConfig(BaseConfig):
    """Configuration for the ALM REST API."""

    base_url: str = Field(
        ...,
        description="Server root of the ALM installation (e.g., https://alm.example.com)",
    )
    domain: str = Field(
        default="",
        description="ALM domain that owns the project",
    )
    project: str = Field(
        default="",
        description="ALM project holding the test entities",
    )
    username: str = Field(
        default="",
        description="Username presented at the authentication point",
    )
    password: str = Field(
        default="",
        description="Password presented at the authentication point",
        repr=False,
    )
    timeout: float = Field(
        default=30.0,
        description="API request timeout in seconds",
        gt=0,
    )
    verify_ssl: bool = Field(
        default=True,
        description="Whether to verify the server's TLS certificate",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value):
        """Validate base URL format."""
        if not value:
            raise ValueError("base_url must be provided")

        # Ensure base URL has proper prefix, adding https:// if missing
        if not value.startswith(("http://", "https://")):
            value = f"https://{value}"
        return value.rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> "ALMConfig":
        """Create an ALM configuration from environment variables."""
        config = {
            "base_url": cls.get_env_var("ALM_BASE_URL", ""),
            "domain": cls.get_env_var("ALM_DOMAIN", ""),
            "project": cls.get_env_var("ALM_PROJECT", ""),
            "username": cls.get_env_var("ALM_USERNAME", ""),
            "password": cls.get_env_var("ALM_PASSWORD", ""),
            "timeout": float(cls.get_env_var("ALM_TIMEOUT", "30.0")),
            "verify_ssl": _as_bool(cls.get_env_var("ALM_VERIFY_SSL", "true")),
        }

        # Override with any directly provided values; None means "not given"
        config.update({key: value for key, value in overrides.items() if value is not None})

        return cls(**config)


class AppConfig(BaseConfig):
    """Main application configuration that aggregates all other configurations."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    alm: ALMConfig | None = Field(
        default=None,
        description="ALM REST API configuration",
    )
    debug: bool = Field(
        default=False,
        description="Debug mode flag",
    )
    app_name: str = Field(
        default="ALMREST",
        description="Application name",
    )
    app_version: str = Field(
        default="0.0.0",
        description="Application version",
    )

    @classmethod
    def from_env(cls, **overrides) -> "AppConfig":
        """Create an application configuration from environment variables."""
        config = {
            "logging": LoggingConfig.from_env(),
            "debug": _as_bool(cls.get_env_var("DEBUG", "false")),
            "app_name": cls.get_env_var("APP_NAME", "ALMREST"),
            "app_version": cls.get_env_var("APP_VERSION", "0.0.0"),
        }

        if cls.get_env_var("ALM_BASE_URL"):
            config["alm"] = ALMConfig.from_env()

        for key, value in overrides.items():
            if key == "logging" and isinstance(value, dict):
                config[key] = LoggingConfig(**value)
            elif key == "alm" and isinstance(value, dict):
                config[key] = ALMConfig(**value)
            else:
                config[key] = value

        return cls(**config)

    def configure_logging(self) -> None:
        """Configure logging based on the settings."""
        self.logging.configure_logging(debug=self.debug)


# Global app configuration
_app_config = None


def get_app_config() -> AppConfig:
    """
    Get the global application configuration.

    Returns
    -------
        The application configuration instance

    """
    global _app_config
    if _app_config is None:
        _app_config = AppConfig.from_env()
    return _app_config


def init_app_config(config: AppConfig = None, **kwargs) -> AppConfig:
    """
    Initialize the global application configuration.

    Args:
    ----
        config: An existing AppConfig instance
        **kwargs: Key-value pairs for creating a new AppConfig

    Returns:
    -------
        The application configuration instance

    """
    global _app_config
    _app_config = config if config is not None else AppConfig.from_env(**kwargs)
    return _app_config


def configure_logging(debug: bool = False) -> None:
    """
    Configure logging from the global configuration, optionally forcing debug mode.

    Args:
    ----
        debug: Whether to force debug mode

    """
    get_app_config().logging.configure_logging(debug=debug)
