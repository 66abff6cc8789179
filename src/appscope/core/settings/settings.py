"""
This module defines the main application settings for appscope.

It includes the `AppSettings` Pydantic model, loaded from environment variables
and .env files, and the `app_settings_constructor` factory that wires in the
database provider.
"""

import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .db_providers import AbstractDBProvider, db_provider_factory


class AppSettings(BaseSettings):
    """
    Main application settings.

    This class defines the configuration parameters for the query engine and the
    collaborators around it (database, logging, tenant identity), loaded from
    environment variables and .env files.
    """

    PRODUCTION: bool = False
    """Flag indicating if the application is running in production mode."""

    TESTING: bool = False

    LOG_CONFIG_OVERRIDE: Path | None = None
    """ path to custom logging configuration file"""

    LOG_LEVEL: str = "info"
    """ corresponds to standard Python Log levels """

    _logger: logging.Logger | None = None

    @property
    def logger(self) -> logging.Logger:
        """
        Provides a logger instance for the application.

        Initializes the root logger if it hasn't been already.

        Returns:
            logging.Logger: The application logger.
        """
        if self._logger is None:
            from appscope.core.root_logger import get_logger

            self._logger = get_logger()

        return self._logger

    # ===============================================
    # Tenant Identity

    APP_ID_HEADER: str = "app_id"
    """Request header the authentication layer fills with the verified application id."""

    DEFAULT_APP_ID: str | None = None
    """
    Application id used outside production when the header is missing.
    Mirrors the development shortcut of the upstream authentication guard.
    """

    TENANT_COLUMN: str = "app_id"
    """Name of the column holding the owning application id on tenant-scoped entities."""

    @field_validator("APP_ID_HEADER")
    @classmethod
    def lower_header_name(cls, v: str) -> str:
        """Header lookups are case-insensitive; store the canonical lowercase form."""
        return v.lower()

    # ===============================================
    # Query Engine

    DEFAULT_TABLE_ALIAS: str = "t1"
    """Alias given to the root entity when the caller does not configure one."""

    QUERY_ECHO: bool = False
    """Echo every emitted SQL statement through the SQLAlchemy engine logger."""

    # ===============================================
    # Database Config

    DB_ENGINE: str = "sqlite"
    """The database engine to use ('sqlite' or 'postgres')."""

    DB_PROVIDER: AbstractDBProvider | None = None
    """The database provider instance, configured by `app_settings_constructor`."""

    @property
    def DB_URL(self) -> str | None:
        """The full database connection URL. Returns None if DB_PROVIDER is not set."""
        return self.DB_PROVIDER.db_url if self.DB_PROVIDER else None

    @property
    def DB_URL_PUBLIC(self) -> str | None:
        """A public version of the database URL (credentials masked). Returns None if DB_PROVIDER is not set."""
        return self.DB_PROVIDER.db_url_public if self.DB_PROVIDER else None

    model_config = SettingsConfigDict(arbitrary_types_allowed=True, extra="allow")


def app_settings_constructor(
    data_dir: Path,
    production: bool,
    testing: bool,
    env_file: Path,
    env_encoding: str = "utf-8",
) -> AppSettings:
    """
    Factory function to create and configure the main `AppSettings` object.

    Args:
        data_dir (Path): The application's data directory (holds the SQLite file).
        production (bool): Flag indicating if in production mode.
        testing (bool): Flag indicating if running under the test suite.
        env_file (Path): Path to the main .env file.
        env_encoding (str): Encoding for .env files.

    Returns:
        AppSettings: The configured application settings object.
    """
    app_settings = AppSettings(
        _env_file=env_file,  # type: ignore # pydantic-settings internal
        _env_file_encoding=env_encoding,  # type: ignore
        PRODUCTION=production,
        TESTING=testing,
    )

    app_settings.DB_PROVIDER = db_provider_factory(
        app_settings.DB_ENGINE or "sqlite",
        data_dir,
        env_file=env_file,
        env_encoding=env_encoding,
    )
    return app_settings
