"""
Database provider settings for appscope.

`AbstractDBProvider` describes how a backing store is reached; `SQLiteProvider`
and `PostgresProvider` are the two supported stores. `db_provider_factory`
picks one from the configured engine name.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from urllib import parse as urlparse

from pydantic import BaseModel, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class AbstractDBProvider(ABC):
    """Interface for reaching a relational store."""

    @property
    @abstractmethod
    def db_url(self) -> str:
        """The full database connection URL, including credentials."""
        ...

    @property
    @abstractmethod
    def db_url_public(self) -> str:
        """The connection URL with credentials masked, safe for logs."""
        ...

    @property
    def connect_args(self) -> dict:
        """Extra DBAPI `connect()` arguments for this store."""
        return {}


class SQLiteProvider(AbstractDBProvider, BaseModel):
    """
    SQLite database provider.

    Attributes:
        data_dir (Path): Directory holding the database file.
        name (str): File name of the database. Defaults to "appscope.db".
        prefix (str): Optional prefix prepended to the file name.
        in_memory (bool): Use a private in-memory database instead of a file.
    """

    data_dir: Path
    name: str = "appscope.db"
    prefix: str = ""
    in_memory: bool = False

    @property
    def db_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self.data_dir / f"{self.prefix}{self.name}"

    @property
    def db_url(self) -> str:
        if self.in_memory:
            return "sqlite://"
        return f"sqlite:///{str(self.db_path.absolute())}"

    @property
    def db_url_public(self) -> str:
        return self.db_url

    @property
    def connect_args(self) -> dict:
        # Sessions are handed across threads by the request layer.
        return {"check_same_thread": False}


class PostgresProvider(AbstractDBProvider, BaseSettings):
    """
    PostgreSQL database provider.

    Reads connection details from environment variables or a .env file.
    `POSTGRES_URL_OVERRIDE` replaces every other setting when present.
    """

    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "appscope"
    POSTGRES_URL_OVERRIDE: str | None = None

    model_config = SettingsConfigDict(arbitrary_types_allowed=True, extra="allow")

    @property
    def db_url(self) -> str:
        """
        Constructs the PostgreSQL connection URL.

        Raises:
            ValueError: If `POSTGRES_URL_OVERRIDE` does not use a postgres scheme.

        Returns:
            str: The PostgreSQL connection URL.
        """
        if self.POSTGRES_URL_OVERRIDE:
            url = self.POSTGRES_URL_OVERRIDE

            scheme, remainder = url.split("://", 1)
            if scheme not in ("postgres", "postgresql"):
                raise ValueError("POSTGRES_URL_OVERRIDE scheme must be postgres or postgresql")

            credentials = remainder[: remainder.rfind("@")]
            if ":" in credentials:
                password = credentials.split(":", 1)[1]
                url = url.replace(password, urlparse.quote(password), 1)

            return url.replace(f"{scheme}://", "postgresql://", 1)
        return str(
            PostgresDsn.build(
                scheme="postgresql",
                username=self.POSTGRES_USER,
                password=urlparse.quote(self.POSTGRES_PASSWORD),
                host=self.POSTGRES_SERVER,
                port=int(self.POSTGRES_PORT),
                path=self.POSTGRES_DB or "",
            )
        )

    @property
    def db_url_public(self) -> str:
        url = self.db_url
        if self.POSTGRES_USER:
            url = url.replace(self.POSTGRES_USER, "*****", 1)
        if self.POSTGRES_PASSWORD:
            url = url.replace(urlparse.quote(self.POSTGRES_PASSWORD), "*****", 1)
        return url


def db_provider_factory(provider_name: str, data_dir: Path, env_file: Path, env_encoding="utf-8") -> AbstractDBProvider:
    """
    Create the database provider for the configured engine.

    Args:
        provider_name (str): "postgres", "sqlite" or "sqlite-memory".
        data_dir (Path): Directory for the SQLite database file.
        env_file (Path): .env file consulted for PostgreSQL settings.
        env_encoding (str): Encoding of the .env file.

    Returns:
        AbstractDBProvider: The provider instance.
    """
    if provider_name == "postgres":
        return PostgresProvider(_env_file=env_file, _env_file_encoding=env_encoding)
    if provider_name == "sqlite-memory":
        return SQLiteProvider(data_dir=data_dir, in_memory=True)
    return SQLiteProvider(data_dir=data_dir)
