# ==============================================================================
# SETTINGS CONFIGURATION - Server Environment
# ==============================================================================
# Pydantic Settings for the server, database, TLS and logging options
# ==============================================================================

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator, computed_field
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_ASYNC_DRIVERS = {
    "sqlite://": "sqlite+aiosqlite://",
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


def async_database_url(url: str) -> str:
    """Rewrite a plain database URL to its async driver variant."""
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


class Config(BaseSettings):
    """
    Server Configuration.

    Every field can be set from the environment with the ``MINIMAL_``
    prefix (``MINIMAL_DSN``, ``MINIMAL_HTTP_PORT``, ...) or from a ``.env``
    file. Defaults describe a development server: no database, plain HTTP
    on port 80 and human-readable logs.

    Attributes:
        DSN: Database URL; empty skips database setup entirely
        HTTP_PORT: Port the server listens on
        AUTO_TLS: Serve HTTPS with certificates from an ACME cache
        DOMAINS: Host whitelist used when AUTO_TLS is enabled
        FRIENDLY_LOGGING: Readable log lines instead of JSON

    Example:
        >>> config = Config(DSN="sqlite:///./app.db", HTTP_PORT=8080)
        >>> config.database_url
        'sqlite+aiosqlite:///./app.db'
    """

    model_config = SettingsConfigDict(
        env_prefix="MINIMAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # --------------------------------------------------------------------------
    APP_NAME: str = Field(
        default="minimal",
        description="Application display name"
    )
    DEBUG: bool = Field(
        default=False,
        description="Expose exception details in 500 responses"
    )

    # --------------------------------------------------------------------------
    # DATABASE
    # --------------------------------------------------------------------------
    DSN: str = Field(
        default="",
        description="SQLAlchemy database URL (empty disables the database)"
    )

    # --------------------------------------------------------------------------
    # HTTP SERVER
    # --------------------------------------------------------------------------
    HOST: str = Field(
        default="0.0.0.0",
        description="Interface to bind"
    )
    HTTP_PORT: int = Field(
        default=80,
        ge=1,
        le=65535,
        description="Port to listen on"
    )
    READ_TIMEOUT: int = Field(
        default=30,
        ge=1,
        description="Seconds an idle keep-alive connection is held open"
    )

    # --------------------------------------------------------------------------
    # TLS
    # --------------------------------------------------------------------------
    AUTO_TLS: bool = Field(
        default=False,
        description="Serve HTTPS using ACME-issued certificates"
    )
    CERT_KEY_PATH: str = Field(
        default="",
        description="Certificate chain file"
    )
    CERT_PRIVATE_KEY_PATH: str = Field(
        default="",
        description="Private key file"
    )
    CERT_CACHE_DIR: str = Field(
        default="/var/www/.cache",
        description="ACME certificate cache directory"
    )
    DOMAINS: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Host whitelist for AUTO_TLS"
    )

    # --------------------------------------------------------------------------
    # LOGGING
    # --------------------------------------------------------------------------
    FRIENDLY_LOGGING: bool = Field(
        default=True,
        description="Readable log lines instead of JSON records"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # --------------------------------------------------------------------------
    # TEMPLATES
    # --------------------------------------------------------------------------
    TEMPLATE_DIR: str = Field(
        default="www",
        description="Jinja2 template root directory"
    )

    # --------------------------------------------------------------------------
    # COMPUTED PROPERTIES
    # --------------------------------------------------------------------------
    @computed_field
    @property
    def database_url(self) -> str:
        """
        Async driver URL for ``DSN``.

        Plain ``sqlite://`` and ``postgresql://`` URLs are rewritten to the
        aiosqlite and asyncpg drivers. URLs that already name a driver are
        returned unchanged.
        """
        return async_database_url(self.DSN)

    # --------------------------------------------------------------------------
    # VALIDATORS
    # --------------------------------------------------------------------------
    @field_validator("DOMAINS", mode="before")
    @classmethod
    def parse_domains(cls, v):
        """Parse domains from a comma-separated string or list."""
        if isinstance(v, str):
            return [domain.strip() for domain in v.split(",") if domain.strip()]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def development_config() -> Config:
    """Fresh configuration with development defaults, ignoring the environment."""
    return Config.model_construct()


@lru_cache()
def get_config() -> Config:
    """
    Get cached Config instance.

    Loaded once from the environment; call ``get_config.cache_clear()`` to
    force a reload.
    """
    return Config()
