"""
Configuration Management

Centralized configuration using Pydantic Settings.

Driver defaults (prefix macro, statement cache size, slow query thresholds)
come from ``Settings``; per-connection parameters come from
``ConnectionConfig``. Both can be populated from ``SPRYDB_*`` environment
variables.
"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library-wide driver settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPRYDB_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # Table prefix macro
    table_prefix: str = "prefix_"
    prefix_macro: str = "{{prefix}}"

    # Prepared statement reuse
    statement_cache_size: int = Field(default=1, ge=1)

    # Instrumentation
    slow_query_threshold: float = 1.0
    long_query_threshold: float = 10.0

    # Diagnostics
    show_errors: bool = False
    log_level: str = "WARNING"


class ConnectionConfig(BaseModel):
    """
    Parameters for opening one engine connection.

    Attributes:
        engine: Engine kind registered with the adapter factory
                (mysql, oracle, postgres, sqlite, ...)
        host: Server host. Oracle accepts ``host:port:protocol``.
        user: Username
        password: Password
        database: Database (or Oracle service) name; file path for SQLite
        options: Engine-specific extras passed through to the adapter.
                 Unknown top-level keys (``port``, ``read_only``, ...) are
                 collected here; explicit ``options`` entries win.
    """

    engine: str = "mysql"
    host: str = "localhost"
    user: str = ""
    password: str = ""
    database: str = ""
    options: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_options(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        extras = {k: v for k, v in data.items() if k not in cls.model_fields}
        if not extras:
            return data
        known = {k: v for k, v in data.items() if k in cls.model_fields}
        known["options"] = {**extras, **(known.get("options") or {})}
        return known

    @field_validator("engine")
    @classmethod
    def _normalize_engine(cls, value: str) -> str:
        return value.strip().lower()

    def to_adapter_config(self) -> Dict[str, Any]:
        """Flatten into the dict form adapters are initialized with."""
        config = {
            "host": self.host,
            "user": self.user,
            "password": self.password,
            "database": self.database,
        }
        config.update(self.options)
        return config

    @classmethod
    def from_env(cls, identifier: str = "default", environ: Optional[Dict[str, str]] = None) -> "ConnectionConfig":
        """
        Build a config from ``SPRYDB_<IDENTIFIER>_*`` environment variables.

        Recognized suffixes: ENGINE, HOST, USER, PASSWORD, DATABASE.
        Missing variables fall back to the model defaults.
        """
        environ = os.environ if environ is None else environ
        prefix = f"SPRYDB_{identifier.upper()}_"
        values = {}
        for name in ("engine", "host", "user", "password", "database"):
            key = prefix + name.upper()
            if key in environ:
                values[name] = environ[key]
        return cls(**values)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
