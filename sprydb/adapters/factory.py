"""
Adapter Factory for SpryDB

Maps an engine kind to the adapter class implementing it.

Usage:
    from sprydb.adapters import create_adapter

    adapter = create_adapter(ConnectionConfig(engine="sqlite", database=":memory:"))
    adapter.connect()
"""

import logging
from typing import Any, Dict, List, Type, Union

from sprydb.adapters.base import BaseAdapter
from sprydb.core.config import ConnectionConfig
from sprydb.errors import UnsupportedEngineError

logger = logging.getLogger(__name__)


# =============================================================================
# ADAPTER REGISTRY
# =============================================================================

# Map of engine name -> adapter class
_ADAPTER_REGISTRY: Dict[str, Type[BaseAdapter]] = {}


def register_adapter(engine: str, adapter_class: Type[BaseAdapter]) -> None:
    """
    Register an adapter class for an engine.

    Args:
        engine: Engine identifier (e.g., "mysql", "oracle")
        adapter_class: Adapter class to use for this engine
    """
    _ADAPTER_REGISTRY[engine.lower()] = adapter_class
    logger.debug(f"Registered adapter for engine: {engine}")


def list_adapters() -> List[str]:
    """Get list of registered adapter engines."""
    return list(_ADAPTER_REGISTRY.keys())


def is_engine_supported(engine: str) -> bool:
    """Check if an engine has a registered adapter."""
    return engine.lower() in _ADAPTER_REGISTRY


# =============================================================================
# ADAPTER FACTORY
# =============================================================================

def create_adapter(config: Union[ConnectionConfig, Dict[str, Any]]) -> BaseAdapter:
    """
    Build an (unconnected) adapter for a connection config.

    Args:
        config: ConnectionConfig or a dict with the same fields

    Returns:
        Adapter instance; call connect() before use

    Raises:
        UnsupportedEngineError: If no adapter is registered for the engine
        ConnectionError: If the adapter rejects the configuration
    """
    if not isinstance(config, ConnectionConfig):
        config = ConnectionConfig(**config)

    if not is_engine_supported(config.engine):
        available = ", ".join(list_adapters())
        raise UnsupportedEngineError(
            f"Unsupported engine: {config.engine}. Available: {available}",
            engine=config.engine
        )

    adapter_class = _ADAPTER_REGISTRY[config.engine]
    return adapter_class(config.to_adapter_config())


def _register_builtin_adapters():
    """Register all built-in adapters."""
    from sprydb.adapters.mysql_adapter import MySQLAdapter
    from sprydb.adapters.oracle_adapter import OracleAdapter
    from sprydb.adapters.postgres_adapter import PostgresAdapter
    from sprydb.adapters.sqlite_adapter import SQLiteAdapter

    register_adapter("mysql", MySQLAdapter)
    register_adapter("mariadb", MySQLAdapter)  # MariaDB compatible

    register_adapter("oracle", OracleAdapter)
    register_adapter("oci", OracleAdapter)  # PDO driver name

    register_adapter("postgres", PostgresAdapter)
    register_adapter("postgresql", PostgresAdapter)  # Alias

    register_adapter("sqlite", SQLiteAdapter)
    register_adapter("sqlite3", SQLiteAdapter)  # Alias


# Register on module load
_register_builtin_adapters()
