"""
Database Adapters for SpryDB

This package provides a uniform interface to different engine client
libraries. Each adapter handles:
- Connection management
- Statement preparation and execution
- Parameter placeholder conversion
- Literal quoting and last-insert-id reporting

Supported Engines:
- SQLite (built-in, zero dependencies)
- MySQL / MariaDB
- PostgreSQL
- Oracle Database
"""

from sprydb.adapters.base import AdapterResult, BaseAdapter, PreparedStatement
from sprydb.adapters.factory import (
    create_adapter,
    is_engine_supported,
    list_adapters,
    register_adapter,
)

__all__ = [
    "AdapterResult",
    "BaseAdapter",
    "PreparedStatement",
    "create_adapter",
    "is_engine_supported",
    "list_adapters",
    "register_adapter",
]
