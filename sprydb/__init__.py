"""
SpryDB - Database Abstraction Layer

A uniform API for executing parameterized SQL, building simple INSERT and
UPDATE statements and retrieving rows as objects, arrays or dicts,
regardless of the engine behind the connection.
"""

import logging

from sprydb.core.config import ConnectionConfig, Settings
from sprydb.driver import DatabaseDriver, QueryLogEntry
from sprydb.errors import ConnectionError, ErrorCode, QueryError, SpryDBError, UnsupportedEngineError
from sprydb.registry import ConnectionRegistry
from sprydb.result import NOT_FOUND, OutputShape, QueryResult, Row

__version__ = "1.3.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConnectionConfig",
    "ConnectionError",
    "ConnectionRegistry",
    "DatabaseDriver",
    "ErrorCode",
    "NOT_FOUND",
    "OutputShape",
    "QueryError",
    "QueryLogEntry",
    "QueryResult",
    "Row",
    "Settings",
    "SpryDBError",
    "UnsupportedEngineError",
]
