"""
SQLite Adapter for SpryDB

Features:
- File or in-memory databases (``:memory:``)
- Read-only mode through a ``mode=ro`` URI
- Native :name bind parameters
- Autocommit: every statement is committed as it runs

Requirements:
    None - sqlite3 is included in Python standard library
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict

from sprydb.adapters.base import BaseAdapter, ConnectionError

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


class SQLiteAdapter(BaseAdapter):
    """
    Adapter for SQLite databases.

    Config options:
        database: Path to SQLite file or ':memory:' (required)
        create: Create the file if it is missing (default: True)
        read_only: Open an existing file read-only (default: False)
        foreign_keys: Enforce foreign key constraints (default: True)

    Example:
        adapter = SQLiteAdapter({"database": "/path/to/app.db"})
    """

    ENGINE = "sqlite"
    PLACEHOLDER = ":name"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)

        self.database = config.get("database")
        if not self.database:
            raise ConnectionError("Missing required config: database", engine=self.ENGINE)

        self.is_memory = self.database == MEMORY_DATABASE
        self.read_only = bool(config.get("read_only", False)) and not self.is_memory
        self.foreign_keys = config.get("foreign_keys", True)

        must_exist = self.read_only or not config.get("create", True)
        if must_exist and not self.is_memory and not Path(self.database).exists():
            raise ConnectionError(f"Database file not found: {self.database}", engine=self.ENGINE)

    def _target(self) -> str:
        if self.read_only:
            return f"file:{Path(self.database).absolute()}?mode=ro"
        return self.database

    def connect(self) -> None:
        """Open the database in autocommit mode."""
        try:
            self._connection = sqlite3.connect(self._target(), uri=self.read_only, isolation_level=None)
            if self.foreign_keys:
                self._connection.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise ConnectionError(
                f"Failed to open SQLite database {self.database}: {e}",
                engine=self.ENGINE,
                original_error=e
            )

        self._connected = True
        logger.info(f"SQLite connected: {self.database}{' (read-only)' if self.read_only else ''}")

    def disconnect(self) -> None:
        """Close the SQLite connection."""
        if self._connection is not None:
            try:
                self._connection.close()
            except sqlite3.Error as e:
                logger.warning(f"Error closing SQLite connection: {e}")
            self._connection = None
        self._connected = False
