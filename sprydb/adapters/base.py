"""
Base Adapter Interface for SpryDB

All engine adapters implement this interface so the driver can stay
engine-agnostic.

DESIGN PRINCIPLES:
-----------------
1. One adapter owns exactly one DB-API connection (no pooling)
2. SQL uses :name markers (adapter converts as needed)
3. Statements are prepared once and executed many times
4. Results are materialized in full (column names + row tuples)
5. Errors wrapped in ConnectionError / QueryError for consistent handling
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sprydb.errors import ConnectionError, ErrorCode, QueryError

logger = logging.getLogger(__name__)

PARAM_MARKER = ":"

# A quoted literal (skipped) or a :name marker not preceded by ':' or a word char
_NAMED_PARAM_RE = re.compile(r"('(?:[^']|'')*')|(?<![:\w]):([A-Za-z_]\w*)")


def rewrite_named_params(sql: str, template: str) -> str:
    """
    Rewrite ``:name`` markers outside of string literals.

    Args:
        sql: SQL text with :name markers
        template: Format string receiving the bare name, e.g. ``"%({})s"``

    Returns:
        SQL in the engine's paramstyle
    """
    def _sub(match: "re.Match[str]") -> str:
        if match.group(1) is not None:
            return match.group(1)
        return template.format(match.group(2))

    return _NAMED_PARAM_RE.sub(_sub, sql)


@dataclass
class PreparedStatement:
    """
    A statement compiled for one connection.

    Attributes:
        sql: Source text the statement was prepared from
        compiled_sql: Text in the engine's paramstyle
        cursor: DB-API cursor the statement executes on
    """
    sql: str
    compiled_sql: str
    cursor: Any = None


@dataclass
class AdapterResult:
    """
    Materialized outcome of one statement execution.

    Attributes:
        columns: Column names in declared order (empty for non-queries)
        rows: Row values as tuples, in column order
        row_count: Engine-reported affected/returned row count (-1 if unknown)
    """
    columns: List[str]
    rows: List[Tuple[Any, ...]]
    row_count: int = -1


class BaseAdapter(ABC):
    """
    Abstract base class for engine adapters.

    Each adapter must implement:
    - connect(): Establish database connection
    - disconnect(): Close connection
    - convert_placeholders(): Convert :name to the engine paramstyle

    The base class provides DB-API based prepare/execute, literal quoting
    and last-insert-id tracking; adapters override them where the engine
    offers something better.

    Usage:
        adapter = SQLiteAdapter({"database": ":memory:"})
        adapter.connect()

        stmt = adapter.prepare("SELECT * FROM users WHERE id = :id")
        result = adapter.execute(stmt, {":id": 5})

        adapter.disconnect()
    """

    # Engine identifier (e.g., "mysql", "oracle", "sqlite")
    ENGINE: str = "base"

    # Placeholder format used by this engine
    PLACEHOLDER: str = ":name"

    # Statement used by health_check()
    HEALTH_CHECK_SQL: str = "SELECT 1"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize adapter with connection configuration.

        Args:
            config: Database-specific configuration dict
                    (host, user, password, database, etc.)
        """
        self.config = config
        self._connection = None
        self._connected = False
        self._last_used = None
        self._last_insert_id = None

    @abstractmethod
    def connect(self) -> None:
        """
        Establish connection to database.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """
        Close database connection.

        Should be safe to call even if not connected.
        """
        pass

    def convert_placeholders(self, sql: str) -> str:
        """
        Convert :name markers to the engine-specific format.

        Default implementation returns sql unchanged (engines with a native
        named paramstyle: SQLite, Oracle).
        """
        return sql

    def convert_params(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Strip the marker from normalized bind names for the DB-API call."""
        return {name.lstrip(PARAM_MARKER): value for name, value in params.items()}

    def _require_connection(self) -> None:
        if not self._connected:
            raise QueryError(
                f"Not connected to {self.ENGINE}",
                engine=self.ENGINE,
                code=ErrorCode.ERR_NOT_CONNECTED
            )

    def prepare(self, sql: str) -> PreparedStatement:
        """
        Compile a statement for repeated execution.

        Raises:
            QueryError: If the statement cannot be prepared
        """
        self._require_connection()
        try:
            compiled = self.convert_placeholders(sql)
            cursor = self._connection.cursor()
        except Exception as e:
            raise QueryError(
                f"{self.ENGINE} prepare failed: {e}",
                engine=self.ENGINE,
                code=ErrorCode.ERR_PREPARE_FAILED,
                original_error=e
            )
        return PreparedStatement(sql=sql, compiled_sql=compiled, cursor=cursor)

    def _run(self, statement: PreparedStatement, params: Dict[str, Any]) -> None:
        """Issue the DB-API execute call for a prepared statement."""
        statement.cursor.execute(statement.compiled_sql, params)

    def execute(self, statement: PreparedStatement, params: Optional[Mapping[str, Any]] = None) -> AdapterResult:
        """
        Execute a prepared statement and materialize its rows.

        Args:
            statement: Statement returned by prepare()
            params: Bind parameters keyed by ``:name``

        Returns:
            AdapterResult with columns, rows and counts

        Raises:
            QueryError: If execution fails
        """
        self._require_connection()
        self._update_last_used()
        cursor = statement.cursor

        try:
            self._run(statement, self.convert_params(params or {}))

            if cursor.description:
                columns = [desc[0] for desc in cursor.description]
                rows = [tuple(row) for row in cursor.fetchall()]
            else:
                columns, rows = [], []

            row_count = cursor.rowcount if cursor.rowcount is not None else -1
            self._last_insert_id = self._fetch_last_insert_id(cursor)

        except Exception as e:
            raise QueryError(
                f"{self.ENGINE} query failed: {e}",
                engine=self.ENGINE,
                code=ErrorCode.ERR_EXECUTE_FAILED,
                original_error=e
            )

        return AdapterResult(
            columns=columns,
            rows=rows,
            row_count=row_count,
        )

    def _fetch_last_insert_id(self, cursor: Any) -> Any:
        lastrowid = getattr(cursor, "lastrowid", None)
        return lastrowid if lastrowid else self._last_insert_id

    def last_insert_id(self) -> Any:
        """Return the engine-reported id of the most recently inserted row."""
        return self._last_insert_id

    def quote(self, value: Any) -> str:
        """Quote a literal for inclusion in SQL text (standard SQL rules)."""
        return "'" + str(value).replace("'", "''") + "'"

    def health_check(self) -> bool:
        """Check if connection is alive and usable."""
        if not self._connected:
            return False
        try:
            cursor = self._connection.cursor()
            cursor.execute(self.HEALTH_CHECK_SQL)
            cursor.fetchone()
            cursor.close()
            return True
        except Exception:
            return False

    def is_connected(self) -> bool:
        """Check if adapter has an active connection."""
        return self._connected

    def get_engine_info(self) -> Dict[str, Any]:
        """Get information about this adapter/engine."""
        return {
            "engine": self.ENGINE,
            "connected": self._connected,
            "placeholder": self.PLACEHOLDER,
            "last_used": self._last_used.isoformat() if self._last_used else None
        }

    def _update_last_used(self):
        """Update last used timestamp."""
        self._last_used = datetime.now(timezone.utc)

    def __enter__(self):
        """Context manager support."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager cleanup."""
        self.disconnect()
        return False
