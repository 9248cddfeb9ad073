"""
Database Driver for SpryDB

The DatabaseDriver owns one adapter connection and is the entry point for
application code:

    driver = DatabaseDriver.connect(ConnectionConfig(engine="sqlite", database="app.db"))
    driver.table_prefix("app_")

    driver.insert("{{prefix}}users", {"username": "jdoe", "status": "active"})
    user = driver.get_row("SELECT * FROM {{prefix}}users WHERE username = :name", {"name": "jdoe"})

QUERY PIPELINE:
---------------
1. Bind parameter names are normalized to exactly one ':' marker
2. The table prefix macro is substituted (when enabled)
3. A prepared statement is reused if one exists for the exact SQL text
4. The statement is executed and timed; every run is appended to the log
5. Failures are stored as last_error() and signalled by a None return

Query failures never raise. Callers check ``query()`` for None, and the
retrieval helpers turn a failed query into an empty value of the requested
shape ([] / {} / Row() / NOT_FOUND).

A driver is not safe for concurrent use: the statement cache, the query log
and the last_* state are mutated on every call.
"""

import logging
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, TextIO, Union

from sprydb.adapters.base import PARAM_MARKER, BaseAdapter, PreparedStatement
from sprydb.adapters.factory import create_adapter
from sprydb.core.config import ConnectionConfig, Settings, get_settings
from sprydb.errors import QueryError
from sprydb.result import EMPTY_SHAPES, NOT_FOUND, OutputShape, QueryResult
from sprydb.statement_cache import StatementCache

logger = logging.getLogger(__name__)

WHERE_PARAM_PREFIX = "where_"


@dataclass(frozen=True)
class QueryLogEntry:
    """One executed statement and how long it took (seconds)."""
    sql: str
    execution_time: float


def normalize_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Give every bind parameter name exactly one leading ':' marker.

    >>> normalize_params({"id": 1, ":name": "x", "::status": "y"})
    {':id': 1, ':name': 'x', ':status': 'y'}
    """
    if not params:
        return {}
    return {PARAM_MARKER + name.lstrip(PARAM_MARKER): value for name, value in params.items()}


def _pick(values: Any, column: Union[int, str]) -> Any:
    """Index into a row, NOT_FOUND when the column does not exist."""
    if isinstance(column, int) and column < 0:
        return NOT_FOUND
    try:
        return values[column]
    except (IndexError, KeyError, TypeError):
        return NOT_FOUND


class DatabaseDriver:
    """
    Executes SQL against one engine connection.

    Args:
        adapter: Engine adapter; connected here if it is not connected yet
        settings: Driver defaults (prefix macro, cache size, thresholds)
        error_stream: Where show_errors() echoes failures (default: stderr)

    Raises:
        ConnectionError: If the adapter cannot connect
    """

    def __init__(
        self,
        adapter: BaseAdapter,
        settings: Optional[Settings] = None,
        error_stream: Optional[TextIO] = None,
    ):
        self.settings = settings or get_settings()

        if not adapter.is_connected():
            adapter.connect()
        self._adapter = adapter

        self._table_prefix = self.settings.table_prefix
        self._prefix_macro = self.settings.prefix_macro
        self._enable_prefix_macro = False

        self._show_errors = self.settings.show_errors
        self._error_stream = error_stream

        self._statements = StatementCache(
            self.settings.statement_cache_size,
            on_evict=self._release_statement,
        )
        self._query_log: List[QueryLogEntry] = []

        self._last_query: Optional[str] = None
        self._last_error: Optional[QueryError] = None
        self._last_result: Optional[QueryResult] = None

    @classmethod
    def connect(
        cls,
        config: Union[ConnectionConfig, Dict[str, Any]],
        settings: Optional[Settings] = None,
        error_stream: Optional[TextIO] = None,
    ) -> "DatabaseDriver":
        """Build the adapter for ``config`` and open a driver on it."""
        return cls(create_adapter(config), settings=settings, error_stream=error_stream)

    @property
    def adapter(self) -> BaseAdapter:
        return self._adapter

    @property
    def engine(self) -> str:
        return self._adapter.ENGINE

    @property
    def statement_cache(self) -> StatementCache:
        return self._statements

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def table_prefix(self, prefix: Optional[str] = None, enable_macro: bool = True):
        """
        Get or set the table prefix.

        Called without arguments, returns the current prefix. Called with a
        prefix, stores it, switches macro substitution on or off and returns
        the driver for chaining.
        """
        if prefix is None:
            return self._table_prefix

        self._table_prefix = prefix
        self._enable_prefix_macro = enable_macro
        return self

    def prefix_macro(self, token: Optional[str] = None):
        """Get or set the token replaced by the table prefix."""
        if token is None:
            return self._prefix_macro
        if not token:
            raise ValueError("Prefix macro token must not be empty")
        self._prefix_macro = token
        return self

    def show_errors(self) -> "DatabaseDriver":
        """Echo failed-query messages to the error stream."""
        self._show_errors = True
        return self

    def hide_errors(self) -> "DatabaseDriver":
        """Stop echoing failed-query messages."""
        self._show_errors = False
        return self

    # =========================================================================
    # STATE
    # =========================================================================

    def last_result(self) -> Optional[QueryResult]:
        """Result of the last query, None if it failed or nothing ran yet."""
        return self._last_result

    def last_query(self) -> Optional[str]:
        """Text of the last executed statement (after prefix substitution)."""
        return self._last_query

    def last_error(self) -> Optional[QueryError]:
        """The most recent query failure, if any."""
        return self._last_error

    def queries(self) -> List[QueryLogEntry]:
        """Every statement run so far, oldest first."""
        return list(self._query_log)

    def slow_queries(self, threshold: Optional[float] = None) -> List[QueryLogEntry]:
        """Statements that took ``threshold`` seconds or longer (default from settings)."""
        if threshold is None:
            threshold = self.settings.slow_query_threshold
        return [entry for entry in self._query_log if entry.execution_time >= threshold]

    def long_queries(self) -> List[QueryLogEntry]:
        """Statements over the long query threshold (10 seconds by default)."""
        return self.slow_queries(self.settings.long_query_threshold)

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def escape_str(self, value: Any) -> str:
        """Quote a literal for direct inclusion in SQL text."""
        return self._adapter.quote(value)

    quote_str = escape_str

    def _prepare(self, sql: str) -> PreparedStatement:
        statement = self._statements.get(sql)
        if statement is None:
            statement = self._adapter.prepare(sql)
            self._statements.put(statement)
        else:
            logger.debug(f"Reusing prepared statement: {sql}")
        return statement

    def _release_statement(self, statement: PreparedStatement) -> None:
        if statement.cursor is None:
            return
        try:
            statement.cursor.close()
        except Exception as e:
            logger.warning(f"Error closing statement cursor: {e}")

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Optional[QueryResult]:
        """
        Execute a statement.

        Args:
            sql: SQL with :name markers and optional prefix macros
            params: Bind parameters; names may be given with or without ':'

        Returns:
            A new QueryResult, or None if the statement failed (details in
            last_error())
        """
        bind_params = normalize_params(params)

        if self._enable_prefix_macro:
            sql = sql.replace(self._prefix_macro, self._table_prefix)

        start_time = time.perf_counter()
        error = None
        try:
            statement = self._prepare(sql)
            execution = self._adapter.execute(statement, bind_params)
        except QueryError as e:
            error = e

        execution_time = time.perf_counter() - start_time

        self._last_query = sql
        self._query_log.append(QueryLogEntry(sql=sql, execution_time=execution_time))

        if error is not None:
            self._last_error = error
            logger.warning(f"Query failed ({error.code.value}) after {execution_time:.5f}s: {error.message} [{sql}]")

            if self._show_errors:
                print(error.message, file=self._error_stream or sys.stderr)

            self._last_result = None
            return None

        logger.debug(f"Query executed in {execution_time:.5f}s: {sql}")
        self._last_result = QueryResult(execution)
        return self._last_result

    # =========================================================================
    # STATEMENT BUILDERS
    # =========================================================================

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        """
        Insert one row built from column -> value pairs.

        Returns:
            Number of rows inserted, 0 if the statement failed
        """
        columns = list(values)
        placeholders = ", ".join(PARAM_MARKER + column for column in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"

        result = self.query(sql, values)
        return result.row_count() if result is not None else 0

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        where: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """
        Update rows from column -> value pairs.

        ``where`` columns are ANDed together as equality tests. Their bind
        parameters live in a ``where_`` namespace so a column may appear in
        both ``values`` and ``where``.

        Returns:
            Number of rows affected, 0 if the statement failed
        """
        assignments = ", ".join(f"{column} = {PARAM_MARKER}{column}" for column in values)
        sql = f"UPDATE {table} SET {assignments}"
        bind_params = dict(values)

        if where:
            conditions = []
            for column, value in where.items():
                name = f"{WHERE_PARAM_PREFIX}{column}"
                while name in bind_params:
                    name = f"{WHERE_PARAM_PREFIX}{name}"
                bind_params[name] = value
                conditions.append(f"{column} = {PARAM_MARKER}{name}")
            sql += " WHERE " + " AND ".join(conditions)

        result = self.query(sql, bind_params)
        return result.row_count() if result is not None else 0

    def insert_id(self) -> Any:
        """Engine-reported id of the most recently inserted row."""
        return self._adapter.last_insert_id()

    # =========================================================================
    # RETRIEVAL
    # =========================================================================

    def get_results(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        shape: Union[OutputShape, str] = OutputShape.OBJECT,
    ) -> List[Any]:
        """Every row in the requested shape; [] if the query failed."""
        result = self.query(sql, params)
        if result is None:
            return []
        return result.all(shape)

    def get_row(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        row: int = 0,
        shape: Union[OutputShape, str] = OutputShape.OBJECT,
    ) -> Any:
        """
        One row in the requested shape.

        Returns the shape's empty value (Row(), [] or {}) if the query
        failed and NOT_FOUND if it succeeded without a row at ``row``.
        """
        shape = OutputShape(shape)
        result = self.query(sql, params)
        if result is None:
            return EMPTY_SHAPES[shape]()
        return result.row(row, shape)

    def get_var(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        row: int = 0,
        column: Union[int, str] = 0,
    ) -> Any:
        """
        A single value; ``column`` is a position or a column name.

        NOT_FOUND if the query failed or the row/column does not exist.
        """
        result = self.query(sql, params)
        if result is None:
            return NOT_FOUND

        shape = OutputShape.ASSOC if isinstance(column, str) else OutputShape.ARRAY
        values = result.row(row, shape)
        if values is NOT_FOUND:
            return NOT_FOUND
        return _pick(values, column)

    def get_column(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        column: int = 0,
    ) -> List[Any]:
        """Every row's value at ``column``; [] if the query failed."""
        result = self.query(sql, params)
        if result is None:
            return []
        return [_pick(values, column) for values in result.as_array(True)]

    def get_pairs(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        key_column: int = 0,
        value_column: int = 1,
    ) -> Dict[Any, Any]:
        """
        Map one column onto another, in row order.

        Later duplicate keys overwrite earlier ones. {} if the query failed.
        """
        result = self.query(sql, params)
        if result is None:
            return {}

        pairs = {}
        for values in result.as_array(True):
            pairs[_pick(values, key_column)] = _pick(values, value_column)
        return pairs

    # =========================================================================
    # DDL
    # =========================================================================

    def truncate(self, table: str) -> bool:
        """Remove every row from a table. True if the statement succeeded."""
        return self.query(f"TRUNCATE {table}") is not None

    def drop(self, object_type: str, object_name: str) -> bool:
        """Drop a table, view or index. True if the statement succeeded."""
        return self.query(f"DROP {object_type.upper()} {object_name}") is not None

    def drop_table(self, name: str) -> bool:
        return self.drop("TABLE", name)

    def drop_view(self, name: str) -> bool:
        return self.drop("VIEW", name)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        """Release prepared statements and disconnect the adapter."""
        self._statements.clear()
        self._adapter.disconnect()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"<DatabaseDriver engine={self.engine} queries={len(self._query_log)}>"
