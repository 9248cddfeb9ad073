"""
Tests for DatabaseDriver statement building, caching and bookkeeping.

These run against a recording adapter so the exact SQL text and bind
parameters handed to the engine can be checked.
"""

import io
from types import SimpleNamespace

import pytest

import sprydb.driver as driver_module
from sprydb.adapters.base import AdapterResult
from sprydb.core.config import Settings
from sprydb.driver import DatabaseDriver, QueryLogEntry, normalize_params
from sprydb.errors import ConnectionError, ErrorCode, QueryError
from sprydb.result import NOT_FOUND, OutputShape, Row


def failing(sql):
    return QueryError(f"syntax error near {sql!r}", engine="fake")


class TestConstruction:
    """Tests for connecting a driver."""

    def test_connects_adapter(self, settings, make_adapter):
        adapter = make_adapter()
        DatabaseDriver(adapter, settings=settings)
        assert adapter.is_connected()
        assert adapter.connect_calls == 1

    def test_connected_adapter_not_reconnected(self, settings, make_adapter):
        adapter = make_adapter()
        adapter.connect()
        DatabaseDriver(adapter, settings=settings)
        assert adapter.connect_calls == 1

    def test_connection_failure_propagates(self, settings, make_adapter):
        with pytest.raises(ConnectionError) as exc_info:
            DatabaseDriver(make_adapter(fail_connect=True), settings=settings)
        assert exc_info.value.code == ErrorCode.ERR_CONNECTION_FAILED
        assert "2002" in exc_info.value.message


class TestBindParameters:
    """Tests for bind parameter name normalization."""

    def test_adds_marker(self):
        assert normalize_params({"id": 1}) == {":id": 1}

    def test_keeps_exactly_one_marker(self):
        assert normalize_params({":id": 1, "::name": "x"}) == {":id": 1, ":name": "x"}

    def test_empty(self):
        assert normalize_params(None) == {}
        assert normalize_params({}) == {}

    def test_query_passes_normalized_params(self, fake_driver, fake_adapter):
        fake_driver.query("SELECT * FROM users WHERE id = :id", {"id": 5})
        assert fake_adapter.executed == [("SELECT * FROM users WHERE id = :id", {":id": 5})]


class TestTablePrefix:
    """Tests for the table prefix macro."""

    def test_substitutes_prefix(self, fake_driver, fake_adapter):
        fake_driver.table_prefix("app_")
        fake_driver.query("SELECT * FROM {{prefix}}users")
        assert fake_adapter.prepared == ["SELECT * FROM app_users"]
        assert fake_driver.last_query() == "SELECT * FROM app_users"

    def test_macro_disabled_leaves_token(self, fake_driver, fake_adapter):
        fake_driver.table_prefix("app_", enable_macro=False)
        fake_driver.query("SELECT * FROM {{prefix}}users")
        assert fake_adapter.prepared == ["SELECT * FROM {{prefix}}users"]

    def test_macro_off_until_prefix_set(self, fake_driver, fake_adapter):
        fake_driver.query("SELECT * FROM {{prefix}}users")
        assert fake_adapter.prepared == ["SELECT * FROM {{prefix}}users"]

    def test_every_occurrence_replaced(self, fake_driver, fake_adapter):
        fake_driver.table_prefix("app_")
        fake_driver.query("SELECT * FROM {{prefix}}a JOIN {{prefix}}b USING (id)")
        assert fake_adapter.prepared == ["SELECT * FROM app_a JOIN app_b USING (id)"]

    def test_getter_and_chaining(self, fake_driver):
        assert fake_driver.table_prefix() == "prefix_"
        assert fake_driver.table_prefix("wp_") is fake_driver
        assert fake_driver.table_prefix() == "wp_"

    def test_custom_macro_token(self, fake_driver, fake_adapter):
        fake_driver.prefix_macro("#__").table_prefix("jos_")
        fake_driver.query("SELECT * FROM #__content")
        assert fake_adapter.prepared == ["SELECT * FROM jos_content"]

    def test_empty_macro_token_rejected(self, fake_driver):
        with pytest.raises(ValueError):
            fake_driver.prefix_macro("")


class TestStatementCache:
    """Tests for prepared statement reuse."""

    def test_identical_text_reuses_statement(self, fake_driver, fake_adapter):
        fake_driver.query("SELECT * FROM users WHERE id = :id", {"id": 1})
        fake_driver.query("SELECT * FROM users WHERE id = :id", {"id": 2})
        assert fake_adapter.prepared == ["SELECT * FROM users WHERE id = :id"]
        assert [params for _, params in fake_adapter.executed] == [{":id": 1}, {":id": 2}]

    def test_different_text_recompiles(self, fake_driver, fake_adapter):
        fake_driver.query("SELECT 1")
        fake_driver.query("SELECT 2")
        fake_driver.query("SELECT 1")
        assert fake_adapter.prepared == ["SELECT 1", "SELECT 2", "SELECT 1"]

    def test_default_capacity_is_one(self, fake_driver):
        fake_driver.query("SELECT 1")
        fake_driver.query("SELECT 2")
        assert len(fake_driver.statement_cache) == 1
        assert "SELECT 2" in fake_driver.statement_cache

    def test_larger_capacity_keeps_recent_statements(self, fake_adapter):
        driver = DatabaseDriver(fake_adapter, settings=Settings(_env_file=None, statement_cache_size=2))
        driver.query("SELECT 1")
        driver.query("SELECT 2")
        driver.query("SELECT 1")
        driver.query("SELECT 3")  # evicts SELECT 2
        driver.query("SELECT 1")
        driver.query("SELECT 2")
        assert fake_adapter.prepared == ["SELECT 1", "SELECT 2", "SELECT 3", "SELECT 2"]

    def test_prepare_failure_not_cached(self, fake_driver, fake_adapter):
        def broken_prepare(sql):
            fake_adapter.prepared.append(sql)
            raise QueryError("prepare failed", engine="fake", code=ErrorCode.ERR_PREPARE_FAILED)

        fake_adapter.prepare = broken_prepare
        assert fake_driver.query("SELEC 1") is None
        assert "SELEC 1" not in fake_driver.statement_cache
        assert fake_driver.last_error().code == ErrorCode.ERR_PREPARE_FAILED


class TestQueryFailure:
    """Tests for failure signalling without exceptions."""

    def test_failure_returns_none_and_records_error(self, fake_driver, fake_adapter):
        fake_adapter.responses["SELECT nope"] = failing("nope")
        assert fake_driver.query("SELECT nope") is None
        assert isinstance(fake_driver.last_error(), QueryError)
        assert fake_driver.last_result() is None

    def test_failure_is_logged_in_query_log(self, fake_driver, fake_adapter):
        fake_adapter.responses["SELECT nope"] = failing("nope")
        fake_driver.query("SELECT nope")
        assert [entry.sql for entry in fake_driver.queries()] == ["SELECT nope"]

    def test_errors_hidden_by_default(self, fake_adapter, settings):
        stream = io.StringIO()
        driver = DatabaseDriver(fake_adapter, settings=settings, error_stream=stream)
        fake_adapter.responses["SELECT nope"] = failing("nope")
        driver.query("SELECT nope")
        assert stream.getvalue() == ""

    def test_show_errors_echoes_message(self, fake_adapter, settings):
        stream = io.StringIO()
        driver = DatabaseDriver(fake_adapter, settings=settings, error_stream=stream)
        fake_adapter.responses["SELECT nope"] = failing("nope")

        assert driver.show_errors() is driver
        driver.query("SELECT nope")
        assert "syntax error" in stream.getvalue()

        driver.hide_errors().query("SELECT nope")
        assert stream.getvalue().count("syntax error") == 1

    def test_last_error_survives_later_success(self, fake_driver, fake_adapter):
        fake_adapter.responses["SELECT nope"] = failing("nope")
        fake_driver.query("SELECT nope")
        assert fake_driver.query("SELECT 1") is not None
        assert fake_driver.last_error() is not None


class TestInsert:
    """Tests for INSERT statement building."""

    def test_insert_statement(self, fake_driver, fake_adapter):
        count = fake_driver.insert("users", {"username": "jdoe", "status": "active"})
        assert count == 1
        assert fake_adapter.executed == [(
            "INSERT INTO users (username, status) VALUES (:username, :status)",
            {":username": "jdoe", ":status": "active"},
        )]

    def test_columns_and_placeholders_match(self, fake_driver, fake_adapter):
        values = {"c%d" % i: i for i in range(7)}
        fake_driver.insert("t", values)
        sql = fake_adapter.prepared[0]
        columns = sql[sql.index("(") + 1:sql.index(")")].split(", ")
        placeholders = sql[sql.rindex("(") + 1:sql.rindex(")")].split(", ")
        assert columns == list(values)
        assert placeholders == [":" + c for c in values]

    def test_insert_failure_returns_zero(self, fake_driver, fake_adapter):
        fake_adapter.responses["INSERT INTO users (id) VALUES (:id)"] = failing("insert")
        assert fake_driver.insert("users", {"id": 1}) == 0


class TestUpdate:
    """Tests for UPDATE statement building."""

    def test_update_with_where(self, fake_driver, fake_adapter):
        fake_driver.update("users", {"status": "inactive"}, {"ID": 5})
        assert fake_adapter.executed == [(
            "UPDATE users SET status = :status WHERE ID = :where_ID",
            {":status": "inactive", ":where_ID": 5},
        )]

    def test_update_without_where(self, fake_driver, fake_adapter):
        fake_driver.update("users", {"status": "inactive", "score": 0})
        assert fake_adapter.prepared == ["UPDATE users SET status = :status, score = :score"]

    def test_multiple_where_columns(self, fake_driver, fake_adapter):
        fake_driver.update("users", {"status": "x"}, {"ID": 5, "org": 2})
        assert fake_adapter.prepared == [
            "UPDATE users SET status = :status WHERE ID = :where_ID AND org = :where_org"
        ]

    def test_same_column_in_values_and_where(self, fake_driver, fake_adapter):
        fake_driver.update("users", {"status": "inactive"}, {"status": "active"})
        sql, params = fake_adapter.executed[0]
        assert sql == "UPDATE users SET status = :status WHERE status = :where_status"
        assert params == {":status": "inactive", ":where_status": "active"}

    def test_where_namespace_never_collides(self, fake_driver, fake_adapter):
        """A values key that already looks like a where parameter keeps its value."""
        fake_driver.update("t", {"where_id": "a", "id": "b"}, {"id": "c"})
        sql, params = fake_adapter.executed[0]
        assert params == {":where_id": "a", ":id": "b", ":where_where_id": "c"}
        assert sql.endswith("WHERE id = :where_where_id")

    def test_update_returns_affected_rows(self, fake_driver, fake_adapter):
        sql = "UPDATE users SET status = :status"
        fake_adapter.responses[sql] = AdapterResult(columns=[], rows=[], row_count=3)
        assert fake_driver.update("users", {"status": "x"}) == 3


class TestRetrievalFailures:
    """Retrieval helpers absorb failed queries into empty values."""

    @pytest.fixture(autouse=True)
    def _fail_everything(self, fake_adapter):
        fake_adapter.responses["SELECT broken"] = failing("broken")

    def test_get_results(self, fake_driver):
        assert fake_driver.get_results("SELECT broken") == []

    @pytest.mark.parametrize("shape,empty", [
        (OutputShape.OBJECT, Row()),
        (OutputShape.ARRAY, []),
        (OutputShape.ASSOC, {}),
    ])
    def test_get_row(self, fake_driver, shape, empty):
        value = fake_driver.get_row("SELECT broken", shape=shape)
        assert value == empty
        assert type(value) is type(empty)

    def test_get_var(self, fake_driver):
        assert fake_driver.get_var("SELECT broken") is NOT_FOUND

    def test_get_column(self, fake_driver):
        assert fake_driver.get_column("SELECT broken") == []

    def test_get_pairs(self, fake_driver):
        assert fake_driver.get_pairs("SELECT broken") == {}


class TestDDL:
    """DDL helpers return True when the statement succeeded."""

    def test_truncate_statement(self, fake_driver, fake_adapter):
        assert fake_driver.truncate("users") is True
        assert fake_adapter.prepared == ["TRUNCATE users"]

    def test_drop_statements(self, fake_driver, fake_adapter):
        fake_driver.drop("index", "idx_users")
        fake_driver.drop_table("users")
        fake_driver.drop_view("active_users")
        assert fake_adapter.prepared == [
            "DROP INDEX idx_users",
            "DROP TABLE users",
            "DROP VIEW active_users",
        ]

    def test_failed_ddl_returns_false(self, fake_driver, fake_adapter):
        """True means the statement ran; a failure never reports True (no inverted polarity)."""
        fake_adapter.responses["DROP TABLE users"] = failing("drop")
        assert fake_driver.drop_table("users") is False


class TestQueryLog:
    """Tests for timing instrumentation."""

    @pytest.fixture
    def timed_driver(self, fake_driver, monkeypatch):
        ticks = iter([0.0, 0.2, 10.0, 11.5, 20.0, 30.2])
        monkeypatch.setattr(driver_module, "time", SimpleNamespace(perf_counter=lambda: next(ticks)))
        fake_driver.query("SELECT 1")
        fake_driver.query("SELECT 2")
        fake_driver.query("SELECT 3")
        return fake_driver

    def test_queries_in_execution_order(self, timed_driver):
        entries = timed_driver.queries()
        assert [e.sql for e in entries] == ["SELECT 1", "SELECT 2", "SELECT 3"]
        assert [e.execution_time for e in entries] == pytest.approx([0.2, 1.5, 10.2])

    def test_slow_queries(self, timed_driver):
        assert [e.sql for e in timed_driver.slow_queries(1.0)] == ["SELECT 2", "SELECT 3"]

    def test_slow_queries_default_threshold(self, timed_driver):
        assert [e.sql for e in timed_driver.slow_queries()] == ["SELECT 2", "SELECT 3"]

    def test_long_queries(self, timed_driver):
        assert [e.sql for e in timed_driver.long_queries()] == ["SELECT 3"]

    def test_threshold_is_inclusive(self, fake_driver, monkeypatch):
        ticks = iter([0.0, 1.0])
        monkeypatch.setattr(driver_module, "time", SimpleNamespace(perf_counter=lambda: next(ticks)))
        fake_driver.query("SELECT 1")
        assert len(fake_driver.slow_queries(1.0)) == 1

    def test_log_is_a_copy(self, fake_driver):
        fake_driver.query("SELECT 1")
        fake_driver.queries().clear()
        assert len(fake_driver.queries()) == 1

    def test_entries_are_frozen(self):
        entry = QueryLogEntry(sql="SELECT 1", execution_time=0.1)
        with pytest.raises(AttributeError):
            entry.sql = "SELECT 2"


class TestLifecycle:
    """Tests for closing a driver."""

    def test_close_disconnects(self, fake_driver, fake_adapter):
        fake_driver.query("SELECT 1")
        fake_driver.close()
        assert not fake_adapter.is_connected()
        assert len(fake_driver.statement_cache) == 0

    def test_context_manager(self, fake_adapter, settings):
        with DatabaseDriver(fake_adapter, settings=settings) as driver:
            driver.query("SELECT 1")
        assert not fake_adapter.is_connected()
