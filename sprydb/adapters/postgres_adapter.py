"""
PostgreSQL Adapter for SpryDB

Requirements:
    pip install psycopg2-binary
"""

import logging
from typing import Any, Dict

try:
    import psycopg2
    PSYCOPG2_AVAILABLE = True
except ImportError:
    PSYCOPG2_AVAILABLE = False
    psycopg2 = None

from sprydb.adapters.base import BaseAdapter, ConnectionError, rewrite_named_params
from sprydb.errors import ErrorCode

logger = logging.getLogger(__name__)


class PostgresAdapter(BaseAdapter):
    """
    Adapter for PostgreSQL database.

    Config options:
        host: Database host, optionally ``host:port`` (default: localhost)
        port: Database port (default: 5432)
        database: Database name (required)
        user: Username (required)
        password: Password (default: empty)
        sslmode: SSL mode (default: prefer)
        connect_timeout: Connection timeout in seconds (default: 10)

    Example:
        adapter = PostgresAdapter({
            "host": "localhost",
            "database": "app",
            "user": "app_rw",
            "password": "secret"
        })
        adapter.connect()
    """

    ENGINE = "postgres"
    PLACEHOLDER = "%(name)s"

    def __init__(self, config: Dict[str, Any]):
        """Initialize PostgreSQL adapter."""
        super().__init__(config)

        if not PSYCOPG2_AVAILABLE:
            raise ConnectionError(
                "psycopg2 not installed. Run: pip install psycopg2-binary",
                engine=self.ENGINE,
                code=ErrorCode.ERR_DRIVER_MISSING
            )

        required = ["database", "user"]
        missing = [k for k in required if not config.get(k)]
        if missing:
            raise ConnectionError(
                f"Missing required config: {', '.join(missing)}",
                engine=self.ENGINE,
                code=ErrorCode.ERR_CONFIG_INVALID
            )

        host = config.get("host") or "localhost"
        if ":" in host and "port" not in config:
            host, _, port = host.partition(":")
            self.port = int(port)
        else:
            self.port = int(config.get("port", 5432))
        self.host = host

        self.database = config["database"]
        self.user = config["user"]
        self.password = config.get("password", "")
        self.sslmode = config.get("sslmode", "prefer")
        self.connect_timeout = config.get("connect_timeout", 10)

    def connect(self) -> None:
        """Connect to PostgreSQL database."""
        try:
            self._connection = psycopg2.connect(
                host=self.host,
                port=self.port,
                dbname=self.database,
                user=self.user,
                password=self.password,
                sslmode=self.sslmode,
                connect_timeout=self.connect_timeout
            )
            self._connection.autocommit = True

            self._connected = True
            logger.info(f"PostgreSQL connected: {self.host}:{self.port}/{self.database}")

        except Exception as e:
            raise ConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def disconnect(self) -> None:
        """Close PostgreSQL connection."""
        try:
            if self._connection:
                self._connection.close()
                self._connection = None
        except Exception as e:
            logger.warning(f"Error closing PostgreSQL connection: {e}")
        finally:
            self._connected = False

    def convert_placeholders(self, sql: str) -> str:
        """
        Convert :name markers to PostgreSQL %(name)s format.

        psycopg2 always interpolates a mapping argument, so literal percent
        signs are doubled first.
        """
        return rewrite_named_params(sql.replace("%", "%%"), "%({})s")

    def _fetch_last_insert_id(self, cursor: Any) -> Any:
        # cursor.lastrowid is an OID in psycopg2; ask the session instead
        if not (cursor.statusmessage or "").startswith("INSERT"):
            return self._last_insert_id
        probe = self._connection.cursor()
        try:
            probe.execute("SELECT lastval()")
            return probe.fetchone()[0]
        except psycopg2.Error:
            return self._last_insert_id
        finally:
            probe.close()
