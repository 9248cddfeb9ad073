"""
MySQL Adapter for SpryDB

MySQL is ideal for:
- Traditional relational workloads
- Web application backends
- MariaDB / Aurora MySQL (protocol compatible)

Requirements:
    pip install mysql-connector-python
"""

import logging
from typing import Any, Dict

try:
    import mysql.connector
    MYSQL_AVAILABLE = True
except ImportError:
    MYSQL_AVAILABLE = False
    mysql = None

from sprydb.adapters.base import BaseAdapter, ConnectionError, rewrite_named_params
from sprydb.errors import ErrorCode

logger = logging.getLogger(__name__)


class MySQLAdapter(BaseAdapter):
    """
    Adapter for MySQL database.

    Config options:
        host: MySQL server host, optionally ``host:port`` (default: localhost)
        port: MySQL port (default: 3306)
        database: Database name (required)
        user: Username (required)
        password: Password (default: empty)
        charset: Character set (default: utf8mb4)
        connect_timeout: Connection timeout in seconds (default: 10)
        autocommit: Enable autocommit (default: True)

    Example:
        adapter = MySQLAdapter({
            "host": "mysql.example.com",
            "database": "app",
            "user": "app_rw",
            "password": "secret"
        })

        adapter.connect()
        stmt = adapter.prepare("SELECT * FROM users WHERE status = :status")
        result = adapter.execute(stmt, {":status": "active"})
    """

    ENGINE = "mysql"
    PLACEHOLDER = "%(name)s"  # pyformat paramstyle

    def __init__(self, config: Dict[str, Any]):
        """Initialize MySQL adapter."""
        super().__init__(config)

        if not MYSQL_AVAILABLE:
            raise ConnectionError(
                "mysql-connector-python not installed. "
                "Run: pip install mysql-connector-python",
                engine=self.ENGINE,
                code=ErrorCode.ERR_DRIVER_MISSING
            )

        # Validate required config
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
            self.port = int(config.get("port", 3306))
        self.host = host

        self.database = config["database"]
        self.user = config["user"]
        self.password = config.get("password", "")

        # Connection settings
        self.charset = config.get("charset", "utf8mb4")
        self.connect_timeout = config.get("connect_timeout", 10)
        self.autocommit = config.get("autocommit", True)

    def _build_connection_params(self) -> Dict[str, Any]:
        """Build connection parameters dict."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
            "charset": self.charset,
            "connect_timeout": self.connect_timeout,
            "autocommit": self.autocommit,
        }

    def connect(self) -> None:
        """Connect to MySQL."""
        try:
            logger.info(f"Connecting to MySQL: {self.host}:{self.port}/{self.database}")
            self._connection = mysql.connector.connect(**self._build_connection_params())
            self._connected = True
            logger.info(f"MySQL connected: {self.host}:{self.port}/{self.database}")

        except Exception as e:
            raise ConnectionError(
                f"Failed to connect to MySQL: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def disconnect(self) -> None:
        """Close MySQL connection."""
        try:
            if self._connection:
                self._connection.close()
                self._connection = None
        except Exception as e:
            logger.warning(f"Error closing MySQL connection: {e}")
        finally:
            self._connected = False

    def convert_placeholders(self, sql: str) -> str:
        """Convert :name markers to MySQL %(name)s format."""
        return rewrite_named_params(sql, "%({})s")

    def _run(self, statement, params: Dict[str, Any]) -> None:
        # mysql-connector only interpolates when params are given
        statement.cursor.execute(statement.compiled_sql, params or None)

    def quote(self, value: Any) -> str:
        """Quote a literal, escaping backslashes as MySQL requires."""
        escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
