"""
Oracle Database Adapter for SpryDB

Features:
- Server-side statement preparation (cursor.prepare)
- TNS connect descriptor built from ``host:port:protocol``
- Native :name bind parameters

Requirements:
    pip install oracledb
"""

import logging
from typing import Any, Dict

try:
    import oracledb
    ORACLEDB_AVAILABLE = True
except ImportError:
    ORACLEDB_AVAILABLE = False
    oracledb = None

from sprydb.adapters.base import BaseAdapter, PreparedStatement, ConnectionError, QueryError
from sprydb.errors import ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_PORT = 1521
DEFAULT_PROTOCOL = "TCP"


def build_tns_descriptor(host: str, service_name: str) -> str:
    """
    Build a TNS connect descriptor.

    Args:
        host: ``host``, ``host:port`` or ``host:port:protocol``
        service_name: Oracle service name

    Returns:
        DESCRIPTION string suitable as an oracledb ``dsn``
    """
    parts = host.split(":")
    address_host = parts[0]
    address_port = parts[1] if len(parts) > 1 and parts[1] else DEFAULT_PORT
    address_protocol = parts[2] if len(parts) > 2 and parts[2] else DEFAULT_PROTOCOL

    return (
        "(DESCRIPTION ="
        "(ADDRESS_LIST ="
        f"(ADDRESS = (PROTOCOL = {address_protocol})(HOST = {address_host})(PORT = {address_port}))"
        ")"
        f"(CONNECT_DATA = (SERVICE_NAME = {service_name}))"
        ")"
    )


class OracleAdapter(BaseAdapter):
    """
    Adapter for Oracle Database.

    Config options:
        host: ``host[:port[:protocol]]`` (default port 1521, protocol TCP)
        database: Oracle service name (required unless dsn is given)
        dsn: Full DSN string (alternative to host/database)
        user: Username (required)
        password: Password (required)
        arraysize: Fetch array size (default: 1000)

    Example:
        adapter = OracleAdapter({
            "host": "oracle.company.com:1521:TCP",
            "database": "ORCL",
            "user": "app_user",
            "password": "secret"
        })
    """

    ENGINE = "oracle"
    PLACEHOLDER = ":name"  # Oracle binds :name natively
    HEALTH_CHECK_SQL = "SELECT 1 FROM DUAL"

    def __init__(self, config: Dict[str, Any]):
        """Initialize Oracle adapter."""
        super().__init__(config)

        if not ORACLEDB_AVAILABLE:
            raise ConnectionError(
                "oracledb not installed. Run: pip install oracledb",
                engine=self.ENGINE,
                code=ErrorCode.ERR_DRIVER_MISSING
            )

        required = ["user", "password"]
        missing = [k for k in required if not config.get(k)]
        if missing:
            raise ConnectionError(
                f"Missing required config: {', '.join(missing)}",
                engine=self.ENGINE,
                code=ErrorCode.ERR_CONFIG_INVALID
            )

        self.user = config["user"]
        self.password = config["password"]
        self.host = config.get("host") or "localhost"
        self.service_name = config.get("database", "")
        self.dsn = config.get("dsn", "")
        self.arraysize = config.get("arraysize", 1000)

        if not self.dsn and not self.service_name:
            raise ConnectionError(
                "Either dsn or database (service name) must be provided",
                engine=self.ENGINE,
                code=ErrorCode.ERR_CONFIG_INVALID
            )

    def _build_dsn(self) -> str:
        """Build DSN from config options."""
        if self.dsn:
            return self.dsn
        return build_tns_descriptor(self.host, self.service_name)

    def connect(self) -> None:
        """Connect to Oracle Database."""
        try:
            self._connection = oracledb.connect(
                user=self.user,
                password=self.password,
                dsn=self._build_dsn(),
            )
            self._connection.autocommit = True

            self._connected = True
            logger.info(f"Oracle connected: {self.user}@{self.host}/{self.service_name or self.dsn}")

        except Exception as e:
            raise ConnectionError(
                f"Failed to connect to Oracle: {e}",
                engine=self.ENGINE,
                original_error=e
            )

    def disconnect(self) -> None:
        """Close Oracle connection."""
        try:
            if self._connection:
                self._connection.close()
                self._connection = None
        except Exception as e:
            logger.warning(f"Error closing Oracle connection: {e}")
        finally:
            self._connected = False

    def prepare(self, sql: str) -> PreparedStatement:
        """Prepare the statement server-side on a dedicated cursor."""
        self._require_connection()
        try:
            cursor = self._connection.cursor()
            cursor.arraysize = self.arraysize
            cursor.prepare(sql)
        except Exception as e:
            raise QueryError(
                f"Oracle prepare failed: {e}",
                engine=self.ENGINE,
                code=ErrorCode.ERR_PREPARE_FAILED,
                original_error=e
            )
        return PreparedStatement(sql=sql, compiled_sql=sql, cursor=cursor)

    def _run(self, statement: PreparedStatement, params: Dict[str, Any]) -> None:
        # None re-executes the statement given to cursor.prepare()
        statement.cursor.execute(None, params)
