"""
SpryDB - Error Types

ERROR DESIGN PRINCIPLES:
------------------------
1. Every error has a unique code for log searching
2. Connection errors are fatal and propagate to the caller
3. Query errors are raised by adapters and recovered by the driver into
   ``last_error()`` state, never propagated past ``DatabaseDriver.query``
4. The engine's own exception is kept in ``original_error``
"""

from enum import Enum
from typing import Any, Optional


# =============================================================================
# ERROR CODES
# =============================================================================

class ErrorCode(str, Enum):
    """Unique error codes for every error type."""

    # Connection (1xxx)
    ERR_CONNECTION_FAILED = "ERR_1001"
    ERR_ENGINE_UNSUPPORTED = "ERR_1002"
    ERR_DRIVER_MISSING = "ERR_1003"
    ERR_CONFIG_INVALID = "ERR_1004"

    # Query (2xxx)
    ERR_PREPARE_FAILED = "ERR_2001"
    ERR_EXECUTE_FAILED = "ERR_2002"
    ERR_NOT_CONNECTED = "ERR_2003"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class SpryDBError(Exception):
    """Base exception for all database layer errors."""

    default_code = ErrorCode.ERR_CONNECTION_FAILED

    def __init__(
        self,
        message: str,
        engine: str = "",
        code: Optional[ErrorCode] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.engine = engine
        self.code = code or self.default_code
        self.original_error = original_error

    @property
    def engine_code(self) -> Any:
        """The error code reported by the engine client, if any."""
        if self.original_error is None:
            return None
        # DB-API drivers disagree on where the vendor code lives
        for attr in ("errno", "pgcode", "sqlite_errorcode"):
            value = getattr(self.original_error, attr, None)
            if value is not None:
                return value
        args = getattr(self.original_error, "args", ())
        if args and hasattr(args[0], "code"):
            return args[0].code
        return None

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "engine": self.engine,
            "engine_code": self.engine_code,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value}, {self.message!r})"


class ConnectionError(SpryDBError):
    """Failed to connect to database."""

    default_code = ErrorCode.ERR_CONNECTION_FAILED


class UnsupportedEngineError(ConnectionError):
    """No adapter is registered for the requested engine kind."""

    default_code = ErrorCode.ERR_ENGINE_UNSUPPORTED


class QueryError(SpryDBError):
    """Statement preparation or execution failed."""

    default_code = ErrorCode.ERR_EXECUTE_FAILED
