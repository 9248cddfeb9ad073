"""
Tests for error types.
"""

from sprydb.errors import ConnectionError, ErrorCode, QueryError, SpryDBError, UnsupportedEngineError


class EngineFailure(Exception):
    def __init__(self, message, errno):
        super().__init__(message)
        self.errno = errno


class TestErrors:

    def test_default_codes(self):
        assert ConnectionError("x").code == ErrorCode.ERR_CONNECTION_FAILED
        assert UnsupportedEngineError("x").code == ErrorCode.ERR_ENGINE_UNSUPPORTED
        assert QueryError("x").code == ErrorCode.ERR_EXECUTE_FAILED

    def test_explicit_code(self):
        error = QueryError("x", code=ErrorCode.ERR_PREPARE_FAILED)
        assert error.code == ErrorCode.ERR_PREPARE_FAILED

    def test_hierarchy(self):
        assert issubclass(UnsupportedEngineError, ConnectionError)
        assert issubclass(QueryError, SpryDBError)
        assert not issubclass(QueryError, ConnectionError)

    def test_engine_code_from_original_error(self):
        error = QueryError("Table 'app.nope' doesn't exist", engine="mysql",
                           original_error=EngineFailure("no table", 1146))
        assert error.engine_code == 1146

    def test_engine_code_without_original(self):
        assert QueryError("x").engine_code is None

    def test_to_dict(self):
        error = ConnectionError("refused", engine="mysql")
        assert error.to_dict() == {
            "code": "ERR_1001",
            "engine": "mysql",
            "engine_code": None,
            "message": "refused",
        }

    def test_str_is_message(self):
        assert str(QueryError("syntax error")) == "syntax error"
