"""Tests for reply formatting and error coercion."""

from rpcstream.rpc.errors import JSONRPCErrorException, coerce_error, format_response
from rpcstream.rpc.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    JSONRPCError,
    JSONRPCResponse,
    reply_to_dict,
)


class TestFormatResponse:
    def test_success_carries_result(self):
        reply = format_response(1, None, 3)
        assert isinstance(reply, JSONRPCResponse)
        assert reply_to_dict(reply) == {"jsonrpc": "2.0", "result": 3, "id": 1}

    def test_null_result_is_serialized(self):
        assert reply_to_dict(format_response("a", None, None)) == {"jsonrpc": "2.0", "result": None, "id": "a"}

    def test_key_order(self):
        assert list(reply_to_dict(format_response(1, None, 1))) == ["jsonrpc", "result", "id"]
        assert list(reply_to_dict(format_response(1, "boom"))) == ["jsonrpc", "error", "id"]

    def test_string_error_becomes_internal_error(self):
        reply = format_response(7, "boom")
        assert isinstance(reply, JSONRPCError)
        assert reply_to_dict(reply) == {
            "jsonrpc": "2.0",
            "error": {"code": INTERNAL_ERROR, "message": "boom"},
            "id": 7,
        }

    def test_error_wins_over_result(self):
        assert "result" not in reply_to_dict(format_response(1, "boom", 5))


class TestCoerceError:
    def test_well_formed_error_passes_through(self):
        error = coerce_error({"code": -1, "message": "x"})
        assert error.to_dict() == {"code": -1, "message": "x"}

    def test_well_formed_error_keeps_data_and_extra_keys(self):
        error = coerce_error({"code": 42, "message": "nope", "data": [1], "hint": "retry"})
        assert error.to_dict() == {"code": 42, "message": "nope", "data": [1], "hint": "retry"}

    def test_missing_code_is_internal_error(self):
        error = coerce_error({"message": "x"})
        assert error.code == INTERNAL_ERROR
        assert error.message == "x"
        assert "data" not in error.to_dict()

    def test_missing_message_keeps_other_fields_as_data(self):
        error = coerce_error({"code": 5, "reason": "disk full"})
        assert error.code == INTERNAL_ERROR
        assert error.message == "Internal error"
        assert error.data == {"reason": "disk full"}

    def test_zero_code_is_not_well_formed(self):
        assert coerce_error({"code": 0, "message": "x"}).code == INTERNAL_ERROR

    def test_exception_uses_its_message(self):
        error = coerce_error(ValueError("bad value"))
        assert error.code == INTERNAL_ERROR
        assert error.message == "bad value"

    def test_exception_without_message(self):
        assert coerce_error(RuntimeError()).message == "Internal error"

    def test_jsonrpc_error_exception_keeps_code(self):
        error = coerce_error(JSONRPCErrorException(INVALID_PARAMS, "params must be a list", data={"got": "dict"}))
        assert error.to_dict() == {
            "code": INVALID_PARAMS,
            "message": "params must be a list",
            "data": {"got": "dict"},
        }

    def test_other_values_are_stringified(self):
        error = coerce_error(404)
        assert error.code == INTERNAL_ERROR
        assert error.message == "404"
