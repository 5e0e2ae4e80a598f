"""
Tests for typed transaction payloads.
"""
import pytest

from mizu.pipeline import (
    MoveFunction,
    ParamKind,
    PayloadValidationError,
    Publish,
    Transaction,
)

PKG = "0xabc"
SET_PRICE = MoveFunction("mint", "set_mint_price", (ParamKind.OBJECT, ParamKind.OBJECT, ParamKind.U64))
SET_STATUS = MoveFunction("mint", "set_mint_status", (ParamKind.OBJECT, ParamKind.OBJECT, ParamKind.U8))
ADD = MoveFunction(
    "mint", "add_to_mint_warehouse",
    (ParamKind.OBJECT, ParamKind.OBJECT, ParamKind.VECTOR_OBJECT, ParamKind.OBJECT),
)


class TestMoveCall:
    """Tests for MoveCall validation."""

    def test_valid_call(self):
        call = SET_PRICE.call(PKG, "0x1", "0x2", 100_000_000)
        call.validate()
        assert call.target == "0xabc::mint::set_mint_price"

    def test_arity_mismatch(self):
        with pytest.raises(PayloadValidationError, match="expected 3 arguments, got 2"):
            SET_PRICE.call(PKG, "0x1", "0x2").validate()

    def test_invalid_package_id(self):
        with pytest.raises(PayloadValidationError, match="invalid package id"):
            SET_PRICE.call("abc", "0x1", "0x2", 1).validate()

    def test_invalid_object_id(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            SET_PRICE.call(PKG, "mint-cap", "0x2", 1).validate()
        assert "argument 0 (object)" in str(exc_info.value)
        assert exc_info.value.target == "0xabc::mint::set_mint_price"

    def test_u8_range(self):
        SET_STATUS.call(PKG, "0x1", "0x2", 255).validate()
        with pytest.raises(PayloadValidationError, match="argument 2 \\(u8\\)"):
            SET_STATUS.call(PKG, "0x1", "0x2", 256).validate()

    def test_numbers_are_not_coerced_from_strings(self):
        with pytest.raises(PayloadValidationError):
            SET_PRICE.call(PKG, "0x1", "0x2", "100").validate()

    def test_negative_u64(self):
        with pytest.raises(PayloadValidationError):
            SET_PRICE.call(PKG, "0x1", "0x2", -1).validate()

    def test_vector_of_objects(self):
        ADD.call(PKG, "0x1", "0x2", ["0x3", "0x4"], "0x5").validate()
        ADD.call(PKG, "0x1", "0x2", ("0x3",), "0x5").validate()
        with pytest.raises(PayloadValidationError):
            ADD.call(PKG, "0x1", "0x2", ["nope"], "0x5").validate()

    def test_type_arguments(self):
        generic = MoveFunction("kiosk", "place", (ParamKind.OBJECT,), type_parameters=1)
        generic.call(PKG, "0x1", type_arguments=("0x2::sui::SUI",)).validate()
        with pytest.raises(PayloadValidationError, match="type arguments"):
            generic.call(PKG, "0x1").validate()

    def test_rpc_params(self):
        params = SET_PRICE.call(PKG, "0x1", "0x2", 2**60).to_rpc_params()
        assert params == {
            "packageObjectId": PKG,
            "module": "mint",
            "function": "set_mint_price",
            "typeArguments": [],
            "arguments": ["0x1", "0x2", str(2**60)],
        }

    def test_small_ints_stay_numbers(self):
        params = SET_STATUS.call(PKG, "0x1", "0x2", 3).to_rpc_params()
        assert params["arguments"][2] == 3


class TestTransaction:
    """Tests for Transaction."""

    def test_empty_transaction_is_invalid(self):
        with pytest.raises(PayloadValidationError, match="no calls"):
            Transaction().validate()

    def test_validates_every_call(self):
        tx = Transaction.of(
            SET_PRICE.call(PKG, "0x1", "0x2", 1),
            SET_STATUS.call(PKG, "0x1", "0x2", 999),
        )
        with pytest.raises(PayloadValidationError, match="set_mint_status"):
            tx.validate()

    def test_describe(self):
        tx = Transaction.of(SET_PRICE.call(PKG, "0x1", "0x2", 1), SET_STATUS.call(PKG, "0x1", "0x2", 1))
        assert tx.describe() == ["0xabc::mint::set_mint_price", "0xabc::mint::set_mint_status"]


class TestPublish:
    """Tests for Publish."""

    def test_valid(self):
        Publish(modules=("oRzrCwYAAAA=",), dependencies=("0x1", "0x2")).validate()

    def test_no_modules(self):
        with pytest.raises(PayloadValidationError, match="no compiled modules"):
            Publish(modules=()).validate()

    def test_bad_dependency(self):
        with pytest.raises(PayloadValidationError, match="invalid dependency"):
            Publish(modules=("AA==",), dependencies=("sui",)).validate()
