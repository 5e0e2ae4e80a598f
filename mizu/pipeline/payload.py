"""
Typed transaction payloads.

Stages do not hand raw argument lists to the submitter. Each Move entry
function a stage calls is declared once as a MoveFunction with its
parameter kinds; a MoveCall built against it is validated before anything
is sent to the network.

Example:
    SET_MINT_PRICE = MoveFunction(
        "mint", "set_mint_price",
        (ParamKind.OBJECT, ParamKind.OBJECT, ParamKind.U64),
    )

    tx = Transaction.of(
        SET_MINT_PRICE.call(package_id, mint_cap, mint_settings, 100_000_000),
    )
    tx.validate()   # raises PayloadValidationError on arity/type mismatch
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any

from pydantic import Field, StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import PayloadValidationError

ObjectId = Annotated[str, StringConstraints(pattern=r"^0x[0-9a-fA-F]{1,64}$")]


class ParamKind(str, Enum):
    """Declared kind of a Move entry-function parameter."""

    OBJECT = "object"
    ADDRESS = "address"
    STRING = "string"
    BOOL = "bool"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    VECTOR_STRING = "vector<string>"
    VECTOR_OBJECT = "vector<object>"


def _uint(bits: int) -> Any:
    return Annotated[int, Field(ge=0, le=2**bits - 1)]


_ADAPTERS: dict[ParamKind, TypeAdapter[Any]] = {
    ParamKind.OBJECT: TypeAdapter(ObjectId),
    ParamKind.ADDRESS: TypeAdapter(ObjectId),
    ParamKind.STRING: TypeAdapter(str),
    ParamKind.BOOL: TypeAdapter(bool),
    ParamKind.U8: TypeAdapter(_uint(8)),
    ParamKind.U16: TypeAdapter(_uint(16)),
    ParamKind.U32: TypeAdapter(_uint(32)),
    ParamKind.U64: TypeAdapter(_uint(64)),
    ParamKind.U128: TypeAdapter(_uint(128)),
    ParamKind.VECTOR_STRING: TypeAdapter(list[str]),
    ParamKind.VECTOR_OBJECT: TypeAdapter(list[ObjectId]),
}

# Integers above this go over JSON-RPC as strings
_MAX_JSON_INT = 2**53 - 1


def _to_rpc_value(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value > _MAX_JSON_INT:
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_to_rpc_value(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class MoveFunction:
    """Declared signature of a Move entry function (excluding TxContext)."""

    module: str
    function: str
    parameters: tuple[ParamKind, ...] = ()
    type_parameters: int = 0

    def target(self, package_id: str) -> str:
        return f"{package_id}::{self.module}::{self.function}"

    def call(
        self,
        package_id: str,
        *arguments: Any,
        type_arguments: tuple[str, ...] = (),
    ) -> MoveCall:
        return MoveCall(
            package_id=package_id,
            function=self,
            arguments=tuple(arguments),
            type_arguments=tuple(type_arguments),
        )


@dataclass(frozen=True, slots=True)
class MoveCall:
    """One call to a Move entry function."""

    package_id: str
    function: MoveFunction
    arguments: tuple[Any, ...] = ()
    type_arguments: tuple[str, ...] = ()

    @property
    def target(self) -> str:
        return self.function.target(self.package_id)

    def validate(self) -> None:
        """
        Check the call against its declared signature.

        Raises:
            PayloadValidationError: on a bad package id, arity or argument kind
        """
        try:
            _ADAPTERS[ParamKind.OBJECT].validate_python(self.package_id, strict=True)
        except PydanticValidationError:
            raise PayloadValidationError(self.target, f"invalid package id {self.package_id!r}") from None

        declared = self.function.parameters
        if len(self.arguments) != len(declared):
            raise PayloadValidationError(
                self.target,
                f"expected {len(declared)} arguments, got {len(self.arguments)}",
            )
        if len(self.type_arguments) != self.function.type_parameters:
            raise PayloadValidationError(
                self.target,
                f"expected {self.function.type_parameters} type arguments, "
                f"got {len(self.type_arguments)}",
            )

        for index, (kind, value) in enumerate(zip(declared, self.arguments)):
            if isinstance(value, tuple):
                value = list(value)
            try:
                _ADAPTERS[kind].validate_python(value, strict=True)
            except PydanticValidationError as e:
                reason = e.errors()[0]["msg"]
                raise PayloadValidationError(
                    self.target,
                    f"argument {index} ({kind.value}) rejected {value!r}: {reason}",
                ) from e

    def to_rpc_params(self) -> dict[str, Any]:
        """Shape used by ``moveCallRequestParams`` in unsafe_batchTransaction."""
        return {
            "packageObjectId": self.package_id,
            "module": self.function.module,
            "function": self.function.function,
            "typeArguments": list(self.type_arguments),
            "arguments": [_to_rpc_value(a) for a in self.arguments],
        }


@dataclass(frozen=True, slots=True)
class Transaction:
    """An ordered batch of Move calls submitted as one transaction."""

    calls: tuple[MoveCall, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, *calls: MoveCall) -> Transaction:
        return cls(calls=tuple(calls))

    def validate(self) -> None:
        if not self.calls:
            raise PayloadValidationError("transaction", "no calls to submit")
        for call in self.calls:
            call.validate()

    def describe(self) -> list[str]:
        return [call.target for call in self.calls]


@dataclass(frozen=True, slots=True)
class Publish:
    """Publication of a compiled Move package."""

    modules: tuple[str, ...]
    dependencies: tuple[str, ...] = ()

    def validate(self) -> None:
        if not self.modules:
            raise PayloadValidationError("publish", "no compiled modules")
        try:
            _ADAPTERS[ParamKind.VECTOR_OBJECT].validate_python(list(self.dependencies), strict=True)
        except PydanticValidationError as e:
            raise PayloadValidationError("publish", f"invalid dependency ids: {self.dependencies}") from e

    def describe(self) -> list[str]:
        return [f"publish({len(self.modules)} modules)"]


Payload = Transaction | Publish
