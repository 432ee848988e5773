"""Programmable transaction accumulator.

A :class:`Transaction` is an ordered list of inputs and commands. It is only
ever built here, never executed; signing and submission happen elsewhere.
Handles returned by :meth:`Transaction.move_call` can be fed into later
commands of the same transaction.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Sequence, Union

from ..exceptions import VaultError, VaultErrorCode
from ..logger import get_logger
from ..validators import (
    is_valid_identifier,
    is_valid_sui_address,
    normalize_sui_address,
    validate_object_id,
    validate_sui_address,
)
from . import bcs

logger = get_logger(__name__)


@dataclass(frozen=True)
class Input:
    """Reference to the transaction input at ``index``."""

    index: int

    def to_dict(self) -> dict[str, Any]:
        return {"Input": self.index}


@dataclass(frozen=True)
class NestedResult:
    """The ``result_index``-th value returned by command ``index``."""

    index: int
    result_index: int

    def to_dict(self) -> dict[str, Any]:
        return {"NestedResult": [self.index, self.result_index]}


@dataclass(frozen=True)
class Result:
    """All values returned by command ``index``."""

    index: int

    def __getitem__(self, result_index: int) -> NestedResult:
        return NestedResult(self.index, result_index)

    def to_dict(self) -> dict[str, Any]:
        return {"Result": self.index}


TransactionArgument = Union[Input, Result, NestedResult]
ObjectArg = Union[str, Input, Result, NestedResult]

TRANSACTION_ARGUMENT_TYPES = (Input, Result, NestedResult)


@dataclass(frozen=True)
class ObjectInput:
    """An object input that still needs version/digest resolution at build time."""

    object_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"UnresolvedObject": {"objectId": self.object_id}}


@dataclass(frozen=True)
class PureInput:
    """BCS-encoded pure value."""

    value: bytes

    def to_dict(self) -> dict[str, Any]:
        return {"Pure": {"bytes": base64.b64encode(self.value).decode("ascii")}}


TransactionInput = Union[ObjectInput, PureInput]


@dataclass(frozen=True)
class MoveCall:
    package: str
    module: str
    function: str
    type_arguments: list[str] = field(default_factory=list)
    arguments: list[TransactionArgument] = field(default_factory=list)

    @property
    def target(self) -> str:
        return f"{self.package}::{self.module}::{self.function}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "MoveCall": {
                "package": self.package,
                "module": self.module,
                "function": self.function,
                "typeArguments": list(self.type_arguments),
                "arguments": [arg.to_dict() for arg in self.arguments],
            }
        }


@dataclass(frozen=True)
class TransferObjects:
    objects: list[TransactionArgument]
    address: TransactionArgument

    def to_dict(self) -> dict[str, Any]:
        return {
            "TransferObjects": {
                "objects": [obj.to_dict() for obj in self.objects],
                "address": self.address.to_dict(),
            }
        }


Command = Union[MoveCall, TransferObjects]


def parse_move_target(target: str) -> tuple[str, str, str]:
    """Split ``package::module::function`` and normalize the package address.

    Raises:
        VaultError: INVALID_PARAMETERS if the target is malformed
    """
    parts = target.split("::") if isinstance(target, str) else []
    if (
        len(parts) != 3
        or not is_valid_sui_address(parts[0])
        or not is_valid_identifier(parts[1])
        or not is_valid_identifier(parts[2])
    ):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, f"Invalid move call target: {target}"
        )
    package, module, function = parts
    return normalize_sui_address(package), module, function


def is_transaction_argument(value: object) -> bool:
    return isinstance(value, TRANSACTION_ARGUMENT_TYPES)


class Transaction:
    """Caller-owned accumulator of pending commands.

    Not safe for concurrent mutation: commands are positional, so callers must
    serialize every builder call that targets the same instance.
    """

    def __init__(self) -> None:
        self.inputs: list[TransactionInput] = []
        self.commands: list[Command] = []
        self._object_inputs: dict[str, Input] = {}

    def __len__(self) -> int:
        return len(self.commands)

    # --- inputs ---

    def object(self, object_id: str) -> Input:
        """Add (or reuse) an object input for ``object_id``."""
        normalized = validate_object_id(object_id)
        existing = self._object_inputs.get(normalized)
        if existing is not None:
            return existing
        handle = self._add_input(ObjectInput(normalized))
        self._object_inputs[normalized] = handle
        return handle

    def pure(self, value: bytes) -> Input:
        """Add an already BCS-encoded pure input."""
        return self._add_input(PureInput(bytes(value)))

    def pure_u8(self, value: int) -> Input:
        return self.pure(bcs.encode_u8(value))

    def pure_u64(self, value: int) -> Input:
        return self.pure(bcs.encode_u64(value))

    def pure_bool(self, value: bool) -> Input:
        return self.pure(bcs.encode_bool(value))

    def pure_address(self, address: str) -> Input:
        return self.pure(bcs.encode_address(address))

    def pure_string(self, value: str) -> Input:
        return self.pure(bcs.encode_string(value))

    def pure_vector_u8(self, data: bytes | bytearray | list[int]) -> Input:
        return self.pure(bcs.encode_vector_u8(data))

    def resolve_object(self, value: ObjectArg) -> TransactionArgument:
        """Turn a raw object ID into an input; pass existing handles through."""
        if is_transaction_argument(value):
            return value  # type: ignore[return-value]
        if isinstance(value, str):
            return self.object(value)
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS,
            f"Expected an object ID or transaction argument, got {type(value).__name__}",
        )

    # --- commands ---

    def move_call(
        self,
        target: str,
        arguments: Sequence[TransactionArgument] = (),
        type_arguments: Sequence[str] = (),
    ) -> Result:
        """Append a Move call and return a handle to its results."""
        package, module, function = parse_move_target(target)
        for arg in arguments:
            self.check_argument(arg)
        for type_arg in type_arguments:
            if not isinstance(type_arg, str) or not type_arg:
                raise VaultError(
                    VaultErrorCode.INVALID_PARAMETERS,
                    f"Invalid type argument: {type_arg!r}",
                )
        logger.debug(
            "Appending MoveCall %s::%s::%s<%s>",
            package,
            module,
            function,
            ", ".join(type_arguments),
        )
        return self._add_command(
            MoveCall(
                package=package,
                module=module,
                function=function,
                type_arguments=list(type_arguments),
                arguments=list(arguments),
            )
        )

    def transfer_objects(
        self,
        objects: Sequence[TransactionArgument],
        address: str | TransactionArgument,
    ) -> Result:
        """Append a TransferObjects command sending ``objects`` to ``address``."""
        if not objects:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                "transfer_objects requires at least one object",
            )
        for obj in objects:
            self.check_argument(obj)
        if isinstance(address, str):
            recipient = self.pure_address(validate_sui_address(address))
        else:
            self.check_argument(address)
            recipient = address
        return self._add_command(TransferObjects(list(objects), recipient))

    # --- serialization ---

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": 2,
            "inputs": [inp.to_dict() for inp in self.inputs],
            "commands": [cmd.to_dict() for cmd in self.commands],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    # --- internals ---

    def _add_input(self, value: TransactionInput) -> Input:
        self.inputs.append(value)
        return Input(len(self.inputs) - 1)

    def _add_command(self, command: Command) -> Result:
        self.commands.append(command)
        return Result(len(self.commands) - 1)

    def check_argument(self, arg: object) -> None:
        """Raise INVALID_PARAMETERS unless ``arg`` is a handle valid in this transaction."""
        if not is_transaction_argument(arg):
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Invalid transaction argument: {arg!r}",
            )
        if isinstance(arg, Input) and not 0 <= arg.index < len(self.inputs):
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Input {arg.index} does not exist in this transaction",
            )
        if isinstance(arg, (Result, NestedResult)) and not (
            0 <= arg.index < len(self.commands)
        ):
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Result of command {arg.index} does not exist in this transaction",
            )
