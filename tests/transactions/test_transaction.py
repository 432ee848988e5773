from __future__ import annotations

import base64
import json

import pytest

from sui_vaults.exceptions import VaultError, VaultErrorCode
from sui_vaults.transactions.transaction import (
    Input,
    MoveCall,
    NestedResult,
    Result,
    Transaction,
    TransferObjects,
    parse_move_target,
)

OBJ = "0x" + "1" * 64
RECIPIENT = "0x" + "f" * 64


def test_object_inputs_are_deduplicated_by_normalized_id():
    tx = Transaction()
    first = tx.object("0x5")
    second = tx.object("0x" + "0" * 63 + "5")
    assert first == second == Input(0)
    assert len(tx.inputs) == 1


def test_pure_inputs_are_base64_bcs():
    tx = Transaction()
    tx.pure_u64(1)
    assert tx.to_dict()["inputs"][0] == {
        "Pure": {"bytes": base64.b64encode(b"\x01" + b"\x00" * 7).decode()}
    }


def test_move_call_returns_result_handle():
    tx = Transaction()
    coin = tx.object(OBJ)
    result = tx.move_call("0x2::coin::value", [coin], ["0x2::sui::SUI"])

    assert result == Result(0)
    assert result[1] == NestedResult(0, 1)
    assert len(tx) == 1
    call = tx.commands[0]
    assert isinstance(call, MoveCall)
    assert call.package == "0x" + "0" * 63 + "2"
    assert call.target.endswith("::coin::value")


@pytest.mark.parametrize(
    "target", ["0x2::coin", "coin::value::x", "0x2::1coin::value", "0x2::coin::value::x"]
)
def test_parse_move_target_rejects_malformed(target):
    with pytest.raises(VaultError) as exc_info:
        parse_move_target(target)
    assert exc_info.value.code is VaultErrorCode.INVALID_PARAMETERS


def test_move_call_rejects_dangling_handles():
    tx = Transaction()
    with pytest.raises(VaultError, match="Input 0 does not exist"):
        tx.move_call("0x2::coin::value", [Input(0)])
    with pytest.raises(VaultError, match="Result of command 3"):
        tx.move_call("0x2::coin::value", [NestedResult(3, 0)])
    assert len(tx) == 0


def test_move_call_rejects_raw_strings_as_arguments():
    tx = Transaction()
    with pytest.raises(VaultError, match="Invalid transaction argument"):
        tx.move_call("0x2::coin::value", [OBJ])  # type: ignore[list-item]


def test_resolve_object_passes_handles_through():
    tx = Transaction()
    handle = tx.move_call("0x1::option::none", [], ["0x2::url::Url"])[0]
    assert tx.resolve_object(handle) is handle
    assert tx.resolve_object(OBJ) == Input(0)
    with pytest.raises(VaultError):
        tx.resolve_object(123)  # type: ignore[arg-type]


def test_transfer_objects_encodes_recipient_as_pure_address():
    tx = Transaction()
    coin = tx.object(OBJ)
    tx.transfer_objects([coin], RECIPIENT)

    command = tx.commands[0]
    assert isinstance(command, TransferObjects)
    assert command.address == Input(1)
    assert base64.b64decode(tx.to_dict()["inputs"][1]["Pure"]["bytes"]) == b"\xff" * 32


def test_transfer_objects_requires_objects():
    with pytest.raises(VaultError, match="at least one object"):
        Transaction().transfer_objects([], RECIPIENT)


def test_to_json_round_trips_through_json():
    tx = Transaction()
    coin = tx.object(OBJ)
    minted = tx.move_call("0x2::coin::value", [coin])
    tx.transfer_objects([minted[0]], RECIPIENT)

    data = json.loads(tx.to_json())
    assert data["version"] == 2
    assert data["commands"][0]["MoveCall"]["arguments"] == [{"Input": 0}]
    assert data["commands"][1]["TransferObjects"]["objects"] == [
        {"NestedResult": [0, 0]}
    ]
