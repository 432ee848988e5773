"""BCS encoding for the pure argument types the vault entry points accept.

Only the shapes needed by the vault and framework calls are supported:
``u8``, ``u64``, ``bool``, ``address``, ``vector<u8>`` and ``String``.
"""

from __future__ import annotations

from eth_typing import HexStr
from eth_utils import decode_hex, remove_0x_prefix

from ..constants import MAX_U8, MAX_U64
from ..exceptions import VaultError, VaultErrorCode
from ..validators import validate_sui_address

ADDRESS_LENGTH = 32


def _check_range(value: object, max_value: int, type_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS,
            f"{type_name} value must be an integer: {value!r}",
        )
    if not 0 <= value <= max_value:
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS,
            f"{type_name} value out of range: {value}",
        )
    return value


def encode_u8(value: int) -> bytes:
    return bytes([_check_range(value, MAX_U8, "u8")])


def encode_u64(value: int) -> bytes:
    """Encode a u64 as 8 little-endian bytes."""
    return _check_range(value, MAX_U64, "u64").to_bytes(8, "little")


def encode_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def encode_uleb128(value: int) -> bytes:
    """Encode a length prefix as unsigned LEB128."""
    if value < 0:
        raise ValueError(f"ULEB128 cannot encode negative value: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_vector_u8(data: bytes | bytearray | list[int]) -> bytes:
    """Encode ``vector<u8>``: ULEB128 length followed by the raw bytes."""
    raw = bytes(data)
    return encode_uleb128(len(raw)) + raw


def encode_string(value: str) -> bytes:
    """Encode a Move ``String`` (UTF-8 bytes as ``vector<u8>``)."""
    return encode_vector_u8(value.encode("utf-8"))


def encode_address(address: str) -> bytes:
    """Encode an address as its 32 raw bytes."""
    normalized = validate_sui_address(address)
    raw = decode_hex(remove_0x_prefix(HexStr(normalized)))
    if len(raw) != ADDRESS_LENGTH:
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, f"Invalid Sui address: {address}"
        )
    return raw
