"""Input validation for addresses, coin types, amounts, rates and vault configs.

Every check comes in two forms: an ``is_valid_*`` predicate that never raises,
and a ``validate_*`` function that returns the normalized value or raises
``VaultError`` with code INVALID_PARAMETERS.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from .constants import (
    DESCRIPTION_MAX_LENGTH,
    MAX_RATE_DECIMALS,
    MAX_U64,
    NAME_MAX_LENGTH,
    SYMBOL_MAX_LENGTH,
)
from .exceptions import VaultError, VaultErrorCode

if TYPE_CHECKING:
    from .domain import VaultConfig

_HEX_RE = re.compile(r"^[0-9a-fA-F]+\Z")
_OBJECT_ID_RE = re.compile(r"^0x[0-9a-fA-F]{64}\Z")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\Z")
_TX_DIGEST_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{43,44}\Z")
_INTEGER_RE = re.compile(r"^-?[0-9]+\Z")

NETWORK_NAMES = ("mainnet", "testnet", "devnet", "localnet")


def _invalid(message: str) -> VaultError:
    return VaultError(VaultErrorCode.INVALID_PARAMETERS, message)


# --- addresses / object ids ---


def is_valid_sui_address(address: object) -> bool:
    if not isinstance(address, str) or not address.startswith("0x"):
        return False
    hex_part = address[2:]
    if not 1 <= len(hex_part) <= 64:
        return False
    return bool(_HEX_RE.match(hex_part))


def normalize_sui_address(address: str) -> str:
    """Left-pad the hex portion of a valid address to 64 lower-case digits."""
    return "0x" + address[2:].lower().rjust(64, "0")


def validate_sui_address(address: object) -> str:
    """Validate a Sui address and return it in its 64-digit normalized form."""
    if not is_valid_sui_address(address):
        raise _invalid(f"Invalid Sui address: {address}")
    assert isinstance(address, str)
    return normalize_sui_address(address)


def is_valid_object_id(object_id: object) -> bool:
    return is_valid_sui_address(object_id)


def validate_object_id(object_id: object) -> str:
    if not is_valid_object_id(object_id):
        raise _invalid(f"Invalid object ID: {object_id}")
    assert isinstance(object_id, str)
    return normalize_sui_address(object_id)


def is_valid_object_id_string(value: object) -> bool:
    """Strict form: ``0x`` followed by exactly 64 hex digits."""
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


# --- coin types ---


def is_valid_identifier(value: object) -> bool:
    """Move identifier syntax: ``[A-Za-z_][A-Za-z0-9_]*``."""
    return isinstance(value, str) and bool(_IDENTIFIER_RE.match(value))


def is_valid_coin_type(coin_type: object) -> bool:
    if not isinstance(coin_type, str) or not coin_type:
        return False
    parts = coin_type.split("::")
    if len(parts) != 3:
        return False
    address, module, struct = parts
    return (
        is_valid_sui_address(address)
        and is_valid_identifier(module)
        and is_valid_identifier(struct)
    )


def validate_coin_type(coin_type: object) -> str:
    if not is_valid_coin_type(coin_type):
        raise _invalid(f"Invalid coin type format: {coin_type}")
    assert isinstance(coin_type, str)
    return coin_type


# --- amounts / rates ---


def _parse_integer(value: object) -> int | None:
    """Parse a str, int or integral float into an exact int, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        return int(text) if _INTEGER_RE.match(text) else None
    return None


def is_valid_amount(amount: object) -> bool:
    parsed = _parse_integer(amount)
    return parsed is not None and parsed >= 0


def validate_amount(amount: object) -> int:
    parsed = _parse_integer(amount)
    if parsed is None:
        raise _invalid(f"Invalid amount: {amount}")
    if parsed < 0:
        raise _invalid(f"Amount must be non-negative: {amount}")
    return parsed


def validate_amount_bounds(
    amount: object,
    min_value: int = 0,
    max_value: int = MAX_U64,
) -> int:
    """Validate an amount and check it lies within ``[min_value, max_value]``."""
    value = validate_amount(amount)
    if value < min_value:
        raise _invalid(f"Amount {value} is below minimum {min_value}")
    if value > max_value:
        raise _invalid(f"Amount {value} exceeds maximum {max_value}")
    return value


def is_valid_rate(rate: object) -> bool:
    parsed = _parse_integer(rate)
    return parsed is not None and parsed > 0


def validate_rate(rate: object) -> int:
    parsed = _parse_integer(rate)
    if parsed is None:
        raise _invalid(f"Invalid rate: {rate}")
    if parsed <= 0:
        raise _invalid(f"Rate must be positive: {rate}")
    return parsed


def validate_rate_decimals(decimals: object) -> int:
    if (
        isinstance(decimals, bool)
        or not isinstance(decimals, int)
        or not 0 <= decimals <= MAX_RATE_DECIMALS
    ):
        raise _invalid(
            f"Invalid rate decimals: {decimals}. Must be integer between 0 and {MAX_RATE_DECIMALS}."
        )
    return decimals


# --- transaction digests ---


def is_valid_tx_digest(digest: object) -> bool:
    return isinstance(digest, str) and bool(_TX_DIGEST_RE.match(digest))


def validate_tx_digest(digest: object) -> str:
    if not is_valid_tx_digest(digest):
        raise _invalid(f"Invalid transaction digest: {digest}")
    assert isinstance(digest, str)
    return digest


# --- urls ---


def is_valid_url(url: object) -> bool:
    if not isinstance(url, str) or not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def validate_url(url: object) -> str:
    if not is_valid_url(url):
        raise _invalid(f"Invalid URL: {url}")
    assert isinstance(url, str)
    return url


def validate_rpc_url(url: object) -> str:
    """Validate an RPC endpoint: a well-formed http(s) URL with a host."""
    valid_url = validate_url(url)
    parsed = urlparse(valid_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise _invalid(f"RPC URL must use HTTP or HTTPS: {url}")
    return valid_url


# --- strings ---


def is_non_empty_string(value: object) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def validate_non_empty_string(value: object, field_name: str = "Value") -> str:
    if not is_non_empty_string(value):
        raise _invalid(f"{field_name} must be a non-empty string")
    assert isinstance(value, str)
    return value


def validate_string_length(
    value: object,
    min_length: int = 0,
    max_length: int | None = None,
    field_name: str = "Value",
) -> str:
    if not isinstance(value, str):
        raise _invalid(f"{field_name} must be a string")
    if len(value) < min_length:
        raise _invalid(f"{field_name} must be at least {min_length} characters long")
    if max_length is not None and len(value) > max_length:
        raise _invalid(f"{field_name} must be at most {max_length} characters long")
    return value


# --- networks ---


def is_valid_network_name(network: object) -> bool:
    return network in NETWORK_NAMES


def validate_network_name(network: object) -> str:
    if not is_valid_network_name(network):
        raise _invalid(
            f"Invalid network: {network}. Must be one of: {', '.join(NETWORK_NAMES)}"
        )
    assert isinstance(network, str)
    return network


# --- composite ---


def validate_vault_config(config: VaultConfig) -> None:
    """Validate a vault configuration, stopping at the first violation.

    Checks run in a fixed order: rate, rate decimals, symbol, name,
    description, input coin type, output coin type, then the icon URL when one
    is set.

    Raises:
        VaultError: INVALID_PARAMETERS describing the first failed check
    """
    validate_rate(config.rate)
    validate_rate_decimals(config.rate_decimals)
    validate_string_length(
        config.symbol, min_length=1, max_length=SYMBOL_MAX_LENGTH, field_name="Symbol"
    )
    validate_string_length(
        config.name, min_length=1, max_length=NAME_MAX_LENGTH, field_name="Name"
    )
    validate_string_length(
        config.description,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        field_name="Description",
    )
    validate_coin_type(config.input_coin_type)
    validate_coin_type(config.output_coin_type)
    if config.icon_url:
        validate_url(config.icon_url)
