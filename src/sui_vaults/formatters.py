"""Display and parsing helpers for amounts, addresses and errors.

Amounts are converted with :class:`decimal.Decimal` so base-unit integers of
any size format without float rounding.
"""

from __future__ import annotations

import re
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from .coins import DEFAULT_DECIMALS, DEFAULT_REGISTRY, CoinRegistry
from .exceptions import VaultError, VaultErrorCode
from .validators import is_valid_identifier

_COMPACT_UNITS = (
    (Decimal(10) ** 12, "T"),
    (Decimal(10) ** 9, "B"),
    (Decimal(10) ** 6, "M"),
    (Decimal(10) ** 3, "K"),
)
_ERROR_CODE_PREFIX_RE = re.compile(r"^\d+: ")
_HEX_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]+\Z")


def _to_decimal(value: int | str | Decimal | float) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, f"Invalid amount format: {value}"
        ) from e


def format_coin_amount(
    amount: int | str,
    coin_type: str | None = None,
    *,
    decimals: int | None = None,
    show_symbol: bool = False,
    compact: bool = False,
    precision: int = 6,
    registry: CoinRegistry = DEFAULT_REGISTRY,
) -> str:
    """Format a base-unit amount in whole-coin units.

    Args:
        amount: Amount in base units
        coin_type: Coin type used to look up decimals and symbol
        decimals: Explicit decimals, overriding the registry lookup
        show_symbol: Append the coin symbol
        compact: Use K/M/B/T notation
        precision: Maximum fractional digits, truncated toward zero
        registry: Coin metadata source

    Returns:
        Human-readable amount, e.g. ``"1,234.5 SUI"``
    """
    if decimals is None:
        decimals = registry.decimals(coin_type) if coin_type else DEFAULT_DECIMALS
    with localcontext() as ctx:
        ctx.prec = 80
        value = _to_decimal(amount).scaleb(-decimals)

        if compact:
            result = format_compact_number(value)
        else:
            quantum = Decimal(1).scaleb(-precision)
            truncated = value.quantize(quantum, rounding=ROUND_DOWN).normalize()
            result = f"{truncated:,f}"

    if show_symbol and coin_type:
        result = f"{result} {registry.symbol(coin_type)}"
    return result


def parse_coin_amount(
    amount: str,
    coin_type: str | None = None,
    decimals: int | None = None,
    *,
    registry: CoinRegistry = DEFAULT_REGISTRY,
) -> int:
    """Parse a human-readable amount such as ``"1,000.5"`` into base units.

    Characters other than digits and the decimal point are ignored. Digits
    beyond ``decimals`` are truncated.
    """
    if decimals is None:
        decimals = registry.decimals(coin_type) if coin_type else DEFAULT_DECIMALS
    cleaned = re.sub(r"[^\d.]", "", amount)
    if not cleaned or cleaned.count(".") > 1 or cleaned == ".":
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, f"Invalid amount format: {amount}"
        )
    with localcontext() as ctx:
        ctx.prec = 80
        scaled = _to_decimal(cleaned).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def format_compact_number(value: int | float | Decimal) -> str:
    """Format a number as 1.2K, 3.4M, 5.6B or 7.8T; small values get two decimals."""
    number = Decimal(str(value))
    for threshold, suffix in _COMPACT_UNITS:
        if abs(number) >= threshold:
            return f"{number / threshold:.1f}{suffix}"
    return f"{number:.2f}"


def format_percentage(bps: int | float, *, precision: int = 2, show_sign: bool = False) -> str:
    """Format basis points as a percentage: ``150`` -> ``"1.50%"``."""
    percentage = Decimal(str(bps)) / 100
    sign = "+" if show_sign and percentage > 0 else ""
    return f"{sign}{percentage:.{precision}f}%"


def format_address(address: str, *, short: bool = True, prefix: bool = True) -> str:
    """Shorten an address to ``0x1234...abcd``."""
    if not address:
        return ""
    full = address if address.startswith("0x") else f"0x{address}"
    if not short:
        return full
    start = full[:6] if prefix else full[2:6]
    return f"{start}...{full[-4:]}"


def format_object_id(object_id: str, short: bool = True) -> str:
    return format_address(object_id, short=short)


def format_tx_digest(digest: str, short: bool = True) -> str:
    if not short:
        return digest
    return f"{digest[:8]}...{digest[-8:]}"


def format_duration(ms: int) -> str:
    """Format a millisecond duration using its two largest units, e.g. ``"2h 5m"``."""
    seconds = int(ms) // 1000
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400
    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def format_coin_type(coin_type: str) -> str:
    """Strip whitespace from a coin type and check its ``0xaddr::module::Struct`` shape.

    Raises:
        VaultError: INVALID_PARAMETERS naming the malformed segment
    """
    cleaned = coin_type.strip()
    parts = cleaned.split("::")
    if not cleaned.startswith("0x") or len(parts) != 3:
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, f"Invalid coin type format: {coin_type}"
        )
    address, module, struct = parts
    if not _HEX_ADDRESS_RE.match(address):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, f"Invalid address in coin type: {address}"
        )
    if not is_valid_identifier(module):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS,
            f"Invalid module name in coin type: {module}",
        )
    if not is_valid_identifier(struct):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS,
            f"Invalid struct name in coin type: {struct}",
        )
    return cleaned


def format_error_message(error: object) -> str:
    """Turn an exception into a short message for end users."""
    if isinstance(error, VaultError):
        return error.user_message()
    if not isinstance(error, Exception):
        return "An unexpected error occurred"

    message = _ERROR_CODE_PREFIX_RE.sub("", str(error).removeprefix("Error: "))
    lowered = message.lower()
    if "insufficient" in lowered:
        return "Insufficient balance for this transaction"
    if "slippage" in lowered:
        return "Price changed too much. Try adjusting slippage tolerance."
    if "network" in lowered or "timeout" in lowered or "timed out" in lowered:
        return "Network error. Please try again."
    return message or "An unexpected error occurred"
