"""Fixed-point exchange arithmetic matching the vault contract's u64 math.

All intermediate products are computed with Python integers, which are
arbitrary precision, so ``rate * amount`` never wraps before the division.
Results are truncated toward zero exactly as Move's integer division does.
"""

from __future__ import annotations

import re

from .constants import MAX_RATE_DECIMALS, MAX_U64
from .exceptions import VaultError, VaultErrorCode

IntLike = int | str

_INTEGER_RE = re.compile(r"^-?[0-9]+\Z")


def _to_int(value: IntLike, name: str) -> int:
    if isinstance(value, bool):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, f"{name} must be an integer: {value!r}"
        )
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        return int(value.strip())
    raise VaultError(
        VaultErrorCode.INVALID_PARAMETERS, f"{name} must be an integer: {value!r}"
    )


def _scale(rate_decimals: int) -> int:
    if (
        isinstance(rate_decimals, bool)
        or not isinstance(rate_decimals, int)
        or not 0 <= rate_decimals <= MAX_RATE_DECIMALS
    ):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS,
            f"Invalid rate decimals: {rate_decimals}. Must be integer between 0 and {MAX_RATE_DECIMALS}.",
        )
    return 10**rate_decimals


def calculate_output_amount(
    rate: IntLike, input_value: IntLike, rate_decimals: int
) -> int:
    """Compute ``floor(rate * input_value / 10**rate_decimals)``.

    Args:
        rate: Fixed-point exchange rate numerator
        input_value: Input amount in the input coin's base units
        rate_decimals: Decimal precision of ``rate``

    Returns:
        Output amount in the output coin's base units

    Raises:
        VaultError: DIVISION_BY_ZERO if rate <= 0, INVALID_PARAMETERS if the
            input is negative, ARITHMETIC_OVERFLOW if the product would not fit
            the contract's u64 bound.
    """
    rate_int = _to_int(rate, "Rate")
    input_int = _to_int(input_value, "Input value")
    divisor = _scale(rate_decimals)

    if rate_int <= 0:
        raise VaultError(
            VaultErrorCode.DIVISION_BY_ZERO, "Rate must be greater than zero"
        )
    if input_int < 0:
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, "Input value must be non-negative"
        )

    max_input = MAX_U64 // rate_int
    if input_int > max_input:
        raise VaultError(
            VaultErrorCode.ARITHMETIC_OVERFLOW,
            f"Input value too large: {input_int} > {max_input} (rate {rate_int})",
        )

    result = rate_int * input_int // divisor
    if result > MAX_U64:
        raise VaultError(
            VaultErrorCode.ARITHMETIC_OVERFLOW, f"Result too large: {result}"
        )
    return result


def calculate_input_amount(
    rate: IntLike, output_value: IntLike, rate_decimals: int
) -> int:
    """Compute ``floor(output_value * 10**rate_decimals / rate)``.

    Inverse of :func:`calculate_output_amount`. The overflow pre-check is
    against the ``10**rate_decimals`` multiplier instead of the rate.
    """
    rate_int = _to_int(rate, "Rate")
    output_int = _to_int(output_value, "Output value")
    multiplier = _scale(rate_decimals)

    if rate_int <= 0:
        raise VaultError(
            VaultErrorCode.DIVISION_BY_ZERO, "Rate must be greater than zero"
        )
    if output_int < 0:
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, "Output value must be non-negative"
        )

    max_output = MAX_U64 // multiplier
    if output_int > max_output:
        raise VaultError(
            VaultErrorCode.ARITHMETIC_OVERFLOW,
            f"Output value too large: {output_int} > {max_output} (multiplier {multiplier})",
        )

    result = output_int * multiplier // rate_int
    if result > MAX_U64:
        raise VaultError(
            VaultErrorCode.ARITHMETIC_OVERFLOW, f"Result too large: {result}"
        )
    return result


def calculate_exchange_rate(
    input_amount: IntLike, output_amount: IntLike, rate_decimals: int
) -> int:
    """Derive the fixed-point rate that maps ``input_amount`` to ``output_amount``."""
    input_int = _to_int(input_amount, "Input amount")
    output_int = _to_int(output_amount, "Output amount")
    multiplier = _scale(rate_decimals)

    if input_int <= 0:
        raise VaultError(
            VaultErrorCode.DIVISION_BY_ZERO, "Input amount must be greater than zero"
        )
    if output_int < 0:
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS, "Output amount must be non-negative"
        )

    rate = output_int * multiplier // input_int
    if rate > MAX_U64:
        raise VaultError(
            VaultErrorCode.ARITHMETIC_OVERFLOW, f"Calculated rate too large: {rate}"
        )
    return rate
