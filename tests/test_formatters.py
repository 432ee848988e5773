from __future__ import annotations

import pytest

from sui_vaults.coins import CoinRegistry
from sui_vaults.domain import CoinMetadata
from sui_vaults.exceptions import VaultError, VaultErrorCode
from sui_vaults.formatters import (
    format_address,
    format_coin_amount,
    format_coin_type,
    format_compact_number,
    format_duration,
    format_error_message,
    format_object_id,
    format_percentage,
    format_tx_digest,
    parse_coin_amount,
)

SUI = "0x2::sui::SUI"
USDC = "0xdba34672e30cb065b1f93e3ab55318768fd6fef66c15942c9f7cb846e2f900e7::usdc::USDC"


@pytest.mark.parametrize(
    "amount,expected",
    [
        (1_500_000_000, "1.5"),
        (1_000_000_000_000, "1,000"),
        (0, "0"),
        (1_234_567_891, "1.234567"),
        ("25", "0"),
    ],
)
def test_format_coin_amount_sui(amount, expected):
    assert format_coin_amount(amount, SUI) == expected


def test_format_coin_amount_uses_registry_decimals():
    assert format_coin_amount(2_500_000, USDC, show_symbol=True) == "2.5 USDC"


def test_format_coin_amount_unknown_type_falls_back_to_struct_name():
    coin_type = "0x" + "a" * 64 + "::vsui::VSUI"
    assert format_coin_amount(10**9, coin_type, show_symbol=True) == "1 VSUI"


def test_format_coin_amount_compact_and_explicit_decimals():
    assert format_coin_amount(1_500_000 * 10**9, SUI, compact=True) == "1.5M"
    assert format_coin_amount(12345, decimals=2) == "123.45"


def test_format_coin_amount_custom_registry():
    coin_type = "0x" + "a" * 64 + "::vsui::VSUI"
    registry = CoinRegistry().with_coins(
        [CoinMetadata(coin_type=coin_type, symbol="vSUI", name="Vault SUI", decimals=6)]
    )
    assert (
        format_coin_amount(3_000_000, coin_type, show_symbol=True, registry=registry)
        == "3 vSUI"
    )


def test_format_coin_amount_handles_values_beyond_u64():
    assert format_coin_amount(2**70, decimals=0) == f"{2**70:,}"


def test_parse_coin_amount():
    assert parse_coin_amount("1,000.5", SUI) == 1_000_500_000_000
    assert parse_coin_amount("2.5", USDC) == 2_500_000
    assert parse_coin_amount("0.0000000019", SUI) == 1
    assert parse_coin_amount("7 SUI", decimals=0) == 7


@pytest.mark.parametrize("text", ["abc", "1.2.3", "."])
def test_parse_coin_amount_rejects_garbage(text):
    with pytest.raises(VaultError) as exc_info:
        parse_coin_amount(text, SUI)
    assert exc_info.value.code is VaultErrorCode.INVALID_PARAMETERS


@pytest.mark.parametrize(
    "value,expected",
    [
        (1_234, "1.2K"),
        (5_600_000, "5.6M"),
        (7_800_000_000, "7.8B"),
        (2_000_000_000_000, "2.0T"),
        (12.5, "12.50"),
    ],
)
def test_format_compact_number(value, expected):
    assert format_compact_number(value) == expected


def test_format_percentage():
    assert format_percentage(150) == "1.50%"
    assert format_percentage(150, show_sign=True) == "+1.50%"
    assert format_percentage(-25, show_sign=True) == "-0.25%"
    assert format_percentage(1, precision=3) == "0.010%"


def test_format_address():
    address = "0x1234" + "0" * 56 + "abcd"
    assert format_address(address) == "0x1234...abcd"
    assert format_address(address, prefix=False) == "1234...abcd"
    assert format_address(address, short=False) == address
    assert format_address("1234" + "0" * 56 + "abcd") == "0x1234...abcd"
    assert format_address("") == ""
    assert format_object_id(address) == "0x1234...abcd"


def test_format_tx_digest():
    digest = "AAAAAAAA" + "x" * 28 + "BBBBBBBB"
    assert format_tx_digest(digest) == "AAAAAAAA...BBBBBBBB"
    assert format_tx_digest(digest, short=False) == digest


@pytest.mark.parametrize(
    "ms,expected",
    [
        (500, "0s"),
        (90_000, "1m 30s"),
        (7_500_000, "2h 5m"),
        (90_000_000, "1d 1h"),
    ],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_format_coin_type_strips_whitespace():
    assert format_coin_type("  0x2::sui::SUI ") == SUI


@pytest.mark.parametrize(
    "coin_type,message",
    [
        ("sui::SUI", "Invalid coin type format"),
        ("0xzz::sui::SUI", "Invalid address"),
        ("0x2::1sui::SUI", "Invalid module name"),
        ("0x2::sui::S-UI", "Invalid struct name"),
    ],
)
def test_format_coin_type_names_bad_segment(coin_type, message):
    with pytest.raises(VaultError, match=message):
        format_coin_type(coin_type)


def test_format_error_message():
    vault_error = VaultError(VaultErrorCode.DIVISION_BY_ZERO, "rate is 0")
    assert format_error_message(vault_error) == vault_error.user_message()
    assert (
        format_error_message(ValueError("Error: Insufficient gas"))
        == "Insufficient balance for this transaction"
    )
    assert format_error_message(RuntimeError("request timed out")).startswith(
        "Network error"
    )
    assert format_error_message(ValueError("42: abort in vault")) == "abort in vault"
    assert format_error_message("oops") == "An unexpected error occurred"
