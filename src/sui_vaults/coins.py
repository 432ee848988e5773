"""Coin metadata registry used for display and amount parsing."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .constants import SUI_COIN_TYPE
from .domain import CoinMetadata

DEFAULT_DECIMALS = 9

STABLECOIN_TYPES = {
    "USDC": "0xdba34672e30cb065b1f93e3ab55318768fd6fef66c15942c9f7cb846e2f900e7::usdc::USDC",
    "USDT": "0x375f70cf2ae4c00bf37117d0c85a2c71545e6ee05c4a5c7d282cd66a4504b068::usdt::USDT",
}

DEFAULT_COINS: tuple[CoinMetadata, ...] = (
    CoinMetadata(
        coin_type=SUI_COIN_TYPE,
        symbol="SUI",
        name="Sui",
        decimals=9,
        icon_url="https://sui.io/img/sui-logo.svg",
        coingecko_id="sui",
    ),
    CoinMetadata(
        coin_type=STABLECOIN_TYPES["USDC"],
        symbol="USDC",
        name="USD Coin",
        decimals=6,
        is_stablecoin=True,
        coingecko_id="usd-coin",
    ),
    CoinMetadata(
        coin_type=STABLECOIN_TYPES["USDT"],
        symbol="USDT",
        name="Tether USD",
        decimals=6,
        is_stablecoin=True,
        coingecko_id="tether",
    ),
    CoinMetadata(
        coin_type="0xdeeb7a4662eec9f2f3def03fb937a663dddaa2e215b8078a284d026b7946c270::deep::DEEP",
        symbol="DEEP",
        name="DeepBook Token",
        decimals=6,
    ),
    CoinMetadata(
        coin_type="0x356a26eb9e012a68958082340d4c4116e7f55615cf27affcff209cf0ae544f59::wal::WAL",
        symbol="WAL",
        name="Walrus",
        decimals=9,
    ),
)


def _canonical_coin_type(coin_type: str) -> str:
    """Normalize the address segment so ``0x2::sui::SUI`` and its long form match."""
    parts = coin_type.strip().split("::")
    if len(parts) == 3 and parts[0].startswith("0x"):
        parts[0] = "0x" + parts[0][2:].lower().rjust(64, "0")
    return "::".join(parts)


class CoinRegistry:
    """Lookup table of coin metadata keyed by coin type.

    Instances are passed explicitly to formatters and the client; there is no
    process-wide mutable registry.
    """

    def __init__(self, coins: Iterable[CoinMetadata] = DEFAULT_COINS):
        self._coins: dict[str, CoinMetadata] = {}
        for coin in coins:
            self._coins[_canonical_coin_type(coin.coin_type)] = coin

    def __contains__(self, coin_type: object) -> bool:
        return (
            isinstance(coin_type, str)
            and _canonical_coin_type(coin_type) in self._coins
        )

    def __len__(self) -> int:
        return len(self._coins)

    def get(self, coin_type: str) -> CoinMetadata | None:
        return self._coins.get(_canonical_coin_type(coin_type))

    def decimals(self, coin_type: str) -> int:
        coin = self.get(coin_type)
        return coin.decimals if coin else DEFAULT_DECIMALS

    def symbol(self, coin_type: str) -> str:
        """Return the symbol, falling back to the struct name of the type."""
        coin = self.get(coin_type)
        if coin:
            return coin.symbol
        return coin_type.split("::")[-1] if "::" in coin_type else "UNKNOWN"

    def with_coins(self, coins: Iterable[CoinMetadata]) -> CoinRegistry:
        """Return a new registry extended (or overridden) with ``coins``."""
        return CoinRegistry([*self._coins.values(), *coins])

    @classmethod
    def from_mapping(
        cls,
        entries: Mapping[str, Mapping[str, Any]],
        base: CoinRegistry | None = None,
    ) -> CoinRegistry:
        """Build a registry from ``{coin_type: {symbol, decimals, ...}}`` config entries."""
        extra = [
            CoinMetadata(
                coin_type=coin_type,
                symbol=str(entry.get("symbol", coin_type.split("::")[-1])),
                name=str(entry.get("name", entry.get("symbol", coin_type))),
                decimals=int(entry.get("decimals", DEFAULT_DECIMALS)),
                icon_url=entry.get("icon_url"),
                is_stablecoin=bool(entry.get("is_stablecoin", False)),
                coingecko_id=entry.get("coingecko_id"),
            )
            for coin_type, entry in entries.items()
        ]
        return (base or cls()).with_coins(extra)


DEFAULT_REGISTRY = CoinRegistry()
