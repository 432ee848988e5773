"""Domain models for vaults, quotes and coins."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from ..transactions.transaction import ObjectArg

ExchangeDirection = Literal["mint", "redeem"]


@dataclass(frozen=True)
class ObjectRef:
    """Versioned reference to an on-chain object."""

    object_id: str
    version: str
    digest: str


@dataclass(frozen=True)
class VaultConfig:
    """Parameters for a new vault. Consumed once by the create-vault builder."""

    rate: int | str
    rate_decimals: int
    symbol: str
    name: str
    description: str
    input_coin_type: str
    output_coin_type: str
    icon_url: str | None = None


@dataclass(frozen=True)
class Vault:
    id: str
    rate: int
    rate_decimals: int
    reserve_value: int
    input_coin_type: str | None
    output_coin_type: str | None
    object_ref: ObjectRef


@dataclass(frozen=True)
class VaultMetadata:
    id: str
    name: str
    symbol: str
    description: str
    icon_url: str | None
    object_ref: ObjectRef


@dataclass(frozen=True)
class OwnerCap:
    id: str
    vault_id: str


@dataclass(frozen=True)
class ExchangeQuote:
    """Quote derived from a vault's current rate.

    ``price_impact`` is always ``"0"``: reserve-aware impact is not computed yet.
    """

    input_amount: int
    output_amount: int
    rate: int
    rate_decimals: int
    direction: ExchangeDirection = "mint"
    price_impact: str = "0"

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class CoinObject:
    coin_object_id: str
    coin_type: str
    balance: int
    version: str
    digest: str


@dataclass(frozen=True)
class CoinPage:
    """One page of coins returned by ``suix_getCoins``."""

    data: list[CoinObject] = field(default_factory=list)
    next_cursor: str | None = None
    has_next_page: bool = False

    @property
    def total_balance(self) -> int:
        return sum(coin.balance for coin in self.data)


@dataclass(frozen=True)
class CoinMetadata:
    """Display metadata for a coin type."""

    coin_type: str
    symbol: str
    name: str
    decimals: int
    icon_url: str | None = None
    is_stablecoin: bool = False
    coingecko_id: str | None = None


@dataclass(frozen=True)
class MintParams:
    vault_id: ObjectArg
    metadata_id: ObjectArg
    input_coin: ObjectArg
    input_coin_type: str
    output_coin_type: str


@dataclass(frozen=True)
class RedeemParams:
    vault_id: ObjectArg
    metadata_id: ObjectArg
    output_coin: ObjectArg
    input_coin_type: str
    output_coin_type: str


@dataclass(frozen=True)
class DepositParams:
    """Owner-only reserve top-up. Missing coin types are read from the vault."""

    owner_cap: ObjectArg
    vault_id: ObjectArg
    input_coin: ObjectArg
    input_coin_type: str | None = None
    output_coin_type: str | None = None


@dataclass(frozen=True)
class WithdrawParams:
    owner_cap: ObjectArg
    vault_id: ObjectArg
    amount: int | str
    input_coin_type: str | None = None
    output_coin_type: str | None = None


@dataclass(frozen=True)
class UpdateRateParams:
    owner_cap: ObjectArg
    vault_id: ObjectArg
    new_rate: int | str
    input_coin_type: str | None = None
    output_coin_type: str | None = None


__all__ = [
    "CoinMetadata",
    "CoinObject",
    "CoinPage",
    "DepositParams",
    "ExchangeDirection",
    "ExchangeQuote",
    "MintParams",
    "ObjectRef",
    "OwnerCap",
    "RedeemParams",
    "UpdateRateParams",
    "Vault",
    "VaultConfig",
    "VaultMetadata",
    "WithdrawParams",
]
