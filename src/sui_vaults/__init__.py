"""Build-only SDK for fixed-rate tokenized vaults on Sui."""

from __future__ import annotations

from .exceptions import VaultError, VaultErrorCode, is_vault_error
from .calculations import (
    calculate_exchange_rate,
    calculate_input_amount,
    calculate_output_amount,
)
from .client import NetworkConfig, VaultClient
from .coins import DEFAULT_REGISTRY, CoinRegistry
from .domain import (
    DepositParams,
    ExchangeQuote,
    MintParams,
    RedeemParams,
    UpdateRateParams,
    Vault,
    VaultConfig,
    VaultMetadata,
    WithdrawParams,
)
from .settings import Network, VaultSettings
from .transactions import Transaction

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_REGISTRY",
    "CoinRegistry",
    "DepositParams",
    "ExchangeQuote",
    "MintParams",
    "Network",
    "NetworkConfig",
    "RedeemParams",
    "Transaction",
    "UpdateRateParams",
    "Vault",
    "VaultClient",
    "VaultConfig",
    "VaultError",
    "VaultErrorCode",
    "VaultMetadata",
    "VaultSettings",
    "WithdrawParams",
    "calculate_exchange_rate",
    "calculate_input_amount",
    "calculate_output_amount",
    "is_vault_error",
]
