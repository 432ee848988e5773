"""Protocol, network and numeric constants."""

from typing import Optional, TypedDict

MAX_U8 = 2**8 - 1
MAX_U64 = 2**64 - 1
MAX_U128 = 2**128 - 1

MAX_RATE_DECIMALS = 18

# Move package layout of the vault contract
VAULT_MODULE = "vault"


class VaultFunctions:
    CREATE_VAULT = "create_vault"
    MINT = "mint"
    REDEEM = "redeem"
    # owner-gated
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    SET_RATE = "set_rate"


class VaultStructs:
    VAULT = "Vault"
    VAULT_METADATA = "VaultMetadata"
    OWNER_CAP = "OwnerCap"


# Sui framework targets used to build Option<Url>
URL_NEW_UNSAFE_TARGET = "0x2::url::new_unsafe"
OPTION_SOME_TARGET = "0x1::option::some"
OPTION_NONE_TARGET = "0x1::option::none"
URL_TYPE = "0x2::url::Url"

SUI_COIN_TYPE = "0x2::sui::SUI"

# Field length limits enforced on-chain for vault metadata
SYMBOL_MAX_LENGTH = 32
NAME_MAX_LENGTH = 256
DESCRIPTION_MAX_LENGTH = 1000

DEFAULT_COIN_PAGE_LIMIT = 50
DEFAULT_DYNAMIC_FIELD_LIMIT = 50

DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
DEFAULT_MAX_RETRY_TIME = 30.0  # seconds


class NetworkDefaults(TypedDict):
    rpc_url: str
    faucet_url: Optional[str]
    package_id: str


ZERO_PACKAGE_ID = "0x" + "0" * 64

MAINNET_DEFAULTS: NetworkDefaults = {
    "rpc_url": "https://fullnode.mainnet.sui.io:443",
    "faucet_url": None,
    "package_id": ZERO_PACKAGE_ID,
}

TESTNET_DEFAULTS: NetworkDefaults = {
    "rpc_url": "https://fullnode.testnet.sui.io:443",
    "faucet_url": "https://faucet.testnet.sui.io/v2/gas",
    "package_id": "0x2dc725191c2b57d4d2731ff9c278452cab00a393e0bd0efd6c5c9b01e171b8d3",
}

DEVNET_DEFAULTS: NetworkDefaults = {
    "rpc_url": "https://fullnode.devnet.sui.io:443",
    "faucet_url": "https://faucet.devnet.sui.io/v2/gas",
    "package_id": ZERO_PACKAGE_ID,
}

LOCALNET_DEFAULTS: NetworkDefaults = {
    "rpc_url": "http://127.0.0.1:9000",
    "faucet_url": "http://127.0.0.1:9123/v2/gas",
    "package_id": ZERO_PACKAGE_ID,
}

NETWORK_DEFAULTS: dict[str, NetworkDefaults] = {
    "mainnet": MAINNET_DEFAULTS,
    "testnet": TESTNET_DEFAULTS,
    "devnet": DEVNET_DEFAULTS,
    "localnet": LOCALNET_DEFAULTS,
}
