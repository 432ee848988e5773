from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from sui_vaults.client import (
    NetworkConfig,
    VaultClient,
    parse_reserve_value,
    split_type_arguments,
)
from sui_vaults.clients.sui_rpc import SuiRpcClient, SuiRpcError
from sui_vaults.domain import (
    DepositParams,
    MintParams,
    RedeemParams,
    UpdateRateParams,
    VaultConfig,
    WithdrawParams,
)
from sui_vaults.exceptions import VaultError, VaultErrorCode
from sui_vaults.settings import VaultSettings
from sui_vaults.transactions import MoveCall, NestedResult, Transaction, TransferObjects

PACKAGE = "0x" + "a" * 64
VAULT = "0x" + "b" * 64
METADATA = "0x" + "c" * 64
COIN = "0x" + "d" * 64
CAP = "0x" + "e" * 64
OWNER = "0x" + "1" * 64
SUI = "0x2::sui::SUI"
OUT = f"{PACKAGE}::vsui::VSUI"
VAULT_TYPE = f"{PACKAGE}::vault::Vault<{SUI}, {OUT}>"


@pytest.fixture
def rpc():
    return MagicMock(spec=SuiRpcClient)


@pytest.fixture
def network():
    return NetworkConfig(
        name="testnet",
        rpc_url="https://fullnode.testnet.sui.io:443",
        package_id=PACKAGE,
    )


@pytest.fixture
def client(network, rpc):
    return VaultClient(network, rpc)


def _vault_object(reserve="5000", type_str=VAULT_TYPE):
    return {
        "data": {
            "objectId": VAULT,
            "version": "12",
            "digest": "9" * 44,
            "type": type_str,
            "content": {
                "dataType": "moveObject",
                "type": type_str,
                "fields": {
                    "rate": "2000000000",
                    "rate_decimals": 9,
                    "reserve": reserve,
                },
            },
        }
    }


def _mint_params(**overrides) -> MintParams:
    values = dict(
        vault_id=VAULT,
        metadata_id=METADATA,
        input_coin=COIN,
        input_coin_type=SUI,
        output_coin_type=OUT,
    )
    values.update(overrides)
    return MintParams(**values)


# --- initialization ---


@pytest.mark.asyncio
async def test_initialize_probes_connection(network, rpc):
    client = await VaultClient.initialize(network, rpc_client=rpc, debug=True)

    rpc.get_latest_sui_system_state.assert_called_once()
    assert client.network is network
    assert client.rpc_client is rpc
    assert client.debug_enabled is True


@pytest.mark.asyncio
async def test_initialize_failed_probe_is_network_error(network, rpc):
    rpc.get_latest_sui_system_state.side_effect = requests.ConnectionError("down")

    with pytest.raises(VaultError) as exc_info:
        await VaultClient.initialize(network, rpc_client=rpc)
    assert exc_info.value.code is VaultErrorCode.NETWORK_ERROR
    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"rpc_url": "ftp://node"}, "Invalid RPC URL"),
        ({"rpc_url": ""}, "RPC URL is required"),
        ({"package_id": "0x2"}, "Invalid package ID"),
    ],
)
async def test_initialize_rejects_bad_config(rpc, overrides, message):
    values = dict(name="custom", rpc_url="https://node.example", package_id=PACKAGE)
    values.update(overrides)

    with pytest.raises(VaultError, match=message) as exc_info:
        await VaultClient.initialize(NetworkConfig(**values), rpc_client=rpc)
    assert exc_info.value.code is VaultErrorCode.INVALID_PARAMETERS
    rpc.get_latest_sui_system_state.assert_not_called()


@pytest.mark.asyncio
async def test_initialize_without_probe(network, rpc):
    await VaultClient.initialize(network, rpc_client=rpc, check_connection=False)
    rpc.get_latest_sui_system_state.assert_not_called()


@pytest.mark.asyncio
async def test_from_settings_uses_network_defaults(rpc):
    settings = VaultSettings(network="testnet")
    client = await VaultClient.from_settings(settings, rpc_client=rpc)

    assert client.network.name == "testnet"
    assert client.network.rpc_url == "https://fullnode.testnet.sui.io:443"
    assert client.package_id == settings.package_id_required


@pytest.mark.asyncio
async def test_from_settings_invalid_settings_is_validation_error(rpc):
    with pytest.raises(VaultError) as exc_info:
        await VaultClient.from_settings(rpc_client=rpc, package_id="not-a-package")
    assert exc_info.value.code is VaultErrorCode.VALIDATION_ERROR


def test_for_network_rejects_unknown_name():
    assert NetworkConfig.for_network("devnet").rpc_url.startswith("https://")
    with pytest.raises(VaultError, match="Invalid network"):
        NetworkConfig.for_network("moonnet")


# --- build-only operations ---


def test_create_vault_validates_config(client):
    tx = Transaction()
    config = VaultConfig(
        rate=0,
        rate_decimals=9,
        symbol="vSUI",
        name="Vault",
        description="d",
        input_coin_type=SUI,
        output_coin_type=OUT,
    )
    with pytest.raises(VaultError, match="Rate must be positive"):
        client.create_vault(config, COIN, tx)
    assert len(tx) == 0


def test_create_vault_appends_calls(client):
    tx = Transaction()
    config = VaultConfig(
        rate="2000000000",
        rate_decimals=9,
        symbol="vSUI",
        name="Vault",
        description="d",
        input_coin_type=SUI,
        output_coin_type=OUT,
        icon_url="https://example.com/i.png",
    )
    client.create_vault(config, COIN, tx)
    assert len(tx) == 3
    assert tx.commands[-1].target == f"{PACKAGE}::vault::create_vault"


def test_mint_returns_handle(client):
    tx = Transaction()
    minted = client.mint(_mint_params(), tx)
    assert minted == NestedResult(0, 0)


def test_mint_and_transfer_with_bare_amount_appends_nothing(client):
    tx = Transaction()
    with pytest.raises(VaultError) as exc_info:
        client.mint_and_transfer(_mint_params(input_coin="1000000"), OWNER, tx)

    assert exc_info.value.code is VaultErrorCode.INVALID_PARAMETERS
    assert "Pre-select or split coins externally" in exc_info.value.message
    assert len(tx) == 0
    assert tx.inputs == []


def test_mint_and_transfer_appends_transfer(client):
    tx = Transaction()
    client.mint_and_transfer(_mint_params(), OWNER, tx)

    assert isinstance(tx.commands[0], MoveCall)
    assert isinstance(tx.commands[1], TransferObjects)
    assert tx.commands[1].objects == [NestedResult(0, 0)]


def test_mint_and_transfer_bad_recipient_appends_nothing(client):
    tx = Transaction()
    with pytest.raises(VaultError, match="Invalid Sui address"):
        client.mint_and_transfer(_mint_params(), "bob", tx)
    assert len(tx) == 0


def test_mint_rejects_short_object_id_for_coin(client):
    tx = Transaction()
    with pytest.raises(VaultError, match="requires input_coin as an object ID"):
        client.mint(_mint_params(input_coin="0x5"), tx)


def test_redeem_and_transfer(client):
    tx = Transaction()
    params = RedeemParams(
        vault_id=VAULT,
        metadata_id=METADATA,
        output_coin=COIN,
        input_coin_type=SUI,
        output_coin_type=OUT,
    )
    client.redeem_and_transfer(params, OWNER, tx)
    assert tx.commands[0].target == f"{PACKAGE}::vault::redeem"
    assert isinstance(tx.commands[1], TransferObjects)


def test_redeem_rejects_bare_amount(client):
    params = RedeemParams(
        vault_id=VAULT,
        metadata_id=METADATA,
        output_coin="42",
        input_coin_type=SUI,
        output_coin_type=OUT,
    )
    with pytest.raises(VaultError, match="requires output_coin"):
        client.redeem(params, Transaction())


# --- owner operations ---


@pytest.mark.asyncio
async def test_deposit_infers_types_from_vault(client, rpc):
    rpc.get_object.return_value = {"data": {"objectId": VAULT, "type": VAULT_TYPE}}
    tx = Transaction()

    await client.deposit(DepositParams(owner_cap=CAP, vault_id=VAULT, input_coin=COIN), tx)

    call = tx.commands[0]
    assert call.target == f"{PACKAGE}::vault::deposit"
    assert call.type_arguments == [SUI, OUT]


@pytest.mark.asyncio
async def test_explicit_types_skip_inference(client, rpc):
    tx = Transaction()
    await client.update_rate(
        UpdateRateParams(
            owner_cap=CAP,
            vault_id=VAULT,
            new_rate="3000000000",
            input_coin_type=SUI,
            output_coin_type=OUT,
        ),
        tx,
    )
    rpc.get_object.assert_not_called()
    assert tx.commands[0].target == f"{PACKAGE}::vault::set_rate"


@pytest.mark.asyncio
async def test_inference_failure_is_invalid_parameters(client, rpc):
    rpc.get_object.return_value = {"data": {"type": "0x2::coin::Coin"}}
    tx = Transaction()

    with pytest.raises(VaultError) as exc_info:
        await client.withdraw(
            WithdrawParams(owner_cap=CAP, vault_id=VAULT, amount=10), tx
        )
    assert exc_info.value.code is VaultErrorCode.INVALID_PARAMETERS
    assert len(tx) == 0


@pytest.mark.asyncio
async def test_withdraw_and_transfer(client, rpc):
    rpc.get_object.return_value = {"data": {"type": VAULT_TYPE}}
    tx = Transaction()

    await client.withdraw_and_transfer(
        WithdrawParams(owner_cap=CAP, vault_id=VAULT, amount="10"), OWNER, tx
    )
    assert tx.commands[0].target == f"{PACKAGE}::vault::withdraw"
    assert tx.commands[1].objects == [NestedResult(0, 0)]


@pytest.mark.asyncio
async def test_withdraw_rejects_negative_amount_without_querying(client, rpc):
    with pytest.raises(VaultError, match="non-negative"):
        await client.withdraw(
            WithdrawParams(owner_cap=CAP, vault_id=VAULT, amount=-1), Transaction()
        )
    rpc.get_object.assert_not_called()


@pytest.mark.asyncio
async def test_handle_vault_requires_explicit_types(client):
    tx = Transaction()
    vault_handle = tx.object(VAULT)
    with pytest.raises(VaultError, match="Coin types must be given"):
        await client.deposit(
            DepositParams(owner_cap=CAP, vault_id=vault_handle, input_coin=COIN), tx
        )


# --- queries ---


@pytest.mark.asyncio
async def test_get_vault_parses_fields(client, rpc):
    rpc.get_object.return_value = _vault_object()

    vault = await client.get_vault(VAULT)

    assert vault.id == VAULT
    assert vault.rate == 2_000_000_000
    assert vault.rate_decimals == 9
    assert vault.reserve_value == 5000
    assert vault.input_coin_type == SUI
    assert vault.output_coin_type == OUT
    assert vault.object_ref.version == "12"
    rpc.get_object.assert_called_once_with(VAULT, show_content=True, show_type=True)


@pytest.mark.parametrize(
    "reserve,expected",
    [
        ("10", 10),
        (11, 11),
        ({"type": "0x2::balance::Balance", "fields": {"value": "12"}}, 12),
        ({"fields": {"balance": "13"}}, 13),
        ({"value": "14"}, 14),
        (None, 0),
        ({}, 0),
    ],
)
def test_parse_reserve_value_shapes(reserve, expected):
    assert parse_reserve_value(reserve) == expected


@pytest.mark.asyncio
async def test_get_vault_missing_object(client, rpc):
    rpc.get_object.return_value = {"error": {"code": "notExists"}}

    with pytest.raises(VaultError, match="Vault not found") as exc_info:
        await client.get_vault(VAULT)
    assert exc_info.value.code is VaultErrorCode.INVALID_PARAMETERS


@pytest.mark.asyncio
async def test_get_vault_wraps_rpc_failures(client, rpc):
    rpc.get_object.side_effect = requests.Timeout("slow")

    with pytest.raises(VaultError) as exc_info:
        await client.get_vault(VAULT)
    assert exc_info.value.code is VaultErrorCode.TIMEOUT
    assert isinstance(exc_info.value.__cause__, requests.Timeout)


@pytest.mark.asyncio
async def test_get_vault_metadata_reads_icon_url(client, rpc):
    rpc.get_object.return_value = {
        "data": {
            "objectId": METADATA,
            "version": "3",
            "digest": "d",
            "content": {
                "dataType": "moveObject",
                "fields": {
                    "name": "Vault SUI",
                    "symbol": "vSUI",
                    "description": "desc",
                    "icon_url": {"type": "0x2::url::Url", "fields": {"url": "https://x.io/i.png"}},
                },
            },
        }
    }

    metadata = await client.get_vault_metadata(METADATA)

    assert metadata.name == "Vault SUI"
    assert metadata.symbol == "vSUI"
    assert metadata.icon_url == "https://x.io/i.png"


@pytest.mark.asyncio
async def test_calculate_exchange_mint_and_redeem(client, rpc):
    rpc.get_object.return_value = _vault_object()

    mint_quote = await client.calculate_exchange(VAULT, "1000000000")
    assert mint_quote.output_amount == 2_000_000_000
    assert mint_quote.direction == "mint"
    assert mint_quote.price_impact == "0"

    redeem_quote = await client.calculate_exchange(VAULT, 2_000_000_000, "redeem")
    assert redeem_quote.output_amount == 1_000_000_000


@pytest.mark.asyncio
async def test_calculate_exchange_rejects_bad_direction(client, rpc):
    with pytest.raises(VaultError, match="Invalid direction"):
        await client.calculate_exchange(VAULT, 1, "swap")  # type: ignore[arg-type]
    rpc.get_object.assert_not_called()


@pytest.mark.asyncio
async def test_get_coin_balance(client, rpc):
    rpc.get_balance.return_value = {"coinType": SUI, "totalBalance": "12345"}
    assert await client.get_coin_balance(OWNER, SUI) == 12345


@pytest.mark.asyncio
async def test_get_coin_balance_degrades_to_zero(client, rpc, caplog):
    rpc.get_balance.side_effect = requests.ConnectionError("down")
    assert await client.get_coin_balance(OWNER, SUI) == 0
    assert "reporting 0" in caplog.text


@pytest.mark.asyncio
async def test_get_coins_page(client, rpc):
    rpc.get_coins.return_value = {
        "data": [
            {"coinObjectId": COIN, "coinType": SUI, "balance": "7", "version": "1", "digest": "x"},
            {"coinObjectId": CAP, "coinType": SUI, "balance": "3", "version": "2", "digest": "y"},
        ],
        "nextCursor": "abc",
        "hasNextPage": True,
    }

    page = await client.get_coins(OWNER, SUI)

    assert [c.coin_object_id for c in page.data] == [COIN, CAP]
    assert page.total_balance == 10
    assert page.next_cursor == "abc"
    assert page.has_next_page is True


@pytest.mark.asyncio
async def test_get_coins_failure_is_network_error(client, rpc):
    rpc.get_coins.side_effect = SuiRpcError(-32000, "boom")
    with pytest.raises(VaultError) as exc_info:
        await client.get_coins(OWNER, SUI)
    assert exc_info.value.code is VaultErrorCode.NETWORK_ERROR


@pytest.mark.asyncio
async def test_get_all_coins_follows_cursor(client, rpc):
    rpc.get_coins.side_effect = [
        {
            "data": [{"coinObjectId": COIN, "balance": "1"}],
            "nextCursor": "page2",
            "hasNextPage": True,
        },
        {
            "data": [{"coinObjectId": CAP, "balance": "2"}],
            "nextCursor": None,
            "hasNextPage": False,
        },
    ]

    coins = await client.get_all_coins(OWNER, SUI)

    assert [c.balance for c in coins] == [1, 2]
    assert rpc.get_coins.call_args_list[1].kwargs["cursor"] == "page2"


@pytest.mark.asyncio
async def test_get_vault_types(client, rpc):
    rpc.get_object.return_value = {"data": {"type": VAULT_TYPE}}
    assert await client.get_vault_types(VAULT) == (SUI, OUT)


def test_split_type_arguments_handles_nesting():
    nested = f"{PACKAGE}::vault::Vault<{SUI}, 0xa::lp::LP<{SUI}, {OUT}>>"
    assert split_type_arguments(nested) == [SUI, f"0xa::lp::LP<{SUI}, {OUT}>"]
    assert split_type_arguments("0x2::coin::Coin") == []


@pytest.mark.asyncio
async def test_get_vault_metadata_id_finds_object_id(client, rpc):
    rpc.get_dynamic_fields.return_value = {
        "data": [
            {"name": {"type": "u8", "value": 1}},
            {"name": {"type": "0x2::object::ID", "value": METADATA}},
        ]
    }
    assert await client.get_vault_metadata_id(VAULT) == METADATA


@pytest.mark.asyncio
async def test_get_vault_metadata_id_returns_none_on_error(client, rpc):
    rpc.get_dynamic_fields.side_effect = requests.ConnectionError("down")
    assert await client.get_vault_metadata_id(VAULT) is None


@pytest.mark.asyncio
async def test_get_owner_cap_matches_vault(client, rpc):
    other_vault = "0x" + "7" * 64
    rpc.get_owned_objects.return_value = {
        "data": [
            {"data": {"objectId": COIN, "type": "0x2::coin::Coin<0x2::sui::SUI>"}},
            {
                "data": {
                    "objectId": "0x" + "8" * 64,
                    "type": f"{PACKAGE}::vault::OwnerCap",
                    "content": {"fields": {"vault_id": other_vault}},
                }
            },
            {
                "data": {
                    "objectId": CAP,
                    "type": f"{PACKAGE}::vault::OwnerCap",
                    "content": {"fields": {"vault_id": VAULT}},
                }
            },
        ],
        "hasNextPage": False,
    }

    assert await client.get_owner_cap(VAULT, OWNER) == CAP


@pytest.mark.asyncio
async def test_get_owner_cap_none_when_absent(client, rpc):
    rpc.get_owned_objects.return_value = {"data": [], "hasNextPage": False}
    assert await client.get_owner_cap(VAULT, OWNER) is None


@pytest.mark.asyncio
async def test_get_owner_cap_skips_caps_with_malformed_vault_id(client, rpc):
    rpc.get_owned_objects.return_value = {
        "data": [
            {
                "data": {
                    "objectId": "0x" + "8" * 64,
                    "type": f"{PACKAGE}::vault::OwnerCap",
                    "content": {"fields": {"vault_id": "not-an-id"}},
                }
            },
            {
                "data": {
                    "objectId": CAP,
                    "type": f"{PACKAGE}::vault::OwnerCap",
                    "content": {"fields": {"vault_id": VAULT}},
                }
            },
        ],
        "hasNextPage": False,
    }

    assert await client.get_owner_cap(VAULT, OWNER) == CAP


@pytest.mark.asyncio
async def test_get_coins_malformed_page_is_network_error(client, rpc):
    rpc.get_coins.return_value = {"data": [{"coinType": SUI, "balance": "1"}]}

    with pytest.raises(VaultError) as exc_info:
        await client.get_coins(OWNER, SUI)
    assert exc_info.value.code is VaultErrorCode.NETWORK_ERROR
    assert isinstance(exc_info.value.__cause__, KeyError)
