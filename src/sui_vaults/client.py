"""VaultClient: the programmatic entry point for building vault transactions.

Mutating operations only append Move calls to a caller-owned
:class:`~sui_vaults.transactions.Transaction`. Signing and execution happen
elsewhere. Read operations query a fullnode through :class:`SuiRpcClient`,
running each blocking call in a worker thread.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from .calculations import calculate_input_amount, calculate_output_amount
from .clients.sui_rpc import SuiRpcClient
from .coins import DEFAULT_REGISTRY, CoinRegistry
from .constants import (
    DEFAULT_COIN_PAGE_LIMIT,
    DEFAULT_DYNAMIC_FIELD_LIMIT,
    DEFAULT_MAX_RETRY_TIME,
    DEFAULT_REQUEST_TIMEOUT,
    NETWORK_DEFAULTS,
    VAULT_MODULE,
    VaultStructs,
)
from .domain import (
    CoinObject,
    CoinPage,
    DepositParams,
    ExchangeDirection,
    ExchangeQuote,
    MintParams,
    ObjectRef,
    RedeemParams,
    UpdateRateParams,
    Vault,
    VaultConfig,
    VaultMetadata,
    WithdrawParams,
)
from .exceptions import VaultError, VaultErrorCode, wrap_query_error
from .logger import get_logger
from .settings import VaultSettings
from .transactions.builders import (
    build_create_vault_tx,
    build_deposit_tx,
    build_mint_tx,
    build_redeem_tx,
    build_set_rate_tx,
    build_transfer_tx,
    build_withdraw_tx,
)
from .transactions.transaction import NestedResult, ObjectArg, Transaction
from .validators import (
    is_valid_object_id_string,
    is_valid_sui_address,
    normalize_sui_address,
    validate_amount,
    validate_coin_type,
    validate_object_id,
    validate_rate,
    validate_rpc_url,
    validate_sui_address,
    validate_vault_config,
)

logger = get_logger(__name__)

_OWNER_CAP_SUFFIX = f"::{VAULT_MODULE}::{VaultStructs.OWNER_CAP}"
_TYPE_ARGS_RE = re.compile(r"^[^<]+<(.+)>$")


@dataclass(frozen=True)
class NetworkConfig:
    """Endpoint and deployment a client is bound to."""

    name: str
    rpc_url: str
    package_id: str
    faucet_url: str | None = None

    @classmethod
    def for_network(cls, name: str) -> NetworkConfig:
        """Return the built-in configuration for a named network."""
        defaults = NETWORK_DEFAULTS.get(name)
        if defaults is None:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Invalid network: {name}. Must be one of: {', '.join(NETWORK_DEFAULTS)}",
            )
        return cls(
            name=name,
            rpc_url=defaults["rpc_url"],
            package_id=defaults["package_id"],
            faucet_url=defaults["faucet_url"],
        )


def split_type_arguments(type_str: str) -> list[str]:
    """Return the top-level type arguments of a generic Move type string.

    ``0xp::vault::Vault<0x2::sui::SUI, 0xa::lp::LP<0x2::sui::SUI>>`` yields
    ``["0x2::sui::SUI", "0xa::lp::LP<0x2::sui::SUI>"]``.
    """
    match = _TYPE_ARGS_RE.match(type_str.strip()) if type_str else None
    if not match:
        return []
    args: list[str] = []
    depth = 0
    current: list[str] = []
    for char in match.group(1):
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        if char == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    args.append("".join(current).strip())
    return [arg for arg in args if arg]


def parse_reserve_value(reserve: Any) -> int:
    """Extract the reserve balance from the shapes a ``Balance<T>`` field takes in RPC JSON."""
    if reserve is None or isinstance(reserve, bool):
        return 0
    if isinstance(reserve, (int, str)):
        return int(reserve)
    if isinstance(reserve, dict):
        fields = reserve.get("fields")
        if isinstance(fields, dict):
            for key in ("value", "balance"):
                if fields.get(key) not in (None, ""):
                    return int(fields[key])
        if reserve.get("value") not in (None, ""):
            return int(reserve["value"])
    return 0


def _object_ref(data: dict[str, Any]) -> ObjectRef:
    return ObjectRef(
        object_id=str(data.get("objectId", "")),
        version=str(data.get("version", "")),
        digest=str(data.get("digest", "")),
    )


def _move_object_fields(response: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]] | None:
    data = response.get("data")
    if not isinstance(data, dict):
        return None
    content = data.get("content")
    if not isinstance(content, dict) or content.get("dataType") != "moveObject":
        return None
    fields = content.get("fields")
    return data, fields if isinstance(fields, dict) else {}


def _require_coin_object_id(value: ObjectArg, operation: str, parameter: str) -> None:
    """Raw-string coins must be full object IDs; selecting or splitting coins is out of scope."""
    if isinstance(value, str) and not is_valid_object_id_string(value):
        raise VaultError(
            VaultErrorCode.INVALID_PARAMETERS,
            f"Build-only {operation} requires {parameter} as an object ID. "
            "Pre-select or split coins externally.",
            {"parameter": parameter, "value": value},
        )


class VaultClient:
    """Build-only vault operations plus read queries against one network.

    Construct instances with :meth:`initialize` or :meth:`from_settings` so the
    configuration is validated (and, by default, the endpoint probed).
    """

    def __init__(
        self,
        network: NetworkConfig,
        rpc_client: SuiRpcClient,
        *,
        debug: bool = False,
        coin_registry: CoinRegistry = DEFAULT_REGISTRY,
    ):
        self._network = network
        self._rpc = rpc_client
        self._debug = debug
        self._coin_registry = coin_registry

    # --- initialization ---

    @classmethod
    async def initialize(
        cls,
        network: NetworkConfig,
        *,
        debug: bool = False,
        rpc_client: SuiRpcClient | None = None,
        check_connection: bool = True,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_retry_time: float = DEFAULT_MAX_RETRY_TIME,
        coin_registry: CoinRegistry = DEFAULT_REGISTRY,
    ) -> VaultClient:
        """Validate ``network`` and return a ready client.

        Raises:
            VaultError: INVALID_PARAMETERS for a bad RPC URL or package ID,
                NETWORK_ERROR when the liveness probe fails
        """
        if not network.rpc_url:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS, "Network RPC URL is required"
            )
        if not network.package_id:
            raise VaultError(VaultErrorCode.INVALID_PARAMETERS, "Package ID is required")
        try:
            validate_rpc_url(network.rpc_url)
        except VaultError as e:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS, f"Invalid RPC URL: {network.rpc_url}"
            ) from e
        if not is_valid_object_id_string(network.package_id):
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Invalid package ID: {network.package_id}",
            )

        if rpc_client is None:
            rpc_client = SuiRpcClient(
                network.rpc_url,
                request_timeout=request_timeout,
                max_retry_time=max_retry_time,
            )

        if check_connection:
            try:
                await asyncio.to_thread(rpc_client.get_latest_sui_system_state)
            except Exception as e:
                raise VaultError(
                    VaultErrorCode.NETWORK_ERROR,
                    f"Failed to connect to Sui network: {e}",
                    {"original_error": e},
                ) from e

        client = cls(network, rpc_client, debug=debug, coin_registry=coin_registry)
        if debug:
            logger.info("VaultClient initialized for %s", network.name)
            logger.info("Package ID: %s", network.package_id)
            logger.info("RPC URL: %s", network.rpc_url)
        return client

    @classmethod
    async def from_settings(
        cls,
        settings: VaultSettings | None = None,
        *,
        rpc_client: SuiRpcClient | None = None,
        check_connection: bool = True,
        **overrides: Any,
    ) -> VaultClient:
        """Build a client from :class:`VaultSettings`, loading them if not given.

        Raises:
            VaultError: VALIDATION_ERROR when the settings are invalid
        """
        try:
            if settings is None:
                settings = VaultSettings(**overrides)
            network = NetworkConfig(
                name=settings.network.value,
                rpc_url=settings.rpc_url_required,
                package_id=settings.package_id_required,
                faucet_url=settings.faucet_url,
            )
        except (ValidationError, ValueError) as e:
            raise VaultError(
                VaultErrorCode.VALIDATION_ERROR,
                f"Invalid settings: {e}",
                {"original_error": e},
            ) from e

        registry = DEFAULT_REGISTRY
        if settings.coin_registry:
            registry = CoinRegistry.from_mapping(settings.coin_registry_entries())

        return await cls.initialize(
            network,
            debug=settings.debug,
            rpc_client=rpc_client,
            check_connection=check_connection,
            request_timeout=settings.request_timeout,
            max_retry_time=settings.max_retry_time,
            coin_registry=registry,
        )

    # --- accessors ---

    @property
    def network(self) -> NetworkConfig:
        return self._network

    @property
    def rpc_client(self) -> SuiRpcClient:
        return self._rpc

    @property
    def debug_enabled(self) -> bool:
        return self._debug

    @property
    def coin_registry(self) -> CoinRegistry:
        return self._coin_registry

    @property
    def package_id(self) -> str:
        return self._network.package_id

    # --- vault creation ---

    def create_vault(
        self,
        config: VaultConfig,
        output_coin_treasury: ObjectArg,
        tx: Transaction,
    ) -> None:
        """Append the calls that create a vault described by ``config``.

        Raises:
            VaultError: INVALID_PARAMETERS when the config fails validation
        """
        validate_vault_config(config)
        build_create_vault_tx(
            tx,
            self.package_id,
            rate=config.rate,
            output_coin_treasury=output_coin_treasury,
            rate_decimals=config.rate_decimals,
            symbol=config.symbol,
            name=config.name,
            description=config.description,
            input_coin_type=config.input_coin_type,
            output_coin_type=config.output_coin_type,
            icon_url=config.icon_url,
        )

    # --- user operations ---

    def mint(self, params: MintParams, tx: Transaction) -> NestedResult:
        """Append a mint and return the minted coin handle. The coin is not transferred."""
        validate_coin_type(params.input_coin_type)
        validate_coin_type(params.output_coin_type)
        _require_coin_object_id(params.input_coin, "mint", "input_coin")
        return build_mint_tx(
            tx,
            self.package_id,
            vault_id=params.vault_id,
            metadata_id=params.metadata_id,
            input_coin=params.input_coin,
            input_coin_type=params.input_coin_type,
            output_coin_type=params.output_coin_type,
        )

    def mint_and_transfer(
        self, params: MintParams, recipient: str, tx: Transaction
    ) -> None:
        """Append a mint followed by a transfer of the minted coin to ``recipient``."""
        validate_sui_address(recipient)
        minted = self.mint(params, tx)
        build_transfer_tx(tx, [minted], recipient)

    def redeem(self, params: RedeemParams, tx: Transaction) -> NestedResult:
        """Append a redeem and return the redeemed coin handle. The coin is not transferred."""
        validate_coin_type(params.input_coin_type)
        validate_coin_type(params.output_coin_type)
        _require_coin_object_id(params.output_coin, "redeem", "output_coin")
        return build_redeem_tx(
            tx,
            self.package_id,
            vault_id=params.vault_id,
            metadata_id=params.metadata_id,
            output_coin=params.output_coin,
            input_coin_type=params.input_coin_type,
            output_coin_type=params.output_coin_type,
        )

    def redeem_and_transfer(
        self, params: RedeemParams, recipient: str, tx: Transaction
    ) -> None:
        validate_sui_address(recipient)
        redeemed = self.redeem(params, tx)
        build_transfer_tx(tx, [redeemed], recipient)

    # --- owner operations ---

    async def deposit(self, params: DepositParams, tx: Transaction) -> None:
        """Append an owner-only deposit into the vault's reserve."""
        _require_coin_object_id(params.input_coin, "deposit", "input_coin")
        input_type, output_type = await self._resolve_types(
            params.vault_id, params.input_coin_type, params.output_coin_type
        )
        build_deposit_tx(
            tx,
            self.package_id,
            owner_cap=params.owner_cap,
            vault_id=params.vault_id,
            input_coin=params.input_coin,
            input_coin_type=input_type,
            output_coin_type=output_type,
        )

    async def withdraw(self, params: WithdrawParams, tx: Transaction) -> NestedResult:
        """Append an owner-only withdraw and return the withdrawn coin handle."""
        amount = validate_amount(params.amount)
        input_type, output_type = await self._resolve_types(
            params.vault_id, params.input_coin_type, params.output_coin_type
        )
        return build_withdraw_tx(
            tx,
            self.package_id,
            owner_cap=params.owner_cap,
            vault_id=params.vault_id,
            amount=amount,
            input_coin_type=input_type,
            output_coin_type=output_type,
        )

    async def withdraw_and_transfer(
        self, params: WithdrawParams, recipient: str, tx: Transaction
    ) -> None:
        validate_sui_address(recipient)
        withdrawn = await self.withdraw(params, tx)
        build_transfer_tx(tx, [withdrawn], recipient)

    async def update_rate(self, params: UpdateRateParams, tx: Transaction) -> None:
        """Append an owner-only exchange rate update."""
        new_rate = validate_rate(params.new_rate)
        input_type, output_type = await self._resolve_types(
            params.vault_id, params.input_coin_type, params.output_coin_type
        )
        build_set_rate_tx(
            tx,
            self.package_id,
            owner_cap=params.owner_cap,
            vault_id=params.vault_id,
            new_rate=new_rate,
            input_coin_type=input_type,
            output_coin_type=output_type,
        )

    async def _resolve_types(
        self,
        vault_id: ObjectArg,
        input_coin_type: str | None,
        output_coin_type: str | None,
    ) -> tuple[str, str]:
        """Fill in missing vault type arguments from the on-chain vault type."""
        if input_coin_type is not None:
            validate_coin_type(input_coin_type)
        if output_coin_type is not None:
            validate_coin_type(output_coin_type)
        if input_coin_type is not None and output_coin_type is not None:
            return input_coin_type, output_coin_type

        if not isinstance(vault_id, str):
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                "Coin types must be given when vault_id is a transaction argument",
            )
        inferred_input, inferred_output = await self.get_vault_types(vault_id)
        return input_coin_type or inferred_input, output_coin_type or inferred_output

    # --- queries ---

    async def _query(self, action: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except Exception as e:
            raise wrap_query_error(e, action) from e

    async def get_vault(self, vault_id: str) -> Vault:
        """Fetch and parse a vault object.

        Raises:
            VaultError: INVALID_PARAMETERS when the object is not a vault,
                NETWORK_ERROR / TIMEOUT / RATE_LIMIT_EXCEEDED on RPC failures
        """
        object_id = validate_object_id(vault_id)
        response = await self._query(
            "fetch vault",
            self._rpc.get_object,
            object_id,
            show_content=True,
            show_type=True,
        )
        parsed = _move_object_fields(response)
        if parsed is None:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS, f"Vault not found: {vault_id}"
            )
        data, fields = parsed

        try:
            rate = int(fields["rate"])
            rate_decimals = int(fields["rate_decimals"])
            reserve_value = parse_reserve_value(fields.get("reserve"))
        except (KeyError, TypeError, ValueError) as e:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Object {vault_id} is not a vault: {e}",
                {"original_error": e},
            ) from e

        type_args = split_type_arguments(str(data.get("type") or ""))
        return Vault(
            id=object_id,
            rate=rate,
            rate_decimals=rate_decimals,
            reserve_value=reserve_value,
            input_coin_type=type_args[0] if len(type_args) == 2 else None,
            output_coin_type=type_args[1] if len(type_args) == 2 else None,
            object_ref=_object_ref(data),
        )

    async def get_vault_metadata(self, metadata_id: str) -> VaultMetadata:
        object_id = validate_object_id(metadata_id)
        response = await self._query(
            "fetch vault metadata",
            self._rpc.get_object,
            object_id,
            show_content=True,
        )
        parsed = _move_object_fields(response)
        if parsed is None:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Vault metadata not found: {metadata_id}",
            )
        data, fields = parsed

        icon = fields.get("icon_url")
        icon_url: str | None = None
        if isinstance(icon, str):
            icon_url = icon
        elif isinstance(icon, dict):
            url = (icon.get("fields") or {}).get("url")
            icon_url = str(url) if url else None

        return VaultMetadata(
            id=object_id,
            name=str(fields.get("name", "")),
            symbol=str(fields.get("symbol", "")),
            description=str(fields.get("description", "")),
            icon_url=icon_url,
            object_ref=_object_ref(data),
        )

    async def calculate_exchange(
        self,
        vault_id: str,
        amount: int | str,
        direction: ExchangeDirection = "mint",
    ) -> ExchangeQuote:
        """Quote an exchange at the vault's current rate.

        ``mint`` converts input-coin units to output-coin units, ``redeem``
        goes the other way. ``price_impact`` is always ``"0"``.
        """
        if direction not in ("mint", "redeem"):
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Invalid direction: {direction}. Must be 'mint' or 'redeem'",
            )
        value = validate_amount(amount)
        vault = await self.get_vault(vault_id)

        if direction == "mint":
            output = calculate_output_amount(vault.rate, value, vault.rate_decimals)
        else:
            output = calculate_input_amount(vault.rate, value, vault.rate_decimals)

        return ExchangeQuote(
            input_amount=value,
            output_amount=output,
            rate=vault.rate,
            rate_decimals=vault.rate_decimals,
            direction=direction,
        )

    async def get_coin_balance(self, owner: str, coin_type: str) -> int:
        """Return the owner's total balance of ``coin_type``, or 0 if the lookup fails."""
        owner_address = validate_sui_address(owner)
        validate_coin_type(coin_type)
        try:
            result = await asyncio.to_thread(
                self._rpc.get_balance, owner_address, coin_type
            )
            return int(result.get("totalBalance", 0))
        except Exception as e:
            logger.warning(
                "Balance lookup failed for %s (%s), reporting 0: %s",
                owner_address,
                coin_type,
                e,
            )
            return 0

    async def get_coins(
        self,
        owner: str,
        coin_type: str,
        cursor: str | None = None,
        limit: int = DEFAULT_COIN_PAGE_LIMIT,
    ) -> CoinPage:
        """Fetch one page of the owner's coins of ``coin_type``.

        Raises:
            VaultError: NETWORK_ERROR when the query fails
        """
        owner_address = validate_sui_address(owner)
        validate_coin_type(coin_type)
        try:
            result = await asyncio.to_thread(
                self._rpc.get_coins,
                owner_address,
                coin_type,
                cursor=cursor,
                limit=limit,
            )
            coins = [
                CoinObject(
                    coin_object_id=entry["coinObjectId"],
                    coin_type=entry.get("coinType", coin_type),
                    balance=int(entry.get("balance", 0)),
                    version=str(entry.get("version", "")),
                    digest=str(entry.get("digest", "")),
                )
                for entry in result.get("data") or []
            ]
        except Exception as e:
            raise VaultError(
                VaultErrorCode.NETWORK_ERROR,
                f"Failed to get coins: {e}",
                {"original_error": e},
            ) from e

        return CoinPage(
            data=coins,
            next_cursor=result.get("nextCursor"),
            has_next_page=bool(result.get("hasNextPage", False)),
        )

    async def get_all_coins(self, owner: str, coin_type: str) -> list[CoinObject]:
        """Page through every coin of ``coin_type`` the owner holds."""
        coins: list[CoinObject] = []
        cursor: str | None = None
        while True:
            page = await self.get_coins(owner, coin_type, cursor=cursor)
            coins.extend(page.data)
            if not page.has_next_page or not page.next_cursor:
                break
            cursor = page.next_cursor
        logger.debug("Found %d %s coins for %s", len(coins), coin_type, owner)
        return coins

    async def get_vault_types(self, vault_id: str) -> tuple[str, str]:
        """Return ``(input_coin_type, output_coin_type)`` from the vault's type string.

        Raises:
            VaultError: INVALID_PARAMETERS when the object type is not
                ``<pkg>::vault::Vault<In, Out>``
        """
        object_id = validate_object_id(vault_id)
        response = await self._query(
            "fetch vault type", self._rpc.get_object, object_id, show_type=True
        )
        data = response.get("data") or {}
        full_type = str(data.get("type") or "")
        type_args = split_type_arguments(full_type)
        if len(type_args) != 2:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"Cannot infer coin types for {vault_id} from type {full_type!r}",
            )
        return type_args[0], type_args[1]

    async def get_vault_metadata_id(self, vault_id: str) -> str | None:
        """Find the metadata object ID stored as a dynamic field of the vault.

        Returns None when no field holds an object ID or the lookup fails.
        """
        parent_id = validate_object_id(vault_id)
        try:
            result = await asyncio.to_thread(
                self._rpc.get_dynamic_fields,
                parent_id,
                limit=DEFAULT_DYNAMIC_FIELD_LIMIT,
            )
        except Exception as e:
            logger.warning("Dynamic field lookup failed for %s: %s", parent_id, e)
            return None

        for entry in result.get("data") or []:
            name = entry.get("name") if isinstance(entry, dict) else None
            value = name.get("value") if isinstance(name, dict) else None
            if is_valid_object_id_string(value):
                return value
        return None

    async def get_owner_cap(self, vault_id: str, owner: str) -> str | None:
        """Return the ID of the OwnerCap ``owner`` holds for ``vault_id``, if any."""
        target_vault = validate_object_id(vault_id)
        owner_address = validate_sui_address(owner)
        cursor: str | None = None
        while True:
            result = await self._query(
                "fetch owned objects",
                self._rpc.get_owned_objects,
                owner_address,
                show_type=True,
                show_content=True,
                cursor=cursor,
            )
            for entry in result.get("data") or []:
                data = entry.get("data") or {}
                type_str = data.get("type")
                if not isinstance(type_str, str) or not type_str.endswith(
                    _OWNER_CAP_SUFFIX
                ):
                    continue
                fields = (data.get("content") or {}).get("fields") or {}
                cap_vault = fields.get("vault_id")
                if (
                    isinstance(cap_vault, str)
                    and is_valid_sui_address(cap_vault)
                    and normalize_sui_address(cap_vault) == target_vault
                ):
                    return data.get("objectId")
            cursor = result.get("nextCursor")
            if not result.get("hasNextPage") or not cursor:
                return None
