"""Build-only helpers that append vault Move calls to a Transaction.

None of these functions execute anything. Each one validates every raw object
ID, type argument and scalar before touching the transaction, so a failure
leaves the accumulator exactly as it was.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..constants import (
    OPTION_NONE_TARGET,
    OPTION_SOME_TARGET,
    URL_NEW_UNSAFE_TARGET,
    URL_TYPE,
    VAULT_MODULE,
    VaultFunctions,
)
from ..exceptions import VaultError, VaultErrorCode
from ..logger import get_logger
from ..validators import (
    validate_amount_bounds,
    validate_coin_type,
    validate_object_id,
    validate_rate,
    validate_rate_decimals,
    validate_sui_address,
)
from .bcs import encode_u64
from .transaction import (
    NestedResult,
    ObjectArg,
    Transaction,
    TransactionArgument,
    is_transaction_argument,
    parse_move_target,
)

logger = get_logger(__name__)


def vault_target(package_id: str, function: str) -> str:
    return f"{package_id}::{VAULT_MODULE}::{function}"


def _check_object_args(tx: Transaction, objects: Mapping[str, ObjectArg]) -> None:
    """Validate object parameters without adding any inputs."""
    for name, value in objects.items():
        if is_transaction_argument(value):
            tx.check_argument(value)
        elif isinstance(value, str):
            try:
                validate_object_id(value)
            except VaultError as e:
                raise VaultError(
                    VaultErrorCode.INVALID_PARAMETERS,
                    f"Invalid {name}: {value}",
                    {"parameter": name},
                ) from e
        else:
            raise VaultError(
                VaultErrorCode.INVALID_PARAMETERS,
                f"{name} must be an object ID or transaction argument, got {type(value).__name__}",
                {"parameter": name},
            )


def _preflight(
    tx: Transaction,
    package_id: str,
    function: str,
    type_arguments: Sequence[str],
    objects: Mapping[str, ObjectArg],
) -> str:
    target = vault_target(package_id, function)
    parse_move_target(target)
    for coin_type in type_arguments:
        validate_coin_type(coin_type)
    _check_object_args(tx, objects)
    return target


def build_create_vault_tx(
    tx: Transaction,
    package_id: str,
    *,
    rate: int | str,
    output_coin_treasury: ObjectArg,
    rate_decimals: int,
    symbol: str,
    name: str,
    description: str,
    input_coin_type: str,
    output_coin_type: str,
    icon_url: str | None = None,
) -> None:
    """Append the calls that create a vault.

    The contract takes ``Option<Url>`` for the icon, so one auxiliary call is
    appended first: ``option::none`` when no icon is given, otherwise
    ``url::new_unsafe`` followed by ``option::some``. The created objects are
    not returned; fetch them by query after execution.

    Args:
        tx: Transaction to mutate
        package_id: Deployed package that contains the vault module
        rate: Exchange rate numerator (u64)
        output_coin_treasury: TreasuryCap of the output coin
        rate_decimals: Decimal precision of ``rate`` (u8)
        symbol: Vault symbol, encoded as UTF-8 bytes
        name: Vault name, encoded as UTF-8 bytes
        description: Vault description, encoded as UTF-8 bytes
        input_coin_type: Fully qualified input coin type
        output_coin_type: Fully qualified output coin type
        icon_url: Optional icon URL
    """
    target = _preflight(
        tx,
        package_id,
        VaultFunctions.CREATE_VAULT,
        [input_coin_type, output_coin_type],
        {"output_coin_treasury": output_coin_treasury},
    )
    rate_value = validate_rate(rate)
    encode_u64(rate_value)
    decimals = validate_rate_decimals(rate_decimals)
    symbol_bytes = symbol.encode("utf-8")
    name_bytes = name.encode("utf-8")
    description_bytes = description.encode("utf-8")

    if icon_url:
        url_value = tx.move_call(URL_NEW_UNSAFE_TARGET, [tx.pure_string(icon_url)])
        option_url = tx.move_call(
            OPTION_SOME_TARGET, [url_value[0]], type_arguments=[URL_TYPE]
        )
    else:
        option_url = tx.move_call(OPTION_NONE_TARGET, [], type_arguments=[URL_TYPE])

    tx.move_call(
        target,
        [
            tx.pure_u64(rate_value),
            tx.resolve_object(output_coin_treasury),
            tx.pure_u8(decimals),
            tx.pure_vector_u8(symbol_bytes),
            tx.pure_vector_u8(name_bytes),
            tx.pure_vector_u8(description_bytes),
            option_url[0],
        ],
        type_arguments=[input_coin_type, output_coin_type],
    )
    logger.debug("Built create_vault for %s -> %s", input_coin_type, output_coin_type)


def build_mint_tx(
    tx: Transaction,
    package_id: str,
    *,
    vault_id: ObjectArg,
    metadata_id: ObjectArg,
    input_coin: ObjectArg,
    input_coin_type: str,
    output_coin_type: str,
) -> NestedResult:
    """Append a mint call and return the handle of the minted output coin."""
    target = _preflight(
        tx,
        package_id,
        VaultFunctions.MINT,
        [input_coin_type, output_coin_type],
        {"vault_id": vault_id, "metadata_id": metadata_id, "input_coin": input_coin},
    )
    minted = tx.move_call(
        target,
        [
            tx.resolve_object(vault_id),
            tx.resolve_object(metadata_id),
            tx.resolve_object(input_coin),
        ],
        type_arguments=[input_coin_type, output_coin_type],
    )
    return minted[0]


def build_redeem_tx(
    tx: Transaction,
    package_id: str,
    *,
    vault_id: ObjectArg,
    metadata_id: ObjectArg,
    output_coin: ObjectArg,
    input_coin_type: str,
    output_coin_type: str,
) -> NestedResult:
    """Append a redeem call and return the handle of the redeemed input coin."""
    target = _preflight(
        tx,
        package_id,
        VaultFunctions.REDEEM,
        [input_coin_type, output_coin_type],
        {
            "vault_id": vault_id,
            "metadata_id": metadata_id,
            "output_coin": output_coin,
        },
    )
    redeemed = tx.move_call(
        target,
        [
            tx.resolve_object(vault_id),
            tx.resolve_object(metadata_id),
            tx.resolve_object(output_coin),
        ],
        type_arguments=[input_coin_type, output_coin_type],
    )
    return redeemed[0]


def build_deposit_tx(
    tx: Transaction,
    package_id: str,
    *,
    owner_cap: ObjectArg,
    vault_id: ObjectArg,
    input_coin: ObjectArg,
    input_coin_type: str,
    output_coin_type: str,
) -> None:
    """Append an owner-only deposit of ``input_coin`` into the vault reserve."""
    target = _preflight(
        tx,
        package_id,
        VaultFunctions.DEPOSIT,
        [input_coin_type, output_coin_type],
        {"owner_cap": owner_cap, "vault_id": vault_id, "input_coin": input_coin},
    )
    tx.move_call(
        target,
        [
            tx.resolve_object(owner_cap),
            tx.resolve_object(vault_id),
            tx.resolve_object(input_coin),
        ],
        type_arguments=[input_coin_type, output_coin_type],
    )


def build_withdraw_tx(
    tx: Transaction,
    package_id: str,
    *,
    owner_cap: ObjectArg,
    vault_id: ObjectArg,
    amount: int | str,
    input_coin_type: str,
    output_coin_type: str,
) -> NestedResult:
    """Append an owner-only withdraw and return the handle of the withdrawn coin."""
    target = _preflight(
        tx,
        package_id,
        VaultFunctions.WITHDRAW,
        [input_coin_type, output_coin_type],
        {"owner_cap": owner_cap, "vault_id": vault_id},
    )
    amount_value = validate_amount_bounds(amount)
    withdrawn = tx.move_call(
        target,
        [
            tx.resolve_object(owner_cap),
            tx.resolve_object(vault_id),
            tx.pure_u64(amount_value),
        ],
        type_arguments=[input_coin_type, output_coin_type],
    )
    return withdrawn[0]


def build_set_rate_tx(
    tx: Transaction,
    package_id: str,
    *,
    owner_cap: ObjectArg,
    vault_id: ObjectArg,
    new_rate: int | str,
    input_coin_type: str,
    output_coin_type: str,
) -> None:
    """Append an owner-only rate update."""
    target = _preflight(
        tx,
        package_id,
        VaultFunctions.SET_RATE,
        [input_coin_type, output_coin_type],
        {"owner_cap": owner_cap, "vault_id": vault_id},
    )
    rate_value = validate_rate(new_rate)
    encode_u64(rate_value)
    tx.move_call(
        target,
        [
            tx.resolve_object(owner_cap),
            tx.resolve_object(vault_id),
            tx.pure_u64(rate_value),
        ],
        type_arguments=[input_coin_type, output_coin_type],
    )


def build_transfer_tx(
    tx: Transaction,
    objects: Sequence[TransactionArgument],
    recipient: str,
) -> None:
    """Append a transfer of ``objects`` to ``recipient``."""
    validate_sui_address(recipient)
    for obj in objects:
        tx.check_argument(obj)
    tx.transfer_objects(list(objects), recipient)
