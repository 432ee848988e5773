from __future__ import annotations

from .builders import (
    build_create_vault_tx,
    build_deposit_tx,
    build_mint_tx,
    build_redeem_tx,
    build_set_rate_tx,
    build_transfer_tx,
    build_withdraw_tx,
)
from .transaction import (
    Input,
    MoveCall,
    NestedResult,
    ObjectArg,
    ObjectInput,
    PureInput,
    Result,
    Transaction,
    TransactionArgument,
    TransferObjects,
)

__all__ = [
    "Input",
    "MoveCall",
    "NestedResult",
    "ObjectArg",
    "ObjectInput",
    "PureInput",
    "Result",
    "Transaction",
    "TransactionArgument",
    "TransferObjects",
    "build_create_vault_tx",
    "build_deposit_tx",
    "build_mint_tx",
    "build_redeem_tx",
    "build_set_rate_tx",
    "build_transfer_tx",
    "build_withdraw_tx",
]
