"""CLI entrypoint for sui-vaults."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Awaitable
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from pydantic import ValidationError

from .client import VaultClient
from .domain import MintParams, RedeemParams
from .exceptions import VaultError
from .formatters import format_coin_amount
from .logger import setup_logging
from .report.formatter import (
    format_quote_table,
    format_transaction_panel,
    format_vault_dashboard,
)
from .settings import Network, VaultSettings
from .state import AppState
from .transactions import Transaction

T = TypeVar("T")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Inspect fixed-rate Sui vaults and build vault transactions.",
)


class Direction(str, Enum):
    MINT = "mint"
    REDEEM = "redeem"


def _build_logger() -> logging.Logger:
    return logging.getLogger("sui_vaults")


def _state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        raise typer.BadParameter("CLI state was not initialized")
    return state


def _run(awaitable: Awaitable[T]) -> T:
    """Run a coroutine, reporting VaultError as a clean CLI failure."""
    try:
        return asyncio.run(awaitable)  # type: ignore[arg-type]
    except VaultError as e:
        typer.echo(f"Error [{e.code.value}]: {e.message}", err=True)
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [sui_vaults] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option(
            "--network",
            "-n",
            help="Network to use (mainnet, testnet, devnet, localnet or custom).",
        ),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="Fullnode RPC endpoint; overrides the network default."),
    ] = None,
    package_id: Annotated[
        str | None,
        typer.Option("--package-id", help="Vault package ID; overrides the network default."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    debug: Annotated[
        bool | None,
        typer.Option("--debug/--no-debug", help="Log client initialization details."),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option("--show-config", help="Print effective config and exit."),
    ] = False,
):
    """Load configuration shared by every command."""
    if config_path:
        os.environ["SUI_VAULTS_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Any] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if package_id is not None:
        init_kwargs["package_id"] = package_id
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()
    if debug is not None:
        init_kwargs["debug"] = debug

    try:
        settings = VaultSettings(**init_kwargs)
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e

    setup_logging(settings.log_level)
    ctx.obj = AppState.from_settings(settings, _build_logger())

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@app.command()
def vault(
    ctx: typer.Context,
    vault_id: Annotated[str, typer.Argument(help="Vault object ID.")],
):
    """Show a vault's rate, reserve and metadata."""
    state = _state(ctx)
    registry = state.registry

    async def _show() -> None:
        client = await VaultClient.from_settings(state.settings)
        vault_obj, metadata_id = await asyncio.gather(
            client.get_vault(vault_id), client.get_vault_metadata_id(vault_id)
        )
        metadata = (
            await client.get_vault_metadata(metadata_id) if metadata_id else None
        )
        format_vault_dashboard(
            vault_obj,
            metadata,
            network=client.network.name,
            registry=registry,
        )

    _run(_show())


@app.command()
def quote(
    ctx: typer.Context,
    vault_id: Annotated[str, typer.Argument(help="Vault object ID.")],
    amount: Annotated[str, typer.Argument(help="Amount in base units.")],
    direction: Annotated[
        Direction,
        typer.Option("--direction", "-d", help="mint (input -> output) or redeem."),
    ] = Direction.MINT,
):
    """Quote a mint or redeem at the vault's current rate."""
    state = _state(ctx)
    registry = state.registry

    async def _quote() -> None:
        client = await VaultClient.from_settings(state.settings)
        result = await client.calculate_exchange(vault_id, amount, direction.value)
        vault_obj = await client.get_vault(vault_id)
        format_quote_table(result, vault_obj, registry=registry)

    _run(_quote())


@app.command()
def balance(
    ctx: typer.Context,
    owner: Annotated[str, typer.Argument(help="Owner address.")],
    coin_type: Annotated[str, typer.Argument(help="Fully qualified coin type.")],
):
    """Print an address's balance of one coin type."""
    state = _state(ctx)
    registry = state.registry

    async def _balance() -> int:
        client = await VaultClient.from_settings(state.settings)
        return await client.get_coin_balance(owner, coin_type)

    raw = _run(_balance())
    formatted = format_coin_amount(raw, coin_type, show_symbol=True, registry=registry)
    typer.echo(f"{formatted} ({raw} base units)")


def _emit(tx: Transaction, as_json: bool) -> None:
    if as_json:
        typer.echo(tx.to_json())
    else:
        format_transaction_panel(tx)


@app.command()
def mint(
    ctx: typer.Context,
    vault_id: Annotated[str, typer.Argument(help="Vault object ID.")],
    metadata_id: Annotated[str, typer.Argument(help="Vault metadata object ID.")],
    input_coin: Annotated[str, typer.Argument(help="Input coin object ID.")],
    input_coin_type: Annotated[str, typer.Option("--input-type", help="Input coin type.")],
    output_coin_type: Annotated[str, typer.Option("--output-type", help="Output coin type.")],
    recipient: Annotated[
        str | None,
        typer.Option("--recipient", help="Transfer the minted coin to this address."),
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print raw transaction JSON.")] = False,
):
    """Build (but do not execute) a mint transaction."""
    state = _state(ctx)
    params = MintParams(
        vault_id=vault_id,
        metadata_id=metadata_id,
        input_coin=input_coin,
        input_coin_type=input_coin_type,
        output_coin_type=output_coin_type,
    )

    async def _build() -> Transaction:
        client = await VaultClient.from_settings(state.settings, check_connection=False)
        tx = Transaction()
        if recipient:
            client.mint_and_transfer(params, recipient, tx)
        else:
            client.mint(params, tx)
        return tx

    _emit(_run(_build()), as_json)


@app.command()
def redeem(
    ctx: typer.Context,
    vault_id: Annotated[str, typer.Argument(help="Vault object ID.")],
    metadata_id: Annotated[str, typer.Argument(help="Vault metadata object ID.")],
    output_coin: Annotated[str, typer.Argument(help="Output coin object ID to redeem.")],
    input_coin_type: Annotated[str, typer.Option("--input-type", help="Input coin type.")],
    output_coin_type: Annotated[str, typer.Option("--output-type", help="Output coin type.")],
    recipient: Annotated[
        str | None,
        typer.Option("--recipient", help="Transfer the redeemed coin to this address."),
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print raw transaction JSON.")] = False,
):
    """Build (but do not execute) a redeem transaction."""
    state = _state(ctx)
    params = RedeemParams(
        vault_id=vault_id,
        metadata_id=metadata_id,
        output_coin=output_coin,
        input_coin_type=input_coin_type,
        output_coin_type=output_coin_type,
    )

    async def _build() -> Transaction:
        client = await VaultClient.from_settings(state.settings, check_connection=False)
        tx = Transaction()
        if recipient:
            client.redeem_and_transfer(params, recipient, tx)
        else:
            client.redeem(params, tx)
        return tx

    _emit(_run(_build()), as_json)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
