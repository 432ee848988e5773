"""Rich console dashboards for vaults, quotes and built transactions."""

from __future__ import annotations

from rich.console import Console, Group
from rich.columns import Columns
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..coins import DEFAULT_REGISTRY, CoinRegistry
from ..domain import ExchangeQuote, Vault, VaultMetadata
from ..formatters import format_address, format_coin_amount
from ..transactions.transaction import MoveCall, Transaction


def _format_rate(rate: int, rate_decimals: int) -> str:
    """Render a fixed-point rate as a plain decimal string."""
    if rate_decimals == 0:
        return str(rate)
    whole, frac = divmod(rate, 10**rate_decimals)
    frac_str = str(frac).rjust(rate_decimals, "0").rstrip("0")
    return f"{whole}.{frac_str}" if frac_str else str(whole)


def _coin_label(coin_type: str | None, registry: CoinRegistry) -> str:
    if not coin_type:
        return "[dim]unknown[/]"
    return registry.symbol(coin_type)


def format_vault_dashboard(
    vault: Vault,
    metadata: VaultMetadata | None = None,
    *,
    network: str | None = None,
    registry: CoinRegistry = DEFAULT_REGISTRY,
    console: Console | None = None,
) -> None:
    """Print a two-column vault dashboard to stdout.

    Args:
        vault: Parsed vault object
        metadata: Optional vault metadata (name, symbol, icon)
        network: Network name shown in the info panel
        registry: Coin metadata used for symbols and decimals
        console: Console to print to, defaults to a new stdout console
    """
    console = console or Console()

    info_table = Table(show_header=False, box=None, padding=(0, 1))
    info_table.add_column("Key", style="dim")
    info_table.add_column("Value", style="cyan")
    info_table.add_row("Vault", format_address(vault.id))
    if network:
        info_table.add_row("Network", network)
    if metadata is not None:
        info_table.add_row("Name", metadata.name)
        info_table.add_row("Symbol", metadata.symbol)
        if metadata.icon_url:
            info_table.add_row("Icon", metadata.icon_url)
    info_table.add_row("Version", vault.object_ref.version)

    info_panel = Panel(info_table, title="[bold]Vault Info[/]", border_style="blue")

    input_symbol = _coin_label(vault.input_coin_type, registry)
    output_symbol = _coin_label(vault.output_coin_type, registry)

    rate_table = Table(show_header=False, box=None, padding=(0, 1))
    rate_table.add_column("Key", style="dim")
    rate_table.add_column("Value", style="green")
    rate_table.add_row(
        "Rate",
        f"1 {input_symbol} = {_format_rate(vault.rate, vault.rate_decimals)} {output_symbol}",
    )
    rate_table.add_row("Rate (raw)", f"{vault.rate:,} / 10^{vault.rate_decimals}")
    reserve = (
        format_coin_amount(
            vault.reserve_value,
            vault.input_coin_type,
            show_symbol=True,
            registry=registry,
        )
        if vault.input_coin_type
        else f"{vault.reserve_value:,}"
    )
    rate_table.add_row("Reserve", reserve)

    rate_panel = Panel(rate_table, title="[bold]Exchange[/]", border_style="green")

    types_table = Table(expand=True, show_lines=False)
    types_table.add_column("Side", style="cyan", no_wrap=True)
    types_table.add_column("Coin Type", style="dim", overflow="fold")
    types_table.add_row("Input", vault.input_coin_type or "unknown")
    types_table.add_row("Output", vault.output_coin_type or "unknown")

    outer_panel = Panel(
        Group(
            Columns([info_panel, rate_panel], equal=True, expand=True),
            "",
            Panel(types_table, title="[bold]Coin Types[/]", border_style="cyan"),
        ),
        title="[bold white]Sui Vault[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()


def format_quote_table(
    quote: ExchangeQuote,
    vault: Vault,
    *,
    registry: CoinRegistry = DEFAULT_REGISTRY,
    console: Console | None = None,
) -> None:
    """Print an exchange quote.

    For a mint the input is denominated in the vault's input coin; for a
    redeem the roles are swapped.
    """
    console = console or Console()

    if quote.direction == "mint":
        from_type, to_type = vault.input_coin_type, vault.output_coin_type
    else:
        from_type, to_type = vault.output_coin_type, vault.input_coin_type

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="yellow")
    table.add_row("Direction", quote.direction)
    table.add_row(
        "You provide",
        f"{quote.input_amount:,} ({_coin_label(from_type, registry)})",
    )
    table.add_row(
        "You receive",
        f"{quote.output_amount:,} ({_coin_label(to_type, registry)})",
    )
    table.add_row("Rate", _format_rate(quote.rate, quote.rate_decimals))
    table.add_row("Price impact", f"{quote.price_impact}%")

    console.print(Panel(table, title="[bold]Exchange Quote[/]", border_style="yellow"))


def format_transaction_panel(tx: Transaction, *, console: Console | None = None) -> None:
    """Print the pending commands of a built transaction and its JSON form."""
    console = console or Console()

    table = Table(expand=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Command", style="cyan")
    table.add_column("Type Args", style="dim", overflow="fold")
    for index, command in enumerate(tx.commands):
        if isinstance(command, MoveCall):
            table.add_row(
                str(index),
                f"{format_address(command.package)}::{command.module}::{command.function}",
                ", ".join(command.type_arguments),
            )
        else:
            table.add_row(str(index), "TransferObjects", "")

    console.print(
        Panel(
            Group(table, "", Syntax(tx.to_json(), "json", word_wrap=True)),
            title=f"[bold]Transaction ({len(tx)} commands, {len(tx.inputs)} inputs)[/]",
            border_style="dim",
        )
    )
