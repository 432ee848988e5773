from __future__ import annotations

from .formatter import (
    format_quote_table,
    format_transaction_panel,
    format_vault_dashboard,
)

__all__ = [
    "format_quote_table",
    "format_transaction_panel",
    "format_vault_dashboard",
]
