"""CLI state shared by every command."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .coins import DEFAULT_REGISTRY, CoinRegistry
from .settings import VaultSettings


@dataclass
class AppState:
    """Loaded settings plus the objects derived from them.

    Stored on the typer context so commands avoid global state and stay testable.
    """

    settings: VaultSettings
    logger: logging.Logger
    registry: CoinRegistry = field(default=DEFAULT_REGISTRY)

    @classmethod
    def from_settings(cls, settings: VaultSettings, logger: logging.Logger) -> AppState:
        """Build state, extending the default coin registry with configured coins."""
        registry = DEFAULT_REGISTRY
        if settings.coin_registry:
            registry = CoinRegistry.from_mapping(settings.coin_registry_entries())
            logger.debug("Loaded %d coins from config", len(settings.coin_registry))
        return cls(settings=settings, logger=logger, registry=registry)
