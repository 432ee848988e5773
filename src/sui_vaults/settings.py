"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_MAX_RETRY_TIME,
    DEFAULT_REQUEST_TIMEOUT,
    NETWORK_DEFAULTS,
    ZERO_PACKAGE_ID,
)
from .validators import is_valid_object_id_string, is_valid_url

load_dotenv()

CONFIG_TABLE = "sui_vaults"


class Network(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    DEVNET = "devnet"
    LOCALNET = "localnet"
    CUSTOM = "custom"


class CoinEntry(BaseModel):
    """Extra coin metadata declared in the config file."""

    symbol: str
    decimals: int = Field(default=9, ge=0, le=36)
    name: str | None = None
    icon_url: str | None = None
    is_stablecoin: bool = False
    coingecko_id: str | None = None

    model_config = ConfigDict(extra="ignore")


class VaultSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with SUI_VAULTS_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    network: Network = Network.TESTNET
    rpc_url: str | None = None
    package_id: str | None = None

    # --- RPC settings ---
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    max_retry_time: float = Field(default=DEFAULT_MAX_RETRY_TIME, ge=0)

    # --- logging ---
    debug: bool = False
    log_level: str = "INFO"

    # --- coins (from config file only) ---
    coin_registry: dict[str, CoinEntry] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_prefix="SUI_VAULTS_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("rpc_url")
    @classmethod
    def check_rpc_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not is_valid_url(v) or not v.startswith(("http://", "https://")):
            raise ValueError(f"rpc_url must be an http(s) URL, got {v!r}")
        return v

    @field_validator("package_id")
    @classmethod
    def check_package_id(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not is_valid_object_id_string(v):
            raise ValueError(
                f"package_id must be 0x followed by 64 hex characters, got {v!r}"
            )
        return v.lower()

    @model_validator(mode="after")
    def check_custom_network(self) -> "VaultSettings":
        """A custom network has no defaults, so both endpoints must be given."""
        if self.network is Network.CUSTOM and (
            self.rpc_url is None or self.package_id is None
        ):
            raise ValueError("custom network requires both rpc_url and package_id")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("SUI_VAULTS_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("sui-vaults.toml")
                    user_config = Path.home() / ".config" / "sui-vaults" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [sui_vaults]
                body = data.get(CONFIG_TABLE, data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict including resolved endpoints."""
        data = self.model_dump(mode="json")
        data["resolved_rpc_url"] = self.rpc_url_required
        data["resolved_package_id"] = self.package_id_required
        return data

    @property
    def network_defaults(self) -> dict[str, Any]:
        return dict(NETWORK_DEFAULTS.get(self.network.value, {}))

    @property
    def rpc_url_required(self) -> str:
        """Get rpc_url, falling back to the network default."""
        if self.rpc_url is not None:
            return self.rpc_url
        default = self.network_defaults.get("rpc_url")
        if not default:
            raise ValueError("rpc_url must be configured")
        return default

    @property
    def package_id_required(self) -> str:
        """Get package_id, falling back to the network default."""
        if self.package_id is not None:
            return self.package_id
        default = self.network_defaults.get("package_id")
        if not default:
            raise ValueError("package_id must be configured")
        return default

    @property
    def faucet_url(self) -> str | None:
        return self.network_defaults.get("faucet_url")

    @property
    def has_deployed_package(self) -> bool:
        """False when the network has no known deployment and none was configured."""
        return self.package_id_required != ZERO_PACKAGE_ID

    def coin_registry_entries(self) -> dict[str, dict[str, Any]]:
        return {
            coin_type: entry.model_dump(exclude_none=True)
            for coin_type, entry in self.coin_registry.items()
        }
