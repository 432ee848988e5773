from __future__ import annotations

from .sui_rpc import SuiRpcClient, SuiRpcError

__all__ = ["SuiRpcClient", "SuiRpcError"]
