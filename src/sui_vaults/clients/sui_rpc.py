"""Sui JSON-RPC client for the read queries the vault SDK needs.

This module provides a small blocking client over ``requests``. Callers in
async code run it through ``asyncio.to_thread``.
"""

from __future__ import annotations

import itertools
from typing import Any

import backoff
import requests

from ..logger import get_logger

logger = get_logger(__name__)

JSONRPC_VERSION = "2.0"


class SuiRpcError(Exception):
    """Raised when the node answers with a JSON-RPC error object."""

    def __init__(self, code: int | None, message: str, data: Any = None):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


def _is_permanent_http_error(error: Exception) -> bool:
    """Client errors other than 429 will not succeed on retry."""
    if not isinstance(error, requests.HTTPError) or error.response is None:
        return False
    status = error.response.status_code
    return 400 <= status < 500 and status != 429


class SuiRpcClient:
    """Client for a Sui fullnode's JSON-RPC endpoint.

    Provides:
    - Exponential backoff with full jitter on transport errors and 429/5xx
    - A per-request timeout
    - Typed helpers for the object, coin and dynamic-field queries
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        request_timeout: float = 30.0,
        max_retry_time: float = 30.0,
        session: requests.Session | None = None,
    ):
        """Initialize the RPC client.

        Args:
            rpc_url: Fullnode JSON-RPC URL
            request_timeout: HTTP request timeout in seconds
            max_retry_time: Total seconds to keep retrying a failing request
            session: Optional pre-configured requests session
        """
        self.rpc_url = rpc_url
        self._request_timeout = request_timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)
        self._post = backoff.on_exception(
            backoff.expo,
            requests.RequestException,
            max_time=max_retry_time,
            jitter=backoff.full_jitter,
            giveup=_is_permanent_http_error,
        )(self._post_once)

    def close(self) -> None:
        self._session.close()

    def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Issue a JSON-RPC request and return its ``result``.

        Raises:
            SuiRpcError: If the node returned an error object
            requests.RequestException: On transport failure after retries
        """
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC %s params=%s", method, payload["params"])
        body = self._post(payload)

        if not isinstance(body, dict):
            raise SuiRpcError(None, f"Unexpected response payload for {method}")
        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise SuiRpcError(
                    error.get("code"), str(error.get("message", "")), error.get("data")
                )
            raise SuiRpcError(None, str(error))
        return body.get("result")

    def _post_once(self, payload: dict[str, Any]) -> Any:
        response = self._session.post(
            self.rpc_url,
            json=payload,
            timeout=self._request_timeout,
        )
        response.raise_for_status()
        return response.json()

    # --- objects ---

    def get_object(
        self,
        object_id: str,
        *,
        show_content: bool = False,
        show_type: bool = False,
        show_owner: bool = False,
    ) -> dict[str, Any]:
        options = {
            "showContent": show_content,
            "showType": show_type,
            "showOwner": show_owner,
        }
        return self.call("sui_getObject", [object_id, options]) or {}

    def get_owned_objects(
        self,
        owner: str,
        *,
        struct_type: str | None = None,
        show_type: bool = False,
        show_content: bool = False,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {
            "options": {"showType": show_type, "showContent": show_content}
        }
        if struct_type:
            query["filter"] = {"StructType": struct_type}
        return self.call("suix_getOwnedObjects", [owner, query, cursor, limit]) or {}

    def get_dynamic_fields(
        self,
        parent_id: str,
        *,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        return self.call("suix_getDynamicFields", [parent_id, cursor, limit]) or {}

    # --- coins ---

    def get_balance(self, owner: str, coin_type: str) -> dict[str, Any]:
        return self.call("suix_getBalance", [owner, coin_type]) or {}

    def get_coins(
        self,
        owner: str,
        coin_type: str,
        *,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        return self.call("suix_getCoins", [owner, coin_type, cursor, limit]) or {}

    # --- system ---

    def get_latest_sui_system_state(self) -> dict[str, Any]:
        return self.call("suix_getLatestSuiSystemState") or {}
