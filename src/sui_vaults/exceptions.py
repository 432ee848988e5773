"""Structured errors raised by the vault SDK."""

from __future__ import annotations

from enum import Enum
from typing import Any

import requests

from .clients.sui_rpc import SuiRpcError


class VaultErrorCode(str, Enum):
    # Parameter validation errors
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Balance and reserve errors (surfaced from chain state)
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_RESERVES = "INSUFFICIENT_RESERVES"

    TRANSACTION_FAILED = "TRANSACTION_FAILED"

    # Network errors
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    UNAUTHORIZED = "UNAUTHORIZED"

    # Arithmetic errors
    ARITHMETIC_OVERFLOW = "ARITHMETIC_OVERFLOW"
    DIVISION_BY_ZERO = "DIVISION_BY_ZERO"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RETRYABLE_CODES = frozenset(
    {
        VaultErrorCode.NETWORK_ERROR,
        VaultErrorCode.TIMEOUT,
        VaultErrorCode.RATE_LIMIT_EXCEEDED,
    }
)

_USER_MESSAGES: dict[VaultErrorCode, str] = {
    VaultErrorCode.INSUFFICIENT_BALANCE: "Insufficient balance to complete the transaction",
    VaultErrorCode.INSUFFICIENT_RESERVES: "Vault has insufficient reserves for this operation",
    VaultErrorCode.INVALID_PARAMETERS: "Invalid parameters provided",
    VaultErrorCode.NETWORK_ERROR: "Network error occurred. Please try again",
    VaultErrorCode.TIMEOUT: "Request timed out. Please try again",
    VaultErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests. Please slow down and retry",
    VaultErrorCode.UNAUTHORIZED: "Unauthorized operation",
    VaultErrorCode.ARITHMETIC_OVERFLOW: "Calculation overflow. Amount too large",
    VaultErrorCode.DIVISION_BY_ZERO: "Invalid calculation. Rate cannot be zero",
}

_HTTP_STATUS: dict[VaultErrorCode, int] = {
    VaultErrorCode.INVALID_PARAMETERS: 400,
    VaultErrorCode.VALIDATION_ERROR: 400,
    VaultErrorCode.UNAUTHORIZED: 401,
    VaultErrorCode.INSUFFICIENT_BALANCE: 402,
    VaultErrorCode.INSUFFICIENT_RESERVES: 402,
    VaultErrorCode.TIMEOUT: 408,
    VaultErrorCode.RATE_LIMIT_EXCEEDED: 429,
    VaultErrorCode.NETWORK_ERROR: 502,
}


class VaultError(Exception):
    """Single error type for every SDK failure.

    Callers branch on ``code`` rather than on the message text. ``details``
    carries optional context such as the wrapped original exception.
    """

    def __init__(
        self,
        code: VaultErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"VaultError(code={self.code.value!r}, message={self.message!r})"

    @property
    def is_retryable(self) -> bool:
        """Whether retrying the same request may succeed."""
        return self.code in RETRYABLE_CODES

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a JSON-friendly dict."""
        details: dict[str, Any] | None = None
        if self.details is not None:
            details = {
                key: repr(value) if isinstance(value, BaseException) else value
                for key, value in self.details.items()
            }
        return {
            "name": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "details": details,
        }

    def user_message(self) -> str:
        """Return a short message suitable for end users."""
        return _USER_MESSAGES.get(
            self.code, self.message or "An unknown error occurred"
        )

    def http_status(self) -> int:
        return _HTTP_STATUS.get(self.code, 500)

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        fallback_message: str = "Unknown error occurred",
    ) -> VaultError:
        """Wrap an arbitrary exception, passing VaultError through unchanged."""
        if isinstance(error, VaultError):
            return error
        message = str(error) or fallback_message
        return cls(
            VaultErrorCode.UNKNOWN_ERROR, message, {"original_error": error}
        )


def is_vault_error(error: object) -> bool:
    return isinstance(error, VaultError)


def wrap_query_error(error: BaseException, action: str) -> VaultError:
    """Map a failure from the chain-query path onto the error taxonomy.

    Args:
        error: The exception raised by the RPC client
        action: Short description used as the message prefix, e.g. "fetch vault"

    Returns:
        VaultError with the original exception stored under ``original_error``
    """
    if isinstance(error, VaultError):
        return error

    details = {"original_error": error}
    if isinstance(error, requests.Timeout):
        return VaultError(
            VaultErrorCode.TIMEOUT, f"Failed to {action}: request timed out", details
        )
    if isinstance(error, requests.HTTPError):
        response = error.response
        if response is not None and response.status_code == 429:
            return VaultError(
                VaultErrorCode.RATE_LIMIT_EXCEEDED,
                f"Failed to {action}: rate limited by RPC endpoint",
                details,
            )

    if isinstance(error, (requests.RequestException, SuiRpcError)):
        return VaultError(
            VaultErrorCode.NETWORK_ERROR, f"Failed to {action}: {error}", details
        )
    return VaultError(
        VaultErrorCode.UNKNOWN_ERROR, f"Failed to {action}: {error}", details
    )
