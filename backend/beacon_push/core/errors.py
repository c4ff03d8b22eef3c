"""
Centralized error handling for push gateway failures.
Exception types plus a small rule table so services stay thin and new gateway codes are easy to add.
"""
from __future__ import annotations

from typing import Any, Callable

from beacon_push.core.constants import EXPO_ERROR_DEVICE_NOT_REGISTERED


class PushGatewayError(Exception):
    """
    Raised by the Expo client when a whole request failed: transport error, non-2xx status,
    request-level "errors" in the body, or a body that cannot be mapped back to the request.
    Per-message rejections are NOT raised; they come back as error tickets/receipts.
    """

    def __init__(self, message: str, *, status_code: int | None = None, detail: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


# ---------------------------------------------------------------------------
# Error rules: (predicate on details.error code, reason)
# Add new rules here instead of scattering checks in the reconciler.
# ---------------------------------------------------------------------------

def _is_device_not_registered(code: str) -> bool:
    return code == EXPO_ERROR_DEVICE_NOT_REGISTERED


# Codes meaning the device registration is permanently gone: prune the token. First match wins.
PERMANENT_TOKEN_ERROR_RULES: list[tuple[Callable[[str], bool], str]] = [
    (_is_device_not_registered, "device unregistered"),
]


def permanent_token_error_reason(code: str | None) -> str | None:
    """Return why a token must be pruned for this receipt error code, or None if it should be kept."""
    if not code:
        return None
    for predicate, reason in PERMANENT_TOKEN_ERROR_RULES:
        if predicate(code):
            return reason
    return None


def is_permanent_token_error(code: str | None) -> bool:
    return permanent_token_error_reason(code) is not None


def receipt_error_code(details: Any) -> str | None:
    """Expo puts the machine-readable code under details.error (details may be missing or not a dict)."""
    if isinstance(details, dict):
        code = details.get("error")
        if code:
            return str(code)
    return None
