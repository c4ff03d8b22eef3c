"""Expo push API client: lowest level, sends request only. Token validation lives in the package __init__."""
from typing import Any

import httpx

from beacon_push.core.errors import PushGatewayError
from beacon_push.services.expo.config import ExpoConfig
from beacon_push.services.expo.types import ExpoPushMessage, ExpoPushReceipt, ExpoPushTicket


class ExpoPushClient:
    """Expo send and receipts client."""

    def __init__(self, config: ExpoConfig | None = None, *, transport: httpx.BaseTransport | None = None) -> None:
        self._config = config or ExpoConfig()
        self._transport = transport

    def _post(self, path: str, json_body: Any) -> Any:
        url = f"{self._config.base_url}{path}"
        try:
            with httpx.Client(timeout=self._config.timeout, transport=self._transport) as c:
                r = c.post(url, json=json_body, headers=self._config.headers())
        except httpx.HTTPError as e:
            raise PushGatewayError(f"Expo request to {path} failed: {e}") from e
        if not r.is_success:
            raise PushGatewayError(
                f"Expo API error: {r.status_code}",
                status_code=r.status_code,
                detail=(r.text[:500] if r.text else None),
            )
        try:
            payload = r.json() if r.content else {}
        except ValueError as e:
            raise PushGatewayError(f"Expo returned non-JSON body for {path}", detail=r.text[:500]) from e
        if not isinstance(payload, dict):
            raise PushGatewayError(f"Expo returned unexpected body for {path}", detail=payload)
        # Request-level failure (e.g. too many messages, bad auth): no per-message data
        if payload.get("errors") and payload.get("data") is None:
            raise PushGatewayError("Expo rejected request", status_code=r.status_code, detail=payload["errors"])
        return payload.get("data")

    def send_push_notifications(self, messages: list[ExpoPushMessage]) -> list[ExpoPushTicket]:
        """
        Send one batch (caller chunks to <= 100). Returns tickets index-aligned with messages.
        Raises PushGatewayError if the request failed or the ticket list cannot be aligned.
        """
        if not messages:
            return []
        data = self._post("/push/send", list(messages))
        if not isinstance(data, list):
            raise PushGatewayError("Expo send response has no ticket list", detail=data)
        if len(data) != len(messages):
            raise PushGatewayError(
                f"Expo returned {len(data)} tickets for {len(messages)} messages",
                detail=data,
            )
        return data

    def get_push_receipts(self, ticket_ids: list[str]) -> dict[str, ExpoPushReceipt]:
        """Fetch receipts for up to 300 ticket ids. Ids without a receipt yet are simply absent."""
        if not ticket_ids:
            return {}
        data = self._post("/push/getReceipts", {"ids": list(ticket_ids)})
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise PushGatewayError("Expo receipts response is not a mapping", detail=data)
        return data
