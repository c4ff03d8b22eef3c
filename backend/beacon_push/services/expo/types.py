"""
Typed definitions for Expo push API payloads.

POST /push/send takes a list of messages and returns {"data": [ticket, ...]} in the same order.
POST /push/getReceipts takes {"ids": [...]} and returns {"data": {ticket_id: receipt}}.
A receipt is only present once Expo has handed the message to APNs/FCM; missing ids are not errors.
"""

from typing import Any, TypedDict


class ExpoPushMessage(TypedDict, total=False):
    """One outbound message. We always send one token per message so tickets map 1:1."""
    to: str
    title: str
    body: str
    data: dict[str, Any]
    sound: str
    priority: str  # default | normal | high
    channelId: str
    badge: int
    ttl: int


class ExpoErrorDetails(TypedDict, total=False):
    """details on an error ticket/receipt; error is the code (e.g. DeviceNotRegistered)."""
    error: str
    expoPushToken: str


class ExpoPushTicket(TypedDict, total=False):
    """
    Per-message result of /push/send.
    status "ok" carries id (exchange it for a receipt later); status "error" has no id.
    """
    status: str  # ok | error
    id: str
    message: str
    details: ExpoErrorDetails


class ExpoPushReceipt(TypedDict, total=False):
    """Delivery verdict from /push/getReceipts."""
    status: str  # ok | error
    message: str
    details: ExpoErrorDetails
