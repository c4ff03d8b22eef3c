"""Expo push gateway: token format check and chunking here; client below just sends the request."""
import re
from typing import Iterator, Sequence, TypeVar

from beacon_push.services.expo.client import ExpoPushClient
from beacon_push.services.expo.config import ExpoConfig

T = TypeVar("T")

_UUID_TOKEN_RE = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)


def is_expo_push_token(token: object) -> bool:
    """Same predicate as expo-server-sdk: ExponentPushToken[...] / ExpoPushToken[...] or a bare UUID."""
    if not isinstance(token, str):
        return False
    if (token.startswith("ExponentPushToken[") or token.startswith("ExpoPushToken[")) and token.endswith("]"):
        return True
    return bool(_UUID_TOKEN_RE.match(token))


def chunk_items(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Split into consecutive lists of at most size items, preserving order."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


default_client = ExpoPushClient()

__all__ = ["ExpoConfig", "ExpoPushClient", "chunk_items", "default_client", "is_expo_push_token"]
