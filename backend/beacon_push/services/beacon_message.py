"""Beacon change payload and the push content derived from it (no I/O)."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from beacon_push.core.constants import (
    BEACON_PUSH_TYPE,
    GENERIC_BEACON_BODY,
    GENERIC_BEACON_TITLE,
)


class Beacon(BaseModel):
    """
    Beacon document as delivered by a change event. Owned by the app; read-only here.
    Accepts the app's camelCase keys (ownerUid, allowedUids, ...) as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    owner_uid: str = Field("", alias="ownerUid")
    owner_name: Any = Field(None, alias="ownerName")
    message: Any = None
    details: Any = None
    # Kept raw: only a literal true counts as active (no "true"/1 coercion)
    active: Any = None
    allowed_uids: list[Any] | None = Field(None, alias="allowedUids")

    @property
    def is_active(self) -> bool:
        return self.active is True


def _text(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


def beacon_title(beacon: Beacon) -> str:
    name = (_text(beacon.owner_name) or "").strip()
    return f"{name} lit a beacon" if name else GENERIC_BEACON_TITLE


def beacon_body(beacon: Beacon) -> str:
    return _text(beacon.message) or _text(beacon.details) or GENERIC_BEACON_BODY


def beacon_push_data(beacon_id: str, owner_uid: str) -> dict[str, str]:
    """Routing data the app reads when the notification is opened."""
    return {"type": BEACON_PUSH_TYPE, "beaconId": beacon_id, "ownerUid": owner_uid}
