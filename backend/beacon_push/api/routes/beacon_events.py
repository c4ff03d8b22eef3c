"""
Beacon change-event webhooks. The app's document store (or a relay) calls these on every
beacon create/update; we decide here whether the change is an activation worth a push.

Malformed beacon data is never an HTTP error: the response just says fanned_out=false,
so the caller does not retry something that cannot succeed.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from beacon_push.core.push_config import get_push_config
from beacon_push.db.session import SessionLocal
from beacon_push.services.beacon_triggers import on_beacon_created, on_beacon_updated
from beacon_push.services.expo import default_client
from beacon_push.services.fanout import FanOutResult, FanOutSender

router = APIRouter()
logger = logging.getLogger(__name__)


def get_fanout_sender() -> FanOutSender:
    return FanOutSender(SessionLocal, default_client, get_push_config())


class BeaconCreatedEvent(BaseModel):
    data: Any = None


class BeaconUpdatedEvent(BaseModel):
    before: Any = None
    after: Any = None


def _response(result: FanOutResult | None) -> dict[str, Any]:
    if result is None:
        return {"ok": True, "fanned_out": False}
    return {"ok": True, "fanned_out": True, **result.as_dict()}


@router.post("/events/beacons/{beacon_id}/created")
def beacon_created(
    beacon_id: str,
    event: BeaconCreatedEvent,
    sender: FanOutSender = Depends(get_fanout_sender),
) -> dict[str, Any]:
    """Fan out if the new beacon is already active."""
    return _response(on_beacon_created(beacon_id, event.data, sender))


@router.post("/events/beacons/{beacon_id}/updated")
def beacon_updated(
    beacon_id: str,
    event: BeaconUpdatedEvent,
    sender: FanOutSender = Depends(get_fanout_sender),
) -> dict[str, Any]:
    """Fan out only on inactive -> active."""
    return _response(on_beacon_updated(beacon_id, event.before, event.after, sender))
