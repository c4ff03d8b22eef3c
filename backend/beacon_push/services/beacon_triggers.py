"""
Beacon activation triggers. Exactly one fan-out per activation:
  - created with active == true,
  - updated with before.active != true and after.active == true.
Anything else (already active, deactivation, unrelated edits) is a no-op.

A payload that cannot be read is treated as "nothing to notify": the stored beacon is the
source of truth and the next edit will trigger again if it qualifies.
"""
import logging
from typing import Any

from pydantic import ValidationError

from beacon_push.services.beacon_message import Beacon
from beacon_push.services.fanout import FanOutResult, FanOutSender

logger = logging.getLogger(__name__)


def parse_beacon(data: Any) -> Beacon | None:
    """Beacon from a change payload, or None if missing/malformed/ownerless."""
    if data is None:
        return None
    if isinstance(data, Beacon):
        beacon = data
    elif isinstance(data, dict):
        try:
            beacon = Beacon.model_validate(data)
        except ValidationError as e:
            logger.debug("Unreadable beacon payload: %s", e)
            return None
    else:
        logger.debug("Beacon payload is not a mapping: %r", type(data))
        return None
    if not beacon.owner_uid:
        logger.debug("Beacon payload has no ownerUid")
        return None
    return beacon


def _is_active(data: Any) -> bool:
    """Raw check so an unreadable 'before' still counts as not active."""
    if isinstance(data, Beacon):
        return data.is_active
    if isinstance(data, dict):
        return data.get("active") is True
    return False


def on_beacon_created(beacon_id: str, data: Any, sender: FanOutSender) -> FanOutResult | None:
    """Brand new beacon that starts active."""
    beacon = parse_beacon(data)
    if beacon is None or not beacon.is_active:
        logger.debug("Beacon %s created inactive or unreadable; nothing to notify", beacon_id)
        return None
    return sender.fan_out_for_beacon(beacon_id, beacon)


def on_beacon_updated(beacon_id: str, before: Any, after: Any, sender: FanOutSender) -> FanOutResult | None:
    """Existing beacon flipping inactive -> active."""
    beacon = parse_beacon(after)
    if beacon is None:
        logger.debug("Beacon %s update has unreadable 'after'; nothing to notify", beacon_id)
        return None
    if _is_active(before) or not beacon.is_active:
        return None
    return sender.fan_out_for_beacon(beacon_id, beacon)
