"""
Ticket store: expo_push_tickets rows. Created pending by the fan-out sender, resolved once
by the receipt job. Status updates filter on status='pending', so replays are no-ops.
None of these helpers commit; callers own the transaction.
"""
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from beacon_push.core.constants import TICKET_STATUS_ERROR, TICKET_STATUS_OK, TICKET_STATUS_PENDING
from beacon_push.models.push_ticket import PushTicket


def save_ticket(
    db: Session,
    ticket_id: str,
    *,
    subscriber_uid: str,
    friend_uid: str,
    beacon_id: str,
    token: str,
    now: datetime | None = None,
) -> PushTicket:
    """Insert a pending ticket. Expo ticket ids are unique per send; an existing row is returned untouched."""
    existing = db.get(PushTicket, ticket_id)
    if existing is not None:
        return existing
    now = now or datetime.now(timezone.utc)
    row = PushTicket(
        id=ticket_id,
        status=TICKET_STATUS_PENDING,
        subscriber_uid=subscriber_uid,
        friend_uid=friend_uid,
        beacon_id=beacon_id,
        token=token,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    return row


def list_pending_tickets(db: Session, *, created_after: datetime, limit: int) -> list[PushTicket]:
    """Pending tickets younger than the TTL cutoff, oldest first. Older pending rows are never polled again."""
    return (
        db.query(PushTicket)
        .filter(PushTicket.status == TICKET_STATUS_PENDING, PushTicket.created_at > created_after)
        .order_by(PushTicket.created_at.asc())
        .limit(limit)
        .all()
    )


def mark_ticket_ok(db: Session, ticket_id: str, *, now: datetime | None = None) -> bool:
    """pending -> ok. Returns False if the ticket was already resolved (or does not exist)."""
    n = (
        db.query(PushTicket)
        .filter(PushTicket.id == ticket_id, PushTicket.status == TICKET_STATUS_PENDING)
        .update(
            {"status": TICKET_STATUS_OK, "updated_at": now or datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    return n == 1


def mark_ticket_error(
    db: Session,
    ticket_id: str,
    *,
    message: str | None,
    details: Any,
    now: datetime | None = None,
) -> bool:
    """pending -> error with the gateway message/details. Returns False if already resolved."""
    n = (
        db.query(PushTicket)
        .filter(PushTicket.id == ticket_id, PushTicket.status == TICKET_STATUS_PENDING)
        .update(
            {
                "status": TICKET_STATUS_ERROR,
                "error": message,
                "details": details if isinstance(details, dict) else None,
                "updated_at": now or datetime.now(timezone.utc),
            },
            synchronize_session=False,
        )
    )
    return n == 1
