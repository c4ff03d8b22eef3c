"""
Eligibility resolver: who gets a push when owner lights a beacon.

eligible = { r in allowed_uids : r != owner and (subscription(r, owner) OR legacy_notify(r, owner)) }

allowed_uids is already audience-scoped upstream (e.g. a chosen friend group) and is trusted as given.
No audience means nobody: there is no "notify all friends" fallback.
"""
import logging
from typing import Any, Callable, Iterable, Protocol, Sequence

from sqlalchemy.orm import Session

from beacon_push.models.friend_subscription import FriendSubscription
from beacon_push.models.user_friend import UserFriend
from beacon_push.services.recipient_lookup import lookup_per_recipient

logger = logging.getLogger(__name__)


class PreferenceSource(Protocol):
    """A place where "recipient wants pushes from owner" may be recorded."""

    name: str

    def wants_notify(self, db: Session, recipient_uid: str, owner_uid: str) -> bool:
        ...


class SubscriptionPreferenceSource:
    """friend_subscriptions.enabled (users/{recipient}/friendSubscriptions/{owner})."""

    name = "friend_subscriptions"

    def wants_notify(self, db: Session, recipient_uid: str, owner_uid: str) -> bool:
        row = (
            db.query(FriendSubscription.enabled)
            .filter(FriendSubscription.recipient_uid == recipient_uid, FriendSubscription.owner_uid == owner_uid)
            .first()
        )
        return bool(row and row.enabled)


class LegacyFriendPreferenceSource:
    """user_friends.notify (users/{recipient}/friends/{owner}); pre-migration toggle."""

    name = "user_friends.notify"

    def wants_notify(self, db: Session, recipient_uid: str, owner_uid: str) -> bool:
        row = (
            db.query(UserFriend.notify)
            .filter(UserFriend.user_uid == recipient_uid, UserFriend.friend_uid == owner_uid)
            .first()
        )
        return bool(row and row.notify)


DEFAULT_PREFERENCE_SOURCES: tuple[PreferenceSource, ...] = (
    SubscriptionPreferenceSource(),
    LegacyFriendPreferenceSource(),
)


def audience_candidates(allowed_uids: Iterable[Any] | None, owner_uid: str) -> list[str]:
    """Dedupe allowed_uids (first occurrence wins), drop blanks, non-strings and the owner."""
    out: dict[str, None] = {}
    for uid in allowed_uids or []:
        if not isinstance(uid, str) or not uid or uid == owner_uid:
            continue
        out.setdefault(uid, None)
    return list(out)


def recipient_wants_notify(
    db: Session,
    recipient_uid: str,
    owner_uid: str,
    sources: Sequence[PreferenceSource] = DEFAULT_PREFERENCE_SOURCES,
) -> bool:
    """
    True if any source opts recipient in for owner. Every source is read; a failing read
    raises, so the caller skips the recipient rather than deciding on partial data.
    """
    answers = [source.wants_notify(db, recipient_uid, owner_uid) for source in sources]
    return any(answers)


def eligible_recipients(
    session_factory: Callable[[], Session],
    allowed_uids: Iterable[Any] | None,
    owner_uid: str,
    *,
    max_workers: int,
    sources: Sequence[PreferenceSource] = DEFAULT_PREFERENCE_SOURCES,
) -> list[str]:
    """
    intersection(allowed_uids, opted-in recipients), in audience order.
    Recipients whose preference read fails are skipped for this invocation.
    """
    candidates = audience_candidates(allowed_uids, owner_uid)
    if not candidates:
        return []
    wants = lookup_per_recipient(
        session_factory,
        candidates,
        lambda db, uid: recipient_wants_notify(db, uid, owner_uid, sources),
        max_workers=max_workers,
        what="Preference",
    )
    eligible = [uid for uid in candidates if wants.get(uid)]
    logger.debug("Owner %s: %s of %s audience member(s) opted in", owner_uid, len(eligible), len(candidates))
    return eligible
