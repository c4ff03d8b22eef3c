"""
Token store reader: all Expo push tokens for a user, canonical rows plus legacy mirrors.

Effective set = ordered union of every source, exact-string dedupe, only Expo-format tokens.
Sources are strategies; dropping a legacy mirror later means removing it from DEFAULT_TOKEN_SOURCES.
"""
import logging
from typing import Protocol, Sequence

from sqlalchemy.orm import Session

from beacon_push.models.profile import Profile
from beacon_push.models.push_token import PushToken
from beacon_push.models.user import User
from beacon_push.services.expo import is_expo_push_token

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    """Somewhere a user's push token(s) may be stored."""

    name: str

    def tokens_for(self, db: Session, uid: str) -> list[str]:
        """Raw values for uid (may include blanks or junk; the reader filters)."""
        ...


class CanonicalTokenSource:
    """push_tokens: one row per installation (users/{uid}/pushTokens/*)."""

    name = "push_tokens"

    def tokens_for(self, db: Session, uid: str) -> list[str]:
        rows = (
            db.query(PushToken.token)
            .filter(PushToken.uid == uid)
            .order_by(PushToken.updated_at.desc(), PushToken.id.asc())
            .all()
        )
        return [r.token for r in rows]


class ProfileTokenSource:
    """Legacy mirror: Profiles/{uid}.expoPushToken."""

    name = "profiles.expo_push_token"

    def tokens_for(self, db: Session, uid: str) -> list[str]:
        row = db.get(Profile, uid)
        return [row.expo_push_token] if row is not None and row.expo_push_token else []


class UserDocTokenSource:
    """Legacy mirror: users/{uid}.expoPushToken."""

    name = "users.expo_push_token"

    def tokens_for(self, db: Session, uid: str) -> list[str]:
        row = db.get(User, uid)
        return [row.expo_push_token] if row is not None and row.expo_push_token else []


DEFAULT_TOKEN_SOURCES: tuple[TokenSource, ...] = (
    CanonicalTokenSource(),
    ProfileTokenSource(),
    UserDocTokenSource(),
)


def get_all_expo_tokens(
    db: Session,
    uid: str,
    sources: Sequence[TokenSource] = DEFAULT_TOKEN_SOURCES,
) -> list[str]:
    """
    Gather all unique Expo tokens for a user (canonical first, then legacy).
    Empty list means "cannot notify this user", not an error.
    """
    seen: dict[str, None] = {}
    for source in sources:
        for raw in source.tokens_for(db, uid):
            if not raw or not is_expo_push_token(raw):
                if raw:
                    logger.debug("Ignoring malformed push token from %s for %s", source.name, uid)
                continue
            seen.setdefault(raw, None)
    return list(seen)


def remove_token(db: Session, uid: str, token: str) -> int:
    """
    Delete the user's canonical rows whose token matches exactly. Does not commit.
    Legacy mirrors are left alone; they are overwritten by the app on next login.
    """
    n = (
        db.query(PushToken)
        .filter(PushToken.uid == uid, PushToken.token == token)
        .delete(synchronize_session=False)
    )
    if n:
        logger.info("Removed %s push token row(s) for %s", n, uid)
    return n
