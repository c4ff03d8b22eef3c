"""
One-off migration of legacy single-token fields into canonical push_tokens rows.

Candidates per user: users.expo_push_token, users.push_token, profiles.expo_push_token
(only strings that look like Expo tokens). Row key is (uid, installation_id) with
installation_id = base64(token) without padding, first 40 chars. Re-running updates in place.
"""
import base64
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from beacon_push.core.constants import UNKNOWN_PLATFORM
from beacon_push.models.profile import Profile
from beacon_push.models.push_token import PushToken
from beacon_push.models.user import User
from beacon_push.services.expo import is_expo_push_token

logger = logging.getLogger(__name__)


def installation_id_for_token(token: str) -> str:
    return base64.b64encode(token.encode("utf-8")).decode("ascii").rstrip("=")[:40]


def legacy_token_candidates(db: Session, user: User) -> list[str]:
    candidates = [user.expo_push_token, user.push_token]
    profile = db.get(Profile, user.uid)
    if profile is not None:
        candidates.append(profile.expo_push_token)
    unique: dict[str, None] = {}
    for token in candidates:
        if token and is_expo_push_token(token):
            unique.setdefault(token, None)
    return list(unique)


def migrate_legacy_tokens(db: Session) -> dict[str, int]:
    """Upsert canonical rows for every legacy token. Commits once at the end."""
    now = datetime.now(timezone.utc)
    users = 0
    created = 0
    updated = 0
    for user in db.query(User).order_by(User.uid).all():
        tokens = legacy_token_candidates(db, user)
        if not tokens:
            continue
        users += 1
        for token in tokens:
            installation_id = installation_id_for_token(token)
            row = (
                db.query(PushToken)
                .filter(PushToken.uid == user.uid, PushToken.installation_id == installation_id)
                .first()
            )
            if row is None:
                db.add(PushToken(
                    uid=user.uid,
                    installation_id=installation_id,
                    token=token,
                    platform=UNKNOWN_PLATFORM,
                    migrated=True,
                    updated_at=now,
                ))
                created += 1
            else:
                row.token = token
                row.migrated = True
                row.updated_at = now
                updated += 1
        db.flush()
    db.commit()
    logger.info("Push token migration: users=%s created=%s updated=%s", users, created, updated)
    return {"users": users, "created": created, "updated": updated}
