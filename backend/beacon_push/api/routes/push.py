"""Push registration: one canonical token row per (user, app installation)."""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from beacon_push.db.session import get_db
from beacon_push.models.push_token import PushToken
from beacon_push.services.expo import is_expo_push_token

router = APIRouter()
logger = logging.getLogger(__name__)


class RegisterPushBody(BaseModel):
    uid: str = Field(..., min_length=1, max_length=128)
    installation_id: str = Field(..., min_length=1, max_length=128, description="Stable per-install id from the app")
    token: str = Field(..., min_length=1, max_length=256, description="Expo push token, e.g. ExponentPushToken[...]")
    platform: str = Field(default="unknown", pattern="^(ios|android|web|unknown)$")


@router.post("/push/register")
def register_push_token(body: RegisterPushBody, db: Session = Depends(get_db)):
    """
    Register a device for beacon pushes. Call from the app after getExpoPushTokenAsync on login.
    Idempotent: the (uid, installation_id) row is upserted (token/platform/updated_at refreshed).
    """
    token_str = body.token.strip()
    if not is_expo_push_token(token_str):
        raise HTTPException(status_code=422, detail="Not an Expo push token")
    existing = (
        db.query(PushToken)
        .filter(PushToken.uid == body.uid, PushToken.installation_id == body.installation_id)
        .first()
    )
    if existing:
        existing.token = token_str
        existing.platform = body.platform
        existing.updated_at = datetime.now(timezone.utc)
        db.commit()
        return {"ok": True, "message": "Token updated"}
    db.add(PushToken(uid=body.uid, installation_id=body.installation_id, token=token_str, platform=body.platform))
    db.commit()
    logger.info("Registered push token for uid=%s platform=%s", body.uid, body.platform)
    return {"ok": True, "message": "Token registered"}
