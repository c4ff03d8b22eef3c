"""Canonical opt-in: recipient wants pushes when owner lights a beacon.

One row per (recipient_uid, owner_uid); mirrors users/{recipient}/friendSubscriptions/{owner}.enabled.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from beacon_push.db.base import Base


class FriendSubscription(Base):
    __tablename__ = "friend_subscriptions"
    __table_args__ = (UniqueConstraint("recipient_uid", "owner_uid", name="uq_friend_subscriptions_recipient_owner"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_uid = Column(String(128), nullable=False, index=True)
    owner_uid = Column(String(128), nullable=False)
    enabled = Column(Boolean, nullable=False, default=False, server_default="false")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
