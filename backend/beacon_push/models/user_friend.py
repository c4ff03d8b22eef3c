"""Legacy friend edge with the old per-friend notify toggle.

Mirrors users/{user_uid}/friends/{friend_uid}. The opt-in model moved to friend_subscriptions
without a backfill, so notify=True here must still be honored.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from beacon_push.db.base import Base


class UserFriend(Base):
    __tablename__ = "user_friends"
    __table_args__ = (UniqueConstraint("user_uid", "friend_uid", name="uq_user_friends_user_friend"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_uid = Column(String(128), nullable=False, index=True)
    friend_uid = Column(String(128), nullable=False)
    notify = Column(Boolean, nullable=False, default=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
