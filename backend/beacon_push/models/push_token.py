"""Canonical device push token: one row per (user, app installation).

Mirrors users/{uid}/pushTokens/{installationId} in the mobile app. A user may have many rows
(one per device). Rows are deleted by the receipt job when Expo reports DeviceNotRegistered.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from beacon_push.db.base import Base


class PushToken(Base):
    __tablename__ = "push_tokens"
    __table_args__ = (UniqueConstraint("uid", "installation_id", name="uq_push_tokens_uid_installation"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(128), nullable=False, index=True)
    installation_id = Column(String(128), nullable=False)
    token = Column(String(256), nullable=False, index=True)
    platform = Column(String(16), nullable=False, server_default="unknown")  # ios | android | web | unknown
    migrated = Column(Boolean, nullable=False, default=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
