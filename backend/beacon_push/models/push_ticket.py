"""Expo push ticket: one row per message the gateway accepted.

id is the Expo ticket id. status: pending -> ok | error, set once by the receipt job.
subscriber_uid received the push; friend_uid owns the beacon. On error, error holds the
gateway message and details its JSON details (details.error is the machine-readable code).
Rows older than the ticket TTL are no longer polled and stay pending.
"""
from sqlalchemy import JSON, Column, DateTime, Index, String, Text

from beacon_push.db.base import Base


class PushTicket(Base):
    __tablename__ = "expo_push_tickets"
    __table_args__ = (Index("ix_expo_push_tickets_status_created_at", "status", "created_at"),)

    id = Column(String(64), primary_key=True)
    status = Column(String(16), nullable=False, default="pending")
    subscriber_uid = Column(String(128), nullable=False, index=True)
    friend_uid = Column(String(128), nullable=False)
    beacon_id = Column(String(128), nullable=False, index=True)
    token = Column(String(256), nullable=False)
    error = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
