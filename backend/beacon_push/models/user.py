"""Coarse user document (users/{uid}). Only the legacy single-token mirrors matter here.

expo_push_token: written by older app builds on login; still read when resolving tokens.
push_token: even older field name; only read by the token migration.
"""
from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from beacon_push.db.base import Base


class User(Base):
    __tablename__ = "users"

    uid = Column(String(128), primary_key=True)
    expo_push_token = Column(String(256), nullable=True)
    push_token = Column(String(256), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
