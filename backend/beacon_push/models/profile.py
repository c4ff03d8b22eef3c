"""Public profile document (Profiles/{uid}). Carries a legacy single-token mirror."""
from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from beacon_push.db.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    uid = Column(String(128), primary_key=True)
    display_name = Column(String(128), nullable=True)
    expo_push_token = Column(String(256), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
