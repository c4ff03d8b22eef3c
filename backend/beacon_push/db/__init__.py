from beacon_push.db.base import Base
from beacon_push.db.session import get_db, engine, SessionLocal
from beacon_push.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
