# athletehub/db/__init__.py
from pymongo import MongoClient

from athletehub import settings

_db = None


def get_db():
    """
    Shared database handle. The client is created on first use so importing
    the app never opens a connection.
    """
    global _db
    if _db is None:
        client = MongoClient(settings.MONGO_URI, serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS)
        _db = client[settings.MONGO_DB]
    return _db


def collection(name: str):
    return get_db()[name]


# --- Collections (one source of truth) ---
USERS = "users"
CONNECTIONS = "connections"
TRAININGS = "trainings"
COMPETITIONS = "competitions"
HEALTH_RECORDS = "health_records"
TEAMS = "teams"
ACTIVITY_LOGS = "activity_logs"
AUDIT_EVENTS = "audit_events"
REFRESH_TOKENS = "refresh_tokens"
REVOKED_TOKENS = "revoked_tokens"
