from athletehub.db import (
    ACTIVITY_LOGS, COMPETITIONS, CONNECTIONS, HEALTH_RECORDS, REFRESH_TOKENS, REVOKED_TOKENS,
    TEAMS, TRAININGS, USERS, collection,
)
from athletehub.utils.audit import ensure_audit_indexes


def ensure_indexes():
    # users / tokens
    collection(USERS).create_index("email", unique=True)
    collection(REFRESH_TOKENS).create_index("jti", unique=True)
    collection(REFRESH_TOKENS).create_index("exp")
    collection(REVOKED_TOKENS).create_index("jti", unique=True)

    # connection halves are listed per owner
    collection(CONNECTIONS).create_index([("owner", 1), ("status", 1)])

    # resources
    collection(TRAININGS).create_index([("athlete", 1), ("scheduled_date", -1)])
    collection(TRAININGS).create_index([("coach", 1), ("scheduled_date", -1)])
    collection(COMPETITIONS).create_index([("start_date", -1)])
    collection(COMPETITIONS).create_index("participants.athlete")
    collection(HEALTH_RECORDS).create_index([("athlete", 1), ("date", -1)])
    collection(TEAMS).create_index("managers")

    # activity / audit
    collection(ACTIVITY_LOGS).create_index([("user_id", 1), ("timestamp", -1)])
    ensure_audit_indexes()
