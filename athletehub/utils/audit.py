# athletehub/utils/audit.py
from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from pymongo.errors import PyMongoError

from athletehub.db import AUDIT_EVENTS, collection

# actor fields copied from the authenticated user
_ACTOR_FIELDS = ("name", "role", "email")


def ensure_audit_indexes() -> None:
    events = collection(AUDIT_EVENTS)
    for field in ("ts", "action", "actor.user_id", "request.request_id"):
        events.create_index(field)


def write_audit_event(
    *,
    action: str,
    ok: bool,
    actor: Optional[dict] = None,
    err: Optional[str] = None,
    request_ctx: Optional[dict] = None,
) -> None:
    """
    Record a denied or failed request in ``audit_events``.

    Audit is best effort: a failed insert is logged and the request goes on.
    """
    actor = actor or {}
    event = {
        "ts": datetime.now(timezone.utc),
        "action": action,
        "ok": ok,
        "err": err,
        "actor": {"user_id": actor.get("_id"), **{f: actor.get(f) for f in _ACTOR_FIELDS}},
        "request": request_ctx or {},
    }
    try:
        collection(AUDIT_EVENTS).insert_one(event)
    except PyMongoError as e:
        logger.error(f"audit write failed for {action}: {e}")
