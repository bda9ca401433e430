from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query

from athletehub.db import ACTIVITY_LOGS, COMPETITIONS, HEALTH_RECORDS, TEAMS, TRAININGS, collection, get_db
from athletehub.db.store import RecordStore
from athletehub.auth import get_current_user
from athletehub.services.connections import ConnectionGraph
from athletehub.utils.dates import ensure_aware_utc, smart_parse_date

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def humanize_time(dt):
    dt = ensure_aware_utc(dt)
    if not dt:
        return "just now"
    now = datetime.now(timezone.utc)
    diff = now - dt
    s = int(diff.total_seconds())
    if s < 60:
        return "just now"
    m = s // 60
    if m < 60:
        return f"{m} min ago"
    h = m // 60
    if h < 24:
        return f"{h} hr ago"
    d = h // 24
    return f"{d} d ago"


def weekly_activity(trainings, today: Optional[datetime] = None) -> dict:
    """Trainings scheduled in the last 7 days (today included), counted per weekday."""
    today = (ensure_aware_utc(today) or datetime.now(timezone.utc)).date()
    counts = [0] * 7
    for t in trainings:
        when = smart_parse_date(t.get("scheduled_date"))
        if when is None:
            continue
        day_diff = (today - when.date()).days
        if 0 <= day_diff < 7:
            # isoweekday: Mon=1..Sun=7 -> Sun=0..Sat=6
            counts[when.isoweekday() % 7] += 1
    return {"labels": WEEKDAYS, "counts": counts}


def _team_athletes(user: dict) -> list:
    """Athlete ids from every team the user manages or treats."""
    field = {"manager": "managers", "medical": "medical_staff"}.get(user["role"])
    if not field:
        return []
    ids = set()
    for team in collection(TEAMS).find({field: user["_id"]}):
        ids.update(team.get("athletes") or [])
    return sorted(ids)


def my_trainings(user: dict) -> list:
    """Ownership is always an exact id match on the training document."""
    if user["role"] == "athlete":
        q = {"athlete": user["_id"]}
    elif user["role"] == "coach":
        q = {"coach": user["_id"]}
    else:
        q = {"athlete": {"$in": _team_athletes(user)}}
    return list(collection(TRAININGS).find(q).sort("scheduled_date", -1))


def my_competitions(user: dict) -> list:
    q = {"$or": [{"participants.athlete": user["_id"]}, {"created_by": user["_id"]}]}
    return list(collection(COMPETITIONS).find(q).sort("start_date", -1))


def _health_query(user: dict) -> dict:
    if user["role"] == "athlete":
        return {"athlete": user["_id"]}
    if user["role"] in ("medical", "coach"):
        return {"recorded_by": user["_id"]}
    return {"athlete": {"$in": _team_athletes(user)}}


@router.get("")
@router.get("/", include_in_schema=False)
def dashboard(current_user: dict = Depends(get_current_user)):
    uid = current_user["_id"]

    trainings = my_trainings(current_user)
    competitions = my_competitions(current_user)

    graph = ConnectionGraph(RecordStore(get_db()))
    listing = graph.list_connections(uid)

    activity = list(collection(ACTIVITY_LOGS).find({"user_id": uid}).sort("timestamp", -1).limit(5))
    for log in activity:
        log["_id"] = str(log["_id"])
        log["friendly_time"] = humanize_time(log.get("timestamp"))

    return {
        "user": current_user,
        "training_count": len(trainings),
        "recent_trainings": trainings[:5],
        "competition_count": len(competitions),
        "recent_competitions": competitions[:5],
        "health_record_count": collection(HEALTH_RECORDS).count_documents(_health_query(current_user)),
        "team_count": collection(TEAMS).count_documents({"$or": [
            {"managers": uid}, {"coaches": uid}, {"athletes": uid}, {"medical_staff": uid},
        ]}),
        "pending_requests": sum(1 for _ in listing.incoming),
        "connection_count": sum(1 for _ in listing.approved),
        "weekly_activity": weekly_activity(trainings),
        "activity": activity,
    }


@router.get("/calendar")
def calendar(
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    mode: str = Query("trainings", pattern="^(trainings|competitions)$"),
    current_user: dict = Depends(get_current_user),
):
    """Events of one month grouped by day of month."""
    if mode == "trainings":
        events, date_field = my_trainings(current_user), "scheduled_date"
    else:
        events, date_field = my_competitions(current_user), "start_date"

    days = defaultdict(list)
    for e in events:
        when = smart_parse_date(e.get(date_field))
        if when is None or when.year != year or when.month != month:
            continue
        days[when.day].append(e)

    return {"year": year, "month": month, "mode": mode,
            "days": {str(d): days[d] for d in sorted(days)}}
