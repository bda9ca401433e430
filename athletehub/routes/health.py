from typing import Optional
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query

from athletehub.db import HEALTH_RECORDS, USERS, collection
from athletehub.auth import get_current_user
from athletehub.authz import require_role
from athletehub.schemas.resources import HealthRecordCreate, HealthRecordUpdate
from athletehub.utils.docs import get_or_404, new_id, parse_date_field, user_summary
from athletehub.utils.logger import log_activity

router = APIRouter(prefix="/health", tags=["health"])

_DATE_FIELDS = ("date", "estimated_recovery")


def _expand(record: dict) -> dict:
    return {
        **record,
        "athlete": user_summary(record.get("athlete")),
        "recorded_by": user_summary(record.get("recorded_by"), "role"),
    }


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_health_record(body: HealthRecordCreate, current_user: dict = Depends(require_role("medical", "coach"))):
    if not collection(USERS).find_one({"_id": body.athlete}):
        raise HTTPException(status_code=404, detail="Athlete not found")

    doc = body.model_dump()
    doc["date"] = parse_date_field(body.date, "date") or datetime.now(timezone.utc)
    doc["estimated_recovery"] = parse_date_field(body.estimated_recovery, "estimated_recovery")
    doc.update({"_id": new_id(), "recorded_by": current_user["_id"]})

    collection(HEALTH_RECORDS).insert_one(doc)
    log_activity(current_user["_id"], "create_health_record",
                 {"record_id": doc["_id"], "athlete": body.athlete, "record_type": body.record_type})
    return doc


@router.get("")
@router.get("/", include_in_schema=False)
def list_health_records(
    athlete: Optional[str] = Query(None),
    record_type: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
):
    q = {}
    if athlete:
        q["athlete"] = athlete
    if record_type:
        q["record_type"] = record_type
    # athletes only ever see their own records, whatever they asked for
    if current_user["role"] == "athlete":
        q["athlete"] = current_user["_id"]

    return [_expand(r) for r in collection(HEALTH_RECORDS).find(q).sort("date", -1)]


@router.get("/{record_id}")
def get_health_record(record_id: str, current_user: dict = Depends(get_current_user)):
    record = get_or_404(HEALTH_RECORDS, record_id, "Health record")
    if current_user["role"] == "athlete" and record.get("athlete") != current_user["_id"]:
        raise HTTPException(status_code=403, detail="Not authorized to view this health record")
    return _expand(record)


@router.put("/{record_id}")
def update_health_record(
    record_id: str,
    body: HealthRecordUpdate,
    current_user: dict = Depends(require_role("medical", "coach")),
):
    record = get_or_404(HEALTH_RECORDS, record_id, "Health record")
    if record.get("recorded_by") != current_user["_id"] and current_user["role"] != "medical":
        raise HTTPException(status_code=403, detail="Not authorized to update this health record")

    changes = body.model_dump(exclude_unset=True)
    for f in _DATE_FIELDS:
        if f in changes:
            changes[f] = parse_date_field(changes[f], f)
    if changes:
        collection(HEALTH_RECORDS).update_one({"_id": record_id}, {"$set": changes})
        log_activity(current_user["_id"], "update_health_record", {"record_id": record_id, "fields": sorted(changes)})

    return collection(HEALTH_RECORDS).find_one({"_id": record_id})


@router.delete("/{record_id}")
def delete_health_record(record_id: str, current_user: dict = Depends(require_role("medical"))):
    get_or_404(HEALTH_RECORDS, record_id, "Health record")
    collection(HEALTH_RECORDS).delete_one({"_id": record_id})
    log_activity(current_user["_id"], "delete_health_record", {"record_id": record_id})
    return {"message": "Health record removed"}
