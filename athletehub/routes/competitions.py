from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException

from athletehub.db import COMPETITIONS, TEAMS, collection
from athletehub.auth import get_current_user
from athletehub.authz import require_role
from athletehub.schemas.resources import CompetitionCreate, CompetitionUpdate, ResultsUpdate
from athletehub.utils.docs import get_or_404, new_id, parse_date_field, user_summary
from athletehub.utils.logger import log_activity

router = APIRouter(prefix="/competitions", tags=["competitions"])


def _expand(comp: dict) -> dict:
    out = dict(comp)
    if comp.get("team"):
        team = collection(TEAMS).find_one({"_id": comp["team"]})
        if team:
            out["team"] = {"_id": team["_id"], "name": team.get("name")}
    out["created_by"] = user_summary(comp.get("created_by"))
    out["participants"] = [
        {**p, "athlete": user_summary(p.get("athlete"))} for p in comp.get("participants") or []
    ]
    return out


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_competition(body: CompetitionCreate, current_user: dict = Depends(require_role("coach", "manager"))):
    doc = {
        "_id": new_id(),
        "name": body.name,
        "location": body.location,
        "start_date": parse_date_field(body.start_date, "start_date", required=True),
        "end_date": parse_date_field(body.end_date, "end_date"),
        "type": body.type,
        "participants": [p.model_dump() for p in body.participants],
        "team": body.team,
        "created_by": current_user["_id"],
        "created_at": datetime.now(timezone.utc),
    }
    collection(COMPETITIONS).insert_one(doc)
    log_activity(current_user["_id"], "create_competition", {"competition_id": doc["_id"]})
    return doc


@router.get("")
@router.get("/", include_in_schema=False)
def list_competitions(current_user: dict = Depends(get_current_user)):
    return [_expand(c) for c in collection(COMPETITIONS).find({}).sort("start_date", -1)]


@router.get("/{competition_id}")
def get_competition(competition_id: str, current_user: dict = Depends(get_current_user)):
    return _expand(get_or_404(COMPETITIONS, competition_id, "Competition"))


@router.put("/{competition_id}")
def update_competition(
    competition_id: str,
    body: CompetitionUpdate,
    current_user: dict = Depends(require_role("coach", "manager")),
):
    comp = get_or_404(COMPETITIONS, competition_id, "Competition")
    if comp.get("created_by") != current_user["_id"] and current_user["role"] != "manager":
        raise HTTPException(status_code=403, detail="Not authorized to update this competition")

    changes = body.model_dump(exclude_unset=True)
    if "start_date" in changes:
        changes["start_date"] = parse_date_field(changes["start_date"], "start_date", required=True)
    if "end_date" in changes:
        changes["end_date"] = parse_date_field(changes["end_date"], "end_date")
    if changes:
        collection(COMPETITIONS).update_one({"_id": competition_id}, {"$set": changes})
        log_activity(current_user["_id"], "update_competition", {"competition_id": competition_id})

    return collection(COMPETITIONS).find_one({"_id": competition_id})


@router.put("/{competition_id}/results")
def record_results(
    competition_id: str,
    body: ResultsUpdate,
    current_user: dict = Depends(require_role("coach")),
):
    comp = get_or_404(COMPETITIONS, competition_id, "Competition")
    participants = list(comp.get("participants") or [])

    entry = {"athlete": body.athlete_id, "results": body.results, "position": body.position, "notes": body.notes}
    for i, p in enumerate(participants):
        if p.get("athlete") == body.athlete_id:
            participants[i] = {**p, **entry}
            break
    else:
        participants.append(entry)

    collection(COMPETITIONS).update_one({"_id": competition_id}, {"$set": {"participants": participants}})
    log_activity(current_user["_id"], "record_results", {"competition_id": competition_id, "athlete": body.athlete_id})
    return collection(COMPETITIONS).find_one({"_id": competition_id})


@router.delete("/{competition_id}")
def delete_competition(competition_id: str, current_user: dict = Depends(require_role("manager"))):
    get_or_404(COMPETITIONS, competition_id, "Competition")
    collection(COMPETITIONS).delete_one({"_id": competition_id})
    log_activity(current_user["_id"], "delete_competition", {"competition_id": competition_id})
    return {"message": "Competition removed"}
