from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException

from athletehub.db import TRAININGS, USERS, collection
from athletehub.auth import get_current_user
from athletehub.authz import require_role
from athletehub.schemas.resources import TrainingComplete, TrainingCreate, TrainingUpdate
from athletehub.utils.docs import get_or_404, new_id, parse_date_field, user_summary
from athletehub.utils.logger import log_activity

router = APIRouter(prefix="/trainings", tags=["trainings"])


def _utcnow():
    return datetime.now(timezone.utc)


def _expand(training: dict) -> dict:
    return {
        **training,
        "athlete": user_summary(training.get("athlete")),
        "coach": user_summary(training.get("coach")),
    }


def _can_view(training: dict, user: dict) -> bool:
    if user["role"] == "athlete":
        return training.get("athlete") == user["_id"]
    if user["role"] == "coach":
        return training.get("coach") == user["_id"]
    return True


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_training(body: TrainingCreate, current_user: dict = Depends(require_role("coach"))):
    athlete = collection(USERS).find_one({"_id": body.athlete})
    if not athlete:
        raise HTTPException(status_code=404, detail="Athlete not found")

    doc = {
        "_id": new_id(),
        "title": body.title,
        "description": body.description,
        "athlete": body.athlete,
        "coach": current_user["_id"],
        "exercises": [e.model_dump() for e in body.exercises],
        "scheduled_date": parse_date_field(body.scheduled_date, "scheduled_date", required=True),
        "status": "scheduled",
        "completed_date": None,
        "feedback": "",
        "created_at": _utcnow(),
    }
    collection(TRAININGS).insert_one(doc)
    log_activity(current_user["_id"], "create_training", {"training_id": doc["_id"], "athlete": body.athlete})
    return doc


@router.get("")
@router.get("/", include_in_schema=False)
def list_trainings(current_user: dict = Depends(get_current_user)):
    q = {}
    # athletes see what was planned for them, coaches what they planned
    if current_user["role"] == "athlete":
        q["athlete"] = current_user["_id"]
    elif current_user["role"] == "coach":
        q["coach"] = current_user["_id"]

    records = collection(TRAININGS).find(q).sort("scheduled_date", -1)
    return [_expand(t) for t in records]


@router.get("/{training_id}")
def get_training(training_id: str, current_user: dict = Depends(get_current_user)):
    training = get_or_404(TRAININGS, training_id, "Training session")
    if not _can_view(training, current_user):
        raise HTTPException(status_code=403, detail="Not authorized to view this training")
    return _expand(training)


@router.put("/{training_id}")
def update_training(training_id: str, body: TrainingUpdate, current_user: dict = Depends(require_role("coach"))):
    training = get_or_404(TRAININGS, training_id, "Training session")
    if training.get("coach") != current_user["_id"]:
        raise HTTPException(status_code=403, detail="Not authorized to update this training")

    changes = body.model_dump(exclude_unset=True)
    if "scheduled_date" in changes:
        changes["scheduled_date"] = parse_date_field(changes["scheduled_date"], "scheduled_date", required=True)
    if changes:
        collection(TRAININGS).update_one({"_id": training_id}, {"$set": changes})
        log_activity(current_user["_id"], "update_training", {"training_id": training_id, "fields": sorted(changes)})

    return collection(TRAININGS).find_one({"_id": training_id})


@router.put("/{training_id}/complete")
def complete_training(
    training_id: str,
    body: TrainingComplete,
    current_user: dict = Depends(require_role("athlete")),
):
    training = get_or_404(TRAININGS, training_id, "Training session")
    if training.get("athlete") != current_user["_id"]:
        raise HTTPException(status_code=403, detail="Not authorized to complete this training")

    collection(TRAININGS).update_one(
        {"_id": training_id},
        {"$set": {"status": "completed", "completed_date": _utcnow(), "feedback": body.feedback}},
    )
    log_activity(current_user["_id"], "complete_training", {"training_id": training_id})
    return collection(TRAININGS).find_one({"_id": training_id})


@router.delete("/{training_id}")
def delete_training(training_id: str, current_user: dict = Depends(require_role("coach"))):
    training = get_or_404(TRAININGS, training_id, "Training session")
    if training.get("coach") != current_user["_id"]:
        raise HTTPException(status_code=403, detail="Not authorized to delete this training")

    collection(TRAININGS).delete_one({"_id": training_id})
    log_activity(current_user["_id"], "delete_training", {"training_id": training_id})
    return {"message": "Training session removed"}
