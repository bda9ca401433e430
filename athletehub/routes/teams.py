from datetime import datetime, timezone
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from athletehub.db import TEAMS, USERS, collection
from athletehub.auth import get_current_user
from athletehub.authz import require_role
from athletehub.schemas.resources import MembersUpdate, TeamCreate, TeamUpdate
from athletehub.utils.docs import get_or_404, new_id
from athletehub.utils.logger import log_activity
from athletehub.utils.uploads import read_image_upload, save_upload

router = APIRouter(prefix="/teams", tags=["teams"])

# which member list a non-manager role is looked up in
_MEMBER_LIST = {"coach": "coaches", "athlete": "athletes", "medical": "medical_staff"}


def _is_member(team: dict, user: dict) -> bool:
    field = _MEMBER_LIST.get(user["role"])
    return bool(field) and user["_id"] in (team.get(field) or [])


def _member_details(user_ids, *extra):
    users = {u["_id"]: u for u in collection(USERS).find({"_id": {"$in": list(user_ids or [])}})}
    out = []
    for uid in user_ids or []:
        u = users.get(uid)
        if not u:
            continue
        row = {"_id": u["_id"], "name": u.get("name"), "email": u.get("email"),
               "profile_picture": u.get("profile_picture", "")}
        for f in extra:
            row[f] = u.get(f)
        out.append(row)
    return out


def _managed_team_or_403(team_id: str, user: dict, verb: str) -> dict:
    team = get_or_404(TEAMS, team_id, "Team")
    if user["_id"] not in (team.get("managers") or []):
        raise HTTPException(status_code=403, detail=f"Not authorized to {verb} this team")
    return team


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_team(body: TeamCreate, current_user: dict = Depends(require_role("manager"))):
    doc = {
        "_id": new_id(),
        **body.model_dump(),
        "managers": [current_user["_id"]],
        "created_at": datetime.now(timezone.utc),
    }
    collection(TEAMS).insert_one(doc)
    log_activity(current_user["_id"], "create_team", {"team_id": doc["_id"], "name": body.name})
    return doc


@router.get("")
@router.get("/", include_in_schema=False)
def list_teams(current_user: dict = Depends(get_current_user)):
    teams = list(collection(TEAMS).find({}).sort("name", 1))
    if current_user["role"] == "manager":
        return teams
    return [t for t in teams if _is_member(t, current_user)]


@router.get("/{team_id}")
def get_team(team_id: str, current_user: dict = Depends(get_current_user)):
    team = get_or_404(TEAMS, team_id, "Team")
    if current_user["role"] != "manager" and not _is_member(team, current_user):
        raise HTTPException(status_code=403, detail="Not authorized to view this team")

    return {
        **team,
        "coaches": _member_details(team.get("coaches")),
        "athletes": _member_details(team.get("athletes"), "position"),
        "medical_staff": _member_details(team.get("medical_staff")),
        "managers": _member_details(team.get("managers")),
    }


@router.put("/{team_id}")
def update_team(team_id: str, body: TeamUpdate, current_user: dict = Depends(require_role("manager"))):
    _managed_team_or_403(team_id, current_user, "update")

    changes = body.model_dump(exclude_unset=True)
    if changes:
        collection(TEAMS).update_one({"_id": team_id}, {"$set": changes})
        log_activity(current_user["_id"], "update_team", {"team_id": team_id, "fields": sorted(changes)})
    return collection(TEAMS).find_one({"_id": team_id})


@router.post("/{team_id}/logo")
async def upload_logo(
    team_id: str,
    file: UploadFile = File(...),
    current_user: dict = Depends(require_role("manager")),
):
    _managed_team_or_403(team_id, current_user, "update")
    filename, content = await read_image_upload(file)
    path = save_upload("teams", filename, content)

    collection(TEAMS).update_one({"_id": team_id}, {"$set": {"logo": path}})
    log_activity(current_user["_id"], "upload_team_logo", {"team_id": team_id, "path": path})
    return {"logo": path}


@router.put("/{team_id}/members")
def update_members(team_id: str, body: MembersUpdate, current_user: dict = Depends(require_role("manager"))):
    team = _managed_team_or_403(team_id, current_user, "update")

    if not collection(USERS).find_one({"_id": body.user_id}):
        raise HTTPException(status_code=404, detail="User not found")

    if body.action == "add":
        if body.user_id in (team.get(body.role) or []):
            raise HTTPException(status_code=400, detail=f"User is already in the team as {body.role}")
        collection(TEAMS).update_one({"_id": team_id}, {"$addToSet": {body.role: body.user_id}})
    else:
        collection(TEAMS).update_one({"_id": team_id}, {"$pull": {body.role: body.user_id}})

    log_activity(current_user["_id"], f"team_member_{body.action}",
                 {"team_id": team_id, "role": body.role, "user_id": body.user_id})
    return collection(TEAMS).find_one({"_id": team_id})


@router.delete("/{team_id}")
def delete_team(team_id: str, current_user: dict = Depends(require_role("manager"))):
    _managed_team_or_403(team_id, current_user, "delete")
    collection(TEAMS).delete_one({"_id": team_id})
    log_activity(current_user["_id"], "delete_team", {"team_id": team_id})
    return {"message": "Team removed"}
