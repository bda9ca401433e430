from datetime import datetime, timezone
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from athletehub.db import USERS, collection
from athletehub.auth import get_current_user, get_password_hash, get_user_by_email, public_user
from athletehub.authz import require_role
from athletehub.schemas.resources import ProfileUpdate
from athletehub.utils.logger import log_activity
from athletehub.utils.uploads import read_image_upload, save_upload

router = APIRouter(prefix="/users", tags=["users"])


def _utcnow():
    return datetime.now(timezone.utc)


@router.get("")
@router.get("/", include_in_schema=False)
def list_users(current_user: dict = Depends(require_role("manager", "coach"))):
    return [public_user(u) for u in collection(USERS).find({}).sort("name", 1)]


@router.put("/profile")
def update_profile(body: ProfileUpdate, current_user: dict = Depends(get_current_user)):
    user = collection(USERS).find_one({"_id": current_user["_id"]})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    # blank values keep what is already stored
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v not in (None, "")}

    if "email" in changes:
        changes["email"] = changes["email"].strip().lower()
        other = get_user_by_email(changes["email"])
        if other and other["_id"] != user["_id"]:
            raise HTTPException(status_code=409, detail="Email already registered")
    if "password" in changes:
        changes["password"] = get_password_hash(changes["password"])

    if changes:
        changes["updated_at"] = _utcnow()
        collection(USERS).update_one({"_id": user["_id"]}, {"$set": changes})
        log_activity(user["_id"], "update_profile", {"fields": sorted(k for k in changes if k != "password")})

    return public_user(collection(USERS).find_one({"_id": user["_id"]}))


@router.post("/profile/picture")
async def upload_profile_picture(file: UploadFile = File(...), current_user: dict = Depends(get_current_user)):
    filename, content = await read_image_upload(file)
    path = save_upload("profiles", filename, content)

    collection(USERS).update_one(
        {"_id": current_user["_id"]},
        {"$set": {"profile_picture": path, "updated_at": _utcnow()}},
    )
    log_activity(current_user["_id"], "upload_profile_picture", {"path": path})
    return {"profile_picture": path}


@router.get("/{user_id}")
def get_user(user_id: str, current_user: dict = Depends(get_current_user)):
    user = collection(USERS).find_one({"_id": user_id})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return public_user(user)
