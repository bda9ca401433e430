from bson import ObjectId
from fastapi import HTTPException

from athletehub.db import USERS, collection
from athletehub.utils.dates import smart_parse_date


def new_id() -> str:
    return str(ObjectId())


def get_or_404(name: str, doc_id: str, label: str) -> dict:
    doc = collection(name).find_one({"_id": doc_id})
    if not doc:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return doc


def user_summary(user_id, *fields: str):
    """
    Expand a stored user id into ``{_id, name, ...fields}``. Unknown ids are
    returned unchanged so callers never lose the reference.
    """
    if not user_id:
        return user_id
    user = collection(USERS).find_one({"_id": user_id})
    if not user:
        return user_id
    out = {"_id": user["_id"], "name": user.get("name")}
    for f in fields:
        out[f] = user.get(f)
    return out


def parse_date_field(value, field: str, required: bool = False):
    """Parse a client date or raise 400; empty values pass through as None."""
    if value in (None, ""):
        if required:
            raise HTTPException(status_code=400, detail=f"{field} is required")
        return None
    parsed = smart_parse_date(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid {field}: {value!r}")
    return parsed
