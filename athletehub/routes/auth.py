# athletehub/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, Form, Request
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from datetime import datetime, timezone
from bson import ObjectId

from athletehub import settings
from athletehub.db import REFRESH_TOKENS, USERS, collection
from athletehub.auth import (
    authenticate_user,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_current_user,
    get_password_hash,
    get_user_by_email,
    get_user_by_id,
    public_user,
    revoke_token,
    token_from_request,
    REFRESH_TOKEN_COOKIE,
)
from athletehub.utils.logger import log_activity

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: dict, status_code: int = 200) -> JSONResponse:
    """Return tokens in JSON for the frontend, AND set cookies for auto-login."""
    sub = str(user["_id"])
    access_token = create_access_token(sub)
    refresh_token = create_refresh_token(sub)

    resp = JSONResponse({
        **public_user(user),
        "access_token": access_token,
        "token_type": "bearer",
        "refresh_token": refresh_token,
    }, status_code=status_code)
    resp.set_cookie(key="token", value=access_token, httponly=False, samesite="lax",
                    secure=settings.COOKIE_SECURE)
    resp.set_cookie(key=REFRESH_TOKEN_COOKIE, value=refresh_token, httponly=True, samesite="lax",
                    secure=settings.COOKIE_SECURE)
    return resp


# ---------- Register ----------
@router.post("/register", status_code=201)
def register(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    role: str = Form("athlete"),
):
    email = email.strip().lower()
    role = (role or "athlete").strip().lower()
    if role not in settings.ROLES:
        raise HTTPException(status_code=400, detail=f"Role must be one of: {', '.join(settings.ROLES)}")
    if get_user_by_email(email):
        raise HTTPException(status_code=409, detail="User already exists")

    doc = {
        "_id": str(ObjectId()),
        "name": name.strip(),
        "email": email,
        "password": get_password_hash(password),
        "role": role,
        "profile_picture": "",
        "created_at": datetime.now(timezone.utc),
    }
    collection(USERS).insert_one(doc)

    log_activity(user_id=doc["_id"], action="register", metadata={"email": email, "role": role})
    return _token_response({k: v for k, v in doc.items() if k != "created_at"}, status_code=201)


# ---------- Email/Password Login ----------
@router.post("/token")
def login(form_data: OAuth2PasswordRequestForm = Depends()):
    # OAuth2 form field is called "username"; it carries the email
    user = authenticate_user(form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    log_activity(user_id=user["_id"], action="login_password", metadata={})
    return _token_response({
        "_id": user["_id"], "name": user.get("name"), "email": user.get("email"), "role": user.get("role"),
    })


# ---------- Refresh ----------
@router.post("/refresh")
def refresh(request: Request, refresh_token: str = Form(None)):
    raw = refresh_token or request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not raw:
        raise HTTPException(status_code=401, detail="Missing refresh token")

    payload = decode_token(raw)
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Wrong token type")
    stored = collection(REFRESH_TOKENS).find_one({"jti": payload["jti"]})
    if not stored or stored.get("revoked"):
        raise HTTPException(status_code=401, detail="Refresh token has been revoked")

    user = get_user_by_id(payload["sub"])
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    # rotate: the old refresh token is single-use
    revoke_token(payload["jti"], payload["sub"], payload["exp"], reason="rotated")
    return _token_response({
        "_id": user["_id"], "name": user.get("name"), "email": user.get("email"), "role": user.get("role"),
    })


# ---------- Me ----------
@router.get("/me")
def me(current_user: dict = Depends(get_current_user)):
    user = get_user_by_id(current_user["_id"]) or current_user
    return public_user(user)


# ---------- Logout ----------
@router.post("/logout")
def logout(request: Request):
    for raw in (request.cookies.get(REFRESH_TOKEN_COOKIE), token_from_request(request)):
        if not raw:
            continue
        try:
            p = decode_token(raw)
        except HTTPException:
            # already expired or garbage; nothing to revoke
            continue
        revoke_token(p["jti"], p["sub"], p["exp"], reason="logout")
        log_activity(user_id=p["sub"], action="logout", metadata={"token_type": p.get("type")})

    response = JSONResponse({"message": "Logged Out"})
    response.delete_cookie("token")
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
    return response
