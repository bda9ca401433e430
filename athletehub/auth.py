# athletehub/auth.py
from datetime import datetime, timedelta, timezone
import uuid
from typing import Optional
from fastapi import HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from athletehub import settings
from athletehub.db import REFRESH_TOKENS, REVOKED_TOKENS, USERS, collection

# --- crypto ------------------------------------------------------------------
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.JWT_ALG
REFRESH_TOKEN_COOKIE = settings.REFRESH_TOKEN_COOKIE

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


# --- password utils ----------------------------------------------------------
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# --- user lookup -------------------------------------------------------------
def get_user_by_id(user_id: str) -> Optional[dict]:
    return collection(USERS).find_one({"_id": user_id})

def get_user_by_email(email: str) -> Optional[dict]:
    return collection(USERS).find_one({"email": (email or "").strip().lower()})

def public_user(user: dict) -> dict:
    """User document without secrets, safe to return from an endpoint."""
    return {k: v for k, v in user.items() if k != "password"}


# --- JWT helpers -------------------------------------------------------------
def _now_utc() -> datetime:
    return datetime.now(timezone.utc)

def _create_jwt(sub: str, token_type: str, expires_delta: timedelta) -> str:
    iat = _now_utc()
    exp = iat + expires_delta
    payload = {
        "sub": sub,
        "type": token_type,
        "jti": str(uuid.uuid4()),
        "iat": int(iat.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)

def create_access_token(sub: str) -> str:
    return _create_jwt(sub, "access", timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MIN))

def create_refresh_token(sub: str) -> str:
    token = _create_jwt(sub, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    # persist jti for server-side control
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    collection(REFRESH_TOKENS).insert_one({
        "jti": payload["jti"],
        "sub": payload["sub"],
        "exp": payload["exp"],
        "revoked": False,
        "created_at": _now_utc(),
    })
    return token

def decode_token(raw: str) -> dict:
    try:
        return jwt.decode(raw, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

def is_revoked(jti: str) -> bool:
    return collection(REVOKED_TOKENS).find_one({"jti": jti}) is not None

def revoke_token(jti: str, sub: str, exp: int, reason: str = "logout") -> None:
    # upsert so double-logout is harmless
    collection(REVOKED_TOKENS).update_one(
        {"jti": jti},
        {"$set": {"jti": jti, "sub": sub, "exp": exp, "reason": reason}},
        upsert=True,
    )
    collection(REFRESH_TOKENS).update_one({"jti": jti}, {"$set": {"revoked": True}})


def token_from_request(request: Request) -> Optional[str]:
    """Bearer header first, then the 'token' cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return request.cookies.get("token")


# --- dependency used by your routes -----------------------------------------
def get_current_user(request: Request) -> dict:
    token = token_from_request(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing authentication token")

    payload = decode_token(token)

    if payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong token type")
    if is_revoked(payload["jti"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has been revoked")

    user = get_user_by_id(payload.get("sub"))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    current = {
        "_id": user["_id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role", "athlete"),
    }
    # picked up by AuditMiddleware
    request.state.actor = current
    return current


# --- simple auth helper for router ------------------------------------------
def authenticate_user(email: str, password: str) -> Optional[dict]:
    user = get_user_by_email(email)
    if not user or not user.get("password"):
        return None
    if not verify_password(password, user["password"]):
        return None
    return user
