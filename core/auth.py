from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.config import (
    logger,
    AUTH_JWT_SECRET,
    AUTH_JWT_ISSUER,
    AUTH_JWT_TTL_HOURS,
    BCRYPT_ROUNDS,
    ENFORCE_ROLES,
)
from core.database import get_db
from models.user import User


# --- Passwords ---

def hash_password(raw: str) -> str:
    return bcrypt.hashpw((raw or "").encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(raw: str, hashed: Optional[str]) -> bool:
    if not raw or not hashed:
        return False
    try:
        return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
    except Exception as ex:
        logger.warning(f"verify_password failed: {ex}")
        return False


# --- Signed access tokens ---

def issue_access_token(user: User) -> Optional[str]:
    """HS256 token carrying the user's id and role. None when no secret is configured."""
    if not AUTH_JWT_SECRET:
        return None
    now = datetime.utcnow()
    payload = {
        "sub": user.id,
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=AUTH_JWT_TTL_HOURS)).timestamp()),
        "iss": AUTH_JWT_ISSUER,
    }
    return jwt.encode(payload, AUTH_JWT_SECRET, algorithm="HS256")


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def get_token_claims(request: Request) -> Optional[Dict[str, Any]]:
    token = _bearer_token(request)
    if not token or not AUTH_JWT_SECRET:
        return None
    try:
        return jwt.decode(token, AUTH_JWT_SECRET, algorithms=["HS256"], issuer=AUTH_JWT_ISSUER)
    except jwt.PyJWTError as ex:
        logger.warning(f"Token verification failed: {ex}")
        return None


def get_user_id_from_request(request: Request) -> Optional[str]:
    claims = get_token_claims(request)
    if not claims:
        return None
    return claims.get("sub") or None


# --- Role checks ---

def require_role(request: Request, db: Session, allowed_roles: Iterable[str]) -> Optional[JSONResponse]:
    """
    Returns None when the caller may proceed, otherwise the error response.
    The role is read from the database, not from the token claims, so a
    demoted user loses access before their token expires.
    """
    user_id = get_user_id_from_request(request)
    if not user_id:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)
    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.role not in set(allowed_roles):
        logger.warning(f"[auth.role] forbidden user={user_id} role={getattr(user, 'role', None)}")
        return JSONResponse({"error": "Forbidden"}, status_code=403)
    return None


class AccessDenied(Exception):
    """Raised from route dependencies; main.py renders the carried response."""

    def __init__(self, response: JSONResponse):
        super().__init__(response.status_code)
        self.response = response


def role_guard(*roles: str):
    """Router dependency enforcing require_role when ENFORCE_ROLES is on."""

    async def _guard(request: Request, db: Session = Depends(get_db)):
        if not ENFORCE_ROLES:
            return
        denied = require_role(request, db, roles)
        if denied is not None:
            raise AccessDenied(denied)

    return _guard
