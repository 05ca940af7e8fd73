from fastapi import APIRouter, Request, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.auth import verify_password, issue_access_token
from core.config import logger
from core.database import get_db
from models.user import User
from utils.rate_limit import client_ip, check_login_rate_limit

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _check_credentials(db: Session, payload: dict):
    """The user for a matching email/password pair, else None. Never says which part was wrong."""
    email = (payload or {}).get("email")
    password = (payload or {}).get("password")
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password):
        return None
    return user


def _invalid_credentials() -> JSONResponse:
    return JSONResponse({"success": False, "message": "Invalid credentials"}, status_code=401)


def _rate_limited(request: Request):
    ip = client_ip(request)
    allowed, error_msg = check_login_rate_limit(ip)
    if not allowed:
        logger.warning(f"[auth.login] rate limited ip={ip}")
        return JSONResponse({"success": False, "message": error_msg}, status_code=429)
    return None


@router.post("")
async def login(request: Request, payload: dict = Body(...), db: Session = Depends(get_db)):
    limited = _rate_limited(request)
    if limited is not None:
        return limited
    try:
        user = _check_credentials(db, payload)
        if not user:
            return _invalid_credentials()
        return {"success": True, "user": user.to_dict()}
    except Exception as ex:
        logger.exception(f"[auth.login] failed: {ex}")
        return JSONResponse({"success": False, "message": "Internal server error"}, status_code=500)


@router.post("/token")
async def login_token(request: Request, payload: dict = Body(...), db: Session = Depends(get_db)):
    """Same credential check as login, plus a signed bearer token for role-protected endpoints."""
    limited = _rate_limited(request)
    if limited is not None:
        return limited
    try:
        user = _check_credentials(db, payload)
        if not user:
            return _invalid_credentials()
        token = issue_access_token(user)
        if not token:
            return JSONResponse({"success": False, "message": "Token signing is not configured"}, status_code=503)
        return {"success": True, "user": user.to_dict(), "token": token}
    except Exception as ex:
        logger.exception(f"[auth.token] failed: {ex}")
        return JSONResponse({"success": False, "message": "Internal server error"}, status_code=500)
