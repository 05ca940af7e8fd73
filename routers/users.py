from datetime import datetime

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.auth import hash_password, role_guard
from core.config import logger
from core.database import get_db
from models.user import User, USER_ROLES

router = APIRouter(prefix="/api/settings/users", tags=["settings"])

_admin_only = [Depends(role_guard("ADMIN"))]
# Cashiers report their own activity too
_any_staff = [Depends(role_guard(*USER_ROLES))]


@router.get("", dependencies=_admin_only)
async def list_users(db: Session = Depends(get_db)):
    try:
        return [u.to_dict() for u in db.query(User).order_by(User.created_at.asc()).all()]
    except Exception as ex:
        logger.exception(f"[users.list] failed: {ex}")
        return JSONResponse({"error": "Failed to fetch users."}, status_code=500)


@router.post("", dependencies=_admin_only)
async def create_user(payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    name = data.get("name")
    email = data.get("email")
    password = data.get("password")
    if not name or not email or not password:
        return JSONResponse({"error": "Missing fields."}, status_code=400)
    role = data.get("role") or "CASHIER"
    if role not in USER_ROLES:
        return JSONResponse({"error": "Invalid role."}, status_code=400)
    try:
        user = User(
            name=name,
            email=email,
            password=hash_password(password),
            role=role,
            last_active=datetime.utcnow(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"[users.create] id={user.id} role={user.role}")
        return user.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[users.create] failed: {ex}")
        return JSONResponse({"error": "Failed to create user."}, status_code=500)


@router.post("/activity", dependencies=_any_staff)
async def touch_activity(payload: dict = Body(...), db: Session = Depends(get_db)):
    user_id = (payload or {}).get("userId")
    if not user_id:
        return JSONResponse({"error": "Missing userId"}, status_code=400)
    try:
        user = db.query(User).filter(User.id == user_id).one()
        user.last_active = datetime.utcnow()
        db.commit()
        db.refresh(user)
        return user.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[users.activity] id={user_id} failed: {ex}")
        return JSONResponse({"error": "Failed to update activity"}, status_code=500)


@router.patch("/{user_id}", dependencies=_admin_only)
async def update_user(user_id: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    """
    Present name/email/role are applied. The stored hash is only replaced
    when a non-empty password is sent.
    """
    data = payload or {}
    if "role" in data and data["role"] not in USER_ROLES:
        return JSONResponse({"error": "Invalid role."}, status_code=400)
    try:
        user = db.query(User).filter(User.id == user_id).one()
        for key in ("name", "email", "role"):
            if key in data:
                setattr(user, key, data[key])
        if data.get("password"):
            user.password = hash_password(data["password"])
        user.last_active = datetime.utcnow()
        db.commit()
        db.refresh(user)
        return user.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[users.update] id={user_id} failed: {ex}")
        return JSONResponse({"error": "Failed to update user."}, status_code=500)


@router.delete("/{user_id}", dependencies=_admin_only)
async def delete_user(user_id: str, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.id == user_id).one()
        db.delete(user)
        db.commit()
        return {"success": True}
    except Exception as ex:
        db.rollback()
        logger.exception(f"[users.delete] id={user_id} failed: {ex}")
        return JSONResponse({"error": "Failed to delete user."}, status_code=500)
