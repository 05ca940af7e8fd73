from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.auth import role_guard
from core.config import logger
from core.database import get_db
from models.shipping import ShippingOption

router = APIRouter(
    prefix="/api/settings/shipping-options",
    tags=["settings"],
    dependencies=[Depends(role_guard("ADMIN"))],
)

_FIELDS = {
    "name": "name",
    "price": "price",
    "deliveryTime": "delivery_time",
    "status": "status",
}


@router.get("")
async def list_shipping_options(db: Session = Depends(get_db)):
    try:
        return [o.to_dict() for o in db.query(ShippingOption).all()]
    except Exception as ex:
        logger.exception(f"[shipping.list] failed: {ex}")
        return JSONResponse({"error": "Failed to fetch shipping options."}, status_code=500)


@router.post("")
async def create_shipping_option(payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    # price 0 is a valid free-shipping option
    if not data.get("name") or data.get("price") is None or not data.get("deliveryTime"):
        return JSONResponse({"error": "Missing fields."}, status_code=400)
    try:
        option = ShippingOption(
            name=data["name"],
            price=data["price"],
            delivery_time=data["deliveryTime"],
        )
        if data.get("status"):
            option.status = data["status"]
        db.add(option)
        db.commit()
        db.refresh(option)
        return option.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[shipping.create] failed: {ex}")
        return JSONResponse({"error": "Failed to create shipping option."}, status_code=500)


@router.patch("/{option_id}")
async def update_shipping_option(option_id: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    try:
        option = db.query(ShippingOption).filter(ShippingOption.id == option_id).one()
        for key, attr in _FIELDS.items():
            if key in data:
                setattr(option, attr, data[key])
        db.commit()
        db.refresh(option)
        return option.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[shipping.update] id={option_id} failed: {ex}")
        return JSONResponse({"error": "Failed to update shipping option."}, status_code=500)


@router.delete("/{option_id}")
async def delete_shipping_option(option_id: str, db: Session = Depends(get_db)):
    try:
        option = db.query(ShippingOption).filter(ShippingOption.id == option_id).one()
        db.delete(option)
        db.commit()
        return {"success": True}
    except Exception as ex:
        db.rollback()
        logger.exception(f"[shipping.delete] id={option_id} failed: {ex}")
        return JSONResponse({"error": "Failed to delete shipping option."}, status_code=500)
