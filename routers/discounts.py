from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.config import logger
from core.database import get_db
from models.discounts import Discount
from models.product import Product, ProductVariant
from utils.dates import parse_iso

router = APIRouter(prefix="/api/discounts", tags=["discounts"])

# Request keys copied onto the row as-is
_PLAIN_FIELDS = {
    "code": "code",
    "description": "description",
    "type": "type",
    "value": "value",
    "usageLimit": "usage_limit",
    "isActive": "is_active",
    "minSubtotal": "min_subtotal",
}


def _load_exact(db: Session, model, ids: Optional[List[str]]):
    """Rows for every id; an unknown id raises LookupError instead of being skipped."""
    if not ids:
        return []
    wanted = set(ids)
    rows = db.query(model).filter(model.id.in_(list(wanted))).all()
    if len(rows) != len(wanted):
        missing = wanted - {r.id for r in rows}
        raise LookupError(f"unknown {model.__tablename__} ids: {sorted(missing)}")
    return rows


def _load_products(db: Session, ids: Optional[List[str]]) -> List[Product]:
    return _load_exact(db, Product, ids)


def _load_variants(db: Session, ids: Optional[List[str]]) -> List[ProductVariant]:
    return _load_exact(db, ProductVariant, ids)


@router.get("")
async def list_discounts(db: Session = Depends(get_db)):
    try:
        rows = db.query(Discount).order_by(Discount.created_at.desc()).all()
        return [d.to_dict() for d in rows]
    except Exception as ex:
        logger.exception(f"[discounts.list] failed: {ex}")
        return JSONResponse({"error": "Failed to fetch discounts"}, status_code=500)


@router.post("")
async def create_discount(payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    if (
        not data.get("code")
        or not data.get("type")
        or not data.get("value")
        or not data.get("startsAt")
        or data.get("isActive") is None
    ):
        return JSONResponse({"error": "Missing required fields"}, status_code=400)
    try:
        discount = Discount(
            code=data["code"],
            description=data.get("description"),
            type=data["type"],
            value=data["value"],
            usage_limit=data.get("usageLimit"),
            usage_count=0,
            starts_at=parse_iso(data["startsAt"]),
            ends_at=parse_iso(data["endsAt"]) if data.get("endsAt") else None,
            is_active=bool(data["isActive"]),
            min_subtotal=data.get("minSubtotal"),
        )
        discount.products = _load_products(db, data.get("productIds"))
        discount.variants = _load_variants(db, data.get("variantIds"))
        db.add(discount)
        db.commit()
        db.refresh(discount)
        logger.info(f"[discounts.create] id={discount.id} code={discount.code}")
        return JSONResponse(discount.to_dict(), status_code=201)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[discounts.create] failed: {ex}")
        return JSONResponse({"error": "Failed to create discount"}, status_code=500)


@router.get("/{discount_id}")
async def get_discount(discount_id: str, db: Session = Depends(get_db)):
    try:
        discount = db.query(Discount).filter(Discount.id == discount_id).first()
        if not discount:
            return JSONResponse({"error": "Discount not found"}, status_code=404)
        return discount.to_dict()
    except Exception as ex:
        logger.exception(f"[discounts.get] failed: {ex}")
        return JSONResponse({"error": "Failed to fetch discount"}, status_code=500)


@router.patch("/{discount_id}")
async def update_discount(discount_id: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    """
    Partial update. productIds / variantIds, when present, replace the whole
    association set; an empty list clears it.
    """
    data = payload or {}
    try:
        # Unknown ids raise NoResultFound and end up as a 500 like any other failure
        discount = db.query(Discount).filter(Discount.id == discount_id).one()

        for key, attr in _PLAIN_FIELDS.items():
            if key in data:
                setattr(discount, attr, data[key])
        if "startsAt" in data:
            discount.starts_at = parse_iso(data["startsAt"])
        if data.get("endsAt"):
            discount.ends_at = parse_iso(data["endsAt"])

        if data.get("productIds") is not None:
            discount.products = _load_products(db, data["productIds"])
        if data.get("variantIds") is not None:
            discount.variants = _load_variants(db, data["variantIds"])

        db.commit()
        db.refresh(discount)
        return discount.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[discounts.update] id={discount_id} failed: {ex}")
        return JSONResponse({"error": "Failed to update discount"}, status_code=500)


@router.delete("/{discount_id}")
async def delete_discount(discount_id: str, db: Session = Depends(get_db)):
    try:
        discount = db.query(Discount).filter(Discount.id == discount_id).one()
        db.delete(discount)
        db.commit()
        return {"message": "Discount deleted"}
    except Exception as ex:
        db.rollback()
        logger.exception(f"[discounts.delete] id={discount_id} failed: {ex}")
        return JSONResponse({"error": "Failed to delete discount"}, status_code=500)
