import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.config import logger
from core.database import get_db
from models.product import Product, ProductVariant

router = APIRouter(prefix="/api/products", tags=["products"])

# Request keys copied onto the row as-is on update
_PLAIN_FIELDS = {
    "title": "title",
    "description": "description",
    "price": "price",
    "inventory": "inventory",
    "category": "category",
    "subcategory": "subcategory",
    "tags": "tags",
    "barcode": "barcode",
}


def _num(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _validate_variants(variants: List[Dict[str, Any]]) -> Optional[str]:
    seen_skus = set()
    for v in variants:
        if not isinstance(v, dict) or not v.get("name"):
            return "Variant name is required"
        price = _num(v.get("price"))
        if price is None or price <= 0:
            return "Variant price must be greater than 0"
        inventory = _num(v.get("inventory"))
        if inventory is None or inventory < 0:
            return "Variant inventory is required"
        sku = v.get("sku")
        if sku:
            if sku in seen_skus:
                return "Duplicate SKUs are not allowed"
            seen_skus.add(sku)
    return None


def _build_variants(variants: List[Dict[str, Any]]) -> List[ProductVariant]:
    return [
        ProductVariant(
            name=v.get("name"),
            sku=v.get("sku") or None,
            price=v.get("price"),
            inventory=int(v.get("inventory") or 0),
        )
        for v in variants
    ]


def _unique_barcode(db: Session, wanted: Optional[str]) -> str:
    barcode = wanted or uuid.uuid4().hex[:6]
    while db.query(Product.id).filter(Product.barcode == barcode).first():
        barcode = uuid.uuid4().hex[:6]
    return barcode


def _resolve_code(db: Session, code: str) -> Tuple[Optional[Product], Optional[ProductVariant]]:
    """
    Resolve a scanned code. A product barcode always wins over a variant SKU;
    within each tier the first match is used.
    """
    product = db.query(Product).filter(Product.barcode == code).first()
    if product:
        return product, None
    variant = db.query(ProductVariant).filter(ProductVariant.sku == code).first()
    if not variant:
        return None, None
    owner = db.query(Product).filter(Product.id == variant.product_id).first()
    return owner, variant


@router.get("")
async def list_products(db: Session = Depends(get_db)):
    try:
        rows = db.query(Product).order_by(Product.created_at.desc()).all()
        return [p.to_dict() for p in rows]
    except Exception as ex:
        logger.exception(f"[products.list] failed: {ex}")
        return JSONResponse({"error": "Failed to fetch products"}, status_code=500)


@router.post("")
async def create_product(payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    if not data.get("title") or not data.get("description") or not data.get("category"):
        return JSONResponse({"error": "Missing required fields"}, status_code=400)

    variants = data.get("variants") or []
    if not isinstance(variants, list):
        return JSONResponse({"error": "Variants must be a list"}, status_code=400)
    has_variants = len(variants) > 0

    if has_variants:
        error = _validate_variants(variants)
        if error:
            return JSONResponse({"error": error}, status_code=400)
    else:
        price = _num(data.get("price"))
        if price is None or price <= 0:
            return JSONResponse({"error": "Price is required if no variants are provided"}, status_code=400)
        inventory = _num(data.get("inventory"))
        if inventory is None or inventory < 0:
            return JSONResponse({"error": "Inventory is required if no variants are provided"}, status_code=400)

    try:
        product = Product(
            title=data["title"],
            description=data["description"],
            category=data["category"],
            subcategory=data.get("subcategory"),
            tags=data.get("tags") or [],
            barcode=_unique_barcode(db, data.get("barcode")),
            image_url=data.get("imageUrl"),
            image_public_id=data.get("imagePublicId"),
        )
        if has_variants:
            product.variants = _build_variants(variants)
        else:
            product.price = data["price"]
            product.inventory = int(data["inventory"])
        db.add(product)
        db.commit()
        db.refresh(product)
        logger.info(f"[products.create] id={product.id} barcode={product.barcode} variants={len(product.variants)}")
        return JSONResponse(product.to_dict(), status_code=201)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[products.create] failed: {ex}")
        return JSONResponse({"error": "Error creating product"}, status_code=500)


@router.patch("")
async def update_barcode(payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    if not data.get("id") or not data.get("barcode"):
        return JSONResponse({"error": "Product ID and barcode are required"}, status_code=400)
    try:
        product = db.query(Product).filter(Product.id == data["id"]).one()
        product.barcode = data["barcode"]
        db.commit()
        db.refresh(product)
        return product.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[products.barcode] id={data.get('id')} failed: {ex}")
        return JSONResponse({"error": "Error updating barcode"}, status_code=500)


@router.get("/barcode/{code}")
async def lookup_by_code(code: str, db: Session = Depends(get_db)):
    try:
        product, variant = _resolve_code(db, code)
        if not product:
            return JSONResponse({"error": "Product not found"}, status_code=404)
        out = product.to_dict()
        if variant is not None:
            out["matchedVariant"] = variant.to_dict()
        return out
    except Exception as ex:
        logger.exception(f"[products.lookup] code={code} failed: {ex}")
        return JSONResponse({"error": "Failed to fetch product"}, status_code=500)


@router.get("/{product_id}")
async def get_product(product_id: str, db: Session = Depends(get_db)):
    try:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            return JSONResponse({"error": "Product not found"}, status_code=404)
        return product.to_dict()
    except Exception as ex:
        logger.exception(f"[products.get] id={product_id} failed: {ex}")
        return JSONResponse({"error": "Failed to fetch product"}, status_code=500)


@router.put("/{product_id}")
async def update_product(product_id: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    """Present fields overwrite; a present variants list replaces every existing variant."""
    data = payload or {}
    try:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            return JSONResponse({"error": "Product not found"}, status_code=404)

        for key, attr in _PLAIN_FIELDS.items():
            if key in data:
                setattr(product, attr, data[key])
        if data.get("imageUrl") is not None:
            product.image_url = data["imageUrl"]
        if data.get("imagePublicId") is not None:
            product.image_public_id = data["imagePublicId"]
        if data.get("variants") is not None:
            product.variants = _build_variants(data["variants"])

        db.commit()
        db.refresh(product)
        return product.to_dict()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[products.update] id={product_id} failed: {ex}")
        return JSONResponse({"error": "Failed to update product"}, status_code=500)


@router.delete("/{product_id}")
async def delete_product(product_id: str, db: Session = Depends(get_db)):
    try:
        product = db.query(Product).filter(Product.id == product_id).one()
        db.delete(product)
        db.commit()
        return {"message": "Product deleted"}
    except Exception as ex:
        db.rollback()
        logger.exception(f"[products.delete] id={product_id} failed: {ex}")
        return JSONResponse({"error": "Failed to delete product"}, status_code=500)
