"""
Orders: storefront checkouts and point-of-sale sales.

Every amount the client submits (line subtotals, shipping cost, total) is
recomputed here and the request is rejected when they disagree.
Inventory leaves stock when an order becomes SHIPPED/DELIVERED and comes back
when it leaves those states.
"""
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.config import logger
from core.database import get_db
from models.discounts import Discount
from models.orders import Order, OrderItem, OrderStatus, FULFILLED_STATUSES
from models.product import Product, ProductVariant
from models.shipping import ShippingOption
from models.user import User
from utils.pricing import (
    PricedLine,
    PricingError,
    discount_amount,
    discount_rejection,
    lines_subtotal,
    money_equal,
    order_total,
    unit_price,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])

_CUSTOMER_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
    "postalCode": "postal_code",
    "country": "country",
}

_STATUSES = {s.value for s in OrderStatus}


def _price_items(db: Session, items: List[Dict[str, Any]], check_stock: bool = False) -> List[PricedLine]:
    lines: List[PricedLine] = []
    for item in items:
        if not isinstance(item, dict):
            raise PricingError("Invalid item format")
        product_id = item.get("productId")
        variant_id = item.get("variantId") or None
        quantity = item.get("quantity")
        if not product_id or not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise PricingError("Invalid item format")

        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise PricingError(f"Product with ID {product_id} not found", 404)
        variant = None
        if variant_id:
            variant = next((v for v in product.variants if v.id == variant_id), None)
            if variant is None:
                raise PricingError(f"Variant with ID {variant_id} not found", 404)

        price = unit_price(product, variant)
        if check_stock:
            available = variant.inventory if variant is not None else product.inventory
            if available is None or available < quantity:
                label = f"variant {variant.name}" if variant is not None else f"product {product.title}"
                raise PricingError(f"Insufficient inventory for {label}. Available: {available}")

        lines.append(PricedLine(product_id, variant_id, quantity, price * quantity))
    return lines


def _existing_lines(order: Order) -> List[PricedLine]:
    return [PricedLine(i.product_id, i.variant_id, i.quantity, i.subtotal) for i in order.items]


def _shipping_cost(db: Session, option_id: Optional[str], provided) -> float:
    """Cost of the selected option; provided=None skips the comparison."""
    if option_id:
        option = db.query(ShippingOption).filter(ShippingOption.id == option_id).first()
        if not option or option.status != "ACTIVE":
            raise PricingError("Invalid or inactive shipping option")
        if provided is not None and not money_equal(provided, option.price):
            raise PricingError("Provided shipping cost does not match selected option")
        return float(option.price)
    if provided is not None and not money_equal(provided, 0):
        raise PricingError("Shipping cost provided without shipping option")
    return 0.0


def _load_discount(db: Session, discount_id: str, subtotal: float, validate: bool = True) -> Discount:
    discount = db.query(Discount).filter(Discount.id == discount_id).first()
    if not discount:
        raise PricingError("Invalid or inapplicable discount")
    if validate:
        reason = discount_rejection(discount, subtotal)
        if reason:
            raise PricingError(reason)
    return discount


def _price_order(
    db: Session,
    lines: List[PricedLine],
    shipping_option_id: Optional[str],
    provided_shipping,
    discount_id: Optional[str],
    validate_discount: bool = True,
) -> Tuple[float, float, Optional[Discount], float]:
    subtotal = lines_subtotal(lines)
    shipping = _shipping_cost(db, shipping_option_id, provided_shipping)
    discount = None
    off = 0.0
    if discount_id:
        discount = _load_discount(db, discount_id, subtotal, validate=validate_discount)
        off = discount_amount(discount, lines, subtotal, shipping)
    return subtotal, shipping, discount, order_total(subtotal, shipping, off)


def _move_stock(db: Session, lines: List[PricedLine], sign: int):
    """sign=-1 takes stock out, +1 puts it back. Variant moves resync the parent product."""
    resync = set()
    for line in lines:
        if line.variant_id:
            variant = db.query(ProductVariant).filter(ProductVariant.id == line.variant_id).one()
            variant.inventory = (variant.inventory or 0) + sign * line.quantity
            resync.add(line.product_id)
        else:
            product = db.query(Product).filter(Product.id == line.product_id).one()
            product.inventory = (product.inventory or 0) + sign * line.quantity
    db.flush()
    for product_id in resync:
        product = db.query(Product).filter(Product.id == product_id).one()
        product.inventory = sum(v.inventory or 0 for v in product.variants)


def _payment_reference_taken(db: Session, reference: str, order_id: Optional[str] = None) -> bool:
    q = db.query(Order.id).filter(Order.payment_reference == reference)
    if order_id:
        q = q.filter(Order.id != order_id)
    return q.first() is not None


def _order_items(lines: List[PricedLine]) -> List[OrderItem]:
    return [
        OrderItem(product_id=l.product_id, variant_id=l.variant_id, quantity=l.quantity, subtotal=l.subtotal)
        for l in lines
    ]


@router.get("")
async def list_orders(db: Session = Depends(get_db)):
    try:
        rows = db.query(Order).order_by(Order.created_at.desc()).all()
        return [o.to_dict() for o in rows]
    except Exception as ex:
        logger.exception(f"[orders.list] failed: {ex}")
        return JSONResponse({"error": "Failed to fetch orders"}, status_code=500)


@router.get("/{order_id}")
async def get_order(order_id: str, db: Session = Depends(get_db)):
    try:
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            return JSONResponse({"error": "Order not found"}, status_code=404)
        return order.to_dict()
    except Exception as ex:
        logger.exception(f"[orders.get] id={order_id} failed: {ex}")
        return JSONResponse({"error": "Failed to fetch order"}, status_code=500)


@router.post("")
async def create_order(payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    cashier_id = data.get("cashierId")
    is_admin_checkout = bool(cashier_id)
    deliver_now = is_admin_checkout and data.get("status") == OrderStatus.DELIVERED.value

    try:
        if not is_admin_checkout:
            if any(not data.get(key) for key in _CUSTOMER_FIELDS):
                return JSONResponse({"error": "Missing required order fields"}, status_code=400)
        else:
            cashier = db.query(User).filter(User.id == cashier_id).first()
            if not cashier or cashier.role != "CASHIER":
                return JSONResponse({"error": "Invalid cashier"}, status_code=400)

        items = data.get("items")
        if not items or not isinstance(items, list):
            return JSONResponse({"error": "Order must include at least one item"}, status_code=400)

        lines = _price_items(db, items, check_stock=deliver_now)
        if not money_equal(data.get("subtotal"), lines_subtotal(lines)):
            return JSONResponse({"error": "Provided subtotal does not match calculated subtotal"}, status_code=400)

        subtotal, shipping, discount, total = _price_order(
            db,
            lines,
            data.get("shippingOptionId"),
            data.get("shippingCost", 0),
            data.get("discountId"),
        )
        if not money_equal(data.get("total"), total):
            return JSONResponse({"error": "Provided total does not match calculated total"}, status_code=400)

        reference = data.get("paymentReference")
        if reference and _payment_reference_taken(db, reference):
            return JSONResponse({"error": "Payment reference already used"}, status_code=400)

        order = Order(
            cashier_id=cashier_id or None,
            status=OrderStatus.DELIVERED.value if deliver_now else OrderStatus.PENDING.value,
            subtotal=subtotal,
            shipping_option_id=data.get("shippingOptionId") or None,
            shipping_cost=shipping,
            total=total,
            discount_id=discount.id if discount else None,
            payment_reference=reference or None,
        )
        for key, attr in _CUSTOMER_FIELDS.items():
            setattr(order, attr, data.get(key))
        order.items = _order_items(lines)
        db.add(order)

        if deliver_now:
            _move_stock(db, lines, -1)
        if discount:
            discount.usage_count = (discount.usage_count or 0) + 1

        db.commit()
        db.refresh(order)
        logger.info(f"[orders.create] id={order.id} total={order.total} items={len(lines)} admin={is_admin_checkout}")
        return order.to_dict()
    except PricingError as ex:
        db.rollback()
        return JSONResponse({"error": ex.message}, status_code=ex.status_code)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[orders.create] failed: {ex}")
        return JSONResponse({"error": "Failed to create order"}, status_code=500)


@router.patch("/{order_id}")
async def update_order(order_id: str, payload: dict = Body(...), db: Session = Depends(get_db)):
    data = payload or {}
    if any(key in data and not data[key] for key in _CUSTOMER_FIELDS):
        return JSONResponse({"error": "Missing required fields"}, status_code=400)
    status = data.get("status")
    if status and status not in _STATUSES:
        return JSONResponse({"error": "Invalid status"}, status_code=400)

    try:
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            return JSONResponse({"error": "Order not found"}, status_code=404)

        old_lines = _existing_lines(order)
        items = data.get("items") or []
        lines = _price_items(db, items) if items else old_lines

        provided_subtotal = data.get("subtotal")
        if provided_subtotal is not None and not money_equal(provided_subtotal, lines_subtotal(lines)):
            return JSONResponse({"error": "Provided subtotal does not match calculated subtotal"}, status_code=400)

        shipping_option_id = data["shippingOptionId"] if "shippingOptionId" in data else order.shipping_option_id
        discount_id = data["discountId"] if "discountId" in data else order.discount_id
        discount_changed = discount_id != order.discount_id

        subtotal, shipping, discount, total = _price_order(
            db,
            lines,
            shipping_option_id,
            data.get("shippingCost"),
            discount_id,
            # A discount already on the order keeps applying after it expires or runs out
            validate_discount=discount_changed,
        )
        provided_total = data.get("total")
        if provided_total is not None and not money_equal(provided_total, total):
            return JSONResponse({"error": "Provided total does not match calculated total"}, status_code=400)

        reference = data.get("paymentReference")
        if reference and reference != order.payment_reference and _payment_reference_taken(db, reference, order.id):
            return JSONResponse({"error": "Payment reference already used"}, status_code=400)

        new_status = status or order.status
        was_fulfilled = order.status in FULFILLED_STATUSES
        now_fulfilled = new_status in FULFILLED_STATUSES
        if now_fulfilled and not was_fulfilled:
            _move_stock(db, lines, -1)
        elif was_fulfilled and not now_fulfilled:
            _move_stock(db, old_lines, +1)

        if items:
            order.items = _order_items(lines)
        if discount is not None and discount_changed:
            discount.usage_count = (discount.usage_count or 0) + 1

        for key, attr in _CUSTOMER_FIELDS.items():
            if key in data:
                setattr(order, attr, data[key])
        if "paymentReference" in data:
            order.payment_reference = reference or None
        order.status = new_status
        order.subtotal = subtotal
        order.shipping_option_id = shipping_option_id or None
        order.shipping_cost = shipping
        order.discount_id = discount_id or None
        order.total = total

        db.commit()
        db.refresh(order)
        logger.info(f"[orders.update] id={order.id} status={order.status} total={order.total}")
        return order.to_dict()
    except PricingError as ex:
        db.rollback()
        return JSONResponse({"error": ex.message}, status_code=ex.status_code)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[orders.update] id={order_id} failed: {ex}")
        return JSONResponse({"error": "Failed to update order"}, status_code=500)
