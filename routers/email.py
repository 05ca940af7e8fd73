from typing import Any, Dict, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.config import logger
from utils.emailing import render_email, send_email_smtp

router = APIRouter(prefix="/api/email", tags=["email"])


STATUS_MESSAGES = {
    "PENDING": "Your order is currently being processed.",
    "PROCESSING": "Great news! We're now preparing your order.",
    "SHIPPED": "Your order has been shipped and is on its way!",
    "DELIVERED": "Your order has been successfully delivered.",
    "CANCELLED": "Your order has been cancelled.",
}


class OrderEmailPayload(BaseModel):
    email: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    orderId: Optional[str] = None
    status: Optional[str] = None
    orderDetails: Optional[Dict[str, Any]] = None


def _email_totals(details: Dict[str, Any]) -> Dict[str, float]:
    subtotal = float(details.get("subtotal") or 0)
    shipping = float(details.get("shippingCost") or 0)
    discount = details.get("discount") or {}
    kind = str(discount.get("type") or "").lower()
    value = float(discount.get("value") or 0)
    off = 0.0
    if kind == "percentage":
        off = (value / 100.0) * subtotal
    elif kind == "fixed_amount":
        off = value
    elif kind == "free_shipping":
        off = shipping
    total = max(0.0, subtotal - off) + shipping
    return {"subtotal": subtotal, "discount_amount": off, "shipping_cost": shipping, "total": round(total)}


def _email_items(details: Dict[str, Any]):
    out = []
    for item in details.get("items") or []:
        product = item.get("product") or {}
        variant = item.get("variant") or {}
        out.append({
            "title": product.get("title") or "Item",
            "variant_name": variant.get("name"),
            "quantity": item.get("quantity") or 0,
            "subtotal": item.get("subtotal") or 0,
        })
    return out


@router.post("")
async def send_order_status_email(payload: OrderEmailPayload):
    if not (payload.email and payload.firstName and payload.lastName and payload.orderId and payload.status and payload.orderDetails):
        return JSONResponse({"error": "Missing required fields"}, status_code=400)
    try:
        status_message = STATUS_MESSAGES.get(payload.status) or f"Your order status has been updated to: {payload.status}"
        html = render_email(
            "order_status.html",
            first_name=payload.firstName,
            last_name=payload.lastName,
            order_id=payload.orderId,
            status=payload.status,
            status_message=status_message,
            items=_email_items(payload.orderDetails),
            **_email_totals(payload.orderDetails),
        )
        subject = f"Order #{payload.orderId} - {payload.status.title()}"
        if not send_email_smtp(payload.email, subject, html, text=status_message):
            return JSONResponse({"error": "Failed to send email"}, status_code=500)
        logger.info(f"[email.order] order={payload.orderId} status={payload.status} to={payload.email}")
        return {"success": True}
    except Exception as ex:
        logger.exception(f"[email.order] failed: {ex}")
        return JSONResponse({"error": "Failed to send email"}, status_code=500)
