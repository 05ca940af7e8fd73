"""
Order pricing helpers
Server-side recomputation of line subtotals, discount amounts and totals.
Callers compare the results with what the client submitted.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional


class PricingError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class PricedLine:
    product_id: str
    variant_id: Optional[str]
    quantity: int
    subtotal: float


def money_equal(a, b) -> bool:
    try:
        return round(float(a), 2) == round(float(b), 2)
    except (TypeError, ValueError):
        return False


def unit_price(product, variant=None) -> float:
    price = variant.price if (variant is not None and variant.price is not None) else product.price
    if price is None:
        raise PricingError("No valid price found for product/variant")
    return float(price)


def discount_rejection(discount, subtotal: float, now: Optional[datetime] = None) -> Optional[str]:
    """Reason the discount cannot be used for this subtotal, or None."""
    now = now or datetime.utcnow()
    if (
        not discount.is_active
        or (discount.usage_limit and discount.usage_count >= discount.usage_limit)
        or now < discount.starts_at
        or (discount.ends_at and now > discount.ends_at)
    ):
        return "Invalid or inapplicable discount"
    if discount.min_subtotal and subtotal < discount.min_subtotal:
        return "Order subtotal below minimum for discount"
    return None


def discount_amount(discount, lines: Iterable[PricedLine], subtotal: float, shipping_cost: float) -> float:
    """
    Amount taken off the order. A discount scoped to products or variants only
    counts the lines it matches; an unscoped one uses the whole subtotal.
    """
    product_ids = {p.id for p in discount.products}
    variant_ids = {v.id for v in discount.variants}
    scoped = bool(product_ids or variant_ids)

    if scoped:
        base = sum(
            line.subtotal
            for line in lines
            if line.product_id in product_ids or (line.variant_id and line.variant_id in variant_ids)
        )
        if base == 0:
            raise PricingError("Discount not applicable to order items")
    else:
        base = subtotal

    if discount.type == "percentage":
        return (discount.value / 100.0) * base
    if discount.type == "fixed_amount":
        return min(discount.value, base)
    if discount.type == "free_shipping":
        return shipping_cost if base > 0 else 0.0
    return 0.0


def order_total(subtotal: float, shipping_cost: float, discount_off: float = 0.0) -> float:
    return max(0.0, subtotal + shipping_cost - discount_off)


def lines_subtotal(lines: List[PricedLine]) -> float:
    return sum(line.subtotal for line in lines)
