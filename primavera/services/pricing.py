# primavera/services/pricing.py

"""
Turns a cart into money: line prices, points discount, final total and points earned.
Prices are read from the catalog once and frozen onto the order lines.
"""

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from primavera.errors import ValidationError
from primavera.models import Customer, Product

CENT = Decimal("0.01")

# 10 points per EUR spent, 100 points = 1 EUR off
POINTS_PER_EUR = 10
POINTS_PER_EUR_DISCOUNT = 100


@dataclass
class PricedLine:
    product: Product
    quantity: int
    price_at_time: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price_at_time * self.quantity


@dataclass
class PricedOrder:
    lines: List[PricedLine] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    points_used: int = 0
    discount: Decimal = Decimal("0.00")
    total_price: Decimal = Decimal("0.00")
    points_earned: int = 0


def to_money(amount) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def points_discount(points: int) -> Decimal:
    return to_money(Decimal(points) / POINTS_PER_EUR_DISCOUNT)


def final_price(subtotal: Decimal, discount: Decimal) -> Decimal:
    # Never charge a negative amount
    return max(Decimal("0.00"), to_money(subtotal - discount))


def points_for(amount: Decimal) -> int:
    return int((amount * POINTS_PER_EUR).to_integral_value(rounding=ROUND_FLOOR))


def redeemable_points(requested: int, customer: Optional[Customer]) -> int:
    """Guests can't redeem; customers redeem at most what they hold."""
    if customer is None:
        return 0
    return max(0, min(requested, customer.points_balance))


def merge_lines(items: Iterable) -> Dict[int, int]:
    quantities: Dict[int, int] = {}
    for item in items:
        if item.quantity <= 0:
            raise ValidationError("Quantity must be positive")
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return quantities


def price_order(
    session: Session,
    items: Iterable,
    customer: Optional[Customer] = None,
    use_points: int = 0,
) -> PricedOrder:
    """
    Price a cart of (product_id, quantity) lines against the current menu.

    - Every product must exist and be available, or the whole cart is rejected
    - Redemption is capped at the customer's balance; guests redeem nothing
    - Points earned are computed on the discounted total; guests earn nothing
    """
    quantities = merge_lines(items)
    if not quantities:
        raise ValidationError("Order must contain at least one item")

    statement = select(Product).where(
        Product.id.in_(list(quantities)), Product.available == True  # noqa: E712
    )
    products = {p.id: p for p in session.exec(statement).all()}

    if len(products) != len(quantities):
        raise ValidationError("Some products are not available")

    priced = PricedOrder()
    for product_id, quantity in quantities.items():
        product = products[product_id]
        priced.lines.append(
            PricedLine(product=product, quantity=quantity, price_at_time=to_money(product.price))
        )

    priced.subtotal = to_money(sum((line.line_total for line in priced.lines), Decimal("0")))
    priced.points_used = redeemable_points(use_points, customer)
    priced.discount = points_discount(priced.points_used)
    priced.total_price = final_price(priced.subtotal, priced.discount)
    priced.points_earned = points_for(priced.total_price) if customer is not None else 0
    return priced
