# primavera/services/loyalty.py

"""
Points ledger and loyalty tiers.

The stored points_balance is the source of truth for "how many points do I have".
Every change to it goes through record_points, which writes the matching
PointsTransaction in the same unit of work, so the ledger always sums to the balance.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from primavera.errors import CustomerNotFoundError, InsufficientPointsError, ValidationError
from primavera.models import Customer, PointsTransaction
from primavera.services.pagination import paginate
from primavera.services.pricing import POINTS_PER_EUR, POINTS_PER_EUR_DISCOUNT
from primavera.utils.db import atomic

logger = logging.getLogger(__name__)

# (name, minimum balance, benefits), lowest tier first
TIERS = [
    ("Bronze", 0, ["Earn 10 points per €1 spent"]),
    ("Silver", 500, ["Earn 10 points per €1 spent", "Free delivery on orders over €15"]),
    (
        "Gold",
        1500,
        ["Earn 10 points per €1 spent", "Free delivery on all orders", "Priority order preparation"],
    ),
    (
        "Platinum",
        5000,
        [
            "Earn 15 points per €1 spent",
            "Free delivery on all orders",
            "Priority order preparation",
            "Exclusive menu items",
        ],
    ),
]


def calculate_tier(points: int) -> str:
    name = TIERS[0][0]
    for tier_name, minimum, _ in TIERS:
        if points >= minimum:
            name = tier_name
    return name


def points_to_next_tier(points: int) -> Optional[int]:
    for _, minimum, _ in TIERS:
        if points < minimum:
            return minimum - points
    # Already at the top tier
    return None


def program_info() -> dict:
    return {
        "points_per_eur": POINTS_PER_EUR,
        "points_per_eur_discount": POINTS_PER_EUR_DISCOUNT,
        "tiers": [
            {"name": name, "min_points": minimum, "benefits": benefits}
            for name, minimum, benefits in TIERS
        ],
    }


def balance_summary(customer: Customer) -> dict:
    return {
        "points_balance": customer.points_balance,
        "tier": calculate_tier(customer.points_balance),
        "points_to_next_tier": points_to_next_tier(customer.points_balance),
    }


def record_points(
    session: Session,
    customer_id: int,
    amount: int,
    reason: str,
    order_id: Optional[int] = None,
) -> PointsTransaction:
    """
    Move a customer's balance by `amount` and append the ledger entry.

    Debits are a conditional UPDATE (balance >= debit), so two checkouts racing
    on the same balance can't both spend it. Must run inside atomic().
    """
    # Pending ORM rows must reach the database before the raw UPDATE
    session.flush()

    statement = (
        update(Customer)
        .where(Customer.id == customer_id)
        .values(points_balance=Customer.points_balance + amount)
    )
    if amount < 0:
        statement = statement.where(Customer.points_balance >= -amount)

    result = session.connection().execute(statement)
    if result.rowcount == 0:
        if session.get(Customer, customer_id) is None:
            raise CustomerNotFoundError(customer_id)
        raise InsufficientPointsError(customer_id, -amount)

    # Pick up the new balance in the identity map
    session.get(Customer, customer_id, populate_existing=True)

    entry = PointsTransaction(
        customer_id=customer_id,
        amount=amount,
        reason=reason,
        order_id=order_id,
    )
    session.add(entry)
    session.flush()
    logger.info("Points %+d for customer %s (%s)", amount, customer_id, reason)
    return entry


def adjust_points(session: Session, customer_id: int, amount: int, reason: str) -> Customer:
    """Manual adjustment from the back-office."""
    if amount == 0:
        raise ValidationError("Adjustment amount must not be zero")
    if not reason.strip():
        raise ValidationError("A reason is required for points adjustments")

    customer = session.get(Customer, customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)
    if customer.points_balance + amount < 0:
        raise ValidationError(
            f"Adjustment would leave a negative balance ({customer.points_balance} points available)"
        )

    with atomic(session):
        record_points(session, customer_id, amount, reason.strip())

    session.refresh(customer)
    return customer


def history(
    session: Session, customer: Customer, limit: int = 20, cursor: Optional[int] = None
) -> Tuple[List[PointsTransaction], Optional[int]]:
    statement = select(PointsTransaction).where(PointsTransaction.customer_id == customer.id)
    return paginate(session, statement, PointsTransaction, cursor, limit)
