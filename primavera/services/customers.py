# primavera/services/customers.py

"""
Back-office views of the customer base.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy import func, or_
from sqlmodel import Session, select

from primavera.errors import CustomerNotFoundError, ValidationError
from primavera.models import Customer, Order, OrderStatus, User, utcnow
from primavera.services.pagination import MAX_PAGE_SIZE
from primavera.services.pricing import to_money


class CustomerTotals(NamedTuple):
    customer: Customer
    total_spent: Decimal
    order_count: int


def _totals_by_customer(session: Session, customer_ids: List[int]) -> Dict[int, Tuple[Decimal, int]]:
    """Money spent (cancelled orders excluded) and number of orders, per customer."""
    if not customer_ids:
        return {}

    spent = dict(
        session.exec(
            select(Order.customer_id, func.sum(Order.total_price))
            .where(Order.customer_id.in_(customer_ids), Order.status != OrderStatus.CANCELLED)
            .group_by(Order.customer_id)
        ).all()
    )
    counts = dict(
        session.exec(
            select(Order.customer_id, func.count(Order.id))
            .where(Order.customer_id.in_(customer_ids))
            .group_by(Order.customer_id)
        ).all()
    )
    return {
        customer_id: (to_money(spent.get(customer_id) or 0), counts.get(customer_id, 0))
        for customer_id in customer_ids
    }


def list_customers(
    session: Session, search: Optional[str] = None, limit: int = 50, offset: int = 0
) -> Tuple[List[CustomerTotals], int]:
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise ValidationError("Offset must not be negative")

    statement = select(Customer).outerjoin(User, Customer.user_id == User.id)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        statement = statement.where(
            or_(
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                User.email.ilike(pattern),
            )
        )

    total = session.exec(select(func.count()).select_from(statement.subquery())).one()
    customers = session.exec(
        statement.order_by(Customer.created_at.desc(), Customer.id.desc()).offset(offset).limit(limit)
    ).all()

    totals = _totals_by_customer(session, [c.id for c in customers])
    return [CustomerTotals(c, *totals[c.id]) for c in customers], total


def get_customer(session: Session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if not customer:
        raise CustomerNotFoundError(customer_id)
    return customer


def customer_detail(session: Session, customer_id: int) -> Tuple[CustomerTotals, List[Order]]:
    customer = get_customer(session, customer_id)
    orders = session.exec(
        select(Order)
        .where(Order.customer_id == customer.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()
    total_spent, order_count = _totals_by_customer(session, [customer.id])[customer.id]
    return CustomerTotals(customer, total_spent, order_count), list(orders)


def customer_stats(session: Session, now: Optional[datetime] = None, top: int = 5) -> dict:
    now = now or utcnow()
    start_of_month = datetime(now.year, now.month, 1)

    total_customers = session.exec(select(func.count()).select_from(Customer)).one()
    customers_this_month = session.exec(
        select(func.count()).select_from(Customer).where(Customer.created_at >= start_of_month)
    ).one()

    spent = func.sum(Order.total_price).label("total_spent")
    rows = session.exec(
        select(Customer.id, Customer.first_name, Customer.last_name, spent)
        .join(Order, Order.customer_id == Customer.id)
        .where(Order.status != OrderStatus.CANCELLED)
        .group_by(Customer.id, Customer.first_name, Customer.last_name)
        .order_by(spent.desc())
        .limit(top)
    ).all()

    return {
        "total_customers": total_customers,
        "customers_this_month": customers_this_month,
        "top_spenders": [
            {
                "id": row[0],
                "first_name": row[1],
                "last_name": row[2],
                "total_spent": to_money(row[3] or 0),
            }
            for row in rows
        ],
    }
