# primavera/services/ordering.py

"""
Order placement and fulfillment.

Placing an order:
1. Identity: signed-in customer (profile created on first order) or guest
2. Pricing: current menu prices, optional points discount
3. Persistence: order + lines + points debit in ONE transaction

Fulfillment is a small state machine driven by the back-office.
Delivering an order credits the points it earned, again in one transaction.
"""

import logging
from datetime import datetime, time
from decimal import Decimal
from typing import List, Optional, Set, Tuple

from sqlalchemy import func, update
from sqlmodel import Session, select

from primavera.errors import InvalidTransitionError, OrderNotFoundError, ValidationError
from primavera.models import Customer, DeliveryType, Order, OrderItem, OrderStatus, User, utcnow
from primavera.schemas import CreateOrderRequest
from primavera.services.identity import GuestContact, resolve_identity
from primavera.services.loyalty import record_points
from primavera.services.pagination import paginate
from primavera.services.pricing import price_order, to_money
from primavera.utils.db import atomic

logger = logging.getLogger(__name__)

# The happy path, in order. Cancelled sits outside it.
STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
ACTIVE_STATUSES = [status for status in STATUS_FLOW if status not in TERMINAL_STATUSES]
AWAITING_KITCHEN = [OrderStatus.PENDING, OrderStatus.CONFIRMED]


# --- State machine ---

def allowed_transitions(current: OrderStatus) -> Set[OrderStatus]:
    """
    Forward moves only (skipping steps is fine, a pickup order never goes
    out for delivery), or cancel. Nothing leaves a terminal status.
    """
    if current in TERMINAL_STATUSES:
        return set()
    position = STATUS_FLOW.index(current)
    return set(STATUS_FLOW[position + 1:]) | {OrderStatus.CANCELLED}


def check_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """True if the status must change, False for a no-op re-apply. Raises if illegal."""
    if current == target:
        return False
    if target not in allowed_transitions(current):
        raise InvalidTransitionError(current.value, target.value)
    return True


# --- Placement ---

def next_order_number(session: Session) -> int:
    current = session.exec(select(func.max(Order.order_number))).one()
    return (current or 0) + 1


def _delivery_details(request: CreateOrderRequest, customer: Optional[Customer]) -> Tuple[str, str, str]:
    # Anything left out (postal code, a pickup order's address) comes from the profile
    address = request.delivery_address or (customer.delivery_address if customer else None) or ""
    city = request.delivery_city or (customer.city if customer else None) or ""
    postal_code = request.delivery_postal_code or (customer.postal_code if customer else None) or ""
    return address.strip(), city.strip(), postal_code.strip()


def place_order(session: Session, request: CreateOrderRequest, user: Optional[User] = None) -> Order:
    phone = request.delivery_phone.strip()
    if not phone:
        raise ValidationError("Phone number is required")
    if request.delivery_type == DeliveryType.DELIVERY and not (
        (request.delivery_address or "").strip() and (request.delivery_city or "").strip()
    ):
        raise ValidationError("Delivery address is required for delivery orders")

    # 1. Who is ordering?
    guest = GuestContact(
        email=request.guest_email,
        first_name=request.guest_first_name,
        last_name=request.guest_last_name,
    )
    identity = resolve_identity(session, user, guest, phone)
    customer = identity.customer

    address, city, postal_code = _delivery_details(request, customer)

    # 2. What does it cost?
    priced = price_order(session, request.items, customer, request.use_points)

    # 3. Write it all, or nothing
    with atomic(session):
        order = Order(
            order_number=next_order_number(session),
            customer_id=customer.id if customer else None,
            status=OrderStatus.PENDING,
            total_price=priced.total_price,
            points_earned=priced.points_earned,
            points_used=priced.points_used,
            delivery_type=request.delivery_type,
            payment_method=request.payment_method,
            delivery_address=address,
            delivery_city=city,
            delivery_postal_code=postal_code,
            delivery_phone=phone,
            notes=request.notes,
            guest_email=None if customer else identity.guest.email,
            guest_first_name=None if customer else identity.guest.first_name,
            guest_last_name=None if customer else identity.guest.last_name,
        )
        order.items = [
            OrderItem(product_id=line.product.id, quantity=line.quantity, price_at_time=line.price_at_time)
            for line in priced.lines
        ]
        session.add(order)
        session.flush()

        if customer and priced.points_used > 0:
            record_points(
                session,
                customer.id,
                -priced.points_used,
                f"Redeemed for Order #{order.order_number}",
                order_id=order.id,
            )

    session.refresh(order)
    logger.info(
        "Order #%s placed (%s): total %s, %s points used, %s points to earn",
        order.order_number,
        f"customer {customer.id}" if customer else "guest",
        order.total_price,
        order.points_used,
        order.points_earned,
    )
    return order


# --- Fulfillment ---

def get_order(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise OrderNotFoundError(order_id)
    return order


def update_status(session: Session, order_id: int, status: OrderStatus) -> Order:
    order = get_order(session, order_id)
    current = order.status

    if not check_transition(current, status):
        return order

    with atomic(session):
        # Only move from the status we validated against. A concurrent update
        # (e.g. a second "delivered" click) matches no row, so points are
        # never credited twice.
        result = session.connection().execute(
            update(Order)
            .where(Order.id == order.id, Order.status == current)
            .values(status=status, updated_at=utcnow())
        )
        moved = result.rowcount > 0
        if not moved:
            stored = session.exec(select(Order.status).where(Order.id == order.id)).one()
            # Someone else already made the same move: same no-op as a re-apply
            if stored != status:
                raise InvalidTransitionError(stored.value, status.value)
        elif status == OrderStatus.DELIVERED and order.customer_id is not None and order.points_earned > 0:
            record_points(
                session,
                order.customer_id,
                order.points_earned,
                f"Earned from Order #{order.order_number}",
                order_id=order.id,
            )

    session.refresh(order)
    if moved:
        logger.info("Order #%s: %s -> %s", order.order_number, current.value, status.value)
    return order


# --- Queries ---

def customer_orders(
    session: Session, customer: Customer, limit: int = 10, cursor: Optional[int] = None
) -> Tuple[List[Order], Optional[int]]:
    statement = select(Order).where(Order.customer_id == customer.id)
    return paginate(session, statement, Order, cursor, limit)


def get_customer_order(session: Session, customer: Customer, order_id: int) -> Order:
    order = session.get(Order, order_id)
    # Someone else's order looks exactly like a missing one
    if not order or order.customer_id != customer.id:
        raise OrderNotFoundError(order_id)
    return order


def list_orders(
    session: Session,
    status: Optional[OrderStatus] = None,
    limit: int = 50,
    cursor: Optional[int] = None,
) -> Tuple[List[Order], Optional[int]]:
    statement = select(Order)
    if status:
        statement = statement.where(Order.status == status)
    return paginate(session, statement, Order, cursor, limit)


def active_orders(session: Session) -> List[Order]:
    """Everything the kitchen still has to deal with, oldest first."""
    statement = (
        select(Order)
        .where(Order.status.in_(ACTIVE_STATUSES))
        .order_by(Order.created_at.asc(), Order.id.asc())
    )
    return list(session.exec(statement).all())


def order_stats(session: Session, now: Optional[datetime] = None) -> dict:
    start_of_day = datetime.combine((now or utcnow()).date(), time.min)

    total_orders = session.exec(select(func.count()).select_from(Order)).one()
    today_orders = session.exec(
        select(func.count()).select_from(Order).where(Order.created_at >= start_of_day)
    ).one()
    pending_orders = session.exec(
        select(func.count()).select_from(Order).where(Order.status.in_(AWAITING_KITCHEN))
    ).one()
    today_revenue = session.exec(
        select(func.sum(Order.total_price)).where(
            Order.created_at >= start_of_day, Order.status != OrderStatus.CANCELLED
        )
    ).one()

    return {
        "total_orders": total_orders,
        "today_orders": today_orders,
        "pending_orders": pending_orders,
        "today_revenue": to_money(today_revenue or Decimal("0")),
    }
