# primavera/routers/orders.py

from typing import List, Optional

from fastapi import APIRouter, Query

from primavera.dependencies import AdminUser, CurrentCustomer, OptionalUser, SessionDep
from primavera.models import OrderStatus
from primavera.schemas import (
    AdminOrderPage,
    AdminOrderRead,
    CreateOrderRequest,
    OrderPage,
    OrderRead,
    OrderStats,
    StatusUpdate,
)
from primavera.services import ordering

router = APIRouter(prefix="/api/orders", tags=["orders"])
admin_router = APIRouter(prefix="/api/admin/orders", tags=["admin"])


@router.post("", response_model=OrderRead, status_code=201)
def create_order(body: CreateOrderRequest, session: SessionDep, user: OptionalUser):
    """
    Checkout. Works for signed-in customers (who can redeem and earn points)
    and for guests (who must leave an email and a first name)
    """
    return ordering.place_order(session, body, user)


@router.get("/mine", response_model=OrderPage)
def my_orders(
    session: SessionDep,
    customer: CurrentCustomer,
    limit: int = Query(10, ge=1, le=100),
    cursor: Optional[int] = None,
):
    orders, next_cursor = ordering.customer_orders(session, customer, limit, cursor)
    return OrderPage(
        orders=[OrderRead.model_validate(order) for order in orders],
        next_cursor=next_cursor,
    )


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, session: SessionDep, customer: CurrentCustomer):
    return ordering.get_customer_order(session, customer, order_id)


# --- Back-office ---

@admin_router.get("", response_model=AdminOrderPage)
def list_orders(
    session: SessionDep,
    admin: AdminUser,
    status: Optional[OrderStatus] = None,
    limit: int = Query(50, ge=1, le=100),
    cursor: Optional[int] = None,
):
    orders, next_cursor = ordering.list_orders(session, status, limit, cursor)
    return AdminOrderPage(
        orders=[AdminOrderRead.model_validate(order) for order in orders],
        next_cursor=next_cursor,
    )


@admin_router.get("/active", response_model=List[AdminOrderRead])
def active_orders(session: SessionDep, admin: AdminUser):
    """Kitchen display: every order that isn't delivered or cancelled, oldest first"""
    return ordering.active_orders(session)


@admin_router.get("/stats", response_model=OrderStats)
def order_stats(session: SessionDep, admin: AdminUser):
    return ordering.order_stats(session)


@admin_router.patch("/{order_id}/status", response_model=OrderRead)
def update_status(order_id: int, body: StatusUpdate, session: SessionDep, admin: AdminUser):
    """
    Move an order along: pending -> confirmed -> preparing -> ready -> out_for_delivery -> delivered,
    or cancel it. Delivering credits the customer's points
    """
    return ordering.update_status(session, order_id, body.status)
