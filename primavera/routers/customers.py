# primavera/routers/customers.py

from typing import Optional

from fastapi import APIRouter, Query

from primavera.dependencies import AdminUser, SessionDep
from primavera.schemas import (
    CustomerDetail,
    CustomerList,
    CustomerRead,
    CustomerStats,
    CustomerWithStats,
    OrderRead,
    PointsAdjustment,
)
from primavera.services import customers, loyalty
from primavera.services.customers import CustomerTotals

router = APIRouter(prefix="/api/admin/customers", tags=["admin"])


def _with_stats(totals: CustomerTotals) -> CustomerWithStats:
    return CustomerWithStats(
        **CustomerRead.model_validate(totals.customer).model_dump(),
        total_spent=totals.total_spent,
        order_count=totals.order_count,
    )


@router.get("", response_model=CustomerList)
def list_customers(
    session: SessionDep,
    admin: AdminUser,
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    rows, total = customers.list_customers(session, search, limit, offset)
    return CustomerList(customers=[_with_stats(row) for row in rows], total=total)


@router.get("/stats", response_model=CustomerStats)
def customer_stats(session: SessionDep, admin: AdminUser):
    return customers.customer_stats(session)


@router.get("/{customer_id}", response_model=CustomerDetail)
def get_customer(customer_id: int, session: SessionDep, admin: AdminUser):
    totals, orders = customers.customer_detail(session, customer_id)
    return CustomerDetail(
        **_with_stats(totals).model_dump(),
        orders=[OrderRead.model_validate(order) for order in orders],
    )


@router.post("/{customer_id}/points", response_model=CustomerRead)
def update_points(customer_id: int, body: PointsAdjustment, session: SessionDep, admin: AdminUser):
    """
    Manual points correction. Goes through the same ledger as checkout and delivery
    """
    return loyalty.adjust_points(session, customer_id, body.amount, body.reason)
