# primavera/routers/loyalty.py

from typing import Optional

from fastapi import APIRouter, Query

from primavera.dependencies import CurrentCustomer, SessionDep
from primavera.schemas import LoyaltyBalance, LoyaltyHistory, PointsTransactionRead, ProgramInfo
from primavera.services import loyalty

router = APIRouter(prefix="/api/loyalty", tags=["loyalty"])


@router.get("/balance", response_model=LoyaltyBalance)
def get_balance(customer: CurrentCustomer):
    return loyalty.balance_summary(customer)


@router.get("/history", response_model=LoyaltyHistory)
def get_history(
    session: SessionDep,
    customer: CurrentCustomer,
    limit: int = Query(20, ge=1, le=100),
    cursor: Optional[int] = None,
):
    transactions, next_cursor = loyalty.history(session, customer, limit, cursor)
    return LoyaltyHistory(
        transactions=[PointsTransactionRead.model_validate(t) for t in transactions],
        next_cursor=next_cursor,
    )


@router.get("/program", response_model=ProgramInfo)
def program_info(customer: CurrentCustomer):
    return loyalty.program_info()
