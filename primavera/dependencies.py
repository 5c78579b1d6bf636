# primavera/dependencies.py
"""
Used by FastAPI for dependency injection - Database & Auth
It works out who is calling and sets up the database session for the request
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from primavera.models import Customer, Role, User
from primavera.services.identity import get_or_create_customer
from primavera.utils.db import atomic, get_session

SessionDep = Annotated[Session, Depends(get_session)]


# 1. Simulate Authentication
# Sign-in belongs to the auth provider; it hands us the account id in a header.
async def get_optional_user(
    session: SessionDep,
    user_id: Annotated[Optional[int], Header()] = None,
) -> Optional[User]:
    if user_id is None:
        return None

    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid User ID")
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="User ID is Missing")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


# 2. The loyalty profile of the signed-in account, created the first time it's needed
async def get_current_customer(
    session: SessionDep,
    user: User = Depends(get_current_user),
) -> Customer:
    with atomic(session):
        customer = get_or_create_customer(session, user)
    session.refresh(customer)
    return customer


OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
CurrentCustomer = Annotated[Customer, Depends(get_current_customer)]
AdminUser = Annotated[User, Depends(require_admin)]
