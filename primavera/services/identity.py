# primavera/services/identity.py

import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session, select

from primavera.errors import ValidationError
from primavera.models import Customer, User

logger = logging.getLogger(__name__)


@dataclass
class GuestContact:
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass
class Identity:
    """Who is ordering: a loyalty customer, or a guest with contact details."""
    customer: Optional[Customer] = None
    guest: Optional[GuestContact] = None

    @property
    def is_guest(self) -> bool:
        return self.customer is None


def split_display_name(name: Optional[str]) -> tuple[str, str]:
    parts = (name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def get_or_create_customer(session: Session, user: User, phone: Optional[str] = None) -> Customer:
    """
    Find the customer profile linked to this account, creating it on first use.
    The new row is flushed, not committed: it joins the caller's unit of work.
    """
    customer = session.exec(select(Customer).where(Customer.user_id == user.id)).first()
    if customer:
        return customer

    first_name, last_name = split_display_name(user.name)
    customer = Customer(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        phone_number=phone,
    )
    session.add(customer)
    session.flush()
    logger.info("Created customer profile %s for account %s", customer.id, user.id)
    return customer


def resolve_identity(
    session: Session,
    user: Optional[User],
    guest: Optional[GuestContact] = None,
    phone: Optional[str] = None,
) -> Identity:
    # 1. Signed in: bind (or create) the customer profile
    if user is not None:
        return Identity(customer=get_or_create_customer(session, user, phone))

    # 2. Guest: we need at least an email and a first name to reach them
    if guest is None or not (guest.email or "").strip() or not (guest.first_name or "").strip():
        raise ValidationError("Guest checkout requires email and first name")

    return Identity(guest=guest)
