# primavera/models.py

"""
The Contract: Define what our data looks like
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, Relationship, SQLModel


def utcnow() -> datetime:
    # Naive UTC; the columns are declared as plain DateTime to match
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- 1. Enums ---
class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DeliveryType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CARD_ON_DELIVERY = "card_on_delivery"


# --- 2. Database Tables ---

class User(SQLModel, table=True):
    """
    The signed-in account. Accounts come from the auth provider;
    we only keep what ordering needs from them.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: Optional[str] = None  # Display name, e.g. "Marco Rossi"
    email: str = Field(unique=True, index=True)
    role: Role = Field(default=Role.CUSTOMER)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class Customer(SQLModel, table=True):
    """
    Loyalty-program member. Linked 1:1 to an account when the customer signs in.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", unique=True, index=True)
    first_name: str = ""
    last_name: str = ""
    phone_number: Optional[str] = None
    delivery_address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    # Running counter; every change is mirrored by a PointsTransaction
    points_balance: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    user: Optional[User] = Relationship()
    orders: List["Order"] = Relationship(back_populates="customer")
    transactions: List["PointsTransaction"] = Relationship(back_populates="customer")


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    image_url: Optional[str] = None
    price: Decimal = Field(max_digits=10, decimal_places=2)
    category: str = Field(default="pizza", index=True)
    available: bool = Field(default=True)
    sort_order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class Order(SQLModel, table=True):
    """
    One purchase. Either customer_id or the guest_* fields are set, never both.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: int = Field(unique=True, index=True)
    customer_id: Optional[int] = Field(default=None, foreign_key="customer.id", index=True)
    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)
    total_price: Decimal = Field(max_digits=10, decimal_places=2)
    points_earned: int = Field(default=0)  # Credited on delivery
    points_used: int = Field(default=0)  # Debited at checkout
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    delivery_address: str = ""
    delivery_city: str = ""
    delivery_postal_code: str = ""
    delivery_phone: str
    notes: Optional[str] = None
    guest_email: Optional[str] = None
    guest_first_name: Optional[str] = None
    guest_last_name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    customer: Optional[Customer] = Relationship(back_populates="orders")
    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int = Field(foreign_key="product.id")
    quantity: int
    # Snapshot of the catalog price when the order was placed
    price_at_time: Decimal = Field(max_digits=10, decimal_places=2)

    order: Optional[Order] = Relationship(back_populates="items")
    product: Optional[Product] = Relationship()


class PointsTransaction(SQLModel, table=True):
    """
    Append-only ledger. Positive amounts are credits, negative are debits.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="customer.id", index=True)
    amount: int
    reason: str
    order_id: Optional[int] = Field(default=None, foreign_key="order.id")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, index=True)

    customer: Optional[Customer] = Relationship(back_populates="transactions")
