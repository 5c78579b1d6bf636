# primavera/schemas.py

"""
Request and response bodies for the API.
Table models live in models.py; these are what goes over the wire.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from primavera.models import DeliveryType, OrderStatus, PaymentMethod


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Menu ---

class ProductRead(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    ingredients: List[str] = []
    image_url: Optional[str] = None
    price: Decimal
    category: str
    available: bool
    sort_order: int


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    category: str = "pizza"
    available: bool = True
    sort_order: int = 0


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    ingredients: Optional[List[str]] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    category: Optional[str] = None
    available: Optional[bool] = None
    sort_order: Optional[int] = None


class MenuSearchHit(BaseModel):
    product: ProductRead
    score: Optional[float] = None


# --- Orders ---

class CartLine(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class CreateOrderRequest(BaseModel):
    items: List[CartLine]
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    delivery_address: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_postal_code: Optional[str] = None
    delivery_phone: str
    notes: Optional[str] = None
    use_points: int = Field(0, ge=0)
    # Guest checkout fields
    guest_email: Optional[EmailStr] = None
    guest_first_name: Optional[str] = None
    guest_last_name: Optional[str] = None


class ProductSummary(ORMModel):
    id: int
    name: str
    category: str


class OrderItemRead(ORMModel):
    id: int
    product_id: int
    quantity: int
    price_at_time: Decimal
    product: Optional[ProductSummary] = None


class OrderRead(ORMModel):
    id: int
    order_number: int
    customer_id: Optional[int] = None
    status: OrderStatus
    total_price: Decimal
    points_earned: int
    points_used: int
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    delivery_address: str
    delivery_city: str
    delivery_postal_code: str
    delivery_phone: str
    notes: Optional[str] = None
    guest_email: Optional[str] = None
    guest_first_name: Optional[str] = None
    guest_last_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead] = []


class UserSummary(ORMModel):
    email: str
    name: Optional[str] = None


class CustomerSummary(ORMModel):
    id: int
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    user: Optional[UserSummary] = None


class AdminOrderRead(OrderRead):
    customer: Optional[CustomerSummary] = None


class OrderPage(BaseModel):
    orders: List[OrderRead]
    next_cursor: Optional[int] = None


class AdminOrderPage(BaseModel):
    orders: List[AdminOrderRead]
    next_cursor: Optional[int] = None


class StatusUpdate(BaseModel):
    status: OrderStatus


class OrderStats(BaseModel):
    total_orders: int
    today_orders: int
    pending_orders: int
    today_revenue: Decimal


# --- Loyalty ---

class LoyaltyBalance(BaseModel):
    points_balance: int
    tier: str
    points_to_next_tier: Optional[int] = None


class PointsTransactionRead(ORMModel):
    id: int
    amount: int
    reason: str
    order_id: Optional[int] = None
    created_at: datetime


class LoyaltyHistory(BaseModel):
    transactions: List[PointsTransactionRead]
    next_cursor: Optional[int] = None


class TierInfo(BaseModel):
    name: str
    min_points: int
    benefits: List[str]


class ProgramInfo(BaseModel):
    points_per_eur: int
    points_per_eur_discount: int
    tiers: List[TierInfo]


# --- Customers (admin) ---

class PointsAdjustment(BaseModel):
    amount: int
    reason: str


class CustomerRead(ORMModel):
    id: int
    user_id: Optional[int] = None
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    delivery_address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    points_balance: int
    created_at: datetime
    user: Optional[UserSummary] = None


class CustomerWithStats(CustomerRead):
    total_spent: Decimal
    order_count: int


class CustomerDetail(CustomerWithStats):
    orders: List[OrderRead] = []


class CustomerList(BaseModel):
    customers: List[CustomerWithStats]
    total: int


class TopSpender(BaseModel):
    id: int
    first_name: str
    last_name: str
    total_spent: Decimal


class CustomerStats(BaseModel):
    total_customers: int
    customers_this_month: int
    top_spenders: List[TopSpender]


# --- Assistant ---

class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    response: str
