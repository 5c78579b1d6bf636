# primavera/agent.py
"""
The ordering assistant: answers a signed-in customer's questions
("Where is my pizza?", "How many points do I have?", "Anything vegetarian?").

The "Glue":
- The agent is just a static object, it doesn't have a DB connection
- Our tools need a Database Session to run a query
- AssistantDeps holds the session and the customer; it is passed in on every run
- All tools are read-only and scoped to that customer
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic_ai import Agent, RunContext
from sqlmodel import Session, select

from primavera.models import Customer, Order
from primavera.search import MenuIndex
from primavera.search import search_menu as run_menu_search
from primavera.services.loyalty import balance_summary
from primavera.services.ordering import customer_orders


# The Context - Dependency Injection
class AssistantDeps(BaseModel):
    """
    What the agent needs for one conversation turn.
    FastAPI builds this for every request; the DB session is passed in at runtime.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)  # Allow Session to be used as a type

    customer_id: int  # Who is the agent speaking to?
    db: Session  # Database connection
    menu_index: Optional[MenuIndex] = None


# Agent Definition
# The model is picked per run (ASSISTANT_MODEL), so importing this module needs no API key
agent = Agent(
    deps_type=AssistantDeps,
    system_prompt=(
        "You are the friendly ordering assistant of Prima Vera pizzeria. "
        "You can look up the customer's orders, loyalty points and our menu. "
        "Always use the tools before answering questions about orders or points; never guess. "
        "Customers earn 10 points per EUR spent once an order is delivered, "
        "and 100 points are worth 1 EUR off at checkout. "
        "Keep answers short and polite. "
        "Today's date is " + datetime.now().strftime("%Y-%m-%d")
    ),
)


def _customer(ctx: RunContext[AssistantDeps]) -> Optional[Customer]:
    return ctx.deps.db.get(Customer, ctx.deps.customer_id)


def _describe(order: Order) -> str:
    lines = ", ".join(
        f"{item.quantity}x {item.product.name if item.product else item.product_id}"
        for item in order.items
    )
    return (
        f"Order #{order.order_number} from {order.created_at:%Y-%m-%d %H:%M}: "
        f"status {order.status.value}, total EUR {order.total_price}, "
        f"{order.delivery_type.value}, items: {lines}"
    )


# Tools Definition

@agent.tool
def get_loyalty_status(ctx: RunContext[AssistantDeps]) -> str:
    """
    Get the CURRENT customer's points balance and loyalty tier.
    Use this when the customer asks about points, rewards or tiers.
    """
    customer = _customer(ctx)
    if not customer:
        return "Error: Customer not found"

    summary = balance_summary(customer)
    next_tier = summary["points_to_next_tier"]
    progress = (
        f"{next_tier} points to the next tier" if next_tier is not None else "already at the top tier"
    )
    return f"Points: {summary['points_balance']}, Tier: {summary['tier']}, {progress}"


@agent.tool
def list_recent_orders(ctx: RunContext[AssistantDeps]) -> str:
    """
    Get the customer's five most recent orders.
    Use this when the customer asks "Where is my order?" or "Show my history"
    """
    customer = _customer(ctx)
    if not customer:
        return "Error: Customer not found"

    orders, _ = customer_orders(ctx.deps.db, customer, limit=5)
    if not orders:
        return "No recent orders found"
    return "\n".join(_describe(order) for order in orders)


@agent.tool
def get_order_details(ctx: RunContext[AssistantDeps], order_number: int) -> str:
    """
    Get the details of one order by its order number (the number after '#').
    """
    # Security Check: only the customer's own orders are visible
    order = ctx.deps.db.exec(
        select(Order).where(
            Order.order_number == order_number,
            Order.customer_id == ctx.deps.customer_id,
        )
    ).first()

    if not order:
        return f"Error: Order #{order_number} not found"

    details = _describe(order)
    if order.points_used:
        details += f", {order.points_used} points redeemed"
    if order.points_earned:
        details += f", {order.points_earned} points earned on delivery"
    return details


@agent.tool
def search_menu(ctx: RunContext[AssistantDeps], query: str) -> str:
    """
    Search the menu by concept or ingredient.
    Use for: 'something spicy', 'vegetarian', 'drinks', or vague descriptions.
    """
    if not query.strip():
        return "Please tell me what you are looking for."

    results = run_menu_search(ctx.deps.db, query, limit=3, index=ctx.deps.menu_index)
    if not results:
        return "No relevant products found."
    return "\n".join(
        f"Product: {product.name} (EUR {product.price}) - {product.description or ''}"
        for product, _ in results
    )
