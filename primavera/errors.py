"""Domain exceptions for the ordering service."""


class PrimaveraError(Exception):
    """Base exception for all ordering service errors."""

    pass


class ValidationError(PrimaveraError):
    """Raised when a request is well-formed but violates a business rule."""

    pass


class NotFoundError(PrimaveraError):
    """Raised when a record doesn't exist or isn't visible to the caller."""

    entity = "Record"

    def __init__(self, record_id: int | None = None):
        self.record_id = record_id
        msg = f"{self.entity} not found"
        if record_id is not None:
            msg = f"{msg}: {record_id}"
        super().__init__(msg)


class OrderNotFoundError(NotFoundError):
    entity = "Order"


class CustomerNotFoundError(NotFoundError):
    entity = "Customer"


class ProductNotFoundError(NotFoundError):
    entity = "Product"


class InvalidTransitionError(PrimaveraError):
    """Raised when an order status change isn't allowed from its current status."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from '{current}' to '{target}'")


class InsufficientPointsError(PrimaveraError):
    """Raised when a points debit would take a balance below zero."""

    def __init__(self, customer_id: int, requested: int):
        self.customer_id = customer_id
        self.requested = requested
        super().__init__(
            f"Customer {customer_id} no longer has {requested} points to redeem"
        )


class ProductInUseError(PrimaveraError):
    """Raised when deleting a product that existing orders still reference."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(
            f"Product {product_id} appears in existing orders. "
            "Mark it unavailable instead."
        )
