from typing import Iterable, List, Optional


class OrderError(Exception):
    """Base class for order domain failures."""


class ValidationError(OrderError):
    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("Invalid order: " + ", ".join(self.errors))


class InvalidTransition(OrderError):
    def __init__(self, status, operation: str, message: Optional[str] = None):
        self.status = status
        self.operation = operation
        status_value = getattr(status, "value", status)
        super().__init__(message or f"Cannot {operation} order in {status_value} status")


class SequenceExhausted(OrderError):
    def __init__(self, date_key: str, limit: int = 999):
        self.date_key = date_key
        self.limit = limit
        super().__init__(f"Maximum daily order limit reached ({limit} orders) for {date_key}")


class OrderNotFound(OrderError, LookupError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"order not found: {order_id}")
