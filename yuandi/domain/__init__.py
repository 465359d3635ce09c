from .errors import InvalidTransition, OrderError, OrderNotFound, SequenceExhausted, ValidationError
from .order import Order, OrderInput, OrderItem, OrderStatus
from .order_number import (
    InMemorySequenceCounter,
    SequenceCounter,
    generate_order_number,
    is_valid_order_number,
    kst_date_key,
    parse_order_number,
)
from .tracking import TrackingUrlResolver, resolve_tracking_url
from .validation import ValidationResult, validate_order

__all__ = [
    "InMemorySequenceCounter",
    "InvalidTransition",
    "Order",
    "OrderError",
    "OrderInput",
    "OrderItem",
    "OrderNotFound",
    "OrderStatus",
    "SequenceCounter",
    "SequenceExhausted",
    "TrackingUrlResolver",
    "ValidationError",
    "ValidationResult",
    "generate_order_number",
    "is_valid_order_number",
    "kst_date_key",
    "parse_order_number",
    "resolve_tracking_url",
    "validate_order",
]
