import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Mapping

from .pccc import is_valid_pccc


# 010-1234-5678, 010-123-4567, 01012345678
PHONE_RE = re.compile(r"^(01\d)-?(\d{3,4})-?(\d{4})$")


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def _get(candidate: Any, name: str) -> Any:
    if candidate is None:
        return None
    if isinstance(candidate, Mapping):
        return candidate.get(name)
    return getattr(candidate, name, None)


def _blank(value: Any) -> bool:
    return value is None or not isinstance(value, str) or value.strip() == ""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_valid_phone(phone: str) -> bool:
    if not isinstance(phone, str):
        return False
    return PHONE_RE.match(re.sub(r"\s", "", phone)) is not None


def validate_order(candidate: Any) -> ValidationResult:
    """Check an order candidate (OrderInput or mapping) and collect every problem found."""
    errors: List[str] = []

    if _blank(_get(candidate, "customer_name")):
        errors.append("Customer name is required")

    phone = _get(candidate, "customer_phone")
    if _blank(phone):
        errors.append("Customer phone is required")
    elif not is_valid_phone(phone):
        errors.append("Invalid phone number format")

    pccc = _get(candidate, "pccc")
    if _blank(pccc):
        errors.append("PCCC is required")
    elif not is_valid_pccc(pccc):
        errors.append("Invalid PCCC format")

    if _blank(_get(candidate, "shipping_address")):
        errors.append("Shipping address is required")

    items = _get(candidate, "items")
    if not items or isinstance(items, (str, bytes, Mapping)):
        errors.append("Order must have at least one item")
    else:
        for idx, item in enumerate(items, start=1):
            product_id = _get(item, "product_id")
            if product_id is None or str(product_id).strip() == "":
                errors.append(f"Item {idx}: Product ID is required")
            quantity = _get(item, "quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int):
                errors.append(f"Item {idx}: Quantity must be an integer")
            elif quantity <= 0:
                errors.append(f"Item {idx}: Quantity must be positive")
            price = _get(item, "price")
            if not _is_number(price):
                errors.append(f"Item {idx}: Price must be a number")
            elif price < 0:
                errors.append(f"Item {idx}: Price cannot be negative")

    return ValidationResult(is_valid=not errors, errors=errors)
