from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import InvalidTransition, ValidationError
from .order_number import SequenceCounter, default_counter, generate_order_number, kst_date_key
from .tracking import TrackingUrlResolver, default_resolver
from .validation import validate_order


class OrderStatus(str, Enum):
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DONE = "DONE"
    REFUNDED = "REFUNDED"


@dataclass
class OrderItem:
    product_id: str
    quantity: int
    price: Any
    product_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderItem":
        return cls(
            product_id=data.get("product_id"),
            quantity=data.get("quantity"),
            price=data.get("price"),
            product_name=data.get("product_name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OrderInput:
    customer_name: str
    customer_phone: str
    pccc: str
    shipping_address: str
    items: List[OrderItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderInput":
        raw_items = data.get("items")
        if not isinstance(raw_items, (list, tuple)):
            raw_items = []
        # non-mapping entries become empty items so validation reports them
        items = [
            it if isinstance(it, OrderItem) else OrderItem.from_dict(it if isinstance(it, Mapping) else {})
            for it in raw_items
        ]
        return cls(
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            pccc=data.get("pccc"),
            shipping_address=data.get("shipping_address"),
            items=items,
        )


EDITABLE_FIELDS = ("customer_name", "customer_phone", "pccc", "shipping_address", "items")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order:
    """Order aggregate. Status moves PAID -> SHIPPED -> DONE, or to REFUNDED before DONE."""

    tracking_resolver: TrackingUrlResolver = default_resolver

    def __init__(
        self,
        order_input: OrderInput,
        order_number: Optional[str] = None,
        *,
        counter: Optional[SequenceCounter] = None,
        now: Optional[datetime] = None,
    ):
        result = validate_order(order_input)
        if not result.is_valid:
            raise ValidationError(result.errors)
        if isinstance(order_input, Mapping):
            order_input = OrderInput.from_dict(order_input)

        created = now or _utcnow()
        self.id: Optional[str] = None
        self.customer_name = order_input.customer_name
        self.customer_phone = order_input.customer_phone
        self.pccc = order_input.pccc
        self.shipping_address = order_input.shipping_address
        self.items: List[OrderItem] = [
            OrderItem.from_dict(it) if isinstance(it, Mapping) else replace(it)
            for it in order_input.items
        ]
        self.status = OrderStatus.PAID
        self.courier_company: Optional[str] = None
        self.tracking_number: Optional[str] = None
        self.tracking_photo_url: Optional[str] = None
        self.shipped_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None
        self.refunded_at: Optional[datetime] = None
        self.refund_reason: Optional[str] = None
        self.created_at = created
        self.updated_at = created

        if order_number:
            self.order_number = order_number
        else:
            counter = counter or default_counter
            sequence = counter.next_sequence(kst_date_key(created))
            self.order_number = generate_order_number(sequence, created)

    @classmethod
    def restore(cls, **fields: Any) -> "Order":
        """Rebuild a persisted order as stored, skipping validation and numbering."""
        order = cls.__new__(cls)
        order.id = fields.get("id")
        order.order_number = fields["order_number"]
        order.status = OrderStatus(fields.get("status") or OrderStatus.PAID)
        order.customer_name = fields.get("customer_name")
        order.customer_phone = fields.get("customer_phone")
        order.pccc = fields.get("pccc")
        order.shipping_address = fields.get("shipping_address")
        order.items = [
            it if isinstance(it, OrderItem) else OrderItem.from_dict(it)
            for it in (fields.get("items") or [])
        ]
        order.courier_company = fields.get("courier_company")
        order.tracking_number = fields.get("tracking_number")
        order.tracking_photo_url = fields.get("tracking_photo_url")
        order.shipped_at = fields.get("shipped_at")
        order.completed_at = fields.get("completed_at")
        order.refunded_at = fields.get("refunded_at")
        order.refund_reason = fields.get("refund_reason")
        order.created_at = fields.get("created_at")
        order.updated_at = fields.get("updated_at") or order.created_at
        return order

    def get_total_amount(self):
        return sum((it.price * it.quantity for it in self.items), 0)

    def get_total_items(self) -> int:
        return sum(it.quantity for it in self.items)

    def ship(self, courier: str, tracking_number: str, photo_url: Optional[str] = None) -> None:
        if self.status != OrderStatus.PAID:
            raise InvalidTransition(self.status, "ship")
        now = _utcnow()
        self.courier_company = courier
        self.tracking_number = tracking_number
        self.tracking_photo_url = photo_url
        self.status = OrderStatus.SHIPPED
        self.shipped_at = now
        self.updated_at = now

    def complete(self) -> None:
        if self.status == OrderStatus.DONE:
            return
        if self.status not in (OrderStatus.PAID, OrderStatus.SHIPPED):
            raise InvalidTransition(self.status, "complete")
        now = _utcnow()
        self.status = OrderStatus.DONE
        self.completed_at = now
        self.updated_at = now

    def refund(self, reason: str) -> None:
        if self.status == OrderStatus.REFUNDED:
            return
        if self.status == OrderStatus.DONE:
            raise InvalidTransition(self.status, "refund", "Cannot refund completed order")
        now = _utcnow()
        self.status = OrderStatus.REFUNDED
        self.refund_reason = reason
        self.refunded_at = now
        self.updated_at = now

    def can_edit(self) -> bool:
        return self.status == OrderStatus.PAID

    def update_details(self, **changes: Any) -> None:
        """Edit customer, address or items of a PAID order; the merged order is re-validated."""
        if not self.can_edit():
            raise InvalidTransition(self.status, "edit")
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"fields not editable: {', '.join(sorted(unknown))}")
        merged = {name: getattr(self, name) for name in EDITABLE_FIELDS}
        merged.update(changes)
        candidate = OrderInput.from_dict(merged)
        result = validate_order(candidate)
        if not result.is_valid:
            raise ValidationError(result.errors)
        for name in EDITABLE_FIELDS:
            setattr(self, name, getattr(candidate, name))
        self.updated_at = _utcnow()

    def get_tracking_url(self) -> Optional[str]:
        return self.tracking_resolver.resolve(self.courier_company, self.tracking_number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "status": self.status.value,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "pccc": self.pccc,
            "shipping_address": self.shipping_address,
            "items": [it.to_dict() for it in self.items],
            "total_amount": self.get_total_amount(),
            "total_items": self.get_total_items(),
            "courier_company": self.courier_company,
            "tracking_number": self.tracking_number,
            "tracking_url": self.get_tracking_url(),
            "tracking_photo_url": self.tracking_photo_url,
            "shipped_at": self.shipped_at,
            "completed_at": self.completed_at,
            "refunded_at": self.refunded_at,
            "refund_reason": self.refund_reason,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
