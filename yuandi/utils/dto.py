import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..domain.pccc import mask_pccc


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def mask_phone(phone: Optional[str]) -> Optional[str]:
    """010-1234-5678 -> 010-****-5678"""
    if not phone:
        return phone
    digits = re.sub(r"\D", "", phone)
    if len(digits) < 8:
        return phone
    return f"{digits[:3]}-****-{digits[-4:]}"


def to_order_dto(data: Dict[str, Any]) -> Dict:
    """Order.to_dict() output made JSON safe."""
    dto = dict(data)
    for key in ("shipped_at", "completed_at", "refunded_at", "created_at", "updated_at"):
        dto[key] = _iso(dto.get(key))
    dto["total_amount"] = float(dto.get("total_amount") or 0)
    dto["items"] = [
        {**it, "price": float(it.get("price") or 0)}
        for it in dto.get("items") or []
    ]
    return dto


def to_tracking_dto(data: Dict[str, Any]) -> Dict:
    """Customer-facing view: personal identifiers masked, internal fields dropped."""
    dto = to_order_dto(data)
    return {
        "order_number": dto["order_number"],
        "status": dto["status"],
        "customer_name": dto["customer_name"],
        "customer_phone": mask_phone(dto["customer_phone"]),
        "pccc": mask_pccc(dto["pccc"]),
        "items": [
            {"product_name": it.get("product_name"), "quantity": it.get("quantity")}
            for it in dto["items"]
        ],
        "total_amount": dto["total_amount"],
        "courier_company": dto["courier_company"],
        "tracking_number": dto["tracking_number"],
        "tracking_url": dto["tracking_url"],
        "shipped_at": dto["shipped_at"],
        "completed_at": dto["completed_at"],
        "created_at": dto["created_at"],
    }
