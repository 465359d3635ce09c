import re
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..db.session import get_session
from ..domain.errors import OrderNotFound, SequenceExhausted
from ..domain.order import Order, OrderInput, OrderStatus
from ..domain.order_number import KST, MAX_DAILY_SEQUENCE, ORDER_NUMBER_PREFIX, SequenceCounter, parse_order_number
from ..models.order import OrderRecord
from ..utils.dto import to_order_dto, to_tracking_dto
from ..utils.pagination import normalize_paging
from .logging import log_event


class DbSequenceCounter(SequenceCounter):
    """Next sequence = last stored order number of the day + 1."""

    def __init__(self, session):
        self._session = session

    def next_sequence(self, date_key: str) -> int:
        last = (
            self._session.query(OrderRecord.order_number)
            .filter(OrderRecord.order_number.like(f"{ORDER_NUMBER_PREFIX}-{date_key}-%"))
            .order_by(OrderRecord.order_number.desc())
            .first()
        )
        if not last:
            return 1
        parsed = parse_order_number(last[0])
        last_seq = parsed.sequence if parsed else 0
        if last_seq >= MAX_DAILY_SEQUENCE:
            raise SequenceExhausted(date_key, MAX_DAILY_SEQUENCE)
        return last_seq + 1


def _record_to_order(rec: OrderRecord) -> Order:
    return Order.restore(
        id=rec.id,
        order_number=rec.order_number,
        status=rec.status,
        customer_name=rec.customer_name,
        customer_phone=rec.customer_phone,
        pccc=rec.pccc,
        shipping_address=rec.shipping_address,
        items=_items_from_record(rec.items),
        courier_company=rec.courier_company,
        tracking_number=rec.tracking_number,
        tracking_photo_url=rec.tracking_photo_url,
        shipped_at=rec.shipped_at,
        completed_at=rec.completed_at,
        refunded_at=rec.refunded_at,
        refund_reason=rec.refund_reason,
        created_at=rec.created_at,
        updated_at=rec.updated_at,
    )


def _items_snapshot(order: Order) -> List[Dict]:
    # JSON column: prices kept as decimal strings so they survive the round trip exactly
    return [
        {
            "product_id": it.product_id,
            "product_name": it.product_name,
            "quantity": it.quantity,
            "price": str(it.price),
        }
        for it in order.items
    ]


def _items_from_record(items: Optional[List[Dict]]) -> List[Dict]:
    return [{**it, "price": Decimal(str(it.get("price") or 0))} for it in items or []]


def _kst_day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=KST).astimezone(timezone.utc)


def _filter_created(q, start_date: Optional[date], end_date: Optional[date]):
    """Both bounds are KST calendar days, inclusive."""
    if start_date:
        q = q.filter(OrderRecord.created_at >= _kst_day_start(start_date))
    if end_date:
        q = q.filter(OrderRecord.created_at < _kst_day_start(end_date + timedelta(days=1)))
    return q


def _apply_to_record(order: Order, rec: OrderRecord) -> None:
    rec.status = order.status.value
    rec.customer_name = order.customer_name
    rec.customer_phone = order.customer_phone
    rec.pccc = order.pccc
    rec.shipping_address = order.shipping_address
    rec.items = _items_snapshot(order)
    rec.total_amount = Decimal(str(order.get_total_amount()))
    rec.courier_company = order.courier_company
    rec.tracking_number = order.tracking_number
    rec.tracking_photo_url = order.tracking_photo_url
    rec.shipped_at = order.shipped_at
    rec.completed_at = order.completed_at
    rec.refunded_at = order.refunded_at
    rec.refund_reason = order.refund_reason
    rec.updated_at = order.updated_at


class OrderService:
    """Order lifecycle backed by DB. Domain errors propagate to the caller."""

    CREATE_ATTEMPTS = 3
    TRACK_LIMIT = 20
    TOP_PRODUCTS = 10

    def __init__(self, session_factory=get_session, counter_factory: Callable[[Any], SequenceCounter] = DbSequenceCounter):
        self._session_factory = session_factory
        self._counter_factory = counter_factory

    def create_order(self, order_input: OrderInput, order_number: Optional[str] = None) -> Dict:
        """Validate, number and store a new order. Retries when another writer took the same number."""
        attempt = 0
        while True:
            attempt += 1
            try:
                with self._session_factory() as session:
                    order = Order(order_input, order_number, counter=self._counter_factory(session))
                    order.id = str(uuid4())
                    rec = OrderRecord(id=order.id, order_number=order.order_number, created_at=order.created_at)
                    _apply_to_record(order, rec)
                    session.add(rec)
                    session.flush()
            except IntegrityError:
                if order_number or attempt >= self.CREATE_ATTEMPTS:
                    raise
                log_event("warning", "order.number_conflict", attempt=attempt)
                continue
            log_event(
                "info",
                "order.created",
                order_id=order.id,
                order_number=order.order_number,
                items=order.get_total_items(),
                total=float(order.get_total_amount()),
            )
            return to_order_dto(order.to_dict())

    def get_order(self, order_id: str) -> Dict:
        if not order_id:
            return {}
        with self._session_factory() as session:
            rec = session.query(OrderRecord).filter(OrderRecord.id == order_id).first()
            if not rec:
                return {}
            return to_order_dto(_record_to_order(rec).to_dict())

    def list_orders(
        self,
        *,
        status: Optional[str] = None,
        search: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict:
        p, ps = normalize_paging(page, page_size)
        with self._session_factory() as session:
            q = _filter_created(session.query(OrderRecord), start_date, end_date)
            if status:
                q = q.filter(OrderRecord.status == OrderStatus(status.upper()).value)
            if search:
                like = f"%{search}%"
                q = q.filter(
                    or_(
                        OrderRecord.order_number.ilike(like),
                        OrderRecord.customer_name.ilike(like),
                        OrderRecord.customer_phone.ilike(like),
                    )
                )
            total = q.count()
            rows = (
                q.order_by(OrderRecord.created_at.desc(), OrderRecord.order_number.desc())
                .offset((p - 1) * ps)
                .limit(ps)
                .all()
            )
            items = [to_order_dto(_record_to_order(r).to_dict()) for r in rows]
            return {"items": items, "page": p, "page_size": ps, "total": total}

    def get_statistics(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict:
        """Order counts, revenue and best sellers for orders created in the period.

        Refunded orders are counted in the status distribution only.
        """
        with self._session_factory() as session:
            rows = _filter_created(session.query(OrderRecord), start_date, end_date).all()

            distribution = {s.value: 0 for s in OrderStatus}
            revenue = Decimal("0")
            billed = 0
            products: Dict[str, Dict[str, Any]] = {}
            for rec in rows:
                distribution[rec.status] = distribution.get(rec.status, 0) + 1
                if rec.status == OrderStatus.REFUNDED.value:
                    continue
                billed += 1
                revenue += Decimal(rec.total_amount or 0)
                for it in _items_from_record(rec.items):
                    entry = products.setdefault(
                        it.get("product_id"),
                        {"product_id": it.get("product_id"), "product_name": it.get("product_name"), "quantity": 0, "revenue": Decimal("0")},
                    )
                    entry["quantity"] += it.get("quantity") or 0
                    entry["revenue"] += it["price"] * (it.get("quantity") or 0)

        top = sorted(products.values(), key=lambda e: (-e["quantity"], -e["revenue"], str(e["product_id"])))
        return {
            "start_date": start_date.isoformat() if start_date else None,
            "end_date": end_date.isoformat() if end_date else None,
            "total_orders": len(rows),
            "total_revenue": float(revenue),
            "average_order_value": float(revenue / billed) if billed else 0.0,
            "status_distribution": distribution,
            "top_products": [{**e, "revenue": float(e["revenue"])} for e in top[: self.TOP_PRODUCTS]],
        }

    def _mutate(self, order_id: str, event: str, action: Callable[[Order], None], **log_fields) -> Dict:
        with self._session_factory() as session:
            rec = session.query(OrderRecord).filter(OrderRecord.id == order_id).first()
            if not rec:
                raise OrderNotFound(order_id)
            order = _record_to_order(rec)
            before = order.status
            action(order)
            _apply_to_record(order, rec)
            session.flush()
            log_event(
                "info",
                event,
                order_id=order.id,
                order_number=order.order_number,
                from_status=before.value,
                to_status=order.status.value,
                **log_fields,
            )
            return to_order_dto(order.to_dict())

    def ship_order(self, order_id: str, *, courier: str, tracking_number: str, photo_url: Optional[str] = None) -> Dict:
        return self._mutate(
            order_id,
            "order.shipped",
            lambda o: o.ship(courier, tracking_number, photo_url),
            courier=courier,
        )

    def complete_order(self, order_id: str) -> Dict:
        return self._mutate(order_id, "order.completed", lambda o: o.complete())

    def refund_order(self, order_id: str, *, reason: str) -> Dict:
        return self._mutate(order_id, "order.refunded", lambda o: o.refund(reason), reason=reason)

    def edit_order(self, order_id: str, **changes) -> Dict:
        return self._mutate(
            order_id,
            "order.edited",
            lambda o: o.update_details(**changes),
            fields=sorted(changes),
        )

    def track_orders(self, *, name: str, phone: str) -> List[Dict]:
        """Customer lookup: exact name, phone compared on digits only. Newest first."""
        digits = re.sub(r"\D", "", phone or "")
        name = (name or "").strip()
        if not name or not digits:
            return []
        with self._session_factory() as session:
            rows = (
                session.query(OrderRecord)
                .filter(OrderRecord.customer_name == name)
                .order_by(OrderRecord.created_at.desc(), OrderRecord.order_number.desc())
                .all()
            )
            matched = [r for r in rows if re.sub(r"\D", "", r.customer_phone or "") == digits]
            return [to_tracking_dto(_record_to_order(r).to_dict()) for r in matched[: self.TRACK_LIMIT]]
