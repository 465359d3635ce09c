"""직원용 주문 관리 API 라우트."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from flask import Blueprint, abort, current_app, jsonify, make_response, request
from sqlalchemy.exc import IntegrityError

from yuandi.domain import InvalidTransition, OrderInput, OrderNotFound, SequenceExhausted, ValidationError
from yuandi.domain.order_number import is_valid_order_number
from yuandi.domain.pccc import normalize_pccc
from yuandi.domain.tracking import default_resolver
from yuandi.utils.pagination import parse_int

from .auth import require_roles


api_bp = Blueprint("yuandi_api", __name__, url_prefix="/api")

ORDER_ROLES = ("admin", "order_manager")
SHIP_ROLES = ("admin", "order_manager", "ship_manager")


def _components() -> Dict[str, Any]:
    return current_app.extensions["yuandi_components"]


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(payload: Dict[str, Any], key: str) -> str:
    # null or non-string values count as missing
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


def _date_arg(name: str) -> Optional[date]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        abort(make_response(jsonify({"error": f"날짜 형식이 올바르지 않습니다 (YYYY-MM-DD): {name}"}), 400))


def _with_normalized_pccc(payload: Dict[str, Any]) -> Dict[str, Any]:
    # "p1234-5678-9012" style input is accepted; anything else goes to validation unchanged
    if "pccc" in payload:
        normalized = normalize_pccc(payload.get("pccc"))
        if normalized:
            payload = {**payload, "pccc": normalized}
    return payload


@api_bp.errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError):
    return jsonify({"error": "주문 정보가 올바르지 않습니다.", "errors": exc.errors}), 400


@api_bp.errorhandler(InvalidTransition)
def handle_invalid_transition(exc: InvalidTransition):
    status = getattr(exc.status, "value", exc.status)
    return jsonify({"error": str(exc), "status": status, "operation": exc.operation}), 409


@api_bp.errorhandler(OrderNotFound)
def handle_not_found(exc: OrderNotFound):
    return jsonify({"error": "주문을 찾을 수 없습니다.", "order_id": exc.order_id}), 404


@api_bp.errorhandler(SequenceExhausted)
def handle_sequence_exhausted(exc: SequenceExhausted):
    return jsonify({"error": str(exc)}), 409


@api_bp.get("/orders")
@require_roles(*SHIP_ROLES)
def list_orders():
    args = request.args
    start_date, end_date = _date_arg("start_date"), _date_arg("end_date")
    try:
        result = _components()["order_service"].list_orders(
            status=args.get("status") or None,
            search=(args.get("search") or "").strip() or None,
            start_date=start_date,
            end_date=end_date,
            page=parse_int(args.get("page"), 1),
            page_size=parse_int(args.get("page_size"), 20),
        )
    except ValueError:
        return jsonify({"error": f"알 수 없는 주문 상태입니다: {args.get('status')}"}), 400
    return jsonify(result)


@api_bp.get("/orders/statistics")
@require_roles(*ORDER_ROLES)
def order_statistics():
    start_date, end_date = _date_arg("start_date"), _date_arg("end_date")
    if start_date and end_date and start_date > end_date:
        return jsonify({"error": "시작일이 종료일보다 늦습니다."}), 400
    return jsonify(_components()["order_service"].get_statistics(start_date, end_date))


@api_bp.post("/orders")
@require_roles(*ORDER_ROLES)
def create_order():
    payload = _with_normalized_pccc(_payload())
    order_number = payload.get("order_number") or None
    if order_number is not None and not (isinstance(order_number, str) and is_valid_order_number(order_number)):
        return jsonify({"error": "주문번호 형식이 올바르지 않습니다 (ORD-YYMMDD-NNN)."}), 400
    try:
        order = _components()["order_service"].create_order(OrderInput.from_dict(payload), order_number)
    except IntegrityError:
        return jsonify({"error": "이미 사용 중인 주문번호입니다."}), 409
    return jsonify({"order": order}), 201


@api_bp.get("/orders/<order_id>")
@require_roles(*SHIP_ROLES)
def get_order(order_id: str):
    order = _components()["order_service"].get_order(order_id)
    if not order:
        raise OrderNotFound(order_id)
    return jsonify({"order": order})


@api_bp.patch("/orders/<order_id>")
@require_roles(*ORDER_ROLES)
def edit_order(order_id: str):
    payload = _with_normalized_pccc(_payload())
    changes = {k: v for k, v in payload.items() if k in ("customer_name", "customer_phone", "pccc", "shipping_address", "items")}
    if not changes:
        return jsonify({"error": "수정할 항목이 없습니다."}), 400
    order = _components()["order_service"].edit_order(order_id, **changes)
    return jsonify({"order": order})


@api_bp.patch("/orders/<order_id>/ship")
@require_roles(*SHIP_ROLES)
def ship_order(order_id: str):
    payload = _payload()
    courier = _text(payload, "courier")
    tracking_number = _text(payload, "tracking_number")
    if not courier or not tracking_number:
        return jsonify({"error": "운송장 번호와 택배사는 필수입니다."}), 400
    order = _components()["order_service"].ship_order(
        order_id,
        courier=courier,
        tracking_number=tracking_number,
        photo_url=_text(payload, "tracking_photo_url") or None,
    )
    return jsonify({"order": order})


@api_bp.patch("/orders/<order_id>/complete")
@require_roles(*SHIP_ROLES)
def complete_order(order_id: str):
    order = _components()["order_service"].complete_order(order_id)
    return jsonify({"order": order})


@api_bp.patch("/orders/<order_id>/refund")
@require_roles(*ORDER_ROLES)
def refund_order(order_id: str):
    reason = _text(_payload(), "refund_reason")
    if not reason:
        return jsonify({"error": "환불 사유는 필수입니다."}), 400
    order = _components()["order_service"].refund_order(order_id, reason=reason)
    return jsonify({"order": order})


@api_bp.get("/carriers")
@require_roles(*SHIP_ROLES)
def list_carriers():
    return jsonify({"carriers": default_resolver.carriers()})


@api_bp.get("/exchange-rate")
@require_roles(*SHIP_ROLES)
def exchange_rate():
    return jsonify(_components()["exchange_rate_service"].snapshot())


@api_bp.post("/exchange-rate/update")
@require_roles("admin")
def update_exchange_rate():
    rate, source = _components()["exchange_rate_service"].update_weekly_rate()
    return jsonify({"rate": rate, "source": source})
