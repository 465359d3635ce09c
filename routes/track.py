"""비회원 고객용 주문 조회 라우트 (이름 + 전화번호)."""

from __future__ import annotations

import re

from flask import Blueprint, current_app, jsonify, request


track_bp = Blueprint("yuandi_track", __name__, url_prefix="/api")


@track_bp.get("/track")
def track_orders():
    name = (request.args.get("name") or "").strip()
    phone = request.args.get("phone") or ""
    if not name or not phone:
        return jsonify({"error": "이름과 전화번호를 입력해주세요."}), 400
    if len(name) < 2:
        return jsonify({"error": "올바른 이름을 입력해주세요."}), 400
    if len(re.sub(r"\D", "", phone)) < 10:
        return jsonify({"error": "올바른 전화번호를 입력해주세요."}), 400

    orders = current_app.extensions["yuandi_components"]["order_service"].track_orders(name=name, phone=phone)
    if not orders:
        return jsonify({"message": "조회된 주문이 없습니다.", "orders": []})
    return jsonify({"message": f"최근 {len(orders)}건의 주문이 조회되었습니다.", "orders": orders})
