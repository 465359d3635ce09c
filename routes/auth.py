"""직원 로그인과 역할 기반 접근 제어."""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import Blueprint, current_app, jsonify, request, session


auth_bp = Blueprint("yuandi_auth", __name__, url_prefix="/auth")

SESSION_KEY = "yuandi_staff"


def _components() -> dict:
    return current_app.extensions["yuandi_components"]


def current_staff() -> Optional[dict]:
    return session.get(SESSION_KEY)


def require_roles(*roles: str):
    """로그인 여부와 역할을 확인한다. 역할을 생략하면 모든 직원에게 허용한다."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            staff = current_staff()
            if not staff:
                return jsonify({"error": "로그인이 필요합니다."}), 401
            if roles and staff.get("role") not in roles:
                return jsonify({"error": f"권한이 없습니다. 필요한 역할: {', '.join(roles)}"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


@auth_bp.post("/login")
def login_submit():
    payload = request.get_json(silent=True) or request.form
    username = str(payload.get("username", "")).strip()
    password = str(payload.get("password", "")).strip()
    account = _components()["staff_repo"].authenticate(username, password)
    if account is None:
        return jsonify({"error": "아이디 또는 비밀번호가 올바르지 않습니다."}), 401
    session[SESSION_KEY] = {"username": account.username, "name": account.name, "role": account.role}
    return jsonify({"status": "ok", "staff": account.to_public_dict()})


@auth_bp.post("/logout")
def logout():
    session.pop(SESSION_KEY, None)
    return jsonify({"status": "ok"})


@auth_bp.get("/me")
@require_roles()
def me():
    return jsonify({"staff": current_staff()})
