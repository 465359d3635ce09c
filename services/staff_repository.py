"""직원 계정(관리자, 주문 담당, 배송 담당)을 파일로 관리하는 저장소 모듈."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
from uuid import uuid4

from werkzeug.security import check_password_hash, generate_password_hash


ROLES = ("admin", "order_manager", "ship_manager")


@dataclass
class StaffAccount:
    """직원 한 명의 계정 정보."""

    staff_id: str
    username: str
    name: str
    role: str
    password_hash: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "staff_id": self.staff_id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "password_hash": self.password_hash,
        }

    def to_public_dict(self) -> Dict[str, str]:
        data = self.to_dict()
        data.pop("password_hash")
        return data


class StaffRepository:
    """staff.json 기반 직원 계정 저장소."""

    def __init__(self, data_file: Path) -> None:
        self._data_file = data_file

    def list_staff(self) -> List[StaffAccount]:
        return [StaffAccount(**item) for item in self._load()]

    def get_by_username(self, username: str) -> Optional[StaffAccount]:
        for account in self.list_staff():
            if account.username == username:
                return account
        return None

    def add_staff(self, *, username: str, password: str, role: str, name: str = "") -> StaffAccount:
        """직원 계정을 추가한다. 중복 아이디나 알 수 없는 역할은 거부한다."""

        if role not in ROLES:
            raise ValueError(f"알 수 없는 역할입니다: {role}")
        if not username or not password:
            raise ValueError("아이디와 비밀번호는 필수입니다.")
        if self.get_by_username(username) is not None:
            raise ValueError(f"이미 존재하는 아이디입니다: {username}")
        account = StaffAccount(
            staff_id=f"staff_{uuid4().hex}",
            username=username,
            name=name or username,
            role=role,
            password_hash=generate_password_hash(password),
        )
        data = self._load()
        data.append(account.to_dict())
        self._write(data)
        return account

    def authenticate(self, username: str, password: str) -> Optional[StaffAccount]:
        account = self.get_by_username(username)
        if account is None or not check_password_hash(account.password_hash, password):
            return None
        return account

    def ensure_admin(self, username: str, password: str) -> None:
        """계정이 하나도 없을 때 기본 관리자 계정을 만든다."""

        if not self._load():
            self.add_staff(username=username, password=password, role="admin", name="관리자")

    def _load(self) -> List[Dict[str, str]]:
        if not self._data_file.exists():
            return []
        text = self._data_file.read_text(encoding="utf-8")
        if not text.strip():
            return []
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError("직원 데이터 형식 오류입니다. staff.json 을 확인하세요.") from exc
        if not isinstance(payload, list):
            raise ValueError("직원 데이터가 배열 형식이 아닙니다.")
        normalized: List[Dict[str, str]] = []
        for item in payload:
            if not isinstance(item, dict) or item.get("role") not in ROLES:
                continue
            normalized.append(
                {
                    "staff_id": str(item.get("staff_id", f"staff_{uuid4().hex}")),
                    "username": str(item.get("username", "")),
                    "name": str(item.get("name", "")),
                    "role": str(item["role"]),
                    "password_hash": str(item.get("password_hash", "")),
                }
            )
        return normalized

    def _write(self, data: List[Dict[str, str]]) -> None:
        self._data_file.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data, ensure_ascii=False, indent=2)
        self._data_file.write_text(content + "\n", encoding="utf-8")
