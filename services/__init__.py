"""YUANDI 웹 계층 전용 서비스 모듈 입구."""

from .staff_repository import ROLES, StaffAccount, StaffRepository

__all__ = [
    "ROLES",
    "StaffAccount",
    "StaffRepository",
]
