"""Order number allocation: ORD-YYMMDD-NNN keyed by the Korean calendar day."""

import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date as date_cls, datetime, timedelta, timezone
from typing import Dict, Optional

from .errors import SequenceExhausted


KST = timezone(timedelta(hours=9), name="KST")
ORDER_NUMBER_PREFIX = "ORD"
MAX_DAILY_SEQUENCE = 999

_ORDER_NUMBER_RE = re.compile(r"^ORD-(\d{2})(\d{2})(\d{2})-(\d{3})$")


def to_kst(value: datetime) -> datetime:
    # naive datetimes are treated as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(KST)


def kst_date_key(value: Optional[datetime] = None) -> str:
    """Return the YYMMDD key of the KST calendar day containing ``value``."""
    kst = to_kst(value or datetime.now(timezone.utc))
    return kst.strftime("%y%m%d")


def generate_order_number(sequence: int, date: Optional[datetime] = None) -> str:
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise ValueError("sequence must be an integer")
    if sequence < 1:
        raise ValueError("sequence must be >= 1")
    date_key = kst_date_key(date)
    if sequence > MAX_DAILY_SEQUENCE:
        raise SequenceExhausted(date_key, MAX_DAILY_SEQUENCE)
    return f"{ORDER_NUMBER_PREFIX}-{date_key}-{sequence:03d}"


@dataclass(frozen=True)
class ParsedOrderNumber:
    year: int
    month: int
    day: int
    sequence: int
    date_key: str

    @property
    def order_date(self) -> date_cls:
        return date_cls(2000 + self.year, self.month, self.day)


def parse_order_number(value: str) -> Optional[ParsedOrderNumber]:
    if not value or not isinstance(value, str):
        return None
    m = _ORDER_NUMBER_RE.match(value)
    if not m:
        return None
    yy, mm, dd, seq = m.groups()
    return ParsedOrderNumber(
        year=int(yy),
        month=int(mm),
        day=int(dd),
        sequence=int(seq),
        date_key=f"{yy}{mm}{dd}",
    )


def is_valid_order_number(value: str) -> bool:
    parsed = parse_order_number(value)
    if parsed is None:
        return False
    if not 1 <= parsed.month <= 12:
        return False
    if not 1 <= parsed.day <= 31:
        return False
    return 1 <= parsed.sequence <= MAX_DAILY_SEQUENCE


class SequenceCounter(ABC):
    """Hands out the next per-day sequence number for a YYMMDD key."""

    @abstractmethod
    def next_sequence(self, date_key: str) -> int:
        """Return the next sequence for ``date_key``; raise SequenceExhausted past the limit."""


class InMemorySequenceCounter(SequenceCounter):
    """Process-local counter. Not durable and not unique across processes;
    production code allocates through the database instead."""

    def __init__(self) -> None:
        self._last: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next_sequence(self, date_key: str) -> int:
        with self._lock:
            nxt = self._last.get(date_key, 0) + 1
            if nxt > MAX_DAILY_SEQUENCE:
                raise SequenceExhausted(date_key, MAX_DAILY_SEQUENCE)
            self._last[date_key] = nxt
            return nxt

    def reset(self) -> None:
        with self._lock:
            self._last.clear()


default_counter = InMemorySequenceCounter()
