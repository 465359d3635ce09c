"""Personal Customs Clearance Code (개인통관고유부호) helpers."""

import re
from typing import Optional


PCCC_RE = re.compile(r"^P\d{12}$")
_STRIP_RE = re.compile(r"[\s\-_]")


def is_valid_pccc(value: Optional[str]) -> bool:
    return bool(value) and isinstance(value, str) and PCCC_RE.match(value) is not None


def normalize_pccc(value: Optional[str]) -> Optional[str]:
    """Return the canonical ``P`` + 12 digits form, or None if it cannot be made valid."""
    if not value or not isinstance(value, str):
        return None
    cleaned = _STRIP_RE.sub("", value).upper()
    if not cleaned.startswith("P") and re.fullmatch(r"\d{12}", cleaned):
        cleaned = "P" + cleaned
    return cleaned if PCCC_RE.match(cleaned) else None


def mask_pccc(value: Optional[str], show_last: int = 4) -> str:
    normalized = normalize_pccc(value)
    if not normalized:
        return ""
    mask_len = 12 - show_last
    if mask_len <= 0:
        return normalized
    masked = "P" + "*" * mask_len + normalized[-show_last:]
    if show_last == 4:
        return f"P-{masked[1:5]}-{masked[5:9]}-{masked[9:]}"
    return masked
