import os
from dataclasses import dataclass
from pathlib import Path
import json
from typing import Optional

from dotenv import load_dotenv


@dataclass
class AppConfig:
    database_url: str
    secret_key: str
    log_level: str
    currency: str
    settlement_currency: str
    korea_exim_api_key: Optional[str]
    fixer_api_key: Optional[str]


SENSITIVE_KEYS = {"SECRET_KEY", "KOREA_EXIM_API_KEY", "FIXER_API_KEY"}


def validate_currency(value: Optional[str], default: str = "KRW") -> str:
    v = (value or default).strip().upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def _load_settings_file(path: Optional[Path] = None) -> dict:
    path = path or Path(__file__).resolve().parents[1] / "data" / "settings.json"
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"settings file is not valid JSON: {path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"settings file must hold an object: {path}")
    # secrets are never read from the shared settings file
    return {k: v for k, v in data.items() if k not in SENSITIVE_KEYS}


def load_env(settings_path: Optional[Path] = None) -> AppConfig:
    # data/settings.json first, then the environment (.env included)
    load_dotenv()
    s = _load_settings_file(settings_path)
    return AppConfig(
        database_url=os.getenv("DATABASE_URL", "sqlite:///data/app.db"),
        secret_key=os.getenv("SECRET_KEY", "dev_secret"),
        log_level=(s.get("LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").upper(),
        currency=validate_currency(s.get("CURRENCY") or os.getenv("CURRENCY"), "KRW"),
        settlement_currency=validate_currency(s.get("SETTLEMENT_CURRENCY") or os.getenv("SETTLEMENT_CURRENCY"), "CNY"),
        korea_exim_api_key=os.getenv("KOREA_EXIM_API_KEY") or None,
        fixer_api_key=os.getenv("FIXER_API_KEY") or None,
    )
