"""
CNY -> KRW exchange rate service.
Rates come from the Korea Eximbank open API (AP01), then Fixer.io, and are
stored per day; a stored rate is reused for up to seven days.
"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional, Tuple

import requests

from ..db.session import get_session
from ..domain.order_number import KST
from ..models.exchange_rate import ExchangeRateRecord
from .logging import log_event


KOREA_EXIM_URL = "https://oapi.koreaexim.go.kr/site/program/financial/exchangeJSON"
FIXER_URL = "http://data.fixer.io/api/latest"
DEFAULT_RATE = 178.50
CACHE_DAYS = 7

_EXIM_ERRORS = {
    2: "DATA code error",
    3: "authentication key error",
    4: "daily request limit reached",
}


def last_business_friday(today: date) -> date:
    """Most recent Friday on or before ``today``."""
    return today - timedelta(days=(today.weekday() - 4) % 7)


def latest_business_day(today: date) -> date:
    # weekends fall back to Friday
    if today.weekday() == 5:
        return today - timedelta(days=1)
    if today.weekday() == 6:
        return today - timedelta(days=2)
    return today


class ExchangeRateService:
    BASE = "CNY"
    TARGET = "KRW"

    def __init__(
        self,
        session_factory=get_session,
        *,
        exim_api_key: Optional[str] = None,
        fixer_api_key: Optional[str] = None,
        http: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self._session_factory = session_factory
        self.exim_api_key = exim_api_key
        self.fixer_api_key = fixer_api_key
        self._http = http or requests.Session()
        self._timeout = timeout
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _today() -> date:
        return datetime.now(KST).date()

    def fetch_from_korea_exim(self, search_date: Optional[str] = None) -> Optional[float]:
        if not self.exim_api_key:
            self.logger.error("KOREA_EXIM_API_KEY not configured")
            return None
        if not search_date:
            search_date = latest_business_day(self._today()).strftime("%Y%m%d")
        params = {"authkey": self.exim_api_key, "searchdate": search_date, "data": "AP01"}
        try:
            resp = self._http.get(KOREA_EXIM_URL, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            self.logger.error("Korea Exim request failed: %s", exc)
            return None
        if not resp.ok:
            self.logger.error("Korea Exim API error: HTTP %s", resp.status_code)
            return None
        try:
            data = resp.json()
        except ValueError:
            self.logger.error("Korea Exim API returned non-JSON body")
            return None
        if not isinstance(data, list) or not data:
            self.logger.error("Invalid response from Korea Exim API")
            return None
        result_code = data[0].get("result") if isinstance(data[0], dict) else None
        if result_code != 1:
            self.logger.error("Korea Exim API error: %s", _EXIM_ERRORS.get(result_code, "unknown error"))
            return None
        for row in data:
            if row.get("cur_unit") == "CNH" and row.get("deal_bas_r"):
                try:
                    return float(str(row["deal_bas_r"]).replace(",", ""))
                except ValueError:
                    self.logger.error("Unparsable CNH rate: %r", row["deal_bas_r"])
                    return None
        self.logger.warning("CNH rate not found in response")
        return None

    def fetch_from_fixer(self) -> Optional[float]:
        if not self.fixer_api_key:
            return None
        params = {"access_key": self.fixer_api_key, "base": self.BASE, "symbols": self.TARGET}
        try:
            resp = self._http.get(FIXER_URL, params=params, timeout=self._timeout)
            if not resp.ok:
                return None
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            self.logger.error("Fixer request failed: %s", exc)
            return None
        rate = (data.get("rates") or {}).get(self.TARGET) if data.get("success") else None
        return float(rate) if rate else None

    def _latest_stored(self, session, since: Optional[date] = None, until: Optional[date] = None) -> Optional[ExchangeRateRecord]:
        q = session.query(ExchangeRateRecord).filter(
            ExchangeRateRecord.base_currency == self.BASE,
            ExchangeRateRecord.target_currency == self.TARGET,
            ExchangeRateRecord.is_active.is_(True),
        )
        if since is not None:
            q = q.filter(ExchangeRateRecord.date >= since)
        if until is not None:
            q = q.filter(ExchangeRateRecord.date <= until)
        return q.order_by(ExchangeRateRecord.date.desc()).first()

    def _upsert(self, session, day: date, rate: float, source: str) -> None:
        rec = (
            session.query(ExchangeRateRecord)
            .filter(
                ExchangeRateRecord.date == day,
                ExchangeRateRecord.base_currency == self.BASE,
                ExchangeRateRecord.target_currency == self.TARGET,
            )
            .first()
        )
        if rec is None:
            rec = ExchangeRateRecord(date=day, base_currency=self.BASE, target_currency=self.TARGET)
            session.add(rec)
        rec.rate = Decimal(str(rate))
        rec.source = source
        rec.is_active = True
        session.flush()

    def get_current_rate(self) -> float:
        """Stored rate from the last seven days, else the bank API, else the default."""
        today = self._today()
        with self._session_factory() as session:
            cached = self._latest_stored(session, since=today - timedelta(days=CACHE_DAYS))
            if cached is not None:
                return float(cached.rate)
            friday = last_business_friday(today)
            rate = self.fetch_from_korea_exim(friday.strftime("%Y%m%d"))
            if rate:
                self._upsert(session, friday, rate, "api_bank")
                log_event("info", "exchange_rate.fetched", rate=rate, source="api_bank", date=friday.isoformat())
                return rate
        log_event("warning", "exchange_rate.default_used", rate=DEFAULT_RATE)
        return DEFAULT_RATE

    def get_rate_by_date(self, day: date) -> float:
        """Rate stored for ``day`` or the nearest earlier one."""
        with self._session_factory() as session:
            rec = self._latest_stored(session, until=day)
            return float(rec.rate) if rec is not None else DEFAULT_RATE

    def update_weekly_rate(self) -> Tuple[float, str]:
        """Refresh today's rate from last Friday's data: bank API, forex API, last stored, default."""
        today = self._today()
        friday = last_business_friday(today)
        rate = self.fetch_from_korea_exim(friday.strftime("%Y%m%d"))
        source = "api_bank"
        if not rate:
            rate = self.fetch_from_fixer()
            source = "api_forex"
        with self._session_factory() as session:
            if not rate:
                last = self._latest_stored(session)
                if last is not None:
                    rate, source = float(last.rate), "cached"
                else:
                    rate, source = DEFAULT_RATE, "default"
            self._upsert(session, today, rate, source)
        log_event("info", "exchange_rate.updated", rate=rate, source=source, date=today.isoformat())
        return rate, source

    def snapshot(self) -> Dict:
        rate = self.get_current_rate()
        return {
            "base_currency": self.BASE,
            "target_currency": self.TARGET,
            "rate": rate,
            "inverse": round(1 / rate, 6),
        }
