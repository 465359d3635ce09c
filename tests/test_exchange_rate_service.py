from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from yuandi.models.exchange_rate import ExchangeRateRecord
from yuandi.services.exchange_rate_service import (
    DEFAULT_RATE,
    FIXER_URL,
    KOREA_EXIM_URL,
    ExchangeRateService,
    last_business_friday,
    latest_business_day,
)


def _response(payload, ok=True, status_code=200):
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status_code
    resp.json.return_value = payload
    return resp


EXIM_OK = [
    {"result": 1, "cur_unit": "USD", "deal_bas_r": "1,320.5"},
    {"result": 1, "cur_unit": "CNH", "ttb": "180.50", "tts": "181.20", "deal_bas_r": "180.85"},
]


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def service(session_factory, http):
    svc = ExchangeRateService(session_factory, exim_api_key="test-api-key", fixer_api_key="fixer-key", http=http)
    # Sunday 2024-01-07 (KST)
    svc._today = lambda: date(2024, 1, 7)
    return svc


def _store(session_factory, day, rate, source="api_bank"):
    with session_factory() as session:
        session.add(
            ExchangeRateRecord(date=day, base_currency="CNY", target_currency="KRW", rate=Decimal(str(rate)), source=source, is_active=True)
        )


def test_business_day_helpers():
    assert last_business_friday(date(2024, 1, 7)) == date(2024, 1, 5)
    assert last_business_friday(date(2024, 1, 5)) == date(2024, 1, 5)
    assert last_business_friday(date(2024, 1, 8)) == date(2024, 1, 5)
    assert latest_business_day(date(2024, 1, 6)) == date(2024, 1, 5)
    assert latest_business_day(date(2024, 1, 7)) == date(2024, 1, 5)
    assert latest_business_day(date(2024, 1, 8)) == date(2024, 1, 8)


def test_fetch_from_korea_exim(service, http):
    http.get.return_value = _response(EXIM_OK)
    assert service.fetch_from_korea_exim("20240101") == 180.85
    http.get.assert_called_once_with(
        KOREA_EXIM_URL,
        params={"authkey": "test-api-key", "searchdate": "20240101", "data": "AP01"},
        timeout=10.0,
    )


def test_fetch_from_korea_exim_defaults_to_last_business_day(service, http):
    http.get.return_value = _response(EXIM_OK)
    service.fetch_from_korea_exim()
    assert http.get.call_args.kwargs["params"]["searchdate"] == "20240105"


def test_fetch_without_api_key(session_factory, http):
    svc = ExchangeRateService(session_factory, http=http)
    assert svc.fetch_from_korea_exim() is None
    http.get.assert_not_called()


@pytest.mark.parametrize(
    "payload,ok",
    [
        ([{"result": 3}], True),
        ([], True),
        ({"unexpected": True}, True),
        ([{"result": 1, "cur_unit": "USD", "deal_bas_r": "1,300"}], True),
        (EXIM_OK, False),
    ],
)
def test_fetch_from_korea_exim_failures(service, http, payload, ok):
    http.get.return_value = _response(payload, ok=ok, status_code=200 if ok else 500)
    assert service.fetch_from_korea_exim("20240101") is None


def test_fetch_from_korea_exim_network_error(service, http):
    http.get.side_effect = requests.ConnectionError("down")
    assert service.fetch_from_korea_exim("20240101") is None


def test_fetch_from_fixer(service, http):
    http.get.return_value = _response({"success": True, "rates": {"KRW": 182.1}})
    assert service.fetch_from_fixer() == 182.1
    assert http.get.call_args.args[0] == FIXER_URL
    http.get.return_value = _response({"success": False})
    assert service.fetch_from_fixer() is None


def test_current_rate_uses_recent_cache(service, http, session_factory):
    _store(session_factory, date(2024, 1, 5), 179.25)
    assert service.get_current_rate() == 179.25
    http.get.assert_not_called()


def test_current_rate_ignores_stale_cache(service, http, session_factory):
    _store(session_factory, date(2023, 12, 20), 175.00)
    http.get.return_value = _response(EXIM_OK)
    assert service.get_current_rate() == 180.85
    assert http.get.call_args.kwargs["params"]["searchdate"] == "20240105"
    with session_factory() as session:
        stored = session.query(ExchangeRateRecord).filter(ExchangeRateRecord.date == date(2024, 1, 5)).one()
        assert stored.source == "api_bank"


def test_current_rate_falls_back_to_default(service, http):
    http.get.return_value = _response([], ok=False, status_code=503)
    assert service.get_current_rate() == DEFAULT_RATE


def test_rate_by_date_uses_nearest_earlier(service, session_factory):
    _store(session_factory, date(2024, 1, 1), 178.0)
    _store(session_factory, date(2024, 1, 5), 180.0)
    assert service.get_rate_by_date(date(2024, 1, 5)) == 180.0
    assert service.get_rate_by_date(date(2024, 1, 3)) == 178.0
    assert service.get_rate_by_date(date(2023, 1, 1)) == DEFAULT_RATE


def test_update_weekly_rate_prefers_bank(service, http, session_factory):
    http.get.return_value = _response(EXIM_OK)
    assert service.update_weekly_rate() == (180.85, "api_bank")
    with session_factory() as session:
        stored = session.query(ExchangeRateRecord).one()
        assert stored.date == date(2024, 1, 7)


def test_update_weekly_rate_uses_forex_then_cache_then_default(service, http, session_factory):
    http.get.side_effect = [_response([{"result": 4}]), _response({"success": True, "rates": {"KRW": 181.0}})]
    assert service.update_weekly_rate() == (181.0, "api_forex")

    http.get.side_effect = [_response([{"result": 4}]), _response({"success": False})]
    assert service.update_weekly_rate() == (181.0, "cached")


def test_update_weekly_rate_default_when_nothing_known(service, http):
    http.get.side_effect = requests.Timeout("slow")
    assert service.update_weekly_rate() == (DEFAULT_RATE, "default")


def test_snapshot(service, session_factory):
    _store(session_factory, date(2024, 1, 5), 200.0)
    snap = service.snapshot()
    assert snap == {"base_currency": "CNY", "target_currency": "KRW", "rate": 200.0, "inverse": 0.005}
