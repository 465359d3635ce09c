from .exchange_rate_service import ExchangeRateService
from .order_service import DbSequenceCounter, OrderService

__all__ = ["DbSequenceCounter", "ExchangeRateService", "OrderService"]
