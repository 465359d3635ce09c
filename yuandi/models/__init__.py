from .base import Base
from .exchange_rate import ExchangeRateRecord
from .order import OrderRecord

__all__ = ["Base", "ExchangeRateRecord", "OrderRecord"]
