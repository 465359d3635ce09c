from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String, UniqueConstraint, func
from .base import Base


class ExchangeRateRecord(Base):
    __tablename__ = "exchange_rate"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    base_currency = Column(String(3), nullable=False)
    target_currency = Column(String(3), nullable=False)
    rate = Column(Numeric(12, 4), nullable=False)
    source = Column(String(32), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("date", "base_currency", "target_currency", name="uq_exchange_rate_day"),)
