from sqlalchemy import Column, DateTime, Index, JSON, Numeric, String, Text, func
from .base import Base


class OrderRecord(Base):
    __tablename__ = "order"

    id = Column(String(36), primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)
    status = Column(String(16), nullable=False)
    customer_name = Column(String(128), nullable=False)
    customer_phone = Column(String(32), nullable=False)
    pccc = Column(String(13), nullable=False)
    shipping_address = Column(Text, nullable=False)
    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)
    courier_company = Column(String(64), nullable=True)
    tracking_number = Column(String(64), nullable=True)
    tracking_photo_url = Column(String(512), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    refund_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_order_customer_name", "customer_name"),)
