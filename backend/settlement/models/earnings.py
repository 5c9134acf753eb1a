"""
Settlement tables: sub-orders, seller earnings ledger and payouts

Amounts are BIGINT minor units. (parent_order_id, seller_id) is unique on
both sub_orders and seller_earnings so a retried split cannot duplicate rows.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, BigInteger, Date, DateTime, Text, Numeric, JSON,
    ForeignKey, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from settlement.core.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubOrder(Base):
    """
    Porción de una orden multi-vendedor que pertenece a un vendedor
    """
    __tablename__ = "sub_orders"
    __table_args__ = (
        UniqueConstraint("parent_order_id", "seller_id", name="uq_sub_orders_order_seller"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    parent_order_id = Column(String(64), nullable=False, index=True)
    seller_id = Column(String(64), nullable=False, index=True)

    # Items del vendedor al momento del split
    items = Column(JSON, nullable=False, default=list)

    # Montos (inmutables después de crear)
    subtotal = Column(BigInteger, nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    commission_amount = Column(BigInteger, nullable=False)
    seller_payout_amount = Column(BigInteger, nullable=False)

    # Estado de despacho (lo actualiza otro sistema)
    fulfillment_status = Column(String(30), nullable=False, default="pending")

    # Metadata
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow)

    earnings = relationship("SellerEarning", back_populates="sub_order")


class SellerEarning(Base):
    """
    Ledger de ganancias del vendedor - una fila por (orden, vendedor)
    """
    __tablename__ = "seller_earnings"
    __table_args__ = (
        UniqueConstraint("parent_order_id", "seller_id", name="uq_seller_earnings_order_seller"),
        CheckConstraint("net_amount >= 0", name="ck_seller_earnings_net_non_negative"),
        Index("ix_seller_earnings_seller_status", "seller_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    seller_id = Column(String(64), nullable=False, index=True)
    parent_order_id = Column(String(64), nullable=False, index=True)
    sub_order_id = Column(String(36), ForeignKey("sub_orders.id"), nullable=True, index=True)

    # Desglose
    gross_amount = Column(BigInteger, nullable=False)
    commission_amount = Column(BigInteger, nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    processing_fee = Column(BigInteger, nullable=False)
    platform_fee = Column(BigInteger, nullable=False, default=0)
    net_amount = Column(BigInteger, nullable=False)

    # Estado y periodo de retención
    status = Column(String(20), nullable=False, default="pending", index=True)
    available_date = Column(Date, nullable=False, index=True)
    payout_id = Column(String(36), ForeignKey("payouts.id"), nullable=True, index=True)

    # Metadata
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow)

    sub_order = relationship("SubOrder", back_populates="earnings")
    payout = relationship("Payout", back_populates="earnings")


class Payout(Base):
    """
    Solicitud de pago a un vendedor (agrupa varias ganancias)
    """
    __tablename__ = "payouts"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payouts_amount_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    seller_id = Column(String(64), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    method = Column(String(50), nullable=False)
    status = Column(String(30), nullable=False, index=True)

    # Ciclo de vida
    requested_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    approved_at = Column(DateTime(timezone=True))
    approved_by = Column(String(64))
    rejected_by = Column(String(64))
    processed_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    failed_at = Column(DateTime(timezone=True))
    failure_reason = Column(Text)

    # Notas
    account_details = Column(JSON)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    earnings = relationship("SellerEarning", back_populates="payout")
