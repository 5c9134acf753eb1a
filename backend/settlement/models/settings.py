"""
Admin-managed configuration rows (one active row per table)
"""
from sqlalchemy import Column, Integer, BigInteger, Boolean, String, DateTime, Numeric, JSON
from sqlalchemy.sql import func

from settlement.core.database import Base


class CommissionSetting(Base):
    """
    Tasas de comisión: default, por categoría y por vendedor
    """
    __tablename__ = "commission_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    default_rate = Column(Numeric(5, 2), nullable=False)
    # {category_id: "12.50"} / {seller_id: "10.00"} (strings keep two decimals exact)
    category_rates = Column(JSON, nullable=False, default=dict)
    seller_custom_rates = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PayoutSetting(Base):
    """
    Parámetros de pagos: retención, mínimos y auto-aprobación
    """
    __tablename__ = "payout_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    holding_period_days = Column(Integer, nullable=False, default=7)
    minimum_payout_amount = Column(BigInteger, nullable=False, default=2000)
    maximum_payout_amount = Column(BigInteger, nullable=False, default=10000000)
    auto_approve_threshold = Column(BigInteger, nullable=False, default=50000)
    auto_payout_enabled = Column(Boolean, nullable=False, default=False)
    default_method = Column(String(50), nullable=False, default="auto_bank_transfer")
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
