"""
Earnings Domain Models

Ledger entries for seller proceeds, the sub-orders they belong to and the
per-seller summaries shown on dashboards.

Author: TM3
Date: 2026-03-02
"""
import enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from settlement.domain.order import OrderLineItem


class EarningsStatus(str, enum.Enum):
    """Ledger states; only ever move forward except on payout failure"""
    PENDING = "pending"
    PROCESSING = "processing"
    AVAILABLE = "available"
    PAID = "paid"


class FulfillmentStatus(str, enum.Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class EarningsBreakdown(BaseModel):
    """
    Fee/earnings split for one seller's share of an order

    Invariant: net_amount == max(0, gross - commission - processing_fee - platform_fee)
    """

    gross_amount: int = Field(..., ge=0)
    commission_rate: Decimal = Field(..., description="Percentage, two decimals", ge=0, le=100)
    commission_amount: int = Field(..., ge=0)
    processing_fee: int = Field(..., ge=0)
    platform_fee: int = Field(0, ge=0)
    net_amount: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


class SubOrder(BaseModel):
    """
    Sub-order domain model - one seller's part of a multi-seller order

    Fields:
        id: Sub-order ID
        parent_order_id: Parent order
        seller_id: Seller fulfilling these items
        items: Line items belonging to the seller
        subtotal: Sum of price x quantity (immutable after creation)
        commission_rate / commission_amount / seller_payout_amount: copied from the breakdown
        fulfillment_status: Independent of payout status
    """

    id: str
    parent_order_id: str
    seller_id: str
    items: List[OrderLineItem] = Field(default_factory=list)
    subtotal: int = Field(..., ge=0)
    commission_rate: Decimal
    commission_amount: int
    seller_payout_amount: int
    fulfillment_status: str = FulfillmentStatus.PENDING.value
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def item_count(self) -> int:
        return len(self.items)


class EarningsRecord(BaseModel):
    """
    Earnings ledger entry - one seller's net proceeds from one order

    sub_order_id is None for single-seller orders.
    """

    id: str
    seller_id: str
    parent_order_id: str
    sub_order_id: Optional[str] = None
    gross_amount: int
    commission_amount: int
    commission_rate: Decimal
    processing_fee: int
    platform_fee: int = 0
    net_amount: int = Field(..., ge=0)
    status: EarningsStatus
    available_date: date
    payout_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def is_eligible(self, today: date) -> bool:
        """
        Eligible for payout: explicitly available, or still pending but past
        its holding period. Records already attached to a payout never are.
        """
        if self.payout_id is not None:
            return False
        if self.status == EarningsStatus.AVAILABLE:
            return True
        return self.status == EarningsStatus.PENDING and self.available_date <= today

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["commission_rate"] = float(self.commission_rate)
        return data


class SellerEarningsSummary(BaseModel):
    """Per-seller balances derived from the ledger (minor units)"""

    seller_id: str
    total_earnings: int = 0
    total_commission: int = 0
    available_balance: int = 0
    pending_balance: int = 0
    paid_balance: int = 0
    order_count: int = 0
