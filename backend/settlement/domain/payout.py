"""
Payout Domain Models

A payout batches one seller's eligible earnings into a single disbursement
request. The amount is fixed at creation; corrections need a new payout.

Author: TM3
Date: 2026-03-02
"""
import enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class PayoutStatus(str, enum.Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


VALID_PAYOUT_METHODS = ("bank_transfer", "paypal", "stripe_connect", "auto_bank_transfer")


class Payout(BaseModel):
    """
    Payout domain model

    Fields:
        id: Payout ID
        seller_id: Receiving seller
        amount: Sum of attached earnings net amounts (minor units)
        method: Disbursement method
        status: Current payout status
        requested_at / approved_at / processed_at / completed_at / failed_at: lifecycle timestamps
        failure_reason: Why the payout was rejected or failed
    """

    id: str
    seller_id: str
    amount: int = Field(..., ge=0)
    method: str
    status: PayoutStatus
    requested_at: datetime
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejected_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
