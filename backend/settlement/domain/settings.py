"""
Runtime business configuration

Read once per operation from the database and passed explicitly into the
commission resolver and the payout scheduler.

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Dict
from decimal import Decimal


class CommissionSettings(BaseModel):
    """
    Active commission configuration

    Fields:
        default_rate: Platform-wide percentage
        category_rates: category_id -> percentage
        seller_custom_rates: seller_id -> percentage (wins over category)
    """

    default_rate: Decimal = Field(..., ge=0, le=100)
    category_rates: Dict[str, Decimal] = Field(default_factory=dict)
    seller_custom_rates: Dict[str, Decimal] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("category_rates", "seller_custom_rates")
    @classmethod
    def _rates_in_range(cls, rates: Dict[str, Decimal]) -> Dict[str, Decimal]:
        for key, rate in rates.items():
            if rate < 0 or rate > 100:
                raise ValueError(f"Commission rate for {key} must be between 0 and 100")
        return rates


class PayoutSettings(BaseModel):
    """Active payout configuration (amounts in minor units)"""

    holding_period_days: int = Field(7, ge=0)
    minimum_payout_amount: int = Field(2000, ge=0)
    maximum_payout_amount: int = Field(10000000, ge=0)
    auto_approve_threshold: int = Field(50000, ge=0)
    auto_payout_enabled: bool = False
    default_method: str = "auto_bank_transfer"

    model_config = ConfigDict(frozen=True)
