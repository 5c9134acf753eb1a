"""
Earnings Calculator - fee/earnings breakdown for one seller's share

Pure functions, no I/O. Amounts are integer minor units; percentages are
Decimals and every rounding step is ROUND_HALF_UP at the minor-unit boundary.

    commission     = round(gross * rate / 100)
    processing_fee = round(gross * 2.9 / 100) + 30
    net            = max(0, gross - commission - processing_fee - platform_fee)

Author: TM3
Date: 2026-03-02
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from settlement.core.config import settings
from settlement.domain.earnings import EarningsBreakdown

RATE_QUANTUM = Decimal("0.01")


def round_half_up(value: Decimal) -> int:
    """Round a Decimal amount to the nearest minor unit, halves away from zero"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_processing_fee(
    gross_amount: int,
    percent: Optional[Decimal] = None,
    fixed: Optional[int] = None,
) -> int:
    """Card-processor style fee: percentage of gross plus a flat amount"""
    percent = settings.PROCESSING_FEE_PERCENT if percent is None else percent
    fixed = settings.PROCESSING_FEE_FIXED if fixed is None else fixed
    return round_half_up(Decimal(gross_amount) * percent / Decimal(100)) + fixed


def calculate_earnings(
    gross_amount: int,
    commission_rate: Union[Decimal, int, str],
    platform_fee: int = 0,
    processing_fee_percent: Optional[Decimal] = None,
    processing_fee_fixed: Optional[int] = None,
) -> EarningsBreakdown:
    """
    Compute the fee/earnings breakdown for a gross amount

    Args:
        gross_amount: Seller's gross share (minor units)
        commission_rate: Percentage 0-100 (two decimals)
        platform_fee: Extra platform fee (minor units, default 0)
        processing_fee_percent: Override of the configured percentage
        processing_fee_fixed: Override of the configured flat fee

    Returns:
        EarningsBreakdown with net_amount clamped at zero

    Raises:
        ValueError: If gross_amount or platform_fee is negative
    """
    if gross_amount < 0:
        raise ValueError(f"gross_amount must be >= 0, got {gross_amount}")
    if platform_fee < 0:
        raise ValueError(f"platform_fee must be >= 0, got {platform_fee}")

    rate = Decimal(str(commission_rate)).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)

    commission_amount = round_half_up(Decimal(gross_amount) * rate / Decimal(100))
    processing_fee = calculate_processing_fee(gross_amount, processing_fee_percent, processing_fee_fixed)
    net_amount = max(0, gross_amount - commission_amount - processing_fee - platform_fee)

    return EarningsBreakdown(
        gross_amount=gross_amount,
        commission_rate=rate,
        commission_amount=commission_amount,
        processing_fee=processing_fee,
        platform_fee=platform_fee,
        net_amount=net_amount,
    )
