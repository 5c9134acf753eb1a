"""
Domain Layer - Settlement Entities

Pydantic models shared by repositories, services and the API.

Author: TM3
Date: 2026-03-02
"""
from settlement.domain.order import Order, OrderLineItem, ProductInfo
from settlement.domain.earnings import (
    EarningsBreakdown,
    EarningsRecord,
    EarningsStatus,
    FulfillmentStatus,
    SellerEarningsSummary,
    SubOrder,
)
from settlement.domain.payout import Payout, PayoutStatus, VALID_PAYOUT_METHODS
from settlement.domain.settings import CommissionSettings, PayoutSettings
from settlement.domain.split import SplitResult

__all__ = [
    'Order', 'OrderLineItem', 'ProductInfo',
    'EarningsBreakdown', 'EarningsRecord', 'EarningsStatus', 'FulfillmentStatus',
    'SellerEarningsSummary', 'SubOrder',
    'Payout', 'PayoutStatus', 'VALID_PAYOUT_METHODS',
    'CommissionSettings', 'PayoutSettings',
    'SplitResult',
]
