"""
Service Layer - settlement business logic

Author: TM3
Date: 2026-03-02
"""
from settlement.services.earnings_calculator import calculate_earnings, round_half_up
from settlement.services.commission_service import CommissionResolver
from settlement.services.earnings_ledger_service import EarningsLedgerService
from settlement.services.order_splitting_service import OrderSplittingService
from settlement.services.payout_scheduler import PayoutScheduler, BatchResult
from settlement.services.payout_service import PayoutService

__all__ = [
    'calculate_earnings',
    'round_half_up',
    'CommissionResolver',
    'EarningsLedgerService',
    'OrderSplittingService',
    'PayoutScheduler',
    'BatchResult',
    'PayoutService'
]
