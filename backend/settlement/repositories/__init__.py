"""
Repository Layer - Data Access

Repositories run inside a caller-owned session (see core.database.session_scope)
and return domain models. They never commit.

Author: TM3
Date: 2026-03-02
"""
from settlement.repositories.earnings_repository import EarningsRepository
from settlement.repositories.sub_order_repository import SubOrderRepository
from settlement.repositories.payout_repository import PayoutRepository
from settlement.repositories.config_repository import ConfigRepository

__all__ = [
    'EarningsRepository',
    'SubOrderRepository',
    'PayoutRepository',
    'ConfigRepository'
]
