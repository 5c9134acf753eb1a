"""
Split result returned by the order splitting service

Author: TM3
Date: 2026-03-02
"""
from pydantic import BaseModel, Field
from typing import List

from settlement.domain.earnings import SubOrder, EarningsRecord


class SplitResult(BaseModel):
    """
    Outcome of splitting one order

    Fields:
        order_id: Parent order
        is_split: True when sub-orders were created (two or more sellers)
        already_settled: True when the order had been split before and the
            existing rows are returned unchanged
        sub_orders: One per seller for multi-seller orders, empty otherwise
        earnings: One ledger entry per seller
        skipped_product_ids: Line items left out because the catalog could
            not resolve their seller
    """

    order_id: str
    is_split: bool
    already_settled: bool = False
    sub_orders: List[SubOrder] = Field(default_factory=list)
    earnings: List[EarningsRecord] = Field(default_factory=list)
    skipped_product_ids: List[str] = Field(default_factory=list)

    @property
    def seller_count(self) -> int:
        return len({e.seller_id for e in self.earnings})

    @property
    def total_commission(self) -> int:
        return sum(e.commission_amount for e in self.earnings)

    @property
    def total_gross(self) -> int:
        return sum(e.gross_amount for e in self.earnings)
