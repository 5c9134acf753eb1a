"""
Sub-Order Repository - Data Access Layer for per-seller sub-orders

Author: TM3
Date: 2026-03-02
"""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from settlement.domain.earnings import SubOrder
from settlement.domain.order import OrderLineItem
from settlement.models.earnings import SubOrder as SubOrderRow


class SubOrderRepository:
    """
    Repository for SubOrder data access

    Works inside the caller's session; never commits.
    """

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        order_id: str,
        seller_id: str,
        items: List[OrderLineItem],
        subtotal: int,
        commission_rate: Decimal,
        commission_amount: int,
        seller_payout_amount: int,
    ) -> SubOrder:
        """
        Insert one seller's sub-order

        Args:
            order_id: Parent order ID
            seller_id: Seller fulfilling the items
            items: Seller's line items (stored as JSON)
            subtotal: Sum of price x quantity
            commission_rate: Resolved rate used for the breakdown
            commission_amount: Commission deducted
            seller_payout_amount: Net amount credited to the seller

        Returns:
            The created SubOrder
        """
        row = SubOrderRow(
            parent_order_id=order_id,
            seller_id=seller_id,
            items=[item.model_dump(mode="json") for item in items],
            subtotal=subtotal,
            commission_rate=commission_rate,
            commission_amount=commission_amount,
            seller_payout_amount=seller_payout_amount,
        )
        self.session.add(row)
        self.session.flush()
        return SubOrder.model_validate(row)

    def find_by_id(self, sub_order_id: str) -> Optional[SubOrder]:
        row = self.session.get(SubOrderRow, sub_order_id)
        return SubOrder.model_validate(row) if row else None

    def find_by_order(self, order_id: str) -> List[SubOrder]:
        """All sub-orders of a parent order, ordered by seller"""
        rows = self.session.scalars(
            select(SubOrderRow)
            .where(SubOrderRow.parent_order_id == order_id)
            .order_by(SubOrderRow.seller_id)
        ).all()
        return [SubOrder.model_validate(r) for r in rows]
