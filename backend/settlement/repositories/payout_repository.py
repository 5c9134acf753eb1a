"""
Payout Repository - Data Access Layer for seller payouts

Author: TM3
Date: 2026-03-02
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from settlement.domain.payout import Payout, PayoutStatus
from settlement.models.earnings import Payout as PayoutRow


class PayoutRepository:
    """
    Repository for Payout data access

    Status changes go through transition(), which only updates the row if
    it is still in one of the expected states.
    """

    def __init__(self, session: Session):
        self.session = session

    def _applied(self, result) -> int:
        # Bulk UPDATEs bypass the identity map
        rowcount = result.rowcount
        self.session.expire_all()
        return rowcount

    def create(
        self,
        seller_id: str,
        amount: int,
        method: str,
        status: PayoutStatus,
        account_details: Optional[Dict[str, Any]] = None,
        notes: Optional[str] = None,
        approved_at: Optional[datetime] = None,
        approved_by: Optional[str] = None,
    ) -> Payout:
        row = PayoutRow(
            seller_id=seller_id,
            amount=amount,
            method=method,
            status=status.value,
            approved_at=approved_at,
            approved_by=approved_by,
            account_details=account_details,
            notes=notes,
        )
        self.session.add(row)
        self.session.flush()
        return Payout.model_validate(row)

    def find_by_id(self, payout_id: str) -> Optional[Payout]:
        row = self.session.get(PayoutRow, payout_id)
        return Payout.model_validate(row) if row else None

    def find_all(
        self,
        seller_id: Optional[str] = None,
        status: Optional[PayoutStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Payout]:
        """
        List payouts, newest first

        Args:
            seller_id: Filter by seller
            status: Filter by status
            limit: Maximum results
            offset: Number of results to skip
        """
        query = select(PayoutRow)
        if seller_id:
            query = query.where(PayoutRow.seller_id == seller_id)
        if status is not None:
            query = query.where(PayoutRow.status == status.value)
        query = query.order_by(PayoutRow.requested_at.desc(), PayoutRow.id).limit(limit).offset(offset)

        return [Payout.model_validate(r) for r in self.session.scalars(query).all()]

    def transition(
        self,
        payout_id: str,
        from_statuses: Sequence[PayoutStatus],
        target: PayoutStatus,
        **fields: Any,
    ) -> bool:
        """
        Conditionally move a payout to `target` and set lifecycle fields

        Returns:
            True if the row was updated, False if it was no longer in one
            of `from_statuses`
        """
        result = self.session.execute(
            update(PayoutRow)
            .where(
                PayoutRow.id == payout_id,
                PayoutRow.status.in_([s.value for s in from_statuses]),
            )
            .values(status=target.value, **fields)
            .execution_options(synchronize_session=False)
        )
        return self._applied(result) == 1
