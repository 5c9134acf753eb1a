"""
Earnings Repository - Data Access Layer for the seller earnings ledger

All ledger queries live here, including the payout eligibility predicate
and the conditional updates that claim rows for a payout.

Author: TM3
Date: 2026-03-02
"""
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from settlement.domain.earnings import EarningsBreakdown, EarningsRecord, EarningsStatus
from settlement.models.earnings import SellerEarning


def eligibility_clause(today: date):
    """
    status = 'available'  OR  (status = 'pending' AND available_date <= today),
    and not yet attached to a payout
    """
    return and_(
        SellerEarning.payout_id.is_(None),
        or_(
            SellerEarning.status == EarningsStatus.AVAILABLE.value,
            and_(
                SellerEarning.status == EarningsStatus.PENDING.value,
                SellerEarning.available_date <= today,
            ),
        ),
    )


class EarningsRepository:
    """
    Repository for seller earnings

    Works inside the caller's session; never commits.
    Returns EarningsRecord domain models.
    """

    def __init__(self, session: Session):
        self.session = session

    def _applied(self, result) -> int:
        # Bulk UPDATEs bypass the identity map
        rowcount = result.rowcount
        self.session.expire_all()
        return rowcount

    # =========================================================================
    # Writes
    # =========================================================================

    def create(
        self,
        order_id: str,
        seller_id: str,
        breakdown: EarningsBreakdown,
        available_date: date,
        sub_order_id: Optional[str] = None,
    ) -> EarningsRecord:
        """
        Insert a new ledger entry in 'pending'

        Args:
            order_id: Parent order ID
            seller_id: Seller credited
            breakdown: Fee/earnings breakdown for the seller's share
            available_date: End of the holding period
            sub_order_id: Sub-order (None for single-seller orders)

        Returns:
            The created EarningsRecord
        """
        row = SellerEarning(
            seller_id=seller_id,
            parent_order_id=order_id,
            sub_order_id=sub_order_id,
            gross_amount=breakdown.gross_amount,
            commission_amount=breakdown.commission_amount,
            commission_rate=breakdown.commission_rate,
            processing_fee=breakdown.processing_fee,
            platform_fee=breakdown.platform_fee,
            net_amount=breakdown.net_amount,
            status=EarningsStatus.PENDING.value,
            available_date=available_date,
        )
        self.session.add(row)
        self.session.flush()
        return EarningsRecord.model_validate(row)

    def transition(
        self,
        record_ids: Sequence[str],
        from_statuses: Sequence[EarningsStatus],
        target: EarningsStatus,
    ) -> int:
        """
        Move records to `target` only if they are still in one of `from_statuses`

        Returns:
            Number of rows actually updated
        """
        if not record_ids:
            return 0

        result = self.session.execute(
            update(SellerEarning)
            .where(
                SellerEarning.id.in_(list(record_ids)),
                SellerEarning.status.in_([s.value for s in from_statuses]),
            )
            .values(status=target.value)
            .execution_options(synchronize_session=False)
        )
        return self._applied(result)

    def claim(self, record_ids: Sequence[str], payout_id: str, today: date) -> int:
        """
        Atomically flip eligible rows to 'processing' and attach the payout

        Rows that another run already claimed (or that stopped being
        eligible) are not touched; the caller compares the returned count
        with len(record_ids) to detect the race.
        """
        if not record_ids:
            return 0

        result = self.session.execute(
            update(SellerEarning)
            .where(SellerEarning.id.in_(list(record_ids)), eligibility_clause(today))
            .values(status=EarningsStatus.PROCESSING.value, payout_id=payout_id)
            .execution_options(synchronize_session=False)
        )
        return self._applied(result)

    def release_payout(self, payout_id: str) -> int:
        """Detach earnings from a rejected/failed payout and make them available again"""
        result = self.session.execute(
            update(SellerEarning)
            .where(
                SellerEarning.payout_id == payout_id,
                SellerEarning.status == EarningsStatus.PROCESSING.value,
            )
            .values(status=EarningsStatus.AVAILABLE.value, payout_id=None)
            .execution_options(synchronize_session=False)
        )
        return self._applied(result)

    def mark_payout_paid(self, payout_id: str) -> int:
        """Earnings of a completed payout become 'paid'"""
        result = self.session.execute(
            update(SellerEarning)
            .where(
                SellerEarning.payout_id == payout_id,
                SellerEarning.status == EarningsStatus.PROCESSING.value,
            )
            .values(status=EarningsStatus.PAID.value)
            .execution_options(synchronize_session=False)
        )
        return self._applied(result)

    def promote_matured(self, today: date) -> int:
        """Explicitly flip pending rows past their holding period to 'available'"""
        result = self.session.execute(
            update(SellerEarning)
            .where(
                SellerEarning.status == EarningsStatus.PENDING.value,
                SellerEarning.payout_id.is_(None),
                SellerEarning.available_date <= today,
            )
            .values(status=EarningsStatus.AVAILABLE.value)
            .execution_options(synchronize_session=False)
        )
        return self._applied(result)

    # =========================================================================
    # Reads
    # =========================================================================

    def find_by_id(self, record_id: str) -> Optional[EarningsRecord]:
        row = self.session.get(SellerEarning, record_id)
        return EarningsRecord.model_validate(row) if row else None

    def find_by_order(self, order_id: str) -> List[EarningsRecord]:
        rows = self.session.scalars(
            select(SellerEarning)
            .where(SellerEarning.parent_order_id == order_id)
            .order_by(SellerEarning.created_at, SellerEarning.seller_id)
        ).all()
        return [EarningsRecord.model_validate(r) for r in rows]

    def find_by_sub_order(self, sub_order_id: str) -> List[EarningsRecord]:
        rows = self.session.scalars(
            select(SellerEarning).where(SellerEarning.sub_order_id == sub_order_id)
        ).all()
        return [EarningsRecord.model_validate(r) for r in rows]

    def find_by_order_and_seller(self, order_id: str, seller_id: str) -> Optional[EarningsRecord]:
        row = self.session.scalars(
            select(SellerEarning).where(
                SellerEarning.parent_order_id == order_id,
                SellerEarning.seller_id == seller_id,
            )
        ).first()
        return EarningsRecord.model_validate(row) if row else None

    def find_by_payout(self, payout_id: str) -> List[EarningsRecord]:
        rows = self.session.scalars(
            select(SellerEarning)
            .where(SellerEarning.payout_id == payout_id)
            .order_by(SellerEarning.available_date, SellerEarning.created_at)
        ).all()
        return [EarningsRecord.model_validate(r) for r in rows]

    def find_by_seller(
        self,
        seller_id: str,
        status: Optional[EarningsStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[EarningsRecord]:
        """
        Find a seller's ledger entries, newest first

        Args:
            seller_id: Seller
            status: Optional status filter
            limit: Maximum results (None = all)
            offset: Number of results to skip
        """
        query = select(SellerEarning).where(SellerEarning.seller_id == seller_id)
        if status is not None:
            query = query.where(SellerEarning.status == status.value)
        query = query.order_by(SellerEarning.created_at.desc(), SellerEarning.id).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return [EarningsRecord.model_validate(r) for r in self.session.scalars(query).all()]

    def find_eligible(
        self,
        today: date,
        seller_id: Optional[str] = None,
        lock: bool = False,
    ) -> List[EarningsRecord]:
        """
        Find payout-eligible earnings, oldest first

        Args:
            today: Reference date for the holding period
            seller_id: Restrict to one seller
            lock: SELECT ... FOR UPDATE SKIP LOCKED (ignored by sqlite)
        """
        query = select(SellerEarning).where(eligibility_clause(today))
        if seller_id is not None:
            query = query.where(SellerEarning.seller_id == seller_id)
        query = query.order_by(SellerEarning.available_date, SellerEarning.created_at, SellerEarning.id)
        if lock:
            query = query.with_for_update(skip_locked=True)

        return [EarningsRecord.model_validate(r) for r in self.session.scalars(query).all()]

    def eligible_totals_by_seller(self, today: date) -> List[Tuple[str, int]]:
        """
        Sum eligible net_amount per seller

        Returns:
            List of (seller_id, total) ordered by seller_id
        """
        rows = self.session.execute(
            select(SellerEarning.seller_id, func.sum(SellerEarning.net_amount))
            .where(eligibility_clause(today))
            .group_by(SellerEarning.seller_id)
            .order_by(SellerEarning.seller_id)
        ).all()
        return [(seller_id, int(total or 0)) for seller_id, total in rows]
