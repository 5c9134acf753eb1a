"""
Earnings Ledger Service - state machine and read models for seller earnings

State machine (forward only):

    pending ──> available ──> processing ──> paid
       └──────────────────────────┘
                (payout claim)

- Eligibility for payout is evaluated lazily: a 'pending' row whose
  available_date has passed is as eligible as an 'available' one.
- 'processing' is entered only by a payout claim (scheduler or seller
  request); a rejected or failed payout releases its rows back to
  'available'.
- Re-applying the current status is a no-op.

Author: TM3
Date: 2026-03-02
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional

from settlement.core.database import SessionFactory, session_scope
from settlement.core.errors import EarningsNotFoundError, InvalidStatusTransitionError
from settlement.domain.earnings import EarningsRecord, EarningsStatus, SellerEarningsSummary
from settlement.repositories import EarningsRepository

logger = logging.getLogger(__name__)

# Position of each status along the forward path
_STATUS_ORDER = {
    EarningsStatus.PENDING: 0,
    EarningsStatus.AVAILABLE: 1,
    EarningsStatus.PROCESSING: 2,
    EarningsStatus.PAID: 3,
}

# Direct transitions allowed through update_status(); processing and paid
# follow the payout (claim and completion) only
_ALLOWED_SOURCES = {
    EarningsStatus.AVAILABLE: (EarningsStatus.PENDING,),
}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def compute_available_date(created_on: date, holding_period_days: int) -> date:
    """End of the holding period for a record created on `created_on`"""
    return created_on + timedelta(days=holding_period_days)


class EarningsLedgerService:
    """Ledger transitions, holding-period release and seller summaries"""

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock or utc_today

    # =========================================================================
    # Transitions
    # =========================================================================

    def update_status(self, record_id: str, target: EarningsStatus) -> EarningsRecord:
        """
        Move one record forward

        Args:
            record_id: Earnings record ID
            target: 'available' (processing and paid are owned by the payout lifecycle)

        Returns:
            The record after the update (unchanged if already in `target`)

        Raises:
            EarningsNotFoundError: Unknown record
            InvalidStatusTransitionError: Backward move, or a target that
                cannot be reached from the current status directly
        """
        target = EarningsStatus(target)

        with session_scope(self.session_factory) as session:
            repo = EarningsRepository(session)
            record = repo.find_by_id(record_id)
            if record is None:
                raise EarningsNotFoundError(f"Earnings record {record_id} not found")

            if record.status == target:
                return record

            if _STATUS_ORDER[target] < _STATUS_ORDER[record.status] or target not in _ALLOWED_SOURCES:
                raise InvalidStatusTransitionError(record_id, record.status.value, target.value)
            if record.status not in _ALLOWED_SOURCES[target]:
                raise InvalidStatusTransitionError(record_id, record.status.value, target.value)

            updated = repo.transition([record_id], _ALLOWED_SOURCES[target], target)
            if updated == 0:
                # Lost a race; report what the row holds now
                current = repo.find_by_id(record_id)
                if current.status == target:
                    return current
                raise InvalidStatusTransitionError(record_id, current.status.value, target.value)

            logger.info(f"Earnings {record_id}: {record.status.value} -> {target.value}")
            return repo.find_by_id(record_id)

    def promote_to_available(
        self,
        sub_order_id: Optional[str] = None,
        order_id: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> List[EarningsRecord]:
        """
        Early promotion on a fulfillment event (e.g. delivery confirmed)

        Identify the earnings either by sub-order, or by order + seller for
        single-seller orders. Rows already past 'pending' are left as they are.

        Returns:
            The affected records after promotion
        """
        if sub_order_id is None and (order_id is None or seller_id is None):
            raise ValueError("Provide sub_order_id, or both order_id and seller_id")

        with session_scope(self.session_factory) as session:
            repo = EarningsRepository(session)
            if sub_order_id is not None:
                records = repo.find_by_sub_order(sub_order_id)
            else:
                record = repo.find_by_order_and_seller(order_id, seller_id)
                records = [record] if record else []

            if not records:
                raise EarningsNotFoundError(
                    f"No earnings for sub-order {sub_order_id}" if sub_order_id
                    else f"No earnings for order {order_id} seller {seller_id}"
                )

            ids = [r.id for r in records]
            promoted = repo.transition(ids, (EarningsStatus.PENDING,), EarningsStatus.AVAILABLE)
            if promoted:
                logger.info(f"Promoted {promoted} earnings record(s) to available early")

            return [repo.find_by_id(record_id) for record_id in ids]

    def release_matured(self, today: Optional[date] = None) -> int:
        """
        Holding-period job: flip matured 'pending' rows to 'available'

        Optional under the lazy eligibility rule; keeps status labels on
        dashboards in step with the calendar.

        Returns:
            Number of records released
        """
        today = today or self.clock()
        with session_scope(self.session_factory) as session:
            released = EarningsRepository(session).promote_matured(today)

        logger.info(f"Released {released} matured earnings record(s) as of {today.isoformat()}")
        return released

    # =========================================================================
    # Reads
    # =========================================================================

    def get_record(self, record_id: str) -> EarningsRecord:
        with session_scope(self.session_factory) as session:
            record = EarningsRepository(session).find_by_id(record_id)
        if record is None:
            raise EarningsNotFoundError(f"Earnings record {record_id} not found")
        return record

    def list_seller_earnings(
        self,
        seller_id: str,
        status: Optional[EarningsStatus] = None,
        limit: Optional[int] = 50,
        offset: int = 0,
    ) -> List[EarningsRecord]:
        with session_scope(self.session_factory) as session:
            return EarningsRepository(session).find_by_seller(seller_id, status, limit, offset)

    def get_seller_summary(self, seller_id: str, today: Optional[date] = None) -> SellerEarningsSummary:
        """
        Balances for a seller dashboard

        - available_balance: eligible now (available, or pending past its date)
        - pending_balance: still in holding period, or claimed by an open payout
        - paid_balance: disbursed

        Returns:
            SellerEarningsSummary (all zero for a seller without earnings)
        """
        today = today or self.clock()
        with session_scope(self.session_factory) as session:
            records = EarningsRepository(session).find_by_seller(seller_id)

        summary = SellerEarningsSummary(seller_id=seller_id)
        orders = set()
        for record in records:
            orders.add(record.parent_order_id)
            summary.total_earnings += record.net_amount
            summary.total_commission += record.commission_amount

            if record.status == EarningsStatus.PAID:
                summary.paid_balance += record.net_amount
            elif record.is_eligible(today):
                summary.available_balance += record.net_amount
            else:
                summary.pending_balance += record.net_amount

        summary.order_count = len(orders)
        return summary
