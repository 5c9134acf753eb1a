"""
Payout Scheduler - periodic batch that turns eligible earnings into payouts

Per run:
1. Read payout settings; no-op unless auto payouts are enabled
2. Sum eligible net amounts per seller
3. For each seller at or above the minimum, in its own transaction:
   - lock the seller's eligible rows, create the payout
     (approved if amount <= auto_approve_threshold, else pending_approval)
   - claim the rows with a conditional update ('processing' + payout_id)
   - if fewer rows were claimed than read, another run got there first:
     roll back (payout included) and leave the seller for the next run
4. Notify sellers whose payout was created

Author: TM3
Date: 2026-03-02
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from settlement.connectors.notification_gateway import (
    LoggingNotificationGateway,
    NotificationGateway,
    safe_notify,
)
from settlement.core.database import SessionFactory, session_scope
from settlement.core.errors import ClaimConflictError, PersistenceError
from settlement.domain.payout import Payout, PayoutStatus
from settlement.domain.settings import PayoutSettings
from settlement.repositories import ConfigRepository, EarningsRepository, PayoutRepository
from settlement.services.earnings_ledger_service import utc_today

logger = logging.getLogger(__name__)

AUTO_APPROVER = "system:auto-approve"


# ============================================================================
# Response Models
# ============================================================================

@dataclass
class BatchResult:
    enabled: bool
    run_date: date
    payouts: List[Payout] = field(default_factory=list)
    below_minimum: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total_amount(self) -> int:
        return sum(p.amount for p in self.payouts)

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "run_date": self.run_date.isoformat(),
            "payouts_created": len(self.payouts),
            "total_amount": self.total_amount,
            "payouts": [p.to_dict() for p in self.payouts],
            "below_minimum": self.below_minimum,
            "conflicts": self.conflicts,
            "errors": self.errors,
            "duration_seconds": self.duration_seconds,
        }


# ============================================================================
# Payout Scheduler
# ============================================================================

class PayoutScheduler:
    """
    Batch payout creation over the earnings ledger

    Safe to run concurrently with itself: rows are claimed with a
    conditional update, so a record ends up in at most one payout.
    """

    def __init__(
        self,
        notifier: Optional[NotificationGateway] = None,
        session_factory: Optional[SessionFactory] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.notifier = notifier or LoggingNotificationGateway()
        self.session_factory = session_factory
        self.clock = clock or utc_today

    def run_batch(self, today: Optional[date] = None) -> BatchResult:
        """
        Run one batch window

        Args:
            today: Reference date for eligibility (default: clock)

        Returns:
            BatchResult with created payouts and per-seller outcomes
        """
        start_time = time.time()
        today = today or self.clock()

        with session_scope(self.session_factory) as session:
            payout_settings = ConfigRepository(session).get_payout_settings()

        if not payout_settings.auto_payout_enabled:
            logger.info("Auto payouts disabled, batch skipped")
            return BatchResult(enabled=False, run_date=today)

        with session_scope(self.session_factory) as session:
            totals = EarningsRepository(session).eligible_totals_by_seller(today)

        result = BatchResult(enabled=True, run_date=today)
        logger.info(f"Payout batch {today.isoformat()}: {len(totals)} seller(s) with eligible earnings")

        for seller_id, total in totals:
            if total < payout_settings.minimum_payout_amount:
                logger.debug(
                    f"Seller {seller_id}: eligible {total} below minimum "
                    f"{payout_settings.minimum_payout_amount}"
                )
                result.below_minimum.append(seller_id)
                continue

            try:
                payout = self._create_seller_payout(seller_id, payout_settings, today)
            except ClaimConflictError as e:
                logger.warning(f"Seller {seller_id}: {e}")
                result.conflicts.append(seller_id)
                continue
            except PersistenceError as e:
                logger.error(f"Seller {seller_id}: payout not created ({e.kind.value}): {e}")
                result.errors.append(f"{seller_id}: {e.kind.value}")
                continue

            if payout is None:
                result.below_minimum.append(seller_id)
                continue

            result.payouts.append(payout)

        for payout in result.payouts:
            safe_notify(self.notifier, payout.seller_id, {
                "payout_id": payout.id,
                "amount": payout.amount,
                "status": payout.status.value,
            })

        result.duration_seconds = round(time.time() - start_time, 3)
        logger.info(
            f"Payout batch {today.isoformat()} done: {len(result.payouts)} payout(s), "
            f"total {result.total_amount}, {len(result.conflicts)} conflict(s), "
            f"{len(result.errors)} error(s)"
        )
        return result

    def _create_seller_payout(
        self,
        seller_id: str,
        payout_settings: PayoutSettings,
        today: date,
    ) -> Optional[Payout]:
        """
        Create one seller's payout and claim its earnings in one transaction

        Returns:
            The payout, or None if the eligible total fell below the minimum
            since aggregation

        Raises:
            ClaimConflictError: Some rows were claimed by a concurrent run
        """
        with session_scope(self.session_factory) as session:
            earnings_repo = EarningsRepository(session)
            records = earnings_repo.find_eligible(today, seller_id=seller_id, lock=True)
            amount = sum(r.net_amount for r in records)

            if not records or amount < payout_settings.minimum_payout_amount:
                return None

            auto_approved = amount <= payout_settings.auto_approve_threshold
            payout = PayoutRepository(session).create(
                seller_id=seller_id,
                amount=amount,
                method=payout_settings.default_method,
                status=PayoutStatus.APPROVED if auto_approved else PayoutStatus.PENDING_APPROVAL,
                approved_at=datetime.now(timezone.utc) if auto_approved else None,
                approved_by=AUTO_APPROVER if auto_approved else None,
            )

            claimed = earnings_repo.claim([r.id for r in records], payout.id, today)
            if claimed != len(records):
                raise ClaimConflictError(
                    f"claimed {claimed} of {len(records)} earnings for payout {payout.id}"
                )

        logger.info(
            f"Payout {payout.id} for seller {seller_id}: {amount} "
            f"({len(records)} record(s), {payout.status.value})"
        )
        return payout
