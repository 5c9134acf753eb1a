"""
Payout Service - seller payout requests and the payout lifecycle

Lifecycle:
    pending_approval ──approve──> approved ──mark_processing──> processing ──complete──> completed
          │                          │                              │
          └──reject──> rejected      └──────────fail──────────────> failed

Rejected and failed payouts release their earnings back to 'available';
completed payouts mark them 'paid'. Re-applying the action that produced
the current status is a no-op.

Author: TM3
Date: 2026-03-02
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from settlement.connectors.notification_gateway import (
    LoggingNotificationGateway,
    NotificationGateway,
    safe_notify,
)
from settlement.core.database import SessionFactory, session_scope
from settlement.core.errors import (
    ClaimConflictError,
    PayoutNotFoundError,
    PayoutRequestError,
    PayoutStateError,
)
from settlement.domain.earnings import EarningsRecord
from settlement.domain.payout import VALID_PAYOUT_METHODS, Payout, PayoutStatus
from settlement.repositories import ConfigRepository, EarningsRepository, PayoutRepository
from settlement.services.earnings_ledger_service import utc_today

logger = logging.getLogger(__name__)


class PayoutService:
    """Seller-initiated payouts and admin lifecycle actions"""

    def __init__(
        self,
        notifier: Optional[NotificationGateway] = None,
        session_factory: Optional[SessionFactory] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.notifier = notifier or LoggingNotificationGateway()
        self.session_factory = session_factory
        self.clock = clock or utc_today

    # =========================================================================
    # Reads
    # =========================================================================

    def get_payout(self, payout_id: str) -> Payout:
        with session_scope(self.session_factory) as session:
            payout = PayoutRepository(session).find_by_id(payout_id)
        if payout is None:
            raise PayoutNotFoundError(f"Payout {payout_id} not found")
        return payout

    def get_payout_earnings(self, payout_id: str) -> List[EarningsRecord]:
        """Earnings records attached to a payout"""
        with session_scope(self.session_factory) as session:
            if PayoutRepository(session).find_by_id(payout_id) is None:
                raise PayoutNotFoundError(f"Payout {payout_id} not found")
            return EarningsRepository(session).find_by_payout(payout_id)

    def list_payouts(
        self,
        seller_id: Optional[str] = None,
        status: Optional[PayoutStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Payout]:
        with session_scope(self.session_factory) as session:
            return PayoutRepository(session).find_all(seller_id, status, limit, offset)

    # =========================================================================
    # Seller request
    # =========================================================================

    def request_payout(
        self,
        seller_id: str,
        amount: Optional[int] = None,
        method: Optional[str] = None,
        account_details: Optional[Dict[str, Any]] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Payout:
        """
        Create a payout from the seller's eligible earnings

        Records are taken oldest first while their running total stays
        within `amount`, so the payout amount always equals the sum of the
        records it holds and may be slightly below the requested figure.

        Args:
            seller_id: Requesting seller
            amount: Upper bound in minor units (None = whole eligible balance)
            method: Disbursement method (default from payout settings)
            account_details: Opaque destination details
            notes: Free text

        Returns:
            The new payout in 'pending_approval'

        Raises:
            PayoutRequestError: Unknown method, amount outside min/max,
                or insufficient eligible balance
        """
        today = today or self.clock()

        with session_scope(self.session_factory) as session:
            payout_settings = ConfigRepository(session).get_payout_settings()
            method = method or payout_settings.default_method
            if method not in VALID_PAYOUT_METHODS:
                raise PayoutRequestError(f"Invalid payout method '{method}'")

            if amount is not None and amount < payout_settings.minimum_payout_amount:
                raise PayoutRequestError(
                    f"Minimum payout amount is {payout_settings.minimum_payout_amount}"
                )
            if amount is not None and amount > payout_settings.maximum_payout_amount:
                raise PayoutRequestError(
                    f"Maximum payout amount is {payout_settings.maximum_payout_amount}"
                )

            earnings_repo = EarningsRepository(session)
            records = earnings_repo.find_eligible(today, seller_id=seller_id, lock=True)
            available = sum(r.net_amount for r in records)

            limit = amount if amount is not None else min(available, payout_settings.maximum_payout_amount)
            if limit > available:
                raise PayoutRequestError(
                    f"Insufficient available balance: requested {limit}, available {available}"
                )

            selected = []
            total = 0
            for record in records:
                if total + record.net_amount > limit:
                    break
                selected.append(record)
                total += record.net_amount

            if total < payout_settings.minimum_payout_amount or not selected:
                raise PayoutRequestError(
                    f"Eligible earnings fitting the request total {total}, "
                    f"below minimum {payout_settings.minimum_payout_amount}"
                )

            payout = PayoutRepository(session).create(
                seller_id=seller_id,
                amount=total,
                method=method,
                status=PayoutStatus.PENDING_APPROVAL,
                account_details=account_details,
                notes=notes,
            )

            claimed = earnings_repo.claim([r.id for r in selected], payout.id, today)
            if claimed != len(selected):
                raise ClaimConflictError(
                    f"claimed {claimed} of {len(selected)} earnings for payout {payout.id}"
                )

        logger.info(f"Seller {seller_id} requested payout {payout.id}: {total} ({len(selected)} record(s))")
        return payout

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def approve(self, payout_id: str, approved_by: Optional[str] = None) -> Payout:
        """pending_approval -> approved"""
        return self._transition(
            payout_id,
            action="approve",
            from_statuses=(PayoutStatus.PENDING_APPROVAL,),
            target=PayoutStatus.APPROVED,
            fields={"approved_at": self._now(), "approved_by": approved_by},
        )

    def reject(self, payout_id: str, reason: str, rejected_by: Optional[str] = None) -> Payout:
        """pending_approval -> rejected; earnings released"""
        return self._transition(
            payout_id,
            action="reject",
            from_statuses=(PayoutStatus.PENDING_APPROVAL,),
            target=PayoutStatus.REJECTED,
            fields={"failure_reason": reason, "rejected_by": rejected_by},
            release_earnings=True,
        )

    def mark_processing(self, payout_id: str) -> Payout:
        """approved -> processing (disbursement handed to the provider)"""
        return self._transition(
            payout_id,
            action="start processing",
            from_statuses=(PayoutStatus.APPROVED,),
            target=PayoutStatus.PROCESSING,
            fields={"processed_at": self._now()},
        )

    def complete(self, payout_id: str) -> Payout:
        """processing -> completed; earnings become 'paid'"""
        return self._transition(
            payout_id,
            action="complete",
            from_statuses=(PayoutStatus.PROCESSING,),
            target=PayoutStatus.COMPLETED,
            fields={"completed_at": self._now()},
            mark_paid=True,
        )

    def fail(self, payout_id: str, reason: str) -> Payout:
        """approved|processing -> failed; earnings released"""
        return self._transition(
            payout_id,
            action="fail",
            from_statuses=(PayoutStatus.APPROVED, PayoutStatus.PROCESSING),
            target=PayoutStatus.FAILED,
            fields={"failed_at": self._now(), "failure_reason": reason},
            release_earnings=True,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _transition(
        self,
        payout_id: str,
        action: str,
        from_statuses: Sequence[PayoutStatus],
        target: PayoutStatus,
        fields: Dict[str, Any],
        release_earnings: bool = False,
        mark_paid: bool = False,
    ) -> Payout:
        with session_scope(self.session_factory) as session:
            payout_repo = PayoutRepository(session)
            payout = payout_repo.find_by_id(payout_id)
            if payout is None:
                raise PayoutNotFoundError(f"Payout {payout_id} not found")

            if payout.status == target:
                return payout
            if payout.status not in from_statuses:
                raise PayoutStateError(payout_id, payout.status.value, action)

            if not payout_repo.transition(payout_id, from_statuses, target, **fields):
                current = payout_repo.find_by_id(payout_id)
                if current.status == target:
                    return current
                raise PayoutStateError(payout_id, current.status.value, action)

            earnings_repo = EarningsRepository(session)
            affected = 0
            if release_earnings:
                affected = earnings_repo.release_payout(payout_id)
            elif mark_paid:
                affected = earnings_repo.mark_payout_paid(payout_id)

            updated = payout_repo.find_by_id(payout_id)

        logger.info(
            f"Payout {payout_id}: {payout.status.value} -> {target.value}"
            + (f" ({affected} earnings record(s) updated)" if affected else "")
        )
        safe_notify(self.notifier, updated.seller_id, {
            "payout_id": updated.id,
            "amount": updated.amount,
            "status": updated.status.value,
        })
        return updated
