"""
Tests for EarningsLedgerService (state machine, release job, summaries)

Author: TM3
Date: 2026-03-02
"""
import pytest
from datetime import date, timedelta

from settlement.core.database import session_scope
from settlement.core.errors import EarningsNotFoundError, InvalidStatusTransitionError
from settlement.domain.earnings import EarningsStatus
from settlement.domain.order import OrderLineItem
from settlement.domain.payout import PayoutStatus
from settlement.repositories import EarningsRepository, PayoutRepository
from settlement.services.earnings_ledger_service import EarningsLedgerService, compute_available_date
from settlement.services.order_splitting_service import OrderSplittingService
from settlement.services.payout_service import PayoutService


@pytest.fixture
def ledger(session_factory, clock):
    return EarningsLedgerService(session_factory=session_factory, clock=clock)


def claim_for_payout(session_factory, record, today):
    """Attach a record to a fresh payout the way the scheduler does"""
    with session_scope(session_factory) as session:
        payout = PayoutRepository(session).create(record.seller_id, record.net_amount, "bank_transfer", PayoutStatus.APPROVED)
        EarningsRepository(session).claim([record.id], payout.id, today)
    return payout


class TestUpdateStatus:
    """Test forward-only, idempotent status updates"""

    def test_pending_to_available(self, ledger, seed_earning):
        record = seed_earning("seller-a", 1000)

        updated = ledger.update_status(record.id, EarningsStatus.AVAILABLE)

        assert updated.status == EarningsStatus.AVAILABLE

    def test_same_status_is_noop(self, ledger, seed_earning):
        record = seed_earning("seller-a", 1000, status=EarningsStatus.AVAILABLE)

        updated = ledger.update_status(record.id, EarningsStatus.AVAILABLE)

        assert updated.status == EarningsStatus.AVAILABLE
        assert updated.id == record.id

    def test_backward_move_raises(self, ledger, seed_earning):
        record = seed_earning("seller-a", 1000, status=EarningsStatus.AVAILABLE)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ledger.update_status(record.id, EarningsStatus.PENDING)

        assert exc_info.value.current == "available"
        assert exc_info.value.target == "pending"

    def test_processing_reserved_for_payout_claims(self, ledger, seed_earning):
        record = seed_earning("seller-a", 1000)

        with pytest.raises(InvalidStatusTransitionError):
            ledger.update_status(record.id, EarningsStatus.PROCESSING)

    def test_paid_requires_processing(self, ledger, seed_earning):
        record = seed_earning("seller-a", 1000, status=EarningsStatus.AVAILABLE)

        with pytest.raises(InvalidStatusTransitionError):
            ledger.update_status(record.id, EarningsStatus.PAID)

    def test_paid_reserved_for_payout_completion(self, ledger, seed_earning, session_factory, today):
        record = seed_earning("seller-a", 1000)
        claim_for_payout(session_factory, record, today)

        with pytest.raises(InvalidStatusTransitionError):
            ledger.update_status(record.id, EarningsStatus.PAID)

        assert ledger.get_record(record.id).status == EarningsStatus.PROCESSING

    def test_failed_payout_releases_record_after_rejected_paid_update(
        self, ledger, seed_earning, session_factory, clock, notifier
    ):
        """Test a record under an open payout cannot be marked paid, so a failure releases it"""
        # Arrange
        record = seed_earning("seller-a", 3000)
        payouts = PayoutService(notifier, session_factory, clock)
        payout = payouts.request_payout("seller-a")

        # Act
        with pytest.raises(InvalidStatusTransitionError):
            ledger.update_status(record.id, EarningsStatus.PAID)
        payouts.approve(payout.id)
        payouts.fail(payout.id, reason="bank rejected transfer")

        # Assert
        released = ledger.get_record(record.id)
        assert released.status == EarningsStatus.AVAILABLE
        assert released.payout_id is None

    def test_unknown_record_raises(self, ledger):
        with pytest.raises(EarningsNotFoundError):
            ledger.update_status("missing", EarningsStatus.AVAILABLE)

    def test_accepts_plain_string_target(self, ledger, seed_earning):
        record = seed_earning("seller-a", 1000)

        assert ledger.update_status(record.id, "available").status == EarningsStatus.AVAILABLE


class TestEarlyPromotion:
    """Test promotion on fulfillment events"""

    def test_promote_by_sub_order(self, ledger, catalog, notifier, session_factory, clock, flat_commission):
        # Arrange
        splitter = OrderSplittingService(catalog, notifier, session_factory, clock=clock)
        result = splitter.split("order-1", [
            OrderLineItem(product_id="p-1", quantity=1, unit_price=5000),
            OrderLineItem(product_id="p-3", quantity=1, unit_price=5000),
        ])
        sub_order = next(s for s in result.sub_orders if s.seller_id == "seller-b")

        # Act
        promoted = ledger.promote_to_available(sub_order_id=sub_order.id)

        # Assert
        assert len(promoted) == 1
        assert promoted[0].seller_id == "seller-b"
        assert promoted[0].status == EarningsStatus.AVAILABLE
        other = next(e for e in result.earnings if e.seller_id == "seller-a")
        assert ledger.get_record(other.id).status == EarningsStatus.PENDING

    def test_promote_by_order_and_seller(self, ledger, seed_earning):
        record = seed_earning("seller-a", 1000, order_id="order-9")

        promoted = ledger.promote_to_available(order_id="order-9", seller_id="seller-a")

        assert promoted[0].id == record.id
        assert promoted[0].status == EarningsStatus.AVAILABLE

    def test_promotion_never_moves_backwards(self, ledger, seed_earning, session_factory, today):
        record = seed_earning("seller-a", 1000, order_id="order-10")
        claim_for_payout(session_factory, record, today)

        promoted = ledger.promote_to_available(order_id="order-10", seller_id="seller-a")

        assert promoted[0].status == EarningsStatus.PROCESSING

    def test_promotion_without_match_raises(self, ledger):
        with pytest.raises(EarningsNotFoundError):
            ledger.promote_to_available(order_id="nope", seller_id="seller-a")

    def test_promotion_requires_identifier(self, ledger):
        with pytest.raises(ValueError):
            ledger.promote_to_available(order_id="order-1")


class TestReleaseMatured:
    """Test the holding-period release job"""

    def test_only_matured_pending_rows_are_released(self, ledger, seed_earning, today, seller_ledger):
        # Arrange
        matured = seed_earning("seller-a", 1000, available_date=today)
        waiting = seed_earning("seller-a", 2000, available_date=today + timedelta(days=3))

        # Act
        released = ledger.release_matured()

        # Assert
        assert released == 1
        statuses = {r.id: r.status for r in seller_ledger("seller-a")}
        assert statuses[matured.id] == EarningsStatus.AVAILABLE
        assert statuses[waiting.id] == EarningsStatus.PENDING

    def test_explicit_date(self, ledger, seed_earning, today):
        seed_earning("seller-a", 1000, available_date=today + timedelta(days=3))

        assert ledger.release_matured(today + timedelta(days=3)) == 1


class TestSellerSummary:
    """Test seller balance aggregation"""

    def test_summary_buckets(self, ledger, seed_earning, session_factory, today):
        # Arrange
        seed_earning("seller-a", 1000, status=EarningsStatus.AVAILABLE)            # available
        seed_earning("seller-a", 2000, available_date=today)                        # pending but eligible
        seed_earning("seller-a", 4000, available_date=today + timedelta(days=5))   # still held
        claimed = seed_earning("seller-a", 8000)
        claim_for_payout(session_factory, claimed, today)                          # processing
        seed_earning("seller-b", 9999)

        # Act
        summary = ledger.get_seller_summary("seller-a")

        # Assert
        assert summary.available_balance == 3000
        assert summary.pending_balance == 12000
        assert summary.paid_balance == 0
        assert summary.total_earnings == 15000
        assert summary.order_count == 4

    def test_unknown_seller_has_zero_balances(self, ledger):
        summary = ledger.get_seller_summary("nobody")

        assert summary.total_earnings == 0
        assert summary.order_count == 0

    def test_list_filters_by_status(self, ledger, seed_earning):
        seed_earning("seller-a", 1000, status=EarningsStatus.AVAILABLE)
        seed_earning("seller-a", 2000)

        records = ledger.list_seller_earnings("seller-a", status=EarningsStatus.AVAILABLE)

        assert [r.net_amount for r in records] == [1000]


def test_compute_available_date():
    assert compute_available_date(date(2026, 2, 27), 7) == date(2026, 3, 6)
