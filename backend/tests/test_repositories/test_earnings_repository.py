"""
Tests for EarningsRepository claim/eligibility queries

These run against the in-memory database; repositories never commit, so
each test opens its own session_scope.

Author: TM3
Date: 2026-03-02
"""
from datetime import timedelta

from settlement.core.database import session_scope
from settlement.domain.earnings import EarningsStatus
from settlement.domain.payout import PayoutStatus
from settlement.repositories import EarningsRepository, PayoutRepository


def _payout(session, seller_id="seller-a", amount=0):
    return PayoutRepository(session).create(seller_id, amount, "bank_transfer", PayoutStatus.APPROVED)


class TestEligibility:
    """Test the payout eligibility predicate"""

    def test_find_eligible_includes_matured_pending_and_available(self, session_factory, seed_earning, today):
        # Arrange
        matured = seed_earning("seller-a", 100, available_date=today)
        available = seed_earning("seller-a", 200, status=EarningsStatus.AVAILABLE,
                                 available_date=today + timedelta(days=10))
        seed_earning("seller-a", 300, available_date=today + timedelta(days=1))

        # Act
        with session_scope(session_factory) as session:
            eligible = EarningsRepository(session).find_eligible(today, seller_id="seller-a")

        # Assert
        assert {r.id for r in eligible} == {matured.id, available.id}

    def test_eligible_is_ordered_oldest_first(self, session_factory, seed_earning, today):
        late = seed_earning("seller-a", 100, available_date=today)
        early = seed_earning("seller-a", 100, available_date=today - timedelta(days=4))

        with session_scope(session_factory) as session:
            eligible = EarningsRepository(session).find_eligible(today)

        assert [r.id for r in eligible] == [early.id, late.id]

    def test_totals_by_seller(self, session_factory, seed_earning, today):
        seed_earning("seller-b", 700)
        seed_earning("seller-a", 100)
        seed_earning("seller-a", 250)
        seed_earning("seller-a", 999, available_date=today + timedelta(days=2))

        with session_scope(session_factory) as session:
            totals = EarningsRepository(session).eligible_totals_by_seller(today)

        assert totals == [("seller-a", 350), ("seller-b", 700)]


class TestClaim:
    """Test the conditional claim update"""

    def test_claim_attaches_payout(self, session_factory, seed_earning, today):
        record = seed_earning("seller-a", 100)

        with session_scope(session_factory) as session:
            payout = _payout(session)
            claimed = EarningsRepository(session).claim([record.id], payout.id, today)
            stored = EarningsRepository(session).find_by_id(record.id)

        assert claimed == 1
        assert stored.status == EarningsStatus.PROCESSING
        assert stored.payout_id == payout.id

    def test_second_claim_matches_nothing(self, session_factory, seed_earning, today):
        """Test a record already attached to a payout cannot be claimed again"""
        record = seed_earning("seller-a", 100)
        with session_scope(session_factory) as session:
            first = _payout(session)
            EarningsRepository(session).claim([record.id], first.id, today)

        with session_scope(session_factory) as session:
            second = _payout(session)
            claimed = EarningsRepository(session).claim([record.id], second.id, today)
            stored = EarningsRepository(session).find_by_id(record.id)

        assert claimed == 0
        assert stored.payout_id == first.id

    def test_claim_skips_rows_still_on_hold(self, session_factory, seed_earning, today):
        held = seed_earning("seller-a", 100, available_date=today + timedelta(days=1))

        with session_scope(session_factory) as session:
            payout = _payout(session)
            claimed = EarningsRepository(session).claim([held.id], payout.id, today)

        assert claimed == 0

    def test_release_payout(self, session_factory, seed_earning, today):
        record = seed_earning("seller-a", 100)
        with session_scope(session_factory) as session:
            payout = _payout(session)
            repo = EarningsRepository(session)
            repo.claim([record.id], payout.id, today)

            released = repo.release_payout(payout.id)
            stored = repo.find_by_id(record.id)

        assert released == 1
        assert stored.status == EarningsStatus.AVAILABLE
        assert stored.payout_id is None

    def test_claim_with_no_ids(self, session_factory, today):
        with session_scope(session_factory) as session:
            assert EarningsRepository(session).claim([], "payout-x", today) == 0


class TestTransition:
    """Test conditional status transitions"""

    def test_transition_only_from_expected_status(self, session_factory, seed_earning):
        record = seed_earning("seller-a", 100, status=EarningsStatus.AVAILABLE)

        with session_scope(session_factory) as session:
            updated = EarningsRepository(session).transition(
                [record.id], (EarningsStatus.PROCESSING,), EarningsStatus.PAID
            )

        assert updated == 0
