"""
Tests for persistence error classification and the transactional boundary

Author: TM3
Date: 2026-03-02
"""
import pytest
from sqlalchemy import exc as sa_exc

from settlement.core.database import session_scope
from settlement.core.errors import (
    ClaimConflictError,
    PersistenceError,
    PersistenceErrorKind,
    classify_db_error,
)
from settlement.models import CommissionSetting, SubOrder


class FakeDriverError(Exception):
    """Stand-in for a psycopg2 error carrying a SQLSTATE"""

    def __init__(self, pgcode=None):
        super().__init__(f"driver error {pgcode}")
        self.pgcode = pgcode


def _wrap(exc_class, pgcode=None, **kwargs):
    return exc_class("INSERT INTO payouts ...", {}, FakeDriverError(pgcode), **kwargs)


class TestClassifyDbError:
    """Test mapping by SQLSTATE and exception class"""

    @pytest.mark.parametrize("pgcode,kind", [
        ("23505", PersistenceErrorKind.DUPLICATE_KEY),
        ("23503", PersistenceErrorKind.CONSTRAINT_VIOLATION),
        ("23502", PersistenceErrorKind.CONSTRAINT_VIOLATION),
        ("23514", PersistenceErrorKind.CONSTRAINT_VIOLATION),
        ("40001", PersistenceErrorKind.TRANSIENT_IO),
        ("40P01", PersistenceErrorKind.TRANSIENT_IO),
        ("55P03", PersistenceErrorKind.TRANSIENT_IO),
    ])
    def test_postgres_codes(self, pgcode, kind):
        error = classify_db_error(_wrap(sa_exc.IntegrityError, pgcode))

        assert isinstance(error, PersistenceError)
        assert error.kind == kind

    def test_operational_error_without_code_is_transient(self):
        error = classify_db_error(_wrap(sa_exc.OperationalError))

        assert error.kind == PersistenceErrorKind.TRANSIENT_IO
        assert error.retryable is True

    def test_integrity_error_without_code_is_constraint_violation(self):
        error = classify_db_error(_wrap(sa_exc.IntegrityError))

        assert error.kind == PersistenceErrorKind.CONSTRAINT_VIOLATION
        assert error.retryable is False

    def test_invalidated_connection_is_transient(self):
        error = classify_db_error(_wrap(sa_exc.DBAPIError, connection_invalidated=True))

        assert error.kind == PersistenceErrorKind.TRANSIENT_IO

    def test_no_result_is_not_found(self):
        error = classify_db_error(sa_exc.NoResultFound("No row was found"))

        assert error.kind == PersistenceErrorKind.NOT_FOUND

    def test_message_text_is_not_used(self):
        """Test an 'already exists' message alone does not make a duplicate"""
        exc = sa_exc.IntegrityError("INSERT", {}, Exception("duplicate key value already exists"))

        assert classify_db_error(exc).kind == PersistenceErrorKind.CONSTRAINT_VIOLATION

    def test_duplicate_is_retryable(self):
        assert PersistenceError(PersistenceErrorKind.DUPLICATE_KEY).retryable is True


class TestSessionScope:
    """Test commit/rollback behaviour of session_scope"""

    def _sub_order(self, seller_id="seller-a"):
        return SubOrder(
            parent_order_id="order-1",
            seller_id=seller_id,
            items=[],
            subtotal=100,
            commission_rate=15,
            commission_amount=15,
            seller_payout_amount=55,
        )

    def test_commits_on_success(self, session_factory):
        with session_scope(session_factory) as session:
            session.add(CommissionSetting(default_rate=10, category_rates={}, seller_custom_rates={}))

        with session_scope(session_factory) as session:
            assert session.query(CommissionSetting).count() == 1

    def test_rolls_back_on_domain_error(self, session_factory):
        with pytest.raises(ClaimConflictError):
            with session_scope(session_factory) as session:
                session.add(self._sub_order())
                session.flush()
                raise ClaimConflictError("lost the race")

        with session_scope(session_factory) as session:
            assert session.query(SubOrder).count() == 0

    def test_unique_violation_becomes_duplicate_key(self, session_factory):
        with session_scope(session_factory) as session:
            session.add(self._sub_order())

        with pytest.raises(PersistenceError) as exc_info:
            with session_scope(session_factory) as session:
                session.add(self._sub_order())

        assert exc_info.value.kind == PersistenceErrorKind.DUPLICATE_KEY
        assert isinstance(exc_info.value.__cause__, sa_exc.IntegrityError)
