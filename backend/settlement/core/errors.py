"""
Settlement error taxonomy

Persistence failures are classified into a small set of kinds by exception
class and SQLSTATE code, so callers switch on `error.kind` instead of
parsing driver messages.

Author: TM3
Date: 2026-03-02
"""
import enum
from typing import Optional

from psycopg2 import errorcodes
from sqlalchemy import exc as sa_exc


class PersistenceErrorKind(str, enum.Enum):
    """Structured kinds returned by the persistence layer"""
    DUPLICATE_KEY = "duplicate_key"
    NOT_FOUND = "not_found"
    CONSTRAINT_VIOLATION = "constraint_violation"
    TRANSIENT_IO = "transient_io"


class SettlementError(Exception):
    """Base class for every error raised by the settlement engine"""


class PersistenceError(SettlementError):
    """A database write or read failed; the transaction was rolled back"""

    def __init__(self, kind: PersistenceErrorKind, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.value)

    @property
    def retryable(self) -> bool:
        """Whether the caller should retry the whole operation"""
        return self.kind in (PersistenceErrorKind.TRANSIENT_IO, PersistenceErrorKind.DUPLICATE_KEY)


class PaymentNotCapturedError(SettlementError):
    """Order was handed to settlement before its charge succeeded"""


class InvalidStatusTransitionError(SettlementError):
    """Requested earnings status change would move the record backwards"""

    def __init__(self, record_id: str, current: str, target: str):
        self.record_id = record_id
        self.current = current
        self.target = target
        super().__init__(f"Earnings {record_id}: cannot move from '{current}' to '{target}'")


class EarningsNotFoundError(SettlementError):
    """No earnings record matches the given identifier"""


class PayoutNotFoundError(SettlementError):
    """No payout matches the given identifier"""


class PayoutStateError(SettlementError):
    """Payout is not in a state that allows the requested action"""

    def __init__(self, payout_id: str, current: str, action: str):
        self.payout_id = payout_id
        self.current = current
        self.action = action
        super().__init__(f"Payout {payout_id} is '{current}', cannot {action}")


class PayoutRequestError(SettlementError):
    """Seller payout request failed validation (balance, limits, method)"""


class ClaimConflictError(SettlementError):
    """Another run claimed some of the earnings rows first"""


class CatalogUnavailableError(SettlementError):
    """Catalog service could not be reached or answered with an error"""


# SQLSTATE groups (PostgreSQL); sqlite reports extended result names instead
_DUPLICATE_CODES = {errorcodes.UNIQUE_VIOLATION}
_CONSTRAINT_CODES = {
    errorcodes.FOREIGN_KEY_VIOLATION,
    errorcodes.NOT_NULL_VIOLATION,
    errorcodes.CHECK_VIOLATION,
    errorcodes.EXCLUSION_VIOLATION,
}
_TRANSIENT_CODES = {
    errorcodes.SERIALIZATION_FAILURE,
    errorcodes.DEADLOCK_DETECTED,
    errorcodes.LOCK_NOT_AVAILABLE,
    errorcodes.QUERY_CANCELED,
    errorcodes.ADMIN_SHUTDOWN,
    errorcodes.CANNOT_CONNECT_NOW,
}
_SQLITE_DUPLICATE_NAMES = {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
_SQLITE_TRANSIENT_NAMES = {"SQLITE_BUSY", "SQLITE_LOCKED", "SQLITE_IOERR"}


def _driver_code(exc: Exception) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlite_errorname", None)


def classify_db_error(exc: Exception) -> PersistenceError:
    """
    Map a SQLAlchemy/DBAPI exception to a PersistenceError

    Args:
        exc: Exception raised inside a session scope

    Returns:
        PersistenceError carrying the structured kind
    """
    if isinstance(exc, PersistenceError):
        return exc

    if isinstance(exc, sa_exc.NoResultFound):
        return PersistenceError(PersistenceErrorKind.NOT_FOUND, str(exc))

    code = _driver_code(exc)

    if code in _DUPLICATE_CODES or code in _SQLITE_DUPLICATE_NAMES:
        return PersistenceError(PersistenceErrorKind.DUPLICATE_KEY, str(exc))
    if code in _TRANSIENT_CODES or code in _SQLITE_TRANSIENT_NAMES:
        return PersistenceError(PersistenceErrorKind.TRANSIENT_IO, str(exc))
    if code in _CONSTRAINT_CODES:
        return PersistenceError(PersistenceErrorKind.CONSTRAINT_VIOLATION, str(exc))

    if isinstance(exc, sa_exc.IntegrityError):
        return PersistenceError(PersistenceErrorKind.CONSTRAINT_VIOLATION, str(exc))

    if isinstance(exc, (sa_exc.OperationalError, sa_exc.DisconnectionError, sa_exc.TimeoutError)):
        return PersistenceError(PersistenceErrorKind.TRANSIENT_IO, str(exc))

    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return PersistenceError(PersistenceErrorKind.TRANSIENT_IO, str(exc))

    return PersistenceError(PersistenceErrorKind.CONSTRAINT_VIOLATION, str(exc))
