"""
Shared API dependencies: service providers, API key check, error mapping

Services are provided through FastAPI dependencies so tests (and other
deployments) can swap them with app.dependency_overrides.
"""
import logging
from typing import NoReturn

from fastapi import Header, HTTPException

from settlement.connectors.notification_gateway import LoggingNotificationGateway
from settlement.core.config import settings
from settlement.core.errors import (
    ClaimConflictError,
    EarningsNotFoundError,
    InvalidStatusTransitionError,
    PayoutNotFoundError,
    PayoutRequestError,
    PayoutStateError,
    PersistenceError,
    SettlementError,
)
from settlement.services.earnings_ledger_service import EarningsLedgerService
from settlement.services.payout_scheduler import PayoutScheduler
from settlement.services.payout_service import PayoutService

logger = logging.getLogger(__name__)

_notifier = LoggingNotificationGateway()


def get_ledger_service() -> EarningsLedgerService:
    return EarningsLedgerService()


def get_payout_service() -> PayoutService:
    return PayoutService(notifier=_notifier)


def get_payout_scheduler() -> PayoutScheduler:
    return PayoutScheduler(notifier=_notifier)


# ============================================================================
# Security - API Key Verification
# ============================================================================

def verify_settlement_key(x_settlement_key: str = Header(None, alias="X-Settlement-Key")):
    """
    Verify the API key from the X-Settlement-Key header.

    If SETTLEMENT_API_KEY is not configured, allows all requests (development).
    If configured, requires matching key.
    """
    expected = settings.SETTLEMENT_API_KEY
    if not expected:
        logger.warning("SETTLEMENT_API_KEY not configured - admin endpoints are unprotected!")
        return

    if not x_settlement_key:
        logger.warning("Admin request without X-Settlement-Key header")
        raise HTTPException(
            status_code=401,
            detail="Missing X-Settlement-Key header. Authentication required."
        )

    if x_settlement_key != expected:
        logger.warning("Invalid settlement key attempt")
        raise HTTPException(status_code=401, detail="Invalid API key")


# ============================================================================
# Error mapping
# ============================================================================

def raise_http_error(error: SettlementError) -> NoReturn:
    """Translate a domain error into the matching HTTPException"""
    if isinstance(error, (PayoutNotFoundError, EarningsNotFoundError)):
        raise HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (PayoutStateError, InvalidStatusTransitionError, ClaimConflictError)):
        raise HTTPException(status_code=409, detail=str(error))
    if isinstance(error, PayoutRequestError):
        raise HTTPException(status_code=400, detail=str(error))
    if isinstance(error, PersistenceError) and error.retryable:
        raise HTTPException(status_code=503, detail=f"Temporary database error ({error.kind.value}), retry")

    logger.error(f"Unhandled settlement error: {error}")
    raise HTTPException(status_code=500, detail=str(error))
