"""
API test fixtures: TestClient wired to the in-memory database
"""
import pytest
from fastapi.testclient import TestClient

from settlement.api.deps import get_ledger_service, get_payout_scheduler, get_payout_service
from settlement.core.config import settings
from settlement.main import app
from settlement.services.earnings_ledger_service import EarningsLedgerService
from settlement.services.payout_scheduler import PayoutScheduler
from settlement.services.payout_service import PayoutService

API_KEY = "test-settlement-key"


@pytest.fixture
def client(session_factory, clock, notifier, monkeypatch):
    """
    Provides a TestClient whose services use the test database

    Admin endpoints require X-Settlement-Key: API_KEY
    """
    monkeypatch.setattr(settings, "SETTLEMENT_API_KEY", API_KEY)
    app.dependency_overrides[get_ledger_service] = lambda: EarningsLedgerService(session_factory, clock)
    app.dependency_overrides[get_payout_service] = lambda: PayoutService(notifier, session_factory, clock)
    app.dependency_overrides[get_payout_scheduler] = lambda: PayoutScheduler(notifier, session_factory, clock)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Settlement-Key": API_KEY}
