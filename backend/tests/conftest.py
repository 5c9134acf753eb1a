"""
Pytest fixtures and configuration for Settlement Engine tests

Every test gets a fresh in-memory SQLite database (StaticPool keeps the
single connection alive across sessions), so services run their real
transactions without a PostgreSQL server.

Author: TM3
Date: 2026-03-02
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import Mock

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from settlement import models  # noqa: F401
from settlement.connectors.catalog_connector import StaticCatalog
from settlement.core.database import Base, make_session_factory, session_scope
from settlement.domain.earnings import EarningsBreakdown, EarningsStatus
from settlement.domain.order import ProductInfo
from settlement.domain.settings import CommissionSettings, PayoutSettings
from settlement.repositories import ConfigRepository, EarningsRepository

TODAY = date(2026, 3, 2)


@pytest.fixture(scope="function")
def engine():
    """
    Provides an isolated in-memory database per test

    Scope: function (tables created and dropped per test)
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    """Fixed clock so holding-period dates are deterministic"""
    return lambda: TODAY


@pytest.fixture
def notifier():
    return Mock()


@pytest.fixture
def catalog():
    """
    Provides a catalog with products from two sellers

    seller-a: p-1 (cat-snacks), p-2 (cat-drinks)
    seller-b: p-3 (cat-snacks)
    """
    return StaticCatalog([
        ProductInfo(product_id="p-1", seller_id="seller-a", category_id="cat-snacks", title="Granola", sku="GRA-1"),
        ProductInfo(product_id="p-2", seller_id="seller-a", category_id="cat-drinks", title="Kombucha", sku="KOM-1"),
        ProductInfo(product_id="p-3", seller_id="seller-b", category_id="cat-snacks", title="Keto bar", sku="KET-1"),
    ])


@pytest.fixture
def save_settings(session_factory):
    """
    Stores commission/payout settings rows

    Usage:
        save_settings(commission=CommissionSettings(...), payout=PayoutSettings(...))
    """
    def _save(commission=None, payout=None):
        with session_scope(session_factory) as session:
            repo = ConfigRepository(session)
            if commission is not None:
                repo.save_commission_settings(commission)
            if payout is not None:
                repo.save_payout_settings(payout)

    return _save


@pytest.fixture
def flat_commission(save_settings):
    """15% for everyone"""
    save_settings(commission=CommissionSettings(default_rate=Decimal("15.00")))


@pytest.fixture
def auto_payouts(save_settings):
    """Auto payouts enabled with min 2000 and auto-approve threshold 5000"""
    settings = PayoutSettings(
        minimum_payout_amount=2000,
        auto_approve_threshold=5000,
        auto_payout_enabled=True,
    )
    save_settings(payout=settings)
    return settings


@pytest.fixture
def seed_earning(session_factory):
    """
    Inserts a ledger row with the given net amount (no fees)

    Usage:
        record = seed_earning("seller-a", 1500, order_id="o-1")
        record = seed_earning("seller-a", 900, status=EarningsStatus.AVAILABLE)
    """
    counter = {"n": 0}

    def _seed(seller_id, net_amount, order_id=None, status=EarningsStatus.PENDING, available_date=None):
        counter["n"] += 1
        order_id = order_id or f"order-{counter['n']}"
        available_date = available_date or (TODAY - timedelta(days=1))
        breakdown = EarningsBreakdown(
            gross_amount=net_amount,
            commission_rate=Decimal("0.00"),
            commission_amount=0,
            processing_fee=0,
            platform_fee=0,
            net_amount=net_amount,
        )
        with session_scope(session_factory) as session:
            repo = EarningsRepository(session)
            record = repo.create(order_id, seller_id, breakdown, available_date)
            if status == EarningsStatus.AVAILABLE:
                repo.transition([record.id], (EarningsStatus.PENDING,), EarningsStatus.AVAILABLE)
                record = repo.find_by_id(record.id)
        return record

    return _seed


@pytest.fixture
def seller_ledger(session_factory):
    """Returns a function listing a seller's ledger rows (for assertions)"""
    def _load(seller_id):
        with session_scope(session_factory) as session:
            return EarningsRepository(session).find_by_seller(seller_id)

    return _load
