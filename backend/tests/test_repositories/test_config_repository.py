"""
Tests for ConfigRepository

Author: TM3
Date: 2026-03-02
"""
from decimal import Decimal

from settlement.core.database import session_scope
from settlement.domain.settings import CommissionSettings, PayoutSettings
from settlement.repositories import ConfigRepository


class TestConfigRepository:
    """Test settings rows and their defaults"""

    def test_no_commission_row_returns_none(self, session_factory):
        with session_scope(session_factory) as session:
            assert ConfigRepository(session).get_commission_settings() is None

    def test_payout_defaults_without_row(self, session_factory):
        with session_scope(session_factory) as session:
            payout = ConfigRepository(session).get_payout_settings()

        assert payout.holding_period_days == 7
        assert payout.minimum_payout_amount == 2000
        assert payout.maximum_payout_amount == 10000000
        assert payout.auto_approve_threshold == 50000
        assert payout.auto_payout_enabled is False

    def test_commission_rates_round_trip(self, session_factory, save_settings):
        # Arrange
        save_settings(commission=CommissionSettings(
            default_rate=Decimal("15.00"),
            category_rates={"cat-1": Decimal("12.50")},
            seller_custom_rates={"seller-a": Decimal("7.25")},
        ))

        # Act
        with session_scope(session_factory) as session:
            commission = ConfigRepository(session).get_commission_settings()

        # Assert
        assert commission.default_rate == Decimal("15.00")
        assert commission.category_rates == {"cat-1": Decimal("12.50")}
        assert commission.seller_custom_rates == {"seller-a": Decimal("7.25")}

    def test_latest_saved_settings_are_active(self, session_factory, save_settings):
        save_settings(payout=PayoutSettings(minimum_payout_amount=1000))
        save_settings(payout=PayoutSettings(minimum_payout_amount=3000, auto_payout_enabled=True))

        with session_scope(session_factory) as session:
            payout = ConfigRepository(session).get_payout_settings()

        assert payout.minimum_payout_amount == 3000
        assert payout.auto_payout_enabled is True
