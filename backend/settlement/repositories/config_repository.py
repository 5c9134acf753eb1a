"""
Config Repository - admin-managed commission and payout settings

Rates are stored as strings in JSON columns so two-decimal percentages
round-trip exactly.

Author: TM3
Date: 2026-03-02
"""
import logging
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from settlement.core.config import settings
from settlement.domain.settings import CommissionSettings, PayoutSettings
from settlement.models.settings import CommissionSetting, PayoutSetting

logger = logging.getLogger(__name__)


def _rates_from_json(raw: Optional[Dict[str, str]]) -> Dict[str, Decimal]:
    return {key: Decimal(str(value)) for key, value in (raw or {}).items()}


def _rates_to_json(rates: Dict[str, Decimal]) -> Dict[str, str]:
    return {key: str(value) for key, value in rates.items()}


class ConfigRepository:
    """Reads and writes the single active settings row of each table"""

    def __init__(self, session: Session):
        self.session = session

    def get_commission_settings(self) -> Optional[CommissionSettings]:
        """
        Active commission settings

        Returns:
            CommissionSettings, or None if no active row exists (the
            resolver then falls back to the built-in default rate)
        """
        row = self.session.scalars(
            select(CommissionSetting)
            .where(CommissionSetting.is_active.is_(True))
            .order_by(CommissionSetting.id.desc())
        ).first()
        if row is None:
            logger.debug("No active commission settings row")
            return None

        return CommissionSettings(
            default_rate=Decimal(str(row.default_rate)),
            category_rates=_rates_from_json(row.category_rates),
            seller_custom_rates=_rates_from_json(row.seller_custom_rates),
        )

    def get_payout_settings(self) -> PayoutSettings:
        """
        Active payout settings, or the configured defaults when no row exists
        """
        row = self.session.scalars(
            select(PayoutSetting)
            .where(PayoutSetting.is_active.is_(True))
            .order_by(PayoutSetting.id.desc())
        ).first()
        if row is None:
            return PayoutSettings(
                holding_period_days=settings.DEFAULT_HOLDING_PERIOD_DAYS,
                minimum_payout_amount=settings.DEFAULT_MINIMUM_PAYOUT_AMOUNT,
                maximum_payout_amount=settings.DEFAULT_MAXIMUM_PAYOUT_AMOUNT,
                auto_approve_threshold=settings.DEFAULT_AUTO_APPROVE_THRESHOLD,
                auto_payout_enabled=False,
                default_method=settings.DEFAULT_PAYOUT_METHOD,
            )

        return PayoutSettings(
            holding_period_days=row.holding_period_days,
            minimum_payout_amount=row.minimum_payout_amount,
            maximum_payout_amount=row.maximum_payout_amount,
            auto_approve_threshold=row.auto_approve_threshold,
            auto_payout_enabled=row.auto_payout_enabled,
            default_method=row.default_method,
        )

    def save_commission_settings(self, commission: CommissionSettings) -> None:
        """Replace the active commission settings (previous rows are deactivated)"""
        self.session.execute(
            update(CommissionSetting)
            .where(CommissionSetting.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        self.session.add(CommissionSetting(
            default_rate=commission.default_rate,
            category_rates=_rates_to_json(commission.category_rates),
            seller_custom_rates=_rates_to_json(commission.seller_custom_rates),
            is_active=True,
        ))
        self.session.flush()

    def save_payout_settings(self, payout: PayoutSettings) -> None:
        """Replace the active payout settings (previous rows are deactivated)"""
        self.session.execute(
            update(PayoutSetting)
            .where(PayoutSetting.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        self.session.add(PayoutSetting(is_active=True, **payout.model_dump()))
        self.session.flush()
