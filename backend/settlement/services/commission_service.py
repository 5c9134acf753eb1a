"""
Commission Resolver - applicable commission percentage per (seller, category)

Precedence, first match wins:
    1. seller_custom_rates[seller_id]
    2. category_rates[category_id]   (only when category_id is set)
    3. default_rate
    4. DEFAULT_COMMISSION_RATE (15.00) when no settings row exists

Missing configuration is never an error.

Author: TM3
Date: 2026-03-02
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from settlement.core.config import settings
from settlement.domain.settings import CommissionSettings

logger = logging.getLogger(__name__)


class CommissionResolver:
    """Resolves commission rates against an explicitly supplied CommissionSettings"""

    def __init__(self, fallback_rate: Optional[Decimal] = None):
        self.fallback_rate = Decimal(str(fallback_rate if fallback_rate is not None else settings.DEFAULT_COMMISSION_RATE))

    def resolve(
        self,
        seller_id: str,
        category_id: Optional[str],
        commission_settings: Optional[CommissionSettings],
    ) -> Decimal:
        """
        Resolve the rate for a seller/category pair

        Args:
            seller_id: Seller being credited
            category_id: Category of the group's first line item (may be None)
            commission_settings: Settings read for this operation, None if absent

        Returns:
            Percentage (0-100) quantized to two decimals
        """
        if commission_settings is None:
            logger.warning(
                f"No commission settings configured; using fallback rate {self.fallback_rate}% "
                f"for seller {seller_id}"
            )
            return self._quantize(self.fallback_rate)

        # Explicit 0% overrides are valid, so test membership rather than truthiness
        if seller_id in commission_settings.seller_custom_rates:
            return self._quantize(commission_settings.seller_custom_rates[seller_id])

        if category_id is not None and category_id in commission_settings.category_rates:
            return self._quantize(commission_settings.category_rates[category_id])

        return self._quantize(commission_settings.default_rate)

    @staticmethod
    def _quantize(rate: Decimal) -> Decimal:
        return Decimal(str(rate)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
