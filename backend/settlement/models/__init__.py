"""
Modelos de base de datos
"""
from .earnings import SubOrder, SellerEarning, Payout
from .settings import CommissionSetting, PayoutSetting

__all__ = [
    "SubOrder",
    "SellerEarning",
    "Payout",
    "CommissionSetting",
    "PayoutSetting",
]
