"""
Seller notification gateway

Delivery mechanics (push, email) belong to another service; the engine
only hands over a payload after its transaction has committed.
"""
import logging
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class NotificationGateway(Protocol):
    def notify(self, seller_id: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationGateway:
    """Default gateway: writes notifications to the log"""

    def notify(self, seller_id: str, payload: Dict[str, Any]) -> None:
        logger.info(f"Notify seller {seller_id}: {payload}")


def safe_notify(gateway: NotificationGateway, seller_id: str, payload: Dict[str, Any]) -> bool:
    """
    Fire-and-forget delivery

    Returns:
        True if the gateway accepted the notification, False if it raised
    """
    try:
        gateway.notify(seller_id, payload)
        return True
    except Exception as e:
        logger.warning(f"Notification to seller {seller_id} failed: {e}")
        return False
