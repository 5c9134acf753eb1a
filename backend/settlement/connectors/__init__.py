"""
External collaborators: catalog lookups and seller notifications
"""
from settlement.connectors.catalog_connector import CatalogGateway, CatalogConnector, StaticCatalog
from settlement.connectors.notification_gateway import (
    NotificationGateway,
    LoggingNotificationGateway,
    safe_notify,
)

__all__ = [
    'CatalogGateway',
    'CatalogConnector',
    'StaticCatalog',
    'NotificationGateway',
    'LoggingNotificationGateway',
    'safe_notify'
]
