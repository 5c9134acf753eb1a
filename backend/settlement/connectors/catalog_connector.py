"""
Catalog Connector
Resolves product ids to their owning seller and category

API CONFIGURATION:
- Base URL: CATALOG_API_URL
- Auth: Bearer CATALOG_API_TOKEN (optional)

ENDPOINT:
- POST /products/resolve
  - Body: {"productIds": ["p1", "p2", ...]}
  - Returns: {"products": [{"productId", "sellerId", "categoryId", "title", "sku"}, ...]}
  - Unknown ids are simply absent from the response

One request per split (batched by distinct product id).

Author: TM3
Date: 2026-03-02
"""
import logging
from typing import Dict, Iterable, List, Optional, Protocol

import httpx

from settlement.core.config import settings
from settlement.core.errors import CatalogUnavailableError
from settlement.domain.order import ProductInfo

logger = logging.getLogger(__name__)


class CatalogGateway(Protocol):
    """Anything that can batch-resolve product ids"""

    def resolve_products(self, product_ids: List[str]) -> List[ProductInfo]:
        ...


class CatalogConnector:
    """
    HTTP connector for the catalog service

    Handles:
    - Batched product -> seller/category resolution
    - Mapping transport/HTTP failures to CatalogUnavailableError
    """

    RESOLVE_PATH = "/products/resolve"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize catalog connector

        Args:
            base_url: Catalog API base URL (default: CATALOG_API_URL)
            token: Bearer token (default: CATALOG_API_TOKEN)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = (base_url or settings.CATALOG_API_URL or "").rstrip("/")
        self.token = token or settings.CATALOG_API_TOKEN
        self.timeout = timeout or settings.CATALOG_TIMEOUT_SECONDS
        self._transport = transport

        if not self.base_url:
            raise ValueError(
                "Catalog API not configured. "
                "Set CATALOG_API_URL environment variable"
            )

    @property
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def resolve_products(self, product_ids: List[str]) -> List[ProductInfo]:
        """
        Resolve product ids in one request

        Args:
            product_ids: Distinct product ids

        Returns:
            ProductInfo for every id the catalog knows

        Raises:
            CatalogUnavailableError: Transport error or non-2xx response
        """
        if not product_ids:
            return []

        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = client.post(self.RESOLVE_PATH, json={"productIds": list(product_ids)})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Catalog resolve failed with HTTP {e.response.status_code}")
            raise CatalogUnavailableError(f"Catalog returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Catalog resolve request error: {e}")
            raise CatalogUnavailableError(f"Catalog request failed: {e}") from e

        products = [ProductInfo.model_validate(p) for p in payload.get("products", [])]
        logger.debug(f"Catalog resolved {len(products)}/{len(product_ids)} products")
        return products


class StaticCatalog:
    """
    In-process catalog backed by a dict (fixtures, scripts, replays)

    Records every batch it is asked to resolve in `lookups`.
    """

    def __init__(self, products: Optional[Iterable[ProductInfo]] = None):
        self._products: Dict[str, ProductInfo] = {p.product_id: p for p in (products or [])}
        self.lookups: List[List[str]] = []

    def add(self, product: ProductInfo) -> None:
        self._products[product.product_id] = product

    def resolve_products(self, product_ids: List[str]) -> List[ProductInfo]:
        self.lookups.append(list(product_ids))
        return [self._products[pid] for pid in product_ids if pid in self._products]
