"""
Order Splitting Service - partitions a paid order by seller and credits each one

Flow per order:
1. Resolve seller/category for line items missing them (one batched catalog call)
2. Group line items by seller
3. One seller  -> one earnings row against the parent order (no sub-order)
   N sellers   -> one sub-order + one earnings row per seller
4. Commit everything in a single transaction (all sellers or none)
5. Notify each distinct seller once, after commit

The order id is the idempotency key: a second call finds the existing rows
and returns them instead of writing new ones.

Author: TM3
Date: 2026-03-02
"""
import logging
from collections import OrderedDict
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from settlement.connectors.catalog_connector import CatalogGateway
from settlement.connectors.notification_gateway import (
    LoggingNotificationGateway,
    NotificationGateway,
    safe_notify,
)
from settlement.core.database import SessionFactory, session_scope
from settlement.core.errors import PaymentNotCapturedError, PersistenceError, PersistenceErrorKind
from settlement.domain.order import Order, OrderLineItem
from settlement.domain.split import SplitResult
from settlement.repositories import ConfigRepository, EarningsRepository, SubOrderRepository
from settlement.services.commission_service import CommissionResolver
from settlement.services.earnings_calculator import calculate_earnings
from settlement.services.earnings_ledger_service import compute_available_date, utc_today

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


class OrderSplittingService:
    """
    Splits paid orders into per-seller sub-orders and earnings ledger rows

    Collaborators are injected so tests can run against fixtures:
        catalog: CatalogGateway used for missing seller/category ids
        notifier: NotificationGateway for post-commit seller notifications
        session_factory: Session factory (default: process-wide engine)
        resolver: CommissionResolver
        clock: Callable returning today's date
    """

    def __init__(
        self,
        catalog: CatalogGateway,
        notifier: Optional[NotificationGateway] = None,
        session_factory: Optional[SessionFactory] = None,
        resolver: Optional[CommissionResolver] = None,
        clock: Optional[Clock] = None,
    ):
        self.catalog = catalog
        self.notifier = notifier or LoggingNotificationGateway()
        self.session_factory = session_factory
        self.resolver = resolver or CommissionResolver()
        self.clock = clock or utc_today

    # =========================================================================
    # Public API
    # =========================================================================

    def settle_order(self, order: Order) -> SplitResult:
        """
        Settle an order handed over by the order-processing pipeline

        Raises:
            PaymentNotCapturedError: If the charge has not succeeded yet
            PersistenceError: If the split could not be committed (retry the call)
        """
        if not order.payment_captured:
            raise PaymentNotCapturedError(f"Order {order.id} has no captured payment")

        if order.items and order.items_total != order.gross_amount:
            logger.warning(
                f"Order {order.id}: line items total {order.items_total} "
                f"differs from gross amount {order.gross_amount}"
            )

        return self.split(order.id, order.items)

    def split(self, order_id: str, line_items: List[OrderLineItem]) -> SplitResult:
        """
        Split an order by seller and write sub-orders/earnings atomically

        Args:
            order_id: Parent order ID (idempotency key)
            line_items: Ordered line items; seller/category may be missing

        Returns:
            SplitResult with the rows written (or found, when already settled)
        """
        existing = self._find_existing(order_id)
        if existing is not None:
            logger.info(f"Order {order_id} already settled, skipping split")
            return existing

        resolved, skipped = self._resolve_line_items(order_id, line_items)
        groups = self._group_by_seller(resolved)

        if not groups:
            logger.warning(f"Order {order_id}: no line items could be attributed to a seller")
            return SplitResult(order_id=order_id, is_split=False, skipped_product_ids=skipped)

        try:
            with session_scope(self.session_factory) as session:
                result = self._write_split(session, order_id, groups, skipped)
        except PersistenceError as e:
            if e.kind != PersistenceErrorKind.DUPLICATE_KEY:
                raise
            # A concurrent call committed the same order first
            existing = self._find_existing(order_id)
            if existing is None:
                raise
            logger.info(f"Order {order_id} settled concurrently, returning existing rows")
            return existing

        if result.already_settled:
            return result

        logger.info(
            f"Order {order_id} settled: {result.seller_count} seller(s), "
            f"gross {result.total_gross}, commission {result.total_commission}, "
            f"{len(skipped)} item(s) skipped"
        )
        self._notify_sellers(result, groups)
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _find_existing(self, order_id: str, session: Optional[Session] = None) -> Optional[SplitResult]:
        if session is None:
            with session_scope(self.session_factory) as own_session:
                return self._find_existing(order_id, own_session)

        earnings = EarningsRepository(session).find_by_order(order_id)
        sub_orders = SubOrderRepository(session).find_by_order(order_id)
        if not earnings and not sub_orders:
            return None

        return SplitResult(
            order_id=order_id,
            is_split=bool(sub_orders),
            already_settled=True,
            sub_orders=sub_orders,
            earnings=earnings,
        )

    def _resolve_line_items(
        self, order_id: str, line_items: List[OrderLineItem]
    ) -> Tuple[List[OrderLineItem], List[str]]:
        """Fill seller/category from the catalog; items still without a seller are skipped"""
        missing = list(OrderedDict.fromkeys(
            item.product_id for item in line_items if not (item.seller_id and item.category_id)
        ))

        catalog_info = {}
        if missing:
            catalog_info = {p.product_id: p for p in self.catalog.resolve_products(missing)}

        resolved: List[OrderLineItem] = []
        skipped: List[str] = []
        for item in line_items:
            info = catalog_info.get(item.product_id)
            if info is None:
                if item.seller_id:
                    resolved.append(item)
                    continue
                logger.warning(f"Order {order_id}: product {item.product_id} has no seller, item skipped")
                skipped.append(item.product_id)
                continue

            resolved.append(item.model_copy(update={
                "seller_id": item.seller_id or info.seller_id,
                "category_id": item.category_id or info.category_id,
                "title": item.title or info.title,
                "sku": item.sku or info.sku,
            }))

        return resolved, skipped

    @staticmethod
    def _group_by_seller(items: List[OrderLineItem]) -> Dict[str, List[OrderLineItem]]:
        """Group items by seller, keeping first-seen order"""
        groups: Dict[str, List[OrderLineItem]] = OrderedDict()
        for item in items:
            groups.setdefault(item.seller_id, []).append(item)
        return groups

    def _write_split(
        self,
        session: Session,
        order_id: str,
        groups: Dict[str, List[OrderLineItem]],
        skipped: List[str],
    ) -> SplitResult:
        # Re-check inside the transaction; the unique constraints catch the rest
        existing = self._find_existing(order_id, session)
        if existing is not None:
            return existing

        config = ConfigRepository(session)
        commission_settings = config.get_commission_settings()
        payout_settings = config.get_payout_settings()
        available_date = compute_available_date(self.clock(), payout_settings.holding_period_days)

        earnings_repo = EarningsRepository(session)
        sub_order_repo = SubOrderRepository(session)
        is_split = len(groups) > 1

        result = SplitResult(order_id=order_id, is_split=is_split, skipped_product_ids=skipped)

        for seller_id, items in groups.items():
            subtotal = sum(item.line_total for item in items)
            rate = self.resolver.resolve(seller_id, items[0].category_id, commission_settings)
            breakdown = calculate_earnings(subtotal, rate)

            sub_order_id = None
            if is_split:
                sub_order = sub_order_repo.create(
                    order_id=order_id,
                    seller_id=seller_id,
                    items=items,
                    subtotal=subtotal,
                    commission_rate=breakdown.commission_rate,
                    commission_amount=breakdown.commission_amount,
                    seller_payout_amount=breakdown.net_amount,
                )
                result.sub_orders.append(sub_order)
                sub_order_id = sub_order.id

            record = earnings_repo.create(
                order_id=order_id,
                seller_id=seller_id,
                breakdown=breakdown,
                available_date=available_date,
                sub_order_id=sub_order_id,
            )
            result.earnings.append(record)

            logger.debug(
                f"Order {order_id} seller {seller_id}: gross {subtotal}, rate {rate}%, "
                f"net {breakdown.net_amount}"
            )

        return result

    def _notify_sellers(self, result: SplitResult, groups: Dict[str, List[OrderLineItem]]) -> None:
        sub_orders = {s.seller_id: s for s in result.sub_orders}
        for record in result.earnings:
            items = groups[record.seller_id]
            payload = {
                "order_id": result.order_id,
                "item_count": len(items),
                "subtotal": record.gross_amount,
            }
            if record.seller_id in sub_orders:
                payload["sub_order_id"] = sub_orders[record.seller_id].id
            safe_notify(self.notifier, record.seller_id, payload)
