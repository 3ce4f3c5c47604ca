# storefront/services/order_service.py
from collections import OrderedDict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from storefront.data.database import transaction
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from storefront.domain.errors import (
    AccessDenied,
    InsufficientStock,
    NotFound,
    TransactionConflict,
    ValidationError,
)
from storefront.domain.identity import UserIdentity
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# serialization failure, deadlock, lock not available
_CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}


def is_transaction_conflict(exc: BaseException) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if code in _CONFLICT_SQLSTATES:
            return True
        return "database is locked" in str(orig).lower()
    return False


def _requested_quantities(items: Iterable[Dict[str, Any]]) -> "OrderedDict[str, int]":
    totals: "OrderedDict[str, int]" = OrderedDict()
    for item in items:
        totals[item["product_id"]] = totals.get(item["product_id"], 0) + int(item["quantity"])
    return totals


class OrderService:
    """
    Order domain: the atomic order transaction and the order queries.
    Payment and fulfillment status updates live in PaymentReconciler.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.carts = CartRepo(db)

    def create_order(
        self,
        items: List[Dict[str, Any]],
        shipping_address: Dict[str, Any],
        billing_address: Dict[str, Any],
        payment_method: PaymentMethod | str,
        owner_id: str | None = None,
        guest_email: str | None = None,
    ) -> OrderModel:
        """
        Use case: turn a list of line items into a persisted order.

        1. Lock and re-read every product, verify it is active and in stock
        2. Compute the total from the locked prices
        3. Insert the order and its items, decrement stock
        4. Clear the owner's cart (guest session lines are left alone)

        Everything runs in one transaction; any failure leaves no writes.
        """
        if not items:
            raise ValidationError("At least one item is required")
        if not owner_id and not guest_email:
            raise ValidationError("Guest email is required")
        if owner_id:
            guest_email = None

        payment_method = PaymentMethod(payment_method)
        requested = _requested_quantities(items)

        try:
            with transaction(self.db):
                locked = self.products.lock_products(requested.keys())

                #1 verify every line before writing anything
                for product_id, quantity in requested.items():
                    product = locked.get(product_id)
                    if product is None or not product.is_active:
                        logger.warning(f"Order rejected: product {product_id} not found")
                        raise NotFound(f"Product {product_id} not found", resource_id=product_id)
                    if product.stock_quantity < quantity:
                        logger.warning(
                            f"Order rejected: insufficient stock for product {product_id} "
                            f"(requested {quantity}, available {product.stock_quantity})"
                        )
                        raise InsufficientStock(product_id, quantity, product.stock_quantity, name=product.name)

                #2 prices come from the locked rows, never from the client
                lines = []
                total = Decimal("0.00")
                for item in items:
                    product = locked[item["product_id"]]
                    quantity = int(item["quantity"])
                    unit_price = Decimal(product.price)
                    total += unit_price * quantity
                    lines.append((product, quantity, unit_price))

                #3 order, items, stock
                order = self.repo.create_order(
                    OrderModel(
                        user_id=owner_id,
                        guest_email=guest_email,
                        total_amount=total,
                        status=OrderStatus.PENDING.value,
                        payment_status=PaymentStatus.PENDING.value,
                        payment_method=payment_method.value,
                        shipping_address=shipping_address,
                        billing_address=billing_address,
                    )
                )

                for product, quantity, unit_price in lines:
                    self.repo.add_item(
                        OrderItemModel(
                            order_id=order.id,
                            product_id=product.id,
                            quantity=quantity,
                            unit_price=unit_price,
                        )
                    )

                for product_id, quantity in requested.items():
                    product = locked[product_id]
                    available = product.stock_quantity
                    if self.products.decrement_stock(product, quantity) == 0:
                        raise InsufficientStock(product_id, quantity, available, name=product.name)

                #4
                if owner_id:
                    self.carts.clear(UserIdentity(user_id=owner_id))

        except DBAPIError as e:
            if is_transaction_conflict(e):
                logger.warning(f"Order transaction conflict, rolled back: {e.orig}")
                raise TransactionConflict("Order could not be committed due to a concurrent update, retry") from e
            raise
        except StaleDataError as e:
            logger.warning(f"Order transaction conflict, rolled back: {e}")
            raise TransactionConflict("Order could not be committed due to a concurrent update, retry") from e

        logger.info(
            f"Order {order.id} created for {'user ' + owner_id if owner_id else 'guest ' + guest_email}, "
            f"total {total}, {len(lines)} items"
        )

        #5
        return self.get_order(order.id)

    #queries
    def get_order(self, order_id: str) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found", resource_id=order_id)
        return order

    def get_order_for(self, order_id: str, user_id: str, is_admin: bool = False) -> OrderModel:
        order = self.get_order(order_id)
        if order.user_id != user_id and not is_admin:
            raise AccessDenied("Access denied")
        return order

    def list_orders_for_user(self, user_id: str) -> List[OrderModel]:
        return self.repo.list_by_user(user_id)

    def list_orders(self, status: OrderStatus | str | None = None, limit: int | None = None) -> List[OrderModel]:
        status = OrderStatus(status).value if status else None
        return self.repo.list_orders(status=status, limit=limit)

    def track_order(self, order_id: str, email: str | None = None) -> Dict[str, Any]:
        order = self.get_order(order_id)

        # guest orders are only visible with the email they were placed with
        if order.user_id is None and order.guest_email and order.guest_email != email:
            raise AccessDenied("Access denied")

        return {
            "id": order.id,
            "status": order.status,
            "tracking_number": order.tracking_number,
            "created_at": order.created_at,
        }

    def get_order_stats(self, days: int = 30) -> Dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(days=days)

        by_status = {s.value: 0 for s in OrderStatus}
        by_status.update(self.repo.status_counts(since))
        completed, revenue = self.repo.payment_totals(since)
        active_products, total_stock = self.products.catalog_totals()

        return {
            "total_orders": sum(by_status.values()),
            "orders_by_status": by_status,
            "completed_payments": completed,
            "total_revenue": revenue,
            "active_products": active_products,
            "total_stock": total_stock,
        }

    def get_sales_analytics(self, start_date: date | None = None, end_date: date | None = None) -> Dict[str, Any]:
        """
        Sales over an inclusive date range (UTC days), or over all orders
        when no bound is given. Revenue counts completed payments only;
        daily sales count every order placed that day.
        """
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must not be after end_date")

        start = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
        end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc) if end_date else None
        orders = self.repo.list_created_between(start, end)

        revenue = Decimal("0.00")
        by_status: Dict[str, int] = {}
        daily: "OrderedDict[str, Decimal]" = OrderedDict()
        for order in orders:
            amount = Decimal(order.total_amount)
            if order.payment_status == PaymentStatus.COMPLETED.value:
                revenue += amount
            by_status[order.status] = by_status.get(order.status, 0) + 1
            day = order.created_at.date().isoformat()
            daily[day] = daily.get(day, Decimal("0.00")) + amount

        return {
            "total_revenue": revenue,
            "total_orders": len(orders),
            "orders_by_status": by_status,
            "daily_sales": daily,
            "period": {"start_date": start_date, "end_date": end_date},
        }
