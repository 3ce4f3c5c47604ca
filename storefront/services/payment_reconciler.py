# storefront/services/payment_reconciler.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.enums import OrderStatus, PaymentStatus
from storefront.domain.errors import NotFound
from storefront.repos.order_repo import OrderRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentReconciler:
    """
    Records externally decided outcomes against an order.

    Both updates coalesce: an omitted reference or tracking number keeps the
    stored one. Repeating a call only refreshes ``updated_at``. Gateway
    verification happens before this is reached; no status transition
    graph is enforced here.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)

    def update_payment_status(
        self,
        order_id: str,
        status: PaymentStatus | str,
        payment_reference: str | None = None,
    ) -> OrderModel:
        status = PaymentStatus(status)
        order = self._get(order_id)

        previous = order.payment_status
        order.payment_status = status.value
        if payment_reference is not None:
            order.payment_reference = payment_reference
        self._touch(order)

        self.repo.commit()

        logger.info(f"Order {order_id} payment status {previous} -> {status.value}")
        return self.repo.get_order(order_id)

    def update_status(
        self,
        order_id: str,
        status: OrderStatus | str,
        tracking_number: str | None = None,
    ) -> OrderModel:
        status = OrderStatus(status)
        order = self._get(order_id)

        previous = order.status
        order.status = status.value
        if tracking_number is not None:
            order.tracking_number = tracking_number
        self._touch(order)

        self.repo.commit()

        logger.info(f"Order {order_id} status {previous} -> {status.value}")
        return self.repo.get_order(order_id)

    def _get(self, order_id: str) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found", resource_id=order_id)
        return order

    @staticmethod
    def _touch(order: OrderModel) -> None:
        # onupdate only fires when a column changed, an identical status still refreshes the timestamp
        order.updated_at = datetime.now(timezone.utc)
