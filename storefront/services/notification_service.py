# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Customer notifications.
    Queued through Celery so a slow mail provider never holds a request.
    """

    def send_order_confirmation(self, order_id: str, recipient: str | None) -> None:
        send_order_confirmation_task.delay(order_id, recipient)

    def send_status_update(self, order_id: str, status: str, tracking_number: str | None = None) -> None:
        send_status_update_task.delay(order_id, status, tracking_number)


@celery_app.task(name="storefront.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_id: str, recipient: str | None):
    """
    Stand-in for the confirmation email, only logs.
    """
    logger.info(f"[NOTIFICATION] Order {order_id} confirmed, sending confirmation to {recipient or 'account owner'}")
    return {"order_id": order_id, "recipient": recipient, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_status_update_task")
def send_status_update_task(order_id: str, status: str, tracking_number: str | None = None):
    logger.info(f"[NOTIFICATION] Order {order_id} is now {status} (tracking: {tracking_number or '-'})")
    return {"order_id": order_id, "status": status, "tracking_number": tracking_number}
