# storefront/services/checkout_service.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.enums import PaymentMethod, PaymentStatus
from storefront.domain.errors import PaymentVerificationFailed, ValidationError
from storefront.repos.user_repo import UserRepo
from storefront.services.catalog_service import CatalogService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGateway, PaymentIntent, PaypalCapture, PaypalOrder
from storefront.services.payment_reconciler import PaymentReconciler
from storefront.utils.retry import conflict_retry
from storefront.utils.settings import BASE_SHIPPING_RATE, TAX_RATE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def shipping_rates(shipping_address: Dict[str, Any]) -> List[Dict[str, Any]]:
    # flat table, no carrier integration
    return [
        {"method": "Standard", "cost": _money(BASE_SHIPPING_RATE), "estimated_days": "3-5 business days", "carrier": "USPS"},
        {"method": "Express", "cost": _money(BASE_SHIPPING_RATE * 2), "estimated_days": "1-2 business days", "carrier": "UPS"},
        {"method": "Overnight", "cost": _money(BASE_SHIPPING_RATE * 4), "estimated_days": "1 business day", "carrier": "FedEx"},
    ]


class CheckoutService:
    """
    Checkout use cases on top of the order transaction:
    preview totals, open a payment intent, and place the order.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        notifier: NotificationService,
    ):
        self.orders = OrderService(db)
        self.payments = PaymentReconciler(db)
        self.catalog = CatalogService(db)
        self.users = UserRepo(db)
        self.gateway = gateway
        self.notifier = notifier

    def preview(self, items: List[Dict[str, Any]], shipping_address: Dict[str, Any]) -> Dict[str, Any]:
        subtotal = Decimal("0.00")
        for item in items:
            product = self.catalog.get_product(item["product_id"])
            subtotal += product.price * int(item["quantity"])

        rates = shipping_rates(shipping_address)
        selected = rates[0]
        tax = _money(subtotal * TAX_RATE)

        return {
            "subtotal": _money(subtotal),
            "shipping": selected["cost"],
            "tax": tax,
            "total": _money(subtotal + selected["cost"] + tax),
            "shipping_rates": rates,
            "selected_shipping": selected,
        }

    def create_payment_intent(self, amount: Decimal, currency: str = "usd") -> PaymentIntent:
        intent = self.gateway.create_payment_intent(amount, currency)
        logger.info(f"Opened payment intent {intent.id} for {amount} {currency}")
        return intent

    def create_paypal_order(self, amount: Decimal, currency: str = "usd") -> PaypalOrder:
        paypal_order = self.gateway.create_paypal_order(amount, currency)
        logger.info(f"Opened PayPal order {paypal_order.id} for {amount} {currency}")
        return paypal_order

    def capture_paypal_order(self, paypal_order_id: str) -> PaypalCapture:
        capture = self.gateway.capture_paypal_order(paypal_order_id)
        if capture.status != "COMPLETED":
            logger.warning(f"PayPal order {paypal_order_id} capture returned {capture.status}")
        else:
            logger.info(f"Captured PayPal order {paypal_order_id} as {capture.id}")
        return capture

    def process(
        self,
        items: List[Dict[str, Any]],
        shipping_address: Dict[str, Any],
        billing_address: Dict[str, Any],
        payment_method: PaymentMethod | str,
        user_id: str | None = None,
        guest_email: str | None = None,
        payment_intent_id: str | None = None,
    ) -> OrderModel:
        """
        Use case: place an order.

        1. Require an owner or a guest email
        2. Verify a stripe payment intent with the gateway, before any write
        3. Run the order transaction, retrying only on store conflicts
        4. Mark the payment completed when an intent was supplied
        5. Queue the confirmation
        """
        payment_method = PaymentMethod(payment_method)

        if not user_id and not guest_email:
            raise ValidationError("Guest email is required")

        if payment_method == PaymentMethod.STRIPE and payment_intent_id:
            if not self.gateway.verify_payment(payment_intent_id):
                logger.warning(f"Payment verification failed for intent {payment_intent_id}")
                raise PaymentVerificationFailed("Payment verification failed")

        @conflict_retry()
        def _place() -> OrderModel:
            return self.orders.create_order(
                items=items,
                shipping_address=shipping_address,
                billing_address=billing_address,
                payment_method=payment_method,
                owner_id=user_id,
                guest_email=guest_email,
            )

        order = _place()

        if payment_intent_id:
            order = self.payments.update_payment_status(
                order.id,
                PaymentStatus.COMPLETED,
                payment_reference=payment_intent_id,
            )

        recipient = order.guest_email
        if recipient is None and order.user_id:
            user = self.users.get_user(order.user_id)
            recipient = user.email if user else None

        self.notifier.send_order_confirmation(order.id, recipient)

        logger.info(f"Checkout complete for order {order.id}")
        return order
