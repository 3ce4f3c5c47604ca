# storefront/services/payment_gateway.py
"""
Payment gateway port and its adapters.

The checkout flow needs a card path (open a payment intent, later confirm
it succeeded) and a PayPal path (create an order, then capture it).
``FakePaymentGateway`` is the default for development and tests;
``HttpPaymentGateway`` talks to a gateway over HTTP.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from uuid import uuid4

import requests

from storefront.utils.retry import http_retry
from storefront.utils.settings import PAYMENT_GATEWAY, PAYMENT_GATEWAY_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str


@dataclass(frozen=True)
class PaypalOrder:
    id: str


@dataclass(frozen=True)
class PaypalCapture:
    id: str
    status: str


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    @abstractmethod
    def create_payment_intent(self, amount: Decimal, currency: str) -> PaymentIntent:
        ...

    @abstractmethod
    def verify_payment(self, payment_intent_id: str) -> bool:
        ...

    @abstractmethod
    def create_paypal_order(self, amount: Decimal, currency: str) -> PaypalOrder:
        ...

    @abstractmethod
    def capture_paypal_order(self, paypal_order_id: str) -> PaypalCapture:
        ...


class FakePaymentGateway(PaymentGateway):
    """Configurable fake: succeeds by default, records every call."""

    def __init__(self, should_succeed: bool = True):
        self.should_succeed = should_succeed
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool) -> None:
        self.should_succeed = should_succeed

    def create_payment_intent(self, amount: Decimal, currency: str) -> PaymentIntent:
        self.calls.append({"method": "create_payment_intent", "amount": amount, "currency": currency})
        intent_id = f"pi_test_{uuid4().hex[:12]}"
        return PaymentIntent(id=intent_id, client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}")

    def verify_payment(self, payment_intent_id: str) -> bool:
        self.calls.append({"method": "verify_payment", "payment_intent_id": payment_intent_id})
        return self.should_succeed

    def create_paypal_order(self, amount: Decimal, currency: str) -> PaypalOrder:
        self.calls.append({"method": "create_paypal_order", "amount": amount, "currency": currency})
        return PaypalOrder(id=f"PAYPAL-TEST-{uuid4().hex[:12].upper()}")

    def capture_paypal_order(self, paypal_order_id: str) -> PaypalCapture:
        self.calls.append({"method": "capture_paypal_order", "paypal_order_id": paypal_order_id})
        status = "COMPLETED" if self.should_succeed else "DECLINED"
        return PaypalCapture(id=f"CAPTURE-TEST-{uuid4().hex[:12].upper()}", status=status)


class HttpPaymentGateway(PaymentGateway):
    def __init__(self, base_url: str | None = None, timeout: int = 5):
        self.base_url = (base_url or PAYMENT_GATEWAY_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def create_payment_intent(self, amount: Decimal, currency: str) -> PaymentIntent:
        url = f"{self.base_url}/payment_intents"
        logger.info(f"PaymentGateway POST {url} amount={amount} {currency}")

        # minor units, the way card gateways take amounts
        resp = requests.post(
            url,
            json={"amount": to_minor_units(amount), "currency": currency},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        return PaymentIntent(id=data["id"], client_secret=data["client_secret"])

    @http_retry()
    def verify_payment(self, payment_intent_id: str) -> bool:
        url = f"{self.base_url}/payment_intents/{payment_intent_id}"
        logger.info(f"PaymentGateway GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return resp.json().get("status") == "succeeded"

    @http_retry()
    def create_paypal_order(self, amount: Decimal, currency: str) -> PaypalOrder:
        url = f"{self.base_url}/paypal/orders"
        logger.info(f"PaymentGateway POST {url} amount={amount} {currency}")

        # paypal takes a decimal string, not minor units
        value = str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
        resp = requests.post(
            url,
            json={"intent": "CAPTURE", "amount": {"currency_code": currency.upper(), "value": value}},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return PaypalOrder(id=resp.json()["id"])

    @http_retry()
    def capture_paypal_order(self, paypal_order_id: str) -> PaypalCapture:
        url = f"{self.base_url}/paypal/orders/{paypal_order_id}/capture"
        logger.info(f"PaymentGateway POST {url}")

        resp = requests.post(url, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        return PaypalCapture(id=data["id"], status=data["status"])


_current_gateway: PaymentGateway | None = None


def get_payment_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = HttpPaymentGateway() if PAYMENT_GATEWAY == "http" else FakePaymentGateway()
    return _current_gateway
