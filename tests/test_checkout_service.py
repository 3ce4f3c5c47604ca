"""Tests for checkout preview, payment intents and order placement."""

from decimal import Decimal

import pytest

from storefront.domain.errors import (
    InsufficientStock,
    PaymentVerificationFailed,
    TransactionConflict,
    ValidationError,
)
from storefront.services.checkout_service import CheckoutService, shipping_rates

ADDRESS = {"line1": "1 Main St", "city": "Springfield", "country": "US"}


@pytest.fixture()
def svc(db, gateway, notifier):
    return CheckoutService(db=db, gateway=gateway, notifier=notifier)


def _process(svc, items, **kwargs):
    kwargs.setdefault("payment_method", "stripe")
    return svc.process(items=items, shipping_address=ADDRESS, billing_address=ADDRESS, **kwargs)


class TestShippingRates:
    def test_flat_table(self):
        rates = shipping_rates(ADDRESS)
        assert [r["method"] for r in rates] == ["Standard", "Express", "Overnight"]
        assert [r["cost"] for r in rates] == [Decimal("9.99"), Decimal("19.98"), Decimal("39.96")]


class TestPreview:
    def test_totals(self, svc, make_product):
        a = make_product(name="A", price="10.00")
        b = make_product(name="B", price="5.00")

        preview = svc.preview([{"product_id": a.id, "quantity": 2}, {"product_id": b.id, "quantity": 1}], ADDRESS)

        assert preview["subtotal"] == Decimal("25.00")
        assert preview["shipping"] == Decimal("9.99")
        assert preview["tax"] == Decimal("2.00")
        assert preview["total"] == Decimal("36.99")
        assert preview["selected_shipping"]["method"] == "Standard"
        assert len(preview["shipping_rates"]) == 3


class TestPaymentIntent:
    def test_opens_intent_with_gateway(self, svc, gateway):
        intent = svc.create_payment_intent(Decimal("36.99"), "usd")

        assert intent.id.startswith("pi_test_")
        assert intent.client_secret.startswith(intent.id)
        assert gateway.calls == [{"method": "create_payment_intent", "amount": Decimal("36.99"), "currency": "usd"}]


class TestProcess:
    def test_guest_checkout(self, svc, make_product, notifier):
        product = make_product(price="10.00", stock=5)
        order = _process(svc, [{"product_id": product.id, "quantity": 2}], guest_email="guest@example.com")

        assert order.total_amount == Decimal("20.00")
        assert order.payment_status == "pending"
        assert notifier.confirmations == [(order.id, "guest@example.com")]

    def test_user_checkout_notifies_account_email(self, svc, make_product, make_user, notifier):
        product = make_product(stock=5)
        user = make_user(email="member@example.com")

        order = _process(svc, [{"product_id": product.id, "quantity": 1}], user_id=user.id)

        assert order.user_id == user.id
        assert notifier.confirmations == [(order.id, "member@example.com")]

    def test_verified_intent_completes_payment(self, svc, make_product, gateway):
        product = make_product(stock=5)
        order = _process(
            svc,
            [{"product_id": product.id, "quantity": 1}],
            guest_email="guest@example.com",
            payment_intent_id="pi_test_abc",
        )

        assert order.payment_status == "completed"
        assert order.payment_reference == "pi_test_abc"
        assert {"method": "verify_payment", "payment_intent_id": "pi_test_abc"} in gateway.calls

    def test_failed_verification_places_nothing(self, db, svc, make_product, gateway, notifier):
        product = make_product(stock=5)
        gateway.configure(should_succeed=False)

        with pytest.raises(PaymentVerificationFailed):
            _process(
                svc,
                [{"product_id": product.id, "quantity": 1}],
                guest_email="guest@example.com",
                payment_intent_id="pi_test_abc",
            )

        db.refresh(product)
        assert product.stock_quantity == 5
        assert notifier.confirmations == []

    def test_non_stripe_intent_is_not_verified(self, svc, make_product, gateway):
        product = make_product(stock=5)
        gateway.configure(should_succeed=False)

        order = _process(
            svc,
            [{"product_id": product.id, "quantity": 1}],
            payment_method="paypal",
            guest_email="guest@example.com",
            payment_intent_id="PAY-123",
        )

        assert order.payment_status == "completed"
        assert gateway.calls == []

    def test_guest_without_email(self, svc, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            _process(svc, [{"product_id": product.id, "quantity": 1}])

    def test_stock_failure_is_not_retried(self, svc, make_product, monkeypatch):
        product = make_product(stock=1)
        calls = []
        real = svc.orders.create_order

        def counting(**kwargs):
            calls.append(kwargs)
            return real(**kwargs)

        monkeypatch.setattr(svc.orders, "create_order", counting)

        with pytest.raises(InsufficientStock):
            _process(svc, [{"product_id": product.id, "quantity": 2}], guest_email="guest@example.com")
        assert len(calls) == 1

    def test_conflict_is_retried(self, svc, make_product, monkeypatch):
        product = make_product(stock=5)
        calls = []
        real = svc.orders.create_order

        def flaky(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise TransactionConflict("concurrent update")
            return real(**kwargs)

        monkeypatch.setattr(svc.orders, "create_order", flaky)

        order = _process(svc, [{"product_id": product.id, "quantity": 1}], guest_email="guest@example.com")

        assert len(calls) == 2
        assert order.total_amount == Decimal("10.00")

    def test_conflict_gives_up_after_max_attempts(self, svc, make_product, monkeypatch):
        product = make_product(stock=5)
        calls = []

        def always_conflicts(**kwargs):
            calls.append(kwargs)
            raise TransactionConflict("concurrent update")

        monkeypatch.setattr(svc.orders, "create_order", always_conflicts)

        with pytest.raises(TransactionConflict):
            _process(svc, [{"product_id": product.id, "quantity": 1}], guest_email="guest@example.com")
        assert len(calls) == 3


class TestPaypal:
    def test_create_and_capture(self, svc, gateway):
        paypal_order = svc.create_paypal_order(Decimal("20.00"), "usd")
        capture = svc.capture_paypal_order(paypal_order.id)

        assert paypal_order.id.startswith("PAYPAL-TEST-")
        assert capture.status == "COMPLETED"
        assert [c["method"] for c in gateway.calls] == ["create_paypal_order", "capture_paypal_order"]

    def test_declined_capture_is_reported(self, svc, gateway):
        gateway.configure(should_succeed=False)
        capture = svc.capture_paypal_order("PAYPAL-TEST-1")
        assert capture.status == "DECLINED"
