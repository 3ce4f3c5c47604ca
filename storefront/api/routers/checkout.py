# storefront/api/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import (
    AuthenticatedUser,
    get_gateway,
    get_notification_service,
    get_optional_user,
)
from storefront.data.database import get_db
from storefront.domain.schemas import (
    CheckoutIn,
    CheckoutPreviewIn,
    CheckoutPreviewOut,
    OrderOut,
    PaymentIntentIn,
    PaymentIntentOut,
    PaypalCaptureIn,
    PaypalCaptureOut,
    PaypalOrderIn,
    PaypalOrderOut,
)
from storefront.services.checkout_service import CheckoutService
from storefront.services.notification_service import NotificationService
from storefront.services.payment_gateway import PaymentGateway

router = APIRouter(prefix="/checkout", tags=["checkout"])


def get_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationService = Depends(get_notification_service),
) -> CheckoutService:
    return CheckoutService(db=db, gateway=gateway, notifier=notifier)


@router.post("/preview", response_model=CheckoutPreviewOut)
def preview(payload: CheckoutPreviewIn, svc: CheckoutService = Depends(get_service)):
    return svc.preview(
        items=[i.model_dump() for i in payload.items],
        shipping_address=payload.shipping_address,
    )


@router.post("/payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(payload: PaymentIntentIn, svc: CheckoutService = Depends(get_service)):
    intent = svc.create_payment_intent(payload.amount, payload.currency)
    return {"payment_intent_id": intent.id, "client_secret": intent.client_secret}


@router.post("/paypal-order", response_model=PaypalOrderOut)
def create_paypal_order(payload: PaypalOrderIn, svc: CheckoutService = Depends(get_service)):
    paypal_order = svc.create_paypal_order(payload.amount, payload.currency)
    return {"order_id": paypal_order.id}


@router.post("/paypal-capture", response_model=PaypalCaptureOut)
def capture_paypal_order(payload: PaypalCaptureIn, svc: CheckoutService = Depends(get_service)):
    """
    Captures an approved PayPal order. The capture id is what the client
    sends back as ``payment_intent_id`` when placing the order.
    """
    capture = svc.capture_paypal_order(payload.order_id)
    return {"capture_id": capture.id, "status": capture.status}


@router.post("/process", response_model=OrderOut, status_code=201)
def process(
    payload: CheckoutIn,
    user: AuthenticatedUser | None = Depends(get_optional_user),
    svc: CheckoutService = Depends(get_service),
):
    """
    Places the order. Anonymous shoppers must supply a guest email;
    their session cart is left for the client to clear.
    """
    return svc.process(
        items=[i.model_dump() for i in payload.items],
        shipping_address=payload.shipping_address,
        billing_address=payload.billing_address,
        payment_method=payload.payment_method,
        user_id=user.id if user else None,
        guest_email=payload.guest_email,
        payment_intent_id=payload.payment_intent_id,
    )
