# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Any, Dict, List
from decimal import Decimal
from datetime import date, datetime

from storefront.domain.enums import (
    MoodCategory,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductType,
)


# ---------------------------------------------------------------- users


class UserCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    is_admin: bool = False


class UserRead(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- catalog


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    mood_category: MoodCategory
    product_type: ProductType
    image_url: str | None = None
    stock_quantity: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    mood_category: MoodCategory | None = None
    product_type: ProductType | None = None
    image_url: str | None = None
    stock_quantity: int | None = Field(None, ge=0)


class StockAdjustment(BaseModel):
    delta: int = Field(..., description="Units to add (positive) or remove (negative)")


class ProductOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: Decimal
    mood_category: str | None = None
    product_type: str | None = None
    image_url: str | None = None
    stock_quantity: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ProductListOut(BaseModel):
    products: List[ProductOut]
    count: int


# ---------------------------------------------------------------- cart


class ItemIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1, le=99, description="Units to add (1-99)")


class ItemUpdateIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0, le=99, description="Absolute quantity, 0 removes the line")


class MergeCartIn(BaseModel):
    session_id: str = Field(..., min_length=1)


class CartItemOut(BaseModel):
    product_id: str
    name: str
    price: Decimal
    quantity: int
    subtotal: Decimal
    image_url: str | None = None
    stock_quantity: int


class CartOut(BaseModel):
    items: List[CartItemOut]
    total: Decimal


class CartCountOut(BaseModel):
    count: int


class MergeCartOut(BaseModel):
    merged: bool
    cart: CartOut


# ---------------------------------------------------------------- checkout & orders


class OrderItemIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class CheckoutPreviewIn(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    shipping_address: Dict[str, Any]


class ShippingRate(BaseModel):
    method: str
    cost: Decimal
    estimated_days: str
    carrier: str


class CheckoutPreviewOut(BaseModel):
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    shipping_rates: List[ShippingRate]
    selected_shipping: ShippingRate


class CheckoutIn(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    payment_method: PaymentMethod
    payment_intent_id: str | None = None
    guest_email: EmailStr | None = None


class PaymentIntentIn(BaseModel):
    amount: Decimal = Field(..., ge=Decimal("0.50"), decimal_places=2)
    currency: str = Field("usd", pattern="^(usd|eur|gbp)$")


class PaymentIntentOut(BaseModel):
    payment_intent_id: str
    client_secret: str


class PaypalOrderIn(BaseModel):
    amount: Decimal = Field(..., ge=Decimal("0.50"), decimal_places=2)
    currency: str = Field("usd", pattern="^(usd|eur|gbp)$")


class PaypalOrderOut(BaseModel):
    order_id: str


class PaypalCaptureIn(BaseModel):
    order_id: str = Field(..., min_length=1, description="PayPal order id")


class PaypalCaptureOut(BaseModel):
    capture_id: str
    status: str


class OrderItemOut(BaseModel):
    id: int
    product_id: str
    name: str | None = None
    image_url: str | None = None
    quantity: int
    unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    user_id: str | None = None
    guest_email: str | None = None
    total_amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    payment_reference: str | None = None
    tracking_number: str | None = None
    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    count: int


class OrderTrackingOut(BaseModel):
    id: str
    status: OrderStatus
    tracking_number: str | None = None
    created_at: datetime


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: str | None = None


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus
    payment_reference: str | None = None


class OrderStatsOut(BaseModel):
    total_orders: int
    orders_by_status: Dict[str, int]
    completed_payments: int
    total_revenue: Decimal
    active_products: int
    total_stock: int


class SalesPeriod(BaseModel):
    start_date: date | None = None
    end_date: date | None = None


class SalesAnalyticsOut(BaseModel):
    total_revenue: Decimal
    total_orders: int
    orders_by_status: Dict[str, int]
    daily_sales: Dict[str, Decimal]
    period: SalesPeriod
