# storefront/api/routers/admin.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_admin_user, get_notification_service
from storefront.data.database import get_db
from storefront.domain.enums import OrderStatus
from storefront.domain.schemas import (
    OrderListOut,
    OrderOut,
    OrderStatsOut,
    OrderStatusUpdate,
    PaymentStatusUpdate,
    ProductCreate,
    ProductListOut,
    ProductOut,
    ProductUpdate,
    SalesAnalyticsOut,
    StockAdjustment,
)
from storefront.services.catalog_service import CatalogService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.payment_reconciler import PaymentReconciler

# every route below requires an admin
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_admin_user)])


@router.get("/stats", response_model=OrderStatsOut)
def dashboard_stats(db: Session = Depends(get_db)):
    return OrderService(db).get_order_stats()


@router.get("/analytics/sales", response_model=SalesAnalyticsOut)
def sales_analytics(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: Session = Depends(get_db),
):
    return OrderService(db).get_sales_analytics(start_date, end_date)


#products
@router.get("/products", response_model=ProductListOut)
def list_products(limit: int | None = Query(None, ge=1, le=100), db: Session = Depends(get_db)):
    products = CatalogService(db).list_products(limit=limit)
    return {"products": products, "count": len(products)}


@router.get("/products/low-stock", response_model=List[ProductOut])
def low_stock(threshold: int | None = Query(None, ge=0), db: Session = Depends(get_db)):
    return CatalogService(db).low_stock(threshold)


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return CatalogService(db).create_product(payload)


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: ProductUpdate, db: Session = Depends(get_db)):
    return CatalogService(db).update_product(product_id, payload)


@router.delete("/products/{product_id}", response_model=ProductOut)
def delete_product(product_id: str, db: Session = Depends(get_db)):
    return CatalogService(db).delete_product(product_id)


@router.post("/products/{product_id}/stock", response_model=ProductOut)
def adjust_stock(product_id: str, payload: StockAdjustment, db: Session = Depends(get_db)):
    return CatalogService(db).adjust_stock(product_id, payload.delta)


#orders
@router.get("/orders", response_model=OrderListOut)
def list_orders(
    status: OrderStatus | None = Query(None),
    limit: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    orders = OrderService(db).list_orders(status=status, limit=limit)
    return {"orders": orders, "count": len(orders)}


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: str, db: Session = Depends(get_db)):
    return OrderService(db).get_order(order_id)


@router.put("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    order = PaymentReconciler(db).update_status(order_id, payload.status, payload.tracking_number)
    notifier.send_status_update(order.id, order.status, order.tracking_number)
    return order


@router.put("/orders/{order_id}/payment", response_model=OrderOut)
def update_payment_status(order_id: str, payload: PaymentStatusUpdate, db: Session = Depends(get_db)):
    return PaymentReconciler(db).update_payment_status(
        order_id,
        payload.payment_status,
        payload.payment_reference,
    )
