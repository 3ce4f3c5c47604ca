# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import AuthenticatedUser, get_current_user
from storefront.data.database import get_db
from storefront.domain.schemas import OrderListOut, OrderOut, OrderTrackingOut
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/", response_model=OrderListOut)
def list_my_orders(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    orders = OrderService(db).list_orders_for_user(user.id)
    return {"orders": orders, "count": len(orders)}


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return OrderService(db).get_order_for(order_id, user.id, is_admin=user.is_admin)


@router.get("/{order_id}/track", response_model=OrderTrackingOut)
def track_order(
    order_id: str,
    email: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """
    Public tracking. Guest orders need the email they were placed with.
    """
    return OrderService(db).track_order(order_id, email)
