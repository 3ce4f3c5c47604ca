# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import (
    AuthenticatedUser,
    get_cart_identity,
    get_current_user,
    get_lock_service,
)
from storefront.data.database import get_db
from storefront.domain.identity import CartIdentity, UserIdentity
from storefront.domain.schemas import (
    CartCountOut,
    CartOut,
    ItemIn,
    ItemUpdateIn,
    MergeCartIn,
    MergeCartOut,
)
from storefront.services.cart_merge import CartMergeService
from storefront.services.cart_service import CartService
from storefront.services.lock_service import LockService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    identity: CartIdentity | None = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).get_cart(identity)


@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    identity: CartIdentity | None = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    return {"count": CartService(db).get_cart_count(identity)}


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    identity: CartIdentity | None = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).add_item(identity, payload.product_id, payload.quantity)


@router.put("/items", response_model=CartOut)
def update_item(
    payload: ItemUpdateIn,
    identity: CartIdentity | None = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).update_quantity(identity, payload.product_id, payload.quantity)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: str,
    identity: CartIdentity | None = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).remove_item(identity, product_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    identity: CartIdentity | None = Depends(get_cart_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).clear_cart(identity)


@router.post("/merge", response_model=MergeCartOut)
def merge_cart(
    payload: MergeCartIn,
    user: AuthenticatedUser = Depends(get_current_user),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    """
    Called once by the login flow with the session token the shopper used
    before signing in.
    """
    merged = CartMergeService(db, lock_service).merge_once(payload.session_id, user.id)
    cart = CartService(db).get_cart(UserIdentity(user_id=user.id))
    return {"merged": merged, "cart": cart}
