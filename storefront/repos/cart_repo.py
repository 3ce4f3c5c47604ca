# storefront/repos/cart_repo.py
from datetime import datetime, timezone
from typing import List, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from storefront.data.models.cart_line import CartLineModel
from storefront.data.models.product import ProductModel
from storefront.domain.identity import CartIdentity, GuestIdentity, UserIdentity


def _owned_by(identity: CartIdentity):
    if isinstance(identity, UserIdentity):
        return CartLineModel.user_id == identity.user_id
    if isinstance(identity, GuestIdentity):
        return CartLineModel.session_id == identity.session_id
    raise TypeError(f"Unsupported cart identity: {identity!r}")


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_lines_with_products(self, identity: CartIdentity) -> List[Tuple[CartLineModel, ProductModel]]:
        rows = self.db.execute(
            select(CartLineModel, ProductModel)
            .join(ProductModel, CartLineModel.product_id == ProductModel.id)
            .where(_owned_by(identity))
            .order_by(CartLineModel.created_at, CartLineModel.id)
        ).all()
        return [(line, product) for line, product in rows]

    def get_line(self, identity: CartIdentity, product_id: str) -> CartLineModel | None:
        return self.db.execute(
            select(CartLineModel).where(
                _owned_by(identity),
                CartLineModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def get_lines(self, identity: CartIdentity) -> List[CartLineModel]:
        return list(
            self.db.execute(
                select(CartLineModel)
                .where(_owned_by(identity))
                .order_by(CartLineModel.created_at, CartLineModel.id)
            ).scalars().all()
        )

    def add_line(self, identity: CartIdentity, product_id: str, quantity: int) -> CartLineModel:
        line = CartLineModel(product_id=product_id, quantity=quantity)
        if isinstance(identity, UserIdentity):
            line.user_id = identity.user_id
        else:
            line.session_id = identity.session_id
        self.db.add(line)
        return line

    def set_quantity(self, identity: CartIdentity, product_id: str, quantity: int) -> int:
        result = self.db.execute(
            update(CartLineModel)
            .where(_owned_by(identity), CartLineModel.product_id == product_id)
            .values(quantity=quantity, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def delete_line(self, identity: CartIdentity, product_id: str) -> int:
        result = self.db.execute(
            delete(CartLineModel)
            .where(_owned_by(identity), CartLineModel.product_id == product_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def clear(self, identity: CartIdentity) -> int:
        result = self.db.execute(
            delete(CartLineModel)
            .where(_owned_by(identity))
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def count_units(self, identity: CartIdentity) -> int:
        total = self.db.execute(
            select(func.coalesce(func.sum(CartLineModel.quantity), 0)).where(_owned_by(identity))
        ).scalar_one()
        return int(total)

    def rehome_line(self, line: CartLineModel, user_id: str) -> None:
        # single row update, the row keeps its id and created_at
        line.user_id = user_id
        line.session_id = None
        line.updated_at = datetime.now(timezone.utc)

    def delete_stale_guest_lines(self, cutoff: datetime) -> int:
        result = self.db.execute(
            delete(CartLineModel)
            .where(
                CartLineModel.session_id.is_not(None),
                CartLineModel.updated_at < cutoff,
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
