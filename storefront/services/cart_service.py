from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.domain.errors import InsufficientStock, InvalidIdentity, NotFound
from storefront.domain.identity import CartIdentity, describe
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _empty_cart() -> Dict[str, Any]:
    return {"items": [], "total": Decimal("0.00")}


class CartService:
    """
    Cart commands (add, update, remove, clear) and queries (get, count)
    for a user or guest cart.

    Mutations check live stock, then write; nothing is reserved. Two
    concurrent adds can both pass the check, the order transaction is
    where stock is enforced.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query
    def get_cart(self, identity: CartIdentity | None) -> Dict[str, Any]:
        if identity is None:
            return _empty_cart()

        items = []
        for line, product in self.repo.get_lines_with_products(identity):
            # hidden, not deleted: the line comes back when stock is replenished
            if not product.is_active or product.stock_quantity <= 0:
                continue
            items.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "price": product.price,
                    "quantity": line.quantity,
                    "subtotal": product.price * line.quantity,
                    "image_url": product.image_url,
                    "stock_quantity": product.stock_quantity,
                }
            )

        total = sum((i["subtotal"] for i in items), Decimal("0.00"))
        return {"items": items, "total": total}

    def get_cart_count(self, identity: CartIdentity | None) -> int:
        if identity is None:
            return 0
        return self.repo.count_units(identity)

    #commands
    def add_item(self, identity: CartIdentity | None, product_id: str, quantity: int) -> Dict[str, Any]:
        identity = self._require(identity)
        product = self._available_product(product_id)

        if product.stock_quantity < quantity:
            self._reject(identity, product, quantity)

        existing = self.repo.get_line(identity, product_id)

        if existing:
            self._increment_line(identity, product, existing, quantity)
        else:
            logger.info(f"Adding product {product_id} x{quantity} to cart {describe(identity)}")
            self.repo.add_line(identity, product_id, quantity)

        try:
            self.repo.commit()
        except IntegrityError:
            # a concurrent add inserted the same line first, add on top of it
            self.repo.rollback()
            existing = self.repo.get_line(identity, product_id)
            if existing is None:
                raise

            logger.warning(f"Concurrent add of product {product_id} to cart {describe(identity)}, merging")
            self._increment_line(identity, product, existing, quantity)
            self.repo.commit()

        return self.get_cart(identity)

    def update_quantity(self, identity: CartIdentity | None, product_id: str, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            return self.remove_item(identity, product_id)

        identity = self._require(identity)
        product = self._available_product(product_id)

        # absolute quantity, not an increment
        if product.stock_quantity < quantity:
            self._reject(identity, product, quantity)

        updated = self.repo.set_quantity(identity, product_id, quantity)
        self.repo.commit()

        if updated:
            logger.info(f"Cart {describe(identity)}: product {product_id} set to {quantity}")
        return self.get_cart(identity)

    def remove_item(self, identity: CartIdentity | None, product_id: str) -> Dict[str, Any]:
        identity = self._require(identity)

        removed = self.repo.delete_line(identity, product_id)
        self.repo.commit()

        if removed:
            logger.info(f"Removed product {product_id} from cart {describe(identity)}")
        return self.get_cart(identity)

    def clear_cart(self, identity: CartIdentity | None) -> Dict[str, Any]:
        identity = self._require(identity)

        removed = self.repo.clear(identity)
        self.repo.commit()

        logger.info(f"Cleared cart {describe(identity)} ({removed} lines)")
        return _empty_cart()

    #helpers
    def _require(self, identity: CartIdentity | None) -> CartIdentity:
        if identity is None:
            raise InvalidIdentity("Session ID required for guest carts")
        return identity

    def _available_product(self, product_id: str):
        product = self.products.get_active_product(product_id)
        if not product:
            raise NotFound(f"Product {product_id} not found", resource_id=product_id)
        return product

    def _increment_line(self, identity: CartIdentity, product, existing, quantity: int) -> None:
        new_quantity = existing.quantity + quantity
        if product.stock_quantity < new_quantity:
            self._reject(identity, product, new_quantity)

        logger.info(
            f"Product {product.id} already in cart {describe(identity)}, "
            f"quantity {existing.quantity} -> {new_quantity}"
        )
        self.repo.set_quantity(identity, product.id, new_quantity)

    def _reject(self, identity: CartIdentity, product, requested: int):
        logger.warning(
            f"Insufficient stock for product {product.id} in cart {describe(identity)}: "
            f"requested {requested}, available {product.stock_quantity}"
        )
        raise InsufficientStock(product.id, requested, product.stock_quantity, name=product.name)
