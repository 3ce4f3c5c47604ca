"""Tests for the guest cart purge, demo seed and notification tasks."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from storefront.data.models.product import ProductModel
from storefront.data.models.user import UserModel
from storefront.data.seed import DEMO_PRODUCTS, seed
from storefront.domain.identity import GuestIdentity, UserIdentity
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartService
from storefront.services.notification_service import (
    send_order_confirmation_task,
    send_status_update_task,
)
from storefront.tasks.expire import purge_stale_guest_carts


class TestPurgeStaleGuestCarts:
    def test_only_old_guest_lines_are_removed(self, db, make_product, make_user):
        product = make_product(stock=10)
        user = make_user()
        carts = CartService(db)
        carts.add_item(GuestIdentity("old-session"), product.id, 1)
        carts.add_item(GuestIdentity("fresh-session"), product.id, 1)
        carts.add_item(UserIdentity(user.id), product.id, 1)

        long_ago = datetime.now(timezone.utc) - timedelta(days=90)
        repo = CartRepo(db)
        repo.get_line(GuestIdentity("old-session"), product.id).updated_at = long_ago
        repo.get_line(UserIdentity(user.id), product.id).updated_at = long_ago
        db.commit()

        removed = purge_stale_guest_carts(db, ttl_seconds=30 * 24 * 60 * 60)

        assert removed == 1
        assert carts.get_cart_count(GuestIdentity("old-session")) == 0
        assert carts.get_cart_count(GuestIdentity("fresh-session")) == 1
        assert carts.get_cart_count(UserIdentity(user.id)) == 1


class TestSeed:
    def test_seeds_an_empty_catalog_once(self, db):
        assert seed(db) == len(DEMO_PRODUCTS)
        assert seed(db) == 0

        assert db.execute(select(func.count(ProductModel.id))).scalar_one() == len(DEMO_PRODUCTS)
        admin = db.execute(select(UserModel).where(UserModel.email == "admin@example.com")).scalar_one()
        assert admin.is_admin is True


class TestNotificationTasks:
    def test_confirmation_task(self):
        result = send_order_confirmation_task.run("order-1", "guest@example.com")
        assert result == {"order_id": "order-1", "recipient": "guest@example.com", "status": "sent"}

    def test_status_update_task(self):
        result = send_status_update_task.run("order-1", "shipped", "1Z999")
        assert result == {"order_id": "order-1", "status": "shipped", "tracking_number": "1Z999"}
