"""Tests for cart commands and queries."""

from decimal import Decimal

import pytest

from storefront.domain.errors import InsufficientStock, InvalidIdentity, NotFound
from storefront.domain.identity import GuestIdentity, UserIdentity
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartService

GUEST = GuestIdentity(session_id="sess-abc")


class TestGetCart:
    def test_anonymous_cart_is_empty(self, db):
        cart = CartService(db).get_cart(None)
        assert cart == {"items": [], "total": Decimal("0.00")}

    def test_count_for_anonymous_is_zero(self, db):
        assert CartService(db).get_cart_count(None) == 0

    def test_prices_come_from_the_live_product(self, db, make_product):
        product = make_product(price="10.00", stock=5)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 2)

        product.price = Decimal("12.50")
        db.commit()

        cart = svc.get_cart(GUEST)
        assert cart["items"][0]["price"] == Decimal("12.50")
        assert cart["total"] == Decimal("25.00")

    def test_hides_inactive_and_out_of_stock_products(self, db, make_product):
        visible = make_product(name="Visible", stock=5)
        retired = make_product(name="Retired", stock=5)
        empty = make_product(name="Empty", stock=5)

        svc = CartService(db)
        for product in (visible, retired, empty):
            svc.add_item(GUEST, product.id, 1)

        retired.is_active = False
        empty.stock_quantity = 0
        db.commit()

        cart = svc.get_cart(GUEST)
        assert [i["name"] for i in cart["items"]] == ["Visible"]
        assert cart["total"] == Decimal("10.00")
        # hidden, still stored and counted
        assert svc.get_cart_count(GUEST) == 3

        retired.is_active = True
        empty.stock_quantity = 5
        db.commit()

        restored = svc.get_cart(GUEST)
        assert sorted(i["name"] for i in restored["items"]) == ["Empty", "Retired", "Visible"]
        assert restored["total"] == Decimal("30.00")


class TestAddItem:
    def test_add_new_line(self, db, make_product):
        product = make_product(price="10.00", stock=5)
        cart = CartService(db).add_item(GUEST, product.id, 2)

        assert len(cart["items"]) == 1
        item = cart["items"][0]
        assert item["product_id"] == product.id
        assert item["quantity"] == 2
        assert item["subtotal"] == Decimal("20.00")
        assert item["stock_quantity"] == 5

    def test_repeated_add_accumulates_on_one_line(self, db, make_product):
        product = make_product(stock=10)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 2)
        cart = svc.add_item(GUEST, product.id, 3)

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 5
        assert svc.get_cart_count(GUEST) == 5

    def test_user_and_guest_carts_are_separate(self, db, make_product, make_user):
        product = make_product(stock=10)
        user = make_user()
        svc = CartService(db)

        svc.add_item(GUEST, product.id, 1)
        svc.add_item(UserIdentity(user.id), product.id, 4)

        assert svc.get_cart_count(GUEST) == 1
        assert svc.get_cart_count(UserIdentity(user.id)) == 4

    def test_requires_identity(self, db, make_product):
        product = make_product()
        with pytest.raises(InvalidIdentity, match="Session ID required"):
            CartService(db).add_item(None, product.id, 1)

    def test_unknown_product(self, db):
        with pytest.raises(NotFound):
            CartService(db).add_item(GUEST, "missing", 1)

    def test_inactive_product(self, db, make_product):
        product = make_product(is_active=False)
        with pytest.raises(NotFound):
            CartService(db).add_item(GUEST, product.id, 1)

    def test_quantity_above_stock(self, db, make_product):
        product = make_product(name="Rose Evening", stock=2)
        with pytest.raises(InsufficientStock) as exc:
            CartService(db).add_item(GUEST, product.id, 3)

        assert exc.value.requested == 3
        assert exc.value.available == 2
        assert "Rose Evening" in exc.value.message
        assert CartService(db).get_cart_count(GUEST) == 0

    def test_accumulated_quantity_above_stock(self, db, make_product):
        product = make_product(stock=4)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 3)

        with pytest.raises(InsufficientStock) as exc:
            svc.add_item(GUEST, product.id, 2)

        assert exc.value.requested == 5
        assert svc.get_cart_count(GUEST) == 3

    @staticmethod
    def _hide_existing_line_once(monkeypatch):
        # the other request inserted the line after this one looked for it
        real_get_line = CartRepo.get_line
        calls = []

        def get_line(self, identity, product_id):
            calls.append(product_id)
            if len(calls) == 1:
                return None
            return real_get_line(self, identity, product_id)

        monkeypatch.setattr(CartRepo, "get_line", get_line)

    def test_racing_insert_of_the_same_line_is_merged(self, db, make_product, monkeypatch):
        product = make_product(stock=10)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 2)

        self._hide_existing_line_once(monkeypatch)
        cart = svc.add_item(GUEST, product.id, 3)

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 5
        assert svc.get_cart_count(GUEST) == 5

    def test_racing_insert_still_checks_stock(self, db, make_product, monkeypatch):
        product = make_product(stock=4)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 3)

        self._hide_existing_line_once(monkeypatch)
        with pytest.raises(InsufficientStock) as exc:
            svc.add_item(GUEST, product.id, 2)

        assert exc.value.requested == 5
        # the session is usable after the failed insert
        assert svc.get_cart_count(GUEST) == 3


class TestUpdateQuantity:
    def test_sets_absolute_quantity(self, db, make_product):
        product = make_product(stock=10)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 5)

        cart = svc.update_quantity(GUEST, product.id, 2)
        assert cart["items"][0]["quantity"] == 2

    def test_zero_removes_line(self, db, make_product):
        product = make_product(stock=10)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 5)

        cart = svc.update_quantity(GUEST, product.id, 0)
        assert cart["items"] == []

    def test_above_stock_is_rejected(self, db, make_product):
        product = make_product(stock=3)
        svc = CartService(db)
        svc.add_item(GUEST, product.id, 1)

        with pytest.raises(InsufficientStock):
            svc.update_quantity(GUEST, product.id, 4)
        assert svc.get_cart_count(GUEST) == 1

    def test_missing_line_is_a_no_op(self, db, make_product):
        product = make_product(stock=3)
        cart = CartService(db).update_quantity(GUEST, product.id, 2)
        assert cart["items"] == []


class TestRemoveAndClear:
    def test_remove_item(self, db, make_product):
        keep = make_product(name="Keep")
        drop = make_product(name="Drop")
        svc = CartService(db)
        svc.add_item(GUEST, keep.id, 1)
        svc.add_item(GUEST, drop.id, 1)

        cart = svc.remove_item(GUEST, drop.id)
        assert [i["name"] for i in cart["items"]] == ["Keep"]

    def test_remove_missing_line_is_harmless(self, db):
        cart = CartService(db).remove_item(GUEST, "missing")
        assert cart["items"] == []

    def test_clear_cart(self, db, make_product):
        svc = CartService(db)
        for name in ("A", "B"):
            svc.add_item(GUEST, make_product(name=name).id, 1)

        cart = svc.clear_cart(GUEST)
        assert cart == {"items": [], "total": Decimal("0.00")}
        assert svc.get_cart_count(GUEST) == 0

    def test_clear_requires_identity(self, db):
        with pytest.raises(InvalidIdentity):
            CartService(db).clear_cart(None)
