"""Tests for stock reservation, release and checkout."""

import random
from concurrent.futures import ThreadPoolExecutor

import pytest

from phone_shop.cart import CartStore
from phone_shop.catalog import CatalogStore
from phone_shop.errors import EmptyCart, InconsistentState, InsufficientStock, NotFound, ValidationError
from phone_shop.reservations import CHECKOUT_MESSAGE, ReservationEngine


def _lines(engine):
    return [(line.phone_id, line.quantity) for line in engine.cart.lines()]


def _stock(engine, phone_id):
    return engine.catalog.get(phone_id).stock


class TestReserve:
    def test_reserve_takes_stock_and_adds_line(self, engine):
        lines = engine.reserve(1, 2)
        assert [(l.phone_id, l.quantity) for l in lines] == [(1, 2)]
        assert _stock(engine, 1) == 8

    def test_repeat_reserve_accumulates(self, engine):
        engine.reserve(1, 2)
        engine.reserve(1, 3)
        assert _lines(engine) == [(1, 5)]
        assert _stock(engine, 1) == 5

    def test_lines_keep_insertion_order(self, engine):
        engine.reserve(3, 1)
        engine.reserve(1, 1)
        engine.reserve(3, 1)
        assert _lines(engine) == [(3, 2), (1, 1)]

    def test_reserve_entire_stock(self, engine):
        engine.reserve(2, 5)
        assert _stock(engine, 2) == 0

    def test_insufficient_stock_changes_nothing(self, engine):
        engine.reserve(2, 3)
        with pytest.raises(InsufficientStock) as exc_info:
            engine.reserve(2, 3)
        assert exc_info.value.available == 2
        assert exc_info.value.requested == 3
        assert _stock(engine, 2) == 2
        assert _lines(engine) == [(2, 3)]

    def test_unknown_phone(self, engine):
        with pytest.raises(NotFound):
            engine.reserve(99, 1)
        assert _lines(engine) == []

    def test_oversized_phone_id_is_unknown(self, engine):
        with pytest.raises(NotFound):
            engine.reserve(2**70, 1)
        with pytest.raises(NotFound):
            engine.release(2**70)

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_quantity_must_be_positive_integer(self, engine, quantity):
        with pytest.raises(ValidationError):
            engine.reserve(1, quantity)
        assert _stock(engine, 1) == 10


class TestViewCart:
    def test_empty_cart(self, engine):
        assert engine.view_cart() == []

    def test_total_price_is_computed_at_read_time(self, engine):
        engine.reserve(1, 2)
        assert engine.view_cart() == [{"phone_id": 1, "quantity": 2, "total_price": 2400}]

        engine.catalog.update(1, {"price": 1000})
        assert engine.view_cart()[0]["total_price"] == 2000

    def test_orphaned_line_is_inconsistent(self, engine):
        engine.cart.add(42, 1)
        with pytest.raises(InconsistentState):
            engine.view_cart()


class TestRelease:
    def test_release_restores_stock(self, engine):
        engine.reserve(1, 2)
        assert engine.release(1) == []
        assert _stock(engine, 1) == 10

    def test_release_is_full_not_partial(self, engine):
        engine.reserve(3, 2)
        engine.reserve(3, 4)
        engine.reserve(1, 1)
        remaining = engine.release(3)
        assert [(l.phone_id, l.quantity) for l in remaining] == [(1, 1)]
        assert _stock(engine, 3) == 8

    def test_release_without_line(self, engine):
        engine.reserve(1, 1)
        with pytest.raises(NotFound):
            engine.release(2)
        assert _lines(engine) == [(1, 1)]

    def test_re_reserve_after_release_appends(self, engine):
        engine.reserve(1, 1)
        engine.reserve(2, 1)
        engine.release(1)
        engine.reserve(1, 2)
        assert _lines(engine) == [(2, 1), (1, 2)]


class TestCheckout:
    def test_empty_cart_fails(self, engine):
        with pytest.raises(EmptyCart):
            engine.checkout()

    def test_checkout_clears_cart_without_deducting_again(self, engine):
        engine.reserve(2, 5)
        engine.reserve(1, 4)
        assert engine.checkout() == {"message": CHECKOUT_MESSAGE}
        assert engine.view_cart() == []
        assert _stock(engine, 2) == 0
        assert _stock(engine, 1) == 6

    def test_checkout_after_stock_edit_keeps_reservation(self, engine):
        engine.reserve(1, 4)
        engine.catalog.update(1, {"stock": 0})
        engine.checkout()
        assert _stock(engine, 1) == 0

    def test_negative_stock_blocks_checkout(self, engine, db):
        engine.reserve(3, 2)
        engine.catalog.get(3).stock = -1
        db.commit()
        with pytest.raises(InsufficientStock):
            engine.checkout()
        assert _lines(engine) == [(3, 2)]

    def test_second_checkout_fails_empty(self, engine):
        engine.reserve(1, 1)
        engine.checkout()
        with pytest.raises(EmptyCart):
            engine.checkout()


class TestDiscontinue:
    def test_delete_releases_cart_line(self, engine):
        engine.reserve(1, 2)
        engine.reserve(2, 1)
        phone = engine.discontinue(1)
        assert phone.id == 1
        assert phone.stock == 10
        assert _lines(engine) == [(2, 1)]
        assert engine.catalog.find(1) is None
        assert engine.view_cart() == [{"phone_id": 2, "quantity": 1, "total_price": 900}]

    def test_delete_without_line(self, engine):
        assert engine.discontinue(3).name == "Pixel 7"
        assert [p.id for p in engine.catalog.list()] == [1, 2]

    def test_delete_unknown(self, engine):
        with pytest.raises(NotFound):
            engine.discontinue(99)


class TestScenarios:
    def test_create_reserve_then_oversell(self, engine):
        phone = engine.catalog.create({"name": "X", "brand": "Y", "price": 100, "stock": 5})
        assert phone.id == 4

        engine.reserve(4, 3)
        assert _stock(engine, 4) == 2
        assert _lines(engine) == [(4, 3)]

        with pytest.raises(InsufficientStock):
            engine.reserve(4, 3)
        assert _stock(engine, 4) == 2
        assert _lines(engine) == [(4, 3)]

    def test_reserve_then_release(self, engine):
        engine.reserve(1, 2)
        engine.release(1)
        assert _stock(engine, 1) == 10
        assert 1 not in [phone_id for phone_id, _ in _lines(engine)]

    def test_full_stock_checkout(self, engine):
        engine.reserve(2, 5)
        engine.checkout()
        assert engine.view_cart() == []
        assert _stock(engine, 2) == 0


class TestInvariants:
    def test_random_operations_conserve_stock(self, engine):
        rng = random.Random(1234)
        initial = {p.id: p.stock for p in engine.catalog.list()}

        for _ in range(300):
            phone_id = rng.choice(list(initial))
            if rng.random() < 0.7:
                try:
                    engine.reserve(phone_id, rng.randint(1, 4))
                except InsufficientStock:
                    pass
            else:
                try:
                    engine.release(phone_id)
                except NotFound:
                    pass

            reserved = dict(_lines(engine))
            for pid, start in initial.items():
                stock = _stock(engine, pid)
                assert stock >= 0
                assert stock + reserved.get(pid, 0) == start

    def test_concurrent_reservations_never_oversell(self, storage):
        with storage.session() as db:
            CatalogStore(db).seed()

        def reserve_one():
            with storage.session() as db:
                engine = ReservationEngine(CatalogStore(db), CartStore(db))
                try:
                    engine.reserve(2, 1)
                    return True
                except InsufficientStock:
                    return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: reserve_one(), range(20)))

        assert results.count(True) == 5
        with storage.session() as db:
            assert CatalogStore(db).get(2).stock == 0
            assert [(l.phone_id, l.quantity) for l in CartStore(db).lines()] == [(2, 5)]
