"""Integration tests for the SQLAlchemy persistence layer (SQLite files in tmp_path)."""

import threading
from datetime import timezone

import pytest
from sqlalchemy.dialects import postgresql

from orderengine.application.dto import OrderLine, PlaceOrderCommand, TransitionCommand
from orderengine.domain.errors import InsufficientStock
from orderengine.domain.exceptions import PersistenceError
from orderengine.domain.model.order import ItemStatus, OrderStatus
from orderengine.domain.model.value_objects import Money
from orderengine.domain.result import Err, Ok
from orderengine.infrastructure.bootstrap import build_container
from orderengine.infrastructure.config import Settings
from orderengine.infrastructure.persistence.sqlalchemy.engine import (
    create_engine_from_url,
    session_factory,
)
from orderengine.infrastructure.persistence.sqlalchemy.repositories import select_order
from orderengine.infrastructure.persistence.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
)
from tests.fakes import make_address

EMAIL = "alice@example.com"


@pytest.fixture
def container(tmp_path):
    c = build_container(Settings(database_url=f"sqlite:///{tmp_path / 'engine.db'}"))
    c.register_customer().handle(EMAIL, "Alice", default_address=make_address())
    yield c
    c.engine.dispose()


def _add(container, name="Widget", price="15.00", stock=10) -> int:
    return container.add_product().handle(name, price, stock=stock).id


def _place(container, *lines, paid=False):
    return container.placement_coordinator().place_order(
        PlaceOrderCommand(
            customer_email=EMAIL,
            lines=[OrderLine(pid, qty) for pid, qty in lines],
            payment_verified=paid,
        )
    )


def _stock(container, product_id) -> int:
    with container.uow_factory() as uow:
        return uow.products.get_by_id(product_id).stock_quantity


class TestOrderRoundTrip:

    def test_placed_order_reloads_intact(self, container):
        widget = _add(container, "Widget", "15.00")
        gadget = _add(container, "Gadget", "25.50")
        placed = _place(container, (widget, 2), (gadget, 1)).value

        with container.uow_factory() as uow:
            loaded = uow.orders.get_by_id(placed.id)

        assert loaded.reference == placed.reference
        assert loaded.status == OrderStatus.PENDING
        assert [(i.product_name, i.quantity, i.unit_price) for i in loaded.items] == [
            ("Widget", 2, Money.of("15.00")),
            ("Gadget", 1, Money.of("25.50")),
        ]
        assert loaded.total_amount == Money.of("55.50")
        assert loaded.shipping_address == make_address()
        assert loaded.created_at.tzinfo == timezone.utc
        assert [h.to_status for h in loaded.status_history] == [OrderStatus.PENDING]

    def test_lookup_by_reference(self, container):
        widget = _add(container)
        placed = _place(container, (widget, 1)).value
        with container.uow_factory() as uow:
            assert uow.orders.get_by_reference(placed.reference).id == placed.id

    def test_price_change_does_not_touch_orders(self, container):
        widget = _add(container, price="15.00")
        placed = _place(container, (widget, 2)).value

        container.update_product().handle(widget, new_price="99.00")

        with container.uow_factory() as uow:
            loaded = uow.orders.get_by_id(placed.id)
        assert loaded.items[0].unit_price == Money.of("15.00")
        assert loaded.total_amount == Money.of("30.00")

    def test_find_filters(self, container):
        widget = _add(container)
        first = _place(container, (widget, 1)).value
        second = _place(container, (widget, 1), paid=True).value

        with container.uow_factory() as uow:
            customer = uow.customers.get_by_email(EMAIL)
            assert [o.id for o in uow.orders.find(customer_id=customer.id)] == [first.id, second.id]
            assert [o.id for o in uow.orders.find(status=OrderStatus.PAID)] == [second.id]
            assert uow.orders.find(customer_id=customer.id + 1) == []


class TestStockOnSql:

    def test_scenario_a(self, container):
        pid = _add(container, stock=5)
        assert isinstance(_place(container, (pid, 5)), Ok)
        assert _stock(container, pid) == 0
        assert _place(container, (pid, 1)) == Err(InsufficientStock(pid, requested=1, available=0))

    def test_failed_placement_rolls_back_everything(self, container):
        widget = _add(container, "Widget", stock=10)
        gadget = _add(container, "Gadget", stock=1)

        result = _place(container, (widget, 4), (gadget, 2))

        assert isinstance(result, Err)
        assert _stock(container, widget) == 10
        with container.uow_factory() as uow:
            assert uow.orders.find() == []
            assert [m.delta for m in uow.movements.list_for_product(widget)] == [10]

    def test_decrement_never_goes_negative(self, container):
        pid = _add(container, stock=3)
        with container.uow_factory() as uow:
            assert not uow.products.decrement_stock(pid, 4)
            assert uow.products.decrement_stock(pid, 3)
            assert not uow.products.decrement_stock(pid, 1)
            uow.commit()
        assert _stock(container, pid) == 0

    def test_cancel_releases_and_is_audited(self, container):
        pid = _add(container, stock=10)
        order = _place(container, (pid, 4), paid=True).value
        service = container.transition_service()

        assert isinstance(service.transition(TransitionCommand(order.id, OrderStatus.PROCESSING)), Ok)
        assert isinstance(service.transition(TransitionCommand(order.id, OrderStatus.CANCELLED)), Ok)

        assert _stock(container, pid) == 10
        with container.uow_factory() as uow:
            loaded = uow.orders.get_by_id(order.id)
            movements = uow.movements.list_for_product(pid)
        assert loaded.status == OrderStatus.CANCELLED
        assert [i.status for i in loaded.items] == [ItemStatus.CANCELLED]
        assert [h.to_status for h in loaded.status_history] == [
            OrderStatus.PAID,
            OrderStatus.PROCESSING,
            OrderStatus.CANCELLED,
        ]
        assert [(m.delta, m.order_id) for m in movements] == [(10, None), (-4, None), (4, order.id)]


class TestConcurrencyOnSql:

    def _race(self, container, product_id, quantity, threads):
        barrier = threading.Barrier(threads)
        results = []
        lock = threading.Lock()

        def place():
            barrier.wait()
            result = _place(container, (product_id, quantity))
            with lock:
                results.append(result)

        workers = [threading.Thread(target=place) for _ in range(threads)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()
        return results

    def test_scenario_d(self, container):
        pid = _add(container, stock=5)
        results = self._race(container, pid, 3, threads=2)

        assert sum(isinstance(r, Ok) for r in results) == 1
        assert [r for r in results if isinstance(r, Err)] == [
            Err(InsufficientStock(pid, requested=3, available=2))
        ]
        assert _stock(container, pid) == 2

    def test_concurrent_cancels_release_once(self, container):
        pid = _add(container, stock=10)
        order = _place(container, (pid, 4), paid=True).value
        service = container.transition_service()
        barrier = threading.Barrier(2)
        results = []
        lock = threading.Lock()

        def cancel():
            barrier.wait()
            result = service.transition(TransitionCommand(order.id, OrderStatus.CANCELLED))
            with lock:
                results.append(result)

        workers = [threading.Thread(target=cancel) for _ in range(2)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()

        assert all(isinstance(r, Ok) for r in results)
        assert _stock(container, pid) == 10
        with container.uow_factory() as uow:
            releases = [m for m in uow.movements.list_for_product(pid) if m.delta > 0]
            history = uow.orders.get_by_id(order.id).status_history
        assert [m.delta for m in releases] == [10, 4]
        assert [h.to_status for h in history].count(OrderStatus.CANCELLED) == 1

    def test_write_path_locks_the_order_row(self):
        locked = select_order(1, for_update=True).compile(dialect=postgresql.dialect())
        plain = select_order(1).compile(dialect=postgresql.dialect())

        assert "FOR UPDATE" in str(locked)
        assert "FOR UPDATE" not in str(plain)

    def test_no_oversell(self, container):
        pid = _add(container, stock=5)
        results = self._race(container, pid, 1, threads=8)

        assert sum(isinstance(r, Ok) for r in results) == 5
        assert _stock(container, pid) == 0


class TestErrorTranslation:

    def test_missing_schema_surfaces_as_persistence_error(self, tmp_path):
        engine = create_engine_from_url(f"sqlite:///{tmp_path / 'empty.db'}")
        uow = SqlAlchemyUnitOfWork(session_factory(engine))
        with pytest.raises(PersistenceError):
            with uow:
                uow.products.get_by_id(1)
        engine.dispose()
