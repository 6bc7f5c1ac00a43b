"""Tests for the read-side handlers and catalogue/customer/stock administration."""

import pytest

from orderengine.application.add_product import AddProductHandler
from orderengine.application.adjust_stock import AdjustStockHandler
from orderengine.application.dto import OrderLine, PlaceOrderCommand
from orderengine.application.place_order import OrderPlacementCoordinator
from orderengine.application.register_customer import (
    ListCustomersHandler,
    RegisterCustomerHandler,
)
from orderengine.application.show_inventory import (
    ShowInventoryHandler,
    ShowStockHistoryHandler,
)
from orderengine.application.show_order import (
    ListOrdersHandler,
    NextStatusesHandler,
    ShowOrderHandler,
)
from orderengine.application.update_product import (
    ListProductsHandler,
    UpdateProductHandler,
)
from orderengine.domain.errors import InsufficientStock
from orderengine.domain.events import StockAdjustedEvent
from orderengine.domain.exceptions import EntityNotFoundError, ValidationError
from orderengine.domain.model.order import OrderStatus
from orderengine.domain.model.product import ProductStatus
from orderengine.domain.model.value_objects import Money
from orderengine.domain.result import Err, Ok
from orderengine.domain.service.order_status_machine import order_status_machine
from tests.fakes import FakeStore, RecordingPublisher, make_address

EMAIL = "alice@example.com"


def _store_with_order(paid: bool = False):
    store = FakeStore()
    store.add_customer(EMAIL, default_address=make_address())
    pid = store.add_product("Widget", "15.00", stock=10).id
    order = OrderPlacementCoordinator(store.uow_factory(), RecordingPublisher()).place_order(
        PlaceOrderCommand(EMAIL, [OrderLine(pid, 2)], payment_verified=paid)
    ).value
    return store, order


class TestShowOrder:

    def test_by_id(self):
        store, order = _store_with_order()
        dto = ShowOrderHandler(store.uow_factory()).handle(order_id=order.id)

        assert dto.reference == order.reference
        assert dto.total == "30.00 USD"
        assert dto.items[0].unit_price == "15.00 USD"
        assert dto.items[0].status == "PENDING"
        assert dto.history[0].from_status is None
        assert dto.history[0].to_status == "PENDING"

    def test_by_reference_is_case_insensitive(self):
        store, order = _store_with_order()
        dto = ShowOrderHandler(store.uow_factory()).handle(reference=order.reference.lower())
        assert dto.id == order.id

    def test_not_found(self):
        store, _ = _store_with_order()
        with pytest.raises(EntityNotFoundError, match="Order #99 not found"):
            ShowOrderHandler(store.uow_factory()).handle(order_id=99)

    def test_needs_id_or_reference(self):
        store, _ = _store_with_order()
        with pytest.raises(ValidationError):
            ShowOrderHandler(store.uow_factory()).handle()


class TestListOrders:

    def test_filters_by_customer_and_status(self):
        store, first = _store_with_order(paid=False)
        store.add_customer("bob@example.com", "Bob", make_address())
        coordinator = OrderPlacementCoordinator(store.uow_factory(), RecordingPublisher())
        coordinator.place_order(PlaceOrderCommand("bob@example.com", [OrderLine(1, 1)]))
        handler = ListOrdersHandler(store.uow_factory())

        assert [o.id for o in handler.handle(customer_email=EMAIL)] == [first.id]
        assert len(handler.handle()) == 2
        assert handler.handle(status=OrderStatus.PAID) == []

    def test_unknown_customer(self):
        store, _ = _store_with_order()
        with pytest.raises(EntityNotFoundError, match="Customer not found"):
            ListOrdersHandler(store.uow_factory()).handle(customer_email="nobody@example.com")


class TestNextStatuses:

    def test_lists_sorted_targets(self):
        store, order = _store_with_order(paid=False)
        handler = NextStatusesHandler(store.uow_factory(), order_status_machine())
        assert handler.handle(order.id) == ["CANCELLED", "ON_HOLD", "PAID", "PAYMENT_FAILED"]


class TestCustomers:

    def test_register_and_list(self):
        store = FakeStore()
        customer = RegisterCustomerHandler(store.uow_factory()).handle(
            "Bob@Example.com", "Bob", default_address=make_address()
        )
        assert customer.id == 1
        assert [c.email for c in ListCustomersHandler(store.uow_factory()).handle()] == [
            "bob@example.com"
        ]

    def test_duplicate_email_rejected(self):
        store = FakeStore()
        handler = RegisterCustomerHandler(store.uow_factory())
        handler.handle("bob@example.com", "Bob")
        with pytest.raises(ValidationError, match="already exists"):
            handler.handle("BOB@example.com", "Robert")


class TestProducts:

    def test_add_product_records_opening_stock(self):
        store = FakeStore()
        product = AddProductHandler(store.uow_factory()).handle("Widget", "15.00", stock=12)

        assert product.id == 1
        assert store.stock_of(product.id) == 12
        assert [(m.delta, m.reason) for m in store.movements] == [(12, "initial stock")]

    def test_duplicate_name_rejected(self):
        store = FakeStore()
        handler = AddProductHandler(store.uow_factory())
        handler.handle("Widget", "15.00")
        with pytest.raises(ValidationError, match="already exists"):
            handler.handle("widget", "9.00")

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            AddProductHandler(FakeStore().uow_factory()).handle("Freebie", "0")

    def test_update_price_and_status(self):
        store = FakeStore()
        pid = store.add_product("Widget", "15.00").id
        product = UpdateProductHandler(store.uow_factory()).handle(pid, new_price="19.99", active=False)

        assert product.price == Money.of("19.99")
        assert store.products[pid].status == ProductStatus.INACTIVE

    def test_update_requires_a_change(self):
        store = FakeStore()
        pid = store.add_product().id
        with pytest.raises(ValidationError, match="Nothing to update"):
            UpdateProductHandler(store.uow_factory()).handle(pid)

    def test_update_unknown_product(self):
        with pytest.raises(EntityNotFoundError):
            UpdateProductHandler(FakeStore().uow_factory()).handle(5, new_price="1.00")

    def test_list_products(self):
        store = FakeStore()
        store.add_product("B")
        store.add_product("A")
        assert [p.name for p in ListProductsHandler(store.uow_factory()).handle()] == ["B", "A"]


class TestAdjustStock:

    def _setup(self, stock: int = 5):
        store = FakeStore()
        pid = store.add_product(stock=stock).id
        publisher = RecordingPublisher()
        return store, pid, publisher, AdjustStockHandler(store.uow_factory(), publisher)

    def test_receive_stock(self):
        store, pid, publisher, handler = self._setup(stock=5)
        result = handler.handle(pid, 7, "received PO-17")

        assert isinstance(result, Ok)
        assert result.value.stock_quantity == 12
        assert publisher.of_type(StockAdjustedEvent)[0].delta == 7

    def test_write_off_cannot_go_negative(self):
        store, pid, publisher, handler = self._setup(stock=5)
        result = handler.handle(pid, -6, "damaged")

        assert result == Err(InsufficientStock(pid, requested=6, available=5))
        assert store.stock_of(pid) == 5
        assert publisher.events == []

    def test_zero_delta_rejected(self):
        _, pid, _, handler = self._setup()
        with pytest.raises(ValidationError, match="non-zero"):
            handler.handle(pid, 0, "count")

    def test_reason_required(self):
        _, pid, _, handler = self._setup()
        with pytest.raises(ValidationError, match="reason"):
            handler.handle(pid, 1, " ")

    def test_unknown_product(self):
        _, _, _, handler = self._setup()
        with pytest.raises(EntityNotFoundError):
            handler.handle(999, 1, "count")


class TestInventoryQueries:

    def test_low_stock_flag(self):
        store = FakeStore()
        store.add_product("Plenty", stock=50)
        store.add_product("Scarce", stock=3)
        handler = ShowInventoryHandler(store.uow_factory(), low_stock_threshold=10)

        lines = handler.handle()
        assert [(l.product_name, l.low_stock) for l in lines] == [("Plenty", False), ("Scarce", True)]
        assert [l.product_name for l in handler.handle(low_stock_only=True)] == ["Scarce"]

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            ShowInventoryHandler(FakeStore().uow_factory(), low_stock_threshold=-1)

    def test_stock_history(self):
        store, order = _store_with_order()
        history = ShowStockHistoryHandler(store.uow_factory()).handle(1)

        assert [m.delta for m in history] == [-2]
        assert order.reference in history[0].reason

    def test_stock_history_unknown_product(self):
        with pytest.raises(EntityNotFoundError):
            ShowStockHistoryHandler(FakeStore().uow_factory()).handle(3)
