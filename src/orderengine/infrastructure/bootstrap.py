"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from sqlalchemy.engine import Engine

from orderengine.application.add_product import AddProductHandler
from orderengine.application.adjust_stock import AdjustStockHandler
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
from orderengine.application.transition_order import OrderStatusTransitionService
from orderengine.application.update_product import (
    ListProductsHandler,
    UpdateProductHandler,
)
from orderengine.domain.model.order import ItemStatus, OrderStatus
from orderengine.domain.repository.unit_of_work import UnitOfWorkFactory
from orderengine.domain.service.order_status_machine import (
    StatusMachine,
    item_status_machine,
    order_status_machine,
)
from orderengine.infrastructure.config import Settings, load_settings
from orderengine.infrastructure.events.in_memory_bus import InMemoryEventBus
from orderengine.infrastructure.events.log_subscriber import log_event
from orderengine.infrastructure.persistence.sqlalchemy.engine import (
    create_engine_from_url,
    init_schema,
    session_factory,
)
from orderengine.infrastructure.persistence.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
)


@dataclass
class Container:
    """Every wired service of one running engine."""

    settings: Settings
    engine: Engine
    uow_factory: UnitOfWorkFactory
    event_bus: InMemoryEventBus
    order_machine: StatusMachine[OrderStatus]
    item_machine: StatusMachine[ItemStatus]

    def placement_coordinator(self) -> OrderPlacementCoordinator:
        return OrderPlacementCoordinator(self.uow_factory, self.event_bus)

    def transition_service(self) -> OrderStatusTransitionService:
        return OrderStatusTransitionService(
            self.uow_factory,
            self.event_bus,
            self.order_machine,
            self.item_machine,
        )

    def show_order(self) -> ShowOrderHandler:
        return ShowOrderHandler(self.uow_factory)

    def list_orders(self) -> ListOrdersHandler:
        return ListOrdersHandler(self.uow_factory)

    def next_statuses(self) -> NextStatusesHandler:
        return NextStatusesHandler(self.uow_factory, self.order_machine)

    def register_customer(self) -> RegisterCustomerHandler:
        return RegisterCustomerHandler(self.uow_factory)

    def list_customers(self) -> ListCustomersHandler:
        return ListCustomersHandler(self.uow_factory)

    def add_product(self) -> AddProductHandler:
        return AddProductHandler(self.uow_factory)

    def update_product(self) -> UpdateProductHandler:
        return UpdateProductHandler(self.uow_factory)

    def list_products(self) -> ListProductsHandler:
        return ListProductsHandler(self.uow_factory)

    def adjust_stock(self) -> AdjustStockHandler:
        return AdjustStockHandler(self.uow_factory, self.event_bus)

    def show_inventory(self) -> ShowInventoryHandler:
        return ShowInventoryHandler(self.uow_factory, self.settings.low_stock_threshold)

    def stock_history(self) -> ShowStockHistoryHandler:
        return ShowStockHistoryHandler(self.uow_factory)


def build_container(settings: Settings | None = None) -> Container:
    settings = settings or load_settings()

    engine = create_engine_from_url(settings.database_url)
    init_schema(engine)

    bus = InMemoryEventBus()
    bus.subscribe(log_event)

    return Container(
        settings=settings,
        engine=engine,
        uow_factory=partial(SqlAlchemyUnitOfWork, session_factory(engine)),
        event_bus=bus,
        order_machine=order_status_machine(),
        item_machine=item_status_machine(),
    )
