"""SQLAlchemy implementations of the domain repositories.

All repositories of one unit of work share its ``Session`` and therefore
its transaction.  Driver and SQLAlchemy errors are translated to
``PersistenceError`` so they never cross into the application layer.
"""

from __future__ import annotations

import functools
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, ParamSpec, TypeVar

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderengine.domain.events import StockAdjustedEvent
from orderengine.domain.exceptions import PersistenceError
from orderengine.domain.model.customer import Customer, CustomerStatus
from orderengine.domain.model.order import (
    ItemStatus,
    Order,
    OrderItem,
    OrderStatus,
    StatusChange,
)
from orderengine.domain.model.product import Product, ProductStatus
from orderengine.domain.model.value_objects import Address, FrozenPrice, Money, Quantity
from orderengine.domain.repository.customer_repository import CustomerRepository
from orderengine.domain.repository.order_repository import OrderRepository
from orderengine.domain.repository.product_repository import ProductRepository
from orderengine.domain.repository.stock_movement_repository import (
    StockMovementRepository,
)
from orderengine.infrastructure.persistence.sqlalchemy.models import (
    CustomerRow,
    OrderItemRow,
    OrderRow,
    ProductRow,
    StatusHistoryRow,
    StockMovementRow,
)

P = ParamSpec("P")
R = TypeVar("R")


def translate_errors(method: Callable[P, R]) -> Callable[P, R]:
    @functools.wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"{method.__qualname__} failed: {exc}") from exc
    return wrapper


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    @translate_errors
    def get_by_id(self, product_id: int) -> Product | None:
        row = self._session.get(ProductRow, product_id, populate_existing=True)
        return self._to_domain(row) if row else None

    @translate_errors
    def get_by_name(self, name: str) -> Product | None:
        stmt = (
            select(ProductRow)
            .where(func.lower(ProductRow.name) == name.strip().lower())
            .execution_options(populate_existing=True)
        )
        row = self._session.scalars(stmt).first()
        return self._to_domain(row) if row else None

    @translate_errors
    def list_all(self) -> list[Product]:
        stmt = (
            select(ProductRow)
            .order_by(ProductRow.id)
            .execution_options(populate_existing=True)
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @translate_errors
    def add(self, product: Product) -> None:
        row = ProductRow(
            name=product.name,
            price=str(product.price.amount),
            currency=product.price.currency,
            stock_quantity=product.stock_quantity,
            status=product.status.value,
        )
        self._session.add(row)
        self._session.flush()
        product.id = row.id

    @translate_errors
    def save(self, product: Product) -> None:
        row = self._session.get(ProductRow, product.id)
        if row is None:
            raise PersistenceError(f"Product #{product.id} does not exist")
        row.name = product.name
        row.price = str(product.price.amount)
        row.currency = product.price.currency
        row.status = product.status.value
        self._session.flush()

    @translate_errors
    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        stmt = (
            update(ProductRow)
            .where(ProductRow.id == product_id, ProductRow.stock_quantity >= quantity)
            .values(stock_quantity=ProductRow.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount == 1

    @translate_errors
    def increment_stock(self, product_id: int, quantity: int) -> bool:
        stmt = (
            update(ProductRow)
            .where(ProductRow.id == product_id)
            .values(stock_quantity=ProductRow.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount == 1

    @staticmethod
    def _to_domain(row: ProductRow) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            price=Money(Decimal(row.price), row.currency),
            stock_quantity=row.stock_quantity,
            status=ProductStatus(row.status),
        )


class SqlCustomerRepository(CustomerRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    @translate_errors
    def get_by_id(self, customer_id: int) -> Customer | None:
        row = self._session.get(CustomerRow, customer_id)
        return self._to_domain(row) if row else None

    @translate_errors
    def get_by_email(self, email: str) -> Customer | None:
        stmt = select(CustomerRow).where(func.lower(CustomerRow.email) == email.strip().lower())
        row = self._session.scalars(stmt).first()
        return self._to_domain(row) if row else None

    @translate_errors
    def list_all(self) -> list[Customer]:
        stmt = select(CustomerRow).order_by(CustomerRow.id)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @translate_errors
    def add(self, customer: Customer) -> None:
        row = CustomerRow(
            email=customer.email,
            name=customer.name,
            phone=customer.phone,
            status=customer.status.value,
            default_address=(
                customer.default_address.to_dict() if customer.default_address else None
            ),
        )
        self._session.add(row)
        self._session.flush()
        customer.id = row.id

    @staticmethod
    def _to_domain(row: CustomerRow) -> Customer:
        return Customer(
            id=row.id,
            email=row.email,
            name=row.name,
            phone=row.phone,
            status=CustomerStatus(row.status),
            default_address=Address.from_dict(row.default_address) if row.default_address else None,
        )


def select_order(order_id: int, for_update: bool = False) -> Select[tuple[OrderRow]]:
    """Load statement for one order; ``for_update`` row-locks it until commit.

    SQLite drops the ``FOR UPDATE`` clause; there ``BEGIN IMMEDIATE``
    already serializes writers.
    """
    stmt = (
        select(OrderRow)
        .where(OrderRow.id == order_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    return stmt


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    @translate_errors
    def get_by_id(self, order_id: int, for_update: bool = False) -> Order | None:
        row = self._session.scalars(select_order(order_id, for_update)).first()
        return self._to_domain(row) if row else None

    @translate_errors
    def get_by_reference(self, reference: str) -> Order | None:
        stmt = select(OrderRow).where(OrderRow.reference == reference)
        row = self._session.scalars(stmt).first()
        return self._to_domain(row) if row else None

    @translate_errors
    def find(
        self,
        customer_id: int | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        stmt = select(OrderRow).order_by(OrderRow.created_at, OrderRow.id)
        if customer_id is not None:
            stmt = stmt.where(OrderRow.customer_id == customer_id)
        if status is not None:
            stmt = stmt.where(OrderRow.status == status.value)
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @translate_errors
    def add(self, order: Order) -> None:
        row = OrderRow(
            reference=order.reference,
            customer_id=order.customer_id,
            status=order.status.value,
            shipping_address=order.shipping_address.to_dict(),
            billing_address=order.billing_address.to_dict(),
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[
                OrderItemRow(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    unit_price=str(item.unit_price.amount),
                    currency=item.unit_price.currency,
                    quantity=item.quantity,
                    status=item.status.value,
                )
                for item in order.items
            ],
            history=[self._history_row(change) for change in order.status_history],
        )
        self._session.add(row)
        self._session.flush()

        order.id = row.id
        for item, item_row in zip(order.items, row.items):
            item.id = item_row.id

    @translate_errors
    def save(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id)
        if row is None:
            raise PersistenceError(f"Order #{order.id} does not exist")

        row.status = order.status.value
        row.updated_at = order.updated_at  # type: ignore[assignment]

        item_rows = {item_row.id: item_row for item_row in row.items}
        for item in order.items:
            item_rows[item.id].status = item.status.value  # type: ignore[index]

        # History is append-only: persist whatever was recorded since loading.
        for change in order.status_history[len(row.history):]:
            row.history.append(self._history_row(change))

        self._session.flush()

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _history_row(change: StatusChange) -> StatusHistoryRow:
        return StatusHistoryRow(
            from_status=change.from_status.value if change.from_status else None,
            to_status=change.to_status.value,
            reason=change.reason,
            changed_at=change.changed_at,
        )

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        items = [
            OrderItem(
                id=item_row.id,
                product_id=item_row.product_id,
                product_name=item_row.product_name,
                price=FrozenPrice(
                    unit_price=Money(Decimal(item_row.unit_price), item_row.currency),
                    quantity=Quantity(item_row.quantity),
                ),
                status=ItemStatus(item_row.status),
            )
            for item_row in row.items
        ]
        history = [
            StatusChange(
                from_status=OrderStatus(h.from_status) if h.from_status else None,
                to_status=OrderStatus(h.to_status),
                reason=h.reason,
                changed_at=_as_utc(h.changed_at),
            )
            for h in row.history
        ]
        return Order(
            id=row.id,
            reference=row.reference,
            customer_id=row.customer_id,
            items=items,
            shipping_address=Address.from_dict(row.shipping_address),
            billing_address=Address.from_dict(row.billing_address),
            status=OrderStatus(row.status),
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
            status_history=history,
        )


class SqlStockMovementRepository(StockMovementRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    @translate_errors
    def add(self, movement: StockAdjustedEvent) -> None:
        self._session.add(StockMovementRow(
            product_id=movement.product_id,
            delta=movement.delta,
            reason=movement.reason,
            order_id=movement.order_id,
            created_at=movement.timestamp,
        ))
        self._session.flush()

    @translate_errors
    def list_for_product(self, product_id: int) -> list[StockAdjustedEvent]:
        stmt = (
            select(StockMovementRow)
            .where(StockMovementRow.product_id == product_id)
            .order_by(StockMovementRow.id)
        )
        return [
            StockAdjustedEvent(
                product_id=row.product_id,
                delta=row.delta,
                reason=row.reason,
                timestamp=_as_utc(row.created_at),
                order_id=row.order_id,
            )
            for row in self._session.scalars(stmt)
        ]
