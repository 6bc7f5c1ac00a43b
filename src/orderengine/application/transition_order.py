"""Application service: order and item status transitions.

Moves an order (or a single item) through the lifecycle.  Order moves
cascade onto the items, and whenever an item stops holding stock
(cancelled, returned or refunded) its units go back on the shelf in the
same transaction as the status write.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType

import structlog

from orderengine.application.dto import ItemTransitionCommand, TransitionCommand
from orderengine.application.transactions import run_in_transaction
from orderengine.domain.errors import (
    IllegalTransition,
    OrderItemNotFound,
    OrderNotFound,
    TransitionError,
)
from orderengine.domain.events import (
    EventPublisher,
    ItemStatusChangedEvent,
    StatusChangedEvent,
)
from orderengine.domain.model.order import (
    RELEASED_ITEM_STATUSES,
    ItemStatus,
    Order,
    OrderItem,
    OrderStatus,
)
from orderengine.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from orderengine.domain.result import Err, Ok, Result
from orderengine.domain.service.order_status_machine import StatusMachine
from orderengine.domain.service.product_stock import ProductStock

logger = structlog.get_logger(__name__)


# Item statuses an order move pulls its items out of.  Releasing order
# statuses take every item still holding stock instead (see _cascade_target).
_FULFILLMENT_CASCADE = MappingProxyType({
    OrderStatus.PROCESSING: frozenset({ItemStatus.PENDING}),
    OrderStatus.SHIPPED: frozenset({
        ItemStatus.PENDING,
        ItemStatus.PROCESSING,
        ItemStatus.PARTIALLY_SHIPPED,
    }),
    OrderStatus.DELIVERED: frozenset({ItemStatus.SHIPPED}),
})

_RELEASING_ORDER_STATUSES = MappingProxyType({
    OrderStatus.CANCELLED: ItemStatus.CANCELLED,
    OrderStatus.RETURNED: ItemStatus.RETURNED,
    OrderStatus.REFUNDED: ItemStatus.REFUNDED,
})

# Active items must all be in one of these before the order may move on.
# Items already sent back count as settled.
_ORDER_GUARDS = MappingProxyType({
    OrderStatus.DELIVERED: frozenset({
        ItemStatus.SHIPPED,
        ItemStatus.DELIVERED,
        ItemStatus.RETURNED,
        ItemStatus.REFUNDED,
    }),
    OrderStatus.COMPLETED: frozenset({
        ItemStatus.DELIVERED,
        ItemStatus.RETURNED,
        ItemStatus.REFUNDED,
    }),
})

# Order moves that need at least one item still holding stock.
_NEEDS_HELD_ITEMS = frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED})

# Order statuses in which a single item may be sent back or refunded.
_ITEM_RELEASE_ORDER_STATUSES = MappingProxyType({
    ItemStatus.RETURNED: frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED}),
    ItemStatus.REFUNDED: frozenset({
        OrderStatus.PAID,
        OrderStatus.PROCESSING,
        OrderStatus.ON_HOLD,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.RETURNED,
    }),
})

_FULFILLMENT_ITEM_STATUSES = frozenset({
    ItemStatus.PROCESSING,
    ItemStatus.PARTIALLY_SHIPPED,
    ItemStatus.SHIPPED,
    ItemStatus.DELIVERED,
})

# Order statuses in which items may be picked, packed and shipped.
_WORKABLE_ORDER_STATUSES = frozenset({
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
})

_ROLL_UP = MappingProxyType({
    ItemStatus.PROCESSING: OrderStatus.PROCESSING,
    ItemStatus.SHIPPED: OrderStatus.SHIPPED,
    ItemStatus.DELIVERED: OrderStatus.DELIVERED,
    ItemStatus.RETURNED: OrderStatus.RETURNED,
    ItemStatus.REFUNDED: OrderStatus.REFUNDED,
})


class OrderStatusTransitionService:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: EventPublisher,
        order_machine: StatusMachine[OrderStatus],
        item_machine: StatusMachine[ItemStatus],
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self._order_machine = order_machine
        self._item_machine = item_machine

    # --- Order transitions ----------------------------------------------------

    def transition(self, command: TransitionCommand) -> Result[Order, TransitionError]:
        """Move an order to ``command.target_status``.

        Requesting the current status is a no-op: no write, no event.
        """
        result = run_in_transaction(
            self._uow_factory,
            self._publisher,
            "transition order",
            lambda uow: self._transition(uow, command),
            order_id=command.order_id,
        )
        self._log_outcome("order_transitioned", result, command.order_id, command.target_status.value)
        return result

    def _transition(
        self, uow: UnitOfWork, command: TransitionCommand
    ) -> Result[Order, TransitionError]:
        order = uow.orders.get_by_id(command.order_id, for_update=True)
        if order is None:
            return Err(OrderNotFound(command.order_id))

        current, target = order.status, command.target_status
        if current == target:
            return Ok(order)

        if not self._order_machine.can_transition(current, target):
            return Err(IllegalTransition(current.value, target.value))

        if target in _NEEDS_HELD_ITEMS and not order.holds_stock:
            return Err(IllegalTransition(
                current.value, target.value, detail="no item still holds stock",
            ))

        blocked = self._blocking_item(order, target)
        if blocked is not None:
            return Err(IllegalTransition(
                current.value,
                target.value,
                detail=f"item #{blocked.id} is {blocked.status.value}",
            ))

        # Check every cascaded item move before touching anything.
        moves: list[tuple[OrderItem, ItemStatus]] = []
        for item in order.items:
            item_target = _cascade_target(item, target)
            if item_target is None or item_target == item.status:
                continue
            if not self._item_machine.can_transition(item.status, item_target):
                return Err(IllegalTransition(
                    item.status.value,
                    item_target.value,
                    item_id=item.id,
                    detail=f"order is moving to {target.value}",
                ))
            moves.append((item, item_target))

        now = datetime.now(timezone.utc)
        reason = command.reason or f"order moved to {target.value}"
        stock = ProductStock(uow)
        for item, item_target in moves:
            self._move_item(uow, stock, order, item, item_target, reason, now)

        self._record_order_status(uow, order, target, reason, now)
        uow.orders.save(order)
        return Ok(order)

    # --- Item transitions -----------------------------------------------------

    def transition_item(
        self, command: ItemTransitionCommand
    ) -> Result[Order, TransitionError]:
        """Move one item, then roll the order status up to match its items."""
        result = run_in_transaction(
            self._uow_factory,
            self._publisher,
            "transition order item",
            lambda uow: self._transition_item(uow, command),
            order_id=command.order_id,
            item_id=command.item_id,
        )
        self._log_outcome(
            "order_item_transitioned",
            result,
            command.order_id,
            command.target_status.value,
            item_id=command.item_id,
        )
        return result

    def _transition_item(
        self, uow: UnitOfWork, command: ItemTransitionCommand
    ) -> Result[Order, TransitionError]:
        order = uow.orders.get_by_id(command.order_id, for_update=True)
        if order is None:
            return Err(OrderNotFound(command.order_id))

        item = order.find_item(command.item_id)
        if item is None:
            return Err(OrderItemNotFound(command.order_id, command.item_id))

        current, target = item.status, command.target_status
        if current == target:
            return Ok(order)

        if self._order_machine.is_final(order.status):
            return Err(IllegalTransition(
                current.value, target.value, item_id=item.id,
                detail=f"order is {order.status.value}",
            ))
        if target in _FULFILLMENT_ITEM_STATUSES:
            allowed_orders = _WORKABLE_ORDER_STATUSES
        else:
            allowed_orders = _ITEM_RELEASE_ORDER_STATUSES.get(target)
        if allowed_orders is not None and order.status not in allowed_orders:
            return Err(IllegalTransition(
                current.value, target.value, item_id=item.id,
                detail=f"order is {order.status.value}",
            ))
        if not self._item_machine.can_transition(current, target):
            return Err(IllegalTransition(current.value, target.value, item_id=item.id))

        now = datetime.now(timezone.utc)
        reason = command.reason or f"item #{item.id} moved to {target.value}"
        self._move_item(uow, ProductStock(uow), order, item, target, reason, now)
        self._roll_up(uow, order, reason, now)
        uow.orders.save(order)
        return Ok(order)

    def _roll_up(self, uow: UnitOfWork, order: Order, reason: str, at: datetime) -> None:
        """Move the order to the most advanced state all its active items share.

        Returned and refunded items only count once nothing else holds stock,
        so a partly returned order still follows the items the customer kept.
        """
        active = order.active_items
        if not active:
            candidate: OrderStatus | None = OrderStatus.CANCELLED
        else:
            held = [item for item in active if item.holds_stock]
            statuses = {item.status for item in (held or active)}
            candidate = _ROLL_UP.get(statuses.pop()) if len(statuses) == 1 else None

        if candidate is None or candidate == order.status:
            return
        if not self._order_machine.can_transition(order.status, candidate):
            return
        self._record_order_status(uow, order, candidate, reason, at)

    # --- Shared steps -----------------------------------------------------------

    @staticmethod
    def _blocking_item(order: Order, target: OrderStatus) -> OrderItem | None:
        allowed = _ORDER_GUARDS.get(target)
        if allowed is None:
            return None
        for item in order.active_items:
            if item.status not in allowed:
                return item
        return None

    @staticmethod
    def _move_item(
        uow: UnitOfWork,
        stock: ProductStock,
        order: Order,
        item: OrderItem,
        target: ItemStatus,
        reason: str,
        at: datetime,
    ) -> None:
        previous = item.status
        # Only an item that still holds stock gives units back, so no
        # quantity is ever released twice.
        if target in RELEASED_ITEM_STATUSES and item.holds_stock:
            stock.release(
                item.product_id,
                item.quantity,
                reason=f"order {order.reference} item #{item.id} {target.value.lower()}",
                order_id=order.id,
            )
        item.status = target
        uow.record(ItemStatusChangedEvent(
            order_id=order.id,  # type: ignore[arg-type]
            item_id=item.id,  # type: ignore[arg-type]
            from_status=previous.value,
            to_status=target.value,
            timestamp=at,
        ))

    @staticmethod
    def _record_order_status(
        uow: UnitOfWork, order: Order, target: OrderStatus, reason: str, at: datetime
    ) -> None:
        change = order.record_status(target, reason, at)
        uow.record(StatusChangedEvent(
            order_id=order.id,  # type: ignore[arg-type]
            from_status=change.from_status.value if change.from_status else None,
            to_status=change.to_status.value,
            timestamp=at,
            reason=reason,
        ))

    @staticmethod
    def _log_outcome(
        event: str,
        result: Result[Order, TransitionError],
        order_id: int,
        target: str,
        **context: object,
    ) -> None:
        if isinstance(result, Ok):
            logger.info(event, order_id=order_id, target=target,
                        status=result.value.status.value, **context)
        else:
            logger.warning("transition_rejected", order_id=order_id, target=target,
                           kind=result.error.kind, reason=result.error.message, **context)


def _cascade_target(item: OrderItem, order_target: OrderStatus) -> ItemStatus | None:
    """Status an item follows the order into, or None if it stays put."""
    released = _RELEASING_ORDER_STATUSES.get(order_target)
    if released is not None:
        if item.holds_stock:
            return released
        if released == ItemStatus.REFUNDED and item.status == ItemStatus.RETURNED:
            return released
        return None

    sources = _FULFILLMENT_CASCADE.get(order_target)
    if sources is not None and item.status in sources:
        return ItemStatus(order_target.value)
    return None
