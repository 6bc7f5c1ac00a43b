"""Status state machines for orders and order items.

A ``StatusMachine`` is a pure lookup over an immutable transition table.
It holds no state besides the table, has no side effects and is safe to
share between threads.  The composition root builds one machine per table
and injects it; tests can build machines over alternate tables.
"""

from __future__ import annotations

from collections import deque
from enum import Enum
from types import MappingProxyType
from typing import Generic, Iterable, Mapping, TypeVar

from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.order import ItemStatus, OrderStatus

S = TypeVar("S", bound=Enum)


ORDER_TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = MappingProxyType({
    OrderStatus.PENDING: frozenset({
        OrderStatus.PAID,
        OrderStatus.PAYMENT_FAILED,
        OrderStatus.CANCELLED,
        OrderStatus.ON_HOLD,
    }),
    OrderStatus.PAYMENT_FAILED: frozenset({
        OrderStatus.PENDING,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PAID: frozenset({
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.ON_HOLD,
        OrderStatus.REFUNDED,
    }),
    OrderStatus.PROCESSING: frozenset({
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.ON_HOLD,
        OrderStatus.REFUNDED,
    }),
    OrderStatus.SHIPPED: frozenset({
        OrderStatus.DELIVERED,
        OrderStatus.RETURNED,
    }),
    OrderStatus.DELIVERED: frozenset({
        OrderStatus.COMPLETED,
        OrderStatus.RETURNED,
    }),
    OrderStatus.ON_HOLD: frozenset({
        OrderStatus.PROCESSING,
        OrderStatus.PAID,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.RETURNED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
})


ITEM_TRANSITIONS: Mapping[ItemStatus, frozenset[ItemStatus]] = MappingProxyType({
    ItemStatus.PENDING: frozenset({
        ItemStatus.PROCESSING,
        ItemStatus.CANCELLED,
        ItemStatus.REFUNDED,
    }),
    ItemStatus.PROCESSING: frozenset({
        ItemStatus.PARTIALLY_SHIPPED,
        ItemStatus.SHIPPED,
        ItemStatus.CANCELLED,
        ItemStatus.REFUNDED,
    }),
    # Units already left the warehouse, so no cancellation from here on.
    ItemStatus.PARTIALLY_SHIPPED: frozenset({ItemStatus.SHIPPED}),
    ItemStatus.SHIPPED: frozenset({
        ItemStatus.DELIVERED,
        ItemStatus.RETURNED,
    }),
    ItemStatus.DELIVERED: frozenset({ItemStatus.RETURNED}),
    ItemStatus.RETURNED: frozenset({ItemStatus.REFUNDED}),
    ItemStatus.CANCELLED: frozenset(),
    ItemStatus.REFUNDED: frozenset(),
})


class StatusMachine(Generic[S]):
    """Legal-transition lookup over one transition table.

    A status is final iff its edge set is empty.  Moving to the current
    status is always allowed and means "no change".
    """

    def __init__(self, transitions: Mapping[S, Iterable[S]]) -> None:
        table = {state: frozenset(targets) for state, targets in transitions.items()}
        if not table:
            raise ValidationError("Transition table must declare at least one state")
        for state, targets in table.items():
            unknown = targets - table.keys()
            if unknown:
                names = ", ".join(sorted(t.name for t in unknown))
                raise ValidationError(
                    f"Transition table sends {state.name} to undeclared state(s): {names}"
                )
        self._table: Mapping[S, frozenset[S]] = MappingProxyType(table)

    @property
    def states(self) -> frozenset[S]:
        return frozenset(self._table)

    def can_transition(self, from_status: S, to_status: S) -> bool:
        if from_status == to_status:
            return True
        return to_status in self._edges(from_status)

    def next_possible(self, from_status: S) -> frozenset[S]:
        return self._edges(from_status)

    def is_final(self, status: S) -> bool:
        return not self._edges(status)

    def final_states(self) -> frozenset[S]:
        return frozenset(s for s, targets in self._table.items() if not targets)

    def reachable_from(self, status: S) -> frozenset[S]:
        """Every status reachable through zero or more legal transitions."""
        seen = {status}
        queue = deque([status])
        while queue:
            for target in self._edges(queue.popleft()):
                if target not in seen:
                    seen.add(target)
                    queue.append(target)
        return frozenset(seen)

    def _edges(self, status: S) -> frozenset[S]:
        try:
            return self._table[status]
        except KeyError:
            raise ValidationError(f"Unknown status: {status!r}") from None


def order_status_machine(
    transitions: Mapping[OrderStatus, Iterable[OrderStatus]] = ORDER_TRANSITIONS,
) -> StatusMachine[OrderStatus]:
    return StatusMachine(transitions)


def item_status_machine(
    transitions: Mapping[ItemStatus, Iterable[ItemStatus]] = ITEM_TRANSITIONS,
) -> StatusMachine[ItemStatus]:
    return StatusMachine(transitions)
