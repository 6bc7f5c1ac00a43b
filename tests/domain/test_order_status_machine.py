"""Unit tests for the order and item state machines."""

import pytest

from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.order import ItemStatus, OrderStatus
from orderengine.domain.service.order_status_machine import (
    ITEM_TRANSITIONS,
    ORDER_TRANSITIONS,
    StatusMachine,
    item_status_machine,
    order_status_machine,
)


class TestOrderMachine:

    def setup_method(self):
        self.machine = order_status_machine()

    def test_declares_every_status(self):
        assert self.machine.states == frozenset(OrderStatus)

    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_self_transition_allowed(self, status):
        assert self.machine.can_transition(status, status)

    def test_table_edges_allowed(self):
        for source, targets in ORDER_TRANSITIONS.items():
            for target in targets:
                assert self.machine.can_transition(source, target)

    def test_non_edges_rejected(self):
        for source in OrderStatus:
            for target in OrderStatus:
                if source == target or target in ORDER_TRANSITIONS[source]:
                    continue
                assert not self.machine.can_transition(source, target), (source, target)

    def test_pending_to_paid(self):
        assert self.machine.can_transition(OrderStatus.PENDING, OrderStatus.PAID)

    def test_cannot_skip_to_shipped(self):
        assert not self.machine.can_transition(OrderStatus.PENDING, OrderStatus.SHIPPED)

    def test_shipped_cannot_be_cancelled(self):
        assert not self.machine.can_transition(OrderStatus.SHIPPED, OrderStatus.CANCELLED)

    def test_final_states(self):
        assert self.machine.final_states() == {
            OrderStatus.COMPLETED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        }
        assert self.machine.is_final(OrderStatus.CANCELLED)
        assert not self.machine.is_final(OrderStatus.PENDING)

    def test_next_possible(self):
        assert self.machine.next_possible(OrderStatus.RETURNED) == {OrderStatus.REFUNDED}
        assert self.machine.next_possible(OrderStatus.COMPLETED) == frozenset()

    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_every_status_reaches_a_final_state(self, status):
        assert self.machine.reachable_from(status) & self.machine.final_states()

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError, match="Unknown status"):
            self.machine.next_possible(ItemStatus.PARTIALLY_SHIPPED)  # type: ignore[arg-type]


class TestItemMachine:

    def setup_method(self):
        self.machine = item_status_machine()

    def test_declares_every_status(self):
        assert self.machine.states == frozenset(ItemStatus)

    def test_partially_shipped_cannot_be_cancelled(self):
        assert not self.machine.can_transition(ItemStatus.PARTIALLY_SHIPPED, ItemStatus.CANCELLED)

    def test_returned_can_be_refunded(self):
        assert self.machine.can_transition(ItemStatus.RETURNED, ItemStatus.REFUNDED)

    @pytest.mark.parametrize("status", list(ItemStatus))
    def test_every_status_reaches_a_final_state(self, status):
        assert self.machine.reachable_from(status) & self.machine.final_states()

    def test_table_matches_module_constant(self):
        for source, targets in ITEM_TRANSITIONS.items():
            assert self.machine.next_possible(source) == targets


class TestCustomTables:

    def test_alternate_table_is_honoured(self):
        machine = order_status_machine({
            OrderStatus.PENDING: {OrderStatus.CANCELLED},
            OrderStatus.CANCELLED: set(),
        })
        assert machine.can_transition(OrderStatus.PENDING, OrderStatus.CANCELLED)
        assert not machine.can_transition(OrderStatus.PENDING, OrderStatus.PAID)

    def test_undeclared_target_rejected(self):
        with pytest.raises(ValidationError, match="undeclared"):
            StatusMachine({OrderStatus.PENDING: {OrderStatus.PAID}})

    def test_empty_table_rejected(self):
        with pytest.raises(ValidationError, match="at least one state"):
            StatusMachine({})

    def test_table_cannot_be_mutated_through_machine(self):
        source = {OrderStatus.PENDING: {OrderStatus.CANCELLED}, OrderStatus.CANCELLED: set()}
        machine = StatusMachine(source)
        source[OrderStatus.PENDING].add(OrderStatus.PAID)
        assert not machine.can_transition(OrderStatus.PENDING, OrderStatus.PAID)
