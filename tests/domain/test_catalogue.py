"""Unit tests for Product, Customer and the PriceFreezer."""

import pytest

from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.customer import Customer, CustomerStatus
from orderengine.domain.model.product import Product, ProductStatus
from orderengine.domain.model.value_objects import Money
from orderengine.domain.service.price_freezer import PriceFreezer


def _product(price: str = "15.00", stock: int = 10) -> Product:
    return Product(id=1, name="Widget", price=Money.of(price), stock_quantity=stock)


class TestProduct:

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _product(stock=-1)

    def test_update_price(self):
        product = _product()
        product.update_price(Money.of("19.99"))
        assert product.price == Money.of("19.99")

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError, match="greater than zero"):
            _product().update_price(Money.of("0"))

    def test_deactivate_and_activate(self):
        product = _product()
        product.deactivate()
        assert product.status == ProductStatus.INACTIVE
        assert not product.is_active
        product.activate()
        assert product.is_active


class TestCustomer:

    def test_register_normalises_email(self):
        customer = Customer.register("  Alice@Example.COM ", " Alice ")
        assert customer.email == "alice@example.com"
        assert customer.name == "Alice"
        assert customer.status == CustomerStatus.ACTIVE
        assert customer.id is None

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError, match="Invalid email"):
            Customer.register("alice", "Alice")

    def test_name_required(self):
        with pytest.raises(ValidationError, match="name is required"):
            Customer.register("alice@example.com", " ")


class TestPriceFreezer:

    def test_freezes_current_price(self):
        frozen = PriceFreezer().freeze(_product(price="15.00"), 3)
        assert frozen.unit_price == Money.of("15.00")
        assert frozen.quantity.value == 3
        assert frozen.line_total == Money.of("45.00")

    def test_later_price_change_does_not_reach_snapshot(self):
        product = _product(price="15.00")
        frozen = PriceFreezer().freeze(product, 2)
        product.update_price(Money.of("99.00"))
        assert frozen.unit_price == Money.of("15.00")
        assert frozen.line_total == Money.of("30.00")

    def test_does_not_touch_product(self):
        product = _product(stock=10)
        PriceFreezer().freeze(product, 4)
        assert product.stock_quantity == 10

    def test_non_positive_quantity_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            PriceFreezer().freeze(_product(), 0)
