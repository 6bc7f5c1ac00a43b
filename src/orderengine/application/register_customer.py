"""Application services: Register Customer and List Customers use cases."""

from __future__ import annotations

from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.customer import Customer
from orderengine.domain.model.value_objects import Address
from orderengine.domain.repository.unit_of_work import UnitOfWorkFactory


class RegisterCustomerHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        email: str,
        name: str,
        phone: str = "",
        default_address: Address | None = None,
    ) -> Customer:
        customer = Customer.register(email, name, phone, default_address)
        with self._uow_factory() as uow:
            if uow.customers.get_by_email(customer.email) is not None:
                raise ValidationError(f"Customer '{customer.email}' already exists")
            uow.customers.add(customer)
            uow.commit()
        return customer


class ListCustomersHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[Customer]:
        with self._uow_factory() as uow:
            return uow.customers.list_all()
