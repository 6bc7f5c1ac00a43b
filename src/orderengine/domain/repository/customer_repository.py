"""Abstract repository for Customer aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderengine.domain.model.customer import Customer


class CustomerRepository(ABC):

    @abstractmethod
    def get_by_id(self, customer_id: int) -> Customer | None:
        """Return a customer by ID, or None."""

    @abstractmethod
    def get_by_email(self, email: str) -> Customer | None:
        """Return a customer by email (case-insensitive), or None."""

    @abstractmethod
    def list_all(self) -> list[Customer]:
        """Return every customer, ordered by ID."""

    @abstractmethod
    def add(self, customer: Customer) -> None:
        """Persist a new customer and assign its ID."""
