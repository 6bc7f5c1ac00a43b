"""Customer aggregate, referenced (never owned) by orders."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from orderengine.domain.exceptions import ValidationError
from orderengine.domain.model.value_objects import Address


class CustomerStatus(Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


@dataclass
class Customer:
    id: int | None
    email: str
    name: str
    phone: str = ""
    status: CustomerStatus = CustomerStatus.ACTIVE
    default_address: Address | None = None

    @staticmethod
    def register(
        email: str,
        name: str,
        phone: str = "",
        default_address: Address | None = None,
    ) -> Customer:
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError(f"Invalid email address: '{email}'")
        if not name or not name.strip():
            raise ValidationError("Customer name is required")
        return Customer(
            id=None,
            email=email,
            name=name.strip(),
            phone=phone.strip(),
            default_address=default_address,
        )

    @property
    def is_active(self) -> bool:
        return self.status == CustomerStatus.ACTIVE
