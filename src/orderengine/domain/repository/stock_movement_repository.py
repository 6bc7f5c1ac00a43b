"""Abstract repository for the stock movement ledger (audit trail)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderengine.domain.events import StockAdjustedEvent


class StockMovementRepository(ABC):

    @abstractmethod
    def add(self, movement: StockAdjustedEvent) -> None:
        """Append one movement; written in the same transaction as the stock change."""

    @abstractmethod
    def list_for_product(self, product_id: int) -> list[StockAdjustedEvent]:
        """Return the product's movements, oldest first."""
