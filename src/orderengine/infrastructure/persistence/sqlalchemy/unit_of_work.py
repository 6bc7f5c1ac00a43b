"""Unit of work over one SQLAlchemy ``Session`` (one database transaction)."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from orderengine.domain.exceptions import PersistenceError
from orderengine.domain.repository.unit_of_work import UnitOfWork
from orderengine.infrastructure.persistence.sqlalchemy.repositories import (
    SqlCustomerRepository,
    SqlOrderRepository,
    SqlProductRepository,
    SqlStockMovementRepository,
)


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._session: Session | None = None
        self._rolled_back = False

    def __enter__(self) -> UnitOfWork:
        self._session = self._session_factory()
        self._rolled_back = False
        self.products = SqlProductRepository(self._session)
        self.customers = SqlCustomerRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        self.movements = SqlStockMovementRepository(self._session)
        return super().__enter__()

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            super().__exit__(exc_type, exc, tb)
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    @property
    def is_active(self) -> bool:
        return (
            self._session is not None
            and not self._rolled_back
            and self._session.in_transaction()
        )

    def _commit(self) -> None:
        try:
            self._session.commit()  # type: ignore[union-attr]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Commit failed: {exc}") from exc

    def _rollback(self) -> None:
        # A failed rollback is not retried on exit.
        self._rolled_back = True
        try:
            self._session.rollback()  # type: ignore[union-attr]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Rollback failed: {exc}") from exc
