"""Transaction boundary shared by the write-side use cases.

Every engine operation runs as one unit of work: the use case does its work
against the repositories and returns a ``Result``.  An ``Err`` or a storage
failure rolls everything back, including stock already reserved in the same
call.  Events are published only after a successful commit.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

import structlog

from orderengine.domain.errors import PersistenceFailure
from orderengine.domain.events import DomainEvent, EventPublisher
from orderengine.domain.exceptions import InventoryInconsistencyError, PersistenceError
from orderengine.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from orderengine.domain.result import Err, Result

logger = structlog.get_logger(__name__)

T = TypeVar("T")
E = TypeVar("E")


def run_in_transaction(
    uow_factory: UnitOfWorkFactory,
    publisher: EventPublisher,
    operation: str,
    work: Callable[[UnitOfWork], Result[T, E]],
    **context: Any,
) -> Result[T, E | PersistenceFailure]:
    """Run ``work`` inside a fresh unit of work and commit if it succeeded.

    ``operation`` names the use case in logs and in ``PersistenceFailure``.
    Raises InventoryInconsistencyError when the rollback itself fails.
    """
    with uow_factory() as uow:
        try:
            result = work(uow)
        except PersistenceError as exc:
            logger.error("persistence_failed", operation=operation, error=str(exc), **context)
            rollback_or_raise(uow, operation, **context)
            return Err(PersistenceFailure(operation, str(exc)))

        if isinstance(result, Err):
            rollback_or_raise(uow, operation, **context)
            return result

        try:
            uow.commit()
        except PersistenceError as exc:
            logger.error("commit_failed", operation=operation, error=str(exc), **context)
            rollback_or_raise(uow, operation, **context)
            return Err(PersistenceFailure(operation, str(exc)))

        events = uow.collect_events()

    publish_all(publisher, events)
    return result


def rollback_or_raise(uow: UnitOfWork, operation: str, **context: Any) -> None:
    """Roll back, escalating a failed rollback to InventoryInconsistencyError."""
    try:
        uow.rollback()
    except PersistenceError as exc:
        logger.critical(
            "rollback_failed",
            operation=operation,
            error=str(exc),
            **context,
        )
        raise InventoryInconsistencyError(
            f"Rollback failed while trying to {operation}; stock may not match "
            f"committed orders: {exc}"
        ) from exc


def publish_all(publisher: EventPublisher, events: Iterable[DomainEvent]) -> None:
    for event in events:
        publisher.publish(event)
