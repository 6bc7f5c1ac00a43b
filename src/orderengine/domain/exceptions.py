"""Domain-level exceptions.

Engine operations report business outcomes through ``Result`` values (see
``orderengine.domain.result``).  Exceptions are kept for the cases that are
not part of that contract: invariant violations inside the model, lookups on
the read side, and infrastructure failures.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class PersistenceError(DomainException):
    """The storage layer failed to read or write.

    Raised by repository and unit-of-work implementations so that no
    driver-specific exception crosses into the application layer.
    """


class InventoryInconsistencyError(DomainException):
    """Stock could not be restored after a failed transaction.

    Inventory may no longer match the committed orders.  Never caught by
    the engine; operators must be alerted.
    """
