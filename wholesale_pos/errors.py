"""
Domain errors raised by the repositories and the billing engine.

Every class derives from DomainError so the UI can catch one type and show
`str(err)` directly (toast/snackbar). StorageFailure is the exception: it
means the database itself is unusable and the caller should retry opening
the store rather than show the message as a user mistake.
"""
from __future__ import annotations


class DomainError(Exception):
    """Domain-level error the controller/UI can surface."""
    pass


class ValidationError(DomainError):
    """Missing or out-of-range input, raised before any I/O."""
    pass


class InvariantViolation(DomainError):
    """A write would break a ledger invariant (negative stock, orphaned bills)."""
    pass


class InsufficientStock(InvariantViolation):
    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = int(available)
        self.requested = int(requested)
        super().__init__(
            f"Insufficient stock for {product_name}: "
            f"only {self.available} available, {self.requested} requested."
        )


class NotFound(DomainError):
    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class StorageFailure(DomainError):
    """The SQLite database could not be opened, read or written."""
    pass


__all__ = [
    "DomainError",
    "ValidationError",
    "InvariantViolation",
    "InsufficientStock",
    "NotFound",
    "StorageFailure",
]
