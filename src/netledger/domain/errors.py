"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested account, transaction, recurrence or report does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class AlreadyExistsError(ConflictError):
    """An entity with the same key is already stored."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class StorageError(DomainError):
    """A ledger file could not be read or written."""


class InconsistentStateError(DomainError):
    """Replayed balances disagree with the incrementally maintained ones."""

    def __init__(self, message: str, discrepancies: dict | None = None):
        super().__init__(message)
        self.discrepancies = discrepancies or {}


def account_not_found(name: str) -> str:
    """Return message for missing account."""
    return f"Account '{name}' not found"


def account_exists(name: str) -> str:
    """Return message for duplicate account name."""
    return f"Account with name '{name}' already exists"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def recurrence_not_found(recurrence_id: str) -> str:
    """Return message for missing recurrence."""
    return f"Recurrence {recurrence_id} not found"


def account_delete_blocked(
    name: str, transaction_count: int, recurrence_count: int
) -> str:
    """Return message when account has dependent transactions or recurrences."""
    parts = []
    if transaction_count > 0:
        parts.append(
            f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}"
        )
    if recurrence_count > 0:
        parts.append(
            f"{recurrence_count} recurrence{'s' if recurrence_count != 1 else ''}"
        )
    return (
        f"Cannot delete account '{name}': it has {', '.join(parts)}. "
        "Please delete them first."
    )


def balances_disagree(discrepancies: dict) -> str:
    """Return message listing accounts whose balances disagree."""
    details = ", ".join(
        f"{name} (stored {stored:.2f}, replayed {replayed:.2f})"
        for name, (stored, replayed) in sorted(discrepancies.items())
    )
    return f"Balances disagree with transaction history: {details}"
