"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class PersistenceError(DomainError):
    """A storage backend failed to read or write."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def project_not_found(project_id: str) -> str:
    """Return message for missing savings goal."""
    return f"Goal {project_id} not found"


def transfer_same_account(account_id: str) -> str:
    """Return message for a transfer whose two sides are the same account."""
    return f"Cannot transfer from account {account_id} to itself"


def non_positive_amount(kind: str, amount) -> str:
    """Return message for an amount that must be greater than zero."""
    return f"{kind} amount must be greater than zero (got {amount})"


def invalid_choice(kind: str, value, choices) -> str:
    """Return message for an unknown enum value."""
    allowed = ", ".join(str(choice) for choice in choices)
    return f"Unknown {kind} '{value}'. Supported values: {allowed}"
