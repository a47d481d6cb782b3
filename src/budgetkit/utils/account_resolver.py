"""Utility for resolving account names to IDs."""

from typing import Sequence

from budgetkit.domain.entities import Account
from budgetkit.domain.errors import NotFoundError


def resolve_account(accounts: Sequence[Account], account: str) -> str:
    """Resolve an account name or ID to the account ID.

    Args:
        accounts: Accounts to search
        account: Account id, unique id prefix, or exact account name

    Returns:
        Account ID

    Raises:
        NotFoundError: If no account (or more than one by prefix) matches
    """
    account = account.strip()

    for acc in accounts:
        if acc.id == account:
            return acc.id

    # Names win over id prefixes so short names like "Cash" stay unambiguous
    for acc in accounts:
        if acc.name == account:
            return acc.id

    matches = [acc for acc in accounts if account and acc.id.startswith(account)]
    if len(matches) == 1:
        return matches[0].id
    if len(matches) > 1:
        raise NotFoundError(f"Account '{account}' is ambiguous ({len(matches)} matching ids)")

    raise NotFoundError(f"Account '{account}' not found")
