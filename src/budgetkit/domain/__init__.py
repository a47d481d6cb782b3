"""Domain layer for budgetkit application.

Services live in their own modules (``budgetkit.domain.ledger``); they are
not re-exported here because the database layer imports the entity modules
of this package.
"""
