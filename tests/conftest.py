"""Shared pytest fixtures for budgetkit tests."""

from decimal import Decimal

import pytest
import structlog

from budgetkit.database.json_store import JSONFileDatabase
from budgetkit.database.sqlalchemy_db import SQLAlchemyDatabase
from budgetkit.domain.entities import AccountType
from budgetkit.domain.ledger import LedgerService


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def state_path(tmp_path):
    """Path of a not yet existing state file."""
    return tmp_path / "budget" / "state.json"


@pytest.fixture
def local_db(state_path):
    """Create a local JSON state file database."""
    db = JSONFileDatabase(str(state_path))
    db.connect()
    db.initialize_schema()
    yield db
    db.disconnect()


@pytest.fixture
def ledger(local_db):
    """Create a LedgerService over the local database, starting from the default store."""
    service = LedgerService(local_db)
    service.load()
    return service


@pytest.fixture
def derived_ledger(tmp_path):
    """Create a LedgerService in derive-from-activity mode."""
    db = JSONFileDatabase(str(tmp_path / "derived.json"))
    db.initialize_schema()
    service = LedgerService(db, derive_balances=True)
    service.load()
    return service


@pytest.fixture
def cash(ledger):
    """The default Cash wallet."""
    return ledger.store.accounts[0]


@pytest.fixture
def bank(ledger):
    """A bank account with an opening balance of 1000."""
    return ledger.add_account("Bank", AccountType.BANK, balance=Decimal("1000"))


@pytest.fixture
def database_url(tmp_path):
    """URL of a temporary SQLite database."""
    return f"sqlite:///{tmp_path / 'budget.db'}"


@pytest.fixture
def sql_db(database_url):
    """Create a temporary relational database."""
    db = SQLAlchemyDatabase(database_url, workspace_name="Test Budget")
    db.connect()
    db.initialize_schema()
    yield db
    db.disconnect()


@pytest.fixture
def sql_ledger(sql_db):
    """Create a LedgerService backed by the relational database."""
    service = LedgerService(sql_db)
    service.load()
    return service


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
