"""Tests for the local JSON state file."""

import os
from datetime import date
from decimal import Decimal

import pytest

from budgetkit.database.json_store import JSONFileDatabase
from budgetkit.domain.entities import Income, Store
from budgetkit.domain.errors import PersistenceError


def test_missing_file_loads_as_none(local_db):
    assert local_db.load_state() is None


def test_empty_file_loads_as_none(local_db, state_path):
    state_path.write_text("")
    assert local_db.load_state() is None


def test_save_and_load(local_db, state_path):
    store = Store(incomes=[Income("i", date(2024, 1, 1), "Salary", Decimal("99.99"), "a")])

    local_db.save_state(store)

    assert state_path.exists()
    assert local_db.load_state() == store


def test_save_leaves_no_temporary_files(local_db, state_path):
    local_db.save_state(Store())
    local_db.save_state(Store())
    assert os.listdir(state_path.parent) == [state_path.name]


def test_corrupt_file_raises_instead_of_resetting(local_db, state_path):
    state_path.write_text("{broken")

    with pytest.raises(PersistenceError):
        local_db.load_state()

    assert state_path.read_text() == "{broken"


def test_unwritable_location_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    db = JSONFileDatabase(str(blocker / "state.json"))

    with pytest.raises(PersistenceError):
        db.save_state(Store())


def test_recurrence_without_start_loads(local_db, state_path):
    state_path.write_text(
        '{"expenses": [{"id": "e", "date": "2024-01-05", "category": "Rent", "amount": 100,'
        ' "accountId": "a", "recurrence": {"enabled": true, "period": "quarterly"}}]}'
    )

    store = local_db.load_state()

    assert store.expenses[0].recurrence.start == date(2024, 1, 5)
