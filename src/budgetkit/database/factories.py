"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from budgetkit.database.base import Database
from budgetkit.database.json_store import JSONFileDatabase
from budgetkit.database.sqlalchemy_db import DEFAULT_WORKSPACE, SQLAlchemyDatabase
from budgetkit.domain.errors import ValidationError, invalid_choice

BACKENDS = ("local", "sql")


def _default_dir() -> Path:
    return Path.home() / ".budgetkit"


def create_local_database(state_path: Optional[str] = None) -> JSONFileDatabase:
    """Create a local JSON state file database.

    Args:
        state_path: Path to the state file. If None, checks BUDGETKIT_STATE_PATH
            environment variable, then defaults to ~/.budgetkit/state.json

    Returns:
        JSONFileDatabase instance
    """
    if state_path is None:
        state_path = os.environ.get("BUDGETKIT_STATE_PATH")

    if state_path is None:
        state_path = str(_default_dir() / "state.json")

    return JSONFileDatabase(str(Path(state_path).expanduser()))


def create_sql_database(
    database_url: Optional[str] = None, workspace: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create a relational database instance.

    Args:
        database_url: SQLAlchemy URL. If None, checks BUDGETKIT_DATABASE_URL
            environment variable, then defaults to SQLite at ~/.budgetkit/budget.db
        workspace: Workspace name. If None, checks BUDGETKIT_WORKSPACE, then
            defaults to "My Budget"

    Returns:
        SQLAlchemyDatabase instance
    """
    if database_url is None:
        database_url = os.environ.get("BUDGETKIT_DATABASE_URL")

    if database_url is None:
        db_dir = _default_dir()
        db_dir.mkdir(exist_ok=True)
        database_url = f"sqlite:///{db_dir / 'budget.db'}"

    if workspace is None:
        workspace = os.environ.get("BUDGETKIT_WORKSPACE", DEFAULT_WORKSPACE)

    return SQLAlchemyDatabase(database_url, workspace_name=workspace)


def create_database(
    backend: Optional[str] = None,
    state_path: Optional[str] = None,
    database_url: Optional[str] = None,
    workspace: Optional[str] = None,
) -> Database:
    """Create the database selected by ``backend`` (or BUDGETKIT_BACKEND).

    Raises:
        ValidationError: If the backend name is unknown
    """
    if backend is None:
        backend = os.environ.get("BUDGETKIT_BACKEND", "local")

    backend = backend.strip().lower()
    if backend == "local":
        return create_local_database(state_path=state_path)
    if backend == "sql":
        return create_sql_database(database_url=database_url, workspace=workspace)
    raise ValidationError(invalid_choice("backend", backend, BACKENDS))
