"""Database layer for budgetkit application."""

from budgetkit.database.base import Database, RecordDatabase
from budgetkit.database.json_store import JSONFileDatabase
from budgetkit.database.sqlalchemy_db import SQLAlchemyDatabase
from budgetkit.database.factories import (
    create_database,
    create_local_database,
    create_sql_database,
)

__all__ = [
    "Database",
    "RecordDatabase",
    "JSONFileDatabase",
    "SQLAlchemyDatabase",
    "create_database",
    "create_local_database",
    "create_sql_database",
]
