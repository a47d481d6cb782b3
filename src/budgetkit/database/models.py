"""SQLAlchemy models for the budgetkit relational backend.

Only source records are stored. Incomes and expenses share the signed
``transactions`` table; the journal of account transactions is never
persisted here. Record tables reference accounts by plain id columns so
deleting an account leaves its history in place.
"""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Workspace(Base):
    """Ownership boundary grouping one user's records."""

    __tablename__ = "workspaces"

    id = Column(String, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    currency = Column(String, default="USD", nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True)
    workspace_id = Column(String, ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    currency = Column(String, nullable=False)
    balance = Column(Numeric(12, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Transaction(Base):
    """Signed income (positive) or expense (negative) model."""

    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    workspace_id = Column(String, ForeignKey("workspaces.id"), nullable=False, index=True)
    account_id = Column(String, nullable=False)
    trx_date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    rec_enabled = Column(Boolean, nullable=True)
    rec_period = Column(String, nullable=True)
    rec_start = Column(Date, nullable=True)
    rec_end = Column(Date, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Transfer(Base):
    """Transfer model."""

    __tablename__ = "transfers"

    id = Column(String, primary_key=True)
    workspace_id = Column(String, ForeignKey("workspaces.id"), nullable=False, index=True)
    trx_date = Column(Date, nullable=False)
    from_account_id = Column(String, nullable=False)
    to_account_id = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Investment(Base):
    """Investment model (positive contribution, negative withdrawal)."""

    __tablename__ = "investments"

    id = Column(String, primary_key=True)
    workspace_id = Column(String, ForeignKey("workspaces.id"), nullable=False, index=True)
    account_id = Column(String, nullable=True)
    inv_date = Column(Date, nullable=False)
    instrument = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Project(Base):
    """Savings goal model."""

    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    workspace_id = Column(String, ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    target_amount = Column(Numeric(12, 2), nullable=False)
    target_date = Column(Date, nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    contributions = relationship(
        "ProjectContribution", back_populates="project", cascade="all, delete-orphan"
    )


class ProjectContribution(Base):
    """Savings goal contribution model."""

    __tablename__ = "project_contributions"

    id = Column(String, primary_key=True)
    workspace_id = Column(String, ForeignKey("workspaces.id"), nullable=False, index=True)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="contributions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
