"""
Infrastructure - SQLModel database models.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class Account(SQLModel, table=True):
    """Ledger account (chart of accounts)."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    code: str = Field(unique=True, index=True)
    name: str
    account_type: str = Field(index=True)
    category: str
    parent_id: str | None = Field(default=None, index=True)
    is_active: bool = True
    allows_reduction: bool = False
    description: str | None = None
    metadata_json: str = "{}"  # JSON object of scalar values
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class JournalEntry(SQLModel, table=True):
    """Journal entry header; lines are stored in JournalEntryLine."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    entry_date: date = Field(index=True)
    reference: str = Field(index=True)
    description: str
    created_by: str
    status: str = Field(default="draft", index=True)
    metadata_json: str = "{}"
    posted_at: datetime | None = None
    voided_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    version: int = 1

    lines: list["JournalEntryLine"] = Relationship(
        back_populates="journal_entry",
        sa_relationship_kwargs={
            "order_by": "JournalEntryLine.line_number",
            "cascade": "all, delete-orphan",
        },
    )


class JournalEntryLine(SQLModel, table=True):
    """Debit or credit line of a journal entry."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    journal_entry_id: str = Field(foreign_key="journalentry.id", index=True)
    # No foreign key: drafts may reference unknown accounts until validated.
    account_id: str = Field(index=True)
    line_number: int
    debit: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=4)
    credit: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=4)
    currency: str = "USD"
    description: str | None = None

    journal_entry: "JournalEntry" = Relationship(back_populates="lines")
