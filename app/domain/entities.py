"""
Domain Entities - Accounts and journal entries of the double-entry ledger.
Posted entries are immutable: lifecycle changes return new instances.
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from types import MappingProxyType

from .value_objects import (
    BALANCE_TOLERANCE,
    CATEGORY_TYPES,
    ZERO,
    AccountCategory,
    AccountType,
    EntryStatus,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _frozen_metadata(metadata: Mapping | None) -> Mapping:
    return MappingProxyType(dict(metadata or {}))


@dataclass
class Account:
    """
    Entity - Ledger account.
    ``account_type`` fixes the normal balance side; ``category`` must belong to it.
    """
    code: str
    name: str
    account_type: AccountType
    category: AccountCategory
    id: str = field(default_factory=_new_id)
    parent_id: str | None = None
    is_active: bool = True
    allows_reduction: bool = False
    description: str | None = None
    metadata: Mapping = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.account_type = AccountType(self.account_type)
        self.category = AccountCategory(self.category)
        if CATEGORY_TYPES[self.category] != self.account_type:
            raise ValueError(
                f"Category {self.category.value} does not belong to "
                f"account type {self.account_type.value}"
            )
        if self.parent_id == self.id:
            raise ValueError(f"Account {self.code} cannot be its own parent")
        self.metadata = _frozen_metadata(self.metadata)


@dataclass(frozen=True)
class LedgerLine:
    """One debit or credit line, owned by its journal entry."""
    account_id: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    currency: str = "USD"
    description: str | None = None
    id: str = field(default_factory=_new_id)
    journal_entry_id: str | None = None

    def __post_init__(self) -> None:
        if self.debit < 0 or self.credit < 0:
            raise ValueError("Debit and credit amounts must be non-negative")


@dataclass
class JournalEntry:
    """
    Entity - Journal entry.
    Double-entry: total debits equal total credits once posted.
    """
    date: date
    reference: str
    description: str
    created_by: str
    lines: list[LedgerLine] = field(default_factory=list)
    status: EntryStatus = EntryStatus.DRAFT
    id: str = field(default_factory=_new_id)
    metadata: Mapping = field(default_factory=dict)
    posted_at: datetime | None = None
    voided_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    version: int = 1

    def __post_init__(self) -> None:
        self.status = EntryStatus(self.status)
        self.lines = [
            line if line.journal_entry_id == self.id
            else replace(line, journal_entry_id=self.id)
            for line in self.lines
        ]
        self.metadata = _frozen_metadata(self.metadata)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_posted(self) -> bool:
        return self.status == EntryStatus.POSTED

    def is_balanced(self, tolerance: Decimal = BALANCE_TOLERANCE) -> bool:
        return abs(self.total_debit - self.total_credit) <= tolerance

    def touches(self, account_id: str) -> bool:
        return any(line.account_id == account_id for line in self.lines)

    def post(self, tolerance: Decimal = BALANCE_TOLERANCE) -> "JournalEntry":
        if self.status != EntryStatus.DRAFT:
            raise ValueError(f"Only draft entries can be posted (entry is {self.status.value})")
        if not self.is_balanced(tolerance):
            raise ValueError("Unbalanced entry: total debits != total credits")
        now = _utcnow()
        return replace(
            self,
            status=EntryStatus.POSTED,
            posted_at=now,
            updated_at=now,
            version=self.version + 1,
        )

    def void(self) -> "JournalEntry":
        """Mark a posted entry void; lines are left untouched."""
        if self.status != EntryStatus.POSTED:
            raise ValueError(f"Only posted entries can be voided (entry is {self.status.value})")
        now = _utcnow()
        return replace(
            self,
            status=EntryStatus.VOID,
            voided_at=now,
            updated_at=now,
            version=self.version + 1,
        )
