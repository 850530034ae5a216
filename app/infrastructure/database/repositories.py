"""
Infrastructure - SQL repositories mapping table rows to domain entities.
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, selectinload

from app.core.logging_config import get_logger
from app.domain.entities import Account, JournalEntry, LedgerLine
from app.domain.exceptions import (
    ConcurrentModificationError,
    EntryNotFoundError,
    LedgerStoreUnavailableError,
)
from app.domain.services import IAccountRepository, IJournalEntryRepository
from app.domain.value_objects import EntryStatus, Period
from app.infrastructure.database import models

logger = get_logger("infrastructure.repositories")


class _SqlRepository:

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _store(self, operation: str) -> Iterator[None]:
        """Translate driver outages into LedgerStoreUnavailableError and key clashes into ValueError."""
        try:
            yield
        except OperationalError as exc:
            self.db.rollback()
            logger.error(
                "ledger_store_unavailable",
                extra={"operation": operation},
                exc_info=True,
            )
            raise LedgerStoreUnavailableError(operation, str(exc.orig)) from exc
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("ledger_store_conflict", extra={"operation": operation})
            raise ValueError(f"{operation} conflicts with an existing record") from exc


def account_to_domain(row: models.Account) -> Account:
    return Account(
        id=row.id,
        code=row.code,
        name=row.name,
        account_type=row.account_type,
        category=row.category,
        parent_id=row.parent_id,
        is_active=row.is_active,
        allows_reduction=row.allows_reduction,
        description=row.description,
        metadata=json.loads(row.metadata_json or "{}"),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def entry_to_domain(row: models.JournalEntry) -> JournalEntry:
    return JournalEntry(
        id=row.id,
        date=row.entry_date,
        reference=row.reference,
        description=row.description,
        created_by=row.created_by,
        status=row.status,
        lines=[
            LedgerLine(
                id=line.id,
                journal_entry_id=row.id,
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                currency=line.currency,
                description=line.description,
            )
            for line in row.lines
        ],
        metadata=json.loads(row.metadata_json or "{}"),
        posted_at=row.posted_at,
        voided_at=row.voided_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
    )


class SqlAccountRepository(_SqlRepository, IAccountRepository):

    def list_accounts(self) -> list[Account]:
        with self._store("list_accounts"):
            rows = self.db.query(models.Account).order_by(models.Account.code).all()
        return [account_to_domain(r) for r in rows]

    def get_by_id(self, account_id: str) -> Account | None:
        with self._store("get_account"):
            row = self.db.get(models.Account, account_id)
        return account_to_domain(row) if row else None

    def get_by_code(self, code: str) -> Account | None:
        with self._store("get_account_by_code"):
            row = self.db.query(models.Account).filter(models.Account.code == code).first()
        return account_to_domain(row) if row else None

    def save(self, account: Account) -> Account:
        with self._store("save_account"):
            row = self.db.get(models.Account, account.id)
            if row is None:
                row = models.Account(id=account.id, created_at=account.created_at)
                self.db.add(row)
            row.code = account.code
            row.name = account.name
            row.account_type = account.account_type.value
            row.category = account.category.value
            row.parent_id = account.parent_id
            row.is_active = account.is_active
            row.allows_reduction = account.allows_reduction
            row.description = account.description
            row.metadata_json = json.dumps(dict(account.metadata))
            row.updated_at = account.updated_at
            self.db.commit()
            self.db.refresh(row)
        return account_to_domain(row)


class SqlJournalEntryRepository(_SqlRepository, IJournalEntryRepository):

    def _query(self):
        return self.db.query(models.JournalEntry).options(selectinload(models.JournalEntry.lines))

    def get_by_id(self, entry_id: str) -> JournalEntry | None:
        with self._store("get_entry"):
            row = self._query().filter(models.JournalEntry.id == entry_id).first()
            entry = entry_to_domain(row) if row else None
        return entry

    def list_entries(
        self,
        period: Period | None = None,
        status: EntryStatus | None = None,
    ) -> list[JournalEntry]:
        with self._store("list_entries"):
            query = self._query()
            if period is not None:
                query = query.filter(
                    models.JournalEntry.entry_date >= period.start,
                    models.JournalEntry.entry_date <= period.end,
                )
            if status is not None:
                query = query.filter(models.JournalEntry.status == status.value)
            rows = query.order_by(
                models.JournalEntry.entry_date, models.JournalEntry.created_at
            ).all()
            entries = [entry_to_domain(r) for r in rows]
        return entries

    def save(self, entry: JournalEntry, expected_version: int | None = None) -> JournalEntry:
        with self._store("save_entry"):
            if expected_version is None:
                self._insert(entry)
            else:
                self._update_status(entry, expected_version)
            self.db.commit()
        saved = self.get_by_id(entry.id)
        if saved is None:
            raise EntryNotFoundError(entry.id)
        return saved

    def _insert(self, entry: JournalEntry) -> None:
        row = models.JournalEntry(
            id=entry.id,
            entry_date=entry.date,
            reference=entry.reference,
            description=entry.description,
            created_by=entry.created_by,
            status=entry.status.value,
            metadata_json=json.dumps(dict(entry.metadata)),
            posted_at=entry.posted_at,
            voided_at=entry.voided_at,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            version=entry.version,
        )
        row.lines = [
            models.JournalEntryLine(
                id=line.id,
                journal_entry_id=entry.id,
                account_id=line.account_id,
                line_number=index,
                debit=line.debit,
                credit=line.credit,
                currency=line.currency,
                description=line.description,
            )
            for index, line in enumerate(entry.lines, start=1)
        ]
        self.db.add(row)

    def _update_status(self, entry: JournalEntry, expected_version: int) -> None:
        """Compare-and-set on ``version``; lines never change after drafting."""
        result = self.db.execute(
            update(models.JournalEntry)
            .where(
                models.JournalEntry.id == entry.id,
                models.JournalEntry.version == expected_version,
            )
            .values(
                status=entry.status.value,
                posted_at=entry.posted_at,
                voided_at=entry.voided_at,
                updated_at=entry.updated_at,
                version=entry.version,
            )
        )
        if result.rowcount == 0:
            self.db.rollback()
            current = self.db.get(models.JournalEntry, entry.id)
            if current is None:
                raise EntryNotFoundError(entry.id)
            logger.warning(
                "entry_version_conflict",
                extra={"entry_id": entry.id, "expected": expected_version, "actual": current.version},
            )
            raise ConcurrentModificationError(entry.id, expected_version, current.version)
