"""
Pytest configuration and fixtures.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from app.domain.entities import Account, JournalEntry, LedgerLine
from app.domain.exceptions import ConcurrentModificationError
from app.domain.services import IAccountRepository, IJournalEntryRepository
from app.domain.value_objects import AccountCategory, AccountType, EntryStatus, Period

Q1_2024 = Period(date(2024, 1, 1), date(2024, 3, 31))


def D(value) -> Decimal:
    return Decimal(str(value))


def make_account(code, name, account_type, category, **kwargs) -> Account:
    return Account(
        id=f"acc-{code}",
        code=code,
        name=name,
        account_type=account_type,
        category=category,
        **kwargs,
    )


def make_entry(day, reference, *lines, status=EntryStatus.POSTED, description=None) -> JournalEntry:
    """``lines`` are (account, debit, credit) tuples."""
    return JournalEntry(
        date=day,
        reference=reference,
        description=description or reference,
        created_by="test",
        status=status,
        lines=[
            LedgerLine(account_id=account.id, debit=D(debit), credit=D(credit))
            for account, debit, credit in lines
        ],
    )


@pytest.fixture
def chart() -> dict[str, Account]:
    """Small trading company chart of accounts."""
    A, L, E, R, X = (
        AccountType.ASSET,
        AccountType.LIABILITY,
        AccountType.EQUITY,
        AccountType.REVENUE,
        AccountType.EXPENSE,
    )
    C = AccountCategory
    return {
        "cash": make_account("1000", "Cash", A, C.CASH, allows_reduction=True),
        "receivables": make_account("1100", "Accounts Receivable", A, C.ACCOUNTS_RECEIVABLE, allows_reduction=True),
        "inventory": make_account("1200", "Inventory", A, C.INVENTORY, allows_reduction=True),
        "equipment": make_account("1500", "Equipment", A, C.EQUIPMENT),
        "accumulated_depreciation": make_account(
            "1590", "Accumulated Depreciation", A, C.ACCUMULATED_DEPRECIATION, allows_reduction=True
        ),
        "payables": make_account("2000", "Accounts Payable", L, C.ACCOUNTS_PAYABLE, allows_reduction=True),
        "loan": make_account("2500", "Bank Loan", L, C.LONG_TERM_LOANS),
        "stock": make_account("3000", "Common Stock", E, C.COMMON_STOCK),
        "retained": make_account("3100", "Retained Earnings", E, C.RETAINED_EARNINGS),
        "dividends": make_account("3200", "Dividends", E, C.DIVIDENDS),
        "sales": make_account("4000", "Sales", R, C.SALES),
        "services": make_account("4100", "Service Revenue", R, C.SERVICES),
        "cogs": make_account("5000", "Cost of Goods Sold", X, C.COST_OF_GOODS_SOLD),
        "salaries": make_account("6000", "Salaries", X, C.SALARIES),
        "rent": make_account("6100", "Rent", X, C.RENT),
        "depreciation": make_account("6200", "Depreciation", X, C.DEPRECIATION),
        "interest": make_account("7000", "Interest Expense", X, C.INTEREST_EXPENSE),
    }


@pytest.fixture
def accounts(chart) -> list[Account]:
    return list(chart.values())


@pytest.fixture
def q1_entries(chart) -> list[JournalEntry]:
    """
    First quarter of 2024. Cash ends at 11100, net income is 2900.
    Includes one void and one draft entry that must never count.
    """
    c = chart
    return [
        make_entry(date(2024, 1, 1), "CAP-1", (c["cash"], 10000, 0), (c["stock"], 0, 10000)),
        make_entry(date(2024, 1, 5), "LOAN-1", (c["cash"], 5000, 0), (c["loan"], 0, 5000)),
        make_entry(date(2024, 1, 10), "EQ-1", (c["equipment"], 6000, 0), (c["cash"], 0, 6000)),
        make_entry(date(2024, 1, 15), "INV-1", (c["inventory"], 3000, 0), (c["payables"], 0, 3000)),
        make_entry(
            date(2024, 2, 1), "SALE-1",
            (c["cash"], 4000, 0), (c["receivables"], 2000, 0), (c["sales"], 0, 6000),
            (c["cogs"], 2000, 0), (c["inventory"], 0, 2000),
        ),
        make_entry(date(2024, 2, 10), "SRV-1", (c["cash"], 1500, 0), (c["services"], 0, 1500)),
        make_entry(
            date(2024, 2, 15), "VOID-1", (c["cash"], 999, 0), (c["sales"], 0, 999),
            status=EntryStatus.VOID,
        ),
        make_entry(
            date(2024, 2, 20), "DRAFT-1", (c["cash"], 50, 0), (c["sales"], 0, 50),
            status=EntryStatus.DRAFT,
        ),
        make_entry(
            date(2024, 2, 28), "PAY-1",
            (c["salaries"], 1200, 0), (c["rent"], 800, 0), (c["cash"], 0, 2000),
        ),
        make_entry(date(2024, 3, 1), "AP-1", (c["payables"], 1000, 0), (c["cash"], 0, 1000)),
        make_entry(
            date(2024, 3, 31), "DEP-1",
            (c["depreciation"], 500, 0), (c["accumulated_depreciation"], 0, 500),
        ),
        make_entry(date(2024, 3, 31), "INT-1", (c["interest"], 100, 0), (c["cash"], 0, 100)),
        make_entry(date(2024, 3, 31), "DIV-1", (c["dividends"], 300, 0), (c["cash"], 0, 300)),
    ]


class InMemoryAccountRepository(IAccountRepository):

    def __init__(self, accounts=()):
        self.accounts = {a.id: a for a in accounts}

    def list_accounts(self):
        return sorted(self.accounts.values(), key=lambda a: a.code)

    def get_by_id(self, account_id):
        return self.accounts.get(account_id)

    def get_by_code(self, code):
        return next((a for a in self.accounts.values() if a.code == code), None)

    def save(self, account):
        self.accounts[account.id] = account
        return account


class InMemoryJournalEntryRepository(IJournalEntryRepository):

    def __init__(self, entries=()):
        self.entries = {e.id: e for e in entries}

    def get_by_id(self, entry_id):
        return self.entries.get(entry_id)

    def save(self, entry, expected_version=None):
        if expected_version is not None:
            current = self.entries[entry.id]
            if current.version != expected_version:
                raise ConcurrentModificationError(entry.id, expected_version, current.version)
        self.entries[entry.id] = replace(entry)
        return self.entries[entry.id]

    def list_entries(self, period=None, status=None):
        return [
            e for e in sorted(self.entries.values(), key=lambda e: e.date)
            if (period is None or period.contains(e.date))
            and (status is None or e.status == status)
        ]


@pytest.fixture
def account_repo(accounts) -> InMemoryAccountRepository:
    return InMemoryAccountRepository(accounts)


@pytest.fixture
def journal_repo(q1_entries) -> InMemoryJournalEntryRepository:
    return InMemoryJournalEntryRepository(q1_entries)
