"""
Bank reconciliation - matches a bank statement against book transactions.

Matching policy is greedy and first-seen: book transactions are visited in
ledger order and each takes the first unmatched bank line with the same
calendar date and an amount within tolerance. It does not search for the
closest amount.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from app.core.logging_config import get_logger

from .balances import posted_in
from .entities import JournalEntry
from .value_objects import BALANCE_TOLERANCE, ZERO, BankStatementLine, Period

logger = get_logger("domain.reconciliation")


class DifferenceType(str, Enum):
    MISSING = "missing"  # in the books, not on the statement
    EXTRA = "extra"      # on the statement, not in the books


@dataclass(frozen=True, slots=True)
class BookTransaction:
    date: date
    amount: Decimal  # debit - credit
    reference: str
    entry_id: str


@dataclass(frozen=True, slots=True)
class ReconciliationDifference:
    date: date
    amount: Decimal
    reference: str
    type: DifferenceType


@dataclass(frozen=True, slots=True)
class ReconciliationSummary:
    book_balance: Decimal
    bank_balance: Decimal
    difference: Decimal
    matched_count: int = 0
    total_deposits: Decimal = ZERO
    total_withdrawals: Decimal = ZERO
    outstanding_deposits: Decimal = ZERO
    outstanding_withdrawals: Decimal = ZERO


@dataclass(frozen=True)
class ReconciliationResult:
    account_id: str
    period: Period
    is_reconciled: bool
    differences: tuple[ReconciliationDifference, ...]
    summary: ReconciliationSummary


class ReconciliationEngine:
    """
    Service - Bank reconciliation for one account and window.
    An unreconcilable period is a normal result, never an exception.
    """

    def __init__(self, entries: Iterable[JournalEntry], tolerance: Decimal = BALANCE_TOLERANCE):
        self.entries: tuple[JournalEntry, ...] = tuple(entries)
        self.tolerance = tolerance

    def book_transactions(self, account_id: str, period: Period) -> list[BookTransaction]:
        transactions = []
        for entry in posted_in(self.entries, period):
            for line in entry.lines:
                if line.account_id == account_id:
                    transactions.append(BookTransaction(
                        date=entry.date,
                        amount=line.debit - line.credit,
                        reference=entry.reference,
                        entry_id=entry.id,
                    ))
        return transactions

    def reconcile(
        self,
        account_id: str,
        period: Period,
        bank_lines: Sequence[BankStatementLine],
    ) -> ReconciliationResult:
        book = self.book_transactions(account_id, period)
        matched = [False] * len(bank_lines)
        differences: list[ReconciliationDifference] = []

        for tx in book:
            match_index = None
            for index, bank_line in enumerate(bank_lines):
                if matched[index]:
                    continue
                if bank_line.date == tx.date and abs(bank_line.amount - tx.amount) < self.tolerance:
                    match_index = index
                    break
            if match_index is None:
                differences.append(ReconciliationDifference(
                    date=tx.date, amount=tx.amount, reference=tx.reference,
                    type=DifferenceType.MISSING,
                ))
            else:
                matched[match_index] = True

        for index, bank_line in enumerate(bank_lines):
            if not matched[index]:
                differences.append(ReconciliationDifference(
                    date=bank_line.date, amount=bank_line.amount, reference=bank_line.reference,
                    type=DifferenceType.EXTRA,
                ))

        summary = self._summarize(book, bank_lines, matched)
        result = ReconciliationResult(
            account_id=account_id,
            period=period,
            is_reconciled=not differences and abs(summary.difference) < self.tolerance,
            differences=tuple(differences),
            summary=summary,
        )
        logger.info(
            "reconciliation_completed",
            extra={
                "account_id": account_id,
                "is_reconciled": result.is_reconciled,
                "difference_count": len(differences),
                "matched_count": summary.matched_count,
            },
        )
        return result

    @staticmethod
    def _summarize(
        book: list[BookTransaction],
        bank_lines: Sequence[BankStatementLine],
        matched: list[bool],
    ) -> ReconciliationSummary:
        book_balance = sum((tx.amount for tx in book), ZERO)
        bank_balance = sum((line.amount for line in bank_lines), ZERO)
        deposits = [line for line in bank_lines if line.amount > 0]
        withdrawals = [line for line in bank_lines if line.amount < 0]
        unmatched = [line for line, ok in zip(bank_lines, matched) if not ok]
        return ReconciliationSummary(
            book_balance=book_balance,
            bank_balance=bank_balance,
            difference=book_balance - bank_balance,
            matched_count=sum(matched),
            total_deposits=sum((line.amount for line in deposits), ZERO),
            total_withdrawals=ZERO - sum((line.amount for line in withdrawals), ZERO),
            outstanding_deposits=sum((line.amount for line in unmatched if line.amount > 0), ZERO),
            outstanding_withdrawals=ZERO - sum((line.amount for line in unmatched if line.amount < 0), ZERO),
        )
