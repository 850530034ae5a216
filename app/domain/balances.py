"""
Balance calculation over an immutable snapshot of posted entries.

Balances are always recomputed from entries; nothing is maintained
incrementally. The sign of every line comes from ACCOUNT_TYPE_RULES.
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .catalog import AccountCatalog
from .entities import Account, JournalEntry
from .value_objects import (
    ACCOUNT_TYPE_RULES,
    ZERO,
    AccountCategory,
    AccountType,
    EntryStatus,
    Period,
)


@dataclass(frozen=True)
class AccountSelector:
    """Predicate over accounts with a readable label for logs and cache keys."""
    label: str
    predicate: Callable[[Account], bool]

    def __call__(self, account: Account) -> bool:
        return self.predicate(account)

    @classmethod
    def by_id(cls, account_id: str) -> "AccountSelector":
        return cls(f"id={account_id}", lambda a: a.id == account_id)

    @classmethod
    def by_ids(cls, account_ids: Iterable[str]) -> "AccountSelector":
        ids = frozenset(account_ids)
        return cls(f"ids={sorted(ids)}", lambda a: a.id in ids)

    @classmethod
    def by_type(cls, *types: AccountType) -> "AccountSelector":
        wanted = frozenset(types)
        return cls(f"type={sorted(t.value for t in wanted)}", lambda a: a.account_type in wanted)

    @classmethod
    def by_category(cls, *categories: AccountCategory) -> "AccountSelector":
        wanted = frozenset(categories)
        return cls(f"category={sorted(c.value for c in wanted)}", lambda a: a.category in wanted)

    @classmethod
    def by_code(cls, code: str) -> "AccountSelector":
        return cls(f"code={code}", lambda a: a.code == code)

    @classmethod
    def subtree(cls, catalog: AccountCatalog, root_id: str) -> "AccountSelector":
        """The root account and everything beneath it."""
        ids = {root_id, *(a.id for a in catalog.descendants(root_id))}
        return cls(f"subtree={root_id}", lambda a: a.id in ids)


@dataclass(frozen=True)
class AccountBalance:
    """Value Object - Account balance for a period (normal-side sign)."""
    account_id: str
    period: Period
    opening: Decimal
    total_debits: Decimal
    total_credits: Decimal
    closing: Decimal


def posted_in(entries: Iterable[JournalEntry], period: Period) -> list[JournalEntry]:
    """Posted entries dated inside ``period``; draft and void entries never count."""
    return [e for e in entries if e.status == EntryStatus.POSTED and period.contains(e.date)]


class BalanceCalculator:
    """
    Service - Signed balances for one account or an account set.
    """

    def __init__(self, accounts, cache: "BalanceCache | None" = None):
        self.catalog = AccountCatalog.coerce(accounts)
        self.cache = cache

    def _selector(self, selector) -> AccountSelector:
        if isinstance(selector, AccountSelector):
            return selector
        return AccountSelector.by_id(selector)

    def compute_balance(self, selector, entries: Iterable[JournalEntry], period: Period) -> Decimal:
        selector = self._selector(selector)
        total = ZERO
        for entry in posted_in(entries, period):
            for line in entry.lines:
                account = self.catalog.get(line.account_id)
                if account is None or not selector(account):
                    continue
                total += ACCOUNT_TYPE_RULES[account.account_type].signed(line.debit, line.credit)
        return total

    def balance_at(self, selector, entries: Iterable[JournalEntry], day: date) -> Decimal:
        """Point-in-time balance: everything posted up to and including ``day``."""
        return self.compute_balance(selector, entries, Period.as_of(day))

    def balance_before(self, selector, entries: Iterable[JournalEntry], day: date) -> Decimal:
        window = Period.before(day)
        if window is None:
            return ZERO
        return self.compute_balance(selector, entries, window)

    def account_balance(
        self,
        account_id: str,
        entries: Iterable[JournalEntry],
        period: Period,
    ) -> AccountBalance:
        if account_id not in self.catalog:
            raise KeyError(account_id)
        entries = list(entries)
        opening = self.balance_before(account_id, entries, period.start)
        flow = self.cached_balance(account_id, entries, period)

        total_debits = ZERO
        total_credits = ZERO
        for entry in posted_in(entries, period):
            for line in entry.lines:
                if line.account_id == account_id:
                    total_debits += line.debit
                    total_credits += line.credit

        return AccountBalance(
            account_id=account_id,
            period=period,
            opening=opening,
            total_debits=total_debits,
            total_credits=total_credits,
            closing=opening + flow,
        )

    def cached_balance(self, account_id: str, entries: Iterable[JournalEntry], period: Period) -> Decimal:
        """Single-account flow, memoised when a cache is attached."""
        if self.cache is None:
            return self.compute_balance(account_id, entries, period)
        return self.cache.get_or_compute(
            account_id, period, lambda: self.compute_balance(account_id, entries, period)
        )


class BalanceCache:
    """
    (account_id, period) -> balance memo.
    Must be invalidated in the same step that posts or voids an entry.
    """

    def __init__(self):
        self._values: dict[tuple[str, Period], Decimal] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: tuple[str, Period]) -> bool:
        return key in self._values

    def get_or_compute(self, account_id: str, period: Period, compute: Callable[[], Decimal]) -> Decimal:
        key = (account_id, period)
        with self._lock:
            if key in self._values:
                return self._values[key]
            generation = self._generation
        value = compute()
        with self._lock:
            # An invalidation ran while computing: the snapshot may be stale.
            if generation == self._generation:
                self._values.setdefault(key, value)
        return value

    def invalidate_entry(self, entry: JournalEntry) -> int:
        """Drop every key touched by ``entry``; returns the number removed."""
        touched = {line.account_id for line in entry.lines}
        with self._lock:
            self._generation += 1
            stale = [
                key for key in self._values
                if key[0] in touched and key[1].contains(entry.date)
            ]
            for key in stale:
                del self._values[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._values.clear()
