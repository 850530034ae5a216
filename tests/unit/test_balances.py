"""
Unit tests - Balance calculation and the balance cache.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

from app.domain.balances import AccountSelector, BalanceCache, BalanceCalculator, posted_in
from app.domain.catalog import AccountCatalog
from app.domain.entities import Account
from app.domain.value_objects import AccountCategory, AccountType, Period
from conftest import Q1_2024, make_entry


class TestBalanceCalculator:

    def test_cash_balance_excludes_draft_and_void(self, chart, accounts, q1_entries):
        calculator = BalanceCalculator(accounts)
        assert calculator.compute_balance(chart["cash"].id, q1_entries, Q1_2024) == Decimal("11100")

    def test_posted_in_filters_status_and_window(self, q1_entries):
        january = Period(date(2024, 1, 1), date(2024, 1, 31))
        assert [e.reference for e in posted_in(q1_entries, january)] == ["CAP-1", "LOAN-1", "EQ-1", "INV-1"]

    def test_credit_normal_accounts_are_positive(self, chart, accounts, q1_entries):
        calculator = BalanceCalculator(accounts)
        assert calculator.compute_balance(chart["payables"].id, q1_entries, Q1_2024) == Decimal("2000")
        assert calculator.compute_balance(chart["sales"].id, q1_entries, Q1_2024) == Decimal("6000")

    def test_selector_by_type(self, accounts, q1_entries):
        calculator = BalanceCalculator(accounts)
        revenue = calculator.compute_balance(AccountSelector.by_type(AccountType.REVENUE), q1_entries, Q1_2024)
        assert revenue == Decimal("7500")

    def test_selector_by_category(self, accounts, q1_entries):
        calculator = BalanceCalculator(accounts)
        selector = AccountSelector.by_category(AccountCategory.SALARIES, AccountCategory.RENT)
        assert calculator.compute_balance(selector, q1_entries, Q1_2024) == Decimal("2000")

    def test_balance_at_and_before(self, chart, accounts, q1_entries):
        calculator = BalanceCalculator(accounts)
        cash = chart["cash"].id
        assert calculator.balance_at(cash, q1_entries, date(2024, 1, 10)) == Decimal("9000")
        assert calculator.balance_before(cash, q1_entries, date(2024, 1, 10)) == Decimal("15000")
        assert calculator.balance_before(cash, q1_entries, date.min) == Decimal("0")

    def test_account_balance_opening_and_closing(self, chart, accounts, q1_entries):
        calculator = BalanceCalculator(accounts)
        february = Period(date(2024, 2, 1), date(2024, 2, 29))
        balance = calculator.account_balance(chart["cash"].id, q1_entries, february)
        assert balance.opening == Decimal("9000")
        assert balance.total_debits == Decimal("5500")
        assert balance.total_credits == Decimal("2000")
        assert balance.closing == Decimal("12500")

    def test_unknown_account_lines_are_skipped(self, chart, accounts):
        entry = make_entry(date(2024, 1, 1), "X", (chart["cash"], 100, 0), (chart["sales"], 0, 100))
        calculator = BalanceCalculator([a for a in accounts if a.id != chart["sales"].id])
        revenue = calculator.compute_balance(
            AccountSelector.by_type(AccountType.REVENUE), [entry], Q1_2024
        )
        assert revenue == Decimal("0")

    def test_subtree_rolls_up_children(self):
        parent = Account(id="p", code="1000", name="Cash", account_type="asset", category="cash")
        child = Account(id="c", parent_id="p", code="1010", name="Petty Cash", account_type="asset", category="cash")
        catalog = AccountCatalog([parent, child])
        entry = make_entry(date(2024, 1, 1), "X", (child, 40, 0), (parent, 60, 0))
        calculator = BalanceCalculator(catalog)
        assert calculator.compute_balance(AccountSelector.subtree(catalog, "p"), [entry], Q1_2024) == Decimal("100")
        assert calculator.compute_balance("p", [entry], Q1_2024) == Decimal("60")


class TestBalanceCache:

    def test_memoises_by_account_and_period(self):
        cache = BalanceCache()
        calls = []

        def compute():
            calls.append(1)
            return Decimal("5")

        assert cache.get_or_compute("a", Q1_2024, compute) == Decimal("5")
        assert cache.get_or_compute("a", Q1_2024, compute) == Decimal("5")
        assert len(calls) == 1
        assert len(cache) == 1

    def test_invalidate_entry_drops_only_touched_keys(self, chart):
        cache = BalanceCache()
        january = Period(date(2024, 1, 1), date(2024, 1, 31))
        february = Period(date(2024, 2, 1), date(2024, 2, 29))
        cash, sales, rent = chart["cash"].id, chart["sales"].id, chart["rent"].id
        for key in [(cash, january), (cash, february), (sales, january), (rent, january)]:
            cache.get_or_compute(*key, lambda: Decimal("1"))

        entry = make_entry(date(2024, 1, 20), "S", (chart["cash"], 10, 0), (chart["sales"], 0, 10))
        assert cache.invalidate_entry(entry) == 2
        assert (cash, january) not in cache
        assert (sales, january) not in cache
        assert (cash, february) in cache
        assert (rent, january) in cache

    def test_value_computed_across_invalidation_is_not_stored(self, chart):
        cache = BalanceCache()
        entry = make_entry(date(2024, 1, 20), "S", (chart["cash"], 10, 0), (chart["sales"], 0, 10))

        def compute():
            cache.invalidate_entry(entry)
            return Decimal("1")

        assert cache.get_or_compute(chart["cash"].id, Q1_2024, compute) == Decimal("1")
        assert len(cache) == 0

    def test_clear(self):
        cache = BalanceCache()
        cache.get_or_compute("a", Q1_2024, lambda: Decimal("1"))
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_get_or_compute(self, chart, accounts, q1_entries):
        cache = BalanceCache()
        calculator = BalanceCalculator(accounts, cache=cache)
        months = [
            Period(date(2024, 1, 1), date(2024, 1, 31)),
            Period(date(2024, 2, 1), date(2024, 2, 29)),
            Period(date(2024, 3, 1), date(2024, 3, 31)),
        ]
        jobs = [(account.id, period) for account in accounts for period in months] * 4

        def cached(job):
            return calculator.cached_balance(job[0], q1_entries, job[1])

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(cached, jobs))

        expected = [calculator.compute_balance(account_id, q1_entries, period) for account_id, period in jobs]
        assert results == expected
        assert len(cache) == len(accounts) * len(months)
