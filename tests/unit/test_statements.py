"""
Unit tests - Financial statements.
Accounting equation, cash flow reconciliation, idempotence and window isolation.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest

from app.domain.statements import StatementGenerator
from app.domain.value_objects import Period
from conftest import Q1_2024, make_entry


@pytest.fixture
def generator(accounts, q1_entries) -> StatementGenerator:
    return StatementGenerator(accounts, q1_entries)


class TestBalanceSheet:

    def test_accounting_equation(self, generator):
        sheet = generator.generate_balance_sheet(Q1_2024)
        assert sheet.total_assets == Decimal("19600")
        assert sheet.total_liabilities == Decimal("7000")
        assert sheet.total_equity == Decimal("12600")
        assert sheet.is_balanced
        assert sheet.difference == Decimal("0")

    def test_buckets(self, generator):
        sheet = generator.generate_balance_sheet(Q1_2024)
        assert sheet.assets.current.cash == Decimal("11100")
        assert sheet.assets.current.inventory == Decimal("1000")
        assert sheet.total_current_assets == Decimal("14100")
        assert sheet.assets.fixed.accumulated_depreciation == Decimal("-500")
        assert sheet.assets.fixed.total == Decimal("5500")
        assert sheet.total_current_liabilities == Decimal("2000")
        assert sheet.equity.dividends == Decimal("-300")
        assert sheet.equity.current_earnings == Decimal("2900")

    def test_equation_holds_for_every_month(self, generator):
        for month in (1, 2, 3):
            start = date(2024, month, 1)
            end = date(2024, month + 1, 1) if month < 3 else date(2024, 4, 1)
            period = Period(start, date.fromordinal(end.toordinal() - 1))
            assert generator.generate_balance_sheet(period).is_balanced

    def test_point_in_time_view(self, generator):
        sheet = generator.generate_balance_sheet(Period.as_of(date(2024, 1, 31)))
        assert sheet.assets.current.cash == Decimal("9000")
        assert sheet.is_balanced


class TestIncomeStatement:

    def test_q1_figures(self, generator):
        statement = generator.generate_income_statement(Q1_2024)
        assert statement.total_revenue == Decimal("7500")
        assert statement.cost_of_goods_sold == Decimal("2000")
        assert statement.gross_profit == Decimal("5500")
        assert statement.operating_expenses.total == Decimal("2500")
        assert statement.operating_income == Decimal("3000")
        assert statement.interest_expense == Decimal("100")
        assert statement.other_expenses == Decimal("100")
        assert statement.net_income == Decimal("2900")

    def test_idempotent(self, generator):
        assert generator.generate_income_statement(Q1_2024) == generator.generate_income_statement(Q1_2024)

    def test_window_isolation(self, chart, accounts, q1_entries):
        february = Period(date(2024, 2, 1), date(2024, 2, 29))
        before = StatementGenerator(accounts, q1_entries).generate_income_statement(february)
        later = make_entry(date(2024, 4, 2), "SALE-2", (chart["cash"], 900, 0), (chart["sales"], 0, 900))
        earlier = make_entry(date(2024, 1, 2), "SALE-0", (chart["cash"], 400, 0), (chart["sales"], 0, 400))
        after = StatementGenerator(accounts, [*q1_entries, later, earlier]).generate_income_statement(february)
        assert before == after
        assert after.revenue.sales == Decimal("6000")

    def test_void_entry_does_not_count(self, chart, accounts, q1_entries):
        statement = StatementGenerator(accounts, q1_entries).generate_income_statement(Q1_2024)
        # VOID-1 (999) and DRAFT-1 (50) are both sales entries.
        assert statement.revenue.sales == Decimal("6000")


class TestCashFlowStatement:

    def test_reconciles_to_cash_movement(self, generator):
        statement = generator.generate_cash_flow_statement(Q1_2024)
        assert statement.beginning_cash == Decimal("0")
        assert statement.ending_cash == Decimal("11100")
        assert statement.net_change_in_cash == Decimal("11100")
        assert statement.is_reconciled

    def test_sections(self, generator):
        statement = generator.generate_cash_flow_statement(Q1_2024)
        assert statement.operating.adjustments.depreciation == Decimal("500")
        assert statement.operating.adjustments.accounts_receivable == Decimal("-2000")
        assert statement.operating.net_cash_from_operations == Decimal("2400")
        assert statement.investing.net_cash_from_investing == Decimal("-6000")
        assert statement.financing.capital_contributions == Decimal("10000")
        assert statement.financing.dividends == Decimal("-300")
        assert statement.financing.net_cash_from_financing == Decimal("14700")

    def test_beginning_cash_carries_prior_activity(self, generator):
        march = Period(date(2024, 3, 1), date(2024, 3, 31))
        statement = generator.generate_cash_flow_statement(march)
        assert statement.beginning_cash == Decimal("12500")
        assert statement.ending_cash == Decimal("11100")
        assert statement.is_reconciled


class TestTrialBalance:

    def test_balanced(self, generator):
        trial = generator.generate_trial_balance(Q1_2024)
        assert trial.total_debits == Decimal("37400")
        assert trial.total_credits == Decimal("37400")
        assert trial.is_balanced

    def test_rows_sorted_by_code(self, generator):
        trial = generator.generate_trial_balance(Q1_2024)
        codes = [row.code for row in trial.rows]
        assert codes == sorted(codes)
        assert "3100" not in codes  # retained earnings had no activity

    def test_row_balance_uses_normal_side(self, chart, generator):
        trial = generator.generate_trial_balance(Q1_2024)
        row = next(r for r in trial.rows if r.account_id == chart["payables"].id)
        assert (row.total_debits, row.total_credits, row.balance) == (
            Decimal("1000"), Decimal("3000"), Decimal("2000")
        )


class TestConcurrentGeneration:

    def test_parallel_statements_match_sequential(self, generator):
        def triple(_):
            return (
                generator.generate_balance_sheet(Q1_2024),
                generator.generate_income_statement(Q1_2024),
                generator.generate_cash_flow_statement(Q1_2024),
            )

        expected = triple(None)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(triple, range(32)))
        assert all(result == expected for result in results)
