"""
Financial statements - balance sheet, income statement, cash flow, trial balance.

Every generator re-derives all totals from leaf balances on each call.
Generators only read the snapshot they were given, so independent statements
may be produced concurrently.
"""

from collections.abc import Iterable
from dataclasses import dataclass, fields
from decimal import Decimal

from app.core.logging_config import get_logger

from .balances import AccountSelector, BalanceCalculator, posted_in
from .catalog import AccountCatalog
from .entities import JournalEntry
from .value_objects import (
    BALANCE_TOLERANCE,
    ZERO,
    AccountCategory,
    AccountType,
    Period,
)

logger = get_logger("domain.statements")

C = AccountCategory


class _Bucket:
    """Mixin: ``total`` sums every Decimal field of the dataclass."""

    @property
    def total(self) -> Decimal:
        return sum((getattr(self, f.name) for f in fields(self)), ZERO)


# --------------------------------------------------------------------------
# Balance sheet
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class CurrentAssets(_Bucket):
    cash: Decimal
    accounts_receivable: Decimal
    inventory: Decimal
    prepaid_expenses: Decimal
    other_current_assets: Decimal


@dataclass(frozen=True)
class FixedAssets(_Bucket):
    land_and_buildings: Decimal
    equipment: Decimal
    vehicles: Decimal
    accumulated_depreciation: Decimal
    other_fixed_assets: Decimal


@dataclass(frozen=True)
class OtherAssets(_Bucket):
    investments: Decimal
    intangible_assets: Decimal
    other_assets: Decimal


@dataclass(frozen=True)
class Assets:
    current: CurrentAssets
    fixed: FixedAssets
    other: OtherAssets

    @property
    def total(self) -> Decimal:
        return self.current.total + self.fixed.total + self.other.total


@dataclass(frozen=True)
class CurrentLiabilities(_Bucket):
    accounts_payable: Decimal
    short_term_loans: Decimal
    accrued_expenses: Decimal
    other_current_liabilities: Decimal


@dataclass(frozen=True)
class LongTermLiabilities(_Bucket):
    long_term_loans: Decimal
    bonds: Decimal
    other_long_term_liabilities: Decimal


@dataclass(frozen=True)
class Liabilities:
    current: CurrentLiabilities
    long_term: LongTermLiabilities

    @property
    def total(self) -> Decimal:
        return self.current.total + self.long_term.total


@dataclass(frozen=True)
class Equity(_Bucket):
    common_stock: Decimal
    retained_earnings: Decimal
    dividends: Decimal
    other_equity: Decimal
    current_earnings: Decimal  # unclosed revenue - expenses for the window


@dataclass(frozen=True)
class BalanceSheet:
    """Value Object - Statement of financial position."""
    period: Period
    assets: Assets
    liabilities: Liabilities
    equity: Equity

    @property
    def total_current_assets(self) -> Decimal:
        return self.assets.current.total

    @property
    def total_assets(self) -> Decimal:
        return self.assets.total

    @property
    def total_current_liabilities(self) -> Decimal:
        return self.liabilities.current.total

    @property
    def total_liabilities(self) -> Decimal:
        return self.liabilities.total

    @property
    def total_equity(self) -> Decimal:
        return self.equity.total

    @property
    def difference(self) -> Decimal:
        return self.total_assets - (self.total_liabilities + self.total_equity)

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) <= BALANCE_TOLERANCE


# --------------------------------------------------------------------------
# Income statement
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class Revenue(_Bucket):
    sales: Decimal
    services: Decimal
    other: Decimal


@dataclass(frozen=True)
class OperatingExpenses(_Bucket):
    salaries: Decimal
    rent: Decimal
    utilities: Decimal
    marketing: Decimal
    depreciation: Decimal
    other: Decimal


@dataclass(frozen=True)
class IncomeStatement:
    """Value Object - Profit and loss for a window."""
    period: Period
    revenue: Revenue
    cost_of_goods_sold: Decimal
    gross_profit: Decimal
    operating_expenses: OperatingExpenses
    operating_income: Decimal
    other_income: Decimal
    other_expenses: Decimal
    interest_expense: Decimal  # already included in other_expenses
    net_income: Decimal

    @property
    def total_revenue(self) -> Decimal:
        return self.revenue.total


# --------------------------------------------------------------------------
# Cash flow statement (indirect method)
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class OperatingAdjustments(_Bucket):
    depreciation: Decimal
    accounts_receivable: Decimal
    inventory: Decimal
    prepaid_expenses: Decimal
    accounts_payable: Decimal
    accrued_expenses: Decimal
    other: Decimal


@dataclass(frozen=True)
class OperatingActivities:
    net_income: Decimal
    adjustments: OperatingAdjustments

    @property
    def net_cash_from_operations(self) -> Decimal:
        return self.net_income + self.adjustments.total


@dataclass(frozen=True)
class InvestingActivities(_Bucket):
    land_and_buildings: Decimal
    equipment: Decimal
    vehicles: Decimal
    other_fixed_assets: Decimal
    investments: Decimal
    intangible_assets: Decimal
    other_assets: Decimal

    @property
    def net_cash_from_investing(self) -> Decimal:
        return self.total


@dataclass(frozen=True)
class FinancingActivities(_Bucket):
    short_term_loans: Decimal
    long_term_loans: Decimal
    bonds: Decimal
    capital_contributions: Decimal
    dividends: Decimal
    other: Decimal

    @property
    def net_cash_from_financing(self) -> Decimal:
        return self.total


@dataclass(frozen=True)
class CashFlowStatement:
    """Value Object - Cash flow statement for a window."""
    period: Period
    operating: OperatingActivities
    investing: InvestingActivities
    financing: FinancingActivities
    beginning_cash: Decimal
    ending_cash: Decimal

    @property
    def net_change_in_cash(self) -> Decimal:
        return (
            self.operating.net_cash_from_operations
            + self.investing.net_cash_from_investing
            + self.financing.net_cash_from_financing
        )

    @property
    def is_reconciled(self) -> bool:
        """Point-in-time cash movement agrees with the activity sections."""
        movement = self.ending_cash - self.beginning_cash
        return abs(movement - self.net_change_in_cash) <= BALANCE_TOLERANCE


# --------------------------------------------------------------------------
# Trial balance
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: str
    code: str
    name: str
    account_type: AccountType
    total_debits: Decimal
    total_credits: Decimal
    balance: Decimal  # normal-side sign


@dataclass(frozen=True)
class TrialBalance:
    period: Period
    rows: tuple[TrialBalanceRow, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) <= BALANCE_TOLERANCE


# --------------------------------------------------------------------------
# Generator
# --------------------------------------------------------------------------


class StatementGenerator:
    """
    Service - Composes BalanceCalculator outputs into statements.

    Holds an immutable snapshot of (accounts, entries); no totals are cached
    between calls.
    """

    def __init__(self, accounts, entries: Iterable[JournalEntry]):
        self.catalog = AccountCatalog.coerce(accounts)
        self.entries: tuple[JournalEntry, ...] = tuple(entries)
        self.calculator = BalanceCalculator(self.catalog)

    def _balance(self, period: Period, *categories: AccountCategory) -> Decimal:
        return self.calculator.compute_balance(
            AccountSelector.by_category(*categories), self.entries, period
        )

    def _net_income(self, period: Period) -> Decimal:
        revenue = self.calculator.compute_balance(
            AccountSelector.by_type(AccountType.REVENUE), self.entries, period
        )
        expenses = self.calculator.compute_balance(
            AccountSelector.by_type(AccountType.EXPENSE), self.entries, period
        )
        return revenue - expenses

    def generate_balance_sheet(self, period: Period) -> BalanceSheet:
        b = self._balance
        sheet = BalanceSheet(
            period=period,
            assets=Assets(
                current=CurrentAssets(
                    cash=b(period, C.CASH),
                    accounts_receivable=b(period, C.ACCOUNTS_RECEIVABLE),
                    inventory=b(period, C.INVENTORY),
                    prepaid_expenses=b(period, C.PREPAID_EXPENSES),
                    other_current_assets=b(period, C.OTHER_CURRENT_ASSET),
                ),
                fixed=FixedAssets(
                    land_and_buildings=b(period, C.PROPERTY),
                    equipment=b(period, C.EQUIPMENT),
                    vehicles=b(period, C.VEHICLES),
                    accumulated_depreciation=b(period, C.ACCUMULATED_DEPRECIATION),
                    other_fixed_assets=b(period, C.OTHER_FIXED_ASSET),
                ),
                other=OtherAssets(
                    investments=b(period, C.INVESTMENTS),
                    intangible_assets=b(period, C.INTANGIBLE_ASSETS),
                    other_assets=b(period, C.OTHER_ASSET),
                ),
            ),
            liabilities=Liabilities(
                current=CurrentLiabilities(
                    accounts_payable=b(period, C.ACCOUNTS_PAYABLE),
                    short_term_loans=b(period, C.SHORT_TERM_LOANS),
                    accrued_expenses=b(period, C.ACCRUED_EXPENSES),
                    other_current_liabilities=b(period, C.OTHER_CURRENT_LIABILITY),
                ),
                long_term=LongTermLiabilities(
                    long_term_loans=b(period, C.LONG_TERM_LOANS),
                    bonds=b(period, C.BONDS),
                    other_long_term_liabilities=b(period, C.OTHER_LONG_TERM_LIABILITY),
                ),
            ),
            equity=Equity(
                common_stock=b(period, C.COMMON_STOCK),
                retained_earnings=b(period, C.RETAINED_EARNINGS),
                dividends=b(period, C.DIVIDENDS),
                other_equity=b(period, C.OTHER_EQUITY),
                current_earnings=self._net_income(period),
            ),
        )
        if not sheet.is_balanced:
            logger.warning(
                "balance_sheet_out_of_balance",
                extra={"period_start": period.start, "period_end": period.end,
                       "difference": sheet.difference},
            )
        return sheet

    def generate_income_statement(self, period: Period) -> IncomeStatement:
        b = self._balance
        revenue = Revenue(
            sales=b(period, C.SALES),
            services=b(period, C.SERVICES),
            other=b(period, C.OTHER_REVENUE),
        )
        cost_of_goods_sold = b(period, C.COST_OF_GOODS_SOLD)
        operating_expenses = OperatingExpenses(
            salaries=b(period, C.SALARIES),
            rent=b(period, C.RENT),
            utilities=b(period, C.UTILITIES),
            marketing=b(period, C.MARKETING),
            depreciation=b(period, C.DEPRECIATION),
            other=b(period, C.OTHER_OPERATING_EXPENSE),
        )
        other_income = b(period, C.OTHER_INCOME)
        interest_expense = b(period, C.INTEREST_EXPENSE)
        other_expenses = interest_expense + b(period, C.OTHER_EXPENSE)

        gross_profit = revenue.total - cost_of_goods_sold
        operating_income = gross_profit - operating_expenses.total
        net_income = operating_income + other_income - other_expenses

        return IncomeStatement(
            period=period,
            revenue=revenue,
            cost_of_goods_sold=cost_of_goods_sold,
            gross_profit=gross_profit,
            operating_expenses=operating_expenses,
            operating_income=operating_income,
            other_income=other_income,
            other_expenses=other_expenses,
            interest_expense=interest_expense,
            net_income=net_income,
        )

    def generate_cash_flow_statement(self, period: Period) -> CashFlowStatement:
        b = self._balance
        income = self.generate_income_statement(period)

        # Asset growth consumes cash; liability and equity growth provides it.
        adjustments = OperatingAdjustments(
            depreciation=-b(period, C.ACCUMULATED_DEPRECIATION),
            accounts_receivable=-b(period, C.ACCOUNTS_RECEIVABLE),
            inventory=-b(period, C.INVENTORY),
            prepaid_expenses=-b(period, C.PREPAID_EXPENSES),
            accounts_payable=b(period, C.ACCOUNTS_PAYABLE),
            accrued_expenses=b(period, C.ACCRUED_EXPENSES),
            other=(
                b(period, C.OTHER_CURRENT_LIABILITY, C.RETAINED_EARNINGS)
                - b(period, C.OTHER_CURRENT_ASSET)
            ),
        )
        investing = InvestingActivities(
            land_and_buildings=-b(period, C.PROPERTY),
            equipment=-b(period, C.EQUIPMENT),
            vehicles=-b(period, C.VEHICLES),
            other_fixed_assets=-b(period, C.OTHER_FIXED_ASSET),
            investments=-b(period, C.INVESTMENTS),
            intangible_assets=-b(period, C.INTANGIBLE_ASSETS),
            other_assets=-b(period, C.OTHER_ASSET),
        )
        financing = FinancingActivities(
            short_term_loans=b(period, C.SHORT_TERM_LOANS),
            long_term_loans=b(period, C.LONG_TERM_LOANS),
            bonds=b(period, C.BONDS),
            capital_contributions=b(period, C.COMMON_STOCK, C.OTHER_EQUITY),
            dividends=b(period, C.DIVIDENDS),
            other=b(period, C.OTHER_LONG_TERM_LIABILITY),
        )

        cash = AccountSelector.by_category(C.CASH)
        statement = CashFlowStatement(
            period=period,
            operating=OperatingActivities(net_income=income.net_income, adjustments=adjustments),
            investing=investing,
            financing=financing,
            beginning_cash=self.calculator.balance_before(cash, self.entries, period.start),
            ending_cash=self.calculator.balance_at(cash, self.entries, period.end),
        )
        if not statement.is_reconciled:
            logger.warning(
                "cash_flow_not_reconciled",
                extra={"period_start": period.start, "period_end": period.end,
                       "net_change_in_cash": statement.net_change_in_cash,
                       "cash_movement": statement.ending_cash - statement.beginning_cash},
            )
        return statement

    def generate_trial_balance(self, period: Period) -> TrialBalance:
        debits: dict[str, Decimal] = {}
        credits: dict[str, Decimal] = {}
        for entry in posted_in(self.entries, period):
            for line in entry.lines:
                debits[line.account_id] = debits.get(line.account_id, ZERO) + line.debit
                credits[line.account_id] = credits.get(line.account_id, ZERO) + line.credit

        rows = []
        for account_id in debits:
            account = self.catalog.get(account_id)
            if account is None:
                logger.warning("trial_balance_unknown_account", extra={"account_id": account_id})
                continue
            rows.append(TrialBalanceRow(
                account_id=account.id,
                code=account.code,
                name=account.name,
                account_type=account.account_type,
                total_debits=debits[account_id],
                total_credits=credits[account_id],
                balance=self.calculator.compute_balance(account.id, self.entries, period),
            ))
        rows.sort(key=lambda r: r.code)

        return TrialBalance(
            period=period,
            rows=tuple(rows),
            total_debits=sum((r.total_debits for r in rows), ZERO),
            total_credits=sum((r.total_credits for r in rows), ZERO),
        )
