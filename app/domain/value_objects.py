"""
Domain Layer - Pure Python value objects for the double-entry ledger.
Sign conventions, account classification and reporting windows.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import NewType

AccountId = NewType("AccountId", str)
AccountCode = NewType("AccountCode", str)

ZERO = Decimal("0")
BALANCE_TOLERANCE = Decimal("0.01")
EPOCH = date(1, 1, 1)


class AccountType(str, Enum):
    """Top-level account classification."""
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class Side(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class EntryStatus(str, Enum):
    """Journal entry lifecycle: draft -> posted -> void."""
    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"


class AccountCategory(str, Enum):
    """Reporting tag, resolved when the account is created."""
    # Assets
    CASH = "cash"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    INVENTORY = "inventory"
    PREPAID_EXPENSES = "prepaid_expenses"
    OTHER_CURRENT_ASSET = "other_current_asset"
    PROPERTY = "property"
    EQUIPMENT = "equipment"
    VEHICLES = "vehicles"
    ACCUMULATED_DEPRECIATION = "accumulated_depreciation"  # contra-asset
    OTHER_FIXED_ASSET = "other_fixed_asset"
    INVESTMENTS = "investments"
    INTANGIBLE_ASSETS = "intangible_assets"
    OTHER_ASSET = "other_asset"
    # Liabilities
    ACCOUNTS_PAYABLE = "accounts_payable"
    SHORT_TERM_LOANS = "short_term_loans"
    ACCRUED_EXPENSES = "accrued_expenses"
    OTHER_CURRENT_LIABILITY = "other_current_liability"
    LONG_TERM_LOANS = "long_term_loans"
    BONDS = "bonds"
    OTHER_LONG_TERM_LIABILITY = "other_long_term_liability"
    # Equity
    COMMON_STOCK = "common_stock"
    RETAINED_EARNINGS = "retained_earnings"
    DIVIDENDS = "dividends"  # contra-equity
    OTHER_EQUITY = "other_equity"
    # Revenue
    SALES = "sales"
    SERVICES = "services"
    OTHER_REVENUE = "other_revenue"
    OTHER_INCOME = "other_income"  # non-operating
    # Expenses
    COST_OF_GOODS_SOLD = "cost_of_goods_sold"
    SALARIES = "salaries"
    RENT = "rent"
    UTILITIES = "utilities"
    MARKETING = "marketing"
    DEPRECIATION = "depreciation"
    OTHER_OPERATING_EXPENSE = "other_operating_expense"
    INTEREST_EXPENSE = "interest_expense"  # non-operating
    OTHER_EXPENSE = "other_expense"  # non-operating


_C = AccountCategory

CATEGORY_TYPES: dict[AccountCategory, AccountType] = {
    **{c: AccountType.ASSET for c in (
        _C.CASH, _C.ACCOUNTS_RECEIVABLE, _C.INVENTORY, _C.PREPAID_EXPENSES,
        _C.OTHER_CURRENT_ASSET, _C.PROPERTY, _C.EQUIPMENT, _C.VEHICLES,
        _C.ACCUMULATED_DEPRECIATION, _C.OTHER_FIXED_ASSET, _C.INVESTMENTS,
        _C.INTANGIBLE_ASSETS, _C.OTHER_ASSET,
    )},
    **{c: AccountType.LIABILITY for c in (
        _C.ACCOUNTS_PAYABLE, _C.SHORT_TERM_LOANS, _C.ACCRUED_EXPENSES,
        _C.OTHER_CURRENT_LIABILITY, _C.LONG_TERM_LOANS, _C.BONDS,
        _C.OTHER_LONG_TERM_LIABILITY,
    )},
    **{c: AccountType.EQUITY for c in (
        _C.COMMON_STOCK, _C.RETAINED_EARNINGS, _C.DIVIDENDS, _C.OTHER_EQUITY,
    )},
    **{c: AccountType.REVENUE for c in (
        _C.SALES, _C.SERVICES, _C.OTHER_REVENUE, _C.OTHER_INCOME,
    )},
    **{c: AccountType.EXPENSE for c in (
        _C.COST_OF_GOODS_SOLD, _C.SALARIES, _C.RENT, _C.UTILITIES,
        _C.MARKETING, _C.DEPRECIATION, _C.OTHER_OPERATING_EXPENSE,
        _C.INTEREST_EXPENSE, _C.OTHER_EXPENSE,
    )},
}


@dataclass(frozen=True, slots=True)
class DirectionPolicy:
    """Account codes explicitly allowed to be reduced on their restricted side."""
    asset_reduction_codes: frozenset[str] = frozenset()
    liability_reduction_codes: frozenset[str] = frozenset()

    def codes_for(self, account_type: AccountType) -> frozenset[str]:
        if account_type == AccountType.ASSET:
            return self.asset_reduction_codes
        if account_type == AccountType.LIABILITY:
            return self.liability_reduction_codes
        return frozenset()


@dataclass(frozen=True, slots=True)
class AccountTypeRule:
    """Sign convention and direction restriction for one account type."""
    normal_side: Side
    restricted_side: Side | None = None

    def signed(self, debit: Decimal, credit: Decimal) -> Decimal:
        """Net movement expressed on the account's normal side."""
        if self.normal_side == Side.DEBIT:
            return debit - credit
        return credit - debit

    def reduction_allowed(self, account, policy: DirectionPolicy) -> bool:
        if self.restricted_side is None:
            return True
        return account.allows_reduction or account.code in policy.codes_for(account.account_type)

    def violates(self, account, debit: Decimal, credit: Decimal, policy: DirectionPolicy) -> bool:
        if self.restricted_side is None:
            return False
        amount = credit if self.restricted_side == Side.CREDIT else debit
        return amount > 0 and not self.reduction_allowed(account, policy)


ACCOUNT_TYPE_RULES: dict[AccountType, AccountTypeRule] = {
    AccountType.ASSET: AccountTypeRule(Side.DEBIT, restricted_side=Side.CREDIT),
    AccountType.EXPENSE: AccountTypeRule(Side.DEBIT),
    AccountType.LIABILITY: AccountTypeRule(Side.CREDIT, restricted_side=Side.DEBIT),
    AccountType.EQUITY: AccountTypeRule(Side.CREDIT),
    AccountType.REVENUE: AccountTypeRule(Side.CREDIT),
}


@dataclass(frozen=True, slots=True)
class Period:
    """Inclusive reporting window."""
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def as_of(cls, day: date) -> "Period":
        """Everything up to and including ``day``."""
        return cls(EPOCH, day)

    @classmethod
    def before(cls, day: date) -> "Period | None":
        """Everything strictly before ``day``; None when nothing can precede it."""
        if day <= EPOCH:
            return None
        return cls(EPOCH, day - timedelta(days=1))


@dataclass(frozen=True, slots=True)
class BankStatementLine:
    """One line of an external bank statement (positive = deposit)."""
    date: date
    amount: Decimal
    reference: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class TaxBracket:
    """Progressive bracket; ``threshold`` None means unbounded."""
    threshold: Decimal | None
    rate: Decimal

    def __post_init__(self) -> None:
        if self.threshold is not None and self.threshold < 0:
            raise ValueError("Tax bracket threshold must be non-negative")
        if self.rate < 0:
            raise ValueError("Tax rate must be non-negative")
