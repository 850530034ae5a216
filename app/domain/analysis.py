"""
Financial analysis - ratio analysis and progressive tax calculation.
Pure functions over statements and entries; no I/O.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, fields
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from .balances import posted_in
from .catalog import AccountCatalog
from .entities import JournalEntry
from .statements import BalanceSheet, IncomeStatement
from .value_objects import ZERO, AccountType, EntryStatus, Period, TaxBracket

UNBOUNDED = Decimal("Infinity")


# --------------------------------------------------------------------------
# Ratios
# --------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RatioValue:
    """A ratio, or the explicit NotComputable state when the denominator is zero."""
    value: Decimal | None

    @property
    def is_computable(self) -> bool:
        return self.value is not None

    @classmethod
    def not_computable(cls) -> "RatioValue":
        return cls(None)

    @classmethod
    def of(cls, numerator: Decimal, denominator: Decimal) -> "RatioValue":
        if denominator == 0:
            return cls.not_computable()
        return cls(numerator / denominator)


class _RatioGroup:
    def items(self) -> Iterator[tuple[str, RatioValue]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)


@dataclass(frozen=True)
class LiquidityRatios(_RatioGroup):
    current_ratio: RatioValue
    quick_ratio: RatioValue
    cash_ratio: RatioValue


@dataclass(frozen=True)
class ProfitabilityRatios(_RatioGroup):
    gross_profit_margin: RatioValue
    operating_profit_margin: RatioValue
    net_profit_margin: RatioValue
    return_on_assets: RatioValue
    return_on_equity: RatioValue


@dataclass(frozen=True)
class EfficiencyRatios(_RatioGroup):
    asset_turnover: RatioValue
    inventory_turnover: RatioValue
    receivables_turnover: RatioValue


@dataclass(frozen=True)
class LeverageRatios(_RatioGroup):
    debt_to_equity: RatioValue
    debt_to_assets: RatioValue
    interest_coverage: RatioValue


@dataclass(frozen=True)
class FinancialRatios:
    liquidity: LiquidityRatios
    profitability: ProfitabilityRatios
    efficiency: EfficiencyRatios
    leverage: LeverageRatios

    def groups(self) -> Iterator[tuple[str, _RatioGroup]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)


class RatioBand(str, Enum):
    """Ordered best to worst; NOT_COMPUTABLE sits outside the order."""
    STRONG = "strong"
    ADEQUATE = "adequate"
    CONCERN = "concern"
    NOT_COMPUTABLE = "not_computable"


@dataclass(frozen=True, slots=True)
class RatioThreshold:
    """Inclusive band bounds. Lower-is-better ratios flip the comparison."""
    strong: Decimal
    adequate: Decimal
    higher_is_better: bool = True

    def band(self, ratio: RatioValue) -> RatioBand:
        if not ratio.is_computable:
            return RatioBand.NOT_COMPUTABLE
        value = ratio.value
        if self.higher_is_better:
            if value >= self.strong:
                return RatioBand.STRONG
            if value >= self.adequate:
                return RatioBand.ADEQUATE
            return RatioBand.CONCERN
        if value <= self.strong:
            return RatioBand.STRONG
        if value <= self.adequate:
            return RatioBand.ADEQUATE
        return RatioBand.CONCERN


DEFAULT_THRESHOLDS: Mapping[str, RatioThreshold] = MappingProxyType({
    "current_ratio": RatioThreshold(Decimal("2"), Decimal("1")),
    "quick_ratio": RatioThreshold(Decimal("1"), Decimal("0.5")),
    "cash_ratio": RatioThreshold(Decimal("0.5"), Decimal("0.2")),
    "gross_profit_margin": RatioThreshold(Decimal("0.4"), Decimal("0.2")),
    "operating_profit_margin": RatioThreshold(Decimal("0.2"), Decimal("0.1")),
    "net_profit_margin": RatioThreshold(Decimal("0.15"), Decimal("0.05")),
    "return_on_assets": RatioThreshold(Decimal("0.1"), Decimal("0.05")),
    "return_on_equity": RatioThreshold(Decimal("0.15"), Decimal("0.1")),
    "asset_turnover": RatioThreshold(Decimal("1"), Decimal("0.5")),
    "inventory_turnover": RatioThreshold(Decimal("5"), Decimal("2")),
    "receivables_turnover": RatioThreshold(Decimal("10"), Decimal("5")),
    "debt_to_equity": RatioThreshold(Decimal("1"), Decimal("2"), higher_is_better=False),
    "debt_to_assets": RatioThreshold(Decimal("0.4"), Decimal("0.6"), higher_is_better=False),
    "interest_coverage": RatioThreshold(Decimal("3"), Decimal("1.5")),
})


@dataclass(frozen=True, slots=True)
class ClassifiedRatio:
    name: str
    group: str
    value: RatioValue
    band: RatioBand


@dataclass(frozen=True)
class RatioReport:
    ratios: tuple[ClassifiedRatio, ...]

    def __getitem__(self, name: str) -> ClassifiedRatio:
        for ratio in self.ratios:
            if ratio.name == name:
                return ratio
        raise KeyError(name)

    def by_group(self, group: str) -> list[ClassifiedRatio]:
        return [r for r in self.ratios if r.group == group]


class RatioAnalyzer:
    """
    Service - Liquidity, profitability, efficiency and leverage ratios.
    """

    def __init__(self, thresholds: Mapping[str, RatioThreshold] | None = None):
        merged = dict(DEFAULT_THRESHOLDS)
        merged.update(thresholds or {})
        self.thresholds = MappingProxyType(merged)

    def compute_ratios(self, balance_sheet: BalanceSheet, income_statement: IncomeStatement) -> FinancialRatios:
        current_assets = balance_sheet.total_current_assets
        current_liabilities = balance_sheet.total_current_liabilities
        inventory = balance_sheet.assets.current.inventory
        total_assets = balance_sheet.total_assets
        total_liabilities = balance_sheet.total_liabilities
        total_equity = balance_sheet.total_equity
        revenue = income_statement.total_revenue
        net_income = income_statement.net_income

        return FinancialRatios(
            liquidity=LiquidityRatios(
                current_ratio=RatioValue.of(current_assets, current_liabilities),
                quick_ratio=RatioValue.of(current_assets - inventory, current_liabilities),
                cash_ratio=RatioValue.of(balance_sheet.assets.current.cash, current_liabilities),
            ),
            profitability=ProfitabilityRatios(
                gross_profit_margin=RatioValue.of(income_statement.gross_profit, revenue),
                operating_profit_margin=RatioValue.of(income_statement.operating_income, revenue),
                net_profit_margin=RatioValue.of(net_income, revenue),
                return_on_assets=RatioValue.of(net_income, total_assets),
                return_on_equity=RatioValue.of(net_income, total_equity),
            ),
            efficiency=EfficiencyRatios(
                asset_turnover=RatioValue.of(revenue, total_assets),
                inventory_turnover=RatioValue.of(income_statement.cost_of_goods_sold, inventory),
                receivables_turnover=RatioValue.of(revenue, balance_sheet.assets.current.accounts_receivable),
            ),
            leverage=LeverageRatios(
                debt_to_equity=RatioValue.of(total_liabilities, total_equity),
                debt_to_assets=RatioValue.of(total_liabilities, total_assets),
                interest_coverage=RatioValue.of(
                    income_statement.operating_income, income_statement.interest_expense
                ),
            ),
        )

    def classify(self, ratios: FinancialRatios) -> RatioReport:
        classified = []
        for group_name, group in ratios.groups():
            for name, value in group.items():
                classified.append(ClassifiedRatio(
                    name=name,
                    group=group_name,
                    value=value,
                    band=self.thresholds[name].band(value),
                ))
        return RatioReport(ratios=tuple(classified))


# --------------------------------------------------------------------------
# Tax
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxResult:
    taxable_income: Decimal
    tax_liability: Decimal
    breakdown: Mapping[str, Decimal] = field(default_factory=dict)


def progressive_tax(taxable_income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """
    Bracketed liability. Each bracket taxes up to ``threshold`` of what
    remains; None (or Infinity) is unbounded.
    """
    ordered = sorted(brackets, key=lambda b: UNBOUNDED if b.threshold is None else b.threshold)
    liability = ZERO
    remaining = taxable_income
    for bracket in ordered:
        if remaining <= 0:
            break
        cap = UNBOUNDED if bracket.threshold is None else bracket.threshold
        taxed = min(remaining, cap)
        liability += taxed * bracket.rate
        remaining -= taxed
    return liability


class TaxCalculator:
    """
    Service - Taxable income from revenue credits less expense debits.
    Not jurisdiction-certified: the bracket algorithm is generic.
    """

    def __init__(self, accounts):
        self.catalog = AccountCatalog.coerce(accounts)

    def calculate_taxes(
        self,
        entries: Iterable[JournalEntry],
        brackets: Sequence[TaxBracket],
        period: Period | None = None,
    ) -> TaxResult:
        if period is None:
            selected = [e for e in entries if e.status == EntryStatus.POSTED]
        else:
            selected = posted_in(entries, period)

        taxable_income = ZERO
        breakdown: dict[str, Decimal] = {}
        for entry in selected:
            for line in entry.lines:
                account = self.catalog.get(line.account_id)
                if account is None:
                    continue
                if account.account_type == AccountType.REVENUE:
                    contribution = line.credit
                elif account.account_type == AccountType.EXPENSE:
                    contribution = -line.debit
                else:
                    continue
                taxable_income += contribution
                breakdown[account.code] = breakdown.get(account.code, ZERO) + contribution

        return TaxResult(
            taxable_income=taxable_income,
            tax_liability=progressive_tax(taxable_income, brackets),
            breakdown=MappingProxyType(breakdown),
        )
