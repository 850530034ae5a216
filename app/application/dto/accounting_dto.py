"""
API DTOs - Data Transfer Objects for API requests/responses.
"""

import re
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.domain.analysis import RatioBand, RatioReport
from app.domain.entities import Account, JournalEntry, LedgerLine
from app.domain.reconciliation import DifferenceType
from app.domain.statements import BalanceSheet, CashFlowStatement, IncomeStatement
from app.domain.validation import ValidationErrorKind
from app.domain.value_objects import (
    AccountCategory,
    AccountType,
    BankStatementLine,
    EntryStatus,
    Period,
    TaxBracket,
)

METADATA_KEY = re.compile(r"^[a-z][a-z0-9_]{0,63}$")

MetadataValue = str | int | float | bool | None


def _check_metadata(value: dict[str, MetadataValue]) -> dict[str, MetadataValue]:
    for key in value:
        if not METADATA_KEY.match(key):
            raise ValueError(f"Invalid metadata key {key!r}: use lowercase letters, digits and underscores")
    return value


class PeriodDTO(BaseModel):
    """DTO - Reporting window (inclusive)."""
    start: date
    end: date

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def check_order(self) -> "PeriodDTO":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    def to_domain(self) -> Period:
        return Period(self.start, self.end)


# --------------------------------------------------------------------------
# Accounts
# --------------------------------------------------------------------------


class AccountCreateDTO(BaseModel):
    """DTO - Create an account."""
    code: str = Field(..., min_length=1, max_length=32, description="Account code")
    name: str = Field(..., min_length=1, max_length=200)
    account_type: AccountType
    category: AccountCategory
    parent_id: str | None = None
    allows_reduction: bool = Field(False, description="Allow entries on the restricted side")
    description: str | None = None
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "code": "1000",
            "name": "Cash",
            "account_type": "asset",
            "category": "cash",
            "metadata": {"bank": "First National"},
        }
    })

    @field_validator("metadata")
    @classmethod
    def check_metadata(cls, value: dict[str, MetadataValue]) -> dict[str, MetadataValue]:
        return _check_metadata(value)

    def to_domain(self) -> Account:
        return Account(
            code=self.code,
            name=self.name,
            account_type=self.account_type,
            category=self.category,
            parent_id=self.parent_id,
            allows_reduction=self.allows_reduction,
            description=self.description,
            metadata=self.metadata,
        )


class AccountResponseDTO(BaseModel):
    """DTO - Account."""
    id: str
    code: str
    name: str
    account_type: AccountType
    category: AccountCategory
    parent_id: str | None
    is_active: bool
    allows_reduction: bool
    description: str | None
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountBalanceDTO(BaseModel):
    """DTO - Opening, movement and closing balance of one account."""
    account_id: str
    period: PeriodDTO
    opening: Decimal
    total_debits: Decimal
    total_credits: Decimal
    closing: Decimal

    model_config = ConfigDict(from_attributes=True)


# --------------------------------------------------------------------------
# Journal entries
# --------------------------------------------------------------------------


class LedgerLineCreateDTO(BaseModel):
    account_id: str
    debit: Decimal = Field(Decimal("0"), ge=0)
    credit: Decimal = Field(Decimal("0"), ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    description: str | None = None

    def to_domain(self) -> LedgerLine:
        return LedgerLine(
            account_id=self.account_id,
            debit=self.debit,
            credit=self.credit,
            currency=self.currency,
            description=self.description,
        )


class JournalEntryCreateDTO(BaseModel):
    """DTO - Create a draft journal entry."""
    date: date
    reference: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., max_length=500)
    created_by: str = "system"
    lines: list[LedgerLineCreateDTO] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "date": "2024-01-15",
            "reference": "INV-1001",
            "description": "Cash sale",
            "lines": [
                {"account_id": "<cash account id>", "debit": "500.00"},
                {"account_id": "<sales account id>", "credit": "500.00"},
            ],
        }
    })

    @field_validator("metadata")
    @classmethod
    def check_metadata(cls, value: dict[str, MetadataValue]) -> dict[str, MetadataValue]:
        return _check_metadata(value)

    def to_domain(self) -> JournalEntry:
        return JournalEntry(
            date=self.date,
            reference=self.reference,
            description=self.description,
            created_by=self.created_by,
            lines=[line.to_domain() for line in self.lines],
            metadata=self.metadata,
        )


class LedgerLineResponseDTO(BaseModel):
    id: str
    account_id: str
    debit: Decimal
    credit: Decimal
    currency: str
    description: str | None

    model_config = ConfigDict(from_attributes=True)


class JournalEntryResponseDTO(BaseModel):
    """DTO - Journal entry."""
    id: str
    date: date
    reference: str
    description: str
    created_by: str
    status: EntryStatus
    lines: list[LedgerLineResponseDTO]
    total_debit: Decimal
    total_credit: Decimal
    metadata: dict[str, Any]
    posted_at: datetime | None
    voided_at: datetime | None
    created_at: datetime
    updated_at: datetime
    version: int

    model_config = ConfigDict(from_attributes=True)


class ValidationErrorDTO(BaseModel):
    kind: ValidationErrorKind
    message: str
    account_id: str | None
    line_index: int | None

    model_config = ConfigDict(from_attributes=True)


class ValidationResultDTO(BaseModel):
    """DTO - Result of validating an entry against the chart of accounts."""
    is_valid: bool
    errors: list[ValidationErrorDTO]
    total_debit: Decimal
    total_credit: Decimal

    model_config = ConfigDict(from_attributes=True)


# --------------------------------------------------------------------------
# Reports
# --------------------------------------------------------------------------


class TrialBalanceRowDTO(BaseModel):
    account_id: str
    code: str
    name: str
    account_type: AccountType
    total_debits: Decimal
    total_credits: Decimal
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class TrialBalanceDTO(BaseModel):
    """DTO - Trial balance."""
    period: PeriodDTO
    rows: list[TrialBalanceRowDTO]
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    is_balanced: bool

    model_config = ConfigDict(from_attributes=True)


def _section(bucket) -> dict[str, Any]:
    values = asdict(bucket)
    values["total"] = bucket.total
    return values


class BalanceSheetDTO(BaseModel):
    """DTO - Balance sheet; sections carry their own totals."""
    period: PeriodDTO
    assets: dict[str, Any]
    liabilities: dict[str, Any]
    equity: dict[str, Any]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    difference: Decimal
    is_balanced: bool

    @classmethod
    def from_domain(cls, sheet: BalanceSheet) -> "BalanceSheetDTO":
        return cls(
            period=PeriodDTO.model_validate(sheet.period),
            assets={
                "current": _section(sheet.assets.current),
                "fixed": _section(sheet.assets.fixed),
                "other": _section(sheet.assets.other),
            },
            liabilities={
                "current": _section(sheet.liabilities.current),
                "long_term": _section(sheet.liabilities.long_term),
            },
            equity=_section(sheet.equity),
            total_assets=sheet.total_assets,
            total_liabilities=sheet.total_liabilities,
            total_equity=sheet.total_equity,
            difference=sheet.difference,
            is_balanced=sheet.is_balanced,
        )


class IncomeStatementDTO(BaseModel):
    """DTO - Income statement."""
    period: PeriodDTO
    revenue: dict[str, Any]
    total_revenue: Decimal
    cost_of_goods_sold: Decimal
    gross_profit: Decimal
    operating_expenses: dict[str, Any]
    operating_income: Decimal
    other_income: Decimal
    other_expenses: Decimal
    interest_expense: Decimal
    net_income: Decimal

    @classmethod
    def from_domain(cls, statement: IncomeStatement) -> "IncomeStatementDTO":
        return cls(
            period=PeriodDTO.model_validate(statement.period),
            revenue=_section(statement.revenue),
            total_revenue=statement.total_revenue,
            cost_of_goods_sold=statement.cost_of_goods_sold,
            gross_profit=statement.gross_profit,
            operating_expenses=_section(statement.operating_expenses),
            operating_income=statement.operating_income,
            other_income=statement.other_income,
            other_expenses=statement.other_expenses,
            interest_expense=statement.interest_expense,
            net_income=statement.net_income,
        )


class CashFlowStatementDTO(BaseModel):
    """DTO - Cash flow statement (indirect method)."""
    period: PeriodDTO
    operating: dict[str, Any]
    investing: dict[str, Any]
    financing: dict[str, Any]
    beginning_cash: Decimal
    ending_cash: Decimal
    net_change_in_cash: Decimal
    is_reconciled: bool

    @classmethod
    def from_domain(cls, statement: CashFlowStatement) -> "CashFlowStatementDTO":
        operating = statement.operating
        return cls(
            period=PeriodDTO.model_validate(statement.period),
            operating={
                "net_income": operating.net_income,
                "adjustments": _section(operating.adjustments),
                "net_cash_from_operations": operating.net_cash_from_operations,
            },
            investing={
                **asdict(statement.investing),
                "net_cash_from_investing": statement.investing.net_cash_from_investing,
            },
            financing={
                **asdict(statement.financing),
                "net_cash_from_financing": statement.financing.net_cash_from_financing,
            },
            beginning_cash=statement.beginning_cash,
            ending_cash=statement.ending_cash,
            net_change_in_cash=statement.net_change_in_cash,
            is_reconciled=statement.is_reconciled,
        )


class RatioDTO(BaseModel):
    name: str
    group: str
    value: Decimal | None
    band: RatioBand


class RatioReportDTO(BaseModel):
    """DTO - Classified financial ratios; value is null when not computable."""
    period: PeriodDTO
    ratios: list[RatioDTO]

    @classmethod
    def from_domain(cls, period: Period, report: RatioReport) -> "RatioReportDTO":
        return cls(
            period=PeriodDTO.model_validate(period),
            ratios=[
                RatioDTO(name=r.name, group=r.group, value=r.value.value, band=r.band)
                for r in report.ratios
            ],
        )


class BankStatementLineDTO(BaseModel):
    date: date
    amount: Decimal = Field(..., description="Positive for deposits, negative for withdrawals")
    reference: str = ""
    description: str = ""

    def to_domain(self) -> BankStatementLine:
        return BankStatementLine(
            date=self.date,
            amount=self.amount,
            reference=self.reference,
            description=self.description,
        )


class ReconciliationRequestDTO(BaseModel):
    """DTO - Bank reconciliation request."""
    account_id: str
    start: date
    end: date
    lines: list[BankStatementLineDTO] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_order(self) -> "ReconciliationRequestDTO":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class ReconciliationDifferenceDTO(BaseModel):
    date: date
    amount: Decimal
    reference: str
    type: DifferenceType

    model_config = ConfigDict(from_attributes=True)


class ReconciliationSummaryDTO(BaseModel):
    book_balance: Decimal
    bank_balance: Decimal
    difference: Decimal
    matched_count: int
    total_deposits: Decimal
    total_withdrawals: Decimal
    outstanding_deposits: Decimal
    outstanding_withdrawals: Decimal

    model_config = ConfigDict(from_attributes=True)


class ReconciliationResultDTO(BaseModel):
    """DTO - Bank reconciliation result."""
    account_id: str
    period: PeriodDTO
    is_reconciled: bool
    differences: list[ReconciliationDifferenceDTO]
    summary: ReconciliationSummaryDTO

    model_config = ConfigDict(from_attributes=True)


class TaxBracketDTO(BaseModel):
    threshold: Decimal | None = Field(None, ge=0, description="Bracket width; null means unbounded")
    rate: Decimal = Field(..., ge=0, le=1)

    def to_domain(self) -> TaxBracket:
        return TaxBracket(threshold=self.threshold, rate=self.rate)


class TaxRequestDTO(BaseModel):
    """DTO - Progressive tax request; without a window every posted entry counts."""
    brackets: list[TaxBracketDTO] = Field(..., min_length=1)
    start: date | None = None
    end: date | None = None

    @model_validator(mode="after")
    def check_window(self) -> "TaxRequestDTO":
        if (self.start is None) != (self.end is None):
            raise ValueError("start and end must be given together")
        if self.start is not None and self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    def period(self) -> Period | None:
        if self.start is None:
            return None
        return Period(self.start, self.end)


class TaxResultDTO(BaseModel):
    taxable_income: Decimal
    tax_liability: Decimal
    breakdown: dict[str, Decimal]

    model_config = ConfigDict(from_attributes=True)
