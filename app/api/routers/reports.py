"""
API Routers - Financial reports endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_reporting_service
from app.application.dto.accounting_dto import (
    AccountBalanceDTO,
    BalanceSheetDTO,
    CashFlowStatementDTO,
    IncomeStatementDTO,
    RatioReportDTO,
    ReconciliationRequestDTO,
    ReconciliationResultDTO,
    TaxRequestDTO,
    TaxResultDTO,
    TrialBalanceDTO,
)
from app.domain.services import ReportingService
from app.domain.value_objects import Period

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


def report_period(
    start_date: date = Query(..., description="First day of the window"),
    end_date: date = Query(..., description="Last day of the window (inclusive)"),
) -> Period:
    return Period(start_date, end_date)


@router.get("/trial-balance", response_model=TrialBalanceDTO)
def get_trial_balance(
    period: Period = Depends(report_period),
    service: ReportingService = Depends(get_reporting_service),
):
    """Debit and credit totals per account; debits must equal credits."""
    return TrialBalanceDTO.model_validate(service.trial_balance(period))


@router.get("/balance-sheet", response_model=BalanceSheetDTO)
def get_balance_sheet(
    period: Period = Depends(report_period),
    service: ReportingService = Depends(get_reporting_service),
):
    """
    Balance sheet over the window.

    Equity includes current earnings, so assets = liabilities + equity.
    Use the earliest possible start_date for a point-in-time view.
    """
    return BalanceSheetDTO.from_domain(service.balance_sheet(period))


@router.get("/income-statement", response_model=IncomeStatementDTO)
def get_income_statement(
    period: Period = Depends(report_period),
    service: ReportingService = Depends(get_reporting_service),
):
    return IncomeStatementDTO.from_domain(service.income_statement(period))


@router.get("/cash-flow", response_model=CashFlowStatementDTO)
def get_cash_flow_statement(
    period: Period = Depends(report_period),
    service: ReportingService = Depends(get_reporting_service),
):
    """Indirect method; ending - beginning cash equals the net change."""
    return CashFlowStatementDTO.from_domain(service.cash_flow(period))


@router.get("/ratios", response_model=RatioReportDTO)
def get_ratios(
    period: Period = Depends(report_period),
    service: ReportingService = Depends(get_reporting_service),
):
    return RatioReportDTO.from_domain(period, service.ratios(period))


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceDTO)
def get_account_balance(
    account_id: str,
    period: Period = Depends(report_period),
    service: ReportingService = Depends(get_reporting_service),
):
    return AccountBalanceDTO.model_validate(service.account_balance(account_id, period))


@router.post("/reconciliation", response_model=ReconciliationResultDTO)
def reconcile_bank_statement(
    dto: ReconciliationRequestDTO,
    service: ReportingService = Depends(get_reporting_service),
):
    """
    Match a bank statement against the books.

    An unreconciled result is returned with status 200; it is not an error.
    """
    result = service.reconcile(
        dto.account_id,
        Period(dto.start, dto.end),
        [line.to_domain() for line in dto.lines],
    )
    return ReconciliationResultDTO.model_validate(result)


@router.post("/taxes", response_model=TaxResultDTO)
def calculate_taxes(
    dto: TaxRequestDTO,
    service: ReportingService = Depends(get_reporting_service),
):
    result = service.taxes([b.to_domain() for b in dto.brackets], dto.period())
    return TaxResultDTO(
        taxable_income=result.taxable_income,
        tax_liability=result.tax_liability,
        breakdown=dict(result.breakdown),
    )
