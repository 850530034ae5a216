"""Application layer - DTOs for the HTTP surface."""

from app.application.dto.accounting_dto import (
    AccountCreateDTO,
    AccountResponseDTO,
    BalanceSheetDTO,
    CashFlowStatementDTO,
    IncomeStatementDTO,
    JournalEntryCreateDTO,
    JournalEntryResponseDTO,
    RatioReportDTO,
    ReconciliationRequestDTO,
    ReconciliationResultDTO,
    TaxRequestDTO,
    TaxResultDTO,
    TrialBalanceDTO,
    ValidationResultDTO,
)
