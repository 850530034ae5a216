"""
API dependencies - repositories and services wired per request.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import LedgerSettings, get_settings
from app.domain.balances import BalanceCache
from app.domain.services import ChartOfAccountsService, LedgerPostingService, ReportingService
from app.domain.validation import EntryValidator
from app.infrastructure.database import get_db
from app.infrastructure.database.repositories import SqlAccountRepository, SqlJournalEntryRepository

# Shared across requests in this process only; posting and voiding invalidate it.
# Another worker process never sees those invalidations, so multi-worker
# deployments set LEDGER_BALANCE_CACHE_ENABLED=false.
_balance_cache = BalanceCache()


def get_balance_cache(settings: LedgerSettings = Depends(get_settings)) -> BalanceCache | None:
    return _balance_cache if settings.balance_cache_enabled else None


def get_account_repository(db: Session = Depends(get_db)) -> SqlAccountRepository:
    return SqlAccountRepository(db)


def get_journal_repository(db: Session = Depends(get_db)) -> SqlJournalEntryRepository:
    return SqlJournalEntryRepository(db)


def get_chart_service(
    account_repo: SqlAccountRepository = Depends(get_account_repository),
) -> ChartOfAccountsService:
    return ChartOfAccountsService(account_repo)


def get_posting_service(
    account_repo: SqlAccountRepository = Depends(get_account_repository),
    journal_repo: SqlJournalEntryRepository = Depends(get_journal_repository),
    cache: BalanceCache | None = Depends(get_balance_cache),
    settings: LedgerSettings = Depends(get_settings),
) -> LedgerPostingService:
    validator = EntryValidator(
        policy=settings.direction_policy(),
        tolerance=settings.balance_tolerance,
    )
    return LedgerPostingService(account_repo, journal_repo, validator=validator, cache=cache)


def get_reporting_service(
    account_repo: SqlAccountRepository = Depends(get_account_repository),
    journal_repo: SqlJournalEntryRepository = Depends(get_journal_repository),
    cache: BalanceCache | None = Depends(get_balance_cache),
    settings: LedgerSettings = Depends(get_settings),
) -> ReportingService:
    return ReportingService(
        account_repo,
        journal_repo,
        cache=cache,
        tolerance=settings.balance_tolerance,
    )
