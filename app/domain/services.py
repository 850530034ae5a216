"""
Domain Services - Business logic that operates on multiple entities.
Repositories are abstract here; the SQL implementations live in infrastructure.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from decimal import Decimal

from app.core.logging_config import get_logger

from .analysis import RatioAnalyzer, RatioReport, TaxCalculator, TaxResult
from .balances import AccountBalance, BalanceCache, BalanceCalculator
from .catalog import AccountCatalog
from .entities import Account, JournalEntry
from .exceptions import AccountNotFoundError, EntryNotFoundError, EntryRejectedError
from .reconciliation import ReconciliationEngine, ReconciliationResult
from .statements import (
    BalanceSheet,
    CashFlowStatement,
    IncomeStatement,
    StatementGenerator,
    TrialBalance,
)
from .validation import EntryValidator, ValidationResult
from .value_objects import BALANCE_TOLERANCE, BankStatementLine, EntryStatus, Period, TaxBracket

logger = get_logger("domain.services")


class IAccountRepository(ABC):

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        ...

    @abstractmethod
    def get_by_id(self, account_id: str) -> Account | None:
        ...

    @abstractmethod
    def get_by_code(self, code: str) -> Account | None:
        ...

    @abstractmethod
    def save(self, account: Account) -> Account:
        ...


class IJournalEntryRepository(ABC):

    @abstractmethod
    def get_by_id(self, entry_id: str) -> JournalEntry | None:
        ...

    @abstractmethod
    def save(self, entry: JournalEntry, expected_version: int | None = None) -> JournalEntry:
        """
        Insert a new entry, or update an existing one when ``expected_version``
        matches the stored version (raises ConcurrentModificationError otherwise).
        """
        ...

    @abstractmethod
    def list_entries(
        self,
        period: Period | None = None,
        status: EntryStatus | None = None,
    ) -> list[JournalEntry]:
        ...

    def get_posted_entries(self, period: Period | None = None) -> list[JournalEntry]:
        return self.list_entries(period=period, status=EntryStatus.POSTED)


class ChartOfAccountsService:
    """
    Service - Maintains the chart of accounts.
    Codes are unique; parents must exist and must not form a cycle.
    """

    def __init__(self, account_repo: IAccountRepository):
        self.account_repo = account_repo

    def create_account(self, account: Account) -> Account:
        if self.account_repo.get_by_code(account.code) is not None:
            raise ValueError(f"Account code {account.code} already exists")

        existing = self.account_repo.list_accounts()
        if account.parent_id is not None and not any(a.id == account.parent_id for a in existing):
            raise AccountNotFoundError(account.parent_id)
        # Raises CatalogCycleError when the new parent link closes a loop.
        AccountCatalog([*existing, account])

        saved = self.account_repo.save(account)
        logger.info(
            "account_created",
            extra={"account_id": saved.id, "code": saved.code, "account_type": saved.account_type},
        )
        return saved

    def get_account(self, account_id: str) -> Account:
        account = self.account_repo.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def catalog(self) -> AccountCatalog:
        return AccountCatalog(self.account_repo.list_accounts())


class LedgerPostingService:
    """
    Service - Drafts, validation, posting and voiding of journal entries.
    Every state change invalidates the balance cache in the same step.
    """

    def __init__(
        self,
        account_repo: IAccountRepository,
        journal_repo: IJournalEntryRepository,
        validator: EntryValidator | None = None,
        cache: BalanceCache | None = None,
    ):
        self.account_repo = account_repo
        self.journal_repo = journal_repo
        self.validator = validator or EntryValidator()
        self.cache = cache

    def get_entry(self, entry_id: str) -> JournalEntry:
        entry = self.journal_repo.get_by_id(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    def create_draft(self, entry: JournalEntry) -> JournalEntry:
        if entry.status != EntryStatus.DRAFT:
            raise ValueError("New journal entries must be drafts")
        saved = self.journal_repo.save(entry)
        logger.info(
            "entry_drafted",
            extra={"entry_id": saved.id, "reference": saved.reference, "line_count": len(saved.lines)},
        )
        return saved

    def validate(self, entry_id: str) -> ValidationResult:
        entry = self.get_entry(entry_id)
        return self.validator.validate(entry, self.account_repo.list_accounts())

    def post(self, entry_id: str) -> JournalEntry:
        entry = self.get_entry(entry_id)
        if entry.status != EntryStatus.DRAFT:
            raise ValueError(f"Only draft entries can be posted (entry is {entry.status.value})")

        result = self.validator.validate(entry, self.account_repo.list_accounts())
        if not result.is_valid:
            logger.warning(
                "entry_rejected",
                extra={"entry_id": entry.id, "errors": [e.kind for e in result.errors]},
            )
            raise EntryRejectedError(entry.id, list(result.errors))

        posted = self.journal_repo.save(
            entry.post(tolerance=self.validator.tolerance), expected_version=entry.version
        )
        dropped = self.cache.invalidate_entry(posted) if self.cache is not None else 0
        logger.info(
            "entry_posted",
            extra={
                "entry_id": posted.id,
                "total_debit": posted.total_debit,
                "cache_keys_dropped": dropped,
            },
        )
        return posted

    def void(self, entry_id: str) -> JournalEntry:
        entry = self.get_entry(entry_id)
        voided = self.journal_repo.save(entry.void(), expected_version=entry.version)
        dropped = self.cache.invalidate_entry(voided) if self.cache is not None else 0
        logger.info("entry_voided", extra={"entry_id": voided.id, "cache_keys_dropped": dropped})
        return voided


class ReportingService:
    """
    Service - Financial reports over one snapshot of posted entries.
    Each call takes its own snapshot; the engines below never touch the store.
    """

    def __init__(
        self,
        account_repo: IAccountRepository,
        journal_repo: IJournalEntryRepository,
        cache: BalanceCache | None = None,
        tolerance: Decimal = BALANCE_TOLERANCE,
        analyzer: RatioAnalyzer | None = None,
    ):
        self.account_repo = account_repo
        self.journal_repo = journal_repo
        self.cache = cache
        self.tolerance = tolerance
        self.analyzer = analyzer or RatioAnalyzer()

    def _snapshot(self, period: Period) -> tuple[AccountCatalog, list[JournalEntry]]:
        # Opening balances need everything before the window as well.
        catalog = AccountCatalog(self.account_repo.list_accounts())
        entries = self.journal_repo.get_posted_entries(Period.as_of(period.end))
        return catalog, entries

    def _generator(self, period: Period) -> StatementGenerator:
        catalog, entries = self._snapshot(period)
        return StatementGenerator(catalog, entries)

    def trial_balance(self, period: Period) -> TrialBalance:
        return self._generator(period).generate_trial_balance(period)

    def balance_sheet(self, period: Period) -> BalanceSheet:
        return self._generator(period).generate_balance_sheet(period)

    def income_statement(self, period: Period) -> IncomeStatement:
        return self._generator(period).generate_income_statement(period)

    def cash_flow(self, period: Period) -> CashFlowStatement:
        return self._generator(period).generate_cash_flow_statement(period)

    def ratios(self, period: Period) -> RatioReport:
        generator = self._generator(period)
        ratios = self.analyzer.compute_ratios(
            generator.generate_balance_sheet(period),
            generator.generate_income_statement(period),
        )
        return self.analyzer.classify(ratios)

    def account_balance(self, account_id: str, period: Period) -> AccountBalance:
        catalog, entries = self._snapshot(period)
        if account_id not in catalog:
            raise AccountNotFoundError(account_id)
        return BalanceCalculator(catalog, cache=self.cache).account_balance(account_id, entries, period)

    def reconcile(
        self,
        account_id: str,
        period: Period,
        bank_lines: Sequence[BankStatementLine],
    ) -> ReconciliationResult:
        if self.account_repo.get_by_id(account_id) is None:
            raise AccountNotFoundError(account_id)
        entries = self.journal_repo.get_posted_entries(period)
        return ReconciliationEngine(entries, self.tolerance).reconcile(account_id, period, bank_lines)

    def taxes(self, brackets: Sequence[TaxBracket], period: Period | None = None) -> TaxResult:
        accounts = self.account_repo.list_accounts()
        entries = self.journal_repo.get_posted_entries(period)
        return TaxCalculator(accounts).calculate_taxes(entries, brackets, period)
