"""Domain layer - Pure Python business logic."""

from app.domain.analysis import RatioAnalyzer, RatioBand, RatioValue, TaxCalculator, TaxResult
from app.domain.balances import AccountBalance, AccountSelector, BalanceCache, BalanceCalculator
from app.domain.catalog import AccountCatalog
from app.domain.entities import Account, JournalEntry, LedgerLine
from app.domain.exceptions import (
    AccountNotFoundError,
    CatalogCycleError,
    ConcurrentModificationError,
    EntryNotFoundError,
    EntryRejectedError,
    LedgerError,
    LedgerStoreUnavailableError,
    RetryableError,
)
from app.domain.reconciliation import ReconciliationEngine, ReconciliationResult
from app.domain.services import (
    ChartOfAccountsService,
    IAccountRepository,
    IJournalEntryRepository,
    LedgerPostingService,
    ReportingService,
)
from app.domain.statements import StatementGenerator
from app.domain.validation import EntryValidator, ValidationResult
from app.domain.value_objects import (
    AccountCategory,
    AccountType,
    BankStatementLine,
    DirectionPolicy,
    EntryStatus,
    Period,
    TaxBracket,
)
