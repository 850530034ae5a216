"""
Typed exceptions for the ledger engine.

Each class carries a machine-readable ``code`` so API handlers and logs can
dispatch by type instead of parsing messages. Validation problems are NOT
raised here: they are accumulated in a ValidationResult and only become an
exception (EntryRejectedError) when a caller insists on posting.
"""


class LedgerError(Exception):
    """Base exception for ledger engine errors."""

    code: str = "LEDGER_ERROR"


class EntryRejectedError(LedgerError):
    """A journal entry failed validation and cannot be posted."""

    code: str = "ENTRY_REJECTED"

    def __init__(self, entry_id: str, errors: list):
        self.entry_id = entry_id
        self.errors = list(errors)
        summary = "; ".join(e.message for e in self.errors)
        super().__init__(f"Journal entry {entry_id} rejected: {summary}")


class EntryNotFoundError(LedgerError):
    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class AccountNotFoundError(LedgerError):
    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class CatalogCycleError(LedgerError):
    """Account hierarchy contains a parent cycle."""

    code: str = "CATALOG_CYCLE"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account hierarchy cycle through account {account_id}")


class ConcurrentModificationError(LedgerError):
    """Optimistic version check failed while saving an entry."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entry_id: str, expected_version: int, actual_version: int):
        self.entry_id = entry_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Journal entry {entry_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )


class RetryableError(LedgerError):
    """Transient failure; the caller decides whether and when to retry."""

    code: str = "RETRYABLE"


class LedgerStoreUnavailableError(RetryableError):
    code: str = "LEDGER_STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Ledger store unavailable during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
