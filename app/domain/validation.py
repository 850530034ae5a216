"""
Entry validation - admits or rejects a candidate journal entry.

Every check runs on every call and all problems are reported together, so a
caller can show complete feedback in one pass.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from .catalog import AccountCatalog
from .entities import JournalEntry
from .value_objects import ACCOUNT_TYPE_RULES, BALANCE_TOLERANCE, ZERO, DirectionPolicy


class ValidationErrorKind(str, Enum):
    TOO_FEW_LINES = "too_few_lines"
    ACCOUNT_NOT_FOUND = "account_not_found"
    UNBALANCED = "unbalanced"
    DIRECTION_VIOLATION = "direction_violation"
    INACTIVE_ACCOUNT = "inactive_account"
    TWO_SIDED_LINE = "two_sided_line"


@dataclass(frozen=True, slots=True)
class ValidationError:
    kind: ValidationErrorKind
    message: str
    account_id: str | None = None
    line_index: int | None = None


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def kinds(self) -> set[ValidationErrorKind]:
        return {e.kind for e in self.errors}


class EntryValidator:
    """
    Service - Double-entry validation.
    Direction rules come from ACCOUNT_TYPE_RULES plus a configurable policy.
    """

    def __init__(
        self,
        policy: DirectionPolicy | None = None,
        tolerance: Decimal = BALANCE_TOLERANCE,
    ):
        self.policy = policy or DirectionPolicy()
        self.tolerance = tolerance

    def validate(self, entry: JournalEntry, accounts) -> ValidationResult:
        catalog = AccountCatalog.coerce(accounts)
        errors: list[ValidationError] = []

        if len(entry.lines) < 2:
            errors.append(ValidationError(
                ValidationErrorKind.TOO_FEW_LINES,
                "entry must have at least two lines",
            ))

        total_debit = ZERO
        total_credit = ZERO
        for index, line in enumerate(entry.lines):
            account = catalog.get(line.account_id)
            if account is None:
                errors.append(ValidationError(
                    ValidationErrorKind.ACCOUNT_NOT_FOUND,
                    f"Account {line.account_id} not found",
                    account_id=line.account_id,
                    line_index=index,
                ))
                continue

            total_debit += line.debit
            total_credit += line.credit

            if not account.is_active:
                errors.append(ValidationError(
                    ValidationErrorKind.INACTIVE_ACCOUNT,
                    f"Account {account.code} ({account.name}) is inactive",
                    account_id=account.id,
                    line_index=index,
                ))
            if line.debit > ZERO and line.credit > ZERO:
                errors.append(ValidationError(
                    ValidationErrorKind.TWO_SIDED_LINE,
                    "a line must carry either a debit or a credit, not both",
                    account_id=account.id,
                    line_index=index,
                ))

            rule = ACCOUNT_TYPE_RULES[account.account_type]
            if rule.violates(account, line.debit, line.credit, self.policy):
                side = rule.restricted_side.value
                errors.append(ValidationError(
                    ValidationErrorKind.DIRECTION_VIOLATION,
                    f"{side.capitalize()} entries not allowed for "
                    f"{account.account_type.value} account {account.code} ({account.name})",
                    account_id=account.id,
                    line_index=index,
                ))

        if abs(total_debit - total_credit) > self.tolerance:
            errors.append(ValidationError(
                ValidationErrorKind.UNBALANCED,
                f"Debits ({total_debit}) must equal credits ({total_credit})",
            ))

        return ValidationResult(
            errors=tuple(errors),
            total_debit=total_debit,
            total_credit=total_credit,
        )
