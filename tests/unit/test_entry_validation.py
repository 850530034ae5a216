"""
Unit tests - Double-entry validation and the posting service.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.domain.balances import BalanceCache, BalanceCalculator
from app.domain.entities import LedgerLine
from app.domain.exceptions import ConcurrentModificationError, EntryNotFoundError, EntryRejectedError
from app.domain.services import LedgerPostingService
from app.domain.validation import EntryValidator, ValidationErrorKind
from app.domain.value_objects import DirectionPolicy, EntryStatus, Period
from conftest import InMemoryJournalEntryRepository, make_account, make_entry

JAN = date(2024, 1, 15)


class TestEntryValidator:
    """Double-entry rules: every problem is reported in one pass."""

    def test_valid_entry(self, chart, accounts):
        entry = make_entry(JAN, "OK", (chart["cash"], 100, 0), (chart["sales"], 0, 100))
        result = EntryValidator().validate(entry, accounts)
        assert result.is_valid
        assert result.total_debit == result.total_credit == Decimal("100")

    def test_too_few_lines(self, chart, accounts):
        entry = make_entry(JAN, "ONE", (chart["cash"], 0, 0))
        result = EntryValidator().validate(entry, accounts)
        assert result.kinds() == {ValidationErrorKind.TOO_FEW_LINES}
        assert result.errors[0].message == "entry must have at least two lines"

    def test_unbalanced(self, chart, accounts):
        entry = make_entry(JAN, "UNB", (chart["cash"], 100, 0), (chart["sales"], 0, 90))
        result = EntryValidator().validate(entry, accounts)
        assert result.kinds() == {ValidationErrorKind.UNBALANCED}
        assert "must equal credits" in result.errors[0].message

    def test_imbalance_within_tolerance_is_accepted(self, chart, accounts):
        entry = make_entry(JAN, "TOL", (chart["cash"], "100.00", 0), (chart["sales"], 0, "99.99"))
        assert EntryValidator().validate(entry, accounts).is_valid

    def test_unknown_account(self, chart, accounts):
        entry = make_entry(JAN, "UNK", (chart["cash"], 100, 0), (chart["sales"], 0, 100))
        entry.lines[1] = LedgerLine(account_id="missing", credit=Decimal("100"))
        result = EntryValidator().validate(entry, accounts)
        assert ValidationErrorKind.ACCOUNT_NOT_FOUND in result.kinds()
        error = next(e for e in result.errors if e.kind == ValidationErrorKind.ACCOUNT_NOT_FOUND)
        assert error.message == "Account missing not found"
        assert error.line_index == 1

    def test_credit_to_restricted_asset(self, chart, accounts):
        # Equipment does not allow reductions.
        entry = make_entry(JAN, "DIR", (chart["cash"], 100, 0), (chart["equipment"], 0, 100))
        result = EntryValidator().validate(entry, accounts)
        assert result.kinds() == {ValidationErrorKind.DIRECTION_VIOLATION}
        assert result.errors[0].message == "Credit entries not allowed for asset account 1500 (Equipment)"

    def test_debit_to_restricted_liability(self, chart, accounts):
        entry = make_entry(JAN, "DIR", (chart["loan"], 100, 0), (chart["cash"], 0, 100))
        result = EntryValidator().validate(entry, accounts)
        assert result.kinds() == {ValidationErrorKind.DIRECTION_VIOLATION}
        assert result.errors[0].message.startswith("Debit entries not allowed for liability account 2500")

    def test_policy_allows_reduction_by_code(self, chart, accounts):
        entry = make_entry(JAN, "DIR", (chart["cash"], 100, 0), (chart["equipment"], 0, 100))
        policy = DirectionPolicy(asset_reduction_codes=frozenset({"1500"}))
        assert EntryValidator(policy=policy).validate(entry, accounts).is_valid

    def test_all_errors_collected(self, chart, accounts):
        entry = make_entry(JAN, "BAD", (chart["equipment"], 0, 100))
        result = EntryValidator().validate(entry, accounts)
        assert result.kinds() == {
            ValidationErrorKind.TOO_FEW_LINES,
            ValidationErrorKind.DIRECTION_VIOLATION,
            ValidationErrorKind.UNBALANCED,
        }

    def test_inactive_account(self, chart, accounts):
        retired = make_account("1050", "Old Cash", "asset", "cash", is_active=False)
        entry = make_entry(JAN, "OLD", (retired, 100, 0), (chart["sales"], 0, 100))
        result = EntryValidator().validate(entry, [*accounts, retired])
        assert result.kinds() == {ValidationErrorKind.INACTIVE_ACCOUNT}
        assert result.errors[0].message == "Account 1050 (Old Cash) is inactive"
        assert result.errors[0].line_index == 0

    def test_line_with_both_sides(self, chart, accounts):
        entry = make_entry(JAN, "TWO", (chart["cash"], 100, 40), (chart["sales"], 0, 60))
        result = EntryValidator().validate(entry, accounts)
        assert result.kinds() == {ValidationErrorKind.TWO_SIDED_LINE}
        assert result.errors[0].account_id == chart["cash"].id


class TestLedgerPostingService:

    @pytest.fixture
    def service(self, account_repo):
        return LedgerPostingService(account_repo, InMemoryJournalEntryRepository(), cache=BalanceCache())

    def test_create_draft_then_post(self, service, chart):
        draft = service.create_draft(make_entry(
            JAN, "S-1", (chart["cash"], 100, 0), (chart["sales"], 0, 100), status=EntryStatus.DRAFT,
        ))
        posted = service.post(draft.id)
        assert posted.status is EntryStatus.POSTED
        assert service.get_entry(draft.id).is_posted

    def test_create_draft_requires_draft_status(self, service, chart):
        with pytest.raises(ValueError):
            service.create_draft(make_entry(JAN, "S-1", (chart["cash"], 100, 0), (chart["sales"], 0, 100)))

    def test_rejected_entry_carries_errors(self, service, chart):
        draft = service.create_draft(make_entry(
            JAN, "S-2", (chart["cash"], 100, 0), (chart["sales"], 0, 50), status=EntryStatus.DRAFT,
        ))
        with pytest.raises(EntryRejectedError) as exc_info:
            service.post(draft.id)
        assert [e.kind for e in exc_info.value.errors] == [ValidationErrorKind.UNBALANCED]
        assert service.get_entry(draft.id).status is EntryStatus.DRAFT

    def test_post_twice_fails(self, service, chart):
        draft = service.create_draft(make_entry(
            JAN, "S-3", (chart["cash"], 100, 0), (chart["sales"], 0, 100), status=EntryStatus.DRAFT,
        ))
        service.post(draft.id)
        with pytest.raises(ValueError, match="Only draft"):
            service.post(draft.id)

    def test_unknown_entry(self, service):
        with pytest.raises(EntryNotFoundError):
            service.post("nope")

    def test_post_uses_configured_tolerance(self, account_repo, chart):
        service = LedgerPostingService(
            account_repo, InMemoryJournalEntryRepository(), validator=EntryValidator(tolerance=Decimal("0.05")),
        )
        draft = service.create_draft(make_entry(
            JAN, "S-6", (chart["cash"], "100.03", 0), (chart["sales"], 0, "100.00"), status=EntryStatus.DRAFT,
        ))
        assert service.validate(draft.id).is_valid
        assert service.post(draft.id).status is EntryStatus.POSTED

    def test_post_and_void_invalidate_cache(self, service, chart, accounts):
        cash = chart["cash"].id
        period = Period(date(2024, 1, 1), date(2024, 1, 31))
        calculator = BalanceCalculator(accounts, cache=service.cache)

        def balance():
            return calculator.cached_balance(cash, service.journal_repo.get_posted_entries(), period)

        assert balance() == Decimal("0")
        draft = service.create_draft(make_entry(
            JAN, "S-4", (chart["cash"], 250, 0), (chart["sales"], 0, 250), status=EntryStatus.DRAFT,
        ))
        service.post(draft.id)
        assert (cash, period) not in service.cache
        assert balance() == Decimal("250")

        service.void(draft.id)
        assert (cash, period) not in service.cache
        assert balance() == Decimal("0")

    def test_stale_version_is_rejected(self, service, chart):
        draft = service.create_draft(make_entry(
            JAN, "S-5", (chart["cash"], 100, 0), (chart["sales"], 0, 100), status=EntryStatus.DRAFT,
        ))
        stale = service.get_entry(draft.id)
        service.post(draft.id)
        with pytest.raises(ConcurrentModificationError):
            service.journal_repo.save(stale.post(), expected_version=stale.version)
