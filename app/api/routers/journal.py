"""
API Routers - Journal entry lifecycle endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_journal_repository, get_posting_service
from app.application.dto.accounting_dto import (
    JournalEntryCreateDTO,
    JournalEntryResponseDTO,
    ValidationResultDTO,
)
from app.domain.services import LedgerPostingService
from app.domain.value_objects import EntryStatus, Period
from app.infrastructure.database.repositories import SqlJournalEntryRepository

router = APIRouter(prefix="/api/v1/journal-entries", tags=["Journal entries"])


@router.post("", response_model=JournalEntryResponseDTO, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    dto: JournalEntryCreateDTO,
    service: LedgerPostingService = Depends(get_posting_service),
):
    """
    Create a draft journal entry.

    Drafts are stored as given; validation happens on /validate and /post.
    """
    entry = service.create_draft(dto.to_domain())
    return JournalEntryResponseDTO.model_validate(entry)


@router.get("", response_model=list[JournalEntryResponseDTO])
def list_journal_entries(
    start_date: date | None = None,
    end_date: date | None = None,
    entry_status: EntryStatus | None = Query(None, alias="status"),
    journal_repo: SqlJournalEntryRepository = Depends(get_journal_repository),
):
    """List entries, optionally filtered by date window and status."""
    period = None
    if start_date or end_date:
        period = Period(start_date or date.min, end_date or date.max)
    entries = journal_repo.list_entries(period=period, status=entry_status)
    return [JournalEntryResponseDTO.model_validate(e) for e in entries]


@router.get("/{entry_id}", response_model=JournalEntryResponseDTO)
def get_journal_entry(
    entry_id: str,
    service: LedgerPostingService = Depends(get_posting_service),
):
    return JournalEntryResponseDTO.model_validate(service.get_entry(entry_id))


@router.post("/{entry_id}/validate", response_model=ValidationResultDTO)
def validate_journal_entry(
    entry_id: str,
    service: LedgerPostingService = Depends(get_posting_service),
):
    """Report every validation problem at once; never changes the entry."""
    return ValidationResultDTO.model_validate(service.validate(entry_id))


@router.post("/{entry_id}/post", response_model=JournalEntryResponseDTO)
def post_journal_entry(
    entry_id: str,
    service: LedgerPostingService = Depends(get_posting_service),
):
    return JournalEntryResponseDTO.model_validate(service.post(entry_id))


@router.post("/{entry_id}/void", response_model=JournalEntryResponseDTO)
def void_journal_entry(
    entry_id: str,
    service: LedgerPostingService = Depends(get_posting_service),
):
    return JournalEntryResponseDTO.model_validate(service.void(entry_id))
