"""Infrastructure layer."""

from app.infrastructure.database import SessionLocal, get_db, init_db
from app.infrastructure.database.models import Account, JournalEntry, JournalEntryLine
from app.infrastructure.database.repositories import SqlAccountRepository, SqlJournalEntryRepository
