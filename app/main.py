"""
Main FastAPI application - Double-entry ledger and financial statements.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routers import accounts, journal, reports
from app.core.config import get_settings
from app.core.logging_config import configure_logging, get_logger
from app.domain.exceptions import (
    AccountNotFoundError,
    CatalogCycleError,
    ConcurrentModificationError,
    EntryNotFoundError,
    EntryRejectedError,
    RetryableError,
)
from app.infrastructure.database import init_db

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan - startup and shutdown events."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_db()
    logger.info("ledger_api_started", extra={"database_type": settings.database_type})
    yield


app = FastAPI(
    title="Ledger API",
    description="""
## Double-entry ledger and financial statements

### Features:
- **Chart of accounts** with categories and parent hierarchy
- **Journal entries**: draft, validate, post, void
- **Statements**: trial balance, balance sheet, income statement, cash flow (indirect)
- **Analysis**: bank reconciliation, financial ratios, progressive tax

### Rules:
- Total debits equal total credits for every posted entry
- Posted entries are never edited; voiding removes them from balances
- Every validation problem is reported at once
    """,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(accounts.router)
app.include_router(journal.router)
app.include_router(reports.router)


@app.get("/")
def root():
    return {
        "name": "Ledger API",
        "version": "0.1.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


def _error(status_code: int, exc: Exception, **extra) -> JSONResponse:
    content = {"detail": str(exc), "code": getattr(exc, "code", None), **extra}
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle invalid input and invalid lifecycle transitions."""
    return _error(400, exc)


@app.exception_handler(CatalogCycleError)
async def catalog_cycle_handler(request: Request, exc: CatalogCycleError):
    return _error(400, exc)


@app.exception_handler(EntryRejectedError)
async def entry_rejected_handler(request: Request, exc: EntryRejectedError):
    errors = [
        {
            "kind": e.kind.value,
            "message": e.message,
            "account_id": e.account_id,
            "line_index": e.line_index,
        }
        for e in exc.errors
    ]
    return _error(422, exc, errors=errors)


@app.exception_handler(EntryNotFoundError)
@app.exception_handler(AccountNotFoundError)
async def not_found_handler(request: Request, exc: Exception):
    return _error(404, exc)


@app.exception_handler(ConcurrentModificationError)
async def conflict_handler(request: Request, exc: ConcurrentModificationError):
    return _error(409, exc)


@app.exception_handler(RetryableError)
async def retryable_handler(request: Request, exc: RetryableError):
    """Transient store failure; clients may retry."""
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "code": exc.code},
        headers={"Retry-After": "1"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
