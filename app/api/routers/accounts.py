"""
API Routers - Chart of accounts endpoints.
"""

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_chart_service
from app.application.dto.accounting_dto import AccountCreateDTO, AccountResponseDTO
from app.domain.services import ChartOfAccountsService
from app.domain.value_objects import AccountType

router = APIRouter(prefix="/api/v1/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponseDTO, status_code=status.HTTP_201_CREATED)
def create_account(
    dto: AccountCreateDTO,
    service: ChartOfAccountsService = Depends(get_chart_service),
):
    """
    Create an account.

    - Codes are unique
    - The category must belong to the account type
    - The parent must exist and must not create a cycle
    """
    account = service.create_account(dto.to_domain())
    return AccountResponseDTO.model_validate(account)


@router.get("", response_model=list[AccountResponseDTO])
def list_accounts(
    account_type: AccountType | None = Query(None, description="Filter by account type"),
    service: ChartOfAccountsService = Depends(get_chart_service),
):
    catalog = service.catalog()
    accounts = catalog.of_type(account_type) if account_type else catalog.accounts()
    return [AccountResponseDTO.model_validate(a) for a in accounts]


@router.get("/{account_id}", response_model=AccountResponseDTO)
def get_account(
    account_id: str,
    service: ChartOfAccountsService = Depends(get_chart_service),
):
    return AccountResponseDTO.model_validate(service.get_account(account_id))
