"""
Bank account API routes.

Owner is always the authenticated caller; ids of other owners' accounts
answer 404.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from tresorier.application.use_cases.add_bank_account import AddBankAccount
from tresorier.application.use_cases.get_bank_account import (
    GetBankAccount,
    ListBankAccounts,
)
from tresorier.application.use_cases.remove_bank_account import (
    RemoveBankAccount,
)
from tresorier.application.use_cases.set_primary_bank_account import (
    SetPrimaryBankAccount,
)
from tresorier.application.use_cases.update_bank_account import (
    UpdateBankAccount,
)
from tresorier.di.dependencies import (
    get_add_bank_account,
    get_get_bank_account,
    get_list_bank_accounts,
    get_remove_bank_account,
    get_set_primary_bank_account,
    get_update_bank_account,
)
from tresorier.domain.entities.account import Account
from tresorier.presentation.api.middleware.auth import get_current_account
from tresorier.presentation.schemas.bank_account_schemas import (
    BankAccountCreateRequest,
    BankAccountResponse,
    BankAccountUpdateRequest,
)

router = APIRouter(prefix="/bank-accounts", tags=["Bank Accounts"])


@router.post(
    "",
    response_model=BankAccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add bank account",
)
async def add_bank_account(
    request: BankAccountCreateRequest,
    account: Account = Depends(get_current_account),
    use_case: AddBankAccount = Depends(get_add_bank_account),
) -> BankAccountResponse:
    """Register an unverified bank account; the first one becomes primary."""
    bank_account = await use_case.execute(
        owner_id=account.id,
        bank_name=request.bank_name,
        account_holder_name=request.account_holder_name,
        account_number=request.account_number,
        ifsc_code=request.ifsc_code,
        account_type=request.account_type,
    )
    return BankAccountResponse.from_entity(bank_account)


@router.get(
    "",
    response_model=List[BankAccountResponse],
    summary="List bank accounts",
)
async def list_bank_accounts(
    account: Account = Depends(get_current_account),
    use_case: ListBankAccounts = Depends(get_list_bank_accounts),
) -> List[BankAccountResponse]:
    """Primary first, then newest first."""
    accounts = await use_case.execute(account.id)
    return [BankAccountResponse.from_entity(a) for a in accounts]


@router.get(
    "/{bank_account_id}",
    response_model=BankAccountResponse,
    summary="Get bank account",
)
async def get_bank_account(
    bank_account_id: UUID,
    account: Account = Depends(get_current_account),
    use_case: GetBankAccount = Depends(get_get_bank_account),
) -> BankAccountResponse:
    bank_account = await use_case.execute(account.id, bank_account_id)
    return BankAccountResponse.from_entity(bank_account)


@router.patch(
    "/{bank_account_id}",
    response_model=BankAccountResponse,
    summary="Update bank account",
)
async def update_bank_account(
    bank_account_id: UUID,
    request: BankAccountUpdateRequest,
    account: Account = Depends(get_current_account),
    use_case: UpdateBankAccount = Depends(get_update_bank_account),
) -> BankAccountResponse:
    """Edit details; a new account number or IFSC resets verification."""
    bank_account = await use_case.execute(
        owner_id=account.id,
        bank_account_id=bank_account_id,
        **request.model_dump(exclude_unset=True),
    )
    return BankAccountResponse.from_entity(bank_account)


@router.post(
    "/{bank_account_id}/primary",
    response_model=BankAccountResponse,
    summary="Make primary",
)
async def set_primary_bank_account(
    bank_account_id: UUID,
    account: Account = Depends(get_current_account),
    use_case: SetPrimaryBankAccount = Depends(get_set_primary_bank_account),
) -> BankAccountResponse:
    bank_account = await use_case.execute(account.id, bank_account_id)
    return BankAccountResponse.from_entity(bank_account)


@router.delete(
    "/{bank_account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove bank account",
)
async def remove_bank_account(
    bank_account_id: UUID,
    account: Account = Depends(get_current_account),
    use_case: RemoveBankAccount = Depends(get_remove_bank_account),
) -> Response:
    """Refused with 409 while a pending withdrawal targets the account."""
    await use_case.execute(account.id, bank_account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
