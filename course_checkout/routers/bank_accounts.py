"""Bank account administration endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from course_checkout.core.auth import CurrentUser, require_admin
from course_checkout.core.database import get_db
from course_checkout.models.bank_account import BankAccount
from course_checkout.repositories.bank_account_repository import BankAccountRepository
from course_checkout.schemas.bank_account import (
    BankAccountCreate,
    BankAccountReorderRequest,
    BankAccountResponse,
    BankAccountUpdate,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[BankAccountResponse],
    summary="List bank accounts",
    responses={401: {"description": "Unauthorized"}, 403: {"description": "Forbidden"}},
)
async def list_bank_accounts(
    is_active: bool | None = None,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[BankAccount]:
    """List bank accounts in the order checkout shows them."""
    return BankAccountRepository(db).get_all(is_active=is_active)


@router.post(
    "/",
    response_model=BankAccountResponse,
    status_code=201,
    summary="Create bank account",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        422: {"description": "Validation error"},
    },
)
async def create_bank_account(
    data: BankAccountCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> BankAccount:
    return BankAccountRepository(db).create(data)


@router.put(
    "/reorder",
    response_model=list[BankAccountResponse],
    summary="Reorder bank accounts",
    responses={404: {"description": "Bank account not found"}},
)
async def reorder_bank_accounts(
    data: BankAccountReorderRequest,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> list[BankAccount]:
    """Set the display order from the position of each id."""
    try:
        return BankAccountRepository(db).reorder(data.account_ids)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None


@router.get(
    "/{account_id}",
    response_model=BankAccountResponse,
    summary="Get bank account",
    responses={404: {"description": "Bank account not found"}},
)
async def get_bank_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> BankAccount:
    account = BankAccountRepository(db).get_by_id(account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Bank account not found")
    return account


@router.put(
    "/{account_id}",
    response_model=BankAccountResponse,
    summary="Update bank account",
    responses={
        404: {"description": "Bank account not found"},
        422: {"description": "Validation error"},
    },
)
async def update_bank_account(
    account_id: UUID,
    data: BankAccountUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> BankAccount:
    """Update a bank account. Orders keep pointing at the same account."""
    account = BankAccountRepository(db).update(account_id, data)
    if not account:
        raise HTTPException(status_code=404, detail="Bank account not found")
    return account


@router.post(
    "/{account_id}/deactivate",
    response_model=BankAccountResponse,
    summary="Deactivate bank account",
    responses={404: {"description": "Bank account not found"}},
)
async def deactivate_bank_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> BankAccount:
    account = BankAccountRepository(db).set_active(account_id, False)
    if not account:
        raise HTTPException(status_code=404, detail="Bank account not found")
    return account


@router.post(
    "/{account_id}/activate",
    response_model=BankAccountResponse,
    summary="Reactivate bank account",
    responses={404: {"description": "Bank account not found"}},
)
async def activate_bank_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> BankAccount:
    account = BankAccountRepository(db).set_active(account_id, True)
    if not account:
        raise HTTPException(status_code=404, detail="Bank account not found")
    return account


@router.delete(
    "/{account_id}",
    status_code=204,
    summary="Delete bank account",
    responses={
        404: {"description": "Bank account not found"},
        409: {"description": "Bank account is referenced by orders"},
    },
)
async def delete_bank_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> None:
    """Delete an account no order chose. Deactivate it otherwise."""
    try:
        deleted = BankAccountRepository(db).delete(account_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    if not deleted:
        raise HTTPException(status_code=404, detail="Bank account not found")
