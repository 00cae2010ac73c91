from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.app.api.deps import get_principal
from ledgerbook.app.core.database import get_db
from ledgerbook.app.schemas.accounts import AccountCreate, AccountOut, AccountUpdate
from ledgerbook.app.services.accounts import (
    create_account,
    deactivate_account,
    delete_account,
    get_account,
    list_accounts,
    update_account,
)

router = APIRouter()


@router.get("", response_model=list[AccountOut])
def get_accounts(
    active_only: bool = True,
    db: Session = Depends(get_db),
) -> list[AccountOut]:
    return list_accounts(db, active_only=active_only)


@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def post_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    principal: str = Depends(get_principal),
) -> AccountOut:
    return create_account(db, payload, actor=principal)


@router.get("/{account_id}", response_model=AccountOut)
def read_account(
    account_id: UUID,
    db: Session = Depends(get_db),
) -> AccountOut:
    return get_account(db, account_id)


@router.patch("/{account_id}", response_model=AccountOut)
def patch_account(
    account_id: UUID,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    principal: str = Depends(get_principal),
) -> AccountOut:
    return update_account(db, account_id, payload, actor=principal)


@router.post("/{account_id}/deactivate", response_model=AccountOut)
def post_deactivate(
    account_id: UUID,
    db: Session = Depends(get_db),
    principal: str = Depends(get_principal),
) -> AccountOut:
    return deactivate_account(db, account_id, actor=principal)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_account(
    account_id: UUID,
    db: Session = Depends(get_db),
    principal: str = Depends(get_principal),
) -> None:
    delete_account(db, account_id, actor=principal)
