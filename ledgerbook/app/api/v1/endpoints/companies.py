from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerbook.app.api.deps import get_principal
from ledgerbook.app.core.database import get_db
from ledgerbook.app.schemas.companies import CompanyCreate, CompanyOut
from ledgerbook.app.services.companies import create_company, list_companies

router = APIRouter()


@router.get("", response_model=list[CompanyOut])
def get_companies(
    active_only: bool = True,
    db: Session = Depends(get_db),
) -> list[CompanyOut]:
    return list_companies(db, active_only=active_only)


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
def post_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    principal: str = Depends(get_principal),
) -> CompanyOut:
    return create_company(db, payload, actor=principal)
