from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ledgerbook.app.api.deps import get_date_range, get_principal
from ledgerbook.app.core.database import get_db
from ledgerbook.app.schemas.journal import (
    DateRange,
    EntryFilter,
    JournalEntryCreate,
    JournalEntryOut,
)
from ledgerbook.app.services.journal import (
    get_entry,
    list_entries,
    record_entry,
    void_or_delete_entry,
)

router = APIRouter()


@router.get("/entries", response_model=list[JournalEntryOut])
def get_entries(
    company_id: UUID | None = None,
    include_voided: bool = False,
    date_range: DateRange | None = Depends(get_date_range),
    db: Session = Depends(get_db),
) -> list[JournalEntryOut]:
    filters = EntryFilter(
        company_id=company_id,
        date_range=date_range,
        include_voided=include_voided,
    )
    return list_entries(db, filters)


@router.post("/entries", response_model=JournalEntryOut, status_code=status.HTTP_201_CREATED)
def post_entry(
    payload: JournalEntryCreate,
    db: Session = Depends(get_db),
    principal: str = Depends(get_principal),
) -> JournalEntryOut:
    entry = record_entry(db, payload, posted_by=principal)
    return get_entry(db, entry.id)


@router.get("/entries/{entry_id}", response_model=JournalEntryOut)
def read_entry(
    entry_id: UUID,
    db: Session = Depends(get_db),
) -> JournalEntryOut:
    return get_entry(db, entry_id)


@router.delete("/entries/{entry_id}", response_model=JournalEntryOut)
def remove_entry(
    entry_id: UUID,
    hard: bool = False,
    db: Session = Depends(get_db),
    principal: str = Depends(get_principal),
) -> JournalEntryOut | Response:
    entry = void_or_delete_entry(db, entry_id, actor=principal, hard=hard)
    if entry is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return get_entry(db, entry.id)
