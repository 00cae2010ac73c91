from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ledgerbook.app.models.accounting import EntryStatus


class DateRange(BaseModel):
    """Inclusive date window; either bound may be open."""

    start: date | None = None
    end: date | None = None

    @model_validator(mode="after")
    def start_before_end(self) -> DateRange:
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class PostingCreate(BaseModel):
    account_id: UUID
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")


class JournalEntryCreate(BaseModel):
    """Proposed entry.

    Line count, amounts, accounts and balance are checked by
    services/validation.py so that every rule raises its own ledger error.
    """

    entry_date: date
    memo: str
    reference: str | None = None
    company_id: UUID | None = None
    postings: list[PostingCreate]

    @field_validator("memo")
    @classmethod
    def memo_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Memo must not be empty")
        return v.strip()


class EntryFilter(BaseModel):
    company_id: UUID | None = None
    date_range: DateRange | None = None
    include_voided: bool = False


class PostingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    line_no: int
    account_id: UUID
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal


class JournalEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sequence_number: int
    entry_date: date
    memo: str
    reference: str | None
    total_debit: Decimal
    total_credit: Decimal
    posted_by: str
    company_id: UUID | None
    status: EntryStatus
    voided_at: datetime | None
    voided_by: str | None
    created_at: datetime | None = None
    postings: list[PostingOut]
