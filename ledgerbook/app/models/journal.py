from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerbook.app.core.database import Base


class EntryStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    VOIDED = "VOIDED"


class JournalEntry(Base):
    """Journal entry header.

    Double-entry integrity (sum(debits) == sum(credits)) spans child rows and
    cannot be expressed as a column constraint. It is enforced by
    services/validation.py before the entry reaches the store, and the
    totals are persisted alongside the header inside the same transaction
    as the postings.
    """

    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sequence_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    memo: Mapped[str] = mapped_column(Text, nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    posted_by: Mapped[str] = mapped_column(String(100), nullable=False)
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="RESTRICT"), nullable=True
    )
    status: Mapped[EntryStatus] = mapped_column(
        Enum(EntryStatus), nullable=False, default=EntryStatus.ACTIVE
    )
    voided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    voided_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    postings: Mapped[list[Posting]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Posting.line_no",
    )

    __table_args__ = (
        UniqueConstraint("sequence_number", name="uq_journal_entries_sequence_number"),
        Index("ix_journal_entries_date", "entry_date"),
        Index("ix_journal_entries_company_date", "company_id", "entry_date"),
        Index("ix_journal_entries_status", "status"),
    )


class Posting(Base):
    """A single debit and/or credit line within a journal entry.

    Both amounts are non-negative and at least one is positive; CHECK
    constraints enforce this at the DB level.
    """

    __tablename__ = "postings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    entry_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    debit: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )

    entry: Mapped[JournalEntry] = relationship(back_populates="postings")
    account: Mapped["Account"] = relationship(back_populates="postings")  # noqa: F821

    @property
    def account_code(self) -> str:
        return self.account.code

    @property
    def account_name(self) -> str:
        return self.account.name

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_posting_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_posting_credit_non_negative"),
        CheckConstraint("debit > 0 OR credit > 0", name="ck_posting_not_empty"),
        UniqueConstraint("entry_id", "line_no", name="uq_postings_entry_line"),
        Index("ix_postings_entry", "entry_id"),
        Index("ix_postings_account", "account_id"),
    )
