from __future__ import annotations

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from ledgerbook.app.core.database import Base

JOURNAL_SEQUENCE = "journal_entry"


class LedgerSequence(Base):
    """Named counter row, incremented in place under a row lock."""

    __tablename__ = "ledger_sequences"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
