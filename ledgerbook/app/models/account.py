from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledgerbook.app.core.database import Base


class AccountType(str, enum.Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class AccountNature(str, enum.Enum):
    """Side on which the account's normal balance sits."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class AccountSubtype(str, enum.Enum):
    """Balance-sheet bucket, fixed when the account is created."""

    CURRENT_ASSET = "CURRENT_ASSET"
    FIXED_ASSET = "FIXED_ASSET"
    SHORT_TERM_LIABILITY = "SHORT_TERM_LIABILITY"
    LONG_TERM_LIABILITY = "LONG_TERM_LIABILITY"


# Subtypes each account type may carry
SUBTYPES_BY_TYPE: dict[AccountType, frozenset[AccountSubtype]] = {
    AccountType.ASSET: frozenset({AccountSubtype.CURRENT_ASSET, AccountSubtype.FIXED_ASSET}),
    AccountType.LIABILITY: frozenset(
        {AccountSubtype.SHORT_TERM_LIABILITY, AccountSubtype.LONG_TERM_LIABILITY}
    ),
    AccountType.EQUITY: frozenset(),
    AccountType.INCOME: frozenset(),
    AccountType.EXPENSE: frozenset(),
}

_DEBIT_NORMAL = {AccountType.ASSET, AccountType.EXPENSE}


def default_nature(account_type: AccountType) -> AccountNature:
    if account_type in _DEBIT_NORMAL:
        return AccountNature.DEBIT
    return AccountNature.CREDIT


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(Enum(AccountType), nullable=False)
    nature: Mapped[AccountNature] = mapped_column(Enum(AccountNature), nullable=False)
    subtype: Mapped[AccountSubtype | None] = mapped_column(
        Enum(AccountSubtype), nullable=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    parent: Mapped[Account | None] = relationship(remote_side="Account.id")
    postings: Mapped[list["Posting"]] = relationship(  # noqa: F821
        back_populates="account", passive_deletes="all"
    )

    __table_args__ = (
        Index("ix_accounts_type", "account_type"),
        Index("ix_accounts_parent", "parent_id"),
        Index("ix_accounts_active", "is_active"),
    )
