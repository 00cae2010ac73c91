"""Journal entry validation.

Pure and side-effect free: the caller resolves the referenced accounts
(services/accounts.resolve_accounts) and hands them in, so every rule can be
exercised without a database.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledgerbook.app.core.exceptions import (
    EmptyLineError,
    InsufficientLinesError,
    InvalidAmountError,
    UnbalancedEntryError,
    UnknownAccountError,
)
from ledgerbook.app.models.accounting import Account
from ledgerbook.app.schemas.journal import JournalEntryCreate

ZERO = Decimal("0")
# Absorbs representation rounding; not a business tolerance
BALANCE_TOLERANCE = Decimal("0.01")
MIN_LINES = 2
# Amounts are stored as Numeric(20, 4). SQLite keeps NUMERIC as a double,
# which only round-trips 15 significant digits, so with 4 decimal places
# the integer part is limited to 11 digits on every backend.
AMOUNT_QUANTUM = Decimal("0.0001")
MAX_AMOUNT = Decimal("99999999999.9999")


@dataclass(frozen=True)
class ValidatedLine:
    line_no: int
    account_id: UUID
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class ValidatedEntry:
    entry_date: date
    memo: str
    reference: str | None
    company_id: UUID | None
    posted_by: str
    lines: tuple[ValidatedLine, ...]
    total_debit: Decimal
    total_credit: Decimal


def is_balanced(total_debit: Decimal, total_credit: Decimal) -> bool:
    return abs(total_debit - total_credit) <= BALANCE_TOLERANCE


def _storable(amount: Decimal) -> bool:
    if amount > MAX_AMOUNT:
        return False
    return amount == amount.quantize(AMOUNT_QUANTUM)


def validate_entry(
    entry: JournalEntryCreate,
    accounts: Mapping[UUID, Account],
    *,
    posted_by: str,
) -> ValidatedEntry:
    """Check a proposed entry and return it with its computed totals.

    Rules run in a fixed order: line count, per-line amounts (empty, then
    negative, then out of storable range), account resolution, then
    balance.
    """
    if len(entry.postings) < MIN_LINES:
        raise InsufficientLinesError(len(entry.postings))

    for line_no, p in enumerate(entry.postings, start=1):
        if p.debit <= ZERO and p.credit <= ZERO:
            raise EmptyLineError(line_no)
        if p.debit < ZERO or p.credit < ZERO:
            raise InvalidAmountError(line_no, p.debit, p.credit)
        if not (_storable(p.debit) and _storable(p.credit)):
            raise InvalidAmountError(
                line_no, p.debit, p.credit,
                f"an amount that does not fit {MAX_AMOUNT} with 4 decimal places",
            )

    for p in entry.postings:
        account = accounts.get(p.account_id)
        if account is None:
            raise UnknownAccountError(p.account_id)
        if not account.is_active:
            raise UnknownAccountError(p.account_id, "inactive")

    total_debit = sum((p.debit for p in entry.postings), ZERO)
    total_credit = sum((p.credit for p in entry.postings), ZERO)
    if total_debit > MAX_AMOUNT or total_credit > MAX_AMOUNT:
        raise InvalidAmountError(
            None, total_debit, total_credit, f"a total above {MAX_AMOUNT}"
        )
    if not is_balanced(total_debit, total_credit):
        raise UnbalancedEntryError(total_debit, total_credit)

    return ValidatedEntry(
        entry_date=entry.entry_date,
        memo=entry.memo,
        reference=entry.reference,
        company_id=entry.company_id,
        posted_by=posted_by,
        lines=tuple(
            ValidatedLine(
                line_no=line_no,
                account_id=p.account_id,
                debit=p.debit,
                credit=p.credit,
            )
            for line_no, p in enumerate(entry.postings, start=1)
        ),
        total_debit=total_debit,
        total_credit=total_credit,
    )
