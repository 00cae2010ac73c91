"""Service layer for balances and financial reports.

Read-only: every function aggregates postings of ACTIVE entries and never
writes. Balances are computed as the raw ``debit - credit`` figure; sign
flipping for an account's normal side happens only where a report presents
amounts (``natural_balance`` in the trial balance, section amounts in the
balance sheet and income statement).
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ledgerbook.app.core.deadline import Deadline, check_deadline
from ledgerbook.app.models.accounting import (
    Account,
    AccountNature,
    AccountSubtype,
    AccountType,
    EntryStatus,
    JournalEntry,
    Posting,
)
from ledgerbook.app.schemas.journal import DateRange
from ledgerbook.app.schemas.reports import (
    AccountBalanceRow,
    BalanceSheetBucket,
    BalanceSheetLine,
    BalanceSheetReport,
    BalanceSheetSection,
    GeneralLedgerAccount,
    GeneralLedgerReport,
    GeneralLedgerRow,
    IncomeStatementLine,
    IncomeStatementReport,
    TrialBalanceReport,
    TrialBalanceRow,
)
from ledgerbook.app.services.accounts import get_account
from ledgerbook.app.services.validation import is_balanced

ZERO = Decimal("0")


# ── Helpers ──────────────────────────────────────────────────────────────────


def _dec(value: object) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def _scoped(
    query: Query,
    *,
    start: date | None = None,
    end: date | None = None,
    before: date | None = None,
    company_id: UUID | None = None,
) -> Query:
    """Restrict a postings query (already joined to JournalEntry).

    ``start``/``end`` are inclusive; ``before`` is exclusive.
    """
    query = query.filter(JournalEntry.status == EntryStatus.ACTIVE)
    if start is not None:
        query = query.filter(JournalEntry.entry_date >= start)
    if end is not None:
        query = query.filter(JournalEntry.entry_date <= end)
    if before is not None:
        query = query.filter(JournalEntry.entry_date < before)
    if company_id is not None:
        query = query.filter(JournalEntry.company_id == company_id)
    return query


def _bounds(date_range: DateRange | None) -> tuple[date | None, date | None]:
    if date_range is None:
        return None, None
    return date_range.start, date_range.end


def _account_totals(
    db: Session,
    *,
    start: date | None = None,
    end: date | None = None,
    before: date | None = None,
    company_id: UUID | None = None,
    account_types: Iterable[AccountType] | None = None,
    deadline: Deadline | None = None,
    report: str = "Report",
) -> list[tuple[Account, Decimal, Decimal]]:
    """Per-account (account, total_debit, total_credit) for accounts with movement."""
    query = (
        db.query(
            Account,
            func.coalesce(func.sum(Posting.debit), 0).label("total_debit"),
            func.coalesce(func.sum(Posting.credit), 0).label("total_credit"),
        )
        .join(Posting, Posting.account_id == Account.id)
        .join(JournalEntry, Posting.entry_id == JournalEntry.id)
    )
    query = _scoped(query, start=start, end=end, before=before, company_id=company_id)
    if account_types is not None:
        query = query.filter(Account.account_type.in_(list(account_types)))

    check_deadline(deadline, report)
    rows = query.group_by(Account.id).order_by(Account.code).all()

    result: list[tuple[Account, Decimal, Decimal]] = []
    for account, total_debit, total_credit in rows:
        check_deadline(deadline, report)
        debit, credit = _dec(total_debit), _dec(total_credit)
        if debit == ZERO and credit == ZERO:
            continue
        result.append((account, debit, credit))
    return result


def _net(
    db: Session,
    account_id: UUID,
    *,
    start: date | None = None,
    end: date | None = None,
    company_id: UUID | None = None,
) -> Decimal:
    query = (
        db.query(
            func.coalesce(func.sum(Posting.debit), 0).label("d"),
            func.coalesce(func.sum(Posting.credit), 0).label("c"),
        )
        .join(JournalEntry, Posting.entry_id == JournalEntry.id)
        .filter(Posting.account_id == account_id)
    )
    row = _scoped(query, start=start, end=end, company_id=company_id).one()
    return _dec(row.d) - _dec(row.c)


def _natural(balance: Decimal, nature: AccountNature) -> Decimal:
    return balance if nature == AccountNature.DEBIT else -balance


# ── Balances ─────────────────────────────────────────────────────────────────


def account_balance(
    db: Session,
    account_id: UUID,
    date_range: DateRange | None = None,
    company_id: UUID | None = None,
) -> Decimal:
    """Raw ``sum(debit) - sum(credit)`` for one account.

    Positive means a debit balance whatever the account's nature; callers
    that present the figure decide whether to flip it.
    """
    account = get_account(db, account_id)
    start, end = _bounds(date_range)
    return _net(db, account.id, start=start, end=end, company_id=company_id)


def account_balances(
    db: Session,
    company_id: UUID | None = None,
    date_range: DateRange | None = None,
    deadline: Deadline | None = None,
) -> list[AccountBalanceRow]:
    start, end = _bounds(date_range)
    return [
        AccountBalanceRow(
            account_id=account.id,
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            nature=account.nature,
            total_debit=debit,
            total_credit=credit,
            balance=debit - credit,
        )
        for account, debit, credit in _account_totals(
            db, start=start, end=end, company_id=company_id,
            deadline=deadline, report="Account balances",
        )
    ]


# ── Trial Balance ────────────────────────────────────────────────────────────


def trial_balance(
    db: Session,
    date_range: DateRange | None = None,
    company_id: UUID | None = None,
    deadline: Deadline | None = None,
) -> TrialBalanceReport:
    start, end = _bounds(date_range)
    rows: list[TrialBalanceRow] = []
    total_debit = total_credit = ZERO

    for account, debit, credit in _account_totals(
        db, start=start, end=end, company_id=company_id,
        deadline=deadline, report="Trial balance",
    ):
        balance = debit - credit
        rows.append(
            TrialBalanceRow(
                account_id=account.id,
                code=account.code,
                name=account.name,
                account_type=account.account_type,
                nature=account.nature,
                total_debit=debit,
                total_credit=credit,
                balance=balance,
                natural_balance=_natural(balance, account.nature),
            )
        )
        total_debit += debit
        total_credit += credit

    total_balance = sum((r.balance for r in rows), ZERO)
    return TrialBalanceReport(
        from_date=start,
        to_date=end,
        company_id=company_id,
        rows=rows,
        total_debit=total_debit,
        total_credit=total_credit,
        total_balance=total_balance,
        is_balanced=is_balanced(total_balance, ZERO),
    )


# ── General Ledger ───────────────────────────────────────────────────────────


def _ledger_section(account: Account, opening: Decimal) -> GeneralLedgerAccount:
    return GeneralLedgerAccount(
        account_id=account.id,
        code=account.code,
        name=account.name,
        account_type=account.account_type,
        nature=account.nature,
        opening_balance=opening,
        rows=[],
        total_debit=ZERO,
        total_credit=ZERO,
        closing_balance=opening,
    )


def general_ledger(
    db: Session,
    account_id: UUID | None = None,
    date_range: DateRange | None = None,
    company_id: UUID | None = None,
    deadline: Deadline | None = None,
) -> GeneralLedgerReport:
    """Chronological postings per account with a running balance.

    Rows are ordered by (entry date, sequence number, line number); the
    running balance is the prefix sum of ``debit - credit`` over the rows
    in range. ``opening_balance`` carries the movement before the range
    and ``closing_balance`` adds the two.
    """
    report = "General ledger"
    start, end = _bounds(date_range)
    requested = get_account(db, account_id) if account_id is not None else None

    query = (
        db.query(Posting, JournalEntry, Account)
        .join(JournalEntry, Posting.entry_id == JournalEntry.id)
        .join(Account, Posting.account_id == Account.id)
    )
    query = _scoped(query, start=start, end=end, company_id=company_id)
    if requested is not None:
        query = query.filter(Posting.account_id == requested.id)

    check_deadline(deadline, report)
    rows = query.order_by(
        Account.code,
        JournalEntry.entry_date,
        JournalEntry.sequence_number,
        Posting.line_no,
    ).all()

    # Movement before the window, per account
    openings: dict[UUID, Decimal] = {}
    if start is not None:
        for account, debit, credit in _account_totals(
            db, before=start, company_id=company_id,
            deadline=deadline, report=report,
        ):
            openings[account.id] = debit - credit

    sections: list[GeneralLedgerAccount] = []
    current: GeneralLedgerAccount | None = None
    running = ZERO

    for posting, entry, account in rows:
        check_deadline(deadline, report)
        if current is None or current.account_id != account.id:
            current = _ledger_section(account, openings.get(account.id, ZERO))
            sections.append(current)
            running = ZERO

        debit, credit = _dec(posting.debit), _dec(posting.credit)
        running += debit - credit
        current.rows.append(
            GeneralLedgerRow(
                entry_id=entry.id,
                sequence_number=entry.sequence_number,
                entry_date=entry.entry_date,
                memo=entry.memo,
                reference=entry.reference,
                line_no=posting.line_no,
                debit=debit,
                credit=credit,
                running_balance=running,
            )
        )
        current.total_debit += debit
        current.total_credit += credit
        current.closing_balance = current.opening_balance + running

    if requested is not None and not sections:
        sections.append(_ledger_section(requested, openings.get(requested.id, ZERO)))

    return GeneralLedgerReport(
        from_date=start,
        to_date=end,
        company_id=company_id,
        accounts=sections,
    )


# ── Balance Sheet ────────────────────────────────────────────────────────────


def _section(bucket: BalanceSheetBucket, lines: list[BalanceSheetLine]) -> BalanceSheetSection:
    return BalanceSheetSection(
        bucket=bucket,
        lines=lines,
        subtotal=sum((line.amount for line in lines), ZERO),
    )


def balance_sheet(
    db: Session,
    as_of_date: date | None = None,
    company_id: UUID | None = None,
    deadline: Deadline | None = None,
) -> BalanceSheetReport:
    """Cumulative position from the first entry up to ``as_of_date``.

    Assets are read as ``debit - credit``; liabilities and equity as
    ``credit - debit``. Income less expense to date is carried into equity
    as retained earnings so the two sides can be compared.
    """
    buckets: dict[BalanceSheetBucket, list[BalanceSheetLine]] = {b: [] for b in BalanceSheetBucket}
    total_income = total_expense = ZERO

    for account, debit, credit in _account_totals(
        db, end=as_of_date, company_id=company_id,
        deadline=deadline, report="Balance sheet",
    ):
        raw = debit - credit
        if account.account_type == AccountType.INCOME:
            total_income -= raw
            continue
        if account.account_type == AccountType.EXPENSE:
            total_expense += raw
            continue

        if account.account_type == AccountType.ASSET:
            amount = raw
            bucket = (
                BalanceSheetBucket.FIXED_ASSETS
                if account.subtype == AccountSubtype.FIXED_ASSET
                else BalanceSheetBucket.CURRENT_ASSETS
            )
        elif account.account_type == AccountType.LIABILITY:
            amount = -raw
            bucket = (
                BalanceSheetBucket.LONG_TERM_LIABILITIES
                if account.subtype == AccountSubtype.LONG_TERM_LIABILITY
                else BalanceSheetBucket.SHORT_TERM_LIABILITIES
            )
        else:
            amount = -raw
            bucket = BalanceSheetBucket.EQUITY

        if amount == ZERO:
            continue
        buckets[bucket].append(
            BalanceSheetLine(
                account_id=account.id,
                code=account.code,
                name=account.name,
                amount=amount,
            )
        )

    current_assets = _section(BalanceSheetBucket.CURRENT_ASSETS, buckets[BalanceSheetBucket.CURRENT_ASSETS])
    fixed_assets = _section(BalanceSheetBucket.FIXED_ASSETS, buckets[BalanceSheetBucket.FIXED_ASSETS])
    short_term = _section(
        BalanceSheetBucket.SHORT_TERM_LIABILITIES, buckets[BalanceSheetBucket.SHORT_TERM_LIABILITIES]
    )
    long_term = _section(
        BalanceSheetBucket.LONG_TERM_LIABILITIES, buckets[BalanceSheetBucket.LONG_TERM_LIABILITIES]
    )
    equity = _section(BalanceSheetBucket.EQUITY, buckets[BalanceSheetBucket.EQUITY])

    retained_earnings = total_income - total_expense
    total_assets = current_assets.subtotal + fixed_assets.subtotal
    total_liabilities = short_term.subtotal + long_term.subtotal
    total_equity = equity.subtotal + retained_earnings
    total_liabilities_and_equity = total_liabilities + total_equity

    return BalanceSheetReport(
        as_of_date=as_of_date,
        company_id=company_id,
        current_assets=current_assets,
        fixed_assets=fixed_assets,
        total_assets=total_assets,
        short_term_liabilities=short_term,
        long_term_liabilities=long_term,
        total_liabilities=total_liabilities,
        equity=equity,
        retained_earnings=retained_earnings,
        total_equity=total_equity,
        total_liabilities_and_equity=total_liabilities_and_equity,
        is_balanced=is_balanced(total_assets, total_liabilities_and_equity),
    )


# ── Income Statement ────────────────────────────────────────────────────────


def income_statement(
    db: Session,
    date_range: DateRange | None = None,
    company_id: UUID | None = None,
    deadline: Deadline | None = None,
) -> IncomeStatementReport:
    start, end = _bounds(date_range)
    income: list[IncomeStatementLine] = []
    expenses: list[IncomeStatementLine] = []

    for account, debit, credit in _account_totals(
        db, start=start, end=end, company_id=company_id,
        account_types=(AccountType.INCOME, AccountType.EXPENSE),
        deadline=deadline, report="Income statement",
    ):
        if account.account_type == AccountType.INCOME:
            income.append(IncomeStatementLine(
                account_id=account.id, code=account.code, name=account.name,
                amount=credit - debit,
            ))
        else:
            expenses.append(IncomeStatementLine(
                account_id=account.id, code=account.code, name=account.name,
                amount=debit - credit,
            ))

    total_income = sum((line.amount for line in income), ZERO)
    total_expense = sum((line.amount for line in expenses), ZERO)

    return IncomeStatementReport(
        from_date=start,
        to_date=end,
        company_id=company_id,
        income=income,
        total_income=total_income,
        expenses=expenses,
        total_expense=total_expense,
        net_income=total_income - total_expense,
    )
