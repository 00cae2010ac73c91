"""Typed report models returned by services/reports.py."""
from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from ledgerbook.app.models.accounting import AccountNature, AccountType


# ── Account balances ─────────────────────────────────────────────────────────

class AccountBalanceRow(BaseModel):
    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


class AccountBalanceOut(BaseModel):
    account_id: UUID
    code: str
    balance: Decimal


# ── Trial Balance ────────────────────────────────────────────────────────────

class TrialBalanceRow(BaseModel):
    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature
    total_debit: Decimal
    total_credit: Decimal
    # debit - credit
    balance: Decimal
    # balance as read on the account's normal side
    natural_balance: Decimal


class TrialBalanceReport(BaseModel):
    from_date: date | None
    to_date: date | None
    company_id: UUID | None
    rows: list[TrialBalanceRow]
    total_debit: Decimal
    total_credit: Decimal
    total_balance: Decimal
    is_balanced: bool


# ── General Ledger ───────────────────────────────────────────────────────────

class GeneralLedgerRow(BaseModel):
    entry_id: UUID
    sequence_number: int
    entry_date: date
    memo: str
    reference: str | None
    line_no: int
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


class GeneralLedgerAccount(BaseModel):
    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature
    opening_balance: Decimal
    rows: list[GeneralLedgerRow]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal


class GeneralLedgerReport(BaseModel):
    from_date: date | None
    to_date: date | None
    company_id: UUID | None
    accounts: list[GeneralLedgerAccount]


# ── Balance Sheet ────────────────────────────────────────────────────────────

class BalanceSheetBucket(str, enum.Enum):
    CURRENT_ASSETS = "CURRENT_ASSETS"
    FIXED_ASSETS = "FIXED_ASSETS"
    SHORT_TERM_LIABILITIES = "SHORT_TERM_LIABILITIES"
    LONG_TERM_LIABILITIES = "LONG_TERM_LIABILITIES"
    EQUITY = "EQUITY"


class BalanceSheetLine(BaseModel):
    account_id: UUID | None
    code: str | None
    name: str
    amount: Decimal


class BalanceSheetSection(BaseModel):
    bucket: BalanceSheetBucket
    lines: list[BalanceSheetLine]
    subtotal: Decimal


class BalanceSheetReport(BaseModel):
    as_of_date: date | None
    company_id: UUID | None
    current_assets: BalanceSheetSection
    fixed_assets: BalanceSheetSection
    total_assets: Decimal
    short_term_liabilities: BalanceSheetSection
    long_term_liabilities: BalanceSheetSection
    total_liabilities: Decimal
    equity: BalanceSheetSection
    retained_earnings: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


# ── Income Statement ─────────────────────────────────────────────────────────

class IncomeStatementLine(BaseModel):
    account_id: UUID
    code: str
    name: str
    amount: Decimal


class IncomeStatementReport(BaseModel):
    from_date: date | None
    to_date: date | None
    company_id: UUID | None
    income: list[IncomeStatementLine]
    total_income: Decimal
    expenses: list[IncomeStatementLine]
    total_expense: Decimal
    net_income: Decimal
