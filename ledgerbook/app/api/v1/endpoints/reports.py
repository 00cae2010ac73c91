from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledgerbook.app.api.deps import get_date_range, get_report_deadline
from ledgerbook.app.core.database import get_db
from ledgerbook.app.core.deadline import Deadline
from ledgerbook.app.schemas.journal import DateRange
from ledgerbook.app.schemas.reports import (
    AccountBalanceOut,
    AccountBalanceRow,
    BalanceSheetReport,
    GeneralLedgerReport,
    IncomeStatementReport,
    TrialBalanceReport,
)
from ledgerbook.app.services import reports as report_service
from ledgerbook.app.services.accounts import get_account

router = APIRouter()


@router.get("/trial-balance", response_model=TrialBalanceReport)
def trial_balance(
    company_id: UUID | None = None,
    date_range: DateRange | None = Depends(get_date_range),
    deadline: Deadline = Depends(get_report_deadline),
    db: Session = Depends(get_db),
) -> TrialBalanceReport:
    return report_service.trial_balance(
        db, date_range=date_range, company_id=company_id, deadline=deadline
    )


@router.get("/general-ledger", response_model=GeneralLedgerReport)
def general_ledger(
    account_id: UUID | None = None,
    company_id: UUID | None = None,
    date_range: DateRange | None = Depends(get_date_range),
    deadline: Deadline = Depends(get_report_deadline),
    db: Session = Depends(get_db),
) -> GeneralLedgerReport:
    return report_service.general_ledger(
        db,
        account_id=account_id,
        date_range=date_range,
        company_id=company_id,
        deadline=deadline,
    )


@router.get("/balance-sheet", response_model=BalanceSheetReport)
def balance_sheet(
    as_of_date: date | None = None,
    company_id: UUID | None = None,
    deadline: Deadline = Depends(get_report_deadline),
    db: Session = Depends(get_db),
) -> BalanceSheetReport:
    return report_service.balance_sheet(
        db, as_of_date=as_of_date, company_id=company_id, deadline=deadline
    )


@router.get("/income-statement", response_model=IncomeStatementReport)
def income_statement(
    company_id: UUID | None = None,
    date_range: DateRange | None = Depends(get_date_range),
    deadline: Deadline = Depends(get_report_deadline),
    db: Session = Depends(get_db),
) -> IncomeStatementReport:
    return report_service.income_statement(
        db, date_range=date_range, company_id=company_id, deadline=deadline
    )


@router.get("/account-balances", response_model=list[AccountBalanceRow])
def account_balances(
    company_id: UUID | None = None,
    date_range: DateRange | None = Depends(get_date_range),
    deadline: Deadline = Depends(get_report_deadline),
    db: Session = Depends(get_db),
) -> list[AccountBalanceRow]:
    return report_service.account_balances(
        db, company_id=company_id, date_range=date_range, deadline=deadline
    )


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceOut)
def account_balance(
    account_id: UUID,
    company_id: UUID | None = None,
    date_range: DateRange | None = Depends(get_date_range),
    db: Session = Depends(get_db),
) -> AccountBalanceOut:
    account = get_account(db, account_id)
    balance = report_service.account_balance(
        db, account.id, date_range=date_range, company_id=company_id
    )
    return AccountBalanceOut(account_id=account.id, code=account.code, balance=balance)
