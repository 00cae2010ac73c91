"""Shared test fixtures.

Each test gets a fresh in-memory SQLite database, so services are free to
commit and tests never see each other's rows.
"""

from __future__ import annotations

import os

# Keep the app's module-level engine away from the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date
from decimal import Decimal
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from ledgerbook.app.core.database import create_db_engine, get_db, init_db
from ledgerbook.app.main import app
from ledgerbook.app.models.accounting import (
    Account,
    AccountSubtype,
    AccountType,
    Company,
    JournalEntry,
)
from ledgerbook.app.schemas.accounts import AccountCreate
from ledgerbook.app.schemas.journal import JournalEntryCreate, PostingCreate
from ledgerbook.app.services.accounts import create_account
from ledgerbook.app.services.journal import record_entry


# ─── Database ────────────────────────────────────────────────────────────────


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    eng = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine: Engine) -> Generator[Session, None, None]:
    session = Session(bind=engine, autoflush=False)
    yield session
    session.close()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Chart of Accounts ───────────────────────────────────────────────────────


_CHART: list[tuple[str, str, AccountType, AccountSubtype | None]] = [
    ("1001", "Cash", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1002", "Bank", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1101", "Equipment", AccountType.ASSET, AccountSubtype.FIXED_ASSET),
    ("2001", "Suppliers", AccountType.LIABILITY, AccountSubtype.SHORT_TERM_LIABILITY),
    ("2101", "Bank Loan", AccountType.LIABILITY, AccountSubtype.LONG_TERM_LIABILITY),
    ("3001", "Share Capital", AccountType.EQUITY, None),
    ("4001", "Sales", AccountType.INCOME, None),
    ("5001", "Rent", AccountType.EXPENSE, None),
]


@pytest.fixture()
def seed_accounts(db: Session) -> dict[str, Account]:
    """A small chart keyed by account code."""
    return {
        code: create_account(
            db,
            AccountCreate(code=code, name=name, account_type=atype, subtype=subtype),
            actor="tester",
        )
        for code, name, atype, subtype in _CHART
    }


@pytest.fixture()
def company(db: Session) -> Company:
    c = Company(name="Sky Home")
    db.add(c)
    db.commit()
    return c


# ─── Entries ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def post(db: Session) -> Callable[..., JournalEntry]:
    """Record a journal entry through the full validate-and-post path.

    ``lines`` are (account, debit, credit) tuples; amounts may be given as
    strings or ints.
    """

    def _post(
        entry_date: date,
        lines: list[tuple[Account, object, object]],
        memo: str = "Test entry",
        company_id=None,
        reference: str | None = None,
        posted_by: str = "tester",
    ) -> JournalEntry:
        payload = JournalEntryCreate(
            entry_date=entry_date,
            memo=memo,
            reference=reference,
            company_id=company_id,
            postings=[
                PostingCreate(
                    account_id=account.id,
                    debit=Decimal(str(debit)),
                    credit=Decimal(str(credit)),
                )
                for account, debit, credit in lines
            ],
        )
        return record_entry(db, payload, posted_by=posted_by)

    return _post
