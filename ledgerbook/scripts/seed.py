"""Seed the database with a default company and a basic chart of accounts.

Usage:
    python -m ledgerbook.scripts.seed

Safe to re-run: existing codes and companies are left untouched.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ledgerbook.app.core.database import SessionLocal, engine, init_db
from ledgerbook.app.core.logging_config import configure_logging
from ledgerbook.app.models.accounting import (
    Account,
    AccountSubtype,
    AccountType,
    Company,
)
from ledgerbook.app.schemas.accounts import AccountCreate
from ledgerbook.app.schemas.companies import CompanyCreate
from ledgerbook.app.services.accounts import create_account
from ledgerbook.app.services.companies import create_company

logger = logging.getLogger("ledgerbook.scripts.seed")

SEED_ACTOR = "seed"

DEFAULT_COMPANY = CompanyCreate(
    name="Sky Home S.A. de C.V.",
    tax_id="SHO123456789",
    address="Av. Principal #123, Tuxtla Gutierrez, Chiapas",
    phone="961-123-4567",
    email="info@skyhome.com",
)

ACCOUNTS: list[tuple[str, str, AccountType, AccountSubtype | None]] = [
    # Current assets
    ("1001", "Cash", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1002", "Banks", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1003", "Inventory", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1004", "Customers", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1005", "Sundry Debtors", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1006", "VAT Receivable", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    ("1007", "Prepaid Expenses", AccountType.ASSET, AccountSubtype.CURRENT_ASSET),
    # Fixed assets
    ("1101", "Land", AccountType.ASSET, AccountSubtype.FIXED_ASSET),
    ("1102", "Buildings", AccountType.ASSET, AccountSubtype.FIXED_ASSET),
    ("1103", "Office Furniture & Equipment", AccountType.ASSET, AccountSubtype.FIXED_ASSET),
    ("1104", "Computer Equipment", AccountType.ASSET, AccountSubtype.FIXED_ASSET),
    ("1105", "Vehicles", AccountType.ASSET, AccountSubtype.FIXED_ASSET),
    ("1106", "Machinery & Equipment", AccountType.ASSET, AccountSubtype.FIXED_ASSET),
    # Short-term liabilities
    ("2001", "Suppliers", AccountType.LIABILITY, AccountSubtype.SHORT_TERM_LIABILITY),
    ("2002", "Sundry Creditors", AccountType.LIABILITY, AccountSubtype.SHORT_TERM_LIABILITY),
    ("2003", "Notes Payable", AccountType.LIABILITY, AccountSubtype.SHORT_TERM_LIABILITY),
    ("2004", "VAT Payable", AccountType.LIABILITY, AccountSubtype.SHORT_TERM_LIABILITY),
    ("2005", "Taxes Payable", AccountType.LIABILITY, AccountSubtype.SHORT_TERM_LIABILITY),
    ("2006", "Wages Payable", AccountType.LIABILITY, AccountSubtype.SHORT_TERM_LIABILITY),
    # Equity
    ("3001", "Share Capital", AccountType.EQUITY, None),
    ("3002", "Legal Reserve", AccountType.EQUITY, None),
    ("3003", "Retained Earnings", AccountType.EQUITY, None),
    ("3004", "Current Year Earnings", AccountType.EQUITY, None),
    # Income
    ("4001", "Sales", AccountType.INCOME, None),
    ("4002", "Financial Income", AccountType.INCOME, None),
    ("4003", "Other Income", AccountType.INCOME, None),
    # Expenses
    ("5001", "Cost of Sales", AccountType.EXPENSE, None),
    ("5002", "Administrative Expenses", AccountType.EXPENSE, None),
    ("5003", "Selling Expenses", AccountType.EXPENSE, None),
    ("5004", "Financial Expenses", AccountType.EXPENSE, None),
    ("5005", "Salaries & Wages", AccountType.EXPENSE, None),
    ("5006", "Rent", AccountType.EXPENSE, None),
    ("5007", "Utilities", AccountType.EXPENSE, None),
    ("5008", "Depreciation", AccountType.EXPENSE, None),
]


def seed_company(db: Session) -> Company:
    existing = db.query(Company).filter(Company.name == DEFAULT_COMPANY.name).first()
    if existing:
        logger.info("Company %s already exists", existing.name)
        return existing
    company = create_company(db, DEFAULT_COMPANY, actor=SEED_ACTOR)
    logger.info("Created company %s", company.name)
    return company


def seed_chart(db: Session) -> int:
    """Create the basic chart of accounts; returns how many were created."""
    existing = {code for (code,) in db.query(Account.code).all()}
    created = 0
    for code, name, account_type, subtype in ACCOUNTS:
        if code in existing:
            continue
        create_account(
            db,
            AccountCreate(code=code, name=name, account_type=account_type, subtype=subtype),
            actor=SEED_ACTOR,
        )
        created += 1
    logger.info("Created %d of %d chart accounts", created, len(ACCOUNTS))
    return created


def seed() -> None:
    init_db(engine)
    db = SessionLocal()
    try:
        seed_company(db)
        seed_chart(db)
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    seed()
