# Single import point for every ledger model; importing this module
# registers all tables on Base.metadata.

from ledgerbook.app.models.account import (
    Account,
    AccountNature,
    AccountSubtype,
    AccountType,
)
from ledgerbook.app.models.audit import AuditLog
from ledgerbook.app.models.company import Company
from ledgerbook.app.models.journal import EntryStatus, JournalEntry, Posting
from ledgerbook.app.models.sequence import JOURNAL_SEQUENCE, LedgerSequence

__all__ = [
    "Account",
    "AccountNature",
    "AccountSubtype",
    "AccountType",
    "AuditLog",
    "Company",
    "EntryStatus",
    "JournalEntry",
    "Posting",
    "JOURNAL_SEQUENCE",
    "LedgerSequence",
]
