"""Tests for the ledger store: posting, sequence numbers, void and delete."""
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func

from ledgerbook.app.core.exceptions import (
    EntryAlreadyVoidedError,
    InvalidAmountError,
    NotFoundError,
    SequenceConflictError,
    UnbalancedEntryError,
    UnknownAccountError,
)
from ledgerbook.app.models.accounting import (
    JOURNAL_SEQUENCE,
    AuditLog,
    EntryStatus,
    JournalEntry,
    LedgerSequence,
    Posting,
)
from ledgerbook.app.schemas.journal import DateRange, EntryFilter
from ledgerbook.app.services import journal as journal_service
from ledgerbook.app.services.accounts import deactivate_account
from ledgerbook.app.services.journal import (
    get_entry,
    list_entries,
    next_sequence_number,
    void_or_delete_entry,
)
from ledgerbook.app.services.reports import trial_balance
from ledgerbook.app.services.validation import MAX_AMOUNT


def _sale(a, amount=100):
    return [(a["1001"], amount, 0), (a["4001"], 0, amount)]


class TestPostEntry:
    def test_post_persists_entry_and_postings(self, db, seed_accounts, post):
        entry = post(date(2026, 1, 10), [
            (seed_accounts["1001"], "115", 0),
            (seed_accounts["4001"], 0, "100"),
            (seed_accounts["2001"], 0, "15"),
        ], memo="Cash sale", reference="INV-1", posted_by="alice")

        stored = get_entry(db, entry.id)
        assert stored.sequence_number == 1
        assert stored.memo == "Cash sale"
        assert stored.reference == "INV-1"
        assert stored.posted_by == "alice"
        assert stored.status == EntryStatus.ACTIVE
        assert stored.total_debit == Decimal("115")
        assert stored.total_credit == Decimal("115")
        assert [p.line_no for p in stored.postings] == [1, 2, 3]
        assert [p.account_code for p in stored.postings] == ["1001", "4001", "2001"]

    def test_sequence_numbers_increase(self, db, seed_accounts, post):
        numbers = [post(date(2026, 1, 1), _sale(seed_accounts)).sequence_number for _ in range(3)]
        assert numbers == [1, 2, 3]

    def test_invalid_entry_writes_nothing(self, db, seed_accounts, post):
        with pytest.raises(UnbalancedEntryError):
            post(date(2026, 1, 1), [
                (seed_accounts["1001"], 100, 0),
                (seed_accounts["4001"], 0, 99),
            ])
        assert db.query(JournalEntry).count() == 0
        assert db.query(Posting).count() == 0
        assert db.get(LedgerSequence, JOURNAL_SEQUENCE).current_value == 0

    def test_unstorable_amount_writes_nothing(self, db, seed_accounts, post):
        with pytest.raises(InvalidAmountError):
            post(date(2026, 1, 1), [
                (seed_accounts["1001"], "0.00004", 0),
                (seed_accounts["4001"], 0, "0.00004"),
            ])
        assert db.query(JournalEntry).count() == 0

    def test_largest_amount_round_trips(self, db, seed_accounts, post):
        entry = post(date(2026, 1, 1), [
            (seed_accounts["1001"], MAX_AMOUNT, 0),
            (seed_accounts["4001"], 0, MAX_AMOUNT),
        ])
        db.expire_all()
        stored = get_entry(db, entry.id)
        assert [(p.debit, p.credit) for p in stored.postings] == [
            (MAX_AMOUNT, Decimal("0")),
            (Decimal("0"), MAX_AMOUNT),
        ]
        assert trial_balance(db).is_balanced

    def test_inactive_account_rejected(self, db, seed_accounts, post):
        deactivate_account(db, seed_accounts["4001"].id, actor="tester")
        with pytest.raises(UnknownAccountError):
            post(date(2026, 1, 1), _sale(seed_accounts))

    def test_unknown_company_rejected(self, db, seed_accounts, post):
        with pytest.raises(NotFoundError):
            post(date(2026, 1, 1), _sale(seed_accounts), company_id=uuid.uuid4())

    def test_failure_mid_write_rolls_back_everything(self, db, seed_accounts, post, monkeypatch):
        def _boom(*_args, **_kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(journal_service, "_add_postings", _boom)
        with pytest.raises(RuntimeError):
            post(date(2026, 1, 1), _sale(seed_accounts))
        monkeypatch.undo()

        assert db.query(JournalEntry).count() == 0
        assert db.query(AuditLog).filter(AuditLog.table_name == "journal_entries").count() == 0
        # The counter increment went with the transaction
        assert post(date(2026, 1, 1), _sale(seed_accounts)).sequence_number == 1

    def test_sequence_collision_is_retried(self, db, seed_accounts, post, monkeypatch):
        stale = post(date(2026, 1, 1), _sale(seed_accounts)).sequence_number
        real_next = journal_service.next_sequence_number
        calls = []

        def _stale_once(session):
            calls.append(1)
            if len(calls) == 1:
                return stale
            return real_next(session)

        monkeypatch.setattr(journal_service, "next_sequence_number", _stale_once)
        second = post(date(2026, 1, 2), _sale(seed_accounts))
        assert len(calls) == 2
        assert second.sequence_number == 2
        assert db.query(JournalEntry).count() == 2

    def test_persistent_collision_gives_up(self, db, seed_accounts, post, monkeypatch):
        post(date(2026, 1, 1), _sale(seed_accounts))
        monkeypatch.setattr(journal_service, "next_sequence_number", lambda _db: 1)
        with pytest.raises(SequenceConflictError):
            post(date(2026, 1, 2), _sale(seed_accounts))
        assert db.query(JournalEntry).count() == 1

    def test_post_is_audited(self, db, seed_accounts, post):
        entry = post(date(2026, 1, 1), _sale(seed_accounts), posted_by="bob")
        log = db.query(AuditLog).filter(AuditLog.record_id == str(entry.id)).one()
        assert log.action == "INSERT"
        assert log.changed_by == "bob"
        assert len(log.new_values["postings"]) == 2


class TestNextSequenceNumber:
    def test_creates_missing_counter(self, db):
        assert next_sequence_number(db, "other") == 1
        assert next_sequence_number(db, "other") == 2
        db.commit()
        assert db.get(LedgerSequence, "other").current_value == 2


class TestListEntries:
    def test_filters(self, db, seed_accounts, post, company):
        jan = post(date(2026, 1, 15), _sale(seed_accounts), company_id=company.id)
        feb = post(date(2026, 2, 15), _sale(seed_accounts))
        mar = post(date(2026, 3, 15), _sale(seed_accounts), company_id=company.id)

        assert [e.id for e in list_entries(db)] == [mar.id, feb.id, jan.id]
        assert [e.id for e in list_entries(db, EntryFilter(company_id=company.id))] == [mar.id, jan.id]
        window = EntryFilter(date_range=DateRange(start=date(2026, 2, 1), end=date(2026, 3, 1)))
        assert [e.id for e in list_entries(db, window)] == [feb.id]

    def test_voided_hidden_by_default(self, db, seed_accounts, post):
        entry = post(date(2026, 1, 1), _sale(seed_accounts))
        void_or_delete_entry(db, entry.id, actor="tester")
        assert list_entries(db) == []
        assert [e.id for e in list_entries(db, EntryFilter(include_voided=True))] == [entry.id]

    def test_date_range_rejects_inverted_bounds(self):
        with pytest.raises(ValueError):
            DateRange(start=date(2026, 2, 1), end=date(2026, 1, 1))


class TestVoidAndDelete:
    def test_void_keeps_row_and_marks_it(self, db, seed_accounts, post):
        entry = post(date(2026, 1, 1), _sale(seed_accounts))
        voided = void_or_delete_entry(db, entry.id, actor="carol")
        assert voided.status == EntryStatus.VOIDED
        assert voided.voided_by == "carol"
        assert voided.voided_at is not None
        assert db.query(Posting).filter(Posting.entry_id == entry.id).count() == 2

    def test_void_twice_rejected(self, db, seed_accounts, post):
        entry = post(date(2026, 1, 1), _sale(seed_accounts))
        void_or_delete_entry(db, entry.id, actor="tester")
        with pytest.raises(EntryAlreadyVoidedError):
            void_or_delete_entry(db, entry.id, actor="tester")

    def test_hard_delete_cascades_to_postings(self, db, seed_accounts, post):
        entry = post(date(2026, 1, 1), _sale(seed_accounts))
        assert void_or_delete_entry(db, entry.id, actor="tester", hard=True) is None
        assert db.query(JournalEntry).count() == 0
        assert db.query(func.count(Posting.id)).scalar() == 0
        with pytest.raises(NotFoundError):
            get_entry(db, entry.id)

    def test_sequence_not_reused_after_delete(self, db, seed_accounts, post):
        post(date(2026, 1, 1), _sale(seed_accounts))
        second = post(date(2026, 1, 2), _sale(seed_accounts))
        void_or_delete_entry(db, second.id, actor="tester", hard=True)
        assert post(date(2026, 1, 3), _sale(seed_accounts)).sequence_number == 3

    def test_missing_entry(self, db):
        with pytest.raises(NotFoundError):
            void_or_delete_entry(db, uuid.uuid4(), actor="tester")


class TestOpeningScenarios:
    def test_initial_capital(self, db, seed_accounts, post):
        entry = post(date(2025, 8, 12), [
            (seed_accounts["1001"], 15000, 0),
            (seed_accounts["3001"], 0, 15000),
        ], memo="Initial")
        assert entry.sequence_number == 1

        rows = {r.code: r.balance for r in trial_balance(db).rows}
        assert rows == {"1001": Decimal("15000"), "3001": Decimal("-15000")}

    def test_cash_against_bank_unbalanced(self, db, seed_accounts, post):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            post(date(2025, 8, 12), [
                (seed_accounts["1001"], 100, 0),
                (seed_accounts["1002"], 0, 90),
            ])
        assert (exc_info.value.total_debit, exc_info.value.total_credit) == (
            Decimal("100"), Decimal("90"),
        )
        assert db.query(JournalEntry).count() == 0
        assert db.query(Posting).count() == 0
