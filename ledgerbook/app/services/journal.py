"""Ledger store: atomic persistence of journal entries and their postings.

Every write here runs in a single DB transaction. Any failure rolls the
whole transaction back before the error propagates, so a caller never sees
an entry without its postings or a posting without its entry.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from ledgerbook.app.core.config import settings
from ledgerbook.app.core.exceptions import (
    EntryAlreadyVoidedError,
    NotFoundError,
    SequenceConflictError,
    StorageError,
)
from ledgerbook.app.models.accounting import (
    JOURNAL_SEQUENCE,
    EntryStatus,
    JournalEntry,
    LedgerSequence,
    Posting,
)
from ledgerbook.app.schemas.journal import EntryFilter, JournalEntryCreate
from ledgerbook.app.services.accounts import resolve_accounts
from ledgerbook.app.services.audit import log_action
from ledgerbook.app.services.companies import get_company
from ledgerbook.app.services.validation import (
    ValidatedEntry,
    ValidatedLine,
    validate_entry,
)

logger = logging.getLogger(__name__)


# ── Sequence numbers ─────────────────────────────────────────────────────────


def next_sequence_number(db: Session, name: str = JOURNAL_SEQUENCE) -> int:
    """Atomically increment and return the named counter.

    Must run inside the transaction that consumes the number: the UPDATE
    holds the counter row lock until that transaction commits or rolls
    back, so concurrent posters are serialized on it and a rolled-back
    post does not burn a number. Deleted entries never give theirs back.
    """
    result = db.execute(
        update(LedgerSequence)
        .where(LedgerSequence.name == name)
        .values(current_value=LedgerSequence.current_value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # First use; a concurrent first use fails on the primary key and retries
        db.add(LedgerSequence(name=name, current_value=1))
        db.flush()
        return 1
    return db.execute(
        select(LedgerSequence.current_value).where(LedgerSequence.name == name)
    ).scalar_one()


def _is_sequence_conflict(exc: IntegrityError) -> bool:
    return "sequence" in str(exc.orig).lower()


# ── Posting ──────────────────────────────────────────────────────────────────


def _add_postings(db: Session, entry: JournalEntry, lines: tuple[ValidatedLine, ...]) -> None:
    for line in lines:
        db.add(
            Posting(
                entry_id=entry.id,
                account_id=line.account_id,
                line_no=line.line_no,
                debit=line.debit,
                credit=line.credit,
            )
        )


def _insert_entry(db: Session, validated: ValidatedEntry) -> JournalEntry:
    entry = JournalEntry(
        sequence_number=next_sequence_number(db),
        entry_date=validated.entry_date,
        memo=validated.memo,
        reference=validated.reference,
        total_debit=validated.total_debit,
        total_credit=validated.total_credit,
        posted_by=validated.posted_by,
        company_id=validated.company_id,
        status=EntryStatus.ACTIVE,
    )
    db.add(entry)
    db.flush()  # populate entry.id before creating postings

    _add_postings(db, entry, validated.lines)
    db.flush()

    log_action(
        db,
        actor=validated.posted_by,
        action="INSERT",
        resource_type="journal_entries",
        resource_id=str(entry.id),
        changes={
            "sequence_number": entry.sequence_number,
            "entry_date": validated.entry_date.isoformat(),
            "memo": validated.memo,
            "reference": validated.reference,
            "company_id": str(validated.company_id) if validated.company_id else None,
            "postings": [
                {
                    "account_id": str(line.account_id),
                    "debit": str(line.debit),
                    "credit": str(line.credit),
                }
                for line in validated.lines
            ],
        },
    )
    return entry


def post_entry(db: Session, validated: ValidatedEntry) -> JournalEntry:
    """Persist a validated entry and its postings in one transaction."""
    attempts = max(1, settings.SEQUENCE_RETRY_ATTEMPTS)
    last_error: IntegrityError | None = None

    for attempt in range(1, attempts + 1):
        try:
            entry = _insert_entry(db, validated)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_sequence_conflict(exc):
                logger.exception("Integrity failure posting entry %r", validated.memo)
                raise StorageError("Could not post journal entry") from exc
            last_error = exc
            logger.warning(
                "Sequence conflict posting entry %r (attempt %d/%d)",
                validated.memo, attempt, attempts,
            )
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Failed to post journal entry %r", validated.memo)
            raise StorageError("Could not post journal entry") from exc
        except Exception:
            db.rollback()
            raise

        db.refresh(entry)
        logger.info(
            "Posted journal entry #%d (%s) debit=%s credit=%s",
            entry.sequence_number, entry.id, entry.total_debit, entry.total_credit,
        )
        return entry

    raise SequenceConflictError(attempts) from last_error


def record_entry(db: Session, payload: JournalEntryCreate, *, posted_by: str) -> JournalEntry:
    """Resolve, validate and post a proposed entry."""
    if payload.company_id is not None:
        get_company(db, payload.company_id)
    accounts = resolve_accounts(db, (p.account_id for p in payload.postings))
    validated = validate_entry(payload, accounts, posted_by=posted_by)
    return post_entry(db, validated)


# ── Queries ──────────────────────────────────────────────────────────────────


def _with_postings(query):  # type: ignore[no-untyped-def]
    return query.options(
        selectinload(JournalEntry.postings).joinedload(Posting.account)
    )


def get_entry(db: Session, entry_id: UUID) -> JournalEntry:
    entry = (
        _with_postings(db.query(JournalEntry))
        .filter(JournalEntry.id == entry_id)
        .first()
    )
    if entry is None:
        raise NotFoundError("Journal entry", entry_id)
    return entry


def list_entries(db: Session, filters: EntryFilter | None = None) -> list[JournalEntry]:
    filters = filters or EntryFilter()
    query = _with_postings(db.query(JournalEntry))

    if not filters.include_voided:
        query = query.filter(JournalEntry.status == EntryStatus.ACTIVE)
    if filters.company_id is not None:
        query = query.filter(JournalEntry.company_id == filters.company_id)
    if filters.date_range is not None:
        if filters.date_range.start:
            query = query.filter(JournalEntry.entry_date >= filters.date_range.start)
        if filters.date_range.end:
            query = query.filter(JournalEntry.entry_date <= filters.date_range.end)

    return query.order_by(JournalEntry.sequence_number.desc()).all()


# ── Void / delete ────────────────────────────────────────────────────────────


def void_or_delete_entry(
    db: Session,
    entry_id: UUID,
    *,
    actor: str,
    hard: bool = False,
) -> JournalEntry | None:
    """Void an entry, or delete it together with its postings when ``hard``.

    Voiding keeps the row and its sequence number for the audit trail and
    drops the entry from every report. Hard deletion is reserved for
    correcting drafts; the sequence number is still never reissued.
    """
    entry = db.get(JournalEntry, entry_id)
    if entry is None:
        raise NotFoundError("Journal entry", entry_id)

    sequence_number = entry.sequence_number
    try:
        if hard:
            log_action(
                db,
                actor=actor,
                action="DELETE",
                resource_type="journal_entries",
                resource_id=str(entry.id),
                old_values={
                    "sequence_number": sequence_number,
                    "memo": entry.memo,
                    "status": entry.status.value,
                    "total_debit": str(entry.total_debit),
                    "total_credit": str(entry.total_credit),
                },
            )
            db.delete(entry)
        else:
            if entry.status == EntryStatus.VOIDED:
                raise EntryAlreadyVoidedError(entry.id)
            entry.status = EntryStatus.VOIDED
            entry.voided_at = datetime.now(timezone.utc)
            entry.voided_by = actor
            log_action(
                db,
                actor=actor,
                action="VOID",
                resource_type="journal_entries",
                resource_id=str(entry.id),
                old_values={"status": EntryStatus.ACTIVE.value},
                changes={"status": EntryStatus.VOIDED.value},
            )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to remove journal entry #%d", sequence_number)
        raise StorageError(f"Could not remove journal entry {entry_id}") from exc
    except Exception:
        db.rollback()
        raise

    if hard:
        logger.info("Deleted journal entry #%d (%s)", sequence_number, entry_id)
        return None

    db.refresh(entry)
    logger.info("Voided journal entry #%d (%s)", sequence_number, entry_id)
    return entry
