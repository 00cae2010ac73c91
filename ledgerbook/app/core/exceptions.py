"""
Ledger error taxonomy and the FastAPI handlers that render it.

Every error carries a stable ``error_code``, an HTTP status and a
``details`` dict with the structured data a caller needs to build an
actionable message (offending account id, entry totals, ...).
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for every error raised by the ledger engine."""

    error_code = "ERR_LEDGER"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ── Validation ───────────────────────────────────────────────────────────────


class ValidationError(LedgerError):
    """Input rejected before anything was written."""

    error_code = "ERR_VALIDATION"
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientLinesError(ValidationError):
    error_code = "ERR_ENTRY_LINES"

    def __init__(self, line_count: int):
        super().__init__(
            f"A journal entry requires at least two posting lines, got {line_count}",
            {"line_count": line_count},
        )


class EmptyLineError(ValidationError):
    error_code = "ERR_ENTRY_EMPTY_LINE"

    def __init__(self, line_no: int):
        self.line_no = line_no
        super().__init__(
            f"Line {line_no} has neither a debit nor a credit amount",
            {"line_no": line_no},
        )


class InvalidAmountError(ValidationError):
    error_code = "ERR_ENTRY_AMOUNT"

    def __init__(
        self,
        line_no: int | None,
        debit: Decimal,
        credit: Decimal,
        reason: str = "a negative amount",
    ):
        self.line_no = line_no
        self.reason = reason
        where = f"Line {line_no}" if line_no is not None else "Entry total"
        super().__init__(
            f"{where} has {reason}",
            {
                "line_no": line_no,
                "debit": str(debit),
                "credit": str(credit),
                "reason": reason,
            },
        )


class UnknownAccountError(ValidationError):
    error_code = "ERR_ENTRY_ACCOUNT"

    def __init__(self, account_id: Any, reason: str = "not found"):
        self.account_id = account_id
        super().__init__(
            f"Account {account_id} cannot receive postings ({reason})",
            {"account_id": str(account_id), "reason": reason},
        )


class UnbalancedEntryError(ValidationError):
    error_code = "ERR_ENTRY_UNBALANCED"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Entry is not balanced: debits ({total_debit}) != credits ({total_credit})",
            {"total_debit": str(total_debit), "total_credit": str(total_credit)},
        )


class InvalidParentError(ValidationError):
    error_code = "ERR_ACCOUNT_PARENT"

    def __init__(self, parent_id: Any, reason: str = "parent account does not exist"):
        super().__init__(
            f"Invalid parent account {parent_id}: {reason}",
            {"parent_id": str(parent_id), "reason": reason},
        )


class InvalidSubtypeError(ValidationError):
    error_code = "ERR_ACCOUNT_SUBTYPE"

    def __init__(self, subtype: Any, account_type: Any):
        super().__init__(
            f"Subtype {subtype} is not allowed on {account_type} accounts",
            {"subtype": str(subtype), "account_type": str(account_type)},
        )


# ── Lookup ───────────────────────────────────────────────────────────────────


class NotFoundError(LedgerError):
    error_code = "ERR_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message,
            {"resource": resource, "id": None if resource_id is None else str(resource_id)},
        )


# ── Conflicts ────────────────────────────────────────────────────────────────


class ConflictError(LedgerError):
    error_code = "ERR_CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class DuplicateCodeError(ConflictError):
    error_code = "ERR_ACCOUNT_DUPLICATE_CODE"

    def __init__(self, code: str):
        super().__init__(f"Account code '{code}' already exists", {"code": code})


class AccountInUseError(ConflictError):
    error_code = "ERR_ACCOUNT_IN_USE"

    def __init__(self, account_id: Any, posting_count: int):
        super().__init__(
            f"Account {account_id} is referenced by {posting_count} posting(s); "
            "deactivate it instead",
            {"account_id": str(account_id), "posting_count": posting_count},
        )


class AccountReclassError(ConflictError):
    error_code = "ERR_ACCOUNT_RECLASS"

    def __init__(self, account_id: Any, fields: list[str]):
        super().__init__(
            f"Cannot change {', '.join(fields)} of account {account_id}: "
            "it already has postings",
            {"account_id": str(account_id), "fields": fields},
        )


class EntryAlreadyVoidedError(ConflictError):
    error_code = "ERR_ENTRY_VOIDED"

    def __init__(self, entry_id: Any):
        super().__init__(f"Journal entry {entry_id} is already voided", {"id": str(entry_id)})


class SequenceConflictError(ConflictError):
    error_code = "ERR_SEQUENCE_CONFLICT"

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not allocate a sequence number after {attempts} attempt(s)",
            {"attempts": attempts},
        )


# ── Infrastructure ───────────────────────────────────────────────────────────


class StorageError(LedgerError):
    """The transaction failed and was rolled back; safe to retry."""

    error_code = "ERR_STORAGE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ReportTimeoutError(LedgerError):
    error_code = "ERR_REPORT_TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, report: str, timeout: float):
        super().__init__(
            f"{report} did not finish within {timeout} seconds",
            {"report": report, "timeout": timeout},
        )


class ReportCancelledError(LedgerError):
    error_code = "ERR_REPORT_CANCELLED"
    status_code = 499

    def __init__(self, report: str):
        super().__init__(f"{report} was cancelled", {"report": report})


# ── Handlers ─────────────────────────────────────────────────────────────────


async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )
