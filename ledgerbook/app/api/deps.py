from __future__ import annotations

from datetime import date

from fastapi import Header, HTTPException, Query, status
from pydantic import ValidationError

from ledgerbook.app.core.config import settings
from ledgerbook.app.core.deadline import Deadline
from ledgerbook.app.schemas.journal import DateRange


def get_principal(
    x_principal: str | None = Header(default=None),
) -> str:
    """Identity recorded as ``posted_by`` and on audit rows.

    Authentication is handled upstream; the caller forwards who it is.
    """
    if x_principal is None or not x_principal.strip():
        return settings.DEFAULT_PRINCIPAL
    return x_principal.strip()


def get_date_range(
    from_date: date | None = Query(default=None),
    to_date: date | None = Query(default=None),
) -> DateRange | None:
    if from_date is None and to_date is None:
        return None
    try:
        return DateRange(start=from_date, end=to_date)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="from_date must not be after to_date",
        )


def get_report_deadline() -> Deadline:
    return Deadline(timeout=settings.REPORT_TIMEOUT_SECONDS)
