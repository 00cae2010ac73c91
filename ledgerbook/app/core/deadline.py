"""Timeout and cancellation for long-running report aggregations."""
from __future__ import annotations

import threading
import time

from ledgerbook.app.core.exceptions import ReportCancelledError, ReportTimeoutError


class Deadline:
    """Bound on how long a report may run.

    ``timeout`` is in seconds from construction; ``cancel_event`` lets
    another thread abort the report. Reports call :meth:`check` between
    rows and let the raised error propagate, so a caller never receives a
    partially built report.
    """

    def __init__(
        self,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.timeout = timeout
        self.cancel_event = cancel_event
        self._expires_at = time.monotonic() + timeout if timeout is not None else None

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self, report: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ReportCancelledError(report)
        if self.expired:
            raise ReportTimeoutError(report, self.timeout)  # type: ignore[arg-type]


def check_deadline(deadline: Deadline | None, report: str) -> None:
    if deadline is not None:
        deadline.check(report)
