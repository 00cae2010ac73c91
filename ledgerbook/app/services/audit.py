from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ledgerbook.app.models.accounting import AuditLog


def log_action(
    db: Session,
    *,
    actor: str | None,
    action: str,
    resource_type: str,
    resource_id: str,
    changes: dict[str, Any] | None = None,
    old_values: dict[str, Any] | None = None,
) -> None:
    """Add a single row to the audit_logs table.

    Thin utility so every service records changes in a consistent format.
    It does NOT call db.commit(); the row is written as part of the
    caller's transaction and disappears with it on rollback.
    """
    db.add(
        AuditLog(
            table_name=resource_type,
            record_id=resource_id,
            action=action,
            changed_by=actor,
            old_values=old_values,
            new_values=changes,
        )
    )
