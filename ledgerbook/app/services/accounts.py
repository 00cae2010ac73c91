"""Chart of accounts registry."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ledgerbook.app.core.exceptions import (
    AccountInUseError,
    AccountReclassError,
    DuplicateCodeError,
    InvalidParentError,
    InvalidSubtypeError,
    NotFoundError,
    StorageError,
)
from ledgerbook.app.models.account import SUBTYPES_BY_TYPE, default_nature
from ledgerbook.app.models.accounting import (
    Account,
    AccountSubtype,
    AccountType,
    Posting,
)
from ledgerbook.app.schemas.accounts import AccountCreate, AccountUpdate
from ledgerbook.app.services.audit import log_action

logger = logging.getLogger(__name__)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _posting_count(db: Session, account_id: UUID) -> int:
    return (
        db.query(func.count(Posting.id))
        .filter(Posting.account_id == account_id)
        .scalar()
    ) or 0


def _code_taken(db: Session, code: str, exclude_id: UUID | None = None) -> bool:
    query = db.query(Account.id).filter(Account.code == code)
    if exclude_id is not None:
        query = query.filter(Account.id != exclude_id)
    return query.first() is not None


def _resolve_parent(db: Session, parent_id: UUID | None) -> Account | None:
    if parent_id is None:
        return None
    parent = db.get(Account, parent_id)
    if parent is None:
        raise InvalidParentError(parent_id)
    return parent


def _check_subtype(subtype: AccountSubtype | None, account_type: AccountType) -> None:
    if subtype is not None and subtype not in SUBTYPES_BY_TYPE[account_type]:
        raise InvalidSubtypeError(subtype.value, account_type.value)


def _check_no_cycle(db: Session, account: Account, parent: Account) -> None:
    node: Account | None = parent
    while node is not None:
        if node.id == account.id:
            raise InvalidParentError(parent.id, "an account cannot be its own ancestor")
        node = db.get(Account, node.parent_id) if node.parent_id else None


def _relevel_descendants(db: Session, account: Account) -> None:
    """Push a changed level down the subtree below ``account``."""
    frontier = [account]
    while frontier:
        parent = frontier.pop()
        children = db.query(Account).filter(Account.parent_id == parent.id).all()
        for child in children:
            child.level = parent.level + 1
            frontier.append(child)


def _snapshot(account: Account) -> dict[str, Any]:
    return {
        "code": account.code,
        "name": account.name,
        "account_type": account.account_type.value,
        "nature": account.nature.value,
        "subtype": account.subtype.value if account.subtype else None,
        "level": account.level,
        "parent_id": str(account.parent_id) if account.parent_id else None,
        "is_active": account.is_active,
    }


def _commit(db: Session, code: str, action: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if "code" in str(exc.orig):
            raise DuplicateCodeError(code) from exc
        raise StorageError(f"Could not {action} account {code}") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to %s account %s", action, code)
        raise StorageError(f"Could not {action} account {code}") from exc


# ── Queries ──────────────────────────────────────────────────────────────────


def get_account(db: Session, account_id: UUID) -> Account:
    """Return the account, active or not; historical postings must resolve."""
    account = db.get(Account, account_id)
    if account is None:
        raise NotFoundError("Account", account_id)
    return account


def get_account_by_code(db: Session, code: str) -> Account:
    account = db.query(Account).filter(Account.code == code).first()
    if account is None:
        raise NotFoundError("Account", code)
    return account


def list_accounts(db: Session, *, active_only: bool = True) -> list[Account]:
    query = db.query(Account)
    if active_only:
        query = query.filter(Account.is_active.is_(True))
    return query.order_by(Account.code).all()


def resolve_accounts(db: Session, account_ids: Iterable[UUID]) -> dict[UUID, Account]:
    """Load the accounts referenced by a proposed entry, keyed by id.

    Missing ids are simply absent from the result; the validator reports
    them.
    """
    ids = set(account_ids)
    if not ids:
        return {}
    rows = db.query(Account).filter(Account.id.in_(ids)).all()
    return {a.id: a for a in rows}


# ── Mutations ────────────────────────────────────────────────────────────────


def create_account(db: Session, payload: AccountCreate, *, actor: str) -> Account:
    if _code_taken(db, payload.code):
        raise DuplicateCodeError(payload.code)
    parent = _resolve_parent(db, payload.parent_id)
    _check_subtype(payload.subtype, payload.account_type)

    account = Account(
        code=payload.code,
        name=payload.name,
        account_type=payload.account_type,
        nature=payload.nature or default_nature(payload.account_type),
        subtype=payload.subtype,
        parent_id=parent.id if parent else None,
        level=payload.level or (parent.level + 1 if parent else 1),
        is_active=True,
    )
    db.add(account)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateCodeError(payload.code) from exc

    log_action(
        db,
        actor=actor,
        action="INSERT",
        resource_type="accounts",
        resource_id=str(account.id),
        changes=_snapshot(account),
    )
    _commit(db, account.code, "create")
    db.refresh(account)
    logger.info("Created account %s %s", account.code, account.name)
    return account


def update_account(
    db: Session,
    account_id: UUID,
    payload: AccountUpdate,
    *,
    actor: str,
) -> Account:
    account = get_account(db, account_id)
    fields = payload.model_dump(exclude_unset=True)
    old_values = _snapshot(account)

    # Validate everything before touching the instance
    code = fields.get("code")
    if code is not None and code != account.code and _code_taken(db, code, exclude_id=account.id):
        raise DuplicateCodeError(code)

    # Re-reading historical balances with a different sign is not allowed
    reclassified = [
        name
        for name in ("account_type", "nature")
        if fields.get(name) is not None and fields[name] != getattr(account, name)
    ]
    if reclassified and _posting_count(db, account.id) > 0:
        raise AccountReclassError(account.id, reclassified)

    account_type = fields.get("account_type") or account.account_type
    subtype = fields["subtype"] if "subtype" in fields else account.subtype
    _check_subtype(subtype, account_type)

    parent: Account | None = None
    if "parent_id" in fields:
        parent = _resolve_parent(db, fields["parent_id"])
        if parent is not None:
            _check_no_cycle(db, account, parent)

    if code is not None:
        account.code = code
    if fields.get("name") is not None:
        account.name = fields["name"]
    if fields.get("nature") is not None:
        account.nature = fields["nature"]
    elif account_type != account.account_type:
        account.nature = default_nature(account_type)
    account.account_type = account_type
    account.subtype = subtype
    if "parent_id" in fields:
        account.parent_id = parent.id if parent else None
        account.level = parent.level + 1 if parent else 1
    if fields.get("level") is not None:
        account.level = fields["level"]
    if account.level != old_values["level"]:
        _relevel_descendants(db, account)
    if fields.get("is_active") is not None:
        account.is_active = fields["is_active"]
    new_values = _snapshot(account)
    log_action(
        db,
        actor=actor,
        action="UPDATE",
        resource_type="accounts",
        resource_id=str(account.id),
        old_values={k: v for k, v in old_values.items() if new_values[k] != v},
        changes={k: v for k, v in new_values.items() if old_values[k] != v},
    )
    _commit(db, account.code, "update")
    db.refresh(account)
    logger.info("Updated account %s", account.code)
    return account


def deactivate_account(db: Session, account_id: UUID, *, actor: str) -> Account:
    """Retire an account from new postings; history still resolves it."""
    account = get_account(db, account_id)
    if not account.is_active:
        return account

    account.is_active = False
    log_action(
        db,
        actor=actor,
        action="DEACTIVATE",
        resource_type="accounts",
        resource_id=str(account.id),
        old_values={"is_active": True},
        changes={"is_active": False},
    )
    _commit(db, account.code, "deactivate")
    db.refresh(account)
    logger.info("Deactivated account %s", account.code)
    return account


def delete_account(db: Session, account_id: UUID, *, actor: str) -> None:
    account = get_account(db, account_id)

    posting_count = _posting_count(db, account.id)
    if posting_count > 0:
        raise AccountInUseError(account.id, posting_count)

    log_action(
        db,
        actor=actor,
        action="DELETE",
        resource_type="accounts",
        resource_id=str(account.id),
        old_values=_snapshot(account),
    )
    db.delete(account)
    try:
        db.commit()
    except IntegrityError as exc:
        # A posting landed between the check and the delete
        db.rollback()
        raise AccountInUseError(account_id, _posting_count(db, account_id)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete account %s", account_id)
        raise StorageError(f"Could not delete account {account_id}") from exc
    logger.info("Deleted account %s", account_id)
