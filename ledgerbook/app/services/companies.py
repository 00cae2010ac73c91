from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledgerbook.app.core.exceptions import NotFoundError, StorageError
from ledgerbook.app.models.accounting import Company
from ledgerbook.app.schemas.companies import CompanyCreate
from ledgerbook.app.services.audit import log_action

logger = logging.getLogger(__name__)


def list_companies(db: Session, *, active_only: bool = True) -> list[Company]:
    query = db.query(Company)
    if active_only:
        query = query.filter(Company.is_active.is_(True))
    return query.order_by(Company.name).all()


def get_company(db: Session, company_id: UUID) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company", company_id)
    return company


def create_company(db: Session, payload: CompanyCreate, *, actor: str) -> Company:
    company = Company(**payload.model_dump())
    try:
        db.add(company)
        db.flush()
        log_action(
            db,
            actor=actor,
            action="INSERT",
            resource_type="companies",
            resource_id=str(company.id),
            changes={"name": company.name, "tax_id": company.tax_id},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create company %r", payload.name)
        raise StorageError("Could not create company") from exc

    db.refresh(company)
    logger.info("Created company %s (%s)", company.name, company.id)
    return company
