from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from ledgerbook.app.models.accounting import AccountNature, AccountSubtype, AccountType

_CODE_RE = re.compile(r"^[0-9A-Za-z][0-9A-Za-z.\-]{0,19}$")


def _clean_code(v: str) -> str:
    v = v.strip()
    if not _CODE_RE.match(v):
        raise ValueError("Code must be 1-20 letters, digits, dots or dashes")
    return v


class AccountCreate(BaseModel):
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature | None = None
    subtype: AccountSubtype | None = None
    parent_id: UUID | None = None
    level: int | None = None

    @field_validator("code")
    @classmethod
    def code_format(cls, v: str) -> str:
        return _clean_code(v)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be empty")
        return v.strip()

    @field_validator("level")
    @classmethod
    def level_positive(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("Level must be 1 or greater")
        return v


class AccountUpdate(BaseModel):
    """Partial update; only fields that were explicitly sent are applied."""

    code: str | None = None
    name: str | None = None
    account_type: AccountType | None = None
    nature: AccountNature | None = None
    subtype: AccountSubtype | None = None
    parent_id: UUID | None = None
    level: int | None = None
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def code_format(cls, v: str | None) -> str | None:
        return _clean_code(v) if v is not None else v

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Name must not be empty")
        return v.strip() if v else v


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    account_type: AccountType
    nature: AccountNature
    subtype: AccountSubtype | None
    level: int
    parent_id: UUID | None
    is_active: bool
    created_at: datetime | None = None
