"""
Declarative base and shared columns for Kitchen Back Office models.

Every table gets an integer id, a uuid for export and created/updated
timestamps. Tenant-owned tables add OrganizationScopedMixin.
"""

import uuid as uuid_lib
from datetime import date, datetime
from typing import Any, Dict, List, Mapping

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base, validates

from src.utils.datetime_utils import utc_now

Base = declarative_base()


class BaseModel(Base):
    """
    Abstract base model.

    Services never hand model instances to callers; they return to_dict()
    output, so that mapping is the public shape of each row.
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid_lib.uuid4()), index=True
    )
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    # Never written from caller-supplied data
    PROTECTED_FIELDS = ("id", "uuid", "organization_id", "created_at", "updated_at")

    @classmethod
    def writable_columns(cls) -> List[str]:
        return [c.name for c in cls.__table__.columns if c.name not in cls.PROTECTED_FIELDS]

    def to_dict(self) -> Dict[str, Any]:
        """Column values keyed by column name, dates as ISO strings."""
        return {
            column.name: _plain(getattr(self, column.name)) for column in self.__table__.columns
        }

    @validates("uuid")
    def _validate_uuid(self, _key: str, value: Any) -> str:
        return value if value is None else str(value)

    def apply_changes(self, data: Mapping[str, Any]) -> List[str]:
        """
        Copy writable column values from ``data`` onto this row.

        Keys that are not columns, or are protected, are ignored. The
        updated_at stamp only moves when something actually changed.

        Returns:
            Names of the columns whose value changed
        """
        changed = []
        for name in self.writable_columns():
            if name in data and getattr(self, name) != data[name]:
                setattr(self, name, data[name])
                changed.append(name)
        if changed:
            self.updated_at = utc_now()
        return changed


def _plain(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class OrganizationScopedMixin:
    """Adds the organization_id column every tenant-owned table carries."""

    organization_id = Column(String(64), nullable=False, index=True)
