"""Base Models and column helpers"""

import enum
import uuid
from typing import Type

from sqlalchemy import Column, DateTime, Enum, Uuid

from app.database import Base
from app.utils.time import get_utc_now


class BaseModel(Base):
    """
    Base model class with common fields for all models.

    Provides:
    - UUID primary key
    - created_at timestamp
    - updated_at timestamp
    """
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    created_at = Column(DateTime, default=get_utc_now, nullable=False)
    updated_at = Column(DateTime, default=get_utc_now, onupdate=get_utc_now, nullable=False)


def value_enum(enum_cls: Type[enum.Enum], name: str) -> Enum:
    """Enum column persisting member values ("Term 1") rather than names ("TERM_1")."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
