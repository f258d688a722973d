"""
Base class, column types and AuditMixin for all SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Integer, Numeric, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGSERIAL on PostgreSQL, INTEGER PRIMARY KEY (rowid autoincrement) on SQLite
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")
JSON_TYPE = JSON().with_variant(JSONB, "postgresql")
# Rupees with paise precision
MONEY = Numeric(12, 2)
RATE = Numeric(5, 2)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class AuditMixin:
    """
    Soft-delete flag and audit timestamps shared by every table.
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)}, {state})>"
