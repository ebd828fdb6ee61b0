"""Base model class for SQLAlchemy."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SurrogateIdMixin:
    """Mixin for an integer surrogate primary key.

    Tables using it set ``sqlite_autoincrement`` so ids of deleted rows are
    never handed out again.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
