"""
SQLAlchemy declarative base and common model utilities.

All SQLAlchemy models should inherit from Base. Models declare scalar columns
and foreign keys only; many-to-many links live in the association tables of
app.features.assignments.models and are queried explicitly.
"""
from datetime import datetime
from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        from app.core.database.base import Base

        class Role(Base, TimestampMixin):
            __tablename__ = "roles"

            id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
            name: Mapped[str] = mapped_column(String(100), unique=True)
    """
    pass


class TimestampMixin:
    """
    Mixin adding a server-side created_at timestamp.
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
