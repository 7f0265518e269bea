"""
SQLAlchemy ORM Base Definitions

Entities exposed through the CRUD scaffold inherit from `Base`; most also mix in
`EntityMixin` for the conventional id / created_at / updated_at columns.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from crud_scaffold.common.time import utc_now_naive


class Base(DeclarativeBase):
    """SQLAlchemy ORM Base Class"""
    pass


class EntityMixin:
    """
    Conventional entity columns

    Clients never write these fields; `BaseDTO` rejects them on create and update.
    """

    # Primary Key ID
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Creation Time
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now_naive, nullable=False
    )
    # Update Time
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False
    )
