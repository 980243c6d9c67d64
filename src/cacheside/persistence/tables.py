"""SQLAlchemy ORM models for Cacheside persistence."""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

CUSTOMER_NAME_MAX_LENGTH = 250


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CustomerTable(Base):
    """Customer table.

    The primary key is generated by the database on insert.
    """

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    customer_name: Mapped[str] = mapped_column(String(CUSTOMER_NAME_MAX_LENGTH), nullable=False)

    customer_no: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"CustomerTable(id={self.id!r}, customer_no={self.customer_no!r})"
