"""SQLModel table definitions for the helpdesk data layer."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


class AccountTable(SQLModel, table=True):
    """Principals able to call the API, each carrying exactly one role."""

    __tablename__ = "accounts"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(150), nullable=False))
    email: str = Field(sa_column=Column(String(150), nullable=False, unique=True))
    hashed_password: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    role: str = Field(sa_column=Column(String(20), nullable=False))


class ClientTable(SQLModel, table=True):
    """Requesting parties; owned by a single account."""

    __tablename__ = "clients"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(150), nullable=False))
    company: str | None = Field(default=None, sa_column=Column(String(150), nullable=True))
    contact_email: str = Field(sa_column=Column(String(150), nullable=False))
    account_id: int | None = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True, unique=True),
    )


class TechnicianTable(SQLModel, table=True):
    """Resolvers tickets can be assigned to."""

    __tablename__ = "technicians"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(150), nullable=False))
    specialty: str = Field(sa_column=Column(String(150), nullable=False))
    availability: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    account_id: int | None = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True, unique=True),
    )


class CategoryTable(SQLModel, table=True):
    """Ticket categories managed by administrators."""

    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(150), nullable=False, unique=True))
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))


class TicketTable(SQLModel, table=True):
    """Support tickets tracked through the OPEN -> CLOSED lifecycle."""

    __tablename__ = "tickets"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_column=Column(String(150), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    status: str = Field(sa_column=Column(String(20), nullable=False, index=True))
    priority: str = Field(sa_column=Column(String(10), nullable=False))
    client_id: int = Field(sa_column=Column(Integer, ForeignKey("clients.id"), nullable=False))
    category_id: int = Field(sa_column=Column(Integer, ForeignKey("categories.id"), nullable=False))
    created_by_id: int = Field(sa_column=Column(Integer, ForeignKey("accounts.id"), nullable=False))
    technician_id: int | None = Field(
        default=None, sa_column=Column(Integer, ForeignKey("technicians.id"), nullable=True, index=True)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
