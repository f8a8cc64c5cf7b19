from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidArgumentError
from .state import TicketStatus


class Role(str, Enum):
    """Roles an account can hold. They are mutually exclusive."""

    ADMIN = "ADMIN"
    TECHNICIAN = "TECHNICIAN"
    CLIENT = "CLIENT"


class CallerClaim(BaseModel):
    """Authenticated identity asserted for the current operation."""

    model_config = ConfigDict(frozen=True)

    subject_id: int = Field(..., ge=1)
    role: Role


class TicketPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True, slots=True)
class Ticket:
    """Immutable snapshot of a support ticket.

    ``client_account_id`` and ``technician_account_id`` identify the accounts
    owning the referenced profiles; the store fills them in on read so that
    ownership checks need no further lookups.
    """

    id: int | None
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    client_id: int
    category_id: int
    created_by_id: int
    created_at: datetime
    updated_at: datetime
    technician_id: int | None = None
    client_account_id: int | None = None
    technician_account_id: int | None = None

    @classmethod
    def open(
        cls,
        *,
        title: str | None,
        description: str | None,
        client_id: int | None,
        category_id: int | None,
        created_by_id: int | None,
        priority: TicketPriority = TicketPriority.MEDIUM,
        technician_id: int | None = None,
        now: datetime | None = None,
    ) -> "Ticket":
        """Build a new ticket. The status is always OPEN."""

        for field_name, value in (
            ("title", title),
            ("description", description),
            ("client_id", client_id),
            ("category_id", category_id),
            ("created_by_id", created_by_id),
        ):
            if value is None or (isinstance(value, str) and not value.strip()):
                raise InvalidArgumentError(field_name)

        timestamp = now or datetime.now(timezone.utc)
        return cls(
            id=None,
            title=title,
            description=description,
            status=TicketStatus.OPEN,
            priority=priority,
            client_id=client_id,
            category_id=category_id,
            created_by_id=created_by_id,
            created_at=timestamp,
            updated_at=timestamp,
            technician_id=technician_id,
        )

    @property
    def is_closed(self) -> bool:
        return self.status == TicketStatus.CLOSED


@dataclass(frozen=True, slots=True)
class Account:
    id: int
    name: str
    email: str
    role: Role


@dataclass(frozen=True, slots=True)
class ClientProfile:
    """A requesting party. ``account_id`` is the account that owns it."""

    id: int
    name: str
    contact_email: str
    account_id: int | None = None
    company: str | None = None


@dataclass(frozen=True, slots=True)
class TechnicianProfile:
    """A resolver. ``availability`` is informational and never enforced."""

    id: int
    name: str
    specialty: str
    availability: bool = True
    account_id: int | None = None


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    name: str
    description: str | None = None
