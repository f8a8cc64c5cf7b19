"""Errors raised by the ticket engine.

Every error carries a stable ``code`` so the transport layer can render it
without inspecting the message. None of them are logged here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from .state import TicketStatus


class TicketServiceError(RuntimeError):
    """Base error for ticket engine issues."""

    code = "TICKET_SERVICE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"errorCode": self.code, "message": self.message, "details": self.details()}


class InvalidArgumentError(TicketServiceError):
    """Raised when a required input field is missing or unusable."""

    code = "INVALID_ARGUMENT"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field} is required")

    def details(self) -> dict[str, Any]:
        return {"field": self.field}


class ResourceNotFoundError(TicketServiceError):
    """Raised when a ticket or a referenced record does not exist."""

    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            message = f"{resource.capitalize()} not found"
        else:
            message = f"{resource.capitalize()} with id {resource_id} not found"
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, "id": self.resource_id}


class ForbiddenError(TicketServiceError):
    """Raised when the caller's role or ownership does not permit the operation."""

    code = "FORBIDDEN"


class DuplicateResourceError(TicketServiceError):
    """Raised when a unique value is already taken by another record."""

    code = "RESOURCE_CONFLICT"

    def __init__(self, resource: str, value: Any, *, field: str = "name") -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource.capitalize()} with {field} {value!r} already exists")

    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, self.field: self.value}


class ResourceInUseError(TicketServiceError):
    """Raised when a record cannot be removed while tickets still reference it."""

    code = "RESOURCE_IN_USE"

    def __init__(self, resource: str, resource_id: Any) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource.capitalize()} with id {resource_id} is still referenced by tickets")

    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, "id": self.resource_id}


class InvalidTransitionError(TicketServiceError):
    """Raised when a status change does not follow the ticket lifecycle."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(
        self,
        current: "TicketStatus",
        requested: "TicketStatus",
        allowed: Sequence["TicketStatus"],
    ) -> None:
        self.current = current
        self.requested = requested
        self.allowed = tuple(allowed)
        allowed_text = ", ".join(status.value for status in self.allowed) or "none"
        super().__init__(
            f"Invalid status transition: {current.value} -> {requested.value}. "
            f"Allowed transitions from {current.value}: {allowed_text}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "current": self.current.value,
            "requested": self.requested.value,
            "allowed": [status.value for status in self.allowed],
        }


class CapacityExceededError(TicketServiceError):
    """Raised when a technician already carries the maximum in-progress workload."""

    code = "TECHNICIAN_WORKLOAD_EXCEEDED"

    def __init__(self, technician_id: int, current_count: int, limit: int) -> None:
        self.technician_id = technician_id
        self.current_count = current_count
        self.limit = limit
        super().__init__(
            f"Technician {technician_id} already has {current_count} in-progress tickets. "
            f"Cannot exceed {limit}."
        )

    def details(self) -> dict[str, Any]:
        return {
            "technicianId": self.technician_id,
            "currentCount": self.current_count,
            "limit": self.limit,
        }
