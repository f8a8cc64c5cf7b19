from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence, TypeVar

from .access import policy_for
from .errors import InvalidArgumentError, ResourceNotFoundError
from .models import CallerClaim, Ticket, TicketPriority
from .repository import HelpdeskStore
from .state import TicketStateMachine, TicketStatus
from .workload import WorkloadAdmissionController

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "description", "status", "priority", "technician_id", "category_id"})

_E = TypeVar("_E", bound=Enum)


@dataclass(frozen=True, slots=True)
class TechnicianWorkload:
    """Live in-progress count of a technician against the admission limit."""

    technician_id: int
    in_progress: int
    limit: int
    availability: bool

    @property
    def can_accept(self) -> bool:
        return self.in_progress < self.limit


def _coerce(enum_type: type[_E], value: Any, field: str) -> _E:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise InvalidArgumentError(field, f"{value!r} is not a valid {field}") from exc


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(field)
    return value


class TicketService:
    """High level orchestration of the ticket lifecycle.

    Every operation validates completely before its single write, so a
    failed check never leaves a partially updated ticket behind.
    """

    def __init__(
        self,
        store: HelpdeskStore,
        *,
        admission: WorkloadAdmissionController | None = None,
        state_machine: TicketStateMachine | None = None,
    ) -> None:
        self._store = store
        self._admission = admission or WorkloadAdmissionController(store)
        self._state_machine = state_machine or TicketStateMachine()

    async def create_ticket(
        self,
        *,
        title: str | None,
        description: str | None,
        client_id: int | None,
        category_id: int | None,
        created_by_id: int | None,
        caller: CallerClaim,
        priority: TicketPriority | str = TicketPriority.MEDIUM,
        technician_id: int | None = None,
    ) -> Ticket:
        draft = Ticket.open(
            title=title,
            description=description,
            client_id=client_id,
            category_id=category_id,
            created_by_id=created_by_id,
            priority=_coerce(TicketPriority, priority, "priority"),
            technician_id=technician_id,
        )

        client = await self._store.get_client(client_id)
        if client is None:
            raise ResourceNotFoundError("client", client_id)
        policy_for(caller.role).authorize_create(caller, client)

        if await self._store.get_category(category_id) is None:
            raise ResourceNotFoundError("category", category_id)
        if await self._store.get_account(created_by_id) is None:
            raise ResourceNotFoundError("account", created_by_id)
        if technician_id is not None and await self._store.get_technician(technician_id) is None:
            raise ResourceNotFoundError("technician", technician_id)

        async with self._admission.reserve(technician_id):
            ticket = await self._store.add_ticket(draft)

        logger.info("Ticket %s created by account %s", ticket.id, caller.subject_id)
        return ticket

    async def list_tickets(self, caller: CallerClaim) -> Sequence[Ticket]:
        return await policy_for(caller.role).list_visible(caller, self._store)

    async def get_ticket(self, ticket_id: int, caller: CallerClaim) -> Ticket:
        return await policy_for(caller.role).get_visible(caller, ticket_id, self._store)

    async def update_ticket(self, ticket_id: int, patch: Mapping[str, Any], *, caller: CallerClaim) -> Ticket:
        ticket = await self._store.get_ticket(ticket_id)
        if ticket is None:
            raise ResourceNotFoundError("ticket", ticket_id)
        policy_for(caller.role).authorize_update(caller, ticket, patch.keys())

        unknown = sorted(set(patch) - UPDATABLE_FIELDS)
        if unknown:
            raise InvalidArgumentError(unknown[0], f"{unknown[0]} cannot be updated")

        changes: dict[str, Any] = {}
        if "title" in patch:
            changes["title"] = _require_text(patch["title"], "title")
        if "description" in patch:
            changes["description"] = _require_text(patch["description"], "description")
        if "priority" in patch:
            changes["priority"] = _coerce(TicketPriority, patch["priority"], "priority")

        if "status" in patch:
            requested = _coerce(TicketStatus, patch["status"], "status")
            if requested != ticket.status or ticket.is_closed:
                self._state_machine.validate_transition(ticket.status, requested)
                changes["status"] = requested
        next_status = changes.get("status", ticket.status)

        admit_technician: int | None = None
        if "technician_id" in patch:
            technician_id = patch["technician_id"]
            technician_changes = technician_id != ticket.technician_id
            if technician_changes and ticket.is_closed:
                raise InvalidArgumentError("technician_id", "Cannot reassign a closed ticket")
            if technician_id is None:
                changes["technician_id"] = None
                changes["technician_account_id"] = None
            else:
                technician = await self._store.get_technician(technician_id)
                if technician is None:
                    raise ResourceNotFoundError("technician", technician_id)
                if technician_changes and next_status == TicketStatus.IN_PROGRESS:
                    admit_technician = technician_id
                changes["technician_id"] = technician_id
                changes["technician_account_id"] = technician.account_id

        if "category_id" in patch:
            category_id = patch["category_id"]
            if category_id is None:
                raise InvalidArgumentError("category_id")
            if await self._store.get_category(category_id) is None:
                raise ResourceNotFoundError("category", category_id)
            changes["category_id"] = category_id

        if not changes:
            return ticket

        updated = replace(ticket, **changes, updated_at=datetime.now(timezone.utc))
        async with self._admission.reserve(admit_technician):
            saved = await self._store.save_ticket(updated)
        if saved is None:
            raise ResourceNotFoundError("ticket", ticket_id)

        logger.info(
            "Ticket %s updated by account %s (%s)",
            ticket_id,
            caller.subject_id,
            ", ".join(sorted(patch)),
        )
        return saved

    async def change_status(self, ticket_id: int, *, new_status: TicketStatus | str, caller: CallerClaim) -> Ticket:
        return await self.update_ticket(ticket_id, {"status": new_status}, caller=caller)

    async def delete_ticket(self, ticket_id: int, caller: CallerClaim) -> None:
        policy_for(caller.role).authorize_delete(caller)
        deleted = await self._store.delete_ticket(ticket_id)
        if not deleted:
            raise ResourceNotFoundError("ticket", ticket_id)
        logger.info("Ticket %s removed by account %s", ticket_id, caller.subject_id)

    async def list_client_tickets(self, client_id: int, caller: CallerClaim) -> Sequence[Ticket]:
        client = await self._store.get_client(client_id)
        if client is None:
            raise ResourceNotFoundError("client", client_id)
        policy_for(caller.role).authorize_client_view(caller, client)
        return await self._store.list_tickets_for_client(client_id)

    async def list_technician_tickets(self, technician_id: int, caller: CallerClaim) -> Sequence[Ticket]:
        technician = await self._store.get_technician(technician_id)
        if technician is None:
            raise ResourceNotFoundError("technician", technician_id)
        policy_for(caller.role).authorize_technician_view(caller, technician)
        return await self._store.list_tickets_for_technician(technician_id)

    async def get_technician_workload(self, technician_id: int, caller: CallerClaim) -> TechnicianWorkload:
        technician = await self._store.get_technician(technician_id)
        if technician is None:
            raise ResourceNotFoundError("technician", technician_id)
        policy_for(caller.role).authorize_technician_view(caller, technician)
        return TechnicianWorkload(
            technician_id=technician_id,
            in_progress=await self._admission.in_progress_count(technician_id),
            limit=self._admission.limit,
            availability=technician.availability,
        )
