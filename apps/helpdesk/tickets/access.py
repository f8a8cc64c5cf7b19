"""Role scoped read and write rules for tickets.

Each role is one :class:`AccessPolicy` variant. The policies only decide;
they never change stored state. Reads that need the caller's own profile
look it up through the store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Collection, Mapping, Sequence

from .errors import ForbiddenError, ResourceNotFoundError
from .models import CallerClaim, ClientProfile, Role, TechnicianProfile, Ticket
from .repository import HelpdeskStore


class AccessPolicy(ABC):
    """Contract shared by every role."""

    role: ClassVar[Role]
    _read_denied_message: ClassVar[str] = "You cannot view this ticket"

    @abstractmethod
    async def list_visible(self, caller: CallerClaim, store: HelpdeskStore) -> Sequence[Ticket]:
        """Return every ticket the caller may read."""

    @abstractmethod
    def can_read(self, caller: CallerClaim, ticket: Ticket) -> bool:
        ...

    async def get_visible(self, caller: CallerClaim, ticket_id: int, store: HelpdeskStore) -> Ticket:
        """Fetch a ticket, telling a missing ticket apart from one outside the caller's scope."""

        ticket = await store.get_ticket(ticket_id)
        if ticket is None:
            raise ResourceNotFoundError("ticket", ticket_id)
        if not self.can_read(caller, ticket):
            raise ForbiddenError(self._read_denied_message)
        return ticket

    def authorize_create(self, caller: CallerClaim, client: ClientProfile) -> None:
        raise ForbiddenError(f"Role {self.role.value} cannot create tickets")

    def authorize_update(self, caller: CallerClaim, ticket: Ticket, fields: Collection[str]) -> None:
        raise ForbiddenError(f"Role {self.role.value} cannot update tickets")

    def authorize_delete(self, caller: CallerClaim) -> None:
        raise ForbiddenError(f"Role {self.role.value} cannot delete tickets")

    def authorize_client_view(self, caller: CallerClaim, client: ClientProfile) -> None:
        raise ForbiddenError("You can only view your own ticket history")

    def authorize_technician_view(self, caller: CallerClaim, technician: TechnicianProfile) -> None:
        raise ForbiddenError("You can only view your own assigned tickets")


class AdminPolicy(AccessPolicy):
    role = Role.ADMIN

    async def list_visible(self, caller: CallerClaim, store: HelpdeskStore) -> Sequence[Ticket]:
        return await store.list_tickets()

    def can_read(self, caller: CallerClaim, ticket: Ticket) -> bool:
        return True

    def authorize_create(self, caller: CallerClaim, client: ClientProfile) -> None:
        return None

    def authorize_update(self, caller: CallerClaim, ticket: Ticket, fields: Collection[str]) -> None:
        return None

    def authorize_delete(self, caller: CallerClaim) -> None:
        return None

    def authorize_client_view(self, caller: CallerClaim, client: ClientProfile) -> None:
        return None

    def authorize_technician_view(self, caller: CallerClaim, technician: TechnicianProfile) -> None:
        return None


class TechnicianPolicy(AccessPolicy):
    role = Role.TECHNICIAN
    _read_denied_message = "You can only view tickets assigned to you"

    # Technicians move tickets through the lifecycle and touch nothing else.
    mutable_fields: ClassVar[frozenset[str]] = frozenset({"status"})

    async def list_visible(self, caller: CallerClaim, store: HelpdeskStore) -> Sequence[Ticket]:
        profile = await store.get_technician_profile_for_account(caller.subject_id)
        if profile is None:
            raise ResourceNotFoundError("technician profile")
        return await store.list_tickets_for_technician(profile.id)

    def can_read(self, caller: CallerClaim, ticket: Ticket) -> bool:
        return ticket.technician_account_id is not None and ticket.technician_account_id == caller.subject_id

    def authorize_update(self, caller: CallerClaim, ticket: Ticket, fields: Collection[str]) -> None:
        if not self.can_read(caller, ticket):
            raise ForbiddenError("You can only update tickets assigned to you")
        if any(name not in self.mutable_fields for name in fields):
            raise ForbiddenError("Technicians can only update ticket status")

    def authorize_technician_view(self, caller: CallerClaim, technician: TechnicianProfile) -> None:
        if technician.account_id != caller.subject_id:
            super().authorize_technician_view(caller, technician)


class ClientPolicy(AccessPolicy):
    role = Role.CLIENT
    _read_denied_message = "You can only view your own tickets"

    async def list_visible(self, caller: CallerClaim, store: HelpdeskStore) -> Sequence[Ticket]:
        profile = await store.get_client_profile_for_account(caller.subject_id)
        if profile is None:
            raise ResourceNotFoundError("client profile")
        return await store.list_tickets_for_client(profile.id)

    def can_read(self, caller: CallerClaim, ticket: Ticket) -> bool:
        return ticket.client_account_id is not None and ticket.client_account_id == caller.subject_id

    def authorize_create(self, caller: CallerClaim, client: ClientProfile) -> None:
        if client.account_id != caller.subject_id:
            raise ForbiddenError("Clients can only create tickets for themselves")

    def authorize_client_view(self, caller: CallerClaim, client: ClientProfile) -> None:
        if client.account_id != caller.subject_id:
            super().authorize_client_view(caller, client)


_POLICIES: Mapping[Role, AccessPolicy] = {
    policy.role: policy for policy in (AdminPolicy(), TechnicianPolicy(), ClientPolicy())
}


def policy_for(role: Role) -> AccessPolicy:
    """Return the access policy for ``role``."""

    try:
        return _POLICIES[role]
    except KeyError as exc:  # pragma: no cover - Role is a closed enum
        raise ForbiddenError(f"Unsupported role: {role}") from exc
