from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

import pytest

from apps.helpdesk.tickets.errors import ResourceInUseError
from apps.helpdesk.tickets.models import (
    Account,
    CallerClaim,
    Category,
    ClientProfile,
    Role,
    TechnicianProfile,
    Ticket,
    TicketPriority,
)
from apps.helpdesk.tickets.state import TicketStatus


class InMemoryHelpdeskStore:
    """Dictionary backed store mirroring the SQL store's join behaviour."""

    def __init__(self) -> None:
        self.accounts: dict[int, Account] = {}
        self.clients: dict[int, ClientProfile] = {}
        self.technicians: dict[int, TechnicianProfile] = {}
        self.categories: dict[int, Category] = {}
        self.tickets: dict[int, Ticket] = {}
        self.passwords: dict[int, str] = {}
        self.writes = 0
        self._next_ticket_id = 1

    # seeding helpers
    def seed_ticket(
        self,
        *,
        status: TicketStatus = TicketStatus.OPEN,
        client_id: int = 1,
        category_id: int = 1,
        technician_id: int | None = None,
        priority: TicketPriority = TicketPriority.MEDIUM,
    ) -> Ticket:
        now = datetime.now(timezone.utc)
        ticket = Ticket(
            id=self._next_ticket_id,
            title="Printer jammed",
            description="The office printer keeps jamming on every page",
            status=status,
            priority=priority,
            client_id=client_id,
            category_id=category_id,
            created_by_id=1,
            created_at=now,
            updated_at=now,
            technician_id=technician_id,
        )
        self.tickets[ticket.id] = ticket
        self._next_ticket_id += 1
        return self._hydrate(ticket)

    def _hydrate(self, ticket: Ticket) -> Ticket:
        client = self.clients.get(ticket.client_id)
        technician = self.technicians.get(ticket.technician_id) if ticket.technician_id else None
        return replace(
            ticket,
            client_account_id=client.account_id if client else None,
            technician_account_id=technician.account_id if technician else None,
        )

    async def get_ticket(self, ticket_id: int) -> Ticket | None:
        ticket = self.tickets.get(ticket_id)
        return None if ticket is None else self._hydrate(ticket)

    async def list_tickets(self) -> Sequence[Ticket]:
        return [self._hydrate(ticket) for ticket in self.tickets.values()]

    async def list_tickets_for_client(self, client_id: int) -> Sequence[Ticket]:
        return [self._hydrate(t) for t in self.tickets.values() if t.client_id == client_id]

    async def list_tickets_for_technician(self, technician_id: int) -> Sequence[Ticket]:
        return [self._hydrate(t) for t in self.tickets.values() if t.technician_id == technician_id]

    async def count_tickets(self, *, technician_id: int, status: TicketStatus) -> int:
        return sum(1 for t in self.tickets.values() if t.technician_id == technician_id and t.status == status)

    async def add_ticket(self, ticket: Ticket) -> Ticket:
        self.writes += 1
        stored = replace(ticket, id=self._next_ticket_id)
        self._next_ticket_id += 1
        self.tickets[stored.id] = stored
        return self._hydrate(stored)

    async def save_ticket(self, ticket: Ticket) -> Ticket | None:
        if ticket.id not in self.tickets:
            return None
        self.writes += 1
        self.tickets[ticket.id] = ticket
        return self._hydrate(ticket)

    async def delete_ticket(self, ticket_id: int) -> bool:
        self.writes += 1
        return self.tickets.pop(ticket_id, None) is not None

    async def get_account(self, account_id: int) -> Account | None:
        return self.accounts.get(account_id)

    async def get_client(self, client_id: int) -> ClientProfile | None:
        return self.clients.get(client_id)

    async def get_technician(self, technician_id: int) -> TechnicianProfile | None:
        return self.technicians.get(technician_id)

    async def get_category(self, category_id: int) -> Category | None:
        return self.categories.get(category_id)

    async def get_client_profile_for_account(self, account_id: int) -> ClientProfile | None:
        return next((c for c in self.clients.values() if c.account_id == account_id), None)

    async def get_technician_profile_for_account(self, account_id: int) -> TechnicianProfile | None:
        return next((t for t in self.technicians.values() if t.account_id == account_id), None)

    async def list_categories(self) -> Sequence[Category]:
        return sorted(self.categories.values(), key=lambda category: category.name)

    async def get_category_by_name(self, name: str) -> Category | None:
        return next((c for c in self.categories.values() if c.name == name), None)

    async def add_category(self, name: str, description: str | None) -> Category:
        self.writes += 1
        category = Category(id=max(self.categories, default=0) + 1, name=name, description=description)
        self.categories[category.id] = category
        return category

    async def list_accounts(self) -> Sequence[Account]:
        return [self.accounts[key] for key in sorted(self.accounts)]

    async def get_account_by_email(self, email: str) -> Account | None:
        return next((a for a in self.accounts.values() if a.email == email), None)

    async def add_account(self, *, name: str, email: str, hashed_password: str, role: Role) -> Account:
        self.writes += 1
        account = Account(id=max(self.accounts, default=0) + 1, name=name, email=email, role=role)
        self.accounts[account.id] = account
        self.passwords[account.id] = hashed_password
        return account

    async def update_account(self, account_id: int, changes: Mapping[str, Any]) -> Account | None:
        if account_id not in self.accounts:
            return None
        self.writes += 1
        changes = dict(changes)
        if "hashed_password" in changes:
            self.passwords[account_id] = changes.pop("hashed_password")
        self.accounts[account_id] = replace(self.accounts[account_id], **changes)
        return self.accounts[account_id]

    async def delete_account(self, account_id: int) -> bool:
        if account_id not in self.accounts:
            return False
        owned_clients = {c.id for c in self.clients.values() if c.account_id == account_id}
        owned_technicians = {t.id for t in self.technicians.values() if t.account_id == account_id}
        if any(
            t.created_by_id == account_id or t.client_id in owned_clients or t.technician_id in owned_technicians
            for t in self.tickets.values()
        ):
            raise ResourceInUseError("account", account_id)
        self.writes += 1
        del self.accounts[account_id]
        self.passwords.pop(account_id, None)
        # profiles cascade with their account
        self.clients = {k: c for k, c in self.clients.items() if c.account_id != account_id}
        self.technicians = {k: t for k, t in self.technicians.items() if t.account_id != account_id}
        return True

    async def list_clients(self) -> Sequence[ClientProfile]:
        return [self.clients[key] for key in sorted(self.clients)]

    async def add_client(
        self, *, name: str, contact_email: str, account_id: int, company: str | None
    ) -> ClientProfile:
        self.writes += 1
        client = ClientProfile(
            id=max(self.clients, default=0) + 1,
            name=name,
            contact_email=contact_email,
            account_id=account_id,
            company=company,
        )
        self.clients[client.id] = client
        return client

    async def update_client(self, client_id: int, changes: Mapping[str, Any]) -> ClientProfile | None:
        if client_id not in self.clients:
            return None
        self.writes += 1
        self.clients[client_id] = replace(self.clients[client_id], **changes)
        return self.clients[client_id]

    async def delete_client(self, client_id: int) -> bool:
        if any(t.client_id == client_id for t in self.tickets.values()):
            raise ResourceInUseError("client", client_id)
        self.writes += 1
        return self.clients.pop(client_id, None) is not None

    async def list_technicians(self) -> Sequence[TechnicianProfile]:
        return [self.technicians[key] for key in sorted(self.technicians)]

    async def add_technician(
        self, *, name: str, specialty: str, availability: bool, account_id: int
    ) -> TechnicianProfile:
        self.writes += 1
        technician = TechnicianProfile(
            id=max(self.technicians, default=0) + 1,
            name=name,
            specialty=specialty,
            availability=availability,
            account_id=account_id,
        )
        self.technicians[technician.id] = technician
        return technician

    async def update_technician(
        self, technician_id: int, changes: Mapping[str, Any]
    ) -> TechnicianProfile | None:
        if technician_id not in self.technicians:
            return None
        self.writes += 1
        self.technicians[technician_id] = replace(self.technicians[technician_id], **changes)
        return self.technicians[technician_id]

    async def delete_technician(self, technician_id: int) -> bool:
        if any(t.technician_id == technician_id for t in self.tickets.values()):
            raise ResourceInUseError("technician", technician_id)
        self.writes += 1
        return self.technicians.pop(technician_id, None) is not None


@pytest.fixture
def store() -> InMemoryHelpdeskStore:
    """Store seeded with one admin, two clients and two technicians.

    Accounts: 1 admin, 2 client (profile 1), 3 technician (profile 7),
    4 technician (profile 8), 5 client (profile 2). Category 1 is Hardware.
    """

    store = InMemoryHelpdeskStore()
    store.accounts = {
        1: Account(id=1, name="Ada Admin", email="admin@example.com", role=Role.ADMIN),
        2: Account(id=2, name="Carla Client", email="carla@example.com", role=Role.CLIENT),
        3: Account(id=3, name="Tomas Tech", email="tomas@example.com", role=Role.TECHNICIAN),
        4: Account(id=4, name="Tara Tech", email="tara@example.com", role=Role.TECHNICIAN),
        5: Account(id=5, name="Omar Other", email="omar@example.com", role=Role.CLIENT),
    }
    store.clients = {
        1: ClientProfile(id=1, name="Carla Client", contact_email="carla@example.com", account_id=2),
        2: ClientProfile(id=2, name="Omar Other", contact_email="omar@example.com", account_id=5),
    }
    store.technicians = {
        7: TechnicianProfile(id=7, name="Tomas Tech", specialty="Hardware", account_id=3),
        8: TechnicianProfile(id=8, name="Tara Tech", specialty="Networking", availability=False, account_id=4),
    }
    store.categories = {1: Category(id=1, name="Hardware", description="Physical devices")}
    return store


@pytest.fixture
def admin() -> CallerClaim:
    return CallerClaim(subject_id=1, role=Role.ADMIN)


@pytest.fixture
def client_caller() -> CallerClaim:
    return CallerClaim(subject_id=2, role=Role.CLIENT)


@pytest.fixture
def other_client_caller() -> CallerClaim:
    return CallerClaim(subject_id=5, role=Role.CLIENT)


@pytest.fixture
def technician() -> CallerClaim:
    return CallerClaim(subject_id=3, role=Role.TECHNICIAN)


@pytest.fixture
def other_technician() -> CallerClaim:
    return CallerClaim(subject_id=4, role=Role.TECHNICIAN)
