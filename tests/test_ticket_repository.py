from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from sqlalchemy.exc import IntegrityError

from apps.helpdesk.tickets.errors import ResourceInUseError
from apps.helpdesk.tickets.models import Role, Ticket, TicketPriority
from apps.helpdesk.tickets.repository import SqlHelpdeskStore
from apps.helpdesk.tickets.state import TicketStatus
from packages.db.models import AccountTable, CategoryTable, ClientTable, TicketTable


class DummySessionContext:
    def __init__(self, session):
        self._session = session

    async def __aenter__(self):
        return self._session

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummySessionFactory:
    def __init__(self, session):
        self._session = session
        self.opened = 0

    def __call__(self):
        self.opened += 1
        return DummySessionContext(self._session)


def _session() -> AsyncMock:
    session = AsyncMock()
    session.add = Mock()
    return session


def _ticket_row(**overrides) -> TicketTable:
    fields = {
        "id": 11,
        "title": "VPN drops",
        "description": "The VPN disconnects every ten minutes",
        "status": "IN_PROGRESS",
        "priority": "HIGH",
        "client_id": 1,
        "category_id": 1,
        "created_by_id": 1,
        "technician_id": 7,
        "created_at": datetime(2025, 12, 9, 8, 0),
        "updated_at": datetime(2025, 12, 9, 9, 0),
    }
    fields.update(overrides)
    return TicketTable(**fields)


@pytest.mark.asyncio
async def test_ensure_schema_requires_engine():
    store = SqlHelpdeskStore(DummySessionFactory(_session()))
    with pytest.raises(RuntimeError):
        await store.ensure_schema()


def test_row_to_ticket_restores_enums_and_timezone():
    ticket = SqlHelpdeskStore._row_to_ticket(_ticket_row(), 2, 3)

    assert ticket.status is TicketStatus.IN_PROGRESS
    assert ticket.priority is TicketPriority.HIGH
    assert ticket.created_at.tzinfo is timezone.utc
    assert (ticket.client_account_id, ticket.technician_account_id) == (2, 3)


@pytest.mark.asyncio
async def test_get_ticket_reads_joined_account_ids():
    session = _session()
    result = MagicMock()
    result.all.return_value = [(_ticket_row(), 2, None)]
    session.execute = AsyncMock(return_value=result)
    store = SqlHelpdeskStore(DummySessionFactory(session))

    ticket = await store.get_ticket(11)

    assert ticket is not None
    assert ticket.id == 11
    assert ticket.client_account_id == 2
    assert ticket.technician_account_id is None


@pytest.mark.asyncio
async def test_get_ticket_missing_returns_none():
    session = _session()
    result = MagicMock()
    result.all.return_value = []
    session.execute = AsyncMock(return_value=result)

    assert await SqlHelpdeskStore(DummySessionFactory(session)).get_ticket(99) is None


@pytest.mark.asyncio
async def test_count_tickets_returns_scalar():
    session = _session()
    result = MagicMock()
    result.scalar_one.return_value = 4
    session.execute = AsyncMock(return_value=result)
    store = SqlHelpdeskStore(DummySessionFactory(session))

    count = await store.count_tickets(technician_id=7, status=TicketStatus.IN_PROGRESS)

    assert count == 4
    statement = str(session.execute.await_args.args[0])
    assert "count" in statement.lower()
    assert "technician_id" in statement


@pytest.mark.asyncio
async def test_save_ticket_missing_row_returns_none():
    session = _session()
    session.get = AsyncMock(return_value=None)
    store = SqlHelpdeskStore(DummySessionFactory(session))
    now = datetime.now(timezone.utc)
    ticket = Ticket(
        id=5,
        title="Gone",
        description="Deleted before the update landed",
        status=TicketStatus.OPEN,
        priority=TicketPriority.LOW,
        client_id=1,
        category_id=1,
        created_by_id=1,
        created_at=now,
        updated_at=now,
    )

    assert await store.save_ticket(ticket) is None
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_ticket_reports_whether_a_row_was_removed():
    row = _ticket_row()
    session = _session()
    session.get = AsyncMock(side_effect=[row, None])
    store = SqlHelpdeskStore(DummySessionFactory(session))

    assert await store.delete_ticket(11) is True
    session.delete.assert_awaited_once_with(row)
    session.commit.assert_awaited_once()

    assert await store.delete_ticket(11) is False
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_account_converts_role():
    session = _session()
    session.get = AsyncMock(
        return_value=AccountTable(id=1, name="Ada Admin", email="admin@example.com", role="ADMIN")
    )

    account = await SqlHelpdeskStore(DummySessionFactory(session)).get_account(1)

    assert account is not None
    assert account.role is Role.ADMIN


@pytest.mark.asyncio
async def test_add_category_commits_and_refreshes():
    session = _session()

    async def assign_id(row):
        row.id = 3

    session.refresh = AsyncMock(side_effect=assign_id)
    store = SqlHelpdeskStore(DummySessionFactory(session))

    category = await store.add_category("Network", None)

    assert (category.id, category.name) == (3, "Network")
    added = session.add.call_args.args[0]
    assert isinstance(added, CategoryTable)
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_of_referenced_row_rolls_back_as_in_use():
    session = _session()
    session.get = AsyncMock(return_value=ClientTable(id=4, name="Acme", contact_email="it@acme.test", account_id=2))
    session.commit = AsyncMock(side_effect=IntegrityError("DELETE FROM clients", {}, Exception("fk violation")))
    store = SqlHelpdeskStore(DummySessionFactory(session))

    with pytest.raises(ResourceInUseError) as exc:
        await store.delete_client(4)

    assert exc.value.details() == {"resource": "client", "id": 4}
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_account_stores_role_value():
    row = AccountTable(id=5, name="Omar Other", email="omar@example.com", role="CLIENT")
    session = _session()
    session.get = AsyncMock(return_value=row)
    store = SqlHelpdeskStore(DummySessionFactory(session))

    account = await store.update_account(5, {"role": Role.TECHNICIAN, "hashed_password": "pbkdf2_sha256$1$aa$bb"})

    assert row.role == "TECHNICIAN"
    assert row.hashed_password == "pbkdf2_sha256$1$aa$bb"
    assert account is not None and account.role is Role.TECHNICIAN
    session.commit.assert_awaited_once()

    session.get = AsyncMock(return_value=None)
    assert await store.update_account(6, {"name": "Ghost"}) is None
