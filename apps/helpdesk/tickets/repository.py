from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Mapping, Protocol, Sequence, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased
from sqlmodel import SQLModel, select

from packages.db.models import AccountTable, CategoryTable, ClientTable, TechnicianTable, TicketTable

from .errors import ResourceInUseError
from .models import Account, Category, ClientProfile, Role, TechnicianProfile, Ticket, TicketPriority
from .state import TicketStatus


class HelpdeskStore(Protocol):
    """Persistence operations the ticket engine relies on."""

    async def get_ticket(self, ticket_id: int) -> Ticket | None:
        ...

    async def list_tickets(self) -> Sequence[Ticket]:
        ...

    async def list_tickets_for_client(self, client_id: int) -> Sequence[Ticket]:
        ...

    async def list_tickets_for_technician(self, technician_id: int) -> Sequence[Ticket]:
        ...

    async def count_tickets(self, *, technician_id: int, status: TicketStatus) -> int:
        ...

    async def add_ticket(self, ticket: Ticket) -> Ticket:
        ...

    async def save_ticket(self, ticket: Ticket) -> Ticket | None:
        ...

    async def delete_ticket(self, ticket_id: int) -> bool:
        ...

    async def get_account(self, account_id: int) -> Account | None:
        ...

    async def get_client(self, client_id: int) -> ClientProfile | None:
        ...

    async def get_technician(self, technician_id: int) -> TechnicianProfile | None:
        ...

    async def get_category(self, category_id: int) -> Category | None:
        ...

    async def get_client_profile_for_account(self, account_id: int) -> ClientProfile | None:
        ...

    async def get_technician_profile_for_account(self, account_id: int) -> TechnicianProfile | None:
        ...

    async def list_categories(self) -> Sequence[Category]:
        ...

    async def get_category_by_name(self, name: str) -> Category | None:
        ...

    async def add_category(self, name: str, description: str | None) -> Category:
        ...

    async def list_accounts(self) -> Sequence[Account]:
        ...

    async def get_account_by_email(self, email: str) -> Account | None:
        ...

    async def add_account(self, *, name: str, email: str, hashed_password: str, role: Role) -> Account:
        ...

    async def update_account(self, account_id: int, changes: Mapping[str, Any]) -> Account | None:
        ...

    async def delete_account(self, account_id: int) -> bool:
        ...

    async def list_clients(self) -> Sequence[ClientProfile]:
        ...

    async def add_client(
        self, *, name: str, contact_email: str, account_id: int, company: str | None
    ) -> ClientProfile:
        ...

    async def update_client(self, client_id: int, changes: Mapping[str, Any]) -> ClientProfile | None:
        ...

    async def delete_client(self, client_id: int) -> bool:
        ...

    async def list_technicians(self) -> Sequence[TechnicianProfile]:
        ...

    async def add_technician(
        self, *, name: str, specialty: str, availability: bool, account_id: int
    ) -> TechnicianProfile:
        ...

    async def update_technician(
        self, technician_id: int, changes: Mapping[str, Any]
    ) -> TechnicianProfile | None:
        ...

    async def delete_technician(self, technician_id: int) -> bool:
        ...


_ClientOwner = aliased(ClientTable)
_TechnicianOwner = aliased(TechnicianTable)

_T = TypeVar("_T")


class SqlHelpdeskStore:
    """SQLModel backed implementation of :class:`HelpdeskStore`."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    @staticmethod
    def _ticket_query():
        return (
            select(
                TicketTable,
                _ClientOwner.account_id.label("client_account_id"),
                _TechnicianOwner.account_id.label("technician_account_id"),
            )
            .join(_ClientOwner, _ClientOwner.id == TicketTable.client_id)
            .outerjoin(_TechnicianOwner, _TechnicianOwner.id == TicketTable.technician_id)
        )

    async def _fetch_tickets(self, statement: Any) -> list[Ticket]:
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._row_to_ticket(*row) for row in result.all()]

    async def get_ticket(self, ticket_id: int) -> Ticket | None:
        tickets = await self._fetch_tickets(self._ticket_query().where(TicketTable.id == ticket_id))
        return tickets[0] if tickets else None

    async def list_tickets(self) -> Sequence[Ticket]:
        return await self._fetch_tickets(self._ticket_query().order_by(TicketTable.id.asc()))

    async def list_tickets_for_client(self, client_id: int) -> Sequence[Ticket]:
        return await self._fetch_tickets(
            self._ticket_query()
            .where(TicketTable.client_id == client_id)
            .order_by(TicketTable.created_at.desc())
        )

    async def list_tickets_for_technician(self, technician_id: int) -> Sequence[Ticket]:
        return await self._fetch_tickets(
            self._ticket_query()
            .where(TicketTable.technician_id == technician_id)
            .order_by(TicketTable.updated_at.desc())
        )

    async def count_tickets(self, *, technician_id: int, status: TicketStatus) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(TicketTable)
                .where(TicketTable.technician_id == technician_id)
                .where(TicketTable.status == status.value)
            )
            return int(result.scalar_one())

    async def add_ticket(self, ticket: Ticket) -> Ticket:
        async with self._session_factory() as session:
            row = TicketTable(
                title=ticket.title,
                description=ticket.description,
                status=ticket.status.value,
                priority=ticket.priority.value,
                client_id=ticket.client_id,
                category_id=ticket.category_id,
                created_by_id=ticket.created_by_id,
                technician_id=ticket.technician_id,
                created_at=ticket.created_at,
                updated_at=ticket.updated_at,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            ticket_id = row.id
        created = await self.get_ticket(ticket_id)
        if created is None:
            raise RuntimeError("Failed to insert ticket")
        return created

    async def save_ticket(self, ticket: Ticket) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket.id)
            if row is None:
                return None
            row.title = ticket.title
            row.description = ticket.description
            row.status = ticket.status.value
            row.priority = ticket.priority.value
            row.category_id = ticket.category_id
            row.technician_id = ticket.technician_id
            row.updated_at = ticket.updated_at
            await session.commit()
        return await self.get_ticket(ticket.id)

    async def delete_ticket(self, ticket_id: int) -> bool:
        return await self._delete_row(TicketTable, ticket_id, "ticket")

    async def get_account(self, account_id: int) -> Account | None:
        async with self._session_factory() as session:
            row = await session.get(AccountTable, account_id)
            return None if row is None else self._table_to_account(row)

    async def get_client(self, client_id: int) -> ClientProfile | None:
        async with self._session_factory() as session:
            row = await session.get(ClientTable, client_id)
            return None if row is None else self._table_to_client(row)

    async def get_technician(self, technician_id: int) -> TechnicianProfile | None:
        async with self._session_factory() as session:
            row = await session.get(TechnicianTable, technician_id)
            return None if row is None else self._table_to_technician(row)

    async def get_category(self, category_id: int) -> Category | None:
        async with self._session_factory() as session:
            row = await session.get(CategoryTable, category_id)
            return None if row is None else self._table_to_category(row)

    async def get_client_profile_for_account(self, account_id: int) -> ClientProfile | None:
        async with self._session_factory() as session:
            result = await session.execute(select(ClientTable).where(ClientTable.account_id == account_id))
            row = result.scalars().first()
            return None if row is None else self._table_to_client(row)

    async def get_technician_profile_for_account(self, account_id: int) -> TechnicianProfile | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TechnicianTable).where(TechnicianTable.account_id == account_id)
            )
            row = result.scalars().first()
            return None if row is None else self._table_to_technician(row)

    async def list_categories(self) -> Sequence[Category]:
        async with self._session_factory() as session:
            result = await session.execute(select(CategoryTable).order_by(CategoryTable.name.asc()))
            return [self._table_to_category(row) for row in result.scalars().all()]

    async def get_category_by_name(self, name: str) -> Category | None:
        async with self._session_factory() as session:
            result = await session.execute(select(CategoryTable).where(CategoryTable.name == name))
            row = result.scalars().first()
            return None if row is None else self._table_to_category(row)

    async def add_category(self, name: str, description: str | None) -> Category:
        return await self._insert_row(CategoryTable(name=name, description=description), self._table_to_category)

    async def list_accounts(self) -> Sequence[Account]:
        async with self._session_factory() as session:
            result = await session.execute(select(AccountTable).order_by(AccountTable.id.asc()))
            return [self._table_to_account(row) for row in result.scalars().all()]

    async def get_account_by_email(self, email: str) -> Account | None:
        async with self._session_factory() as session:
            result = await session.execute(select(AccountTable).where(AccountTable.email == email))
            row = result.scalars().first()
            return None if row is None else self._table_to_account(row)

    async def add_account(self, *, name: str, email: str, hashed_password: str, role: Role) -> Account:
        row = AccountTable(name=name, email=email, hashed_password=hashed_password, role=role.value)
        return await self._insert_row(row, self._table_to_account)

    async def update_account(self, account_id: int, changes: Mapping[str, Any]) -> Account | None:
        return await self._update_row(AccountTable, account_id, changes, self._table_to_account)

    async def delete_account(self, account_id: int) -> bool:
        return await self._delete_row(AccountTable, account_id, "account")

    async def list_clients(self) -> Sequence[ClientProfile]:
        async with self._session_factory() as session:
            result = await session.execute(select(ClientTable).order_by(ClientTable.id.asc()))
            return [self._table_to_client(row) for row in result.scalars().all()]

    async def add_client(
        self, *, name: str, contact_email: str, account_id: int, company: str | None
    ) -> ClientProfile:
        row = ClientTable(name=name, contact_email=contact_email, account_id=account_id, company=company)
        return await self._insert_row(row, self._table_to_client)

    async def update_client(self, client_id: int, changes: Mapping[str, Any]) -> ClientProfile | None:
        return await self._update_row(ClientTable, client_id, changes, self._table_to_client)

    async def delete_client(self, client_id: int) -> bool:
        return await self._delete_row(ClientTable, client_id, "client")

    async def list_technicians(self) -> Sequence[TechnicianProfile]:
        async with self._session_factory() as session:
            result = await session.execute(select(TechnicianTable).order_by(TechnicianTable.id.asc()))
            return [self._table_to_technician(row) for row in result.scalars().all()]

    async def add_technician(
        self, *, name: str, specialty: str, availability: bool, account_id: int
    ) -> TechnicianProfile:
        row = TechnicianTable(name=name, specialty=specialty, availability=availability, account_id=account_id)
        return await self._insert_row(row, self._table_to_technician)

    async def update_technician(
        self, technician_id: int, changes: Mapping[str, Any]
    ) -> TechnicianProfile | None:
        return await self._update_row(TechnicianTable, technician_id, changes, self._table_to_technician)

    async def delete_technician(self, technician_id: int) -> bool:
        return await self._delete_row(TechnicianTable, technician_id, "technician")

    async def _insert_row(self, row: SQLModel, convert: Callable[[Any], _T]) -> _T:
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return convert(row)

    async def _update_row(
        self,
        table: type[SQLModel],
        row_id: int,
        changes: Mapping[str, Any],
        convert: Callable[[Any], _T],
    ) -> _T | None:
        async with self._session_factory() as session:
            row = await session.get(table, row_id)
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, value.value if isinstance(value, Enum) else value)
            await session.commit()
            await session.refresh(row)
            return convert(row)

    async def _delete_row(self, table: type[SQLModel], row_id: int, resource: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(table, row_id)
            if row is None:
                return False
            await session.delete(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ResourceInUseError(resource, row_id) from exc
            return True

    @staticmethod
    def _row_to_ticket(
        row: TicketTable,
        client_account_id: int | None = None,
        technician_account_id: int | None = None,
    ) -> Ticket:
        return Ticket(
            id=row.id,
            title=row.title,
            description=row.description,
            status=TicketStatus(row.status),
            priority=TicketPriority(row.priority),
            client_id=row.client_id,
            category_id=row.category_id,
            created_by_id=row.created_by_id,
            technician_id=row.technician_id,
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
            client_account_id=client_account_id,
            technician_account_id=technician_account_id,
        )

    @staticmethod
    def _table_to_account(row: AccountTable) -> Account:
        return Account(id=row.id, name=row.name, email=row.email, role=Role(row.role))

    @staticmethod
    def _table_to_client(row: ClientTable) -> ClientProfile:
        return ClientProfile(
            id=row.id,
            name=row.name,
            company=row.company,
            contact_email=row.contact_email,
            account_id=row.account_id,
        )

    @staticmethod
    def _table_to_technician(row: TechnicianTable) -> TechnicianProfile:
        return TechnicianProfile(
            id=row.id,
            name=row.name,
            specialty=row.specialty,
            availability=bool(row.availability),
            account_id=row.account_id,
        )

    @staticmethod
    def _table_to_category(row: CategoryTable) -> Category:
        return Category(id=row.id, name=row.name, description=row.description)


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")
