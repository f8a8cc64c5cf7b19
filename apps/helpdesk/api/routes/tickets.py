from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from apps.helpdesk.dependencies.tickets import (
    AdminCaller,
    ClientHistoryCaller,
    CreatorCaller,
    EditorCaller,
    ReaderCaller,
    TechnicianHistoryCaller,
    TicketServiceDep,
)
from apps.helpdesk.tickets.models import Role, Ticket, TicketPriority
from apps.helpdesk.tickets.state import TicketStatus

router = APIRouter(prefix="/tickets", tags=["tickets"])


class TicketCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=5, max_length=150)
    description: str = Field(..., min_length=10)
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM)
    client_id: int | None = Field(default=None, ge=1)
    category_id: int | None = Field(default=None, ge=1)
    technician_id: int | None = Field(default=None, ge=1)
    created_by_id: int | None = Field(default=None, ge=1)


class TicketUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=5, max_length=150)
    description: str | None = Field(default=None, min_length=10)
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    technician_id: int | None = Field(default=None, ge=1)
    category_id: int | None = Field(default=None, ge=1)

    def to_patch(self) -> dict[str, object]:
        patch = self.model_dump(exclude_unset=True)
        if not patch:
            raise HTTPException(status_code=400, detail="No fields provided for update")
        return patch


class TicketStatusChangeRequest(BaseModel):
    status: TicketStatus


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    client_id: int
    category_id: int
    created_by_id: int
    technician_id: int | None
    created_at: datetime
    updated_at: datetime


def _to_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse.model_validate(ticket)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketServiceDep,
    caller: CreatorCaller,
) -> TicketResponse:
    created_by_id = caller.subject_id
    if caller.role == Role.ADMIN and payload.created_by_id is not None:
        created_by_id = payload.created_by_id

    ticket = await service.create_ticket(
        title=payload.title,
        description=payload.description,
        client_id=payload.client_id,
        category_id=payload.category_id,
        created_by_id=created_by_id,
        priority=payload.priority,
        technician_id=payload.technician_id,
        caller=caller,
    )
    return _to_response(ticket)


@router.get("", response_model=list[TicketResponse], summary="List tickets visible to the caller")
async def list_tickets(service: TicketServiceDep, caller: ReaderCaller) -> list[TicketResponse]:
    tickets = await service.list_tickets(caller)
    return [_to_response(ticket) for ticket in tickets]


@router.get("/client/{client_id}", response_model=list[TicketResponse], summary="Ticket history of a client")
async def list_client_tickets(
    client_id: int, service: TicketServiceDep, caller: ClientHistoryCaller
) -> list[TicketResponse]:
    tickets = await service.list_client_tickets(client_id, caller)
    return [_to_response(ticket) for ticket in tickets]


@router.get(
    "/technician/{technician_id}",
    response_model=list[TicketResponse],
    summary="Tickets assigned to a technician",
)
async def list_technician_tickets(
    technician_id: int, service: TicketServiceDep, caller: TechnicianHistoryCaller
) -> list[TicketResponse]:
    tickets = await service.list_technician_tickets(technician_id, caller)
    return [_to_response(ticket) for ticket in tickets]


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: int, service: TicketServiceDep, caller: ReaderCaller) -> TicketResponse:
    ticket = await service.get_ticket(ticket_id, caller)
    return _to_response(ticket)


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: int,
    payload: TicketUpdateRequest,
    service: TicketServiceDep,
    caller: EditorCaller,
) -> TicketResponse:
    ticket = await service.update_ticket(ticket_id, payload.to_patch(), caller=caller)
    return _to_response(ticket)


@router.patch("/{ticket_id}/status", response_model=TicketResponse)
async def change_ticket_status(
    ticket_id: int,
    payload: TicketStatusChangeRequest,
    service: TicketServiceDep,
    caller: EditorCaller,
) -> TicketResponse:
    ticket = await service.change_status(ticket_id, new_status=payload.status, caller=caller)
    return _to_response(ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(ticket_id: int, service: TicketServiceDep, caller: AdminCaller) -> None:
    await service.delete_ticket(ticket_id, caller)
