from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from apps.helpdesk.dependencies.auth import role_required
from apps.helpdesk.services.accounts import AccountService
from apps.helpdesk.services.categories import CategoryService
from apps.helpdesk.services.clients import ClientService
from apps.helpdesk.services.technicians import TechnicianService
from apps.helpdesk.tickets.models import CallerClaim, Role
from apps.helpdesk.tickets.service import TicketService

require_admin = role_required(Role.ADMIN)
require_ticket_creator = role_required(Role.ADMIN, Role.CLIENT)
require_ticket_editor = role_required(Role.ADMIN, Role.TECHNICIAN)
require_ticket_reader = role_required(Role.ADMIN, Role.TECHNICIAN, Role.CLIENT)
require_client_history = role_required(Role.ADMIN, Role.CLIENT)
require_technician_history = role_required(Role.ADMIN, Role.TECHNICIAN)

AdminCaller = Annotated[CallerClaim, Depends(require_admin)]
CreatorCaller = Annotated[CallerClaim, Depends(require_ticket_creator)]
EditorCaller = Annotated[CallerClaim, Depends(require_ticket_editor)]
ReaderCaller = Annotated[CallerClaim, Depends(require_ticket_reader)]
ClientHistoryCaller = Annotated[CallerClaim, Depends(require_client_history)]
TechnicianHistoryCaller = Annotated[CallerClaim, Depends(require_technician_history)]


async def get_ticket_service(request: Request) -> TicketService:
    service = getattr(request.app.state, "ticket_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Ticket service is not configured")
    return service


async def get_category_service(request: Request) -> CategoryService:
    service = getattr(request.app.state, "category_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Category service is not configured")
    return service


async def get_account_service(request: Request) -> AccountService:
    service = getattr(request.app.state, "account_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Account service is not configured")
    return service


async def get_client_service(request: Request) -> ClientService:
    service = getattr(request.app.state, "client_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Client service is not configured")
    return service


async def get_technician_service(request: Request) -> TechnicianService:
    service = getattr(request.app.state, "technician_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Technician service is not configured")
    return service


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]
TechnicianServiceDep = Annotated[TechnicianService, Depends(get_technician_service)]
