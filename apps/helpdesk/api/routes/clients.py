from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from apps.helpdesk.dependencies.tickets import AdminCaller, ClientServiceDep

router = APIRouter(prefix="/clients", tags=["clients"])


class ClientCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=3, max_length=150)
    contact_email: EmailStr
    account_id: int = Field(..., ge=1)
    company: str | None = Field(default=None, max_length=150)


class ClientUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=150)
    contact_email: EmailStr | None = None
    account_id: int | None = Field(default=None, ge=1)
    company: str | None = Field(default=None, max_length=150)

    def to_patch(self) -> dict[str, object]:
        patch = self.model_dump(exclude_unset=True)
        if not patch:
            raise HTTPException(status_code=400, detail="No fields provided for update")
        return patch


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    contact_email: str
    account_id: int | None
    company: str | None


@router.get("", response_model=list[ClientResponse])
async def list_clients(service: ClientServiceDep, caller: AdminCaller) -> list[ClientResponse]:
    clients = await service.list_clients(caller)
    return [ClientResponse.model_validate(client) for client in clients]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, service: ClientServiceDep, caller: AdminCaller) -> ClientResponse:
    return ClientResponse.model_validate(await service.get_client(client_id, caller))


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(payload: ClientCreateRequest, service: ClientServiceDep, caller: AdminCaller) -> ClientResponse:
    client = await service.create_client(
        name=payload.name,
        contact_email=payload.contact_email,
        account_id=payload.account_id,
        company=payload.company,
        caller=caller,
    )
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int, payload: ClientUpdateRequest, service: ClientServiceDep, caller: AdminCaller
) -> ClientResponse:
    client = await service.update_client(client_id, payload.to_patch(), caller=caller)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: int, service: ClientServiceDep, caller: AdminCaller) -> None:
    await service.delete_client(client_id, caller)
