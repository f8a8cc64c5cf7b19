from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from apps.helpdesk.dependencies.tickets import AccountServiceDep, AdminCaller
from apps.helpdesk.tickets.models import Role

router = APIRouter(prefix="/users", tags=["users"])


class AccountCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=3, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = Field(default=Role.CLIENT)


class AccountUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=150)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6)
    role: Role | None = None

    def to_patch(self) -> dict[str, object]:
        patch = self.model_dump(exclude_unset=True)
        if not patch:
            raise HTTPException(status_code=400, detail="No fields provided for update")
        return patch


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role


@router.get("", response_model=list[AccountResponse])
async def list_accounts(service: AccountServiceDep, caller: AdminCaller) -> list[AccountResponse]:
    accounts = await service.list_accounts(caller)
    return [AccountResponse.model_validate(account) for account in accounts]


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(account_id: int, service: AccountServiceDep, caller: AdminCaller) -> AccountResponse:
    return AccountResponse.model_validate(await service.get_account(account_id, caller))


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: AccountCreateRequest, service: AccountServiceDep, caller: AdminCaller
) -> AccountResponse:
    account = await service.create_account(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        caller=caller,
    )
    return AccountResponse.model_validate(account)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int, payload: AccountUpdateRequest, service: AccountServiceDep, caller: AdminCaller
) -> AccountResponse:
    account = await service.update_account(account_id, payload.to_patch(), caller=caller)
    return AccountResponse.model_validate(account)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(account_id: int, service: AccountServiceDep, caller: AdminCaller) -> None:
    await service.delete_account(account_id, caller)
