from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from apps.helpdesk.dependencies.tickets import (
    AdminCaller,
    TechnicianHistoryCaller,
    TechnicianServiceDep,
    TicketServiceDep,
)

router = APIRouter(prefix="/technicians", tags=["technicians"])


class TechnicianCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=3, max_length=150)
    specialty: str = Field(..., min_length=1, max_length=150)
    account_id: int = Field(..., ge=1)
    availability: bool = True


class TechnicianUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=150)
    specialty: str | None = Field(default=None, min_length=1, max_length=150)
    account_id: int | None = Field(default=None, ge=1)
    availability: bool | None = None

    def to_patch(self) -> dict[str, object]:
        patch = self.model_dump(exclude_unset=True)
        if not patch:
            raise HTTPException(status_code=400, detail="No fields provided for update")
        return patch


class TechnicianResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    specialty: str
    availability: bool
    account_id: int | None


class WorkloadResponse(BaseModel):
    technician_id: int
    in_progress: int
    limit: int
    availability: bool
    can_accept: bool


@router.get("", response_model=list[TechnicianResponse])
async def list_technicians(service: TechnicianServiceDep, caller: AdminCaller) -> list[TechnicianResponse]:
    technicians = await service.list_technicians(caller)
    return [TechnicianResponse.model_validate(technician) for technician in technicians]


@router.get("/{technician_id}", response_model=TechnicianResponse)
async def get_technician(
    technician_id: int, service: TechnicianServiceDep, caller: AdminCaller
) -> TechnicianResponse:
    return TechnicianResponse.model_validate(await service.get_technician(technician_id, caller))


@router.post("", response_model=TechnicianResponse, status_code=status.HTTP_201_CREATED)
async def create_technician(
    payload: TechnicianCreateRequest, service: TechnicianServiceDep, caller: AdminCaller
) -> TechnicianResponse:
    technician = await service.create_technician(
        name=payload.name,
        specialty=payload.specialty,
        account_id=payload.account_id,
        availability=payload.availability,
        caller=caller,
    )
    return TechnicianResponse.model_validate(technician)


@router.patch("/{technician_id}", response_model=TechnicianResponse)
async def update_technician(
    technician_id: int, payload: TechnicianUpdateRequest, service: TechnicianServiceDep, caller: AdminCaller
) -> TechnicianResponse:
    technician = await service.update_technician(technician_id, payload.to_patch(), caller=caller)
    return TechnicianResponse.model_validate(technician)


@router.delete("/{technician_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_technician(technician_id: int, service: TechnicianServiceDep, caller: AdminCaller) -> None:
    await service.delete_technician(technician_id, caller)


@router.get("/{technician_id}/workload", response_model=WorkloadResponse, summary="In-progress workload")
async def get_workload(
    technician_id: int, service: TicketServiceDep, caller: TechnicianHistoryCaller
) -> WorkloadResponse:
    workload = await service.get_technician_workload(technician_id, caller)
    return WorkloadResponse(
        technician_id=workload.technician_id,
        in_progress=workload.in_progress,
        limit=workload.limit,
        availability=workload.availability,
        can_accept=workload.can_accept,
    )
