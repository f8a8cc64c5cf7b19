from __future__ import annotations

from fastapi import APIRouter, status
from pydantic import BaseModel, ConfigDict, Field

from apps.helpdesk.dependencies.auth import CurrentCaller
from apps.helpdesk.dependencies.tickets import AdminCaller, CategoryServiceDep

router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: str | None = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None


@router.get("", response_model=list[CategoryResponse])
async def list_categories(service: CategoryServiceDep, _: CurrentCaller) -> list[CategoryResponse]:
    categories = await service.list_categories()
    return [CategoryResponse.model_validate(category) for category in categories]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, service: CategoryServiceDep, _: CurrentCaller) -> CategoryResponse:
    return CategoryResponse.model_validate(await service.get_category(category_id))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreateRequest, service: CategoryServiceDep, caller: AdminCaller
) -> CategoryResponse:
    category = await service.create_category(name=payload.name, description=payload.description, caller=caller)
    return CategoryResponse.model_validate(category)
