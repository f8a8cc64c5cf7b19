from fastapi import APIRouter

from apps.helpdesk.dependencies.auth import CurrentCaller

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health check")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/secure", summary="Authenticated health check")
async def secure_ping(caller: CurrentCaller) -> dict[str, str]:
    return {"status": "ok", "role": caller.role.value, "subject_id": str(caller.subject_id)}
