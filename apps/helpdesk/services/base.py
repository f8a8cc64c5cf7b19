"""Checks shared by the administration services."""

from __future__ import annotations

from typing import Any, Collection

from apps.helpdesk.tickets.errors import ForbiddenError, InvalidArgumentError
from apps.helpdesk.tickets.models import CallerClaim, Role


def require_admin(caller: CallerClaim, action: str) -> None:
    if caller.role != Role.ADMIN:
        raise ForbiddenError(f"Only administrators can {action}")


def require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(field)
    return value.strip()


def reject_unknown_fields(patch: Collection[str], allowed: Collection[str]) -> None:
    unknown = sorted(set(patch) - set(allowed))
    if unknown:
        raise InvalidArgumentError(unknown[0], f"{unknown[0]} cannot be updated")
