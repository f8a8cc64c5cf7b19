from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from apps.helpdesk.services.base import reject_unknown_fields, require_admin, require_text
from apps.helpdesk.tickets.errors import DuplicateResourceError, InvalidArgumentError, ResourceNotFoundError
from apps.helpdesk.tickets.models import CallerClaim, TechnicianProfile
from apps.helpdesk.tickets.repository import HelpdeskStore

logger = logging.getLogger(__name__)

TECHNICIAN_FIELDS = frozenset({"name", "specialty", "availability", "account_id"})


class TechnicianService:
    """Administrator-only management of technician profiles.

    ``availability`` is stored and reported but never checked on assignment.
    """

    def __init__(self, store: HelpdeskStore) -> None:
        self._store = store

    async def list_technicians(self, caller: CallerClaim) -> Sequence[TechnicianProfile]:
        require_admin(caller, "manage technicians")
        return await self._store.list_technicians()

    async def get_technician(self, technician_id: int, caller: CallerClaim) -> TechnicianProfile:
        require_admin(caller, "manage technicians")
        return await self._get(technician_id)

    async def create_technician(
        self,
        *,
        name: str,
        specialty: str,
        account_id: int,
        caller: CallerClaim,
        availability: bool = True,
    ) -> TechnicianProfile:
        require_admin(caller, "manage technicians")
        name = require_text(name, "name")
        specialty = require_text(specialty, "specialty")
        await self._ensure_owner_available(account_id)

        technician = await self._store.add_technician(
            name=name, specialty=specialty, availability=bool(availability), account_id=account_id
        )
        logger.info(
            "Technician %s created for account %s by account %s", technician.id, account_id, caller.subject_id
        )
        return technician

    async def update_technician(
        self, technician_id: int, patch: Mapping[str, Any], *, caller: CallerClaim
    ) -> TechnicianProfile:
        require_admin(caller, "manage technicians")
        reject_unknown_fields(patch, TECHNICIAN_FIELDS)
        technician = await self._get(technician_id)

        changes: dict[str, Any] = {}
        if "name" in patch:
            changes["name"] = require_text(patch["name"], "name")
        if "specialty" in patch:
            changes["specialty"] = require_text(patch["specialty"], "specialty")
        if "availability" in patch:
            if not isinstance(patch["availability"], bool):
                raise InvalidArgumentError("availability", "availability must be true or false")
            changes["availability"] = patch["availability"]
        if "account_id" in patch and patch["account_id"] != technician.account_id:
            await self._ensure_owner_available(patch["account_id"])
            changes["account_id"] = patch["account_id"]

        if not changes:
            return technician
        updated = await self._store.update_technician(technician_id, changes)
        if updated is None:
            raise ResourceNotFoundError("technician", technician_id)
        logger.info("Technician %s updated by account %s", technician_id, caller.subject_id)
        return updated

    async def delete_technician(self, technician_id: int, caller: CallerClaim) -> None:
        require_admin(caller, "manage technicians")
        if not await self._store.delete_technician(technician_id):
            raise ResourceNotFoundError("technician", technician_id)
        logger.info("Technician %s removed by account %s", technician_id, caller.subject_id)

    async def _get(self, technician_id: int) -> TechnicianProfile:
        technician = await self._store.get_technician(technician_id)
        if technician is None:
            raise ResourceNotFoundError("technician", technician_id)
        return technician

    async def _ensure_owner_available(self, account_id: Any) -> None:
        if account_id is None or await self._store.get_account(account_id) is None:
            raise ResourceNotFoundError("account", account_id)
        if await self._store.get_technician_profile_for_account(account_id) is not None:
            raise DuplicateResourceError("technician profile", account_id, field="account_id")
