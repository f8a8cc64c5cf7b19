from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from apps.helpdesk.services.base import reject_unknown_fields, require_admin, require_text
from apps.helpdesk.tickets.errors import DuplicateResourceError, ResourceNotFoundError
from apps.helpdesk.tickets.models import CallerClaim, ClientProfile
from apps.helpdesk.tickets.repository import HelpdeskStore

logger = logging.getLogger(__name__)

CLIENT_FIELDS = frozenset({"name", "company", "contact_email", "account_id"})


class ClientService:
    """Administrator-only management of client profiles."""

    def __init__(self, store: HelpdeskStore) -> None:
        self._store = store

    async def list_clients(self, caller: CallerClaim) -> Sequence[ClientProfile]:
        require_admin(caller, "manage clients")
        return await self._store.list_clients()

    async def get_client(self, client_id: int, caller: CallerClaim) -> ClientProfile:
        require_admin(caller, "manage clients")
        return await self._get(client_id)

    async def create_client(
        self,
        *,
        name: str,
        contact_email: str,
        account_id: int,
        caller: CallerClaim,
        company: str | None = None,
    ) -> ClientProfile:
        require_admin(caller, "manage clients")
        name = require_text(name, "name")
        contact_email = require_text(contact_email, "contact_email")
        await self._ensure_owner_available(account_id)

        client = await self._store.add_client(
            name=name, contact_email=contact_email, account_id=account_id, company=company
        )
        logger.info("Client %s created for account %s by account %s", client.id, account_id, caller.subject_id)
        return client

    async def update_client(
        self, client_id: int, patch: Mapping[str, Any], *, caller: CallerClaim
    ) -> ClientProfile:
        require_admin(caller, "manage clients")
        reject_unknown_fields(patch, CLIENT_FIELDS)
        client = await self._get(client_id)

        changes: dict[str, Any] = {}
        if "name" in patch:
            changes["name"] = require_text(patch["name"], "name")
        if "contact_email" in patch:
            changes["contact_email"] = require_text(patch["contact_email"], "contact_email")
        if "company" in patch:
            changes["company"] = patch["company"]
        if "account_id" in patch and patch["account_id"] != client.account_id:
            await self._ensure_owner_available(patch["account_id"])
            changes["account_id"] = patch["account_id"]

        if not changes:
            return client
        updated = await self._store.update_client(client_id, changes)
        if updated is None:
            raise ResourceNotFoundError("client", client_id)
        logger.info("Client %s updated by account %s", client_id, caller.subject_id)
        return updated

    async def delete_client(self, client_id: int, caller: CallerClaim) -> None:
        require_admin(caller, "manage clients")
        if not await self._store.delete_client(client_id):
            raise ResourceNotFoundError("client", client_id)
        logger.info("Client %s removed by account %s", client_id, caller.subject_id)

    async def _get(self, client_id: int) -> ClientProfile:
        client = await self._store.get_client(client_id)
        if client is None:
            raise ResourceNotFoundError("client", client_id)
        return client

    async def _ensure_owner_available(self, account_id: Any) -> None:
        if account_id is None or await self._store.get_account(account_id) is None:
            raise ResourceNotFoundError("account", account_id)
        # an account owns at most one client profile
        if await self._store.get_client_profile_for_account(account_id) is not None:
            raise DuplicateResourceError("client profile", account_id, field="account_id")
