"""Administration of the accounts that call the API."""

from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Any, Mapping, Sequence

from apps.helpdesk.services.base import reject_unknown_fields, require_admin, require_text
from apps.helpdesk.tickets.errors import DuplicateResourceError, InvalidArgumentError, ResourceNotFoundError
from apps.helpdesk.tickets.models import Account, CallerClaim, Role
from apps.helpdesk.tickets.repository import HelpdeskStore

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = frozenset({"name", "email", "password", "role"})
MIN_PASSWORD_LENGTH = 6
PASSWORD_ITERATIONS = 390_000


def hash_password(password: str, *, salt: bytes | None = None, iterations: int = PASSWORD_ITERATIONS) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>`` for ``password``."""

    if salt is None:
        salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"pbkdf2_sha256${iterations}${salt.hex()}${digest.hex()}"


def _require_password(value: Any) -> str:
    if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
        raise InvalidArgumentError("password", f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return value


def _require_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError as exc:
        raise InvalidArgumentError("role", f"{value!r} is not a valid role") from exc


class AccountService:
    """Administrator-only management of accounts and their roles.

    Passwords are stored as salted PBKDF2 digests and never returned.
    """

    def __init__(self, store: HelpdeskStore, *, password_hasher=hash_password) -> None:
        self._store = store
        self._hash = password_hasher

    async def list_accounts(self, caller: CallerClaim) -> Sequence[Account]:
        require_admin(caller, "manage accounts")
        return await self._store.list_accounts()

    async def get_account(self, account_id: int, caller: CallerClaim) -> Account:
        require_admin(caller, "manage accounts")
        return await self._get(account_id)

    async def create_account(
        self,
        *,
        name: str,
        email: str,
        password: str,
        caller: CallerClaim,
        role: Role | str = Role.CLIENT,
    ) -> Account:
        require_admin(caller, "manage accounts")
        name = require_text(name, "name")
        email = require_text(email, "email")
        password = _require_password(password)
        role = _require_role(role)
        await self._ensure_email_free(email)

        account = await self._store.add_account(
            name=name, email=email, hashed_password=self._hash(password), role=role
        )
        logger.info("Account %s (%s) created by account %s", account.id, account.role.value, caller.subject_id)
        return account

    async def update_account(self, account_id: int, patch: Mapping[str, Any], *, caller: CallerClaim) -> Account:
        require_admin(caller, "manage accounts")
        reject_unknown_fields(patch, ACCOUNT_FIELDS)
        account = await self._get(account_id)

        changes: dict[str, Any] = {}
        if "name" in patch:
            changes["name"] = require_text(patch["name"], "name")
        if "email" in patch:
            email = require_text(patch["email"], "email")
            if email != account.email:
                await self._ensure_email_free(email)
                changes["email"] = email
        if "password" in patch:
            changes["hashed_password"] = self._hash(_require_password(patch["password"]))
        if "role" in patch:
            changes["role"] = _require_role(patch["role"])

        if not changes:
            return account
        updated = await self._store.update_account(account_id, changes)
        if updated is None:
            raise ResourceNotFoundError("account", account_id)
        logger.info("Account %s updated by account %s (%s)", account_id, caller.subject_id, ", ".join(sorted(patch)))
        return updated

    async def delete_account(self, account_id: int, caller: CallerClaim) -> None:
        require_admin(caller, "manage accounts")
        if account_id == caller.subject_id:
            raise InvalidArgumentError("account_id", "Administrators cannot delete their own account")
        if not await self._store.delete_account(account_id):
            raise ResourceNotFoundError("account", account_id)
        logger.info("Account %s removed by account %s", account_id, caller.subject_id)

    async def _get(self, account_id: int) -> Account:
        account = await self._store.get_account(account_id)
        if account is None:
            raise ResourceNotFoundError("account", account_id)
        return account

    async def _ensure_email_free(self, email: str) -> None:
        if await self._store.get_account_by_email(email) is not None:
            raise DuplicateResourceError("account", email, field="email")
