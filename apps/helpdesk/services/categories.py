from __future__ import annotations

import logging
from typing import Sequence

from apps.helpdesk.services.base import require_admin, require_text
from apps.helpdesk.tickets.errors import DuplicateResourceError, ResourceNotFoundError
from apps.helpdesk.tickets.models import CallerClaim, Category
from apps.helpdesk.tickets.repository import HelpdeskStore

logger = logging.getLogger(__name__)


class CategoryService:
    """Read access to ticket categories for everyone, writes for administrators."""

    def __init__(self, store: HelpdeskStore) -> None:
        self._store = store

    async def list_categories(self) -> Sequence[Category]:
        return await self._store.list_categories()

    async def get_category(self, category_id: int) -> Category:
        category = await self._store.get_category(category_id)
        if category is None:
            raise ResourceNotFoundError("category", category_id)
        return category

    async def create_category(self, *, name: str, description: str | None, caller: CallerClaim) -> Category:
        require_admin(caller, "manage categories")
        name = require_text(name, "name")
        if await self._store.get_category_by_name(name) is not None:
            raise DuplicateResourceError("category", name)

        category = await self._store.add_category(name, description)
        logger.info("Category %s (%s) created by account %s", category.id, category.name, caller.subject_id)
        return category
