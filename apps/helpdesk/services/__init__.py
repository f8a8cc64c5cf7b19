"""Service layer exports."""

from .accounts import AccountService, hash_password
from .categories import CategoryService
from .clients import ClientService
from .technicians import TechnicianService

__all__ = ["AccountService", "CategoryService", "ClientService", "TechnicianService", "hash_password"]
