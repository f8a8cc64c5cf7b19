"""API route modules."""

from . import categories, clients, ping, technicians, tickets, users

__all__ = ["categories", "clients", "ping", "technicians", "tickets", "users"]
