"""Database models and utilities."""

from .models import AccountTable, CategoryTable, ClientTable, TechnicianTable, TicketTable

__all__ = [
    "AccountTable",
    "CategoryTable",
    "ClientTable",
    "TechnicianTable",
    "TicketTable",
]
