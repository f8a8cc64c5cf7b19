"""Ticket lifecycle and access control engine."""

from .access import AccessPolicy, AdminPolicy, ClientPolicy, TechnicianPolicy, policy_for
from .errors import (
    CapacityExceededError,
    DuplicateResourceError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidTransitionError,
    ResourceInUseError,
    ResourceNotFoundError,
    TicketServiceError,
)
from .models import (
    Account,
    CallerClaim,
    Category,
    ClientProfile,
    Role,
    TechnicianProfile,
    Ticket,
    TicketPriority,
)
from .repository import HelpdeskStore, SqlHelpdeskStore
from .service import TechnicianWorkload, TicketService
from .state import TicketStateMachine, TicketStatus
from .workload import WorkloadAdmissionController

__all__ = [
    "AccessPolicy",
    "Account",
    "AdminPolicy",
    "CallerClaim",
    "CapacityExceededError",
    "Category",
    "ClientPolicy",
    "ClientProfile",
    "DuplicateResourceError",
    "ForbiddenError",
    "HelpdeskStore",
    "InvalidArgumentError",
    "InvalidTransitionError",
    "ResourceInUseError",
    "ResourceNotFoundError",
    "Role",
    "SqlHelpdeskStore",
    "TechnicianPolicy",
    "TechnicianProfile",
    "TechnicianWorkload",
    "Ticket",
    "TicketPriority",
    "TicketService",
    "TicketServiceError",
    "TicketStateMachine",
    "TicketStatus",
    "WorkloadAdmissionController",
    "policy_for",
]
