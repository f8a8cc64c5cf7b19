from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from apps.helpdesk.api.errors import register_error_handlers
from apps.helpdesk.api.routes import categories, clients, ping, technicians, tickets, users
from apps.helpdesk.core.config import Settings, get_settings
from apps.helpdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from apps.helpdesk.middleware import RBACMiddleware
from apps.helpdesk.services import AccountService, CategoryService, ClientService, TechnicianService
from apps.helpdesk.tickets.repository import HelpdeskStore, SqlHelpdeskStore
from apps.helpdesk.tickets.service import TicketService
from apps.helpdesk.tickets.workload import WorkloadAdmissionController


def _to_asyncpg_dsn(dsn: str) -> str:
    """Ensure the SQLAlchemy DSN uses the asyncpg driver."""

    if dsn.startswith("postgresql+asyncpg://"):
        return dsn
    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    return dsn


def build_services(app: FastAPI, store: HelpdeskStore, settings: Settings) -> None:
    """Wire the engine around ``store`` and publish it on ``app.state``."""

    admission = WorkloadAdmissionController(
        store,
        limit=settings.technician_max_in_progress,
        serialize=settings.serialize_workload_admission,
    )
    app.state.ticket_service = TicketService(store, admission=admission)
    app.state.category_service = CategoryService(store)
    app.state.account_service = AccountService(store)
    app.state.client_service = ClientService(store)
    app.state.technician_service = TechnicianService(store)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    app.state.ticket_service = None
    app.state.category_service = None
    app.state.account_service = None
    app.state.client_service = None
    app.state.technician_service = None

    db_engine = create_async_engine(_to_asyncpg_dsn(settings.postgres_dsn), future=True)
    try:
        session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
        store = SqlHelpdeskStore(session_factory, engine=db_engine)
        await store.ensure_schema()
        build_services(app, store, settings)
        logger.info(
            "Ticket engine ready (workload limit %s, serialized admission %s)",
            settings.technician_max_in_progress,
            settings.serialize_workload_admission,
        )
    except Exception:
        logger.exception("Ticket engine initialisation failed; ticket routes will answer 503")
    try:
        yield
    finally:
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(RBACMiddleware)
    register_error_handlers(app)
    app.include_router(ping.router)
    app.include_router(tickets.router)
    app.include_router(categories.router)
    app.include_router(technicians.router)
    app.include_router(clients.router)
    app.include_router(users.router)
    return app


app = create_app()
