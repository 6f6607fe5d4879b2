"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from resolution_engine.adapters.identity.sql_identity_adapter import SqlIdentityAdapter
from resolution_engine.adapters.notifier.http_notifier import build_notifier
from resolution_engine.adapters.persistence.database import get_session
from resolution_engine.adapters.persistence.repositories import (
    SqlActivityLogRepository,
    SqlCatalogRepository,
    SqlResolverStatRepository,
    SqlShiftRepository,
    SqlTicketRepository,
)
from resolution_engine.application.services.event_dispatcher import EventDispatcher
from resolution_engine.application.use_cases.auto_assign import (
    AutoAssignTicketUseCase,
    BulkAutoAssignUseCase,
)
from resolution_engine.application.use_cases.create_ticket import CreateTicketUseCase
from resolution_engine.application.use_cases.resolver_pool import ResolverPool
from resolution_engine.application.use_cases.ticket_lifecycle import TicketLifecycleService
from resolution_engine.config import settings
from resolution_engine.domain.errors import Forbidden

# Singleton: the notifier holds no per-request state
_dispatcher = EventDispatcher(build_notifier())


def get_dispatcher() -> EventDispatcher:
    return _dispatcher


def get_actor(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """Caller identity, authenticated upstream and forwarded as a header."""
    if not x_user_id:
        raise Forbidden("X-User-Id header is required")
    return x_user_id


def _auto_assign(session: AsyncSession) -> AutoAssignTicketUseCase:
    return AutoAssignTicketUseCase(
        ticket_repo=SqlTicketRepository(session),
        stat_repo=SqlResolverStatRepository(session),
        activity_repo=SqlActivityLogRepository(session),
    )


def get_auto_assign_uc(session: AsyncSession = Depends(get_session)) -> AutoAssignTicketUseCase:
    return _auto_assign(session)


def get_bulk_assign_uc(session: AsyncSession = Depends(get_session)) -> BulkAutoAssignUseCase:
    return BulkAutoAssignUseCase(
        auto_assign=_auto_assign(session),
        ticket_repo=SqlTicketRepository(session),
    )


def get_create_ticket_uc(session: AsyncSession = Depends(get_session)) -> CreateTicketUseCase:
    return CreateTicketUseCase(
        ticket_repo=SqlTicketRepository(session),
        activity_repo=SqlActivityLogRepository(session),
        catalog_repo=SqlCatalogRepository(session),
        auto_assign=_auto_assign(session),
        default_sla_hours=settings.default_sla_hours,
    )


def get_lifecycle_service(session: AsyncSession = Depends(get_session)) -> TicketLifecycleService:
    return TicketLifecycleService(
        ticket_repo=SqlTicketRepository(session),
        activity_repo=SqlActivityLogRepository(session),
        catalog_repo=SqlCatalogRepository(session),
        stat_repo=SqlResolverStatRepository(session),
    )


def get_resolver_pool(session: AsyncSession = Depends(get_session)) -> ResolverPool:
    return ResolverPool(
        identity=SqlIdentityAdapter(session),
        stat_repo=SqlResolverStatRepository(session),
        shift_repo=SqlShiftRepository(session),
        catalog_repo=SqlCatalogRepository(session),
        auto_assign=_auto_assign(session),
    )
