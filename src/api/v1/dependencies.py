"""Dependency injection factories for API v1."""

from datetime import timedelta
from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.services.access_control_service import AccessControlService
from domain.services.delivery import LoggingDeliveryChannel
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_access_control_service() -> AccessControlService:
    """Get the access-control service.

    Cached so that every request shares the same workspace and dashboard locks.
    """
    return AccessControlService(
        get_uow_factory(),
        delivery=LoggingDeliveryChannel(),
        invitation_ttl=timedelta(days=settings.invitation_ttl_days),
        resend_cooldown=timedelta(seconds=settings.invitation_resend_cooldown_seconds),
    )
