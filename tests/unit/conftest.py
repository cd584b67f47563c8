"""Shared fixtures for unit tests."""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.dashboard import Dashboard, Visibility
from domain.entities.identity import Identity
from domain.entities.role import Role
from domain.entities.workspace import MemberStatus, TeamMember


class FakeUnitOfWork:
    """Fake Unit of Work with all 4 repository mocks for unit testing."""

    def __init__(self) -> None:
        self.workspaces = AsyncMock()
        self.invitations = AsyncMock()
        self.dashboards = AsyncMock()
        self.share_grants = AsyncMock()
        self.committed = False
        self.commit_count = 0
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True
        self.commit_count += 1

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def workspace_id() -> UUID:
    """A random workspace ID."""
    return uuid4()


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def identity() -> Identity:
    return Identity(email="Invitee@Example.com ", display_name="Ivy")


@pytest.fixture
def make_member() -> Callable[..., TeamMember]:
    """Build TeamMember entities for stubbing repository returns."""

    def build(
        workspace_id: UUID,
        email: str,
        role: Role = Role.VIEWER,
        status: MemberStatus = MemberStatus.ACTIVE,
    ) -> TeamMember:
        return TeamMember(workspace_id=workspace_id, email=email, role=role, status=status)

    return build


@pytest.fixture
def make_dashboard() -> Callable[..., Dashboard]:
    def build(workspace_id: UUID, visibility: Visibility = Visibility.PRIVATE) -> Dashboard:
        return Dashboard(
            workspace_id=workspace_id,
            name="Revenue",
            created_by="owner@example.com",
            visibility=visibility,
        )

    return build
