"""Outbound delivery intents (invitation and share notifications).

The access-control core never delivers anything itself. It emits an intent
naming the recipient and the reference, and a channel implementation
(email, push, chat) does the rest.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Protocol
from uuid import UUID

import structlog

logger = structlog.get_logger()


class DeliveryKind(StrEnum):
    """What the recipient is being told about."""

    INVITATION_CREATED = "invitation_created"
    INVITATION_RESENT = "invitation_resent"
    DASHBOARD_SHARED = "dashboard_shared"


@dataclass(frozen=True)
class DeliveryIntent:
    """A request to notify ``recipient`` about a workspace or dashboard."""

    kind: DeliveryKind
    recipient: str
    sender: str
    reference_id: UUID
    workspace_id: UUID | None = None
    role: str | None = None
    permission: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    emitted_at: datetime = field(default_factory=datetime.utcnow)


class IDeliveryChannel(Protocol):
    """Protocol for notification channels."""

    async def deliver(self, intent: DeliveryIntent) -> None:
        """Hand the intent to the channel."""
        ...


class LoggingDeliveryChannel:
    """Default channel: records the intent in the structured log."""

    async def deliver(self, intent: DeliveryIntent) -> None:
        logger.info(
            "delivery_intent_emitted",
            kind=intent.kind.value,
            recipient=intent.recipient,
            sender=intent.sender,
            reference_id=str(intent.reference_id),
            workspace_id=str(intent.workspace_id) if intent.workspace_id else None,
            role=intent.role,
            permission=intent.permission,
        )
