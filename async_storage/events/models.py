"""Domain models for workspace runtime events."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class EventType(str, Enum):
    """Event types consumed from the message bus."""

    RUNTIME_STARTING = "workspace.runtime.starting"


class RoutingKey(str, Enum):
    """Routing keys of the events this service publishes."""

    PROVISIONED = "workspace.async_storage.provisioned"
    PROVISIONING_FAILED = "workspace.async_storage.provisioning_failed"
    AUDIT = "audit.async_storage.event"


@dataclass
class WorkspaceEvent:
    """Event payload as received from the message bus."""

    type: EventType
    workspace_id: str
    owner_id: str
    namespace: str
    attributes: Dict[str, str] = field(default_factory=dict)
    env_name: Optional[str] = None
    message_id: Optional[str] = None


__all__ = ["EventType", "RoutingKey", "WorkspaceEvent"]
