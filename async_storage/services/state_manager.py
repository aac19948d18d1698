"""Redis-backed record of async storage provisioning outcomes."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from redis import Redis

from ..models import ProvisioningWarning

LOGGER = logging.getLogger(__name__)


class ProvisioningStatus(str, Enum):
    """Lifecycle of the async storage stack of a workspace."""

    SKIPPED = "SKIPPED"
    PROVISIONED = "PROVISIONED"
    REJECTED = "REJECTED"
    PROVISIONING_FAILED = "PROVISIONING_FAILED"


class ProvisioningStateManager:
    """Persist and retrieve provisioning state using Redis."""

    STATUS_KEY_TEMPLATE = "async-storage:{workspace_id}:status"
    HISTORY_KEY_TEMPLATE = "async-storage:{workspace_id}:history"
    WARNINGS_KEY_TEMPLATE = "async-storage:{workspace_id}:warnings"

    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    @staticmethod
    def _status_key(workspace_id: str) -> str:
        return ProvisioningStateManager.STATUS_KEY_TEMPLATE.format(workspace_id=workspace_id)

    @staticmethod
    def _history_key(workspace_id: str) -> str:
        return ProvisioningStateManager.HISTORY_KEY_TEMPLATE.format(workspace_id=workspace_id)

    @staticmethod
    def _warnings_key(workspace_id: str) -> str:
        return ProvisioningStateManager.WARNINGS_KEY_TEMPLATE.format(workspace_id=workspace_id)

    def set_status(self, workspace_id: str, status: ProvisioningStatus, details: Optional[Dict[str, Any]] = None) -> None:
        """Persist the latest provisioning status and append it to the history."""

        LOGGER.debug("Setting provisioning status", extra={"workspace_id": workspace_id, "status": status.value})
        self._redis.set(self._status_key(workspace_id), status.value)
        history_entry = json.dumps(
            {
                "status": status.value,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "details": details or {},
            }
        )
        self._redis.lpush(self._history_key(workspace_id), history_entry)

    def get_status(self, workspace_id: str) -> Optional[str]:
        value = self._redis.get(self._status_key(workspace_id))
        LOGGER.debug("Fetched provisioning status", extra={"workspace_id": workspace_id, "status": value})
        return value

    def get_history(self, workspace_id: str) -> List[Dict[str, Any]]:
        entries = []
        for raw in self._redis.lrange(self._history_key(workspace_id), 0, -1):
            try:
                entries.append(json.loads(raw))
            except json.JSONDecodeError:
                LOGGER.warning("History entry is invalid JSON", extra={"workspace_id": workspace_id})
        return entries

    def set_warnings(self, workspace_id: str, warnings: Sequence[ProvisioningWarning]) -> None:
        """Replace the warnings reported by the latest attempt."""

        payload = [{"code": warning.code, "message": warning.message} for warning in warnings]
        self._redis.set(self._warnings_key(workspace_id), json.dumps(payload))

    def get_warnings(self, workspace_id: str) -> Optional[List[Dict[str, Any]]]:
        raw = self._redis.get(self._warnings_key(workspace_id))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Stored warnings payload is invalid JSON", extra={"workspace_id": workspace_id})
            return None


__all__ = ["ProvisioningStateManager", "ProvisioningStatus"]
