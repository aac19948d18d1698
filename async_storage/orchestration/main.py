"""Glue between incoming requests, the provisioner and the reporting layer."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..errors import ConfigurationError, InfrastructureError
from ..events.models import EventType, RoutingKey, WorkspaceEvent
from ..events.publisher import AuditEventPublisher, RabbitMQPublisher
from ..models import ProvisioningRequest, ProvisioningResult, RuntimeIdentity
from ..services.state_manager import ProvisioningStateManager, ProvisioningStatus
from .provisioner import AsyncStorageProvisioner

LOGGER = logging.getLogger(__name__)

PROVISION_ACTION = "PROVISION_ASYNC_STORAGE"


class AsyncStorageOrchestrator:
    """Primary entry point for provisioning async storage."""

    def __init__(
        self,
        provisioner: AsyncStorageProvisioner,
        state_manager: ProvisioningStateManager,
        event_publisher: RabbitMQPublisher,
        audit_publisher: AuditEventPublisher,
    ) -> None:
        self._provisioner = provisioner
        self._state_manager = state_manager
        self._event_publisher = event_publisher
        self._audit_publisher = audit_publisher

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def handle_event(self, event: WorkspaceEvent) -> None:
        """Route an incoming workspace event to the correct orchestration logic."""

        LOGGER.info("Handling workspace event", extra={"event_type": event.type, "workspace_id": event.workspace_id})
        if event.type == EventType.RUNTIME_STARTING:
            identity = RuntimeIdentity(
                workspace_id=event.workspace_id,
                owner_id=event.owner_id,
                namespace=event.namespace,
                env_name=event.env_name,
            )
            self.provision(ProvisioningRequest(identity=identity, attributes=event.attributes))
        else:
            LOGGER.warning("Received unsupported event", extra={"type": event.type})

    def provision(self, request: ProvisioningRequest) -> ProvisioningResult:
        """Provision async storage and record the outcome.

        Errors are re-raised after the failure and its warnings are recorded.
        """

        workspace_id = request.identity.workspace_id
        try:
            result = self._provisioner.provision(request)
        except ConfigurationError as exc:
            LOGGER.warning(
                "Async storage provisioning rejected: %s",
                exc,
                extra={"workspace_id": workspace_id, "namespace": request.identity.namespace},
            )
            self._handle_failure(request, exc)
            raise
        except InfrastructureError as exc:
            LOGGER.exception(
                "Async storage provisioning failed",
                extra={"workspace_id": workspace_id, "namespace": request.identity.namespace},
            )
            self._handle_failure(request, exc)
            raise
        if result.skipped:
            self._record_state(request, ProvisioningStatus.SKIPPED)
            return result
        details = {
            "namespace": result.namespace,
            "resources": {kind.value: state.value for kind, state in result.resources.items()},
        }
        self._record_state(request, ProvisioningStatus.PROVISIONED, details)
        self._publish(RoutingKey.PROVISIONED.value, result.to_dict())
        self._publish_audit_event(workspace_id, "SUCCESS", details)
        return result

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def _handle_failure(self, request: ProvisioningRequest, error: Exception) -> None:
        workspace_id = request.identity.workspace_id
        status = (
            ProvisioningStatus.REJECTED
            if isinstance(error, ConfigurationError)
            else ProvisioningStatus.PROVISIONING_FAILED
        )
        error_details = {"message": str(error), "type": error.__class__.__name__}
        self._record_state(request, status, {"error": error_details})
        self._publish(
            RoutingKey.PROVISIONING_FAILED.value,
            {
                "workspaceId": workspace_id,
                "namespace": request.identity.namespace,
                "action": PROVISION_ACTION,
                "status": status.value,
                "error": error_details,
                "warnings": [{"code": w.code, "message": w.message} for w in request.warnings],
            },
        )
        self._publish_audit_event(
            workspace_id,
            "FAILURE",
            {"namespace": request.identity.namespace, "status": status.value, "error": str(error)},
        )

    def _record_state(
        self,
        request: ProvisioningRequest,
        status: ProvisioningStatus,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        # State store failures never replace the outcome of the attempt.
        workspace_id = request.identity.workspace_id
        try:
            self._state_manager.set_warnings(workspace_id, request.warnings)
            self._state_manager.set_status(workspace_id, status, details)
        except Exception:
            LOGGER.exception(
                "Failed to record provisioning state",
                extra={"workspace_id": workspace_id, "status": status.value},
            )

    def _publish(self, routing_key: str, payload: Dict[str, Any]) -> None:
        try:
            self._event_publisher.publish(routing_key, payload)
        except Exception:
            LOGGER.exception("Failed to publish async storage event", extra={"routing_key": routing_key})

    def _publish_audit_event(self, workspace_id: str, outcome: str, details: Optional[Dict[str, Any]]) -> None:
        filtered_details = {key: value for key, value in (details or {}).items() if value is not None}
        self._audit_publisher.publish(workspace_id, PROVISION_ACTION, outcome, filtered_details)


__all__ = ["AsyncStorageOrchestrator", "PROVISION_ACTION"]
