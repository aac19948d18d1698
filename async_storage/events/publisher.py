"""RabbitMQ publishers for async storage outcome and audit events."""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pika

from ..config import AppConfig
from .models import RoutingKey

LOGGER = logging.getLogger(__name__)


class RabbitMQPublisher:
    """Publish JSON messages to the workspace events exchange.

    Every message carries the ``x-event-type`` and ``x-message-id`` headers
    understood by :func:`async_storage.events.consumer.parse_event`. A
    connection is opened per message since events are rare (one per
    workspace start).
    """

    def __init__(self, config: AppConfig) -> None:
        self._exchange = config.rabbitmq.exchange
        self._app_id = config.service_name
        self._parameters = pika.URLParameters(config.rabbitmq.url)

    def _properties(self, routing_key: str, headers: Optional[Dict[str, Any]]) -> pika.BasicProperties:
        message_id = str(uuid.uuid4())
        return pika.BasicProperties(
            app_id=self._app_id,
            content_type="application/json",
            delivery_mode=2,
            message_id=message_id,
            headers={"x-event-type": routing_key, "x-message-id": message_id, **(headers or {})},
        )

    def publish(
        self,
        routing_key: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, Any]] = None,
    ) -> None:
        connection: Optional[pika.BlockingConnection] = None
        try:
            connection = pika.BlockingConnection(self._parameters)
            channel = connection.channel()
            properties = self._properties(routing_key, headers)
            channel.basic_publish(
                exchange=self._exchange,
                routing_key=routing_key,
                body=json.dumps(payload).encode("utf-8"),
                properties=properties,
            )
            LOGGER.debug(
                "Published event",
                extra={"routing_key": routing_key, "message_id": properties.message_id},
            )
        except Exception:
            LOGGER.exception("Failed to publish event", extra={"routing_key": routing_key, "exchange": self._exchange})
            raise
        finally:
            if connection and connection.is_open:
                connection.close()


class AuditEventPublisher:
    """Best-effort audit trail of provisioning attempts."""

    def __init__(self, publisher: RabbitMQPublisher, routing_key: str = RoutingKey.AUDIT.value) -> None:
        self._publisher = publisher
        self._routing_key = routing_key

    def publish(
        self,
        workspace_id: str,
        action: str,
        outcome: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "workspaceId": workspace_id,
            "action": action,
            "outcome": outcome,
            "details": details or {},
        }
        try:
            self._publisher.publish(self._routing_key, event)
        except Exception:
            # Audit delivery never fails a provisioning attempt.
            LOGGER.exception(
                "Failed to publish audit event",
                extra={"workspace_id": workspace_id, "action": action, "outcome": outcome},
            )


__all__ = ["AuditEventPublisher", "RabbitMQPublisher"]
