"""RabbitMQ consumer for workspace runtime events."""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Callable, Optional

import pika

from ..config import AppConfig
from .models import EventType, WorkspaceEvent

LOGGER = logging.getLogger(__name__)


def _attribute_value(value) -> str:
    """Render JSON scalars the way workspace attributes spell them (``true``, not ``True``)."""

    return value if isinstance(value, str) else json.dumps(value)


def parse_event(body: bytes, headers: Optional[dict] = None) -> WorkspaceEvent:
    """Decode a message body into a :class:`WorkspaceEvent`."""

    payload = json.loads(body.decode("utf-8")) if body else {}
    event_type = payload.get("type") or (headers or {}).get("x-event-type")
    if not event_type:
        raise ValueError("Received message without event type")
    try:
        event_enum = EventType(event_type)
    except ValueError as exc:
        raise ValueError(f"Unsupported event type: {event_type}") from exc
    data = payload.get("data") or payload
    workspace_id = data.get("workspaceId") or data.get("workspace_id")
    owner_id = data.get("ownerId") or data.get("owner_id")
    namespace = data.get("namespace")
    if not workspace_id or not owner_id or not namespace:
        raise ValueError("Event payload requires workspaceId, ownerId and namespace")
    attributes = data.get("attributes") or {}
    event = WorkspaceEvent(
        type=event_enum,
        workspace_id=str(workspace_id),
        owner_id=str(owner_id),
        namespace=str(namespace),
        attributes={str(key): _attribute_value(value) for key, value in attributes.items()},
        env_name=data.get("envName"),
        message_id=(headers or {}).get("x-message-id"),
    )
    LOGGER.debug(
        "Parsed workspace event",
        extra={"event_type": event.type, "workspace_id": event.workspace_id, "namespace": event.namespace},
    )
    return event


class EventConsumer:
    """Background thread that consumes events from RabbitMQ."""

    def __init__(self, config: AppConfig, handler: Callable[[WorkspaceEvent], None]) -> None:
        self._config = config
        self._handler = handler
        self._connection: Optional[pika.BlockingConnection] = None
        self._channel: Optional[pika.adapters.blocking_connection.BlockingChannel] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        """Start the consumer in a daemon thread."""

        if self._thread and self._thread.is_alive():
            LOGGER.debug("Event consumer already running")
            return
        self._thread = threading.Thread(target=self._run, name="event-consumer", daemon=True)
        self._thread.start()
        LOGGER.info("Event consumer thread started")

    def stop(self) -> None:
        """Signal the consumer to stop and wait for termination."""

        self._stop_event.set()
        if self._connection and self._connection.is_open:
            self._connection.add_callback_threadsafe(self._connection.close)
        if self._thread:
            self._thread.join(timeout=5)
        LOGGER.info("Event consumer thread stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self._connect()
                self._consume()
            except pika.exceptions.AMQPConnectionError as exc:
                LOGGER.error("RabbitMQ connection error", exc_info=exc)
                time.sleep(5)
            except Exception as exc:  # pragma: no cover - keeps the thread alive
                LOGGER.exception("Unhandled exception in event consumer", exc_info=exc)
                time.sleep(5)
            finally:
                self._cleanup()

    def _connect(self) -> None:
        parameters = pika.URLParameters(self._config.rabbitmq.url)
        self._connection = pika.BlockingConnection(parameters)
        self._channel = self._connection.channel()
        self._channel.basic_qos(prefetch_count=self._config.rabbitmq.prefetch_count)
        self._channel.queue_declare(queue=self._config.rabbitmq.queue, durable=True)
        for binding in self._config.event_bindings:
            self._channel.queue_bind(
                queue=self._config.rabbitmq.queue,
                exchange=self._config.rabbitmq.exchange,
                routing_key=binding,
            )
        LOGGER.info("Connected to RabbitMQ", extra={"queue": self._config.rabbitmq.queue})

    def _consume(self) -> None:
        assert self._channel is not None
        for method, properties, body in self._channel.consume(self._config.rabbitmq.queue):
            if self._stop_event.is_set():
                break
            self._dispatch(method, properties, body)

    def _dispatch(self, method, properties, body: bytes) -> None:
        assert self._channel is not None
        try:
            event = parse_event(body, properties.headers if properties else None)
            self._handler(event)
            self._channel.basic_ack(method.delivery_tag)
        except Exception as exc:
            LOGGER.exception("Failed to process event", exc_info=exc)
            self._channel.basic_nack(method.delivery_tag, requeue=False)

    def _cleanup(self) -> None:
        if self._channel and self._channel.is_open:
            self._channel.close()
        if self._connection and self._connection.is_open:
            self._connection.close()
        self._channel = None
        self._connection = None


__all__ = ["EventConsumer", "parse_event"]
