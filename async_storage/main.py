"""Application entrypoint for the Async Storage Provisioner."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis
from fastapi import FastAPI

from .api.routes import router as api_router
from .config import AppConfig, get_settings
from .events.consumer import EventConsumer
from .events.publisher import AuditEventPublisher, RabbitMQPublisher
from .orchestration.main import AsyncStorageOrchestrator
from .orchestration.provisioner import AsyncStorageProvisioner
from .services.control_plane import KubernetesControlPlaneClient
from .services.ssh_keys import SshKeyStore
from .services.state_manager import ProvisioningStateManager

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: AppConfig = app.state.settings
    event_consumer: Optional[EventConsumer] = app.state.event_consumer
    redis_client = app.state.redis
    LOGGER.info("Starting Async Storage Provisioner", extra={"service": settings.service_name})
    if event_consumer is not None:
        event_consumer.start()
    yield
    LOGGER.info("Shutting down Async Storage Provisioner")
    if event_consumer is not None:
        event_consumer.stop()
    redis_client.close()


def create_app(settings: Optional[AppConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    logging.basicConfig(level=settings.logging.level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    redis_client = redis.from_url(settings.redis.url, decode_responses=settings.redis.decode_responses)
    state_manager = ProvisioningStateManager(redis_client)
    key_store = SshKeyStore(redis_client)
    control_plane = KubernetesControlPlaneClient.from_config(settings.kubernetes)
    provisioner = AsyncStorageProvisioner(settings.async_storage, key_store, control_plane)
    event_publisher = RabbitMQPublisher(settings)
    audit_publisher = AuditEventPublisher(event_publisher)
    orchestrator = AsyncStorageOrchestrator(provisioner, state_manager, event_publisher, audit_publisher)
    event_consumer = None
    if not settings.disable_consumer:
        event_consumer = EventConsumer(settings, orchestrator.handle_event)

    app = FastAPI(
        title="Async Storage Provisioner",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(api_router, prefix=settings.api_prefix)

    app.state.settings = settings
    app.state.redis = redis_client
    app.state.state_manager = state_manager
    app.state.orchestrator = orchestrator
    app.state.event_publisher = event_publisher
    app.state.audit_publisher = audit_publisher
    app.state.event_consumer = event_consumer

    return app


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("async_storage.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=False)
