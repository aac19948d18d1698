"""Application configuration module."""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RabbitMQConfig(BaseModel):
    """Configuration options for RabbitMQ connections."""

    url: str = Field(..., description="AMQP URL for the RabbitMQ broker")
    queue: str = Field(..., description="Queue name to consume workspace runtime events from")
    exchange: str = Field("che.events", description="Topic exchange shared with the workspace master")
    prefetch_count: int = Field(5, ge=1, le=50, description="Consumer prefetch count")


class RedisConfig(BaseModel):
    """Configuration for the Redis connection holding SSH keys and provisioning state."""

    url: str = Field(..., description="Redis connection URL")
    decode_responses: bool = Field(True, description="Decode responses to str instead of bytes")


class KubernetesConfig(BaseModel):
    """How to reach the Kubernetes API server."""

    in_cluster: bool = Field(
        True,
        description="Try the in-cluster service account first and fall back to the kubeconfig",
    )
    kubeconfig: Optional[str] = Field(None, description="Explicit kubeconfig path")
    context: Optional[str] = Field(None, description="Kubeconfig context to use")
    request_timeout: Optional[float] = Field(
        30.0, gt=0, description="Timeout in seconds applied to every API request"
    )


class AsyncStorageConfig(BaseModel):
    """Settings of the async storage sidecar."""

    image: str = Field(
        "quay.io/eclipse/che-workspace-data-sync-storage:latest",
        description="Container image of the rsync-over-SSH storage pod",
    )
    pvc_quantity: str = Field("10Gi", description="Capacity requested by the backup claim")
    pvc_access_mode: str = Field("ReadWriteOnce", description="Access mode of the backup claim")
    pvc_strategy: str = Field("common", description="Configured PVC strategy of the workspaces")


class LoggingConfig(BaseModel):
    """Simple logging configuration."""

    level: str = Field("INFO", description="Application log level")


class AppConfig(BaseSettings):
    """Top-level application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ASP_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    rabbitmq: RabbitMQConfig
    redis: RedisConfig
    kubernetes: KubernetesConfig = Field(default_factory=KubernetesConfig)
    async_storage: AsyncStorageConfig = Field(default_factory=AsyncStorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api_prefix: str = Field("/api/v1", description="Base prefix for FastAPI routes")
    service_name: str = Field("async-storage-provisioner", description="Service identifier")
    disable_consumer: bool = Field(
        False,
        description="When true no RabbitMQ consumer is started. Provisioning is then only reachable over HTTP.",
    )
    event_bindings: List[str] = Field(
        default_factory=lambda: ["workspace.runtime.starting"],
        description="List of event routing keys the service will subscribe to.",
    )


@lru_cache
def get_settings() -> AppConfig:
    """Return a cached instance of the application settings."""

    return AppConfig()


__all__ = [
    "AppConfig",
    "AsyncStorageConfig",
    "KubernetesConfig",
    "LoggingConfig",
    "RabbitMQConfig",
    "RedisConfig",
    "get_settings",
]
