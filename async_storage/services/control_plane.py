"""Thin Kubernetes API adapter used by the provisioner."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ..config import KubernetesConfig
from ..errors import AlreadyExistsError, ControlPlaneError, UnauthorizedError
from ..models import ResourceKind, ResourceMeta

LOGGER = logging.getLogger(__name__)


class ControlPlaneClient(Protocol):
    def list(self, namespace: str, kind: ResourceKind) -> List[ResourceMeta]:
        ...

    def create(self, namespace: str, kind: ResourceKind, manifest: Dict[str, Any]) -> Dict[str, Any]:
        ...


_LIST_METHODS = {
    ResourceKind.PERSISTENT_VOLUME_CLAIM: "list_namespaced_persistent_volume_claim",
    ResourceKind.CONFIG_MAP: "list_namespaced_config_map",
    ResourceKind.POD: "list_namespaced_pod",
    ResourceKind.SERVICE: "list_namespaced_service",
}

_CREATE_METHODS = {
    ResourceKind.PERSISTENT_VOLUME_CLAIM: "create_namespaced_persistent_volume_claim",
    ResourceKind.CONFIG_MAP: "create_namespaced_config_map",
    ResourceKind.POD: "create_namespaced_pod",
    ResourceKind.SERVICE: "create_namespaced_service",
}


def load_kube_config(settings: KubernetesConfig) -> None:
    """Load in-cluster configuration, falling back to a kubeconfig file."""

    if settings.in_cluster and not settings.kubeconfig:
        try:
            config.load_incluster_config()
            LOGGER.info("Loaded in-cluster Kubernetes configuration")
            return
        except config.ConfigException:
            LOGGER.info("In-cluster configuration unavailable; trying kubeconfig")
    try:
        config.load_kube_config(config_file=settings.kubeconfig, context=settings.context)
    except config.ConfigException as exc:
        raise RuntimeError(f"Failed to load Kubernetes configuration: {exc}") from exc
    LOGGER.info("Loaded kubeconfig", extra={"kubeconfig": settings.kubeconfig, "context": settings.context})


def _translate(exc: ApiException, action: str, kind: ResourceKind, namespace: str) -> ControlPlaneError:
    message = f"Failed to {action} {kind.value} in namespace '{namespace}': {exc.status} {exc.reason}"
    if exc.status == 409:
        return AlreadyExistsError(message, status=exc.status)
    if exc.status in (401, 403):
        return UnauthorizedError(message, status=exc.status)
    return ControlPlaneError(message, status=exc.status)


class KubernetesControlPlaneClient:
    """List and create the core/v1 kinds of the async storage stack."""

    def __init__(self, core_api: client.CoreV1Api, request_timeout: Optional[float] = None) -> None:
        self._core_api = core_api
        self._request_timeout = request_timeout

    @classmethod
    def from_config(cls, settings: KubernetesConfig) -> "KubernetesControlPlaneClient":
        load_kube_config(settings)
        return cls(client.CoreV1Api(api_client=client.ApiClient()), settings.request_timeout)

    def _call_kwargs(self) -> Dict[str, Any]:
        if self._request_timeout is None:
            return {}
        return {"_request_timeout": self._request_timeout}

    def list(self, namespace: str, kind: ResourceKind) -> List[ResourceMeta]:
        method = getattr(self._core_api, _LIST_METHODS[kind])
        try:
            response = method(namespace=namespace, **self._call_kwargs())
        except ApiException as exc:
            raise _translate(exc, "list", kind, namespace) from exc
        items = response.items or []
        return [
            ResourceMeta(kind=kind, name=item.metadata.name, namespace=item.metadata.namespace or namespace)
            for item in items
        ]

    def create(self, namespace: str, kind: ResourceKind, manifest: Dict[str, Any]) -> Dict[str, Any]:
        method = getattr(self._core_api, _CREATE_METHODS[kind])
        try:
            created = method(namespace=namespace, body=manifest, **self._call_kwargs())
        except ApiException as exc:
            raise _translate(exc, "create", kind, namespace) from exc
        LOGGER.debug(
            "Created resource",
            extra={"kind": kind.value, "namespace": namespace, "resource_name": manifest["metadata"]["name"]},
        )
        return self._core_api.api_client.sanitize_for_serialization(created)


__all__ = ["ControlPlaneClient", "KubernetesControlPlaneClient", "load_kube_config"]
