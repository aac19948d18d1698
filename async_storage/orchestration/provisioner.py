"""Provision the resources backing the async storage feature.

With ``asyncPersist: true`` and ``persistVolumes: false`` a workspace gets a
storage pod that receives project backups over rsync/SSH when the workspace
stops and serves them back on restart. The stack consists of:

- a PVC storing the backups,
- a config map with the public part of the owner's SSH key,
- the storage pod mounting both,
- a service exposing the pod's SSH port.

Only the 'common' PVC strategy is supported.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from ..config import AsyncStorageConfig
from ..constants import ASYNC_STORAGE, ASYNC_STORAGE_CLAIM
from ..errors import AlreadyExistsError, ConfigurationError
from ..models import ProvisioningRequest, ProvisioningResult, ResourceKind, ResourceState
from ..services.control_plane import ControlPlaneClient
from .credentials import KeyStore, SshCredentialResolver
from .manifests.pod import build_storage_pod
from .manifests.service import build_storage_service
from .manifests.storage import build_claim, build_config_map, config_map_name
from .preconditions import validate

LOGGER = logging.getLogger(__name__)

ManifestFactory = Callable[[], Optional[Dict[str, Any]]]


class AsyncStorageProvisioner:
    """Create whatever part of the async storage stack is missing in a namespace.

    Existence is checked by listing the kind and matching the well-known name.
    Nothing is updated or deleted. A concurrent creation surfacing as
    "already exists" counts as existing.
    """

    def __init__(
        self,
        settings: AsyncStorageConfig,
        key_store: KeyStore,
        control_plane: ControlPlaneClient,
    ) -> None:
        self._settings = settings
        self._credentials = SshCredentialResolver(key_store)
        self._control_plane = control_plane

    def provision(self, request: ProvisioningRequest) -> ProvisioningResult:
        identity = request.identity
        result = ProvisioningResult(
            workspace_id=identity.workspace_id,
            namespace=identity.namespace,
            warnings=request.warnings,
        )
        verdict = validate(request.attributes, self._settings.pvc_strategy)
        if verdict.skip:
            result.skipped = True
            return result
        if verdict.rejected:
            LOGGER.warning(verdict.reason, extra={"workspace_id": identity.workspace_id})
            request.add_warning(verdict.warning_code, verdict.reason)
            raise ConfigurationError(verdict.reason)

        namespace = identity.namespace
        cm_name = config_map_name(namespace)
        LOGGER.info(
            "Provisioning async storage",
            extra={"workspace_id": identity.workspace_id, "namespace": namespace},
        )
        result.resources[ResourceKind.PERSISTENT_VOLUME_CLAIM] = self._ensure(
            namespace,
            ResourceKind.PERSISTENT_VOLUME_CLAIM,
            ASYNC_STORAGE_CLAIM,
            lambda: build_claim(namespace, self._settings.pvc_access_mode, self._settings.pvc_quantity),
        )
        result.resources[ResourceKind.CONFIG_MAP] = self._ensure(
            namespace,
            ResourceKind.CONFIG_MAP,
            cm_name,
            lambda: build_config_map(namespace, self._credentials.resolve(request)),
        )
        result.resources[ResourceKind.POD] = self._ensure(
            namespace,
            ResourceKind.POD,
            ASYNC_STORAGE,
            lambda: build_storage_pod(namespace, self._settings.image, cm_name),
        )
        result.resources[ResourceKind.SERVICE] = self._ensure(
            namespace,
            ResourceKind.SERVICE,
            ASYNC_STORAGE,
            lambda: build_storage_service(namespace),
        )
        LOGGER.info(
            "Async storage provisioned",
            extra={
                "workspace_id": identity.workspace_id,
                "namespace": namespace,
                "created": [kind.value for kind in result.created],
            },
        )
        return result

    def _ensure(
        self,
        namespace: str,
        kind: ResourceKind,
        name: str,
        factory: ManifestFactory,
    ) -> ResourceState:
        existing = self._control_plane.list(namespace, kind)
        if any(meta.name == name for meta in existing):
            LOGGER.debug("Resource already present", extra={"kind": kind.value, "resource_name": name})
            return ResourceState.EXISTS
        manifest = factory()
        if manifest is None:
            # TODO: decide with the workspace master whether a missing key should abort the whole run
            LOGGER.warning(
                "No manifest to create; skipping", extra={"kind": kind.value, "resource_name": name}
            )
            return ResourceState.SKIPPED
        try:
            self._control_plane.create(namespace, kind, manifest)
        except AlreadyExistsError:
            LOGGER.info(
                "Resource created concurrently; treating as existing",
                extra={"kind": kind.value, "resource_name": name, "namespace": namespace},
            )
            return ResourceState.EXISTS
        LOGGER.info("Created resource", extra={"kind": kind.value, "resource_name": name, "namespace": namespace})
        return ResourceState.CREATED


__all__ = ["AsyncStorageProvisioner"]
