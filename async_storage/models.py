"""Domain models shared by the provisioning components."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional


@dataclass(frozen=True)
class RuntimeIdentity:
    """Identifies the workspace runtime the storage is provisioned for."""

    workspace_id: str
    owner_id: str
    namespace: str
    env_name: Optional[str] = None


@dataclass(frozen=True)
class ProvisioningWarning:
    """Non-fatal condition reported back to the workspace owner."""

    code: int
    message: str


@dataclass
class ProvisioningRequest:
    """Input of a provisioning attempt.

    ``warnings`` is append-only and survives a failed attempt so the caller
    can report what went wrong before the error was raised.
    """

    identity: RuntimeIdentity
    attributes: Mapping[str, str] = field(default_factory=dict)
    warnings: List[ProvisioningWarning] = field(default_factory=list)

    def add_warning(self, code: int, message: str) -> None:
        self.warnings.append(ProvisioningWarning(code=code, message=message))


@dataclass(frozen=True)
class SshPair:
    """SSH key pair owned by a user and scoped to a service."""

    owner: str
    service: str
    name: str
    public_key: str
    private_key: Optional[str] = None


class ResourceKind(str, Enum):
    """Kubernetes kinds making up the async storage stack, in reconcile order."""

    PERSISTENT_VOLUME_CLAIM = "PersistentVolumeClaim"
    CONFIG_MAP = "ConfigMap"
    POD = "Pod"
    SERVICE = "Service"


class ResourceState(str, Enum):
    """Outcome of reconciling a single resource kind."""

    EXISTS = "EXISTS"
    CREATED = "CREATED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class ResourceMeta:
    """Identity of an object returned by a listing."""

    kind: ResourceKind
    name: str
    namespace: str


@dataclass
class ProvisioningResult:
    """What a provisioning attempt did to the cluster."""

    workspace_id: str
    namespace: str
    skipped: bool = False
    resources: Dict[ResourceKind, ResourceState] = field(default_factory=dict)
    warnings: List[ProvisioningWarning] = field(default_factory=list)

    @property
    def created(self) -> List[ResourceKind]:
        return [kind for kind, state in self.resources.items() if state == ResourceState.CREATED]

    def to_dict(self) -> Dict[str, object]:
        return {
            "workspaceId": self.workspace_id,
            "namespace": self.namespace,
            "skipped": self.skipped,
            "resources": {kind.value: state.value for kind, state in self.resources.items()},
            "warnings": [{"code": w.code, "message": w.message} for w in self.warnings],
        }


__all__ = [
    "ProvisioningRequest",
    "ProvisioningResult",
    "ProvisioningWarning",
    "ResourceKind",
    "ResourceMeta",
    "ResourceState",
    "RuntimeIdentity",
    "SshPair",
]
