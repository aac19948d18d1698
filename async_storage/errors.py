"""Exception hierarchy of the async storage provisioner."""
from __future__ import annotations

from typing import Optional


class InfrastructureError(Exception):
    """Base class for failures that abort a provisioning attempt."""


class ConfigurationError(InfrastructureError):
    """The workspace configuration does not allow async storage."""


class CredentialError(InfrastructureError):
    """SSH keys for the storage channel could not be read or generated."""


class ControlPlaneError(InfrastructureError):
    """A Kubernetes API call failed."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class AlreadyExistsError(ControlPlaneError):
    """The resource was created concurrently by somebody else."""


class UnauthorizedError(ControlPlaneError):
    """The service account is not allowed to perform the call."""


class SshKeyStoreError(Exception):
    """The SSH key store is unreachable or returned garbage."""


class SshKeyConflictError(Exception):
    """A key pair with the same name already exists for the owner."""


__all__ = [
    "AlreadyExistsError",
    "ConfigurationError",
    "ControlPlaneError",
    "CredentialError",
    "InfrastructureError",
    "SshKeyConflictError",
    "SshKeyStoreError",
    "UnauthorizedError",
]
