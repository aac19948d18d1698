"""Manifest of the service exposing the storage pod's SSH port."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

from ...constants import ASYNC_STORAGE, SERVICE_PORT, SERVICE_PORT_NAME
from .pod import storage_labels


@dataclass(frozen=True)
class IntOrString:
    """Port reference carrying both encodings accepted by the API server.

    The Kubernetes wire format holds a single value per ``targetPort``, so
    :meth:`to_manifest` emits the integer and ``str_val`` is never written.
    """

    int_val: int
    str_val: str

    @classmethod
    def of(cls, port: int) -> "IntOrString":
        return cls(int_val=port, str_val=str(port))

    def to_manifest(self) -> Union[int, str]:
        return self.int_val


def build_storage_service(namespace: str) -> Dict[str, Any]:
    """Create the ClusterIP service routing rsync connections to the storage pod."""

    target_port = IntOrString.of(SERVICE_PORT)
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": ASYNC_STORAGE, "namespace": namespace},
        "spec": {
            "ports": [
                {
                    "name": SERVICE_PORT_NAME,
                    "protocol": "TCP",
                    "port": SERVICE_PORT,
                    "targetPort": target_port.to_manifest(),
                }
            ],
            "selector": storage_labels(),
        },
    }


__all__ = ["IntOrString", "build_storage_service"]
