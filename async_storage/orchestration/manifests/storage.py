"""Manifests for the backup claim and the SSH config map."""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ...constants import ASYNC_STORAGE_CLAIM, ASYNC_STORAGE_CONFIG, AUTHORIZED_KEYS
from ...models import SshPair


def config_map_name(namespace: str) -> str:
    return namespace + ASYNC_STORAGE_CONFIG


def build_claim(namespace: str, access_mode: str, quantity: str) -> Dict[str, Any]:
    """Create the PersistentVolumeClaim storing project backups."""

    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": ASYNC_STORAGE_CLAIM, "namespace": namespace},
        "spec": {
            "accessModes": [access_mode],
            "resources": {"requests": {"storage": quantity}},
        },
    }


def build_config_map(namespace: str, pairs: Optional[Sequence[SshPair]]) -> Optional[Dict[str, Any]]:
    """Create the config map carrying the public part of the SSH key.

    Returns ``None`` when there is no key to publish.
    """

    if not pairs:
        return None
    pair = pairs[0]
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": config_map_name(namespace), "namespace": namespace},
        "data": {AUTHORIZED_KEYS: pair.public_key},
    }


__all__ = ["build_claim", "build_config_map", "config_map_name"]
