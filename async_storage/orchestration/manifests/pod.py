"""Manifest of the storage pod serving rsync over SSH."""
from __future__ import annotations

from typing import Any, Dict, List

from ...constants import (
    ASYNC_STORAGE,
    ASYNC_STORAGE_CLAIM,
    ASYNC_STORAGE_DATA_PATH,
    AUTHORIZED_KEYS,
    CONFIG_MAP_VOLUME_NAME,
    MEMORY_LIMIT,
    MEMORY_REQUEST,
    SERVICE_PORT,
    SSH_KEY_PATH,
    STORAGE_VOLUME,
)


def storage_labels() -> Dict[str, str]:
    return {"app": ASYNC_STORAGE}


def _build_volumes(config_map: str) -> List[dict]:
    return [
        {
            "name": STORAGE_VOLUME,
            "persistentVolumeClaim": {"claimName": ASYNC_STORAGE_CLAIM, "readOnly": False},
        },
        {
            "name": CONFIG_MAP_VOLUME_NAME,
            "configMap": {"name": config_map},
        },
    ]


def _build_volume_mounts() -> List[dict]:
    return [
        {
            "name": STORAGE_VOLUME,
            "mountPath": ASYNC_STORAGE_DATA_PATH,
            "readOnly": False,
        },
        {
            "name": CONFIG_MAP_VOLUME_NAME,
            "mountPath": SSH_KEY_PATH,
            "subPath": AUTHORIZED_KEYS,
            "readOnly": True,
        },
    ]


def build_storage_pod(namespace: str, image: str, config_map: str) -> Dict[str, Any]:
    """Create the storage pod.

    The container mounts the backup claim read-write and the ``authorized_keys``
    entry of the config map read-only, and exposes the SSH port.
    """

    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": ASYNC_STORAGE,
            "namespace": namespace,
            "labels": storage_labels(),
        },
        "spec": {
            "containers": [
                {
                    "name": ASYNC_STORAGE,
                    "image": image,
                    "resources": {
                        "limits": {"memory": MEMORY_LIMIT},
                        "requests": {"memory": MEMORY_REQUEST},
                    },
                    "ports": [{"containerPort": SERVICE_PORT, "protocol": "TCP"}],
                    "volumeMounts": _build_volume_mounts(),
                }
            ],
            "volumes": _build_volumes(config_map),
        },
    }


__all__ = ["build_storage_pod", "storage_labels"]
