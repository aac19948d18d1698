from __future__ import annotations

from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from async_storage.config import AsyncStorageConfig
from async_storage.errors import AlreadyExistsError, ControlPlaneError, SshKeyConflictError
from async_storage.models import ProvisioningRequest, ResourceKind, ResourceMeta, RuntimeIdentity, SshPair


class FakeControlPlane:
    """In-memory namespace contents with call recording."""

    def __init__(self) -> None:
        self.objects: Dict[Tuple[str, ResourceKind], Dict[str, Dict[str, Any]]] = {}
        self.list_calls: List[Tuple[str, ResourceKind]] = []
        self.create_calls: List[Tuple[str, ResourceKind, Dict[str, Any]]] = []
        self.create_errors: Dict[ResourceKind, Exception] = {}
        self.hidden: Set[Tuple[ResourceKind, str]] = set()

    def seed(self, namespace: str, kind: ResourceKind, name: str) -> None:
        self.objects.setdefault((namespace, kind), {})[name] = {"metadata": {"name": name, "namespace": namespace}}

    def hide_from_listing(self, kind: ResourceKind, name: str) -> None:
        """Simulate a concurrent writer whose object is not yet visible in listings."""

        self.hidden.add((kind, name))

    def list(self, namespace: str, kind: ResourceKind) -> List[ResourceMeta]:
        self.list_calls.append((namespace, kind))
        return [
            ResourceMeta(kind=kind, name=name, namespace=namespace)
            for name in self.objects.get((namespace, kind), {})
            if (kind, name) not in self.hidden
        ]

    def create(self, namespace: str, kind: ResourceKind, manifest: Dict[str, Any]) -> Dict[str, Any]:
        self.create_calls.append((namespace, kind, manifest))
        if kind in self.create_errors:
            raise self.create_errors[kind]
        name = manifest["metadata"]["name"]
        bucket = self.objects.setdefault((namespace, kind), {})
        if name in bucket:
            raise AlreadyExistsError(f"{kind.value} {name} already exists", status=409)
        bucket[name] = manifest
        return manifest

    def created_kinds(self) -> List[ResourceKind]:
        return [kind for _, kind, _ in self.create_calls]

    def fail_create(self, kind: ResourceKind, error: Optional[ControlPlaneError] = None) -> None:
        self.create_errors[kind] = error or ControlPlaneError("boom", status=500)


class FakeKeyStore:
    def __init__(self, pairs: Optional[List[SshPair]] = None) -> None:
        self.pairs: List[SshPair] = list(pairs or [])
        self.get_calls = 0
        self.generate_calls: List[Tuple[str, str, str]] = []
        self.get_error: Optional[Exception] = None
        self.generate_error: Optional[Exception] = None

    def get_pairs(self, owner: str, service: str) -> List[SshPair]:
        self.get_calls += 1
        if self.get_error:
            raise self.get_error
        return [pair for pair in self.pairs if pair.owner == owner and pair.service == service]

    def generate_pair(self, owner: str, service: str, name: str) -> SshPair:
        self.generate_calls.append((owner, service, name))
        if self.generate_error:
            raise self.generate_error
        if any(p.owner == owner and p.service == service and p.name == name for p in self.pairs):
            raise SshKeyConflictError(name)
        pair = SshPair(owner=owner, service=service, name=name, public_key=f"ssh-rsa AAAA{len(self.pairs)} {owner}")
        self.pairs.append(pair)
        return pair


class FakeRedis:
    """Just enough of the redis-py client for the stores under test."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.hashes: Dict[str, Dict[str, str]] = {}

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def lpush(self, key: str, value: str) -> None:
        self.lists.setdefault(key, []).insert(0, value)

    def rpush(self, key: str, value: str) -> None:
        self.lists.setdefault(key, []).append(value)

    def lrange(self, key: str, start: int, end: int) -> List[str]:
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start : end + 1]

    def hsetnx(self, key: str, field: str, value: str) -> int:
        bucket = self.hashes.setdefault(key, {})
        if field in bucket:
            return 0
        bucket[field] = value
        return 1

    def hget(self, key: str, field: str) -> Optional[str]:
        return self.hashes.get(key, {}).get(field)

    def hmget(self, key: str, fields: List[str]) -> List[Optional[str]]:
        bucket = self.hashes.get(key, {})
        return [bucket.get(field) for field in fields]


@pytest.fixture
def settings() -> AsyncStorageConfig:
    return AsyncStorageConfig(
        image="registry.example.com/storage:1.0",
        pvc_quantity="5Gi",
        pvc_access_mode="ReadWriteOnce",
        pvc_strategy="common",
    )


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def key_store() -> FakeKeyStore:
    return FakeKeyStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def identity() -> RuntimeIdentity:
    return RuntimeIdentity(workspace_id="ws-1", owner_id="user-1", namespace="user-1-che")


@pytest.fixture
def make_request(identity):
    def _make(**attributes: str) -> ProvisioningRequest:
        return ProvisioningRequest(identity=identity, attributes=dict(attributes))

    return _make


@pytest.fixture
def enabled_request(make_request) -> ProvisioningRequest:
    return make_request(asyncPersist="true", persistVolumes="false")
