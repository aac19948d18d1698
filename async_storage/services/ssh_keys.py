"""Redis-backed store of SSH key pairs scoped to an owner and a service."""
from __future__ import annotations

import json
import logging
from typing import List, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from redis import Redis, RedisError

from ..errors import SshKeyConflictError, SshKeyStoreError
from ..models import SshPair

LOGGER = logging.getLogger(__name__)


def generate_key_material(key_size: int = 2048) -> Tuple[str, str]:
    """Return an ``(openssh_public_key, pem_private_key)`` tuple for a fresh RSA key."""

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    public_key = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return public_key.decode("utf-8"), private_pem.decode("utf-8")


class SshKeyStore:
    """Persist and generate SSH key pairs using Redis.

    Pairs live in a hash keyed by name; a companion list keeps the insertion
    order so listings are stable.
    """

    PAIRS_KEY_TEMPLATE = "ssh:{owner}:{service}"
    NAMES_KEY_TEMPLATE = "ssh:{owner}:{service}:names"

    def __init__(self, redis_client: Redis, key_size: int = 2048) -> None:
        self._redis = redis_client
        self._key_size = key_size

    @staticmethod
    def _pairs_key(owner: str, service: str) -> str:
        return SshKeyStore.PAIRS_KEY_TEMPLATE.format(owner=owner, service=service)

    @staticmethod
    def _names_key(owner: str, service: str) -> str:
        return SshKeyStore.NAMES_KEY_TEMPLATE.format(owner=owner, service=service)

    @staticmethod
    def _decode(owner: str, service: str, name: str, raw: str) -> SshPair:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SshKeyStoreError(f"Stored SSH key '{name}' is invalid JSON") from exc
        return SshPair(
            owner=owner,
            service=service,
            name=payload["name"],
            public_key=payload["public_key"],
            private_key=payload.get("private_key"),
        )

    def get_pairs(self, owner: str, service: str) -> List[SshPair]:
        """Return all pairs of the owner for the service, oldest first."""

        try:
            names = self._redis.lrange(self._names_key(owner, service), 0, -1)
            if not names:
                return []
            raw_pairs = self._redis.hmget(self._pairs_key(owner, service), names)
        except RedisError as exc:
            raise SshKeyStoreError(str(exc)) from exc
        pairs = []
        for name, raw in zip(names, raw_pairs):
            if raw is None:
                LOGGER.warning(
                    "SSH key name indexed without payload", extra={"owner": owner, "service": service, "key_name": name}
                )
                continue
            pairs.append(self._decode(owner, service, name, raw))
        LOGGER.debug("Fetched SSH key pairs", extra={"owner": owner, "service": service, "count": len(pairs)})
        return pairs

    def generate_pair(self, owner: str, service: str, name: str) -> SshPair:
        """Generate, store and return a new pair; names are unique per owner and service.

        A pair whose payload was stored but whose name never reached the index
        (the index write failed) is indexed and returned instead of conflicting.
        """

        public_key, private_key = generate_key_material(self._key_size)
        pair = SshPair(owner=owner, service=service, name=name, public_key=public_key, private_key=private_key)
        payload = json.dumps({"name": name, "public_key": public_key, "private_key": private_key})
        try:
            if not self._redis.hsetnx(self._pairs_key(owner, service), name, payload):
                return self._index_orphan(owner, service, name)
            self._redis.rpush(self._names_key(owner, service), name)
        except RedisError as exc:
            raise SshKeyStoreError(str(exc)) from exc
        LOGGER.info("Generated SSH key pair", extra={"owner": owner, "service": service, "key_name": name})
        return pair

    def _index_orphan(self, owner: str, service: str, name: str) -> SshPair:
        if name in self._redis.lrange(self._names_key(owner, service), 0, -1):
            raise SshKeyConflictError(
                f"SSH key pair '{name}' already exists for owner '{owner}' and service '{service}'"
            )
        existing = self._decode(owner, service, name, self._redis.hget(self._pairs_key(owner, service), name))
        self._redis.rpush(self._names_key(owner, service), name)
        LOGGER.warning(
            "Indexed SSH key pair left over by an interrupted write",
            extra={"owner": owner, "service": service, "key_name": name},
        )
        return existing


__all__ = ["SshKeyStore", "generate_key_material"]
