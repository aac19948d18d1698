"""Resolve the SSH key pair securing the rsync channel."""
from __future__ import annotations

import logging
from typing import List, Protocol

from ..constants import (
    NOT_ABLE_TO_PROVISION_SSH_KEYS,
    NOT_ABLE_TO_PROVISION_SSH_KEYS_MESSAGE,
    SSH_KEY_NAME,
    SSH_KEY_SERVICE,
)
from ..errors import CredentialError, SshKeyConflictError, SshKeyStoreError
from ..models import ProvisioningRequest, SshPair

LOGGER = logging.getLogger(__name__)


class KeyStore(Protocol):
    def get_pairs(self, owner: str, service: str) -> List[SshPair]:
        ...

    def generate_pair(self, owner: str, service: str, name: str) -> SshPair:
        ...


class SshCredentialResolver:
    """Get or create the owner's internal SSH key pairs.

    Existing pairs are never regenerated; callers use the first one.
    """

    def __init__(self, key_store: KeyStore) -> None:
        self._key_store = key_store

    def resolve(self, request: ProvisioningRequest) -> List[SshPair]:
        owner_id = request.identity.owner_id
        try:
            pairs = self._key_store.get_pairs(owner_id, SSH_KEY_SERVICE)
        except SshKeyStoreError as exc:
            self._record_failure(request, f"Unable to get SSH Keys. Cause: {exc}")
            raise CredentialError(str(exc)) from exc
        if pairs:
            return pairs
        try:
            pair = self._key_store.generate_pair(owner_id, SSH_KEY_SERVICE, SSH_KEY_NAME)
        except (SshKeyStoreError, SshKeyConflictError) as exc:
            self._record_failure(
                request, f"Unable to generate the SSH key for async storage service. Cause: {exc}"
            )
            raise CredentialError(str(exc)) from exc
        return [pair]

    @staticmethod
    def _record_failure(request: ProvisioningRequest, message: str) -> None:
        LOGGER.warning(message, extra={"owner_id": request.identity.owner_id})
        request.add_warning(NOT_ABLE_TO_PROVISION_SSH_KEYS, NOT_ABLE_TO_PROVISION_SSH_KEYS_MESSAGE % message)


__all__ = ["KeyStore", "SshCredentialResolver"]
