"""Well-known names shared with the workspace master and the storage image.

Resource names are fixed per namespace, so only one async storage stack can
exist in a namespace at a time.
"""
from __future__ import annotations

ASYNC_PERSIST_ATTRIBUTE = "asyncPersist"
PERSIST_VOLUMES_ATTRIBUTE = "persistVolumes"

COMMON_STRATEGY = "common"

ASYNC_STORAGE = "async-storage"
ASYNC_STORAGE_CONFIG = "async-storage-config"
ASYNC_STORAGE_CLAIM = "async-storage-claim"
ASYNC_STORAGE_DATA_PATH = "/var/lib/storage/data/"
AUTHORIZED_KEYS = "authorized_keys"
SSH_KEY_PATH = "/.ssh/" + AUTHORIZED_KEYS
CONFIG_MAP_VOLUME_NAME = "async-storage-configvolume"
STORAGE_VOLUME = "async-storage-data"
SERVICE_PORT = 2222
SERVICE_PORT_NAME = "rsync-port"

MEMORY_LIMIT = "512Mi"
MEMORY_REQUEST = "256Mi"

SSH_KEY_NAME = "rsync-via-ssh"
SSH_KEY_SERVICE = "internal"

INVALID_CONFIGURATION_WARNING = 4200
NOT_ABLE_TO_PROVISION_SSH_KEYS = 4012
NOT_ABLE_TO_PROVISION_SSH_KEYS_MESSAGE = "Not able to provision SSH keys for async storage. %s"
