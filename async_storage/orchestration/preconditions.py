"""Workspace configuration checks gating async storage provisioning."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..constants import (
    ASYNC_PERSIST_ATTRIBUTE,
    COMMON_STRATEGY,
    INVALID_CONFIGURATION_WARNING,
    PERSIST_VOLUMES_ATTRIBUTE,
)

UNSUPPORTED_STRATEGY_MESSAGE = (
    "Workspace configuration not valid: Asynchronous storage available only for"
    " 'common' PVC strategy, but got %s"
)
EPHEMERAL_REQUIRED_MESSAGE = (
    "Workspace configuration not valid: Asynchronous storage available only if"
    " attribute 'persistVolumes' set to false"
)


@dataclass(frozen=True)
class PreconditionResult:
    """Verdict of :func:`validate`."""

    skip: bool = False
    reason: Optional[str] = None
    warning_code: Optional[int] = None

    @property
    def rejected(self) -> bool:
        return self.reason is not None


def is_ephemeral(attributes: Mapping[str, str]) -> bool:
    """A workspace is ephemeral only when volumes persistence is switched off explicitly."""

    return attributes.get(PERSIST_VOLUMES_ATTRIBUTE) == "false"


def validate(attributes: Mapping[str, str], configured_strategy: str) -> PreconditionResult:
    """Decide whether async storage applies to the workspace and is legal."""

    if attributes.get(ASYNC_PERSIST_ATTRIBUTE) != "true":
        return PreconditionResult(skip=True)
    if configured_strategy != COMMON_STRATEGY:
        return PreconditionResult(
            reason=UNSUPPORTED_STRATEGY_MESSAGE % configured_strategy,
            warning_code=INVALID_CONFIGURATION_WARNING,
        )
    if not is_ephemeral(attributes):
        return PreconditionResult(
            reason=EPHEMERAL_REQUIRED_MESSAGE,
            warning_code=INVALID_CONFIGURATION_WARNING,
        )
    return PreconditionResult()


__all__ = ["PreconditionResult", "is_ephemeral", "validate"]
