"""FastAPI routes for the async storage provisioner."""
from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from ..errors import ConfigurationError, InfrastructureError
from ..models import ProvisioningRequest, RuntimeIdentity
from ..orchestration.main import AsyncStorageOrchestrator
from ..services.state_manager import ProvisioningStateManager

router = APIRouter()


class ProvisionBody(BaseModel):
    owner_id: str = Field(..., alias="ownerId")
    namespace: str
    env_name: Optional[str] = Field(None, alias="envName")
    attributes: Dict[str, str] = Field(default_factory=dict)


def get_state_manager(request: Request) -> ProvisioningStateManager:
    manager = getattr(request.app.state, "state_manager", None)
    if manager is None:
        raise RuntimeError("ProvisioningStateManager dependency not configured")
    return manager


def get_orchestrator(request: Request) -> AsyncStorageOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise RuntimeError("AsyncStorageOrchestrator dependency not configured")
    return orchestrator


@router.post("/workspaces/{workspace_id}/async-storage")
async def provision_async_storage(
    workspace_id: str,
    body: ProvisionBody,
    orchestrator: AsyncStorageOrchestrator = Depends(get_orchestrator),
) -> dict:
    identity = RuntimeIdentity(
        workspace_id=workspace_id,
        owner_id=body.owner_id,
        namespace=body.namespace,
        env_name=body.env_name,
    )
    provisioning_request = ProvisioningRequest(identity=identity, attributes=body.attributes)
    try:
        result = await run_in_threadpool(orchestrator.provision, provisioning_request)
    except InfrastructureError as exc:
        status_code = (
            status.HTTP_422_UNPROCESSABLE_ENTITY
            if isinstance(exc, ConfigurationError)
            else status.HTTP_502_BAD_GATEWAY
        )
        raise HTTPException(
            status_code=status_code,
            detail={
                "message": str(exc),
                "warnings": [{"code": w.code, "message": w.message} for w in provisioning_request.warnings],
            },
        ) from exc
    return result.to_dict()


@router.get("/workspaces/{workspace_id}/async-storage/status")
def async_storage_status(
    workspace_id: str,
    state_manager: ProvisioningStateManager = Depends(get_state_manager),
) -> dict:
    status_value = state_manager.get_status(workspace_id)
    if status_value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Async storage not provisioned")
    return {"status": status_value, "history": state_manager.get_history(workspace_id)}


@router.get("/workspaces/{workspace_id}/async-storage/warnings")
def async_storage_warnings(
    workspace_id: str,
    state_manager: ProvisioningStateManager = Depends(get_state_manager),
) -> dict:
    warnings = state_manager.get_warnings(workspace_id)
    if warnings is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No provisioning attempt recorded")
    return {"warnings": warnings}


__all__ = ["router"]
