from __future__ import annotations

from fastapi import APIRouter, Depends

from taskmaster.auth import RequestUser, require_user
from taskmaster.dependencies import get_registry, get_session_manager
from taskmaster.manager import TaskManager
from taskmaster.registry import SessionRegistry
from taskmaster.schemas import ActivateResponse

router = APIRouter()


@router.post("/v1/session/activate", response_model=ActivateResponse)
async def activate(manager: TaskManager = Depends(get_session_manager)):
    result = await manager.activate()
    if result is None:
        return ActivateResponse(deferred=True)
    return ActivateResponse(
        today=result.today,
        performed=result.performed,
        reset_task_ids=result.stale_task_ids,
    )


@router.delete("/v1/session")
async def sign_out(
    user: RequestUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
):
    registry.sign_out(user.user_id)
    return {"ok": True}
