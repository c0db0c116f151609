from __future__ import annotations

from fastapi import Depends, Request

from taskmaster.auth import RequestUser, require_user
from taskmaster.manager import TaskManager
from taskmaster.notes import NoteBook
from taskmaster.registry import SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


async def get_manager(
    user: RequestUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
) -> TaskManager:
    return await registry.get(user.user_id, user.timezone)


async def get_notebook(
    user: RequestUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
) -> NoteBook:
    return await registry.notes(user.user_id, user.timezone)


async def get_session_manager(
    user: RequestUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
) -> TaskManager:
    # The caller runs its own activation and reports the rollover outcome.
    return await registry.get(user.user_id, user.timezone, refresh=False)
