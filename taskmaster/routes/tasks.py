from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends

from taskmaster.dependencies import get_manager
from taskmaster.manager import TaskManager
from taskmaster.schemas import TaskCreate, TaskPatch, TaskResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/tasks", response_model=List[TaskResponse])
async def list_tasks(category_id: str | None = None, manager: TaskManager = Depends(get_manager)):
    if category_id:
        return manager.store.tasks_in(category_id)
    return manager.tasks


@router.post("/v1/tasks", response_model=TaskResponse)
async def create_task(payload: TaskCreate, manager: TaskManager = Depends(get_manager)):
    return await manager.add_task(payload.category_id, payload.title, payload.is_daily)


@router.patch("/v1/tasks/{task_id}", response_model=TaskResponse)
async def patch_task(task_id: str, payload: TaskPatch, manager: TaskManager = Depends(get_manager)):
    return await manager.update_task(task_id, payload.title)


@router.post("/v1/tasks/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(task_id: str, manager: TaskManager = Depends(get_manager)):
    task = await manager.toggle_task(task_id)
    logger.debug("Task %s toggled to %s", task.id, task.is_completed)
    return task


@router.delete("/v1/tasks/{task_id}")
async def delete_task(task_id: str, manager: TaskManager = Depends(get_manager)):
    await manager.delete_task(task_id)
    return {"ok": True}
