from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from taskmaster.dependencies import get_manager
from taskmaster.manager import TaskManager
from taskmaster.schemas import CategoryCreate, CategoryOrder, CategoryPatch, CategoryResponse, TaskOrder, TaskResponse

router = APIRouter()


@router.get("/v1/categories", response_model=List[CategoryResponse])
async def list_categories(manager: TaskManager = Depends(get_manager)):
    return manager.categories


@router.post("/v1/categories", response_model=CategoryResponse)
async def create_category(payload: CategoryCreate, manager: TaskManager = Depends(get_manager)):
    return await manager.add_category(payload.title)


@router.put("/v1/categories/order", response_model=List[CategoryResponse])
async def reorder_categories(payload: CategoryOrder, manager: TaskManager = Depends(get_manager)):
    return await manager.reorder_categories(payload.category_ids)


@router.patch("/v1/categories/{category_id}", response_model=CategoryResponse)
async def rename_category(category_id: str, payload: CategoryPatch, manager: TaskManager = Depends(get_manager)):
    return await manager.rename_category(category_id, payload.title)


@router.put("/v1/categories/{category_id}/tasks/order", response_model=List[TaskResponse])
async def reorder_tasks(category_id: str, payload: TaskOrder, manager: TaskManager = Depends(get_manager)):
    return await manager.reorder_tasks(category_id, payload.task_ids)


@router.delete("/v1/categories/{category_id}")
async def delete_category(category_id: str, manager: TaskManager = Depends(get_manager)):
    await manager.delete_category(category_id)
    return {"ok": True}
