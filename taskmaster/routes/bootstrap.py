from __future__ import annotations

from fastapi import APIRouter, Depends

from taskmaster.dependencies import get_manager
from taskmaster.manager import TaskManager
from taskmaster.schemas import BootstrapResponse

router = APIRouter()


@router.get("/v1/bootstrap", response_model=BootstrapResponse)
async def bootstrap(manager: TaskManager = Depends(get_manager)):
    session = manager.session
    return {
        "user_id": manager.user_id,
        "timezone": session.timezone_name,
        "today": session.today(manager.clock()),
        "categories": manager.categories,
        "tasks": manager.tasks,
        "daily": manager.get_daily_stats(),
        "warnings": [str(item) for item in manager.store.warnings],
    }
