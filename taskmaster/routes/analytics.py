from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from taskmaster.dependencies import get_manager
from taskmaster.manager import TaskManager
from taskmaster.schemas import HistoryEntryResponse, TodayAnalyticsResponse, UserStatsResponse
from taskmaster.settings import get_settings

router = APIRouter()


@router.get("/v1/analytics/today", response_model=TodayAnalyticsResponse)
async def today_analytics(manager: TaskManager = Depends(get_manager)):
    return {
        "today": manager.session.today(manager.clock()),
        "daily": manager.get_daily_stats(),
        "categories": manager.get_category_stats(),
    }


@router.get("/v1/analytics/history", response_model=List[HistoryEntryResponse])
async def history(
    limit: int | None = Query(default=None, ge=1, le=366),
    manager: TaskManager = Depends(get_manager),
):
    return await manager.analytics_history(limit or get_settings().history_default_limit)


@router.get("/v1/analytics/user-stats", response_model=UserStatsResponse)
async def user_stats(manager: TaskManager = Depends(get_manager)):
    return await manager.user_stats()
