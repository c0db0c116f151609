from __future__ import annotations

from datetime import date as dt_date, datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    title: str


class CategoryPatch(BaseModel):
    title: str


class CategoryOrder(BaseModel):
    category_ids: List[str]


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    order_index: int
    created_at: datetime


class TaskCreate(BaseModel):
    category_id: Optional[str] = None
    title: str
    is_daily: bool = False


class TaskPatch(BaseModel):
    title: str


class TaskOrder(BaseModel):
    task_ids: List[str]


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    category_id: str
    title: str
    is_completed: bool
    is_daily: bool
    last_completed_date: Optional[datetime] = None
    order_index: int
    created_at: datetime


class DailyStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    completed: int
    missed: int
    percentage: int


class CategoryStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: str
    category_title: str
    total: int
    completed: int
    percentage: int


class TodayAnalyticsResponse(BaseModel):
    today: dt_date
    daily: DailyStatsResponse
    categories: List[CategoryStatsResponse]


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: dt_date
    total_tasks: int
    completed_tasks: int
    completion_percentage: int
    category_stats: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime


class UserStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    days_active: int
    total_tasks_completed: int
    current_streak: int
    best_streak: int


class ActivateResponse(BaseModel):
    today: Optional[dt_date] = None
    performed: bool = False
    reset_task_ids: List[str] = Field(default_factory=list)
    deferred: bool = False


class BootstrapResponse(BaseModel):
    user_id: str
    timezone: str
    today: dt_date
    categories: List[CategoryResponse]
    tasks: List[TaskResponse]
    daily: DailyStatsResponse
    warnings: List[str] = Field(default_factory=list)


class NoteCreate(BaseModel):
    content: str


class NotePatch(BaseModel):
    content: str


class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime
