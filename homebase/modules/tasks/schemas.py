from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from homebase.database.store import Row


class Recurrence(str, Enum):
    once = "once"
    daily = "daily"
    weekly = "weekly"
    every_n_days = "every_n_days"


class ListKind(str, Enum):
    todo = "todo"
    shopping = "shopping"


class TaskList(Row):
    table_name = "todo_lists"

    id: str
    family_id: str
    name: str
    type: ListKind = ListKind.todo
    sort_order: Optional[int] = None
    created_at: Optional[datetime] = None


class TaskItem(Row):
    table_name = "todo_items"

    id: str
    list_id: str
    title: str
    notes: Optional[str] = None
    is_done: bool = False
    due_at: Optional[datetime] = None
    assigned_to_profile_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    recurrence: Recurrence = Recurrence.once
    recurrence_interval_days: Optional[int] = None

    @field_validator("recurrence", mode="before")
    @classmethod
    def default_recurrence(cls, value):
        # Rows written before recurrence existed carry null
        return Recurrence.once if value is None else value


class TaskListCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: ListKind = ListKind.todo


class TaskItemCreate(BaseModel):
    title: str = Field(..., max_length=500)
    notes: Optional[str] = None
    due_at: Optional[datetime] = None
    assigned_to_profile_id: Optional[str] = None
    recurrence: Recurrence = Recurrence.once
    recurrence_interval_days: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def interval_only_for_every_n_days(self):
        if self.recurrence != Recurrence.every_n_days:
            self.recurrence_interval_days = None
        return self


class TaskListsResponse(BaseModel):
    family_id: str
    items: List[TaskList]


class TaskItemsResponse(BaseModel):
    list_id: str
    items: List[TaskItem]


class CompleteItemResponse(BaseModel):
    item: TaskItem
    successor: Optional[TaskItem] = None
    items: List[TaskItem]
