import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Union

from homebase.config.settings import settings
from homebase.core.exceptions import HomebaseError, NotFound, ValidationError
from homebase.database.store import Store
from homebase.modules.tasks.schemas import (
    ListKind, Recurrence, TaskItem, TaskItemCreate, TaskList, TaskListCreate
)

logger = logging.getLogger(__name__)

ITEM_ORDER = [("is_done", False), ("due_at", False), ("created_at", False)]
LIST_ORDER = [("sort_order", False), ("created_at", False)]

_STEP_DAYS = {
    Recurrence.daily: 1,
    Recurrence.weekly: 7,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: Union[datetime, str]) -> datetime:
    """Parse an ISO-8601 instant; naive values are taken as UTC."""
    if isinstance(value, datetime):
        instant = value
    else:
        try:
            instant = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationError(f"Unparsable due_at: {value!r}") from e
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


@dataclass(frozen=True)
class CompletionResult:
    item: TaskItem
    successor: Optional[TaskItem] = None


class TaskRolloverEngine:
    """
    Completion of task items.

    Completing a recurring item marks it done and spawns exactly one successor.
    The done transition is a conditional update (where is_done is false), so of
    any number of concurrent or repeated completions only one creates a successor.
    When the successor cannot be written the item is reopened, so a retry rolls over.
    """

    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def compute_next_occurrence(self, item: TaskItem) -> Optional[datetime]:
        base = parse_instant(item.due_at) if item.due_at is not None else self.clock()
        recurrence = item.recurrence or Recurrence.once
        if recurrence == Recurrence.once:
            return None
        if recurrence == Recurrence.every_n_days:
            days = max(item.recurrence_interval_days or 1, 1)
        else:
            days = _STEP_DAYS[recurrence]
        return base + timedelta(days=days)

    def complete(self, item: TaskItem) -> CompletionResult:
        if item.is_done:
            return CompletionResult(item)

        next_due = self.compute_next_occurrence(item)
        updated = self.store.update(
            TaskItem,
            item.id,
            {"is_done": True, "completed_at": self.clock()},
            expect={"is_done": False},
        )
        if updated is None:
            current = self.store.get_by_key(TaskItem, item.id)
            if current is None:
                raise NotFound("Task item not found")
            logger.info(f"Task item {item.id} was already completed; no successor created")
            return CompletionResult(current)

        if next_due is None:
            return CompletionResult(updated)

        try:
            successor = self.store.insert(TaskItem, {
                "list_id": item.list_id,
                "title": item.title,
                "notes": item.notes,
                "is_done": False,
                "due_at": next_due,
                "assigned_to_profile_id": item.assigned_to_profile_id,
                "created_by": item.created_by,
                "recurrence": item.recurrence.value,
                "recurrence_interval_days": item.recurrence_interval_days,
            })
        except HomebaseError:
            self._reopen(item)
            raise
        logger.info(f"Task item {item.id} rolled over to {successor.id} due {next_due.isoformat()}")
        return CompletionResult(updated, successor)

    def _reopen(self, item: TaskItem) -> None:
        """Put an item back to open after its successor could not be written."""
        try:
            self.store.update(TaskItem, item.id, {"is_done": False, "completed_at": None}, expect={"is_done": True})
        except HomebaseError as e:
            logger.error(f"Task item {item.id} is done without a successor; reopen failed: {e.message}")
            return
        logger.warning(f"Reopened task item {item.id} after its successor insert failed")


class TaskListService:
    def __init__(self, store: Store):
        self.store = store

    def get_list(self, list_id: str) -> TaskList:
        task_list = self.store.get_by_key(TaskList, list_id)
        if task_list is None:
            raise NotFound("List not found")
        return task_list

    def get_item(self, item_id: str) -> TaskItem:
        item = self.store.get_by_key(TaskItem, item_id)
        if item is None:
            raise NotFound("Task item not found")
        return item

    def list_lists(self, family_id: str) -> List[TaskList]:
        return self.store.get_by_filter(TaskList, order_by=LIST_ORDER, family_id=family_id)

    def ensure_lists(self, family_id: str) -> List[TaskList]:
        """Ensure-or-seed: a family always has at least one list."""
        lists = self.list_lists(family_id)
        if lists:
            return lists
        seeded = self.store.insert(TaskList, {
            "family_id": family_id,
            "name": settings.default_task_list_name,
            "type": ListKind.todo.value,
            "sort_order": 0,
        })
        logger.info(f"Seeded default task list {seeded.id} for family {family_id}")
        return [seeded]

    def create_list(self, family_id: str, data: TaskListCreate) -> TaskList:
        name = data.name.strip()
        if not name:
            raise ValidationError("List name is required")
        existing = self.list_lists(family_id)
        return self.store.insert(TaskList, {
            "family_id": family_id,
            "name": name,
            "type": data.type.value,
            "sort_order": len(existing),
        })

    def delete_list(self, list_id: str) -> bool:
        # Items go with the list (on delete cascade)
        return self.store.delete(TaskList, list_id)

    def list_items(self, list_id: str) -> List[TaskItem]:
        return self.store.get_by_filter(TaskItem, order_by=ITEM_ORDER, list_id=list_id)

    def add_item(self, list_id: str, data: TaskItemCreate, created_by: Optional[str]) -> TaskItem:
        title = data.title.strip()
        if not title:
            raise ValidationError("Please enter a title.")
        notes = (data.notes or "").strip() or None
        return self.store.insert(TaskItem, {
            "list_id": list_id,
            "title": title,
            "notes": notes,
            "is_done": False,
            "due_at": parse_instant(data.due_at) if data.due_at else None,
            "assigned_to_profile_id": data.assigned_to_profile_id,
            "created_by": created_by,
            "recurrence": data.recurrence.value,
            "recurrence_interval_days": data.recurrence_interval_days,
        })

    def delete_item(self, item_id: str) -> bool:
        return self.store.delete(TaskItem, item_id)
