from fastapi import APIRouter, Depends
from homebase.core.dependencies import get_current_profile, get_registrar, get_store, check_family_member, check_family_owner
from homebase.database.store import Store
from homebase.modules.families.schemas import Profile
from homebase.modules.families.service import MembershipRegistrar
from homebase.modules.tasks.schemas import (
    TaskItem, TaskItemCreate, TaskItemsResponse, TaskList, TaskListCreate, TaskListsResponse
)
from homebase.modules.tasks.service import TaskListService

router = APIRouter(tags=["tasks"])


def get_task_list_service(store: Store = Depends(get_store)) -> TaskListService:
    return TaskListService(store)


@router.get("/families/{family_id}/lists", response_model=TaskListsResponse)
async def list_task_lists(
    family_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    service: TaskListService = Depends(get_task_list_service)
):
    """Lists of a family; a default list is created when the family has none"""
    check_family_member(family_id, profile, registrar)
    return TaskListsResponse(family_id=family_id, items=service.ensure_lists(family_id))


@router.post("/families/{family_id}/lists", response_model=TaskList, status_code=201)
async def create_task_list(
    family_id: str,
    payload: TaskListCreate,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    service: TaskListService = Depends(get_task_list_service)
):
    """Create a todo or shopping list"""
    check_family_member(family_id, profile, registrar)
    return service.create_list(family_id, payload)


@router.delete("/lists/{list_id}", status_code=204)
async def delete_task_list(
    list_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    service: TaskListService = Depends(get_task_list_service)
):
    """Delete a list and all its items (owner only)"""
    task_list = service.get_list(list_id)
    check_family_owner(task_list.family_id, profile, registrar)
    service.delete_list(list_id)
    return None


@router.get("/lists/{list_id}/items", response_model=TaskItemsResponse)
async def list_task_items(
    list_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    service: TaskListService = Depends(get_task_list_service)
):
    """Items of a list: open items first, then by due date and creation time"""
    task_list = service.get_list(list_id)
    check_family_member(task_list.family_id, profile, registrar)
    return TaskItemsResponse(list_id=list_id, items=service.list_items(list_id))


@router.post("/lists/{list_id}/items", response_model=TaskItem, status_code=201)
async def add_task_item(
    list_id: str,
    payload: TaskItemCreate,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    service: TaskListService = Depends(get_task_list_service)
):
    """Add an item to a list"""
    task_list = service.get_list(list_id)
    check_family_member(task_list.family_id, profile, registrar)
    return service.add_item(list_id, payload, profile.id)


@router.delete("/items/{item_id}", status_code=204)
async def delete_task_item(
    item_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    service: TaskListService = Depends(get_task_list_service)
):
    """Delete an item (owner only)"""
    item = service.get_item(item_id)
    task_list = service.get_list(item.list_id)
    check_family_owner(task_list.family_id, profile, registrar)
    service.delete_item(item_id)
    return None
