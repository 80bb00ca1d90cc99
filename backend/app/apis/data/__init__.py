"""
Data API - CRUD for categories, goals, routines and completions.

All operations run against the storage backend selected by STORAGE_BACKEND,
scoped to the requesting user.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, Query, Request
from pydantic import Field, ValidationError

from app.auth import AuthorizedUser
from app.libs.color_utils import get_goal_color
from app.libs.errors import InvalidRequestError, NotFoundError, RoutineApiError, UnexpectedError, error_response
from app.libs.models import CamelModel
from app.libs.storage import RoutineStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Data"])

# Storage methods are named create_<type>, update_<type>, delete_<type>
ENTITY_TYPES = ("category", "goal", "routine", "completion")


class CreateRequest(CamelModel):
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)


class UpdateRequest(CamelModel):
    type: str
    id: str
    data: Dict[str, Any] = Field(default_factory=dict)


def to_payload(value: Any) -> Any:
    if isinstance(value, list):
        return [to_payload(item) for item in value]
    if isinstance(value, CamelModel):
        return value.to_json()
    return value


async def with_storage(user_id: str, operation: Callable[[RoutineStorage], Awaitable[Any]]):
    """Run `operation` against the user's storage and wrap the outcome in the JSON envelope."""
    storage = None
    try:
        storage = get_storage(user_id)
        return {"success": True, "data": to_payload(await operation(storage))}
    except RoutineApiError as e:
        return error_response(e)
    except ValidationError:
        return error_response(InvalidRequestError("Invalid data"))
    except Exception:
        logger.exception("Data operation failed for user %s", user_id)
        return error_response(UnexpectedError("Database error"))
    finally:
        if storage is not None:
            await storage.close()


def require(value: Optional[str], name: str) -> str:
    if not value:
        raise InvalidRequestError(f"{name} is required")
    return value


async def with_goal_color(storage: RoutineStorage, data: Dict[str, Any]) -> Dict[str, Any]:
    """Give a new goal the next color of its category's pattern unless one was chosen."""
    category_id = data.get("categoryId") or data.get("category_id")
    if data.get("color") or not category_id:
        return data
    category = await storage.get_category_by_id(category_id)
    if category is None:
        return data
    siblings = await storage.get_goals(category_id)
    return {**data, "color": get_goal_color(category.color_pattern, len(siblings))}


async def read_body(request: Request, model: type) -> Any:
    try:
        return model.model_validate(await request.json())
    except (ValueError, ValidationError):  # malformed JSON or undecodable bytes
        raise InvalidRequestError("Invalid request body")


@router.get("/data")
async def get_data(
    user: AuthorizedUser,
    type: Optional[str] = None,
    id: Optional[str] = None,
    category_id: Optional[str] = Query(None, alias="categoryId"),
    goal_id: Optional[str] = Query(None, alias="goalId"),
    routine_id: Optional[str] = Query(None, alias="routineId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    scheduled_date: Optional[str] = Query(None, alias="date"),
):
    """
    Read data by type

    Types: categories, goals (categoryId), routines (goalId), routine (id),
    completions, completionsByDate (date), completion (routineId, date; null
    when absent), completionsInRange (startDate, endDate), streak (routineId), all
    """

    async def operation(storage: RoutineStorage) -> Any:
        if type == "categories":
            return await storage.get_categories()
        if type == "goals":
            return await storage.get_goals(category_id)
        if type == "routines":
            return await storage.get_routines(goal_id)
        if type == "routine":
            routine = await storage.get_routine_by_id(require(id, "id"))
            if routine is None:
                raise NotFoundError("Routine not found")
            return routine
        if type == "completions":
            return await storage.get_completions()
        if type == "completionsByDate":
            return await storage.get_completions_by_date(require(scheduled_date, "date"))
        if type == "completion":
            return await storage.get_completion_by_routine_and_date(
                require(routine_id, "routineId"), require(scheduled_date, "date")
            )
        if type == "completionsInRange":
            return await storage.get_completions_in_range(
                require(start_date, "startDate"), require(end_date, "endDate")
            )
        if type == "streak":
            return await storage.calculate_streak(require(routine_id, "routineId"))
        if type == "all":
            return {
                "categories": to_payload(await storage.get_categories()),
                "goals": to_payload(await storage.get_goals()),
                "routines": to_payload(await storage.get_routines()),
                "completions": to_payload(await storage.get_completions()),
            }
        raise InvalidRequestError(f"Invalid type: {type}")

    return await with_storage(user.sub, operation)


@router.post("/data")
async def create_data(request: Request, user: AuthorizedUser):
    """
    Create an entity

    Body: {"type": "category|goal|routine|completion|migrate", "data": {...}}
    """
    try:
        payload = await read_body(request, CreateRequest)
    except InvalidRequestError as e:
        return error_response(e)

    async def operation(storage: RoutineStorage) -> Any:
        if payload.type == "migrate":
            return await storage.migrate_data_to_user()
        if payload.type not in ENTITY_TYPES:
            raise InvalidRequestError(f"Invalid type: {payload.type}")
        data = payload.data
        if payload.type == "goal":
            data = await with_goal_color(storage, data)
        create = getattr(storage, f"create_{payload.type}")
        return await create(data)

    return await with_storage(user.sub, operation)


@router.patch("/data")
async def update_data(request: Request, user: AuthorizedUser):
    """
    Partially update an entity

    Body: {"type": "category|goal|routine|completion", "id": "...", "data": {...}}
    """
    try:
        payload = await read_body(request, UpdateRequest)
    except InvalidRequestError as e:
        return error_response(e)

    async def operation(storage: RoutineStorage) -> Any:
        if payload.type not in ENTITY_TYPES:
            raise InvalidRequestError(f"Invalid type: {payload.type}")
        update = getattr(storage, f"update_{payload.type}")
        updated = await update(payload.id, payload.data)
        if updated is None:
            raise NotFoundError(f"{payload.type.capitalize()} not found")
        return updated

    return await with_storage(user.sub, operation)


@router.delete("/data")
async def delete_data(user: AuthorizedUser, type: Optional[str] = None, id: Optional[str] = None):
    """
    Delete an entity; `success` reports whether a row was removed.

    Deleting a routine also deletes its completion records.
    """
    if type not in ENTITY_TYPES:
        return error_response(InvalidRequestError(f"Invalid type: {type}"))
    if not id:
        return error_response(InvalidRequestError("id is required"))

    storage = None
    try:
        storage = get_storage(user.sub)
        if type == "routine":
            await storage.delete_completions_by_routine(id)
        delete = getattr(storage, f"delete_{type}")
        return {"success": await delete(id)}
    except Exception:
        logger.exception("Delete of %s %s failed", type, id)
        return error_response(UnexpectedError("Database error"))
    finally:
        if storage is not None:
            await storage.close()
