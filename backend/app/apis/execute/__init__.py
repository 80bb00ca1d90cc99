"""
Routine Execution API

Runs a routine's automation through its executor:
- Validate the executor config
- Check the executor is available
- Execute and record lastRun/lastResult on the routine
"""

import logging

from fastapi import APIRouter, Request
from pydantic import ValidationError

from app.auth import AuthorizedUser
from app.libs.errors import (
    InvalidRequestError,
    NotFoundError,
    PreconditionError,
    RoutineApiError,
    UnavailableError,
    UnexpectedError,
    error_response,
)
from app.libs.executors import get_executor
from app.libs.models import CamelModel, ExecutionResult, LastResult, Routine, utc_now_iso
from app.libs.storage import RoutineStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Execution"])


class ExecuteRequest(CamelModel):
    """Request to run a routine's integration"""
    routine_id: str


async def record_result(storage: RoutineStorage, routine: Routine, result: ExecutionResult) -> None:
    """Store lastRun/lastResult on the routine; failures are logged only."""
    integration = {
        **routine.integration.to_json(),
        "lastRun": result.completed_at,
        "lastResult": (LastResult.SUCCESS if result.success else LastResult.FAILURE).value,
    }
    try:
        await storage.update_routine(routine.id, {"integration": integration})
    except Exception:
        logger.exception("Failed to record execution result for routine %s", routine.id)


async def run_routine(storage: RoutineStorage, routine_id: str) -> ExecutionResult:
    """
    Validate, probe and execute a routine's integration.

    Raises:
        NotFoundError: routine does not exist
        PreconditionError: integration disabled or config invalid
        UnavailableError: executor reports it cannot run
    """
    routine = await storage.get_routine_by_id(routine_id)
    if routine is None:
        raise NotFoundError("Routine not found")

    integration = routine.integration
    if not integration.enabled:
        raise PreconditionError("Integration is not enabled for this routine")

    executor = get_executor(integration.executor_type)

    validation = await executor.validate_config(integration.config)
    if not validation.valid:
        raise PreconditionError("Invalid configuration", details=validation.errors)

    if not await executor.is_available():
        raise UnavailableError(f"{executor.name} is not available")

    started_at = utc_now_iso()
    try:
        result = await executor.execute(routine)
    except Exception as e:
        logger.exception("Executor %s raised for routine %s", executor.type, routine.id)
        result = executor.create_result(False, error=str(e) or type(e).__name__, started_at=started_at)

    await record_result(storage, routine, result)
    logger.info(
        "Executed routine %s via %s: %s",
        routine.id, executor.type, "success" if result.success else "failure",
    )
    return result


@router.post("/execute")
async def execute_routine(request: Request, user: AuthorizedUser):
    """
    Execute a routine's integration

    Body: {"routineId": "..."}
    Returns {"success": true, "data": ExecutionResult} once the executor ran,
    whether or not the run itself succeeded.
    """
    try:
        payload = ExecuteRequest.model_validate(await request.json())
    except (ValueError, ValidationError):  # malformed JSON or undecodable bytes
        return error_response(InvalidRequestError("Invalid request body"))

    storage = None
    try:
        storage = get_storage(user.sub)
        result = await run_routine(storage, payload.routine_id)
        return {"success": True, "data": result.to_json()}
    except RoutineApiError as e:
        return error_response(e)
    except Exception:
        logger.exception("Failed to execute routine %s", payload.routine_id)
        return error_response(UnexpectedError("Failed to execute routine"))
    finally:
        if storage is not None:
            await storage.close()
