from typing import Any

from celery.result import AsyncResult
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from dpma_direkt.api.deps import enforce_registration_rate_limit, get_taxonomy, require_api_key
from dpma_direkt.api.schemas import TaskAccepted, fail, ok
from dpma_direkt.core.config import get_settings
from dpma_direkt.core.errors import TaxonomyLoadError
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import RegistrationFailure, RegistrationRequest
from dpma_direkt.services.validation import validate_registration_request
from dpma_direkt.workers.celery_app import celery
from dpma_direkt.workers.tasks import register_trademark
from dpma_direkt.workflow.graph import run_registration

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/trademark",
    tags=["trademark"],
    dependencies=[Depends(require_api_key)],
)


def _parse_request(payload: Any) -> RegistrationRequest | JSONResponse:
    validation = validate_registration_request(payload)
    if not validation.valid:
        return JSONResponse(
            status_code=400,
            content=fail(
                "VALIDATION_ERROR",
                "Request validation failed",
                [error.model_dump() for error in validation.errors],
            ),
        )
    try:
        return RegistrationRequest.model_validate(payload)
    except ValidationError as exc:
        details = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content=fail("VALIDATION_ERROR", "Request validation failed", details))


def _taxonomy_warnings(request: RegistrationRequest) -> list[str]:
    if not get_settings().taxonomy_preflight:
        return []
    try:
        outcome = get_taxonomy().validate_nice_classes(list(request.nice_classes))
    except TaxonomyLoadError as exc:
        logger.warning("taxonomy preflight skipped", extra={"extra": {"error": exc.message}})
        return []
    return outcome["all_errors"]


@router.post("/register", dependencies=[Depends(enforce_registration_rate_limit)])
def register(payload: Any = Body(...)):
    parsed = _parse_request(payload)
    if isinstance(parsed, JSONResponse):
        return parsed

    advisories = _taxonomy_warnings(parsed)
    result = run_registration(parsed)
    if isinstance(result, RegistrationFailure):
        return JSONResponse(
            status_code=500,
            content=fail(
                result.error_code,
                result.message,
                {"failed_stage": result.failed_stage, "field_errors": result.field_errors},
            ),
        )

    data = result.model_dump(mode="json")
    data["warnings"] = [*data["warnings"], *advisories]
    return JSONResponse(status_code=201, content=ok(data))


@router.post("/register/async", status_code=202, dependencies=[Depends(enforce_registration_rate_limit)])
def register_async(payload: Any = Body(...)):
    parsed = _parse_request(payload)
    if isinstance(parsed, JSONResponse):
        return parsed

    task = register_trademark.delay(parsed.model_dump(mode="json"))
    logger.info("registration queued", extra={"extra": {"task_id": task.id}})
    return JSONResponse(status_code=202, content=ok(TaskAccepted(task_id=task.id).model_dump()))


@router.get("/tasks/{task_id}")
def task_status(task_id: str):
    task = AsyncResult(task_id, app=celery)
    data: dict[str, Any] = {"task_id": task_id, "status": task.status}
    if task.successful():
        data["result"] = task.result
    elif task.failed():
        data["error"] = str(task.result)
    return ok(data)
