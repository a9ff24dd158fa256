from typing import Any

from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import RegistrationRequest
from dpma_direkt.workers.celery_app import REGISTER_TASK, celery
from dpma_direkt.workflow.graph import run_registration

logger = get_logger(__name__)


def register_trademark_sync(payload: dict[str, Any]) -> dict[str, Any]:
    request = RegistrationRequest.model_validate(payload)
    result = run_registration(request)
    logger.info("queued registration finished", extra={"extra": {"success": result.success}})
    return result.model_dump(mode="json")


@celery.task(name=REGISTER_TASK)
def register_trademark(payload: dict[str, Any]) -> dict[str, Any]:
    return register_trademark_sync(payload)
