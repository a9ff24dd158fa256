from typing import Any, TypedDict

from dpma_direkt.core.enums import WorkflowStatus
from dpma_direkt.core.errors import DpmaError
from dpma_direkt.core.models import RegistrationFailure, RegistrationRequest, RegistrationSuccess


class RegistrationState(TypedDict, total=False):
    run_id: str
    request: RegistrationRequest

    status: str
    current_stage: int
    completed_stages: list[int]
    errors: list[str]
    failure: dict[str, Any]

    transaction_id: str
    versand: dict[str, Any]
    documents: list[Any]
    receipt_file_path: str | None
    warnings: list[str]

    result: RegistrationSuccess | RegistrationFailure


def record_failure(state: RegistrationState, error: DpmaError) -> RegistrationState:
    state["status"] = WorkflowStatus.FAILED.value
    state["failure"] = {
        "error_code": error.error_code,
        "message": error.message,
        "failed_stage": error.stage,
        "field_errors": list(getattr(error, "field_errors", []) or []),
    }
    state.setdefault("errors", []).append(f"{error.error_code}: {error.message}")
    return state
