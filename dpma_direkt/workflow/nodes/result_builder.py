from typing import Callable

from dpma_direkt.core.enums import WorkflowStatus
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import RegistrationFailure, RegistrationSuccess
from dpma_direkt.services.finalization import build_fees, build_payment
from dpma_direkt.stages.classification import Unresolved
from dpma_direkt.workflow.context import RunContext
from dpma_direkt.workflow.state import RegistrationState

logger = get_logger(__name__)


def unresolved_warning(outcome: Unresolved) -> str:
    warning = f'Term "{outcome.term}" was not selected in class {outcome.category}: {outcome.reason}'
    if outcome.suggestions:
        warning += ". Closest search results: " + ", ".join(f'"{text}"' for text in outcome.suggestions)
    return warning


def selection_warnings(ctx: RunContext) -> list[str]:
    return [
        unresolved_warning(outcome)
        for outcome in ctx.stages.selection_outcomes
        if isinstance(outcome, Unresolved)
    ]


def make_node(ctx: RunContext) -> Callable[[RegistrationState], RegistrationState]:
    def result_builder_node(state: RegistrationState) -> RegistrationState:
        if state.get("status") == WorkflowStatus.FAILED.value:
            failure = state.get("failure") or {}
            state["result"] = RegistrationFailure(
                error_code=failure.get("error_code", "UNKNOWN_ERROR"),
                message=failure.get("message", "An unknown error occurred"),
                failed_stage=failure.get("failed_stage"),
                field_errors=failure.get("field_errors", []),
            )
            logger.info(
                "registration failed",
                extra={"extra": {"run_id": ctx.run_id, "error_code": state["result"].error_code}},
            )
            return state

        request = state["request"]
        versand = state["versand"]
        state["result"] = RegistrationSuccess(
            confirmation_id=versand["akz"],
            reference_id=versand["drn"],
            transaction_id=versand["transaction_id"],
            submission_time=versand["creation_time"],
            fees=build_fees(),
            payment=build_payment(request.payment_method, versand["akz"]),
            documents=state.get("documents", []),
            receipt_file_path=state.get("receipt_file_path"),
            warnings=selection_warnings(ctx) + state.get("warnings", []),
        )
        logger.info("registration completed", extra={"extra": {"run_id": ctx.run_id, "akz": versand["akz"]}})
        return state

    return result_builder_node
