from typing import Callable

from dpma_direkt.core.enums import WorkflowStatus
from dpma_direkt.core.errors import DpmaError
from dpma_direkt.core.logging import bind_run_context, get_logger, reset_run_context
from dpma_direkt.stages.base import Stage
from dpma_direkt.workflow.context import RunContext
from dpma_direkt.workflow.policies.guardrails import assert_final_submit_allowed
from dpma_direkt.workflow.state import RegistrationState, record_failure

logger = get_logger(__name__)

FINAL_STAGE = 8


def make_node(stage: Stage, ctx: RunContext) -> Callable[[RegistrationState], RegistrationState]:
    def stage_node(state: RegistrationState) -> RegistrationState:
        state["current_stage"] = stage.number
        token = bind_run_context(stage=stage.number)
        try:
            if stage.number == FINAL_STAGE:
                assert_final_submit_allowed(ctx.settings.allow_final_submit)
            stage.execute(state["request"], ctx.stages)
        except DpmaError as exc:
            exc.with_stage(stage.number)
            logger.error(
                "stage failed",
                extra={"extra": {"error_code": exc.error_code, "error": exc.message}},
            )
            return record_failure(state, exc)
        finally:
            reset_run_context(token)

        state.setdefault("completed_stages", []).append(stage.number)
        if stage.number == FINAL_STAGE:
            state["status"] = WorkflowStatus.CONFIRMED.value
            state["transaction_id"] = ctx.session.transaction_id
        else:
            state["status"] = WorkflowStatus.for_stage(stage.number).value
        return state

    return stage_node
