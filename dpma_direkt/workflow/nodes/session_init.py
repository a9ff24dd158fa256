from typing import Callable

from dpma_direkt.core.enums import WorkflowStatus
from dpma_direkt.core.errors import DpmaError
from dpma_direkt.core.logging import get_logger
from dpma_direkt.protocol.bootstrap import initialize_session
from dpma_direkt.workflow.context import RunContext
from dpma_direkt.workflow.state import RegistrationState, record_failure

logger = get_logger(__name__)


def make_node(ctx: RunContext) -> Callable[[RegistrationState], RegistrationState]:
    def session_init_node(state: RegistrationState) -> RegistrationState:
        try:
            initialize_session(ctx.session, ctx.transport, ctx.recorder)
        except DpmaError as exc:
            logger.error("session init failed", extra={"extra": {"run_id": ctx.run_id, "error": exc.message}})
            return record_failure(state, exc)
        state["status"] = WorkflowStatus.SESSION_ESTABLISHED.value
        state["current_stage"] = 0
        return state

    return session_init_node
