import uuid
from typing import Any

import httpx
from langgraph.graph import END, StateGraph

from dpma_direkt.core.config import Settings, get_settings
from dpma_direkt.core.enums import WorkflowStatus
from dpma_direkt.core.logging import bind_run_context, get_logger, reset_run_context
from dpma_direkt.core.models import RegistrationFailure, RegistrationRequest, RegistrationSuccess
from dpma_direkt.protocol.transport import HttpTransport
from dpma_direkt.stages import default_stages
from dpma_direkt.workflow.context import RunContext
from dpma_direkt.workflow.nodes import finalization, result_builder, session_init, stage_runner
from dpma_direkt.workflow.policies.guardrails import redact_sensitive
from dpma_direkt.workflow.state import RegistrationState

logger = get_logger(__name__)


def _stage_node(number: int) -> str:
    return f"stage_{number}"


def _route_or_fail(next_node: str):
    def route(state: RegistrationState) -> str:
        if state.get("status") == WorkflowStatus.FAILED.value:
            return "build_result"
        return next_node

    return route


def build_workflow(ctx: RunContext):
    graph = StateGraph(RegistrationState)
    stages = default_stages()

    graph.add_node("init_session", session_init.make_node(ctx))
    for stage in stages:
        graph.add_node(_stage_node(stage.number), stage_runner.make_node(stage, ctx))
    graph.add_node("finalize", finalization.make_node(ctx))
    graph.add_node("build_result", result_builder.make_node(ctx))

    order = ["init_session", *(_stage_node(stage.number) for stage in stages), "finalize"]
    graph.set_entry_point("init_session")
    for current, following in zip(order, order[1:]):
        graph.add_conditional_edges(
            current,
            _route_or_fail(following),
            {
                following: following,
                "build_result": "build_result",
            },
        )
    graph.add_edge("finalize", "build_result")
    graph.add_edge("build_result", END)

    return graph.compile()


def _request_summary(request: RegistrationRequest) -> dict[str, Any]:
    payload = request.model_dump(mode="json")
    return {
        "applicant_type": payload["applicant"]["type"],
        "mark_type": payload["trademark"]["type"],
        "classes": [selection["class_number"] for selection in payload["nice_classes"]],
        "payment_method": payload["payment_method"],
    }


def run_registration(
    request: RegistrationRequest,
    *,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
    finalizer: Any | None = None,
) -> RegistrationSuccess | RegistrationFailure:
    """Files one trademark application end to end. Every call gets its own cookies and tokens."""
    settings = settings or get_settings()
    run_id = str(uuid.uuid4())
    http = HttpTransport(settings, transport=transport)
    token = bind_run_context(run_id=run_id)
    try:
        ctx = RunContext(settings, http, run_id, finalizer=finalizer)
        app = build_workflow(ctx)
        logger.info("registration started", extra={"extra": _request_summary(request)})
        logger.debug(
            "registration payload",
            extra={"extra": {"request": redact_sensitive(request.model_dump(mode="json"))}},
        )
        initial_state: RegistrationState = {
            "run_id": run_id,
            "request": request,
            "status": WorkflowStatus.UNINITIALIZED.value,
            "completed_stages": [],
            "errors": [],
            "warnings": [],
        }
        final_state = app.invoke(initial_state, {"recursion_limit": 50})
        return final_state["result"]
    finally:
        reset_run_context(token)
        http.close()
