from typing import Any

import httpx

from dpma_direkt.core.config import Settings
from dpma_direkt.core.errors import DpmaError, FieldValidationError, ServerErrorPage
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import RegistrationRequest
from dpma_direkt.protocol.events import EDITOR_FORM, EventDispatcher, PreCommitEvent
from dpma_direkt.protocol.extractor import extract_error_markers, refresh_tokens
from dpma_direkt.protocol.recorder import DebugRecorder
from dpma_direkt.protocol.session import Session
from dpma_direkt.protocol.transport import HttpTransport
from dpma_direkt.stages.fields import build_field_set

logger = get_logger(__name__)

TRANSITION_CODES: dict[int, str] = {
    1: "agents",
    2: "correspondence",
    3: "trademark",
    4: "wdvz",
    5: "priorities",
    6: "payment",
    7: "submit",
}


def navigation_fields(stage_number: int) -> dict[str, str]:
    return {
        "jakarta.faces.partial.ajax": "true",
        "jakarta.faces.source": "cmd-link-next",
        "jakarta.faces.partial.execute": EDITOR_FORM,
        "jakarta.faces.partial.render": EDITOR_FORM,
        "cmd-link-next": "cmd-link-next",
        "dpmaViewId": TRANSITION_CODES[stage_number],
        "dpmaViewCheck": "true",
        EDITOR_FORM: EDITOR_FORM,
    }


class StageContext:
    """Collaborators shared by the stages of one run. Never shared between runs."""

    def __init__(
        self,
        session: Session,
        transport: HttpTransport,
        settings: Settings,
        recorder: DebugRecorder | None = None,
    ) -> None:
        self.session = session
        self.transport = transport
        self.settings = settings
        self.recorder = recorder
        self.dispatcher = EventDispatcher(session, transport, recorder)
        self.selection_outcomes: list[Any] = []


class Stage:
    number: int
    name: str

    def build_fields(self, request: RegistrationRequest) -> dict[str, str]:
        return build_field_set(self.number, request)

    def plan_events(self, request: RegistrationRequest) -> list[PreCommitEvent]:
        """Pre-commit events in the order the wizard requires them."""
        return []

    def prepare(self, request: RegistrationRequest, ctx: StageContext) -> dict[str, str]:
        events = self.plan_events(request)
        for event in events:
            ctx.dispatcher.dispatch(event)
        return self.build_fields(request)

    def submission_fields(self, fields: dict[str, str], ctx: StageContext) -> dict[str, str]:
        return {**fields, **navigation_fields(self.number), **ctx.session.snapshot().as_form_fields()}

    def execute(self, request: RegistrationRequest, ctx: StageContext) -> None:
        logger.info("stage started", extra={"extra": {"stage": self.number, "name": self.name}})
        try:
            fields = self.prepare(request, ctx)
            payload = self.submission_fields(fields, ctx)
            response = ctx.transport.post_partial(ctx.session.build_form_url(), payload)
            self.after_submit(response, ctx)
        except DpmaError as exc:
            raise exc.with_stage(self.number)
        logger.info(
            "stage completed",
            extra={"extra": {"stage": self.number, "name": self.name, "step": ctx.session.step_counter}},
        )

    def after_submit(self, response: httpx.Response, ctx: StageContext) -> None:
        body = response.text
        ctx.session.record_response(body)
        if ctx.recorder:
            ctx.recorder.capture(f"stage{self.number}_{self.name}", body)
        self.inspect(body)
        ctx.session.replace(refresh_tokens(body, ctx.session.snapshot()))
        ctx.session.step_counter += 1

    def inspect(self, body: str) -> None:
        marker = extract_error_markers(body)
        if marker is None:
            return
        if marker.kind == "server_error_page":
            detail = f" ({marker.title})" if marker.title else ""
            raise ServerErrorPage(self.number, f"Server error page returned at stage {self.number}{detail}")
        raise FieldValidationError(
            self.number,
            f"Stage {self.number} rejected: {'; '.join(marker.messages)}",
            marker.field_errors,
        )

