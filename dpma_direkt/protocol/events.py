import re

from pydantic import BaseModel, Field

from dpma_direkt.core.errors import FieldValidationError, ServerErrorPage, StageFailure
from dpma_direkt.core.logging import get_logger
from dpma_direkt.protocol.extractor import extract_error_markers, refresh_tokens
from dpma_direkt.protocol.recorder import DebugRecorder
from dpma_direkt.protocol.session import Session, Tokens
from dpma_direkt.protocol.transport import HttpTransport

logger = get_logger(__name__)

EDITOR_FORM = "editor-form"
CHECKBOX_RENDER_GROUPS = "@(.termViewCol) @(.tmClassEditorSelected) @(.leadingClassCombo) @(.hintSelectGroup)"
UPLOAD_SIZE_ERROR_PATTERN = re.compile(r"Die Größe.*?Pixel")


class UploadPayload(BaseModel):
    filename: str
    data: bytes
    content_type: str = "image/jpeg"

    model_config = {"frozen": True}


class PreCommitEvent(BaseModel):
    kind: str
    target: str
    value: str | None = None
    extra_fields: dict[str, str] = Field(default_factory=dict)
    render: str = "@all"
    form_id: str | None = EDITOR_FORM
    url_kind: str = "form"
    upload: UploadPayload | None = None
    expect_any: tuple[str, ...] = ()
    fail_on: tuple[str, ...] = ()
    check_validation: bool = False
    label: str | None = None

    model_config = {"frozen": True}

    def describe(self) -> str:
        return self.label or f"{self.kind}:{self.target}"


def change_event(target: str, value: str, extra_fields: dict[str, str] | None = None, **kwargs) -> PreCommitEvent:
    return PreCommitEvent(kind="change", target=target, value=value, extra_fields=extra_fields or {}, **kwargs)


def radio_event(target: str, value: str, extra_fields: dict[str, str] | None = None, **kwargs) -> PreCommitEvent:
    return PreCommitEvent(kind="radio", target=target, value=value, extra_fields=extra_fields or {}, **kwargs)


def click_event(target: str, extra_fields: dict[str, str] | None = None, **kwargs) -> PreCommitEvent:
    return PreCommitEvent(kind="click", target=target, extra_fields=extra_fields or {}, **kwargs)


def checkbox_event(checkbox_id: str, **kwargs) -> PreCommitEvent:
    return PreCommitEvent(kind="checkbox", target=checkbox_id, value="on", **kwargs)


def _ajax_base(source: str, execute: str, render: str) -> dict[str, str]:
    return {
        "jakarta.faces.partial.ajax": "true",
        "jakarta.faces.source": source,
        "jakarta.faces.partial.execute": execute,
        "jakarta.faces.partial.render": render,
    }


def build_event_fields(event: PreCommitEvent, tokens: Tokens) -> dict[str, str]:
    if event.kind in {"change", "radio"}:
        fields = _ajax_base(event.target, EDITOR_FORM, EDITOR_FORM)
        fields["jakarta.faces.behavior.event"] = "change"
        value_field = event.target if event.kind == "radio" else f"{event.target}_input"
        fields[value_field] = event.value or ""
        fields[EDITOR_FORM] = EDITOR_FORM
        fields["editorPanel_active"] = "null"
        fields.update(tokens.as_form_fields())
        fields.update(event.extra_fields)
        return fields

    if event.kind == "checkbox":
        select_box = event.target.removesuffix("_input")
        fields = _ajax_base(select_box, select_box, f"{select_box} {CHECKBOX_RENDER_GROUPS}")
        fields["jakarta.faces.behavior.event"] = "change"
        fields[event.target] = "on"
        fields[EDITOR_FORM] = EDITOR_FORM
        fields.update(tokens.as_form_fields())
        return fields

    if event.kind == "expand":
        fields = _ajax_base(event.target, event.target, event.render)
        fields["jakarta.faces.behavior.event"] = "action"
        fields[event.target] = event.target
        fields[EDITOR_FORM] = EDITOR_FORM
        fields.update(tokens.as_form_fields())
        return fields

    if event.kind == "click":
        fields = _ajax_base(event.target, "@all", event.render)
        fields[event.target] = event.target
        if event.form_id:
            fields[event.form_id] = event.form_id
        fields.update(event.extra_fields)
        fields.update(tokens.as_form_fields())
        return fields

    if event.kind == "dialog_submit":
        form_id = event.form_id or EDITOR_FORM
        fields = _ajax_base(event.target, form_id, form_id)
        fields[event.target] = event.target
        fields[form_id] = form_id
        fields["dpmaValidateInput"] = "true"
        fields.update(event.extra_fields)
        fields.update(tokens.as_form_fields())
        return fields

    if event.kind == "upload":
        fields = {
            "mainupload:webUpload": "mainupload:webUpload",
            "mainupload:webUpload:screenSizeForCalculation": "1296",
        }
        fields.update(tokens.as_form_fields())
        fields.update(_ajax_base(event.target, event.target, "mainupload:webUpload mainupload:webUpload:messages"))
        fields[f"{event.target}_totalFilesCount"] = "1"
        fields.update(event.extra_fields)
        return fields

    raise ValueError(f"Unknown pre-commit event kind: {event.kind}")


class EventDispatcher:
    """Issues partial-update exchanges against the wizard and absorbs the token changes."""

    def __init__(self, session: Session, transport: HttpTransport, recorder: DebugRecorder | None = None) -> None:
        self.session = session
        self.transport = transport
        self.recorder = recorder
        self.fired: list[PreCommitEvent] = []

    def _absorb(self, label: str, body: str) -> Tokens:
        self.session.record_response(body)
        if self.recorder:
            self.recorder.capture(label, body)
        return self.session.replace(refresh_tokens(body, self.session.snapshot()))

    def exchange(self, fields: dict[str, str], *, url_kind: str = "form", label: str = "exchange") -> str:
        url = self.session.build_url(url_kind)
        response = self.transport.post_partial(url, fields)
        self._absorb(label, response.text)
        return response.text

    def dispatch(self, event: PreCommitEvent) -> Tokens:
        tokens = self.session.snapshot()
        url = self.session.build_url(event.url_kind)
        fields = build_event_fields(event, tokens)
        logger.info(
            "firing pre-commit event",
            extra={"extra": {"kind": event.kind, "target": event.target, "url": url}},
        )

        if event.kind == "upload":
            if event.upload is None:
                raise ValueError("Upload event requires a payload")
            files = {event.target: (event.upload.filename, event.upload.data, event.upload.content_type)}
            headers = {
                "Faces-Request": "partial/ajax",
                "X-Requested-With": "XMLHttpRequest",
                "Referer": self.transport.absolute(self.session.build_form_url()),
            }
            response = self.transport.post(url, data=fields, files=files, headers=headers)
        else:
            response = self.transport.post_partial(url, fields)

        body = response.text
        refreshed = self._absorb(event.describe(), body)
        self.fired.append(event)
        self._check(event, body)
        return refreshed

    def _check(self, event: PreCommitEvent, body: str) -> None:
        if event.fail_on and any(marker in body for marker in event.fail_on):
            size_error = UPLOAD_SIZE_ERROR_PATTERN.search(body)
            if size_error:
                raise StageFailure(None, f"{event.describe()} rejected: {size_error.group(0)}")
            raise StageFailure(None, f"{event.describe()} rejected by server")
        if event.expect_any and not any(marker in body for marker in event.expect_any):
            raise StageFailure(None, f"{event.describe()} did not open the expected view")
        if event.check_validation:
            marker = extract_error_markers(body)
            if marker and marker.kind == "server_error_page":
                raise ServerErrorPage(None, f"{event.describe()} returned the server error page")
            if marker:
                raise FieldValidationError(
                    None,
                    f"{event.describe()} failed validation: {'; '.join(marker.messages)}",
                    marker.field_errors,
                )

    def fire_change_event(self, target_id: str, value: str, extra_fields: dict[str, str] | None = None) -> Tokens:
        return self.dispatch(change_event(target_id, value, extra_fields))

    def fire_click_event(self, target_id: str, extra_fields: dict[str, str] | None = None, **kwargs) -> Tokens:
        return self.dispatch(click_event(target_id, extra_fields, **kwargs))

    def fire_checkbox_change(self, checkbox_id: str) -> Tokens:
        return self.dispatch(checkbox_event(checkbox_id))

    def fire_expand_event(self, node_id: str, render: str) -> str:
        self.dispatch(PreCommitEvent(kind="expand", target=node_id, render=render))
        return self.session.last_response_body
