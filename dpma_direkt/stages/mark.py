import re

from dpma_direkt.core.errors import StageFailure
from dpma_direkt.core.models import RegistrationRequest, Trademark
from dpma_direkt.protocol.events import (
    PreCommitEvent,
    UploadPayload,
    change_event,
    click_event,
)
from dpma_direkt.stages.base import Stage
from dpma_direkt.stages.fields import IMAGE_MARK_TYPES, MARK_FEATURE_COMBO, mark_feature_value

UPLOAD_FORM = "mainupload:webUpload"
UPLOAD_INPUT = f"{UPLOAD_FORM}:webFileUpload"
UPLOAD_APPLY_BUTTON = f"{UPLOAD_FORM}:uploadViewApplyButton"
UPLOAD_REJECTION_MARKERS = ("stateError", "Fehler")

DESCRIPTION_MAX_CHARS = 2000
DESCRIPTION_MAX_WORDS = 150


def upload_file_name(file_name: str) -> str:
    """The upload surface only accepts JPEG names."""
    lowered = file_name.lower()
    if lowered.endswith(".jpg") or lowered.endswith(".jpeg"):
        return file_name
    if re.search(r"\.[^.]+$", file_name):
        return re.sub(r"\.[^.]+$", ".jpg", file_name)
    return f"{file_name}.jpg"


def check_description(description: str) -> None:
    words = len(description.strip().split())
    if len(description) > DESCRIPTION_MAX_CHARS:
        raise StageFailure(
            4,
            f"Trademark description exceeds maximum length: {len(description)} chars (max {DESCRIPTION_MAX_CHARS})",
        )
    if words > DESCRIPTION_MAX_WORDS:
        raise StageFailure(
            4,
            f"Trademark description exceeds maximum words: {words} words (max {DESCRIPTION_MAX_WORDS})",
        )


def upload_events(trademark: Trademark, feature: str) -> list[PreCommitEvent]:
    try:
        image = trademark.image_bytes()
    except ValueError as exc:
        raise StageFailure(4, str(exc)) from exc
    if not image:
        raise StageFailure(4, f"Image data is required for {trademark.type.value} trademark")

    return [
        click_event(
            "btnAddFigureFile",
            {
                "dpmaViewItemIndex": "0",
                f"{MARK_FEATURE_COMBO}_input": feature,
                "mark-docRefNumber:valueHolder": "",
                "editorPanel_active": "null",
            },
            label="upload_dialog",
        ),
        PreCommitEvent(
            kind="upload",
            target=UPLOAD_INPUT,
            url_kind="upload",
            upload=UploadPayload(
                filename=upload_file_name(trademark.image_file_name),
                data=image,
                content_type="image/jpeg",
            ),
            fail_on=UPLOAD_REJECTION_MARKERS,
            label="upload_file",
        ),
        click_event(
            UPLOAD_APPLY_BUTTON,
            {f"{UPLOAD_FORM}:screenSizeForCalculation": "1296"},
            form_id=UPLOAD_FORM,
            url_kind="upload",
            label="upload_apply",
        ),
    ]


def description_events(description: str) -> list[PreCommitEvent]:
    check_description(description)
    return [
        click_event(
            "btnCallAddOrEditDescription",
            {"dpmaViewItemIndex": "0", "editorPanel_active": "null"},
            label="description_dialog",
        ),
        PreCommitEvent(
            kind="dialog_submit",
            target="btnSubmit",
            form_id="markDescForm",
            url_kind="description",
            extra_fields={"mark-description:valueHolder": description},
            label="description_submit",
        ),
    ]


class MarkStage(Stage):
    number = 4
    name = "mark"

    def plan_events(self, request: RegistrationRequest) -> list[PreCommitEvent]:
        trademark = request.trademark
        feature = mark_feature_value(trademark.type)
        events = [change_event(MARK_FEATURE_COMBO, feature, {"dpmaViewItemIndex": "0"}, label="mark_feature")]
        if trademark.type in IMAGE_MARK_TYPES:
            events.extend(upload_events(trademark, feature))
            if trademark.description:
                events.extend(description_events(trademark.description))
        return events
