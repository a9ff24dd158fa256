import calendar
import re
from datetime import date

from dpma_direkt.core.enums import PriorityType
from dpma_direkt.core.errors import StageFailure
from dpma_direkt.core.models import PriorityClaim, RegistrationRequest
from dpma_direkt.protocol.events import PreCommitEvent, click_event
from dpma_direkt.stages.base import Stage

ADD_PRIORITY_BUTTONS = {
    PriorityType.FOREIGN: "tm-priority-comp:btnCallAddPriority1AbroadOnlyFlow",
    PriorityType.EXHIBITION: "tm-priority-comp:btnCallAddPriority2Flow",
}
PRIORITY_FORM = "priority:priority-editor-form"
PRIORITY_SUBMIT = "priority:btnSubmit"
PRIORITY_DATE = "priority:priorityDate:valueHolder_input"
PRIORITY_COUNTRY = "priority:priorityCountry:valueHolder_input"
PRIORITY_APP_NUMBER = "priority:appNum:valueHolder"
# Field id is misspelled in the wizard.
PRIORITY_EXHIBITION_NAME = "priority:exhibitonName:valueHolder"

ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
GERMAN_DATE_PATTERN = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")


def months_before(day: date, months: int) -> date:
    month_index = day.year * 12 + day.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def parse_priority_date(value: str) -> date:
    match = ISO_DATE_PATTERN.match(value or "")
    if not match:
        raise StageFailure(6, f"Invalid priority date format: {value}. Expected ISO format (YYYY-MM-DD).")
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError as exc:
        raise StageFailure(6, f"Invalid priority date: {value}") from exc


def check_priority_date(value: str, today: date | None = None) -> date:
    claimed = parse_priority_date(value)
    today = today or date.today()
    if claimed > today:
        raise StageFailure(6, f"Priority date {value} is in the future")
    if claimed < months_before(today, 6):
        raise StageFailure(6, f"Priority date {value} is older than 6 months")
    return claimed


def to_german_date(value: str) -> str:
    if GERMAN_DATE_PATTERN.match(value or ""):
        return value
    claimed = parse_priority_date(value)
    return claimed.strftime("%d.%m.%Y")


def priority_form_fields(claim: PriorityClaim) -> dict[str, str]:
    fields = {PRIORITY_DATE: to_german_date(claim.date)}
    if claim.type == PriorityType.FOREIGN:
        fields[PRIORITY_COUNTRY] = claim.country or ""
        fields[PRIORITY_APP_NUMBER] = claim.application_number or ""
    else:
        fields[PRIORITY_EXHIBITION_NAME] = claim.exhibition_name or ""
    return fields


def priority_events(claim: PriorityClaim, index: int, today: date | None = None) -> list[PreCommitEvent]:
    check_priority_date(claim.date, today)
    label = f"priority_{claim.type.value}_{index}"
    return [
        click_event(
            ADD_PRIORITY_BUTTONS[claim.type],
            {"editorPanel_active": "null"},
            render="editor-form",
            expect_any=(PRIORITY_FORM, "priority:priorityDate"),
            label=f"{label}_open",
        ),
        PreCommitEvent(
            kind="dialog_submit",
            target=PRIORITY_SUBMIT,
            form_id=PRIORITY_FORM,
            extra_fields=priority_form_fields(claim),
            check_validation=True,
            label=f"{label}_submit",
        ),
    ]


class OptionsStage(Stage):
    number = 6
    name = "options"

    def __init__(self, today: date | None = None) -> None:
        self.today = today

    def plan_events(self, request: RegistrationRequest) -> list[PreCommitEvent]:
        events: list[PreCommitEvent] = []
        for index, claim in enumerate(request.options.priority_claims, start=1):
            events.extend(priority_events(claim, index, self.today))
        return events
