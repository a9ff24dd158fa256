import html
import re
from typing import Literal

from pydantic import BaseModel

from dpma_direkt.core.errors import SelectionNotFound
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import NiceClassSelection, RegistrationRequest
from dpma_direkt.protocol.events import EDITOR_FORM, EventDispatcher, PreCommitEvent
from dpma_direkt.protocol.extractor import extract_ephemeral_fields
from dpma_direkt.services.similarity import find_best_matches
from dpma_direkt.stages.base import Stage, StageContext
from dpma_direkt.stages.fields import LEAD_CLASS_FIELD

logger = get_logger(__name__)

TREE = "tmclassEditorGt"
SEARCH_BUTTON = f"{TREE}:searchWDVZ"
SEARCH_PHRASE = f"{TREE}:tmClassEditorCenterSearchPhrase"
SEARCH_RENDER = f"{TREE}:nodeTreeAndTermView"
SEARCH_PANEL_FAMILY = rf"{TREE}:j_idt\d+_active"
MAX_SUGGESTIONS = 3

TERM_LINK_PATTERNS = [
    re.compile(r'id="(tmclassEditorGt:[^"]+):termViewLink"[^>]*title="([^"]+)"'),
    re.compile(r'title="([^"]+)"[^>]*id="(tmclassEditorGt:[^"]+):termViewLink"'),
]


class Resolved(BaseModel):
    category: int
    checkbox_id: str
    match: Literal["exact", "prefix", "substring", "category", "class_level"]
    term: str | None = None

    model_config = {"frozen": True}


class Unresolved(BaseModel):
    category: int
    term: str
    reason: str
    suggestions: list[str] = []

    model_config = {"frozen": True}


SelectionOutcome = Resolved | Unresolved


def expand_node_id(class_number: int) -> str:
    return f"{TREE}:tmclassNode_{class_number}:iconExpandedState"


def class_level_checkbox(class_number: int) -> str:
    return f"{TREE}:tmclassNode_{class_number}:selectBox_input"


def find_category_checkbox(body: str, class_number: int) -> str | None:
    text = body or ""
    patterns = [
        re.compile(rf"(tmclassEditorGt:tmclassNode_{class_number}:[^:\"']+:selectBox_input)"),
        re.compile(rf"(tmclassEditorGt:[^\"']*tmclassNode[^\"']*(?<!\d){class_number}(?!\d)[^\"']*selectBox[^\"']*)"),
        re.compile(r'name="(tmclassEditorGt:[^"]*:selectBox_input)"'),
    ]
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)

    match = re.search(r'id="([^"]*tmclassNode[^"]*checkbox[^"]*)"', text, re.IGNORECASE)
    if match:
        return match.group(1).replace("_checkbox", ":selectBox_input", 1)
    return None


def term_links(body: str) -> list[tuple[str, str]]:
    """(link prefix, title) pairs for every term link in a search response."""
    links: list[tuple[str, str]] = []
    seen: set[str] = set()
    for match in TERM_LINK_PATTERNS[0].finditer(body or ""):
        prefix, title = match.group(1), html.unescape(match.group(2))
        if prefix not in seen:
            seen.add(prefix)
            links.append((prefix, title))
    for match in TERM_LINK_PATTERNS[1].finditer(body or ""):
        title, prefix = html.unescape(match.group(1)), match.group(2)
        if prefix not in seen:
            seen.add(prefix)
            links.append((prefix, title))
    return links


def find_term_checkbox(body: str, term: str) -> tuple[str, str] | None:
    links = term_links(body)
    for prefix, title in links:
        if title == term:
            return f"{prefix}:selectBox_input", "exact"
    for prefix, title in links:
        if title.startswith(term):
            return f"{prefix}:selectBox_input", "prefix"
    needle = term.lower()
    for prefix, title in links:
        if needle in title.lower():
            return f"{prefix}:selectBox_input", "substring"
    return None


class ClassificationSelector:
    """Turns requested classes and terms into checkbox selections on the live tree."""

    def __init__(self, dispatcher: EventDispatcher) -> None:
        self.dispatcher = dispatcher
        self.selected: list[str] = []

    def _select(self, checkbox_id: str) -> None:
        if checkbox_id in self.selected:
            return
        self.dispatcher.fire_checkbox_change(checkbox_id)
        self.selected.append(checkbox_id)

    def select_category(self, class_number: int) -> Resolved:
        body = self.dispatcher.fire_expand_event(expand_node_id(class_number), TREE)
        checkbox_id = find_category_checkbox(body, class_number)
        match = "category"
        if checkbox_id is None:
            checkbox_id = class_level_checkbox(class_number)
            match = "class_level"
            logger.warning(
                "no checkbox in expanded class, using class-level id",
                extra={"extra": {"class_number": class_number, "checkbox_id": checkbox_id}},
            )
        self._select(checkbox_id)
        return Resolved(category=class_number, checkbox_id=checkbox_id, match=match)

    def search_fields(self, phrase: str) -> dict[str, str]:
        fields = {
            "jakarta.faces.partial.ajax": "true",
            "jakarta.faces.source": SEARCH_BUTTON,
            "jakarta.faces.partial.execute": TREE,
            "jakarta.faces.partial.render": SEARCH_RENDER,
            SEARCH_BUTTON: SEARCH_BUTTON,
            EDITOR_FORM: EDITOR_FORM,
            SEARCH_PHRASE: phrase,
        }
        for name in extract_ephemeral_fields(self.dispatcher.session.last_response_body, SEARCH_PANEL_FAMILY):
            fields[name] = "null"
        fields["editorPanel_active"] = "null"
        fields.update(self.dispatcher.session.snapshot().as_form_fields())
        return fields

    def resolve_term(self, term: str, class_number: int) -> Resolved:
        body = self.dispatcher.exchange(self.search_fields(term), label=f"search_{term}")
        found = find_term_checkbox(body, term)
        if found is None:
            titles = [title for _, title in term_links(body)]
            matches = find_best_matches(term, titles, limit=MAX_SUGGESTIONS)
            raise SelectionNotFound(term, class_number, suggestions=[match["text"] for match in matches])
        checkbox_id, match = found
        return Resolved(category=class_number, checkbox_id=checkbox_id, match=match, term=term)

    def select_term(self, term: str, class_number: int) -> SelectionOutcome:
        try:
            resolved = self.resolve_term(term, class_number)
        except SelectionNotFound as exc:
            logger.warning(
                "term not selectable",
                extra={"extra": {"term": term, "class_number": class_number, "suggestions": exc.suggestions}},
            )
            return Unresolved(category=class_number, term=term, reason=exc.message, suggestions=exc.suggestions)
        self._select(resolved.checkbox_id)
        return resolved

    def run(self, selections: list[NiceClassSelection]) -> list[SelectionOutcome]:
        outcomes: list[SelectionOutcome] = []
        for selection in selections:
            for term in selection.terms:
                outcomes.append(self.select_term(term, selection.class_number))
            if selection.wants_whole_class:
                outcomes.append(self.select_category(selection.class_number))
        return outcomes


def lead_class(request: RegistrationRequest, outcomes: list[SelectionOutcome]) -> int | None:
    if request.lead_class is not None:
        return request.lead_class
    for outcome in outcomes:
        if isinstance(outcome, Resolved):
            return outcome.category
    return request.nice_classes[0].class_number if request.nice_classes else None


class ClassificationStage(Stage):
    number = 5
    name = "classification"

    def plan_events(self, request: RegistrationRequest) -> list[PreCommitEvent]:
        # Events depend on what each search returns, see prepare().
        return []

    def prepare(self, request: RegistrationRequest, ctx: StageContext) -> dict[str, str]:
        selector = ClassificationSelector(ctx.dispatcher)
        outcomes = selector.run(request.nice_classes)
        ctx.selection_outcomes.extend(outcomes)

        fields = self.build_fields(request)
        for checkbox_id in selector.selected:
            fields[checkbox_id] = "on"
        lead = lead_class(request, outcomes)
        if lead is not None:
            fields[LEAD_CLASS_FIELD] = str(lead)

        logger.info(
            "classification selected",
            extra={
                "extra": {
                    "selected": len(selector.selected),
                    "unresolved": sum(1 for outcome in outcomes if isinstance(outcome, Unresolved)),
                    "lead_class": lead,
                }
            },
        )
        return fields
