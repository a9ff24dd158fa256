import io
import json
import re
import zipfile
from urllib.parse import parse_qsl

import httpx
import pytest

EDITOR = "/DpmaDirektWebEditoren"
VERSAND = "/DpmaDirektWebVersand"
FORM_PATH = f"{EDITOR}/w7005/w7005web.xhtml"
UPLOAD_PATH = f"{EDITOR}/w7005/w7005-upload.xhtml"
DESCRIPTION_PATH = f"{EDITOR}/w7005/w7005-trademark-description.xhtml"

MULTIPART_FIELD = re.compile(rb'name="([^"]+)"\r\n\r\n([^\r]*)')


def receipt_archive() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as bundle:
        bundle.writestr("Empfangsbestaetigung.pdf", b"%PDF-1.4 receipt")
        bundle.writestr("Anmeldung.xml", b"<anmeldung/>")
    return buffer.getvalue()


class FakeWizard:
    """In-process stand-in for DPMAdirektWeb, flow w7005.

    Issues a fresh ViewState with every response and records every token it receives
    that is not the one it handed out last.
    """

    def __init__(self, root_id: str = "abc123") -> None:
        self.root_id = root_id
        self.window = 0
        self.view_counter = 0
        self.view_state = ""

        self.requests: list[tuple[str, str, dict[str, str]]] = []
        self.navigations: list[str] = []
        self.sources: list[str] = []
        self.checkbox_changes: list[str] = []
        self.searches: list[str] = []
        self.token_mismatches: list[tuple[str, str | None, str]] = []
        self.window_mismatches: list[tuple[str, str | None, str]] = []

        self.catalog: dict[str, list[str]] = {}
        self.error_page_on: set[str] = set()
        self.validation_error_on: set[str] = set()
        self.broken_form_page = False
        self.reject_upload = False
        self.transaction_in_body = False
        self.transaction_id = "tx/2026-10-17/0001"
        self.versand_status = "VERSAND_SUCCESS"
        self.priority_error: str | None = None
        self.priority_submissions: list[dict[str, str]] = []
        self.final_fields: dict[str, str] = {}

    @property
    def client_window(self) -> str:
        return f"{self.root_id}:{self.window}"

    @property
    def stage_posts(self) -> list[str]:
        return [source for source in self.sources if source in ("cmd-link-next", "btnSubmitRegistration")]

    def _issue_view_state(self) -> str:
        self.view_counter += 1
        self.view_state = f"vs-{self.root_id}-{self.view_counter}"
        return self.view_state

    def partial(self, inner: str = "") -> str:
        view_state = self._issue_view_state()
        return (
            '<?xml version="1.0" encoding="UTF-8"?><partial-response id="j_id1"><changes>'
            f"{inner}"
            f'<update id="j_id1:jakarta.faces.ViewState:0"><![CDATA[{view_state}]]></update>'
            f'<update id="j_id1:jakarta.faces.ClientWindow:0"><![CDATA[{self.client_window}]]></update>'
            "</changes></partial-response>"
        )

    def form_page(self) -> str:
        if self.broken_form_page:
            return "<html><head><title>Wartung</title></head><body>Bitte später erneut versuchen</body></html>"
        view_state = self._issue_view_state()
        return (
            "<html><head><title>DPMAdirektWeb</title>"
            "<script>PrimeFaces.csp.init('nonce-xyz');</script></head><body>"
            '<form id="editor-form" name="editor-form" method="post">'
            f'<input type="hidden" name="jakarta.faces.ViewState" id="j_id1:jakarta.faces.ViewState:0" value="{view_state}" />'
            f'<input type="hidden" name="jakarta.faces.ClientWindow" value="{self.client_window}" />'
            "</form></body></html>"
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        path = request.url.path
        if request.method == "GET":
            return self._get(request, path)
        return self._post(request, path)

    def _get(self, request: httpx.Request, path: str) -> httpx.Response:
        self.requests.append(("GET", path, dict(request.url.params)))
        if path == f"{EDITOR}/index.xhtml":
            return httpx.Response(200, text="<html><title>DPMAdirektWeb</title></html>")
        if path == f"{EDITOR}/w7005-start.xhtml":
            location = f"{FORM_PATH}?jftfdi=&jffi=w7005&jfwid={self.client_window}"
            return httpx.Response(302, headers={"Location": location})
        if path == FORM_PATH:
            return httpx.Response(200, text=self.form_page())
        if path == f"{VERSAND}/index.html":
            return httpx.Response(200, text="<html>Versand</html>")
        if path == f"{VERSAND}/versand/anlagen":
            return httpx.Response(200, content=receipt_archive(), headers={"Content-Type": "application/zip"})
        return httpx.Response(404, text="not found")

    def _fields(self, request: httpx.Request) -> dict[str, str]:
        if request.headers.get("content-type", "").startswith("multipart/form-data"):
            return {name.decode(): value.decode() for name, value in MULTIPART_FIELD.findall(request.content)}
        return dict(parse_qsl(request.content.decode(), keep_blank_values=True))

    def _check_tokens(self, request: httpx.Request, fields: dict[str, str], path: str) -> None:
        received = fields.get("jakarta.faces.ViewState")
        if received != self.view_state:
            self.token_mismatches.append((path, received, self.view_state))
        jfwid = request.url.params.get("jfwid")
        if jfwid != self.client_window:
            self.window_mismatches.append((path, jfwid, self.client_window))

    def _post(self, request: httpx.Request, path: str) -> httpx.Response:
        if path == f"{VERSAND}/versand":
            self.requests.append(("POST", path, dict(request.url.params)))
            return self._versand(request)

        fields = self._fields(request)
        self.requests.append(("POST", path, fields))
        self._check_tokens(request, fields, path)

        if path == UPLOAD_PATH:
            self.sources.append(fields.get("jakarta.faces.source", "upload"))
            if self.reject_upload:
                return httpx.Response(
                    200, text=self.partial('<update id="x"><![CDATA[<span class="stateError">Fehler</span>]]></update>')
                )
            return httpx.Response(200, text=self.partial())
        if path == DESCRIPTION_PATH:
            self.sources.append(fields.get("jakarta.faces.source", ""))
            return httpx.Response(200, text=self.partial())
        if path != FORM_PATH:
            return httpx.Response(404, text="not found")

        source = fields.get("jakarta.faces.source", "")
        self.sources.append(source)
        if source == "cmd-link-next":
            return self._navigate(fields)
        if source == "btnSubmitRegistration":
            return self._submit_registration(fields)
        if source == "tmclassEditorGt:searchWDVZ":
            return self._search(fields)
        if source.endswith(":iconExpandedState"):
            return self._expand(source)
        if source.endswith(":selectBox"):
            self.checkbox_changes.append(fields.get("jakarta.faces.partial.execute", source))
            return httpx.Response(200, text=self.partial())
        if source == "priority:btnSubmit":
            return self._submit_priority(fields)
        if source.startswith("tm-priority-comp:btnCallAddPriority"):
            return httpx.Response(
                200,
                text=self.partial(
                    '<update id="editor-form"><![CDATA[<form id="priority:priority-editor-form">'
                    '<input id="priority:priorityDate:valueHolder_input"/></form>]]></update>'
                ),
            )
        return httpx.Response(200, text=self.partial())

    def _navigate(self, fields: dict[str, str]) -> httpx.Response:
        view_id = fields.get("dpmaViewId", "")
        self.navigations.append(view_id)
        if view_id in self.error_page_on:
            return httpx.Response(
                200,
                text='<partial-response><redirect url="/DpmaDirektWebEditoren/error.xhtml"></redirect></partial-response>',
            )
        if view_id in self.validation_error_on:
            return httpx.Response(
                200,
                text=self.partial(
                    '<update id="editor-form"><![CDATA['
                    '<span id="daf-applicant:zip:msg" class="ui-message-error ui-widget"></span>'
                    '<span class="ui-message-error-detail">Postleitzahl ungültig</span>]]></update>'
                ),
            )

        self.window += 1
        inner = ""
        if view_id == "submit":
            inner = (
                '<update id="editor-form"><![CDATA['
                '<input id="j_idt201:itemsPanel_active" name="j_idt201:itemsPanel_active" type="hidden" value="" />'
                '<input id="j_idt305:itemsPanel_active" name="j_idt305:itemsPanel_active" type="hidden" value="0" />'
                "]]></update>"
            )
        return httpx.Response(200, text=self.partial(inner))

    def _submit_priority(self, fields: dict[str, str]) -> httpx.Response:
        self.priority_submissions.append(fields)
        if self.priority_error:
            return httpx.Response(
                200,
                text=self.partial(
                    '<update id="priority:priority-editor-form"><![CDATA['
                    '<span id="priority:priorityDate:msg" class="ui-message-error ui-widget"></span>'
                    f'<span class="ui-message-error-detail">{self.priority_error}</span>]]></update>'
                ),
            )
        date = fields.get("priority:priorityDate:valueHolder_input", "")
        return httpx.Response(
            200,
            text=self.partial(
                '<update id="editor-form"><![CDATA[<table id="tm-priority-comp:priorityTable">'
                f"<tr><td>{date}</td></tr></table>]]></update>"
            ),
        )

    def _submit_registration(self, fields: dict[str, str]) -> httpx.Response:
        self.final_fields = fields
        if self.transaction_in_body:
            return httpx.Response(
                200,
                text=(
                    '<partial-response><redirect url="/DpmaDirektWebEditoren/flowReturn.xhtml?'
                    f'flowId=w7005&amp;transactionId={self.transaction_id}"></redirect></partial-response>'
                ),
            )
        location = f"{EDITOR}/flowReturn.xhtml?transactionId={self.transaction_id.replace('/', '%2F')}&flowId=w7005"
        return httpx.Response(302, headers={"Location": location})

    def _search(self, fields: dict[str, str]) -> httpx.Response:
        phrase = fields.get("tmclassEditorGt:tmClassEditorCenterSearchPhrase", "")
        self.searches.append(phrase)
        links = "".join(
            f'<a id="tmclassEditorGt:termView:{index}:termViewLink" href="#" title="{title}">{title}</a>'
            for index, title in enumerate(self.catalog.get(phrase, []))
        )
        return httpx.Response(
            200,
            text=self.partial(f'<update id="tmclassEditorGt:nodeTreeAndTermView"><![CDATA[{links}]]></update>'),
        )

    def _expand(self, source: str) -> httpx.Response:
        class_number = re.search(r"tmclassNode_(\d+)", source).group(1)
        checkbox = f"tmclassEditorGt:tmclassNode_{class_number}:cat0:selectBox_input"
        return httpx.Response(
            200,
            text=self.partial(
                f'<update id="tmclassEditorGt"><![CDATA[<input type="checkbox" id="{checkbox}" name="{checkbox}"/>]]></update>'
            ),
        )

    def _versand(self, request: httpx.Request) -> httpx.Response:
        if self.versand_status != "VERSAND_SUCCESS":
            payload = {"status": self.versand_status, "validationResult": {"userMessage": "Sendung abgelehnt"}}
        else:
            payload = {
                "status": "VERSAND_SUCCESS",
                "akz": "30 2026 012 345.6",
                "drn": "2026101700001",
                "transactionId": request.url.params.get("transactionId"),
                "creationTime": "2026-10-17T10:15:00",
            }
        return httpx.Response(200, text=json.dumps(payload), headers={"Content-Type": "application/json"})


@pytest.fixture
def wizard() -> FakeWizard:
    return FakeWizard()


@pytest.fixture
def wizard_transport(wizard) -> httpx.MockTransport:
    return httpx.MockTransport(wizard)


@pytest.fixture
def make_wizard():
    return FakeWizard
