import re
from typing import Callable
from urllib.parse import unquote

from pydantic import BaseModel, Field

from dpma_direkt.core.errors import TokenExtractionError
from dpma_direkt.protocol.session import Tokens

TokenStrategy = Callable[[str], str | None]


def _hidden_input_patterns(name: str) -> list[re.Pattern]:
    escaped = re.escape(name)
    return [
        re.compile(rf'<input[^>]*\bname="{escaped}"[^>]*\bvalue="([^"]*)"', re.IGNORECASE),
        re.compile(rf'<input[^>]*\bvalue="([^"]*)"[^>]*\bname="{escaped}"', re.IGNORECASE),
    ]


def _first_match(patterns: list[re.Pattern]) -> TokenStrategy:
    def strategy(body: str) -> str | None:
        for pattern in patterns:
            match = pattern.search(body)
            if match and match.group(1):
                return match.group(1)
        return None

    return strategy


VIEW_STATE_STRATEGIES: list[tuple[str, TokenStrategy]] = [
    ("hidden_input", _first_match(_hidden_input_patterns("jakarta.faces.ViewState"))),
    (
        "id_suffix",
        _first_match(
            [
                re.compile(r'<input[^>]*\bid="[^"]*ViewState"[^>]*\bvalue="([^"]*)"', re.IGNORECASE),
                re.compile(r'<input[^>]*\bvalue="([^"]*)"[^>]*\bid="[^"]*ViewState"', re.IGNORECASE),
            ]
        ),
    ),
    (
        "inline_script",
        _first_match([re.compile(r"""jakarta\.faces\.ViewState['"]\s*(?:value|:)\s*['"]([^'"]+)""")]),
    ),
]

CLIENT_WINDOW_STRATEGIES: list[tuple[str, TokenStrategy]] = [
    ("hidden_input", _first_match(_hidden_input_patterns("jakarta.faces.ClientWindow"))),
    ("form_data_attribute", _first_match([re.compile(r'<form[^>]*\bdata-client-window="([^"]+)"', re.IGNORECASE)])),
]

NONCE_STRATEGIES: list[tuple[str, TokenStrategy]] = [
    ("csp_init", _first_match([re.compile(r"""PrimeFaces\.csp\.init\(['"]([^'"]+)['"]\)""")])),
    ("hidden_input", _first_match(_hidden_input_patterns("primefaces.nonce"))),
    ("script_attribute", _first_match([re.compile(r"""<script[^>]+nonce=["']([^"']+)["']""", re.IGNORECASE)])),
]

# Partial responses: <update id="j_id1:jakarta.faces.ViewState:0"><![CDATA[...]]></update>
PARTIAL_VIEW_STATE_PATTERN = re.compile(
    r'<update[^>]*\bid="[^"]*jakarta\.faces\.ViewState[^"]*"[^>]*>(?:<!\[CDATA\[)?([^<\]]+)'
)
PARTIAL_CLIENT_WINDOW_PATTERN = re.compile(
    r'<update[^>]*\bid="[^"]*jakarta\.faces\.ClientWindow[^"]*"[^>]*>(?:<!\[CDATA\[)?([^<\]]+)'
)

REFRESH_VIEW_STATE_STRATEGIES: list[tuple[str, TokenStrategy]] = [
    ("partial_update", _first_match([PARTIAL_VIEW_STATE_PATTERN])),
    VIEW_STATE_STRATEGIES[0],
]
REFRESH_CLIENT_WINDOW_STRATEGIES: list[tuple[str, TokenStrategy]] = [
    ("partial_update", _first_match([PARTIAL_CLIENT_WINDOW_PATTERN])),
    CLIENT_WINDOW_STRATEGIES[0],
]
REFRESH_NONCE_STRATEGIES: list[tuple[str, TokenStrategy]] = [NONCE_STRATEGIES[0]]

SERVER_ERROR_SIGNATURES = ["error.xhtml", "StatusCode: 500"]

VALIDATION_TAG_PATTERN = re.compile(
    r'<(?P<tag>\w+)(?P<attrs>[^>]*\bclass="[^"]*ui-messages?-error[^"]*"[^>]*)>(?P<text>[^<]*)'
)
ID_ATTR_PATTERN = re.compile(r'\bid="([^"]+)"')
TITLE_PATTERN = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)

JFWID_URL_PATTERN = re.compile(r"jfwid=([^&:]+(?::\d+)?)")
JFWID_BODY_PATTERN = re.compile(r"""jfwid[=:]([^&"'\s]+)""")

TRANSACTION_LOCATION_PATTERN = re.compile(r"transactionId=([^&]+)")
TRANSACTION_BODY_PATTERNS = [
    re.compile(r"""transactionId=([^&"'\s]+)"""),
    re.compile(r"""transactionId['"]\s*:\s*['"]([^'"]+)"""),
    re.compile(r"""flowReturn\.xhtml\?[^"']*transactionId=([^&"']+)"""),
]

ITEMS_PANEL_FAMILY = r"j_idt\d+[^\"]*:itemsPanel_active"


class ErrorMarker(BaseModel):
    kind: str
    messages: list[str] = Field(default_factory=list)
    field_errors: list[dict[str, str | None]] = Field(default_factory=list)
    title: str | None = None

    model_config = {"frozen": True}


def run_strategies(body: str, strategies: list[tuple[str, TokenStrategy]]) -> tuple[str | None, str | None]:
    for name, strategy in strategies:
        value = strategy(body or "")
        if value:
            return value, name
    return None, None


def extract_tokens(body: str, fallback_root_id: str | None = None) -> Tokens:
    view_snapshot, _ = run_strategies(body, VIEW_STATE_STRATEGIES)
    if not view_snapshot:
        raise TokenExtractionError("jakarta.faces.ViewState")

    client_window, _ = run_strategies(body, CLIENT_WINDOW_STRATEGIES)
    if not client_window and fallback_root_id:
        client_window = fallback_root_id if ":" in fallback_root_id else f"{fallback_root_id}:0"
    if not client_window:
        raise TokenExtractionError("jakarta.faces.ClientWindow")

    nonce, _ = run_strategies(body, NONCE_STRATEGIES)
    return Tokens(view_snapshot=view_snapshot, client_window=client_window, nonce=nonce or "")


def refresh_tokens(body: str, current: Tokens) -> Tokens:
    """Tokens after an exchange; anything the response leaves out keeps its old value."""
    view_snapshot, _ = run_strategies(body, REFRESH_VIEW_STATE_STRATEGIES)
    client_window, _ = run_strategies(body, REFRESH_CLIENT_WINDOW_STRATEGIES)
    nonce, _ = run_strategies(body, REFRESH_NONCE_STRATEGIES)
    return Tokens(
        view_snapshot=(view_snapshot or current.view_snapshot).strip(),
        client_window=(client_window or current.client_window).strip(),
        nonce=nonce or current.nonce,
    )


def extract_error_markers(body: str) -> ErrorMarker | None:
    text = body or ""
    title = page_title(text)

    messages: list[str] = []
    field_errors: list[dict[str, str | None]] = []
    current_field: str | None = None
    for match in VALIDATION_TAG_PATTERN.finditer(text):
        id_match = ID_ATTR_PATTERN.search(match.group("attrs"))
        message = match.group("text").strip()
        if not message:
            if id_match:
                current_field = id_match.group(1)
            continue
        field = id_match.group(1) if id_match else current_field
        if message not in messages:
            messages.append(message)
            field_errors.append({"field": field, "message": message})

    if any(signature in text for signature in SERVER_ERROR_SIGNATURES):
        return ErrorMarker(kind="server_error_page", messages=messages, field_errors=field_errors, title=title)
    if messages:
        return ErrorMarker(kind="field_validation", messages=messages, field_errors=field_errors, title=title)
    return None


def extract_ephemeral_fields(body: str, family_pattern: str = ITEMS_PANEL_FAMILY) -> dict[str, str]:
    text = body or ""
    fields: dict[str, str] = {}

    for match in re.finditer(rf'id="({family_pattern})"[^>]*name="([^"]+)"[^>]*value="([^"]*)"', text):
        fields[match.group(2)] = match.group(3) or "-1"

    scans = [
        (rf'name="({family_pattern})"[^>]*value="([^"]*)"', 1, 2),
        (rf'value="([^"]*)"[^>]*name="({family_pattern})"', 2, 1),
        (rf'<!\[CDATA\[[\s\S]*?(?:name|id)="({family_pattern})"[^>]*value="([^"]*)"', 1, 2),
    ]
    for pattern, name_group, value_group in scans:
        for match in re.finditer(pattern, text):
            name = match.group(name_group)
            if name not in fields:
                fields[name] = match.group(value_group) or "-1"
    return fields


def extract_jfwid_from_url(url: str) -> str | None:
    match = JFWID_URL_PATTERN.search(url or "")
    return match.group(1) if match else None


def extract_jfwid_from_body(body: str) -> str | None:
    match = JFWID_BODY_PATTERN.search(body or "")
    return match.group(1) if match else None


def extract_transaction_id(*, location: str | None = None, body: str | None = None) -> str | None:
    if location:
        match = TRANSACTION_LOCATION_PATTERN.search(location)
        if match:
            return unquote(match.group(1))
    for pattern in TRANSACTION_BODY_PATTERNS:
        match = pattern.search(body or "")
        if match:
            return unquote(match.group(1))
    return None


def page_title(body: str) -> str | None:
    match = TITLE_PATTERN.search(body or "")
    return match.group(1).strip() if match else None
