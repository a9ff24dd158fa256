from dpma_direkt.core.errors import SessionInitError, TokenExtractionError, TransportError
from dpma_direkt.core.logging import get_logger
from dpma_direkt.protocol.extractor import extract_jfwid_from_body, extract_jfwid_from_url, extract_tokens
from dpma_direkt.protocol.recorder import DebugRecorder
from dpma_direkt.protocol.session import Session, Tokens
from dpma_direkt.protocol.transport import HttpTransport

logger = get_logger(__name__)


def _discover_jfwid(session: Session, transport: HttpTransport) -> str:
    editor = session.settings.dpma_editor_path
    start = transport.get(f"{editor}/{session.settings.dpma_flow_id}-start.xhtml")

    if start.status_code in (301, 302, 303, 307, 308):
        location = start.headers.get("location", "")
        jfwid = extract_jfwid_from_url(location)
        if jfwid:
            transport.get(location, follow_redirects=True)
            return jfwid

    jfwid = extract_jfwid_from_body(start.text)
    if jfwid:
        return jfwid
    raise SessionInitError("Failed to obtain a jfwid from the wizard start page")


def initialize_session(
    session: Session,
    transport: HttpTransport,
    recorder: DebugRecorder | None = None,
) -> Tokens:
    """Opens a fresh wizard run: cookies, window id, then the first set of tokens."""
    try:
        transport.get(f"{session.settings.dpma_editor_path}/index.xhtml")
        jfwid = _discover_jfwid(session, transport)

        form_url = (
            f"{session.settings.dpma_editor_path}/{session.settings.dpma_flow_id}/"
            f"{session.settings.dpma_flow_id}web.xhtml?jftfdi=&jffi={session.settings.dpma_flow_id}&jfwid={jfwid}"
        )
        form = transport.get(form_url)
        if recorder:
            recorder.capture("session_init", form.text)
        tokens = extract_tokens(form.text, fallback_root_id=jfwid)
    except TokenExtractionError as exc:
        raise SessionInitError(f"Session init failed: {exc.message}") from exc
    except TransportError as exc:
        raise SessionInitError(f"Session init failed: {exc.message}") from exc

    session.initialize(jfwid.split(":")[0], tokens)
    session.record_response(form.text)
    logger.info(
        "session established",
        extra={"extra": {"base_identifier": session.base_identifier, "has_nonce": bool(tokens.nonce)}},
    )
    return tokens
