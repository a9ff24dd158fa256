from pydantic import BaseModel

from dpma_direkt.core.config import Settings, get_settings
from dpma_direkt.core.errors import UninitializedSessionError

TOKEN_FIELDS = ("view_snapshot", "client_window", "nonce")


class Tokens(BaseModel):
    view_snapshot: str
    client_window: str
    nonce: str = ""

    model_config = {"frozen": True}

    def as_form_fields(self) -> dict[str, str]:
        return {
            "jakarta.faces.ViewState": self.view_snapshot,
            "jakarta.faces.ClientWindow": self.client_window,
            "primefaces.nonce": self.nonce,
        }


class Session:
    """Mutable state of one wizard run.

    One instance per run, never shared: every exchange reads the current tokens and
    writes back whatever the server returned.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._base_identifier: str | None = None
        self._tokens: Tokens | None = None
        self._transaction_id: str | None = None
        self.step_counter = 0
        self.last_response_body = ""

    @property
    def initialized(self) -> bool:
        return self._tokens is not None

    def _require(self) -> Tokens:
        if self._tokens is None:
            raise UninitializedSessionError()
        return self._tokens

    def initialize(self, base_identifier: str, tokens: Tokens) -> None:
        if self._base_identifier is not None:
            raise ValueError("Session already initialized")
        self._base_identifier = base_identifier
        self._tokens = tokens

    def update(self, **partial: str | None) -> Tokens:
        current = self._require()
        unknown = set(partial) - set(TOKEN_FIELDS)
        if unknown:
            raise ValueError(f"Unknown token fields: {sorted(unknown)}")
        changes = {key: value for key, value in partial.items() if value is not None}
        self._tokens = current.model_copy(update=changes)
        return self._tokens

    def replace(self, tokens: Tokens) -> Tokens:
        self._require()
        self._tokens = tokens
        return tokens

    def snapshot(self) -> Tokens:
        return self._require()

    @property
    def base_identifier(self) -> str:
        self._require()
        return self._base_identifier

    @property
    def transaction_id(self) -> str | None:
        self._require()
        return self._transaction_id

    def set_transaction_id(self, value: str) -> None:
        self._require()
        if self._transaction_id is not None and self._transaction_id != value:
            raise ValueError("Transaction id is already set for this session")
        self._transaction_id = value

    def record_response(self, body: str) -> None:
        self.last_response_body = body or ""

    def build_form_url(self) -> str:
        # The jfwid in the URL must mirror the ClientWindow counter the server handed out last.
        tokens = self._require()
        return (
            f"{self.settings.dpma_editor_path}/{self.settings.dpma_flow_id}/"
            f"{self.settings.dpma_flow_id}web.xhtml?jftfdi=&jffi={self.settings.dpma_flow_id}"
            f"&jfwid={tokens.client_window}"
        )

    def build_upload_url(self) -> str:
        tokens = self._require()
        return (
            f"{self.settings.dpma_editor_path}/{self.settings.dpma_flow_id}/"
            f"{self.settings.dpma_flow_id}-upload.xhtml?jfwid={tokens.client_window}"
        )

    def build_description_url(self) -> str:
        tokens = self._require()
        return (
            f"{self.settings.dpma_editor_path}/{self.settings.dpma_flow_id}/"
            f"{self.settings.dpma_flow_id}-trademark-description.xhtml?jfwid={tokens.client_window}"
        )

    def build_url(self, kind: str) -> str:
        if kind == "upload":
            return self.build_upload_url()
        if kind == "description":
            return self.build_description_url()
        return self.build_form_url()
