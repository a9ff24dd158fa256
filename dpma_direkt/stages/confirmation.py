import httpx

from dpma_direkt.core.errors import StageFailure
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import RegistrationRequest
from dpma_direkt.protocol.events import EDITOR_FORM
from dpma_direkt.protocol.extractor import extract_ephemeral_fields, extract_transaction_id, refresh_tokens
from dpma_direkt.stages.base import Stage, StageContext

logger = get_logger(__name__)

SUBMIT_BUTTON = "btnSubmitRegistration"


class ConfirmationStage(Stage):
    """Final, irreversible submit. Yields the transaction id for the dispatch service."""

    number = 8
    name = "confirmation"

    def prepare(self, request: RegistrationRequest, ctx: StageContext) -> dict[str, str]:
        fields = self.build_fields(request)
        # The summary page renders per-session panel ids; they come from the stage-7 response.
        dynamic = extract_ephemeral_fields(ctx.session.last_response_body)
        if not dynamic:
            logger.warning("no itemsPanel fields found in previous response")
        fields.update(dynamic)
        return fields

    def submission_fields(self, fields: dict[str, str], ctx: StageContext) -> dict[str, str]:
        return {
            **fields,
            "jakarta.faces.partial.ajax": "true",
            "jakarta.faces.source": SUBMIT_BUTTON,
            "jakarta.faces.partial.execute": "@all",
            "jakarta.faces.partial.render": EDITOR_FORM,
            SUBMIT_BUTTON: SUBMIT_BUTTON,
            EDITOR_FORM: EDITOR_FORM,
            "editorPanel_active": "null",
            **ctx.session.snapshot().as_form_fields(),
        }

    def after_submit(self, response: httpx.Response, ctx: StageContext) -> None:
        if response.status_code == 302:
            location = response.headers.get("location", "")
            transaction_id = extract_transaction_id(location=location)
            if not transaction_id:
                raise StageFailure(self.number, "302 redirect received but no transactionId in location header")
            logger.info("transaction id taken from redirect")
        else:
            body = response.text
            ctx.session.record_response(body)
            if ctx.recorder:
                ctx.recorder.capture("stage8_confirmation", body)
            transaction_id = extract_transaction_id(body=body)
            if not transaction_id:
                self.inspect(body)
                raise StageFailure(
                    self.number,
                    f"Failed to get transaction ID from final submission (status: {response.status_code})",
                )
            ctx.session.replace(refresh_tokens(body, ctx.session.snapshot()))
            logger.info("transaction id taken from response body")

        ctx.session.set_transaction_id(transaction_id)
        ctx.session.step_counter += 1
