from typing import Callable

from dpma_direkt.core.enums import WorkflowStatus
from dpma_direkt.core.errors import DpmaError
from dpma_direkt.core.logging import bind_run_context, get_logger, reset_run_context
from dpma_direkt.services.finalization import extract_documents
from dpma_direkt.workflow.context import RunContext
from dpma_direkt.workflow.state import RegistrationState, record_failure

logger = get_logger(__name__)


def make_node(ctx: RunContext) -> Callable[[RegistrationState], RegistrationState]:
    def finalization_node(state: RegistrationState) -> RegistrationState:
        transaction_id = state["transaction_id"]
        token = bind_run_context(transaction_id=transaction_id)
        try:
            versand = ctx.finalizer.finalize(transaction_id)
            archive = ctx.finalizer.fetch_documents(transaction_id)
        except DpmaError as exc:
            logger.error("finalization failed", extra={"extra": {"error_code": exc.error_code, "error": exc.message}})
            return record_failure(state, exc)
        finally:
            reset_run_context(token)

        state["versand"] = versand.model_dump()
        state["documents"] = extract_documents(archive) if archive else []
        state["receipt_file_path"] = None
        if archive:
            try:
                state["receipt_file_path"] = str(ctx.finalizer.save_receipt_zip(versand.akz, archive))
            except OSError as exc:
                # The application is already filed here.
                logger.warning("receipt archive not saved", extra={"extra": {"error": str(exc)}})
                state.setdefault("warnings", []).append(f"Receipt archive could not be saved: {exc}")

        state["status"] = WorkflowStatus.DOCUMENTS_RETRIEVED.value
        logger.info(
            "documents retrieved",
            extra={"extra": {"run_id": ctx.run_id, "documents": len(state["documents"])}},
        )
        return state

    return finalization_node
