from dpma_direkt.core.enums import PaymentMethod
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import RegistrationRequest
from dpma_direkt.stages.base import Stage

logger = get_logger(__name__)


class PaymentStage(Stage):
    number = 7
    name = "payment"

    def build_fields(self, request: RegistrationRequest) -> dict[str, str]:
        if request.payment_method == PaymentMethod.SEPA_DIRECT_DEBIT and request.sepa_details:
            # Only the payment type is sent; the mandate is given to DPMA outside the wizard.
            logger.info("sepa details supplied, mandate fields left to the payer")
        return super().build_fields(request)
