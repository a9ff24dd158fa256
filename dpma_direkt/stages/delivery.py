from dpma_direkt.core.models import RegistrationRequest
from dpma_direkt.protocol.events import PreCommitEvent, change_event, radio_event
from dpma_direkt.stages.base import Stage
from dpma_direkt.stages.fields import (
    ADDRESS_COMBO,
    CORRESPONDENCE,
    NEW_ADDRESS_OPTION,
    copy_from_applicant_option,
    uses_applicant_address,
)


class DeliveryAddressStage(Stage):
    number = 3
    name = "delivery"

    def plan_events(self, request: RegistrationRequest) -> list[PreCommitEvent]:
        if uses_applicant_address(request):
            # Selecting the applicant in the combo makes the server copy the address over.
            return [
                change_event(
                    ADDRESS_COMBO,
                    copy_from_applicant_option(request),
                    {"dpmaViewItemIndex": "0"},
                    label="delivery_address_combo",
                )
            ]
        return [
            radio_event(
                f"{CORRESPONDENCE}:addressEntityType",
                request.delivery_address.type.value,
                {f"{ADDRESS_COMBO}_input": NEW_ADDRESS_OPTION, "dpmaViewItemIndex": "0"},
                label="delivery_entity_type",
            )
        ]
