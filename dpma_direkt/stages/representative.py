from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import RegistrationRequest
from dpma_direkt.stages.base import Stage

logger = get_logger(__name__)


class RepresentativeStage(Stage):
    number = 2
    name = "representative"

    def build_fields(self, request: RegistrationRequest) -> dict[str, str]:
        if request.representatives:
            logger.warning(
                "representatives are not filed, skipping",
                extra={"extra": {"count": len(request.representatives)}},
            )
        return super().build_fields(request)
