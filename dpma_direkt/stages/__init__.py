from dpma_direkt.stages.applicant import ApplicantStage
from dpma_direkt.stages.classification import ClassificationStage
from dpma_direkt.stages.confirmation import ConfirmationStage
from dpma_direkt.stages.delivery import DeliveryAddressStage
from dpma_direkt.stages.mark import MarkStage
from dpma_direkt.stages.options import OptionsStage
from dpma_direkt.stages.payment import PaymentStage
from dpma_direkt.stages.representative import RepresentativeStage


def default_stages() -> list:
    return [
        ApplicantStage(),
        RepresentativeStage(),
        DeliveryAddressStage(),
        MarkStage(),
        ClassificationStage(),
        OptionsStage(),
        PaymentStage(),
        ConfirmationStage(),
    ]


__all__ = [
    "ApplicantStage",
    "RepresentativeStage",
    "DeliveryAddressStage",
    "MarkStage",
    "ClassificationStage",
    "OptionsStage",
    "PaymentStage",
    "ConfirmationStage",
    "default_stages",
]
