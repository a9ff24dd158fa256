import base64
import binascii
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from dpma_direkt.core.enums import ApplicantType, MarkType, PaymentMethod, PriorityType, SepaMandateType


class Address(BaseModel):
    street: str
    address_line1: str | None = None
    address_line2: str | None = None
    zip: str
    city: str
    country: str = "DE"


class ContactInfo(BaseModel):
    email: str
    telephone: str | None = None
    fax: str | None = None


class NaturalPersonApplicant(BaseModel):
    type: Literal["natural"] = "natural"
    salutation: str | None = None
    first_name: str
    last_name: str
    name_suffix: str | None = None
    address: Address

    @property
    def display_name(self) -> str:
        return self.last_name


class LegalEntityApplicant(BaseModel):
    type: Literal["legal"] = "legal"
    company_name: str
    legal_form: str | None = None
    address: Address

    @property
    def display_name(self) -> str:
        return self.company_name


Applicant = Annotated[NaturalPersonApplicant | LegalEntityApplicant, Field(discriminator="type")]


class Representative(BaseModel):
    type: ApplicantType = ApplicantType.NATURAL
    salutation: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None
    legal_form: str | None = None
    address: Address
    contact: ContactInfo
    lawyer_registration_id: str | None = None
    internal_reference: str | None = None


class DeliveryAddress(BaseModel):
    copy_from_applicant: bool = False
    type: ApplicantType = ApplicantType.NATURAL
    salutation: str | None = None
    first_name: str | None = None
    last_name: str = ""
    company_name: str | None = None
    legal_form: str | None = None
    address: Address | None = None
    contact: ContactInfo | None = None


class SanctionsDeclaration(BaseModel):
    has_russian_nationality: bool = False
    has_russian_residence: bool = False


class Trademark(BaseModel):
    type: MarkType
    text: str | None = None
    image_data: str | None = None  # base64
    image_mime_type: str = "image/jpeg"
    image_file_name: str = "trademark.jpg"
    color_elements: list[str] = Field(default_factory=list)
    has_non_latin_characters: bool = False
    description: str | None = None

    def image_bytes(self) -> bytes | None:
        if not self.image_data:
            return None
        try:
            return base64.b64decode(self.image_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("trademark.image_data is not valid base64") from exc


class NiceClassSelection(BaseModel):
    class_number: int = Field(ge=1, le=45)
    terms: list[str] = Field(default_factory=list)
    select_class_header: bool | None = None

    @property
    def wants_whole_class(self) -> bool:
        if self.select_class_header is None:
            return not self.terms
        return self.select_class_header or not self.terms


class PriorityClaim(BaseModel):
    type: PriorityType
    date: str
    country: str | None = None
    application_number: str | None = None
    exhibition_name: str | None = None


class AdditionalOptions(BaseModel):
    accelerated_examination: bool = False
    certification_mark: bool = False
    licensing_declaration: bool = False
    sale_declaration: bool = False
    priority_claims: list[PriorityClaim] = Field(default_factory=list)


class SepaContact(BaseModel):
    type: ApplicantType = ApplicantType.NATURAL
    salutation: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None
    legal_form: str | None = None
    address: Address
    telephone: str
    fax: str | None = None
    email: str


class SepaDetails(BaseModel):
    mandate_reference_number: str
    mandate_type: SepaMandateType
    copy_from_applicant: bool = False
    contact: SepaContact | None = None


class RegistrationRequest(BaseModel):
    applicant: Applicant
    sanctions: SanctionsDeclaration = Field(default_factory=SanctionsDeclaration)
    representatives: list[Representative] = Field(default_factory=list)
    delivery_address: DeliveryAddress | None = None
    email: str
    trademark: Trademark
    nice_classes: list[NiceClassSelection]
    lead_class: int | None = None
    options: AdditionalOptions = Field(default_factory=AdditionalOptions)
    payment_method: PaymentMethod
    sepa_details: SepaDetails | None = None
    sender_name: str
    internal_reference: str | None = None


class FeeItem(BaseModel):
    code: str
    description: str
    amount: float


class BankDetails(BaseModel):
    recipient: str
    iban: str
    bic: str
    reference: str


class PaymentInfo(BaseModel):
    method: PaymentMethod
    total_amount: float
    currency: str = "EUR"
    bank_details: BankDetails | None = None


class DownloadedDocument(BaseModel):
    filename: str
    data: bytes
    mime_type: str

    model_config = {"ser_json_bytes": "base64"}


class RegistrationSuccess(BaseModel):
    success: Literal[True] = True
    confirmation_id: str
    reference_id: str
    transaction_id: str
    submission_time: str
    fees: list[FeeItem] = Field(default_factory=list)
    payment: PaymentInfo
    documents: list[DownloadedDocument] = Field(default_factory=list)
    receipt_file_path: str | None = None
    warnings: list[str] = Field(default_factory=list)

    model_config = {"ser_json_bytes": "base64"}


class RegistrationFailure(BaseModel):
    success: Literal[False] = False
    error_code: str
    message: str
    failed_stage: int | None = None
    field_errors: list[dict[str, Any]] = Field(default_factory=list)


RegistrationResult = RegistrationSuccess | RegistrationFailure
