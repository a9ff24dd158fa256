from typing import Callable

from dpma_direkt.core.enums import ApplicantType, MarkType
from dpma_direkt.core.errors import UnsupportedMarkType
from dpma_direkt.core.models import (
    Address,
    DeliveryAddress,
    LegalEntityApplicant,
    NaturalPersonApplicant,
    RegistrationRequest,
)
from dpma_direkt.services.mappers import map_legal_form

APPLICANT = "daf-applicant"
CORRESPONDENCE = "daf-correspondence"

ADDRESS_COMBO = f"{CORRESPONDENCE}:address-ref-combo-a:valueHolder"
NEW_ADDRESS_OPTION = "Neue Adresse"

MARK_FEATURE_COMBO = "markFeatureCombo:valueHolder"
MARK_FEATURE_VALUES: dict[MarkType, str] = {
    MarkType.WORD: "word",
    MarkType.FIGURATIVE: "image",
    MarkType.COMBINED: "figurative",
    MarkType.THREE_DIMENSIONAL: "feature3d",
}
IMAGE_MARK_TYPES = {MarkType.FIGURATIVE, MarkType.COMBINED, MarkType.THREE_DIMENSIONAL}

LEAD_CLASS_FIELD = "tmclassEditorGt:leadingClassCombo_input"

OPTION_CHECKBOXES = {
    "accelerated_examination": "acceleratedExamination:valueHolder_input",
    "certification_mark": "mark-certification-chkbox:valueHolder_input",
    "licensing_declaration": "mark-licenseIndicator-chkbox:valueHolder_input",
    "sale_declaration": "mark-dispositionIndicator-chkbox:valueHolder_input",
}

PAYMENT_FIELD = "paymentForm:paymentTypeSelectOneRadio"


def mark_feature_value(mark_type: MarkType) -> str:
    try:
        return MARK_FEATURE_VALUES[mark_type]
    except KeyError:
        raise UnsupportedMarkType(4, f"{mark_type.value} trademarks are not supported") from None


def copy_from_applicant_option(request: RegistrationRequest) -> str:
    # The wizard's option values end with a space.
    return f"1 Anmelder {request.applicant.display_name} "


def uses_applicant_address(request: RegistrationRequest) -> bool:
    delivery = request.delivery_address
    return delivery is None or delivery.copy_from_applicant


def _address_fields(prefix: str, address: Address) -> dict[str, str]:
    fields = {f"{prefix}:street:valueHolder": address.street}
    if address.address_line1:
        fields[f"{prefix}:addressLine1:valueHolder"] = address.address_line1
    if address.address_line2:
        fields[f"{prefix}:addressLine2:valueHolder"] = address.address_line2
    fields[f"{prefix}:zip:valueHolder"] = address.zip
    fields[f"{prefix}:city:valueHolder"] = address.city
    fields[f"{prefix}:country:valueHolder_input"] = address.country
    return fields


def _name_prefix_fields(prefix: str, value: str | None) -> dict[str, str]:
    if value:
        return {
            f"{prefix}:namePrefix:valueHolder_input": value,
            f"{prefix}:namePrefix:valueHolder_editableInput": value,
        }
    return {
        f"{prefix}:namePrefix:valueHolder_focus": "",
        f"{prefix}:namePrefix:valueHolder_input": "",
        f"{prefix}:namePrefix:valueHolder_editableInput": " ",
    }


def applicant_fields(request: RegistrationRequest) -> dict[str, str]:
    applicant = request.applicant
    fields: dict[str, str] = {}

    if isinstance(applicant, NaturalPersonApplicant):
        fields[f"{APPLICANT}:addressEntityType"] = ApplicantType.NATURAL.value
        if applicant.salutation:
            fields[f"{APPLICANT}:namePrefix:valueHolder_input"] = applicant.salutation
        fields[f"{APPLICANT}:lastName:valueHolder"] = applicant.last_name
        fields[f"{APPLICANT}:firstName:valueHolder"] = applicant.first_name
        if applicant.name_suffix:
            fields[f"{APPLICANT}:nameSuffix:valueHolder"] = applicant.name_suffix
    else:
        fields[f"{APPLICANT}:addressEntityType"] = ApplicantType.LEGAL.value
        # Company name lives in the lastName field, the legal form in the editable namePrefix combo.
        fields[f"{APPLICANT}:lastName:valueHolder"] = applicant.company_name
        if applicant.legal_form:
            label = map_legal_form(applicant.legal_form)
            fields[f"{APPLICANT}:namePrefix:valueHolder_input"] = label
            fields[f"{APPLICANT}:namePrefix:valueHolder_editableInput"] = label

    fields.update(_address_fields(APPLICANT, applicant.address))

    sanctions = request.sanctions
    fields[f"{APPLICANT}:daf-declaration:nationalitySanctionLine"] = (
        "TRUE" if sanctions.has_russian_nationality else "FALSE"
    )
    fields[f"{APPLICANT}:daf-declaration:residenceSanctionLine"] = (
        "TRUE" if sanctions.has_russian_residence else "FALSE"
    )
    fields[f"{APPLICANT}:daf-declaration:evidenceProofCheckbox_input"] = "on"
    fields[f"{APPLICANT}:daf-declaration:changesProofCheckbox_input"] = "on"
    return fields


def representative_fields(request: RegistrationRequest) -> dict[str, str]:
    return {}


def _correspondence_address(address: Address, email: str, phone: str = "", fax: str = "") -> dict[str, str]:
    return {
        f"{CORRESPONDENCE}:street:valueHolder": address.street,
        f"{CORRESPONDENCE}:addressLine1:valueHolder": address.address_line1 or "",
        f"{CORRESPONDENCE}:addressLine2:valueHolder": address.address_line2 or "",
        f"{CORRESPONDENCE}:mailbox:valueHolder": "",
        f"{CORRESPONDENCE}:zip:valueHolder": address.zip,
        f"{CORRESPONDENCE}:city:valueHolder": address.city,
        f"{CORRESPONDENCE}:country:valueHolder_input": address.country,
        f"{CORRESPONDENCE}:phone:valueHolder": phone,
        f"{CORRESPONDENCE}:fax:valueHolder": fax,
        f"{CORRESPONDENCE}:email:valueHolder": email,
        "editorPanel_active": "null",
    }


def _delivery_from_applicant(request: RegistrationRequest) -> dict[str, str]:
    applicant = request.applicant
    fields = {
        "dpmaViewItemIndex": "0",
        f"{ADDRESS_COMBO}_input": copy_from_applicant_option(request),
        f"{CORRESPONDENCE}:addressEntityType": applicant.type,
    }
    fields.update(_correspondence_address(applicant.address, request.email))

    if isinstance(applicant, NaturalPersonApplicant):
        fields[f"{CORRESPONDENCE}:lastName:valueHolder"] = applicant.last_name
        fields[f"{CORRESPONDENCE}:firstName:valueHolder"] = applicant.first_name
        fields.update(_name_prefix_fields(CORRESPONDENCE, applicant.salutation))
        fields[f"{CORRESPONDENCE}:nameSuffix:valueHolder"] = ""
    elif isinstance(applicant, LegalEntityApplicant):
        fields[f"{CORRESPONDENCE}:lastName:valueHolder"] = applicant.company_name
        legal_form = map_legal_form(applicant.legal_form) if applicant.legal_form else None
        fields.update(_name_prefix_fields(CORRESPONDENCE, legal_form))
    return fields


def _delivery_manual(request: RegistrationRequest, delivery: DeliveryAddress) -> dict[str, str]:
    address = delivery.address or request.applicant.address
    contact = delivery.contact
    fields = {
        "dpmaViewItemIndex": "0",
        f"{ADDRESS_COMBO}_input": NEW_ADDRESS_OPTION,
        f"{CORRESPONDENCE}:addressEntityType": delivery.type.value,
    }
    fields.update(
        _correspondence_address(
            address,
            contact.email if contact else request.email,
            (contact.telephone or "") if contact else "",
            (contact.fax or "") if contact else "",
        )
    )

    if delivery.type == ApplicantType.NATURAL:
        fields[f"{CORRESPONDENCE}:lastName:valueHolder"] = delivery.last_name
        fields[f"{CORRESPONDENCE}:firstName:valueHolder"] = delivery.first_name or ""
        fields[f"{CORRESPONDENCE}:nameSuffix:valueHolder"] = ""
        fields.update(_name_prefix_fields(CORRESPONDENCE, delivery.salutation))
    else:
        fields[f"{CORRESPONDENCE}:lastName:valueHolder"] = delivery.company_name or ""
        legal_form = map_legal_form(delivery.legal_form) if delivery.legal_form else None
        fields.update(_name_prefix_fields(CORRESPONDENCE, legal_form))
    return fields


def delivery_fields(request: RegistrationRequest) -> dict[str, str]:
    if uses_applicant_address(request):
        return _delivery_from_applicant(request)
    return _delivery_manual(request, request.delivery_address)


def mark_fields(request: RegistrationRequest) -> dict[str, str]:
    trademark = request.trademark
    feature = mark_feature_value(trademark.type)
    fields = {
        "dpmaViewItemIndex": "0",
        "editorPanel_active": "null",
        f"{MARK_FEATURE_COMBO}_input": feature,
        "mark-docRefNumber:valueHolder": request.internal_reference or "",
    }
    if trademark.type == MarkType.WORD:
        fields["mark-verbalText:valueHolder"] = trademark.text or ""
    if trademark.type in IMAGE_MARK_TYPES:
        if trademark.color_elements:
            fields["mark-blackwhite-chkbox:valueHolder_input"] = "on"
            fields["mark-colorClaimedText:valueHolder"] = ", ".join(trademark.color_elements)
        if trademark.has_non_latin_characters:
            fields["mark-translation-chkbox:valueHolder_input"] = "on"
    return fields


def requested_lead_class(request: RegistrationRequest) -> int | None:
    if request.lead_class is not None:
        return request.lead_class
    if request.nice_classes:
        return request.nice_classes[0].class_number
    return None


def classification_fields(request: RegistrationRequest) -> dict[str, str]:
    lead = requested_lead_class(request)
    return {LEAD_CLASS_FIELD: str(lead)} if lead is not None else {}


def options_fields(request: RegistrationRequest) -> dict[str, str]:
    options = request.options
    return {field: "on" for attr, field in OPTION_CHECKBOXES.items() if getattr(options, attr)}


def payment_fields(request: RegistrationRequest) -> dict[str, str]:
    return {PAYMENT_FIELD: request.payment_method.value}


def confirmation_fields(request: RegistrationRequest) -> dict[str, str]:
    return {
        "chBoxConfirmText_input": "on",
        "applicantNameTextField:valueHolder": request.sender_name,
    }


FIELD_BUILDERS: dict[int, Callable[[RegistrationRequest], dict[str, str]]] = {
    1: applicant_fields,
    2: representative_fields,
    3: delivery_fields,
    4: mark_fields,
    5: classification_fields,
    6: options_fields,
    7: payment_fields,
    8: confirmation_fields,
}


def build_field_set(stage_number: int, request: RegistrationRequest) -> dict[str, str]:
    """Fields a stage submits, derived from the request alone."""
    builder = FIELD_BUILDERS.get(stage_number)
    if builder is None:
        raise ValueError(f"Unknown stage: {stage_number}")
    return builder(request)
