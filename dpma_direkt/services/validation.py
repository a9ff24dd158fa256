import re
from typing import Any

from pydantic import BaseModel, Field

from dpma_direkt.core.enums import ApplicantType, MarkType, PaymentMethod, SepaMandateType

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
COUNTRY_PATTERN = re.compile(r"^[A-Z]{2}$")
GERMAN_ZIP_PATTERN = re.compile(r"^\d{5}$")

WORD_MARK_MAX_LENGTH = 500
IMAGE_MARK_TYPES = {MarkType.FIGURATIVE.value, MarkType.COMBINED.value, MarkType.THREE_DIMENSIONAL.value}
MARK_TYPES = {item.value for item in MarkType}
PAYMENT_METHODS = {item.value for item in PaymentMethod}
MANDATE_TYPES = {item.value for item in SepaMandateType}


class FieldError(BaseModel):
    field: str
    message: str


class ValidationResult(BaseModel):
    valid: bool
    errors: list[FieldError] = Field(default_factory=list)


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class _Collector:
    def __init__(self) -> None:
        self.errors: list[FieldError] = []

    def add(self, field: str, message: str) -> None:
        self.errors.append(FieldError(field=field, message=message))


def _validate_address(address: Any, prefix: str, out: _Collector) -> None:
    if not isinstance(address, dict):
        out.add(prefix, "Address is required")
        return
    for key in ("street", "zip", "city", "country"):
        if _blank(address.get(key)):
            out.add(f"{prefix}.{key}", f"{key.capitalize()} is required")

    country = address.get("country")
    if not _blank(country) and not COUNTRY_PATTERN.match(country):
        out.add(f"{prefix}.country", "Country must be a two-letter uppercase ISO code")
    zip_code = address.get("zip")
    if country == "DE" and not _blank(zip_code) and not GERMAN_ZIP_PATTERN.match(zip_code):
        out.add(f"{prefix}.zip", "German postal codes have exactly five digits")


def _validate_applicant(payload: dict[str, Any], out: _Collector) -> None:
    applicant = payload.get("applicant")
    if not isinstance(applicant, dict):
        out.add("applicant", "Applicant is required")
        return

    applicant_type = applicant.get("type")
    if applicant_type == ApplicantType.NATURAL.value:
        if _blank(applicant.get("first_name")):
            out.add("applicant.first_name", "First name is required")
        if _blank(applicant.get("last_name")):
            out.add("applicant.last_name", "Last name is required")
        _validate_sanctions(payload.get("sanctions"), out)
    elif applicant_type == ApplicantType.LEGAL.value:
        if _blank(applicant.get("company_name")):
            out.add("applicant.company_name", "Company name is required")
    else:
        out.add("applicant.type", "Applicant type must be 'natural' or 'legal'")

    _validate_address(applicant.get("address"), "applicant.address", out)


def _validate_sanctions(sanctions: Any, out: _Collector) -> None:
    if not isinstance(sanctions, dict):
        out.add("sanctions", "Sanctions declaration is required for natural persons")
        return
    for key in ("has_russian_nationality", "has_russian_residence"):
        if not isinstance(sanctions.get(key), bool):
            out.add(f"sanctions.{key}", "Must be true or false")


def _validate_trademark(trademark: Any, out: _Collector) -> None:
    if not isinstance(trademark, dict):
        out.add("trademark", "Trademark is required")
        return
    mark_type = trademark.get("type")
    if mark_type not in MARK_TYPES:
        out.add("trademark.type", f"Invalid trademark type: {mark_type}")
        return
    if mark_type == MarkType.WORD.value:
        text = trademark.get("text")
        if _blank(text):
            out.add("trademark.text", "Text is required for word marks")
        elif len(text) > WORD_MARK_MAX_LENGTH:
            out.add("trademark.text", f"Text must not exceed {WORD_MARK_MAX_LENGTH} characters")
    if mark_type in IMAGE_MARK_TYPES and _blank(trademark.get("image_data")):
        out.add("trademark.image_data", f"Image data is required for {mark_type} marks")


def _validate_nice_classes(payload: dict[str, Any], out: _Collector) -> None:
    classes = payload.get("nice_classes")
    if not isinstance(classes, list) or not classes:
        out.add("nice_classes", "At least one Nice class is required")
        return

    seen: set[int] = set()
    for index, selection in enumerate(classes):
        number = selection.get("class_number") if isinstance(selection, dict) else None
        field = f"nice_classes[{index}].class_number"
        if not _is_int(number) or not 1 <= number <= 45:
            out.add(field, "Class number must be an integer between 1 and 45")
            continue
        if number in seen:
            out.add(field, f"Duplicate Nice class: {number}")
        seen.add(number)

    lead = payload.get("lead_class")
    if lead is not None and (not _is_int(lead) or lead not in seen):
        out.add("lead_class", "Lead class must be one of the selected classes")


def _validate_payment(payload: dict[str, Any], out: _Collector) -> None:
    method = payload.get("payment_method")
    if method not in PAYMENT_METHODS:
        out.add("payment_method", f"Payment method must be one of {sorted(PAYMENT_METHODS)}")
        return
    if method != PaymentMethod.SEPA_DIRECT_DEBIT.value:
        return

    sepa = payload.get("sepa_details")
    if not isinstance(sepa, dict):
        out.add("sepa_details", "SEPA details are required for direct debit")
        return
    if _blank(sepa.get("mandate_reference_number")):
        out.add("sepa_details.mandate_reference_number", "Mandate reference number is required")
    if sepa.get("mandate_type") not in MANDATE_TYPES:
        out.add("sepa_details.mandate_type", f"Mandate type must be one of {sorted(MANDATE_TYPES)}")
    if not sepa.get("copy_from_applicant") and not isinstance(sepa.get("contact"), dict):
        out.add("sepa_details.contact", "Contact is required unless copied from the applicant")


def validate_registration_request(payload: Any) -> ValidationResult:
    """Pre-flight check of a raw request body; reports every problem, not just the first."""
    out = _Collector()
    if not isinstance(payload, dict):
        out.add("request", "Request body must be a JSON object")
        return ValidationResult(valid=False, errors=out.errors)

    _validate_applicant(payload, out)

    email = payload.get("email")
    if _blank(email):
        out.add("email", "Email is required")
    elif not EMAIL_PATTERN.match(email):
        out.add("email", "Email address is invalid")

    _validate_trademark(payload.get("trademark"), out)
    _validate_nice_classes(payload, out)
    _validate_payment(payload, out)

    if _blank(payload.get("sender_name")):
        out.add("sender_name", "Sender name is required")

    return ValidationResult(valid=not out.errors, errors=out.errors)
