from typing import Any

from dpma_direkt.core.errors import FinalSubmitDisabled

PII_FIELDS = {
    "email",
    "telephone",
    "phone",
    "fax",
    "first_name",
    "last_name",
    "street",
    "address_line1",
    "address_line2",
    "image_data",
    "mandate_reference_number",
    "iban",
    "api_key",
    "token",
}


def redact_sensitive(payload: dict[str, Any]) -> dict[str, Any]:
    redacted: dict[str, Any] = {}
    for key, value in payload.items():
        if key.lower() in PII_FIELDS:
            redacted[key] = "[REDACTED]"
        elif isinstance(value, dict):
            redacted[key] = redact_sensitive(value)
        elif isinstance(value, list):
            redacted[key] = [redact_sensitive(item) if isinstance(item, dict) else item for item in value]
        else:
            redacted[key] = value
    return redacted


def assert_final_submit_allowed(allowed: bool) -> None:
    if not allowed:
        raise FinalSubmitDisabled(
            "Final submission is disabled; set ALLOW_FINAL_SUBMIT=true to file for real", stage=8
        )
