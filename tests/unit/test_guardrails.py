import pytest

from dpma_direkt.core.errors import FinalSubmitDisabled
from dpma_direkt.workflow.policies.guardrails import assert_final_submit_allowed, redact_sensitive


def test_redact_sensitive_walks_nested_payloads():
    payload = {
        "applicant": {"type": "natural", "first_name": "Max", "address": {"street": "Musterstraße 1", "city": "München"}},
        "email": "max@example.com",
        "nice_classes": [{"class_number": 9}],
        "trademark": {"type": "figurative", "image_data": "aGVsbG8="},
    }

    redacted = redact_sensitive(payload)

    assert redacted["applicant"]["first_name"] == "[REDACTED]"
    assert redacted["applicant"]["address"] == {"street": "[REDACTED]", "city": "München"}
    assert redacted["email"] == "[REDACTED]"
    assert redacted["nice_classes"] == [{"class_number": 9}]
    assert redacted["trademark"]["image_data"] == "[REDACTED]"
    assert payload["email"] == "max@example.com"


def test_final_submit_guard():
    assert_final_submit_allowed(True)

    with pytest.raises(FinalSubmitDisabled) as excinfo:
        assert_final_submit_allowed(False)

    assert excinfo.value.stage == 8
