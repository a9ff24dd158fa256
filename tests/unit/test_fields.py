import pytest

from dpma_direkt.core.errors import UnsupportedMarkType
from dpma_direkt.stages.fields import build_field_set, requested_lead_class
from dpma_direkt.stages.payment import PaymentStage


@pytest.mark.parametrize("stage_number", range(1, 9))
def test_field_sets_are_deterministic(make_request, stage_number):
    first = build_field_set(stage_number, make_request())
    second = build_field_set(stage_number, make_request())

    assert first == second
    assert list(first.items()) == list(second.items())


def test_natural_applicant_fields(make_request):
    fields = build_field_set(1, make_request())

    assert fields["daf-applicant:addressEntityType"] == "natural"
    assert fields["daf-applicant:namePrefix:valueHolder_input"] == "Herr"
    assert fields["daf-applicant:lastName:valueHolder"] == "Mustermann"
    assert fields["daf-applicant:firstName:valueHolder"] == "Max"
    assert fields["daf-applicant:zip:valueHolder"] == "80331"
    assert fields["daf-applicant:country:valueHolder_input"] == "DE"
    assert fields["daf-applicant:daf-declaration:nationalitySanctionLine"] == "FALSE"
    assert fields["daf-applicant:daf-declaration:evidenceProofCheckbox_input"] == "on"


def test_legal_applicant_uses_long_legal_form(make_request):
    request = make_request(
        applicant={
            "type": "legal",
            "company_name": "Lichtblick Software",
            "legal_form": "GmbH",
            "address": {"street": "Hafenstraße 5", "zip": "20457", "city": "Hamburg", "country": "DE"},
        }
    )

    fields = build_field_set(1, request)

    assert fields["daf-applicant:addressEntityType"] == "legal"
    assert fields["daf-applicant:lastName:valueHolder"] == "Lichtblick Software"
    assert fields["daf-applicant:namePrefix:valueHolder_input"] == "Gesellschaft mit beschränkter Haftung (GmbH)"
    assert fields["daf-applicant:namePrefix:valueHolder_editableInput"] == "Gesellschaft mit beschränkter Haftung (GmbH)"


def test_representative_fields_are_empty(make_request):
    assert build_field_set(2, make_request()) == {}


def test_delivery_copies_applicant_by_default(make_request):
    fields = build_field_set(3, make_request())

    assert fields["daf-correspondence:address-ref-combo-a:valueHolder_input"] == "1 Anmelder Mustermann "
    assert fields["daf-correspondence:street:valueHolder"] == "Musterstraße 1"
    assert fields["daf-correspondence:email:valueHolder"] == "max@example.com"
    assert fields["editorPanel_active"] == "null"


def test_manual_delivery_without_legal_form_sends_name_prefix_triple(make_request):
    request = make_request(
        delivery_address={
            "copy_from_applicant": False,
            "type": "legal",
            "company_name": "Kanzlei Nord",
            "address": {"street": "Elbchaussee 1", "zip": "22763", "city": "Hamburg", "country": "DE"},
            "contact": {"email": "post@kanzlei-nord.de", "telephone": "040 123"},
        }
    )

    fields = build_field_set(3, request)

    assert fields["daf-correspondence:address-ref-combo-a:valueHolder_input"] == "Neue Adresse"
    assert fields["daf-correspondence:addressEntityType"] == "legal"
    assert fields["daf-correspondence:lastName:valueHolder"] == "Kanzlei Nord"
    assert fields["daf-correspondence:namePrefix:valueHolder_focus"] == ""
    assert fields["daf-correspondence:namePrefix:valueHolder_editableInput"] == " "
    assert fields["daf-correspondence:phone:valueHolder"] == "040 123"


def test_word_mark_fields(make_request):
    fields = build_field_set(4, make_request(internal_reference="AZ-7"))

    assert fields["markFeatureCombo:valueHolder_input"] == "word"
    assert fields["mark-verbalText:valueHolder"] == "Lichtblick"
    assert fields["mark-docRefNumber:valueHolder"] == "AZ-7"


def test_combined_mark_colour_claim(make_request):
    request = make_request(
        trademark={"type": "combined", "image_data": "aGVsbG8=", "color_elements": ["blau", "gelb"]}
    )

    fields = build_field_set(4, request)

    assert fields["markFeatureCombo:valueHolder_input"] == "figurative"
    assert fields["mark-colorClaimedText:valueHolder"] == "blau, gelb"
    assert "mark-verbalText:valueHolder" not in fields


def test_unsupported_mark_type(make_request):
    with pytest.raises(UnsupportedMarkType) as excinfo:
        build_field_set(4, make_request(trademark={"type": "sound"}))

    assert excinfo.value.stage == 4


def test_lead_class_defaults_to_first_class(make_request):
    request = make_request(nice_classes=[{"class_number": 42, "terms": []}, {"class_number": 9, "terms": []}])

    assert requested_lead_class(request) == 42
    assert build_field_set(5, request) == {"tmclassEditorGt:leadingClassCombo_input": "42"}
    assert requested_lead_class(make_request(lead_class=9)) == 9


def test_options_payment_and_confirmation(make_request):
    request = make_request(options={"accelerated_examination": True}, payment_method="SEPASDD")

    assert build_field_set(6, request) == {"acceleratedExamination:valueHolder_input": "on"}
    assert build_field_set(7, request) == {"paymentForm:paymentTypeSelectOneRadio": "SEPASDD"}
    assert build_field_set(8, request) == {
        "chBoxConfirmText_input": "on",
        "applicantNameTextField:valueHolder": "Max Mustermann",
    }


def test_unknown_stage(make_request):
    with pytest.raises(ValueError):
        build_field_set(9, make_request())


def test_sepa_payment_sends_only_the_payment_type(make_request):
    request = make_request(
        payment_method="SEPASDD",
        sepa_details={"mandate_reference_number": "M-1", "mandate_type": "single", "copy_from_applicant": True},
    )

    assert PaymentStage().build_fields(request) == {"paymentForm:paymentTypeSelectOneRadio": "SEPASDD"}
