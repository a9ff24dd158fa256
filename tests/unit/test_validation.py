from dpma_direkt.services.validation import validate_registration_request


def _fields(result) -> list[str]:
    return [error.field for error in result.errors]


def test_valid_request(make_payload):
    result = validate_registration_request(make_payload())

    assert result.valid is True
    assert result.errors == []


def test_non_object_body():
    result = validate_registration_request(["not", "a", "dict"])

    assert result.valid is False
    assert _fields(result) == ["request"]


def test_reports_every_problem_at_once(make_payload):
    payload = make_payload(
        email="not-an-email",
        trademark={"type": "word", "text": ""},
        sender_name=" ",
    )

    result = validate_registration_request(payload)

    assert result.valid is False
    assert _fields(result) == ["email", "trademark.text", "sender_name"]


def test_natural_person_needs_names_and_sanctions(make_payload):
    payload = make_payload(applicant={"first_name": "", "last_name": None})
    del payload["sanctions"]

    result = validate_registration_request(payload)

    assert _fields(result) == ["applicant.first_name", "applicant.last_name", "sanctions"]


def test_legal_entity_needs_company_name_but_no_sanctions(make_payload):
    payload = make_payload(
        applicant={
            "type": "legal",
            "company_name": "",
            "address": {"street": "Hafenstraße 5", "zip": "20457", "city": "Hamburg", "country": "DE"},
        }
    )
    del payload["sanctions"]

    assert _fields(validate_registration_request(payload)) == ["applicant.company_name"]


def test_address_rules(make_payload):
    payload = make_payload(applicant={"address": {"street": "", "zip": "8033", "city": "München", "country": "de"}})

    result = validate_registration_request(payload)

    assert _fields(result) == ["applicant.address.street", "applicant.address.country"]

    german = validate_registration_request(make_payload(applicant={"address": {"zip": "8033"}}))
    assert _fields(german) == ["applicant.address.zip"]

    austrian = validate_registration_request(make_payload(applicant={"address": {"zip": "1010", "country": "AT"}}))
    assert austrian.valid is True


def test_trademark_rules(make_payload):
    too_long = validate_registration_request(make_payload(trademark={"text": "x" * 501}))
    assert _fields(too_long) == ["trademark.text"]

    for mark_type in ("figurative", "combined", "3d"):
        result = validate_registration_request(make_payload(trademark={"type": mark_type}))
        assert _fields(result) == ["trademark.image_data"]

    unknown = validate_registration_request(make_payload(trademark={"type": "smell"}))
    assert _fields(unknown) == ["trademark.type"]


def test_nice_class_rules(make_payload):
    payload = make_payload(
        nice_classes=[{"class_number": 9}, {"class_number": 9}, {"class_number": 46}, {"class_number": True}],
        lead_class=35,
    )

    result = validate_registration_request(payload)

    assert _fields(result) == [
        "nice_classes[1].class_number",
        "nice_classes[2].class_number",
        "nice_classes[3].class_number",
        "lead_class",
    ]
    assert "Duplicate" in result.errors[0].message
    assert _fields(validate_registration_request(make_payload(nice_classes=[]))) == ["nice_classes"]


def test_sepa_rules(make_payload):
    missing = validate_registration_request(make_payload(payment_method="SEPASDD"))
    assert _fields(missing) == ["sepa_details"]

    incomplete = validate_registration_request(
        make_payload(payment_method="SEPASDD", sepa_details={"mandate_type": "monthly"})
    )
    assert _fields(incomplete) == [
        "sepa_details.mandate_reference_number",
        "sepa_details.mandate_type",
        "sepa_details.contact",
    ]

    copied = validate_registration_request(
        make_payload(
            payment_method="SEPASDD",
            sepa_details={"mandate_reference_number": "M-1", "mandate_type": "single", "copy_from_applicant": True},
        )
    )
    assert copied.valid is True

    bad_method = validate_registration_request(make_payload(payment_method="CASH"))
    assert _fields(bad_method) == ["payment_method"]
