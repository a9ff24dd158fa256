from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from dpma_direkt.api import deps, routes_trademark
from dpma_direkt.api.main import app
from dpma_direkt.core.enums import PaymentMethod
from dpma_direkt.core.errors import TaxonomyLoadError
from dpma_direkt.core.models import PaymentInfo, RegistrationFailure, RegistrationSuccess
from dpma_direkt.services.taxonomy import TaxonomyService

HEADERS = {"X-API-Key": "change-me"}

TREE = {
    "Text": "Begriffe",
    "Level": 0,
    "Items": [
        {
            "Text": "Klasse 9",
            "ClassNumber": 9,
            "ConceptId": "c9",
            "Level": 1,
            "ItemsSize": 1,
            "Items": [
                {
                    "Text": "Computer und Computerperipheriegeräte",
                    "ClassNumber": 9,
                    "ConceptId": "c9-1",
                    "Level": 2,
                    "ItemsSize": 2,
                    "Items": [
                        {"Text": "Computersoftware", "ClassNumber": 9, "ConceptId": "c9-1-1", "Level": 3},
                        {"Text": "Computerhardware", "ClassNumber": 9, "ConceptId": "c9-1-2", "Level": 3},
                    ],
                }
            ],
        },
        {
            "Text": "Klasse 42",
            "ClassNumber": 42,
            "ConceptId": "c42",
            "Level": 1,
            "ItemsSize": 1,
            "Items": [
                {"Text": "Entwicklung von Software", "ClassNumber": 42, "ConceptId": "c42-1", "Level": 2},
            ],
        },
    ],
}


@pytest.fixture
def client(monkeypatch):
    taxonomy = TaxonomyService()
    taxonomy.load_tree(TREE)
    app.dependency_overrides[deps.get_taxonomy] = lambda: taxonomy
    monkeypatch.setattr(deps, "get_rate_limiter", lambda: SimpleNamespace(allow=lambda *args: True))
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _success() -> RegistrationSuccess:
    return RegistrationSuccess(
        confirmation_id="30 2026 012 345.6",
        reference_id="2026101700001",
        transaction_id="tx-1",
        submission_time="2026-10-17T10:15:00",
        payment=PaymentInfo(method=PaymentMethod.BANK_TRANSFER, total_amount=290.0),
    )


def test_healthz_and_index(client):
    assert client.get("/healthz").json()["status"] == "ok"

    body = client.get("/api").json()
    assert body["success"] is True
    assert "POST /api/trademark/register" in body["data"]["endpoints"]


def test_taxonomy_search_filters_by_class(client):
    response = client.get("/api/taxonomy/search", params={"q": "Computersoftware", "class": 9, "leaf_only": True})

    body = response.json()
    assert response.status_code == 200
    assert body["data"]["results"][0]["text"] == "Computersoftware"
    assert all(entry["class_number"] == 9 for entry in body["data"]["results"])


def test_taxonomy_search_rejects_short_query(client):
    response = client.get("/api/taxonomy/search", params={"q": "a"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"


def test_taxonomy_search_rejects_class_out_of_range(client):
    response = client.get("/api/taxonomy/search", params={"q": "Software", "class": 46})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_taxonomy_validate_term(client):
    found = client.get("/api/taxonomy/validate", params={"term": "computersoftware", "class": 9}).json()["data"]
    missing = client.get("/api/taxonomy/validate", params={"term": "Teekannen", "class": 9}).json()["data"]

    assert found["valid"] is True
    assert found["entry"]["concept_id"] == "c9-1-1"
    assert missing["valid"] is False
    assert missing["error"].startswith('Term "Teekannen" not found')


def test_taxonomy_validate_nice_classes(client):
    response = client.post(
        "/api/taxonomy/validate",
        json={"nice_classes": [{"class_number": 9, "terms": ["Computersoftware", "Teekannen"]}]},
    )

    data = response.json()["data"]
    assert data["valid"] is False
    assert data["class_results"]["9"]["valid"] is False
    assert len(data["errors"]) == 1
    assert data["errors"][0].startswith("Class 9: ")


def test_taxonomy_classes_and_stats(client):
    classes = client.get("/api/taxonomy/classes").json()["data"]["classes"]
    assert classes == [
        {"class_number": 9, "header": "Klasse 9", "entry_count": 4},
        {"class_number": 42, "header": "Klasse 42", "entry_count": 2},
    ]

    detail = client.get("/api/taxonomy/classes/9").json()["data"]
    assert detail["header"]["text"] == "Klasse 9"
    assert [entry["text"] for entry in detail["categories"]] == ["Computer und Computerperipheriegeräte"]

    assert client.get("/api/taxonomy/classes/46").status_code == 400

    stats = client.get("/api/taxonomy/stats").json()["data"]
    assert stats["total_entries"] == 6
    assert stats["leaf_count"] == 3


def test_register_requires_api_key(client, make_payload):
    response = client.post("/api/trademark/register", json=make_payload())

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_register_reports_every_validation_error(client, make_payload):
    payload = make_payload(email="not-an-email", sender_name="")

    response = client.post("/api/trademark/register", json=payload, headers=HEADERS)

    body = response.json()
    assert response.status_code == 400
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert {detail["field"] for detail in body["error"]["details"]} == {"email", "sender_name"}


def test_register_success(client, make_payload, monkeypatch):
    captured = {}

    def fake_run(request):
        captured["request"] = request
        return _success()

    monkeypatch.setattr(routes_trademark, "run_registration", fake_run)

    response = client.post("/api/trademark/register", json=make_payload(), headers=HEADERS)

    body = response.json()
    assert response.status_code == 201
    assert body["data"]["confirmation_id"] == "30 2026 012 345.6"
    assert body["data"]["warnings"] == []
    assert captured["request"].trademark.text == "Lichtblick"


def test_register_failure_maps_to_error_envelope(client, make_payload, monkeypatch):
    failure = RegistrationFailure(error_code="ServerErrorPage", message="Server error page at stage 3", failed_stage=3)
    monkeypatch.setattr(routes_trademark, "run_registration", lambda request: failure)

    response = client.post("/api/trademark/register", json=make_payload(), headers=HEADERS)

    error = response.json()["error"]
    assert response.status_code == 500
    assert error["code"] == "ServerErrorPage"
    assert error["details"]["failed_stage"] == 3


def test_register_rate_limited(client, make_payload, monkeypatch):
    monkeypatch.setattr(deps, "get_rate_limiter", lambda: SimpleNamespace(allow=lambda *args: False))

    response = client.post("/api/trademark/register", json=make_payload(), headers=HEADERS)

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMITED"


def test_register_async_queues_task(client, make_payload, monkeypatch):
    queued = []

    def fake_delay(payload):
        queued.append(payload)
        return SimpleNamespace(id="task-42")

    monkeypatch.setattr(routes_trademark.register_trademark, "delay", fake_delay)

    response = client.post("/api/trademark/register/async", json=make_payload(), headers=HEADERS)

    assert response.status_code == 202
    assert response.json()["data"] == {"task_id": "task-42", "status": "PENDING"}
    assert queued[0]["payment_method"] == "UEBERWEISUNG"


def test_missing_taxonomy_data_is_unavailable(client):
    def broken():
        raise TaxonomyLoadError("Failed to load taxonomy: no such file")

    app.dependency_overrides[deps.get_taxonomy] = broken

    response = client.get("/api/taxonomy/stats")

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "TaxonomyLoadError"
