import copy
from typing import Any, Callable

import pytest

from dpma_direkt.core.config import Settings
from dpma_direkt.core.models import RegistrationRequest

BASE_PAYLOAD: dict[str, Any] = {
    "applicant": {
        "type": "natural",
        "salutation": "Herr",
        "first_name": "Max",
        "last_name": "Mustermann",
        "address": {"street": "Musterstraße 1", "zip": "80331", "city": "München", "country": "DE"},
    },
    "sanctions": {"has_russian_nationality": False, "has_russian_residence": False},
    "email": "max@example.com",
    "trademark": {"type": "word", "text": "Lichtblick"},
    "nice_classes": [{"class_number": 9, "terms": []}],
    "payment_method": "UEBERWEISUNG",
    "sender_name": "Max Mustermann",
}


def _merge(target: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value
    return target


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    def factory(**overrides: Any) -> dict[str, Any]:
        return _merge(copy.deepcopy(BASE_PAYLOAD), overrides)

    return factory


@pytest.fixture
def make_request(make_payload) -> Callable[..., RegistrationRequest]:
    def factory(**overrides: Any) -> RegistrationRequest:
        return RegistrationRequest.model_validate(make_payload(**overrides))

    return factory


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        receipts_dir=tmp_path / "receipts",
        debug_dir=tmp_path / "debug",
        allow_final_submit=True,
    )
