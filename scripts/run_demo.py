import argparse
import json
import logging
from pathlib import Path

import yaml

from dpma_direkt.core.config import get_settings
from dpma_direkt.core.logging import setup_logging
from dpma_direkt.core.models import RegistrationFailure, RegistrationRequest
from dpma_direkt.services.mappers import country_display_name
from dpma_direkt.services.validation import validate_registration_request
from dpma_direkt.workflow.graph import run_registration


def load_request(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text) or {}


def main() -> None:
    parser = argparse.ArgumentParser(description="File one trademark application with DPMAdirektWeb")
    parser.add_argument("request", type=Path, help="YAML or JSON registration request")
    parser.add_argument("--validate-only", action="store_true")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(logging.DEBUG if settings.debug else logging.INFO)

    payload = load_request(args.request)
    validation = validate_registration_request(payload)
    if not validation.valid:
        print("Request is invalid:")
        for error in validation.errors:
            print(f"  {error.field}: {error.message}")
        raise SystemExit(2)
    if args.validate_only:
        print("Request is valid.")
        return

    if not settings.allow_final_submit:
        print("ALLOW_FINAL_SUBMIT is off: stages 1-7 run, the final submission is skipped.")

    request = RegistrationRequest.model_validate(payload)
    applicant = request.applicant
    print(f"Applicant: {applicant.display_name} ({country_display_name(applicant.address.country)})")

    result = run_registration(request)
    if isinstance(result, RegistrationFailure):
        print(f"Registration failed at stage {result.failed_stage}: [{result.error_code}] {result.message}")
        for field_error in result.field_errors:
            print(f"  {field_error}")
        raise SystemExit(1)

    print(f"Filed: akz={result.confirmation_id} drn={result.reference_id}")
    print(f"Fee: {result.payment.total_amount:.2f} {result.payment.currency} ({result.payment.method.value})")
    for document in result.documents:
        print(f"  document {document.filename} ({len(document.data)} bytes)")
    if result.receipt_file_path:
        print(f"Receipt archive: {result.receipt_file_path}")
    for warning in result.warnings:
        print(f"Warning: {warning}")


if __name__ == "__main__":
    main()
