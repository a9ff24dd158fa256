import io
import re
import zipfile
from pathlib import Path
from urllib.parse import quote

from pydantic import BaseModel

from dpma_direkt.core.config import Settings, get_settings
from dpma_direkt.core.errors import FinalizationError
from dpma_direkt.core.logging import get_logger
from dpma_direkt.core.models import (
    BankDetails,
    DownloadedDocument,
    FeeItem,
    PaymentInfo,
)
from dpma_direkt.core.enums import PaymentMethod
from dpma_direkt.protocol.transport import HttpTransport

logger = get_logger(__name__)

VERSAND_SUCCESS = "VERSAND_SUCCESS"
JSON_ACCEPT = "application/json, text/plain, */*"

APPLICATION_FEE = FeeItem(
    code="331000",
    description="Anmeldeverfahren - bei elektronischer Anmeldung",
    amount=290.00,
)
FEE_RECIPIENT = "Bundeskasse"
FEE_IBAN = "DE84 7000 0000 0070 0010 54"
FEE_BIC = "MARKDEF1700"


class VersandResult(BaseModel):
    status: str
    akz: str
    drn: str
    transaction_id: str
    creation_time: str


def extract_documents(archive: bytes) -> list[DownloadedDocument]:
    documents: list[DownloadedDocument] = []
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as bundle:
            for info in bundle.infolist():
                if info.is_dir():
                    continue
                mime_type = "application/pdf" if info.filename.lower().endswith(".pdf") else "application/octet-stream"
                documents.append(
                    DownloadedDocument(filename=info.filename, data=bundle.read(info), mime_type=mime_type)
                )
    except (zipfile.BadZipFile, OSError) as exc:
        logger.warning("receipt archive could not be extracted", extra={"extra": {"error": str(exc)}})
        return []
    return documents


def receipt_file_name(file_number: str) -> str:
    return f"{re.sub(r'[^a-zA-Z0-9.-]', '_', file_number)}_documents.zip"


def build_fees() -> list[FeeItem]:
    return [APPLICATION_FEE]


def build_payment(method: PaymentMethod, file_number: str) -> PaymentInfo:
    total = sum(fee.amount for fee in build_fees())
    bank_details = None
    if method == PaymentMethod.BANK_TRANSFER:
        bank_details = BankDetails(recipient=FEE_RECIPIENT, iban=FEE_IBAN, bic=FEE_BIC, reference=file_number)
    return PaymentInfo(method=method, total_amount=total, currency="EUR", bank_details=bank_details)


class VersandClient:
    """Dispatch service that turns a confirmed wizard run into a filed application."""

    def __init__(self, transport: HttpTransport, settings: Settings | None = None) -> None:
        self.transport = transport
        self.settings = settings or get_settings()

    def _query(self, transaction_id: str) -> str:
        return f"flowId={self.settings.dpma_flow_id}&transactionId={quote(transaction_id, safe='')}"

    def finalize(self, transaction_id: str) -> VersandResult:
        base = self.settings.dpma_versand_path
        landing = f"{base}/index.html?{self._query(transaction_id)}"
        self.transport.get(
            landing,
            headers={"Referer": self.transport.absolute(f"{self.settings.dpma_editor_path}/flowReturn.xhtml")},
        )
        response = self.transport.post(
            f"{base}/versand?{self._query(transaction_id)}",
            content=b"",
            headers={
                "Accept": JSON_ACCEPT,
                "Origin": self.settings.dpma_base_url,
                "Referer": self.transport.absolute(landing),
            },
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise FinalizationError("Versand returned a non-JSON response") from exc
        if not isinstance(payload, dict):
            raise FinalizationError("Versand returned an unexpected JSON payload")

        status = payload.get("status")
        if status != VERSAND_SUCCESS:
            message = (payload.get("validationResult") or {}).get("userMessage") or "Unknown error"
            raise FinalizationError(f"Versand failed: {message}")

        logger.info("versand completed", extra={"extra": {"akz": payload.get("akz")}})
        return VersandResult(
            status=status,
            akz=str(payload.get("akz") or ""),
            drn=str(payload.get("drn") or ""),
            transaction_id=str(payload.get("transactionId") or transaction_id),
            creation_time=str(payload.get("creationTime") or ""),
        )

    def fetch_documents(self, transaction_id: str) -> bytes:
        response = self.transport.get(
            f"{self.settings.dpma_versand_path}/versand/anlagen?encryptedTransactionId={quote(transaction_id, safe='')}",
            headers={
                "Accept": JSON_ACCEPT,
                "Referer": self.transport.absolute(f"{self.settings.dpma_versand_path}/index.html"),
            },
        )
        return response.content

    def save_receipt_zip(self, file_number: str, archive: bytes) -> Path:
        directory = Path(self.settings.receipts_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / receipt_file_name(file_number)
        path.write_bytes(archive)
        logger.info("receipt archive saved", extra={"extra": {"path": str(path)}})
        return path
