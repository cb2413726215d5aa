"""
Pydantic models for payment-confirmation OCR data.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


EXPORT_COLUMNS = [
    "Date",
    "Operation Number",
    "Amount",
    "Origin Account",
    "Destination Account",
    "Recipient",
    "Description",
]

# Labels written to the CSV header row, in EXPORT_COLUMNS order.
EXPORT_HEADERS = [
    "Fecha",
    "Numero de operacion",
    "Monto",
    "Cuenta Origen",
    "Cuenta Destino",
    "Destinatario",
    "Descripcion (nombre del archivo)",
]


class InputImage(BaseModel):
    """Raw image payload plus the name it was uploaded with."""
    name: str = ""
    data: bytes

    def __repr__(self):
        return f"InputImage('{self.name}', {len(self.data)} bytes)"


class RecognitionOutcome(BaseModel):
    """Result of running OCR over one image."""
    status: str  # "recognized" or "failed"
    text: str = ""
    reason: Optional[str] = None

    @classmethod
    def recognized(cls, text: str) -> "RecognitionOutcome":
        return cls(status="recognized", text=text or "")

    @classmethod
    def failed(cls, reason: str) -> "RecognitionOutcome":
        return cls(status="failed", reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "recognized"


class TransactionRecord(BaseModel):
    """One row of the export, built from a single image."""
    model_config = ConfigDict(frozen=True)

    date: str
    operation_number: str
    amount: str
    origin_account: str
    destination_account: str
    recipient: str
    description: str = ""
    status: str = "extracted"  # "extracted" or "failed"

    @field_validator(
        'date', 'operation_number', 'amount',
        'origin_account', 'destination_account', 'recipient'
    )
    @classmethod
    def validate_populated(cls, v):
        """Missing data must be a sentinel, never an empty value."""
        if not v:
            raise ValueError("Field must carry a value or a sentinel")
        return v

    def as_row(self) -> List[str]:
        """Return the exported values in column order."""
        return [
            self.date,
            self.operation_number,
            self.amount,
            self.origin_account,
            self.destination_account,
            self.recipient,
            self.description,
        ]


class BatchResult(BaseModel):
    """Ordered records for a whole batch."""
    records: List[TransactionRecord] = Field(default_factory=list)
    failures: List[int] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> int:
        return len(self.records) - len(self.failures)
