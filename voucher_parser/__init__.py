"""
Payment Voucher OCR Parser

Reads scanned payment confirmations (mobile-banking screenshots) with
Tesseract and extracts date, operation number, amount and recipient from the
noisy OCR text into a CSV-ready table.
"""

__version__ = "1.0.0"
__author__ = "Voucher Parser Team"

from .core.extract import (
    extract_date,
    extract_operation_number,
    extract_amount,
    extract_recipient,
    derive_description,
    extract_record,
    failed_record,
)
from .core.runner import BatchRunner, process_batch
from .core.ocr import OCREngine, TesseractEngine, RecognitionError, load_images
from .core.rules import RuleBook, load_rulebook, list_rulebooks
from .core.export import render_csv, write_csv
from .models.schema import InputImage, RecognitionOutcome, TransactionRecord, BatchResult, EXPORT_COLUMNS, EXPORT_HEADERS

__all__ = [
    "extract_date",
    "extract_operation_number",
    "extract_amount",
    "extract_recipient",
    "derive_description",
    "extract_record",
    "failed_record",
    "BatchRunner",
    "process_batch",
    "OCREngine",
    "TesseractEngine",
    "RecognitionError",
    "load_images",
    "RuleBook",
    "load_rulebook",
    "list_rulebooks",
    "render_csv",
    "write_csv",
    "InputImage",
    "RecognitionOutcome",
    "TransactionRecord",
    "BatchResult",
    "EXPORT_COLUMNS",
    "EXPORT_HEADERS",
]
