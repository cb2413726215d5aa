"""
Field extraction from raw OCR text.

Every extractor takes the whole text blob of one image and returns either the
recovered value or the rule book's sentinel. None of them raise: OCR output is
noisy and a missing field is an expected result, not an error.
"""
from typing import Optional
import logging

from .normalize import normalize_text, normalize_currency_prefix, strip_extension
from .rules import RuleBook, load_rulebook
from ..models.schema import TransactionRecord

logger = logging.getLogger(__name__)


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def extract_date(text: str, rules: Optional[RuleBook] = None) -> str:
    """
    Find "<day> <month> <year>" where year is the rule book's literal year.

    Args:
        text: OCR text
        rules: Rule book (defaults to the packaged one)

    Returns:
        Date string such as "14 marzo 2025", or the sentinel
    """
    rules = rules or load_rulebook()
    match = rules.pattern("date").search(_text(text))
    if not match:
        return rules.sentinel

    day, month = match.groups()
    return f"{day} {month} {rules.year}"


def extract_operation_number(text: str, rules: Optional[RuleBook] = None) -> str:
    """
    Find the digits following a "número de operación" label.

    Args:
        text: OCR text
        rules: Rule book (defaults to the packaged one)

    Returns:
        Digit string, or the sentinel
    """
    rules = rules or load_rulebook()
    match = rules.pattern("operation_number").search(_text(text))
    return match.group(1) if match else rules.sentinel


def extract_amount(text: str, rules: Optional[RuleBook] = None) -> str:
    """
    Find a "S/" amount, accepting "5/" as an OCR misreading of "S/".

    Args:
        text: OCR text
        rules: Rule book (defaults to the packaged one)

    Returns:
        Amount string such as "S/ 1,250.00", or the sentinel
    """
    rules = rules or load_rulebook()
    match = rules.pattern("amount").search(_text(text))
    if not match:
        return rules.sentinel

    return normalize_currency_prefix(
        match.group('prefix'), match.group('rest'), rules.patterns.amount.prefixes
    )


def extract_recipient(text: str, rules: Optional[RuleBook] = None) -> str:
    """
    Find the name after an "Enviar a" cue.

    The cue is matched loosely (see the rule book's suffix variants) and the
    name runs until the end of the line or a "**" marker.

    Args:
        text: OCR text
        rules: Rule book (defaults to the packaged one)

    Returns:
        Recipient name, or the sentinel
    """
    rules = rules or load_rulebook()
    match = rules.pattern("recipient").search(_text(text))
    if not match:
        return rules.sentinel

    return normalize_text(match.group(1)) or rules.sentinel


def derive_description(filename: Optional[str]) -> str:
    """Description column: the file name without its extension."""
    return strip_extension(_text(filename))


def extract_record(text: str, filename: Optional[str] = None,
                   rules: Optional[RuleBook] = None) -> TransactionRecord:
    """
    Build a transaction record from one OCR text blob.

    Args:
        text: OCR text of a single image
        filename: Name of the image the text came from
        rules: Rule book (defaults to the packaged one)

    Returns:
        TransactionRecord with every field populated
    """
    rules = rules or load_rulebook()

    record = TransactionRecord(
        date=extract_date(text, rules),
        operation_number=extract_operation_number(text, rules),
        amount=extract_amount(text, rules),
        origin_account=rules.account_placeholder,
        destination_account=rules.account_placeholder,
        recipient=extract_recipient(text, rules),
        description=derive_description(filename),
    )
    logger.debug(f"Extracted record for {filename!r}: {record.as_row()}")
    return record


def failed_record(filename: Optional[str] = None,
                  rules: Optional[RuleBook] = None) -> TransactionRecord:
    """Record for an image whose text could not be read at all."""
    rules = rules or load_rulebook()
    marker = rules.failure_marker

    return TransactionRecord(
        date=marker,
        operation_number=marker,
        amount=marker,
        origin_account=marker,
        destination_account=marker,
        recipient=marker,
        description=derive_description(filename),
        status="failed",
    )
