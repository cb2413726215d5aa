"""
Data normalization and cleaning functions.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


def normalize_text(value: Optional[str]) -> str:
    """
    Normalize text by trimming and collapsing whitespace runs.

    Args:
        value: Raw text string

    Returns:
        Cleaned text string
    """
    if not value:
        return ""

    return re.sub(r'\s+', ' ', value.strip())


def normalize_currency_prefix(prefix: str, rest: str, prefixes: Dict[str, str]) -> str:
    """
    Rebuild an amount token with the canonical currency marker.

    OCR often reads the "S" of "S/" as a "5"; ``prefixes`` maps every accepted
    reading to the marker written to the export.

    Args:
        prefix: Prefix character as matched
        rest: Everything after the slash (optional whitespace and number)
        prefixes: Accepted prefix -> canonical prefix

    Returns:
        Amount string such as "S/ 1,250.00"
    """
    canonical = prefixes.get(prefix, prefix)
    rest = re.sub(r'\s+', ' ', rest)
    return f"{canonical}/{rest}"


def strip_extension(filename: Optional[str]) -> str:
    """
    Remove a trailing 3-4 character alphanumeric extension from a filename.

    Args:
        filename: Original file name

    Returns:
        Trimmed name without extension, or "" if no name is available
    """
    if not filename:
        return ""

    return re.sub(r'\.[a-zA-Z0-9]{3,4}\Z', '', filename).strip()


def normalize_money(value: Optional[str]) -> Optional[Decimal]:
    """
    Convert an extracted amount ("S/ 1,250.00") into a Decimal.

    Args:
        value: Amount string as exported

    Returns:
        Decimal value, or None for sentinels and unparseable values
    """
    if not value or not value.strip():
        return None

    # Drop the currency marker, then commas and spaces
    cleaned = re.sub(r'^[^/]*/', '', value.strip())
    cleaned = re.sub(r'[,\s]', '', cleaned)

    match = re.fullmatch(r'\d+(?:\.\d+)?', cleaned)
    if not match:
        return None

    try:
        return Decimal(match.group())
    except InvalidOperation:
        logger.warning(f"Could not parse amount: {value}")
        return None
