"""
CSV export of transaction records.
"""
import csv
import io
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from .rules import RuleBook, load_rulebook
from ..models.schema import TransactionRecord

logger = logging.getLogger(__name__)


def to_rows(records: Iterable[TransactionRecord], rules: Optional[RuleBook] = None) -> List[List[str]]:
    """Header row followed by one row per record."""
    rules = rules or load_rulebook()
    return [list(rules.export.headers)] + [record.as_row() for record in records]


def render_csv(records: Iterable[TransactionRecord], rules: Optional[RuleBook] = None) -> str:
    """
    Render records as CSV text.

    Every field is quoted and rows are joined with "\\n" (no trailing newline).
    Sentinels such as "N/A" are written as-is.

    Args:
        records: Records in export order
        rules: Rule book providing the header labels

    Returns:
        CSV text
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(to_rows(records, rules))

    content = buffer.getvalue()
    return content[:-1] if content.endswith("\n") else content


def write_csv(records: Iterable[TransactionRecord], output_path: Path,
              rules: Optional[RuleBook] = None) -> Path:
    """
    Write records to a CSV file.

    Args:
        records: Records in export order
        output_path: Destination file
        rules: Rule book providing the header labels

    Returns:
        Path of the written file
    """
    records = list(records)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="", encoding="utf-8") as csvfile:
        csvfile.write(render_csv(records, rules))
    logger.info(f"Wrote {output_path} ({len(records)} rows)")
    return output_path
