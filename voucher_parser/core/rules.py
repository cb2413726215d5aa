"""
Rule book loading and pattern compilation.

A rule book is a YAML file describing how fields are recognized in OCR text.
Noise-tolerant alternatives (e.g. the many ways OCR misreads "Enviar") are kept
as explicit lists so new cases can be added without touching the extractors.
"""
import re
import yaml
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional
import logging

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from ..models.schema import EXPORT_COLUMNS, EXPORT_HEADERS

logger = logging.getLogger(__name__)

DEFAULT_RULEBOOK = "pe_payment_v1"


class DateRules(BaseModel):
    day: str = r'[0-9]{1,2}'
    month: str = r'[a-zA-ZñÑáéíóúÁÉÍÓÚ]+'


class OperationNumberRules(BaseModel):
    labels: List[str]
    min_digits: int = 6


class AmountRules(BaseModel):
    prefixes: Dict[str, str]
    number: str


class RecipientRules(BaseModel):
    cue: str
    suffixes: List[str]
    joiner: str = 'a'
    capture: str = r'[^\n*]+?'
    terminators: List[str]


class FieldRules(BaseModel):
    date: DateRules = Field(default_factory=DateRules)
    operation_number: OperationNumberRules
    amount: AmountRules
    recipient: RecipientRules


class ExportRules(BaseModel):
    filename: str = "resultados.csv"
    headers: List[str] = Field(default_factory=lambda: list(EXPORT_HEADERS))

    @field_validator('headers')
    @classmethod
    def validate_headers(cls, v):
        """One label per exported column."""
        if len(v) != len(EXPORT_COLUMNS):
            raise ValueError(f"Expected {len(EXPORT_COLUMNS)} headers, got {len(v)}")
        return v


class RuleBook(BaseModel):
    """Validated rule book with lazily compiled patterns."""
    rulebook_id: str
    description: str = ""
    language: str = "spa"
    year: int = 2025
    sentinel: str = "N/A"
    failure_marker: str = "ERROR"
    account_placeholder: str = "0000"
    export: ExportRules = Field(default_factory=ExportRules)
    patterns: FieldRules

    _compiled: Dict[str, re.Pattern] = PrivateAttr(default_factory=dict)

    def pattern(self, name: str) -> re.Pattern:
        """Get the compiled pattern for a field."""
        if name not in self._compiled:
            self._compiled[name] = self._compile(name)
        return self._compiled[name]

    def _compile(self, name: str) -> re.Pattern:
        rules = self.patterns

        if name == "date":
            return re.compile(
                rf'({rules.date.day})\s+({rules.date.month})\s+{re.escape(str(self.year))}'
            )

        elif name == "operation_number":
            op = rules.operation_number
            labels = "|".join(op.labels)
            return re.compile(
                rf'(?:{labels})\s+([0-9]{{{op.min_digits},}})',
                re.IGNORECASE
            )

        elif name == "amount":
            amount = rules.amount
            prefixes = "|".join(re.escape(p) for p in amount.prefixes)
            return re.compile(rf'(?P<prefix>{prefixes})/(?P<rest>\s?{amount.number})')

        elif name == "recipient":
            rcp = rules.recipient
            suffixes = "|".join(rcp.suffixes)
            terminators = "|".join(rcp.terminators)
            return re.compile(
                rf'(?<![A-Za-z0-9_]){rcp.cue}(?:{suffixes})\s+{rcp.joiner}\s+({rcp.capture})(?:{terminators})',
                re.IGNORECASE
            )

        raise ValueError(f"Unknown field: {name}")


class RuleBookLoader:
    """Loads rule books from a directory of YAML files."""

    def __init__(self, rules_dir: Path = None):
        self.rules_dir = rules_dir or Path(__file__).parent.parent / "rules"
        self.rulebooks: Dict[str, RuleBook] = {}
        self._load_rulebooks()

    def _load_rulebooks(self):
        """Load all available rule books."""
        if not self.rules_dir.exists():
            logger.warning(f"Rules directory not found: {self.rules_dir}")
            return

        for yaml_file in sorted(self.rules_dir.glob("*.yaml")):
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
                rulebook = RuleBook.model_validate(data)
                self.rulebooks[rulebook.rulebook_id] = rulebook
                logger.debug(f"Loaded rule book: {rulebook.rulebook_id}")
            except Exception as e:
                logger.error(f"Error loading rule book {yaml_file}: {e}")

    def get_rulebook(self, rulebook_id: str) -> Optional[RuleBook]:
        """Get rule book by ID."""
        return self.rulebooks.get(rulebook_id)

    def list_rulebooks(self) -> List[str]:
        """List all available rule book IDs."""
        return list(self.rulebooks.keys())


@lru_cache(maxsize=None)
def load_rulebook(rulebook_id: str = DEFAULT_RULEBOOK) -> RuleBook:
    """
    Load a packaged rule book by ID.

    Args:
        rulebook_id: Rule book ID

    Returns:
        RuleBook object

    Raises:
        ValueError: If no rule book with this ID exists
    """
    rulebook = RuleBookLoader().get_rulebook(rulebook_id)
    if not rulebook:
        raise ValueError(f"Rule book not found: {rulebook_id}")
    return rulebook


def list_rulebooks() -> List[str]:
    """List the packaged rule book IDs."""
    return RuleBookLoader().list_rulebooks()
