"""
Stage 4: Operator Construction

Turns entities and temporal/status phrases into typed comparison operators
for the persistence layer. Operators keep the order of their source phrases
in the text; duplicates are kept (the consumer ANDs them).
"""

import re
import logging
from typing import List, Mapping, Tuple

from .models import ENTITY_KEYS, VIRTUAL_FIELDS, Comparison, QueryOperator
from .rules import EngineConfig

logger = logging.getLogger(__name__)

YEAR = r"((?:19|20)\d{2})"
AFTER_RE = re.compile(rf"\b(?:after|since)\s+{YEAR}\b")
BEFORE_RE = re.compile(rf"\b(?:before|until)\s+{YEAR}\b")
BETWEEN_RE = re.compile(rf"\bbetween\s+{YEAR}\s*(?:and|to|-)?\s*{YEAR}\b")
STATUS_CLAUSE_RE = re.compile(r"\bstatus\s*(?:is\s+|of\s+|=\s*|:\s*)?([a-z]+)\b")

SCALAR_FIELDS = ("contract_number", "part_number", "account_number", "customer_name", "created_by")
DATE_FIELD = "created_date"
ALLOWED_FIELDS = frozenset(ENTITY_KEYS) | frozenset(VIRTUAL_FIELDS)


def year_start(year: str) -> str:
    return f"{year}-01-01"


def year_end(year: str) -> str:
    return f"{year}-12-31"


class OperatorBuilder:
    """Stage 4: entities + phrases -> ordered QueryOperator tuple"""

    def __init__(self, config: EngineConfig):
        self.status_vocabulary = config.status_vocabulary
        logger.info("OperatorBuilder initialized")

    def build(self, entities: Mapping[str, str], corrected_text: str) -> Tuple[QueryOperator, ...]:
        """
        Build operators.

        Args:
            entities: Output of the entity extractor
            corrected_text: Text the phrases are read from

        Returns:
            Operators ordered by where their source phrase appears
        """
        lowered = (corrected_text or "").lower()
        found: List[Tuple[int, QueryOperator]] = []

        for key in SCALAR_FIELDS:
            value = entities.get(key)
            if value:
                found.append((self._position(lowered, value),
                              QueryOperator(key, Comparison.EQUALS, value, value)))

        for match in AFTER_RE.finditer(lowered):
            found.append((match.start(), QueryOperator(
                DATE_FIELD, Comparison.GREATER_THAN, year_start(match.group(1)), match.group(0))))

        for match in BEFORE_RE.finditer(lowered):
            found.append((match.start(), QueryOperator(
                DATE_FIELD, Comparison.LESS_THAN, year_end(match.group(1)), match.group(0))))

        for match in BETWEEN_RE.finditer(lowered):
            low, high = sorted((match.group(1), match.group(2)))
            found.append((match.start(), QueryOperator(
                DATE_FIELD, Comparison.BETWEEN, (year_start(low), year_end(high)), match.group(0))))

        year = entities.get("year")
        if year:
            found.append((self._position(lowered, year), QueryOperator(
                DATE_FIELD, Comparison.BETWEEN, (year_start(year), year_end(year)), year)))

        for match in STATUS_CLAUSE_RE.finditer(lowered):
            if match.group(1) in self.status_vocabulary:
                found.append((match.start(), QueryOperator(
                    "status", Comparison.EQUALS, match.group(1), match.group(0))))

        status = entities.get("status")
        if status:
            found.append((self._position(lowered, status),
                          QueryOperator("status", Comparison.EQUALS, status.lower(), status)))

        # stable sort keeps insertion order for equal positions
        found.sort(key=lambda item: item[0])
        operators = tuple(op for _pos, op in found)

        for op in operators:
            if op.field not in ALLOWED_FIELDS:
                raise ValueError(f"Operator field not allowed: {op.field}")

        if operators:
            logger.info(f"Built {len(operators)} operators: {[op.as_triple() for op in operators]}")
        return operators

    @staticmethod
    def _position(lowered: str, value: str) -> int:
        """Where a value first appears; end of text when not found."""
        needle = value.lower()
        match = re.search(rf"(?<![a-z0-9]){re.escape(needle)}(?![a-z0-9])", lowered)
        if match:
            return match.start()
        index = lowered.find(needle)
        return index if index >= 0 else len(lowered)
