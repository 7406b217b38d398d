"""
Query Engine Data Model

Result types shared by every stage. StructuredQuery is the single output of
the pipeline and is immutable once built.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union


class QueryType(str, Enum):
    """Top-level classification of an utterance"""
    CONTRACT = "CONTRACT"
    PARTS = "PARTS"
    HELP = "HELP"
    UNKNOWN = "UNKNOWN"
    ERROR = "ERROR"


class Route(str, Enum):
    """Dispatch decision of the routing engine"""
    CONTRACT = "CONTRACT"
    PARTS = "PARTS"
    HELP = "HELP"
    PARTS_CREATE_ERROR = "PARTS_CREATE_ERROR"
    ERROR = "ERROR"


class ActionType(str, Enum):
    """Fine-grained operation code selecting the data-access path"""
    CONTRACTS_BY_USER = "contracts_by_user"
    CONTRACTS_BY_CONTRACT_NUMBER = "contracts_by_contractNumber"
    CONTRACTS_BY_ACCOUNT_NUMBER = "contracts_by_accountNumber"
    CONTRACTS_BY_CUSTOMER_NAME = "contracts_by_customerName"
    CONTRACTS_BY_PARTS = "contracts_by_parts"
    CONTRACTS_BY_STATUS = "contracts_by_status"
    CONTRACTS_GENERAL = "contracts_general"

    PARTS_BY_USER = "parts_by_user"
    PARTS_BY_CONTRACT = "parts_by_contract"
    PARTS_BY_PART_NUMBER = "parts_by_partNumber"
    PARTS_BY_CUSTOMER = "parts_by_customer"
    PARTS_GENERAL = "parts_general"
    PARTS_CREATE_ERROR = "parts_create_error"

    HELP_CONTRACT_CREATION = "help_contract_creation"
    HELP_PARTS_SEARCH = "help_parts_search"
    HELP_GENERAL = "help_general"

    UNKNOWN = "unknown"
    ERROR = "error"


class Comparison(str, Enum):
    """Operator comparison kinds; the value is the wire symbol"""
    EQUALS = "="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    BETWEEN = "BETWEEN"


# Entity keys, in the order the extractor tries them
ENTITY_KEYS = (
    "account_number",
    "contract_number",
    "part_number",
    "customer_name",
    "created_by",
    "status",
    "year",
)

# Entities that make a query answerable on their own
IDENTIFIER_KEYS = ("contract_number", "part_number", "account_number", "customer_name", "created_by")

# Operator fields that are not entity keys
VIRTUAL_FIELDS = ("created_date", "status")


@dataclass(frozen=True)
class QueryOperator:
    """A field/comparison/value filter for downstream retrieval"""
    field: str
    comparison: Comparison
    value: Union[str, Tuple[str, str]]
    source_text: str = ""

    def as_triple(self) -> Tuple[str, Comparison, Union[str, Tuple[str, str]]]:
        return (self.field, self.comparison, self.value)

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {
            "attribute": self.field,
            "operation": self.comparison.value,
            "value": value,
        }


@dataclass(frozen=True)
class SessionHint:
    """Identifiers mentioned earlier in the conversation"""
    contract_number: Optional[str] = None
    part_number: Optional[str] = None
    customer_name: Optional[str] = None
    created_by: Optional[str] = None

    def as_entities(self) -> Dict[str, str]:
        return {
            key: value
            for key, value in (
                ("contract_number", self.contract_number),
                ("part_number", self.part_number),
                ("customer_name", self.customer_name),
                ("created_by", self.created_by),
            )
            if value
        }


def freeze_mapping(values: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    """Read-only copy of a mapping with null values dropped."""
    return MappingProxyType({k: v for k, v in (values or {}).items() if v is not None})


@dataclass(frozen=True)
class StructuredQuery:
    """
    Structured interpretation of one utterance.

    Built once by the pipeline and handed read-only to the presentation and
    persistence layers. Missing entities mean "no filter".
    """
    original_text: str
    corrected_text: str
    query_type: QueryType
    action_type: ActionType
    route: Route
    entities: Mapping[str, str] = field(default_factory=lambda: freeze_mapping({}))
    operators: Tuple[QueryOperator, ...] = ()
    confidence: float = 0.0
    spell_corrected: bool = False
    corrections: Mapping[str, str] = field(default_factory=lambda: freeze_mapping({}))
    business_rule_violation: Optional[str] = None
    enhancement_applied: Optional[str] = None
    errors: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()
    message: Optional[str] = None
    reason: Optional[str] = None
    requested_fields: Tuple[str, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.route == Route.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Flat JSON representation consumed by the presentation layer."""
        return {
            "contract_number": self.entities.get("contract_number"),
            "part_number": self.entities.get("part_number"),
            "customer_name": self.entities.get("customer_name"),
            "account_number": self.entities.get("account_number"),
            "created_by": self.entities.get("created_by"),
            "queryType": self.query_type.value,
            "actionType": self.action_type.value,
            "entities": [op.to_dict() for op in self.operators],
            "confidence": round(self.confidence, 4),
            "route": self.route.value,
            "businessRuleViolation": self.business_rule_violation,
            "originalText": self.original_text,
            "correctedText": self.corrected_text,
            "spellCorrected": self.spell_corrected,
            "corrections": dict(self.corrections),
            "enhancementApplied": self.enhancement_applied,
            "extractedEntities": dict(self.entities),
            "errors": list(self.errors),
            "suggestions": list(self.suggestions),
            "message": self.message,
            "reason": self.reason,
            "requestedFields": list(self.requested_fields),
        }

    def summary(self) -> str:
        """One-line description for logs."""
        entities = ", ".join(f"{k}={v}" for k, v in self.entities.items()) or "none"
        return (
            f"{self.query_type.value}/{self.action_type.value} route={self.route.value} "
            f"confidence={self.confidence:.2f} entities=[{entities}] operators={len(self.operators)}"
        )
