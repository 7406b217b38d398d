"""
Engine Rule Set

Compiles the tables from config/query_rules.py (optionally merged with a JSON
override file) into one immutable EngineConfig that every stage shares.
Reloading builds a new EngineConfig; nothing here is mutated after
construction.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Pattern, Tuple, Union

from config import query_rules

from .models import ActionType, QueryType
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class RuleConfigError(ValueError):
    """Raised when rule tables or an override file are invalid"""


# JSON key -> attribute of config/query_rules.py
TABLE_NAMES = {
    "rules_version": "RULES_VERSION",
    "spell_corrections": "SPELL_CORRECTIONS",
    "category_priority": "CATEGORY_PRIORITY",
    "intent_keywords": "INTENT_KEYWORDS",
    "status_override_phrases": "STATUS_OVERRIDE_PHRASES",
    "focus_categories": "FOCUS_CATEGORIES",
    "creation_keywords": "CREATION_KEYWORDS",
    "help_request_keywords": "HELP_REQUEST_KEYWORDS",
    "past_tense_verbs": "PAST_TENSE_VERBS",
    "past_tense_markers": "PAST_TENSE_MARKERS",
    "query_indicators": "QUERY_INDICATORS",
    "parts_create_violation": "PARTS_CREATE_VIOLATION",
    "parts_create_reason": "PARTS_CREATE_REASON",
    "past_tense_enhancement": "PAST_TENSE_ENHANCEMENT",
    "contract_keywords": "CONTRACT_KEYWORDS",
    "account_keywords": "ACCOUNT_KEYWORDS",
    "customer_keywords": "CUSTOMER_KEYWORDS",
    "name_stop_words": "NAME_STOP_WORDS",
    "ambiguous_part_prefixes": "AMBIGUOUS_PART_PREFIXES",
    "part_context_words": "PART_CONTEXT_WORDS",
    "status_vocabulary": "STATUS_VOCABULARY",
    "company_suffixes": "COMPANY_SUFFIXES",
    "known_companies": "KNOWN_COMPANIES",
    "action_table": "ACTION_TABLE",
    "fallback_actions": "FALLBACK_ACTIONS",
    "action_requirements": "ACTION_REQUIREMENTS",
    "entity_labels": "ENTITY_LABELS",
    "requested_fields": "REQUESTED_FIELDS",
    "requested_attributes": "REQUESTED_ATTRIBUTES",
    "example_queries": "EXAMPLE_QUERIES",
    "improvement_hints": "IMPROVEMENT_HINTS",
    "diagnostic_queries": "DIAGNOSTIC_QUERIES",
}

# Tables merged key-by-key with an override; everything else is replaced.
MERGED_TABLES = (
    "spell_corrections", "intent_keywords", "requested_attributes", "example_queries", "improvement_hints",
)

PARTS_CATEGORY = "parts_lookup"
CONTRACT_CATEGORY = "contract_lookup"
HELP_CATEGORY = "help"


def phrase_regex(phrase: str) -> str:
    """Word-bounded regex source for a keyword or multi-word phrase."""
    words = [re.escape(w) for w in phrase.lower().split()]
    return r"\b" + r"\s+".join(words) + r"\b"


def compile_any(phrases) -> Pattern:
    """One pattern matching any of the phrases, longest first."""
    ordered = sorted({p.lower() for p in phrases}, key=len, reverse=True)
    if not ordered:
        return re.compile(r"(?!x)x")
    return re.compile("|".join(f"(?:{phrase_regex(p)})" for p in ordered))


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class EngineConfig:
    """Immutable, compiled rule tables shared by all stages"""
    version: str
    tables: Mapping[str, Any]

    # compiled lookups
    spell_corrections: Mapping[str, str]
    category_priority: Tuple[str, ...]
    keyword_patterns: Mapping[str, Tuple[Tuple[str, Pattern, float], ...]]
    status_override_pattern: Pattern
    parts_pattern: Pattern
    contract_topic_pattern: Pattern
    creation_pattern: Pattern
    help_request_pattern: Pattern
    past_tense_verb_pattern: Pattern
    past_tense_marker_pattern: Pattern
    query_indicator_pattern: Pattern
    name_stop_words: frozenset
    status_vocabulary: frozenset
    known_company_pattern: Pattern
    company_suffix_regex: str
    # requested attribute name -> pattern over its phrases
    attribute_patterns: Tuple[Tuple[str, Pattern], ...]

    def table(self, name: str) -> Any:
        """Read-only access to a raw table by its JSON key."""
        return self.tables[name]

    def action_rows(self, query_type: QueryType) -> Tuple[Tuple[str, str], ...]:
        return self.tables["action_table"].get(query_type.value, ())

    def fallback_action(self, query_type: QueryType) -> ActionType:
        return ActionType(self.tables["fallback_actions"][query_type.value])

    @property
    def query_indicators(self) -> Tuple[str, ...]:
        return self.tables["query_indicators"]


def default_tables() -> Dict[str, Any]:
    """Raw tables from config/query_rules.py as plain, mutable copies."""
    tables = {}
    for key, attr in TABLE_NAMES.items():
        value = getattr(query_rules, attr)
        tables[key] = json.loads(json.dumps(value))
    return tables


def merge_overrides(tables: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Apply an override document on top of the base tables."""
    merged = dict(tables)
    for key, value in overrides.items():
        if key not in TABLE_NAMES:
            raise RuleConfigError(f"Unknown rule table: {key}")
        if key in MERGED_TABLES:
            if not isinstance(value, dict):
                raise RuleConfigError(f"Rule table '{key}' must be an object")
            base = dict(merged[key])
            if key == "intent_keywords":
                for category, keywords in value.items():
                    base[category] = {**base.get(category, {}), **keywords}
            else:
                base.update(value)
            merged[key] = base
        else:
            merged[key] = value
    return merged


def validate_tables(tables: Dict[str, Any]) -> None:
    corrections = tables["spell_corrections"]
    chained = sorted(t for t in set(corrections.values()) if t in corrections)
    if chained:
        raise RuleConfigError(f"Spell corrections must not chain: {', '.join(chained)}")

    priority = tables["category_priority"]
    keywords = tables["intent_keywords"]
    for category in keywords:
        if category not in priority:
            raise RuleConfigError(f"Category '{category}' missing from category_priority")
    for required in (PARTS_CATEGORY, CONTRACT_CATEGORY, HELP_CATEGORY):
        if required not in keywords:
            raise RuleConfigError(f"Intent keyword table for '{required}' is required")
    for category, table in keywords.items():
        for phrase, weight in table.items():
            if not isinstance(weight, (int, float)) or weight <= 0:
                raise RuleConfigError(f"Weight for '{phrase}' in '{category}' must be positive")

    valid_actions = {a.value for a in ActionType}
    for query_type, rows in tables["action_table"].items():
        QueryType(query_type)
        for _signal, action in rows:
            if action not in valid_actions:
                raise RuleConfigError(f"Unknown action type in action_table: {action}")
    for query_type, action in tables["fallback_actions"].items():
        if action not in valid_actions:
            raise RuleConfigError(f"Unknown fallback action for {query_type}: {action}")

    for phrase, attribute in tables["requested_attributes"].items():
        if not isinstance(attribute, str) or not attribute:
            raise RuleConfigError(f"Requested attribute for '{phrase}' must be a non-empty string")


def build_engine_config(tables: Dict[str, Any]) -> EngineConfig:
    """Validate raw tables and compile them into an EngineConfig."""
    try:
        validate_tables(tables)
    except RuleConfigError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise RuleConfigError(f"Invalid rule tables: {e}") from e

    keyword_patterns = {}
    for category, table in tables["intent_keywords"].items():
        keyword_patterns[category] = tuple(
            (phrase.lower(), re.compile(phrase_regex(phrase)), float(weight))
            for phrase, weight in table.items()
        )

    phrases_by_attribute: Dict[str, list] = {}
    for phrase, attribute in tables["requested_attributes"].items():
        phrases_by_attribute.setdefault(attribute, []).append(phrase)

    suffixes = sorted(tables["company_suffixes"], key=len, reverse=True)
    company_suffix_regex = r"(?:" + "|".join(re.escape(s) for s in suffixes) + r")\.?"

    frozen = _freeze(tables)
    return EngineConfig(
        version=str(tables["rules_version"]),
        tables=frozen,
        spell_corrections=frozen["spell_corrections"],
        category_priority=frozen["category_priority"],
        keyword_patterns=MappingProxyType(keyword_patterns),
        status_override_pattern=compile_any(tables["status_override_phrases"]),
        parts_pattern=compile_any(tables["intent_keywords"][PARTS_CATEGORY].keys()),
        contract_topic_pattern=compile_any(tables["contract_keywords"]),
        creation_pattern=compile_any(tables["creation_keywords"]),
        help_request_pattern=compile_any(tables["help_request_keywords"]),
        past_tense_verb_pattern=compile_any(tables["past_tense_verbs"]),
        past_tense_marker_pattern=compile_any(tables["past_tense_markers"]),
        query_indicator_pattern=compile_any(tables["query_indicators"]),
        name_stop_words=frozenset(w.lower() for w in tables["name_stop_words"]),
        status_vocabulary=frozenset(w.lower() for w in tables["status_vocabulary"]),
        known_company_pattern=compile_any(tables["known_companies"]),
        company_suffix_regex=company_suffix_regex,
        attribute_patterns=tuple(
            (attribute, compile_any(phrases)) for attribute, phrases in phrases_by_attribute.items()
        ),
    )


def load_engine_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Build the engine rule set.

    Args:
        path: Optional JSON file whose top-level keys override tables from
            config/query_rules.py (see TABLE_NAMES)

    Raises:
        RuleConfigError: unreadable file or invalid tables
    """
    tables = default_tables()

    if path:
        path = Path(path)
        try:
            overrides = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RuleConfigError(f"Cannot read rule overrides from {path}: {e}") from e
        if not isinstance(overrides, dict):
            raise RuleConfigError("Rule override file must contain a JSON object")
        tables = merge_overrides(tables, overrides)
        logger.info(f"Loaded rule overrides from {path} ({len(overrides)} tables)")

    config = build_engine_config(tables)
    logger.info(f"Rule set v{config.version} compiled")
    return config
