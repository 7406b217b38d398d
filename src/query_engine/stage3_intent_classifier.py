"""
Stage 3: Intent Classification

Weighted keyword scoring over intent categories, followed by query type and
action type resolution.

Responsibilities:
- Score each category from its keyword/phrase table
- Apply hard overrides ("expired contracts", a customer name)
- Map the winning category to a query type
- Resolve the action type through the decision table
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Set, Tuple

from .confidence_scorer import ConfidenceScorer
from .models import ActionType, QueryType
from .rules import CONTRACT_CATEGORY, HELP_CATEGORY, PARTS_CATEGORY, EngineConfig
from .stage1_spell_corrector import normalize_for_matching

logger = logging.getLogger(__name__)

STATUS_CATEGORY = "status_check"
CUSTOMER_CATEGORY = "customer_info"
USER_CATEGORY = "user_query"

# Category chosen from entities when no keyword matched
ENTITY_CATEGORIES = (
    ("contract_number", CONTRACT_CATEGORY),
    ("account_number", CONTRACT_CATEGORY),
    ("part_number", PARTS_CATEGORY),
    ("created_by", USER_CATEGORY),
)


@dataclass
class IntentResult:
    """Result of intent classification"""
    query_type: QueryType
    action_type: ActionType
    base_confidence: float = 0.0
    category: Optional[str] = None
    scores: Dict[str, float] = field(default_factory=dict)
    keyword_density: float = 0.0
    token_count: int = 0
    normalized_query: str = ""
    override: Optional[str] = None


class ActionResolver:
    """
    Decision table lookup: (query type, signal) -> action type.

    Signals are entity keys plus topic markers for HELP queries.
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    def signals(self, entities: Mapping[str, str], normalized: str) -> Set[str]:
        found = {key for key, value in entities.items() if value}
        if self.config.contract_topic_pattern.search(normalized):
            found.add("topic:contract")
        if self.config.parts_pattern.search(normalized):
            found.add("topic:parts")
        return found

    def resolve(self, query_type: QueryType, entities: Mapping[str, str], normalized: str) -> ActionType:
        present = self.signals(entities, normalized)
        for signal, action in self.config.action_rows(query_type):
            if signal in present:
                return ActionType(action)
        return self.config.fallback_action(query_type)


class IntentClassifier:
    """
    Stage 3: Weighted keyword intent classifier

    Deterministic: the same text and entities always give the same result.
    Ties between categories go to the higher priority category.
    """

    def __init__(self, config: EngineConfig, scorer: Optional[ConfidenceScorer] = None):
        self.config = config
        self.scorer = scorer or ConfidenceScorer()
        self.actions = ActionResolver(config)
        self.priority = tuple(config.category_priority)
        self.focus_categories = frozenset(config.table("focus_categories"))
        logger.info(f"IntentClassifier initialized with {len(config.keyword_patterns)} categories")

    def classify(self, corrected_text: str, entities: Mapping[str, str]) -> IntentResult:
        """
        Classify a corrected query.

        Args:
            corrected_text: Output of the spell corrector
            entities: Output of the entity extractor

        Returns:
            IntentResult with query type, provisional action and base confidence
        """
        normalized = normalize_for_matching(corrected_text or "")
        tokens = normalized.split()

        raw_scores, matched_tokens = self._score_categories(normalized)
        override = self._check_overrides(normalized, entities)
        category = override or self._pick_category(raw_scores) or self._category_from_entities(entities)

        query_type = self._query_type_for(category, raw_scores)
        action_type = self.actions.resolve(query_type, entities, normalized)

        density = min(1.0, matched_tokens / len(tokens)) if tokens else 0.0
        confidence = self.scorer.score(query_type, entities, density, len(tokens))

        total = sum(raw_scores.values())
        scores = {c: round(s / total, 4) for c, s in raw_scores.items() if s > 0} if total else {}

        logger.info(
            f"Intent: {query_type.value}/{action_type.value} "
            f"(category={category}, confidence={confidence:.2f})"
        )

        return IntentResult(
            query_type=query_type,
            action_type=action_type,
            base_confidence=confidence,
            category=category,
            scores=scores,
            keyword_density=density,
            token_count=len(tokens),
            normalized_query=normalized,
            override=override,
        )

    def _score_categories(self, normalized: str) -> Tuple[Dict[str, float], int]:
        """Sum keyword weights per category; count tokens covered by keywords."""
        scores: Dict[str, float] = {}
        matched_tokens = 0
        for category, patterns in self.config.keyword_patterns.items():
            total = 0.0
            for phrase, pattern, weight in patterns:
                hits = len(pattern.findall(normalized))
                if hits:
                    total += hits * weight
                    matched_tokens += hits * len(phrase.split())
            scores[category] = total
        return scores, matched_tokens

    def _check_overrides(self, normalized: str, entities: Mapping[str, str]) -> Optional[str]:
        if self.config.status_override_pattern.search(normalized):
            return STATUS_CATEGORY
        if entities.get("customer_name"):
            return CUSTOMER_CATEGORY
        return None

    def _pick_category(self, raw_scores: Dict[str, float]) -> Optional[str]:
        candidates = [c for c, s in raw_scores.items() if s > 0]
        if not candidates:
            return None
        return max(candidates, key=lambda c: (raw_scores[c], -self._rank(c)))

    def _rank(self, category: str) -> int:
        return self.priority.index(category) if category in self.priority else len(self.priority)

    @staticmethod
    def _category_from_entities(entities: Mapping[str, str]) -> Optional[str]:
        for key, category in ENTITY_CATEGORIES:
            if entities.get(key):
                return category
        return None

    def _query_type_for(self, category: Optional[str], raw_scores: Dict[str, float]) -> QueryType:
        if category is None:
            return QueryType.UNKNOWN
        if category == HELP_CATEGORY:
            return QueryType.HELP
        if category == PARTS_CATEGORY:
            return QueryType.PARTS
        if category in self.focus_categories:
            parts = raw_scores.get(PARTS_CATEGORY, 0.0)
            if parts > 0 and parts >= raw_scores.get(CONTRACT_CATEGORY, 0.0):
                return QueryType.PARTS
        return QueryType.CONTRACT
