"""
Confidence Scoring Module
=========================
Heuristic certainty of a query interpretation, applied after intent
classification and re-checked after routing.

Score composition:
- 0.3 base when the query type is known
- +0.2 per identifying entity (contract, part, customer, creator), max +0.4
- up to +0.3 from keyword density
- x0.7 for single-token queries, x0.8 when neither entities nor filters
  were extracted
"""
from typing import Mapping
import logging

from .models import QueryType

logger = logging.getLogger(__name__)


class ConfidenceScorer:
    """
    Calculate confidence from query type, entities and keyword coverage.

    Levels:
    - HIGH: >= 0.7
    - MEDIUM: >= 0.5
    - LOW: < 0.5
    """

    HIGH_THRESHOLD = 0.7
    MEDIUM_THRESHOLD = 0.5
    # Below this the routed query is downgraded to UNKNOWN
    DOWNGRADE_THRESHOLD = 0.3

    BASE_SCORE = 0.3
    ENTITY_BONUS = 0.2
    ENTITY_BONUS_CAP = 0.4
    DENSITY_WEIGHT = 0.3
    SHORT_QUERY_PENALTY = 0.7
    NO_ENTITY_PENALTY = 0.8
    MISSING_ENTITY_PENALTY = 0.7

    SCORED_ENTITIES = ("contract_number", "part_number", "customer_name", "created_by")

    def score(
        self,
        query_type: QueryType,
        entities: Mapping[str, str],
        keyword_density: float,
        token_count: int,
        has_filters: bool = False,
    ) -> float:
        """
        Args:
            query_type: Classified query type
            entities: Extracted entities
            keyword_density: Share of tokens that matched an intent keyword (0-1)
            token_count: Number of tokens in the normalized query
            has_filters: Date or status operators were built for the query

        Returns:
            Confidence in [0, 1]
        """
        total = 0.0
        if query_type not in (QueryType.UNKNOWN, QueryType.ERROR):
            total += self.BASE_SCORE

        found = sum(1 for key in self.SCORED_ENTITIES if entities.get(key))
        total += min(self.ENTITY_BONUS_CAP, found * self.ENTITY_BONUS)

        density = max(0.0, min(1.0, keyword_density))
        total += density * self.DENSITY_WEIGHT

        if token_count < 2:
            total *= self.SHORT_QUERY_PENALTY
        if not entities and not has_filters:
            total *= self.NO_ENTITY_PENALTY

        return self.clamp(total)

    def penalize_missing_entity(self, confidence: float) -> float:
        return self.clamp(confidence * self.MISSING_ENTITY_PENALTY)

    def should_downgrade(self, confidence: float) -> bool:
        return confidence < self.DOWNGRADE_THRESHOLD

    def level(self, confidence: float) -> str:
        """Categorical level for logs and API output."""
        if confidence >= self.HIGH_THRESHOLD:
            return "high"
        if confidence >= self.MEDIUM_THRESHOLD:
            return "medium"
        return "low"

    @staticmethod
    def clamp(value: float) -> float:
        return max(0.0, min(1.0, value))
