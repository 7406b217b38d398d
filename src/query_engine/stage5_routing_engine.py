"""
Stage 5: Routing

Ordered business rules deciding where a query goes. First match wins:

1. parts + creation verb, not past tense, not a question -> PARTS_CREATE_ERROR
2. parts keywords                                         -> PARTS
3. creation verb or help request, same conditions         -> HELP
4. anything else                                          -> CONTRACT

Parts records are loaded from Excel files, so asking the assistant to create
one is a business rule violation rather than a help request.
"""

import re
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .models import ActionType, QueryType, Route
from .rules import EngineConfig
from .stage3_intent_classifier import ActionResolver, IntentResult
from .stage1_spell_corrector import normalize_for_matching

logger = logging.getLogger(__name__)

HOW_TO_RE = re.compile(r"\s+to\b")


@dataclass
class RoutingSignals:
    """Keyword signals the routing rules look at"""
    parts_keywords: bool = False
    creation_keywords: bool = False
    help_request: bool = False
    past_tense: bool = False
    query_phrased: bool = False


@dataclass
class RoutingDecision:
    """Result of routing"""
    route: Route
    query_type: QueryType
    action_type: ActionType
    reason: str
    signals: RoutingSignals
    business_rule_violation: Optional[str] = None
    enhancement_applied: Optional[str] = None


class RoutingEngine:
    """Stage 5: business rule router"""

    def __init__(self, config: EngineConfig):
        self.config = config
        self.actions = ActionResolver(config)
        logger.info("RoutingEngine initialized")

    def detect_signals(self, normalized: str) -> RoutingSignals:
        config = self.config
        return RoutingSignals(
            parts_keywords=bool(config.parts_pattern.search(normalized)),
            creation_keywords=bool(config.creation_pattern.search(normalized)),
            help_request=bool(config.help_request_pattern.search(normalized)),
            past_tense=bool(
                config.past_tense_verb_pattern.search(normalized)
                and config.past_tense_marker_pattern.search(normalized)
            ),
            query_phrased=self._is_query_phrased(normalized),
        )

    def _is_query_phrased(self, normalized: str) -> bool:
        for match in self.config.query_indicator_pattern.finditer(normalized):
            # "how to ..." asks for instructions, not data
            if match.group(0) == "how" and HOW_TO_RE.match(normalized, match.end()):
                continue
            return True
        return False

    def route(
        self,
        corrected_text: str,
        intent: IntentResult,
        entities: Mapping[str, str],
    ) -> RoutingDecision:
        """
        Apply routing rules.

        Args:
            corrected_text: Output of the spell corrector
            intent: Output of the intent classifier
            entities: Extracted entities

        Returns:
            RoutingDecision with final route, query type and action type
        """
        normalized = intent.normalized_query or normalize_for_matching(corrected_text or "")
        signals = self.detect_signals(normalized)
        tables = self.config.tables
        open_request = not signals.past_tense and not signals.query_phrased
        creation_request = signals.creation_keywords and open_request
        help_request = (signals.creation_keywords or signals.help_request) and open_request

        if signals.parts_keywords and creation_request:
            decision = RoutingDecision(
                route=Route.PARTS_CREATE_ERROR,
                query_type=QueryType.PARTS,
                action_type=ActionType.PARTS_CREATE_ERROR,
                reason=tables["parts_create_reason"],
                signals=signals,
                business_rule_violation=tables["parts_create_violation"],
            )
        elif signals.parts_keywords:
            decision = self._decide(Route.PARTS, QueryType.PARTS, "Parts keywords detected",
                                    signals, entities, normalized)
        elif help_request:
            decision = self._decide(Route.HELP, QueryType.HELP, "Creation or help request routed to help",
                                    signals, entities, normalized)
        else:
            query_type = QueryType.UNKNOWN if intent.query_type == QueryType.UNKNOWN else QueryType.CONTRACT
            decision = self._decide(Route.CONTRACT, query_type, "Default contract routing",
                                    signals, entities, normalized)
            if signals.past_tense:
                decision.enhancement_applied = tables["past_tense_enhancement"]

        logger.info(f"Route: {decision.route.value} ({decision.reason})")
        return decision

    def _decide(self, route, query_type, reason, signals, entities, normalized) -> RoutingDecision:
        return RoutingDecision(
            route=route,
            query_type=query_type,
            action_type=self.actions.resolve(query_type, entities, normalized),
            reason=reason,
            signals=signals,
        )
