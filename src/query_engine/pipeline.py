"""
Query Engine Pipeline Orchestrator

Coordinates the 5-stage query understanding pipeline for contract and parts
questions.

Pipeline Stages:
1. Spell Correction - Domain dictionary normalization
2. Entity Extraction - Ordered pattern rules
3. Intent Classification - Weighted keywords, query/action type
4. Operator Construction - Typed comparison operators
5. Routing - Business rules, final route

Confidence is scored after stage 3 and re-checked after stage 5.
"""

import logging
import re
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from config.feature_flags import FeatureFlags, get_feature_flags

from .confidence_scorer import ConfidenceScorer
from .enrichment import NullEntityEnricher, merge_entities
from .models import (
    IDENTIFIER_KEYS,
    ActionType,
    QueryOperator,
    QueryType,
    Route,
    SessionHint,
    StructuredQuery,
    freeze_mapping,
)
from .query_cache import QueryCache
from .rules import EngineConfig, load_engine_config
from .stage1_spell_corrector import SpellCorrector
from .stage2_entity_extractor import EntityExtractor
from .stage3_intent_classifier import IntentClassifier
from .stage4_operator_builder import OperatorBuilder
from .stage5_routing_engine import RoutingEngine

logger = logging.getLogger(__name__)

REFERENTIAL_RE = re.compile(r"\b(?:it|its|this|that|same|those|these|them)\b")

EMPTY_QUERY_ERROR = "Empty query"
EMPTY_QUERY_MESSAGE = (
    "Please enter a question about contracts or parts, "
    "for example 'show contract 123456'."
)
INTERNAL_ERROR_MESSAGE = "Sorry, the query could not be processed. Please rephrase it and try again."
UNKNOWN_MESSAGE = "I could not tell what you are looking for. Try one of the example queries."

STAGE_NAMES = ("spell", "entities", "intent", "operators", "routing")


@dataclass(frozen=True)
class EngineStages:
    """One consistent set of stages built from a single rule set"""
    config: EngineConfig
    corrector: SpellCorrector
    extractor: EntityExtractor
    classifier: IntentClassifier
    builder: OperatorBuilder
    router: RoutingEngine
    scorer: ConfidenceScorer


def build_stages(config: EngineConfig) -> EngineStages:
    scorer = ConfidenceScorer()
    return EngineStages(
        config=config,
        corrector=SpellCorrector(config),
        extractor=EntityExtractor(config),
        classifier=IntentClassifier(config, scorer=scorer),
        builder=OperatorBuilder(config),
        router=RoutingEngine(config),
        scorer=scorer,
    )


@dataclass
class PerformanceStats:
    """Aggregate pipeline timings"""
    total_queries: int = 0
    errors: int = 0
    cache_hits: int = 0
    total_time_ms: float = 0.0
    stage_time_ms: Dict[str, float] = field(default_factory=lambda: {name: 0.0 for name in STAGE_NAMES})

    @property
    def avg_time_ms(self) -> float:
        if self.total_queries == 0:
            return 0.0
        return self.total_time_ms / self.total_queries

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_queries": self.total_queries,
            "errors": self.errors,
            "cache_hits": self.cache_hits,
            "total_time_ms": round(self.total_time_ms, 2),
            "avg_time_ms": round(self.avg_time_ms, 2),
            "stage_time_ms": {k: round(v, 2) for k, v in self.stage_time_ms.items()},
        }


class QueryPipeline:
    """
    Contract/parts query understanding pipeline.

    `process` is a pure function of (text, session hint) and never raises;
    failures come back as ERROR results. Rule tables can be swapped at
    runtime with `reload_rules` without disturbing in-flight requests.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        enricher=None,
        flags: Optional[FeatureFlags] = None,
        cache_size: int = 1000,
    ):
        """
        Args:
            config: Compiled rule set (default: config/query_rules.py)
            enricher: Optional NLP entity enricher
            flags: Feature flags (default: global flags from environment)
            cache_size: Maximum cached interpretations
        """
        self._stages = build_stages(config or load_engine_config())
        self._reload_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self.enricher = enricher or NullEntityEnricher()
        self._flags = flags
        self.cache = QueryCache(max_size=cache_size)
        self.stats = PerformanceStats()

        logger.info(f"Query pipeline initialized (rules v{self._stages.config.version}, "
                    f"enricher={getattr(self.enricher, 'name', type(self.enricher).__name__)})")

    @property
    def flags(self) -> FeatureFlags:
        return self._flags or get_feature_flags()

    @property
    def config(self) -> EngineConfig:
        return self._stages.config

    @property
    def rules_version(self) -> str:
        return self._stages.config.version

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process(self, text: Optional[str], session: Optional[SessionHint] = None) -> StructuredQuery:
        """
        Interpret one utterance.

        Args:
            text: Raw user input
            session: Identifiers mentioned earlier in the conversation

        Returns:
            StructuredQuery (ERROR result on empty input or internal failure)
        """
        original = text if text is not None else ""
        start_time = time.time()
        timings: Dict[str, float] = {}
        cache_hit = False

        if not original.strip():
            result = self._empty_result(original)
            self._record(start_time, timings, result, cache_hit)
            return result

        stages = self._stages
        flags = self.flags

        try:
            # ============================================
            # Stage 1: Spell Correction
            # ============================================
            stage_start = time.time()
            if flags.enable_spell_correction:
                corrected, corrections = stages.corrector.correct(original)
            else:
                corrected, corrections = original, {}
            timings["spell"] = (time.time() - stage_start) * 1000

            use_cache = flags.enable_result_cache and session is None
            cached = self.cache.get(corrected, stages.config.version) if use_cache else None

            if cached is not None:
                cache_hit = True
                result = replace(
                    cached,
                    original_text=original,
                    corrected_text=corrected,
                    spell_corrected=bool(corrections),
                    corrections=freeze_mapping(corrections),
                )
            else:
                result = self._interpret(stages, flags, original, corrected, corrections, session, timings)
                if use_cache:
                    self.cache.set(corrected, result, stages.config.version)

        except Exception as e:
            logger.error(f"Pipeline error: {e}", exc_info=True)
            result = self._error_result(original, str(e))

        total_ms = self._record(start_time, timings, result, cache_hit)
        if flags.log_routing_decisions:
            logger.info(f"Query processed in {total_ms:.1f}ms{' (cached)' if cache_hit else ''}: "
                        f"{result.summary()}")
        return result

    def _interpret(
        self,
        stages: EngineStages,
        flags: FeatureFlags,
        original: str,
        corrected: str,
        corrections: Dict[str, str],
        session: Optional[SessionHint],
        timings: Dict[str, float],
    ) -> StructuredQuery:
        # ============================================
        # Stage 2: Entity Extraction
        # ============================================
        stage_start = time.time()
        entities = stages.extractor.extract(corrected)

        ambiguous = stages.extractor.ambiguous_identifiers(corrected)
        if ambiguous:
            logger.warning(f"Identifiers match both part and contract shapes, flagged for review: {ambiguous}")

        if flags.enable_nlp_enrichment:
            entities = merge_entities(entities, self.enricher.enrich(corrected))
        if session is not None:
            entities = self._apply_session(entities, session, corrected)
        timings["entities"] = (time.time() - stage_start) * 1000

        # ============================================
        # Stage 3: Intent Classification
        # ============================================
        stage_start = time.time()
        intent = stages.classifier.classify(corrected, entities)
        timings["intent"] = (time.time() - stage_start) * 1000

        # ============================================
        # Stage 4: Operator Construction
        # ============================================
        stage_start = time.time()
        operators = stages.builder.build(entities, corrected)
        timings["operators"] = (time.time() - stage_start) * 1000

        # ============================================
        # Stage 5: Routing + confidence re-check
        # ============================================
        stage_start = time.time()
        decision = stages.router.route(corrected, intent, entities)

        scorer = stages.scorer
        query_type = decision.query_type
        action_type = decision.action_type
        confidence = intent.base_confidence
        if query_type != intent.query_type or (operators and not entities):
            confidence = scorer.score(query_type, entities, intent.keyword_density, intent.token_count,
                                      has_filters=bool(operators))

        message = None
        suggestions: Tuple[str, ...] = ()

        missing = self._missing_requirement(stages.config, action_type, entities, operators)
        if missing:
            confidence = scorer.penalize_missing_entity(confidence)
            message = f"Please specify {missing}."
            topic = "parts" if query_type == QueryType.PARTS else "contract"
            suggestions = self._example_queries(stages.config, topic)

        downgrade = query_type == QueryType.UNKNOWN or (
            scorer.should_downgrade(confidence) and decision.route != Route.PARTS_CREATE_ERROR
        )
        if downgrade:
            query_type = QueryType.UNKNOWN
            action_type = ActionType.UNKNOWN
            suggestions = self._example_queries(stages.config)
            message = UNKNOWN_MESSAGE
        timings["routing"] = (time.time() - stage_start) * 1000

        logger.info(f"Confidence: {confidence:.2f} ({scorer.level(confidence)})")

        return StructuredQuery(
            original_text=original,
            corrected_text=corrected,
            query_type=query_type,
            action_type=action_type,
            route=decision.route,
            entities=freeze_mapping(entities),
            operators=operators,
            confidence=confidence,
            spell_corrected=bool(corrections),
            corrections=freeze_mapping(corrections),
            business_rule_violation=decision.business_rule_violation,
            enhancement_applied=decision.enhancement_applied,
            suggestions=suggestions,
            message=message,
            reason=decision.reason,
            requested_fields=self._requested_fields(stages.config, query_type, intent.normalized_query),
        )

    def process_batch(self, texts: Iterable[Optional[str]]) -> List[StructuredQuery]:
        """Process several independent utterances in order."""
        return [self.process(text) for text in texts]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_session(entities: Dict[str, str], session: SessionHint, corrected: str) -> Dict[str, str]:
        """Fill identifiers from the conversation for referential queries ("parts for this contract")."""
        if any(entities.get(key) for key in IDENTIFIER_KEYS):
            return entities
        if not REFERENTIAL_RE.search(corrected.lower()):
            return entities
        return merge_entities(entities, session.as_entities())

    @staticmethod
    def _missing_requirement(
        config: EngineConfig,
        action_type: ActionType,
        entities: Mapping[str, str],
        operators: Tuple[QueryOperator, ...],
    ) -> Optional[str]:
        required = config.table("action_requirements").get(action_type.value)
        if not required:
            return None
        for key in required:
            if key == "operators" and operators:
                return None
            if entities.get(key):
                return None
        labels = config.table("entity_labels")
        return " or ".join(labels.get(key, key) for key in required)

    @staticmethod
    def _requested_fields(config: EngineConfig, query_type: QueryType, normalized: str) -> Tuple[str, ...]:
        """Attributes named in the text, in text order; per-type defaults when none are named."""
        found = []
        for field_name, pattern in config.attribute_patterns:
            match = pattern.search(normalized)
            if match:
                found.append((match.start(), field_name))
        if found:
            return tuple(field_name for _pos, field_name in sorted(found))
        return tuple(config.table("requested_fields").get(query_type.value, ()))

    @staticmethod
    def _example_queries(config: EngineConfig, topic: Optional[str] = None) -> Tuple[str, ...]:
        examples = config.table("example_queries")
        if topic:
            return tuple(examples.get(topic, ()))
        return tuple(q for topic_examples in examples.values() for q in topic_examples[:2])

    def _empty_result(self, original: str) -> StructuredQuery:
        return StructuredQuery(
            original_text=original,
            corrected_text=original,
            query_type=QueryType.ERROR,
            action_type=ActionType.ERROR,
            route=Route.ERROR,
            confidence=0.0,
            errors=(EMPTY_QUERY_ERROR,),
            message=EMPTY_QUERY_MESSAGE,
            reason="Empty input",
        )

    @staticmethod
    def _error_result(original: str, error: str) -> StructuredQuery:
        return StructuredQuery(
            original_text=original,
            corrected_text=original,
            query_type=QueryType.ERROR,
            action_type=ActionType.ERROR,
            route=Route.ERROR,
            confidence=0.0,
            errors=(f"Internal error: {error}",),
            message=INTERNAL_ERROR_MESSAGE,
            reason="Processing failed",
        )

    def _record(self, start_time: float, timings: Dict[str, float], result: StructuredQuery, cache_hit: bool) -> float:
        total_ms = (time.time() - start_time) * 1000
        with self._stats_lock:
            self.stats.total_queries += 1
            self.stats.total_time_ms += total_ms
            if result.is_error:
                self.stats.errors += 1
            if cache_hit:
                self.stats.cache_hits += 1
            for name, ms in timings.items():
                self.stats.stage_time_ms[name] = self.stats.stage_time_ms.get(name, 0.0) + ms
        return total_ms

    # ------------------------------------------------------------------
    # Suggestions, stats, reload
    # ------------------------------------------------------------------

    def get_query_improvement_suggestions(self, text: str) -> List[str]:
        """Hints for making a query more specific."""
        result = self.process(text)
        hints = self.config.table("improvement_hints")
        suggestions: List[str] = []

        if result.query_type in (QueryType.UNKNOWN, QueryType.ERROR):
            suggestions.append(hints["no_subject"])
        if len((text or "").split()) < 3:
            suggestions.append(hints["too_short"])
        if result.query_type == QueryType.CONTRACT and not any(result.entities.get(k) for k in IDENTIFIER_KEYS):
            suggestions.append(hints["contract_filters"])
        if result.query_type == QueryType.PARTS and not (
            result.entities.get("part_number") or result.entities.get("contract_number")
        ):
            suggestions.append(hints["parts_filters"])
        if result.spell_corrected:
            suggestions.append(f"Did you mean: '{result.corrected_text}'?")
        return suggestions

    def similar_queries(self, text: str) -> List[str]:
        """Example queries on the same topic."""
        result = self.process(text)
        topic = {
            QueryType.CONTRACT: "contract",
            QueryType.PARTS: "parts",
            QueryType.HELP: "help",
        }.get(result.query_type)
        return list(self._example_queries(self.config, topic))

    def get_performance_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            stats = self.stats.to_dict()
        stats["cache"] = self.cache.get_stats()
        stats["rules_version"] = self.rules_version
        return stats

    def reset_stats(self):
        with self._stats_lock:
            self.stats = PerformanceStats()

    def reload_rules(self, config: Optional[EngineConfig] = None, path: Optional[str] = None) -> str:
        """
        Rebuild all stages from a new rule set and swap them in.

        Raises:
            RuleConfigError: invalid tables (current rules stay active)
        """
        new_config = config or load_engine_config(path)
        stages = build_stages(new_config)
        with self._reload_lock:
            previous = self._stages.config.version
            self._stages = stages
            self.cache.clear()
        logger.info(f"Rules reloaded: v{previous} -> v{new_config.version}")
        return new_config.version

    def run_diagnostics(self, queries: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """Run sample queries and report their interpretation."""
        samples = list(queries) if queries is not None else list(self.config.table("diagnostic_queries"))
        report = []
        for query in samples:
            result = self.process(query)
            entry = result.to_dict()
            entry["confidenceLevel"] = self._stages.scorer.level(result.confidence)
            entry["operatorSources"] = [op.source_text for op in result.operators]
            report.append(entry)
        return report


def create_pipeline(
    rules_file: Optional[str] = None,
    flags: Optional[FeatureFlags] = None,
    cache_size: int = 1000,
    spacy_model: str = "en_core_web_sm",
) -> QueryPipeline:
    """
    Factory function to create a configured pipeline.

    Args:
        rules_file: Optional JSON rule override file
        flags: Feature flags (default: from environment)
        cache_size: Maximum cached interpretations
        spacy_model: spaCy model used when NLP enrichment is enabled

    Returns:
        Configured QueryPipeline instance
    """
    from .enrichment import create_enricher

    flags = flags or get_feature_flags()
    return QueryPipeline(
        config=load_engine_config(rules_file or None),
        enricher=create_enricher(flags.enable_nlp_enrichment, spacy_model),
        flags=flags,
        cache_size=cache_size,
    )
