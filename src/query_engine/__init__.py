"""
Contract Query Engine

Turns natural-language questions about contracts and parts into structured,
routable queries.

Stages:
    1. Spell Correction - Domain dictionary normalization
    2. Entity Extraction - Contract/part/account numbers, customer, creator
    3. Intent Classification - Weighted keyword scoring, query/action type
    4. Operator Construction - EQUALS / GREATER_THAN / LESS_THAN / BETWEEN
    5. Routing - Business rules (PARTS_CREATE_ERROR, PARTS, HELP, CONTRACT)

Usage:
    from src.query_engine import create_pipeline

    pipeline = create_pipeline()
    result = pipeline.process("pull contracts created by vinod after 2020")
    print(result.to_dict())
"""

from .models import (
    ActionType,
    Comparison,
    QueryOperator,
    QueryType,
    Route,
    SessionHint,
    StructuredQuery,
)
from .rules import EngineConfig, RuleConfigError, load_engine_config
from .stage1_spell_corrector import SpellCorrector
from .stage2_entity_extractor import EntityExtractor
from .stage3_intent_classifier import IntentClassifier, IntentResult
from .stage4_operator_builder import OperatorBuilder
from .stage5_routing_engine import RoutingDecision, RoutingEngine
from .confidence_scorer import ConfidenceScorer
from .pipeline import QueryPipeline, create_pipeline

__all__ = [
    # Pipeline
    "QueryPipeline",
    "create_pipeline",

    # Model
    "StructuredQuery",
    "QueryType",
    "ActionType",
    "Route",
    "Comparison",
    "QueryOperator",
    "SessionHint",

    # Rules
    "EngineConfig",
    "RuleConfigError",
    "load_engine_config",

    # Stages
    "SpellCorrector",
    "EntityExtractor",
    "IntentClassifier",
    "IntentResult",
    "OperatorBuilder",
    "RoutingEngine",
    "RoutingDecision",
    "ConfidenceScorer",
]

__version__ = "1.0.0"
