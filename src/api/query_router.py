"""
Query Engine API Router

FastAPI router exposing the query understanding pipeline.
Provides /api/v1/query and pipeline management endpoints.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from config.feature_flags import get_feature_flags
from config.settings import MAX_BATCH_SIZE, QUERY_CACHE_SIZE, QUERY_RULES_FILE, SPACY_MODEL
from src.query_engine import QueryPipeline, RuleConfigError, SessionHint, create_pipeline

logger = logging.getLogger(__name__)

# Create router with v1 prefix
router = APIRouter(prefix="/api/v1", tags=["Query Engine"])


# -----------------------------------------------------------------------------
# REQUEST/RESPONSE MODELS
# -----------------------------------------------------------------------------

class SessionContext(BaseModel):
    """Identifiers mentioned earlier in the conversation"""
    contract_number: Optional[str] = Field(None, description="Previously discussed contract number")
    part_number: Optional[str] = Field(None, description="Previously discussed part number")
    customer_name: Optional[str] = Field(None, description="Previously discussed customer")
    created_by: Optional[str] = Field(None, description="Previously discussed user")


class QueryRequest(BaseModel):
    """Query request model"""
    message: str = Field(..., description="User question")
    session: Optional[SessionContext] = Field(None, description="Optional conversation context")


class BatchQueryRequest(BaseModel):
    """Batch query request model"""
    messages: List[str] = Field(..., description="Independent user questions")


class OperatorModel(BaseModel):
    attribute: str
    operation: str
    value: Any


class QueryResponse(BaseModel):
    """Flat structured query"""
    contract_number: Optional[str] = None
    part_number: Optional[str] = None
    customer_name: Optional[str] = None
    account_number: Optional[str] = None
    created_by: Optional[str] = None
    queryType: str
    actionType: str
    entities: List[OperatorModel] = Field(default_factory=list)
    confidence: float
    route: str
    businessRuleViolation: Optional[str] = None
    originalText: str
    correctedText: str
    spellCorrected: bool
    corrections: Dict[str, str] = Field(default_factory=dict)
    enhancementApplied: Optional[str] = None
    extractedEntities: Dict[str, str] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    reason: Optional[str] = None
    requestedFields: List[str] = Field(default_factory=list)


class SuggestionResponse(BaseModel):
    """Query improvement hints"""
    suggestions: List[str]
    similar_queries: List[str]


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    rules_version: str
    spell_correction_enabled: bool
    nlp_enrichment_enabled: bool
    timestamp: str


# -----------------------------------------------------------------------------
# PIPELINE INITIALIZATION
# -----------------------------------------------------------------------------

# Lazy-loaded pipeline
_query_pipeline: Optional[QueryPipeline] = None


def get_query_pipeline() -> QueryPipeline:
    """Get or create query pipeline singleton"""
    global _query_pipeline

    if _query_pipeline is None:
        logger.info("Initializing query pipeline...")
        _query_pipeline = create_pipeline(
            rules_file=QUERY_RULES_FILE or None,
            cache_size=QUERY_CACHE_SIZE,
            spacy_model=SPACY_MODEL,
        )
        logger.info("Query pipeline initialized successfully")

    return _query_pipeline


def set_query_pipeline(pipeline: Optional[QueryPipeline]):
    """Replace the pipeline singleton (for testing)"""
    global _query_pipeline
    _query_pipeline = pipeline


def _to_response(result) -> QueryResponse:
    return QueryResponse(**result.to_dict())


# -----------------------------------------------------------------------------
# ENDPOINTS
# -----------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for the query engine.
    """
    flags = get_feature_flags()
    pipeline = get_query_pipeline()

    return HealthResponse(
        status="healthy",
        rules_version=pipeline.rules_version,
        spell_correction_enabled=flags.enable_spell_correction,
        nlp_enrichment_enabled=flags.enable_nlp_enrichment,
        timestamp=datetime.now().isoformat(),
    )


@router.post("/query", response_model=QueryResponse)
async def query(request: QueryRequest):
    """
    Interpret a contract/parts question.

    Returns the structured query: type, action, entities, operators, route
    and confidence. Empty input comes back as an ERROR result, not an HTTP
    error.
    """
    session = SessionHint(**request.session.model_dump()) if request.session else None
    result = get_query_pipeline().process(request.message, session=session)
    return _to_response(result)


@router.post("/query/batch", response_model=List[QueryResponse])
async def query_batch(request: BatchQueryRequest):
    """
    Interpret several independent questions.
    """
    if len(request.messages) > MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Batch too large: {len(request.messages)} messages (max {MAX_BATCH_SIZE})",
        )
    results = get_query_pipeline().process_batch(request.messages)
    return [_to_response(r) for r in results]


@router.post("/query/suggestions", response_model=SuggestionResponse)
async def query_suggestions(request: QueryRequest):
    """
    Hints for making a question more specific, plus similar example queries.
    """
    pipeline = get_query_pipeline()
    return SuggestionResponse(
        suggestions=pipeline.get_query_improvement_suggestions(request.message),
        similar_queries=pipeline.similar_queries(request.message),
    )


@router.get("/pipeline/status")
async def pipeline_status():
    """
    Get current pipeline configuration and performance.
    """
    flags = get_feature_flags()
    pipeline = get_query_pipeline()

    return {
        "rules_version": pipeline.rules_version,
        "feature_flags": flags.to_dict(),
        "performance": pipeline.get_performance_stats(),
    }


@router.post("/pipeline/reload")
async def reload_rules():
    """
    Rebuild rule tables from QUERY_RULES_FILE and swap them in atomically.

    Invalid override files are rejected and the current rules stay active.
    """
    rules_file = QUERY_RULES_FILE or None
    pipeline = get_query_pipeline()

    try:
        version = pipeline.reload_rules(path=rules_file)
    except RuleConfigError as e:
        logger.warning(f"Rule reload rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return {"status": "reloaded", "rules_version": version}
