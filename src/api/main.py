"""
=============================================================================
FastAPI Application for the Contract Query Engine
=============================================================================
Main API server providing:
- Query understanding: natural-language contract/parts questions to
  structured, routable queries
- Pipeline management: status, performance and rule reload

Endpoints Overview:
- GET  /                        - Service info
- GET  /api/v1/health           - Health check
- POST /api/v1/query            - Interpret one question
- POST /api/v1/query/batch      - Interpret several questions
- POST /api/v1/query/suggestions - Improvement hints
- GET  /api/v1/pipeline/status  - Flags, cache and timing stats
- POST /api/v1/pipeline/reload  - Reload rule tables

API Documentation: /docs (Swagger UI) or /redoc
=============================================================================
"""

# -----------------------------------------------------------------------------
# IMPORTS
# -----------------------------------------------------------------------------
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.query_router import router as query_router
from src.query_engine import __version__
from src.utils.logger import setup_logger  # Logging utility

# Initialize logger for this module
logger = setup_logger(__name__)
# Stage modules log through child loggers of the package logger
setup_logger("src.query_engine")

# -----------------------------------------------------------------------------
# FASTAPI APPLICATION INITIALIZATION
# -----------------------------------------------------------------------------
app = FastAPI(
    title="Contract Query Engine API",
    description="Natural-language query understanding and routing for contracts and parts",
    version=__version__
)

# -----------------------------------------------------------------------------
# CORS MIDDLEWARE CONFIGURATION
# -----------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(query_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Contract Query Engine API",
        "version": __version__,
        "docs": "/docs"
    }


logger.info("Contract Query Engine API ready")
