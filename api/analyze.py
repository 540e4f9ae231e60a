"""
API Endpoint for Internal Linking Analysis

FastAPI application that:
1. Receives analysis requests for a project's site
2. Runs the crawl → TF-IDF → enrichment → scoring pipeline
3. Returns the top link opportunities
4. Serves stored results through the internal-linking router
"""

import logging
import sys
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from linkwise import __version__
from linkwise.database import RunAlreadyInProgressError, check_db_connection, init_db
from linkwise.integrations import ExternalAPIClients, ExternalAPIConfig
from linkwise.pipeline import AnalysisInputError, InternalLinkingPipeline
from linkwise.utils.config import get_settings

from api.opportunities import router as opportunities_router

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,  # Override any existing config
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

# Create FastAPI app
app = FastAPI(
    title="Linkwise Internal Linking Analyzer",
    description="Internal link recommendations from crawl, TF-IDF, DataForSEO and Search Console data",
    version=__version__,
)
app.include_router(opportunities_router)


# ============================================================================
# STARTUP - Initialize Database
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
        if not check_db_connection():
            logger.warning("Database connection check failed - continuing anyway")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")

    ExternalAPIConfig().log_status()


# ============================================================================
# REQUEST MODELS
# ============================================================================

class AnalysisRequest(BaseModel):
    """Request to run an internal-linking analysis."""
    projectId: Optional[str] = Field(default=None, description="Project identifier")
    siteUrl: Optional[str] = Field(default=None, description="Site root URL to crawl")
    analysisName: Optional[str] = Field(default=None, description="Optional run label")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
async def health():
    """Health check including database status."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "database": "connected" if check_db_connection() else "disconnected",
    }


@app.post("/api/internal-linking/analyze")
async def analyze(request: AnalysisRequest):
    """
    Run an internal-linking analysis and return the top opportunities.

    Responses:
        200 - {success: true, analysis_id, pages_crawled, ...}
        400 - projectId or siteUrl missing
        409 - an analysis is already running for the project
        500 - crawl or pipeline failure
    """
    if not request.projectId or not request.siteUrl:
        return _error(400, "projectId and siteUrl are required")

    logger.info(f"Analysis requested for project {request.projectId}: {request.siteUrl}")

    async with ExternalAPIClients() as clients:
        pipeline = InternalLinkingPipeline(clients)
        try:
            return await pipeline.run(
                request.projectId, request.siteUrl, request.analysisName
            )
        except AnalysisInputError as e:
            return _error(400, str(e))
        except RunAlreadyInProgressError as e:
            return _error(409, str(e))
        except Exception as e:
            logger.error(f"Analysis failed for {request.siteUrl}: {e}")
            return _error(500, str(e))
