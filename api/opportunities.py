"""
API Endpoints for Internal Linking Results

Handles:
1. List a project's analysis runs
2. List a project's link opportunities (optionally by status)
3. List crawled pages and their TF-IDF keywords
4. Move an opportunity through the pending / implemented / rejected workflow
"""

import logging
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from linkwise.database import (
    ImplementationStatus,
    get_page_keywords,
    list_analyses,
    list_opportunities,
    list_pages,
    update_opportunity_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/internal-linking",
    tags=["Internal Linking"],
)

StatusValue = Literal["pending", "implemented", "rejected"]


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class AnalysisRunResponse(BaseModel):
    id: str
    project_id: str
    analysis_name: Optional[str] = None
    site_url: str
    status: Optional[str] = None
    total_pages_crawled: Optional[int] = 0
    total_keywords_extracted: Optional[int] = 0
    total_opportunities_found: Optional[int] = 0
    results_summary: Dict[str, Any] = {}
    error_message: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_seconds: Optional[int] = None


class OpportunityResponse(BaseModel):
    id: str
    analysis_run_id: str
    source_page_id: str
    source_url: str
    target_page_id: str
    target_url: str
    keyword: str
    keyword_score: float
    page_score: float
    priority_score: float
    suggested_anchor_text: Optional[str] = None
    estimated_traffic_lift: Optional[int] = 0
    implementation_status: Optional[str] = None


class PageResponse(BaseModel):
    id: str
    url: str
    title: Optional[str] = None
    word_count: Optional[int] = 0
    topics: List[str] = []
    status: Optional[str] = None
    last_crawled_at: Optional[str] = None


class PageKeywordResponse(BaseModel):
    keyword: str
    tf_idf_score: float
    term_frequency: Optional[int] = 0
    document_frequency: Optional[int] = 0
    is_relevant: Optional[bool] = False


class UpdateOpportunityRequest(BaseModel):
    implementation_status: StatusValue


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/projects/{project_id}/analyses", response_model=List[AnalysisRunResponse])
async def get_project_analyses(
    project_id: str,
    limit: int = Query(20, ge=1, le=100),
):
    """Most recent analysis runs, newest first."""
    return list_analyses(project_id, limit=limit)


@router.get("/projects/{project_id}/opportunities", response_model=List[OpportunityResponse])
async def get_project_opportunities(
    project_id: str,
    limit: int = Query(50, ge=1, le=500),
    status: Optional[StatusValue] = Query(None, description="Filter by implementation status"),
):
    """
    Link opportunities for a project, highest priority first.
    """
    return list_opportunities(
        project_id,
        limit=limit,
        status=ImplementationStatus(status) if status else None,
    )


@router.get("/projects/{project_id}/pages", response_model=List[PageResponse])
async def get_project_pages(project_id: str):
    return list_pages(project_id)


@router.get(
    "/projects/{project_id}/pages/{page_id}/keywords",
    response_model=List[PageKeywordResponse],
)
async def get_project_page_keywords(
    project_id: str,
    page_id: UUID,
    limit: int = Query(20, ge=1, le=100),
):
    """Top TF-IDF keywords of one page."""
    return get_page_keywords(project_id, page_id, limit=limit)


@router.patch("/opportunities/{opportunity_id}", response_model=OpportunityResponse)
async def update_opportunity(
    opportunity_id: UUID,
    request: UpdateOpportunityRequest,
):
    """
    Update an opportunity's implementation status.
    """
    updated = update_opportunity_status(
        opportunity_id, ImplementationStatus(request.implementation_status)
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="Opportunity not found")
    return updated
