"""
SQLAlchemy Models for Linkwise

Design Principles:
1. Everything is scoped by project_id (external, opaque identifier)
2. Pages are upserted per (project, url); a new crawl supersedes content
3. Opportunities belong to the analysis run that produced them
4. Runs record counts and a summary snapshot for the dashboard

PostgreSQL in production, SQLite for local development and tests.
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Date, Text,
    ForeignKey, Enum, Index, UniqueConstraint, JSON, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# ENUMS
# =============================================================================

class AnalysisStatus(enum.Enum):
    """Status of an internal-linking analysis run"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ImplementationStatus(enum.Enum):
    """Workflow state of a link opportunity"""
    PENDING = "pending"
    IMPLEMENTED = "implemented"
    REJECTED = "rejected"


# =============================================================================
# CORE TABLES
# =============================================================================

class AnalysisRun(Base):
    """One internal-linking analysis invocation"""
    __tablename__ = "linking_analysis_runs"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(String(255), nullable=False)
    analysis_name = Column(String(255), default="Internal Linking Analysis")
    site_url = Column(String(2000), nullable=False)

    # Status tracking
    status = Column(Enum(AnalysisStatus), default=AnalysisStatus.RUNNING, nullable=False)

    # Results
    total_pages_crawled = Column(Integer, default=0)
    total_keywords_extracted = Column(Integer, default=0)
    total_opportunities_found = Column(Integer, default=0)
    results_summary = Column(JSONType, default=dict)
    """
    {
        "top_opportunities": [{"keyword": "...", "priority_score": 1.0, ...}],
        "enrichment": {"keyword_metrics": true, "search_performance": false},
        "analysis_date": "2024-01-15T10:30:00"
    }
    """

    # Timing
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime)
    duration_seconds = Column(Integer)

    # Error tracking
    error_message = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    opportunities = relationship(
        "LinkOpportunityRecord", back_populates="analysis_run", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_linking_run_project_time", "project_id", "created_at"),
        Index("idx_linking_run_status", "project_id", "status"),
    )


class Page(Base):
    """Crawled page - one row per (project, url)"""
    __tablename__ = "linking_pages"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(String(255), nullable=False)

    url = Column(String(2000), nullable=False)
    title = Column(String(500), default="")
    content = Column(Text, default="")
    markdown_content = Column(Text, default="")
    word_count = Column(Integer, default=0)
    topics = Column(JSONType, default=list)
    status = Column(String(20), default="active")

    last_crawled_at = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    keywords = relationship("PageKeyword", back_populates="page", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("project_id", "url", name="uq_linking_page_project_url"),
    )


class PageKeyword(Base):
    """TF-IDF keyword of a page, computed against the run's crawl corpus"""
    __tablename__ = "linking_keywords"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(String(255), nullable=False)
    page_id = Column(Uuid, ForeignKey("linking_pages.id", ondelete="CASCADE"), nullable=False)

    keyword = Column(String(500), nullable=False)
    tf_idf_score = Column(Float, nullable=False)
    term_frequency = Column(Integer, default=0)
    document_frequency = Column(Integer, default=0)
    is_relevant = Column(Boolean, default=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    page = relationship("Page", back_populates="keywords")

    __table_args__ = (
        UniqueConstraint("page_id", "keyword", name="uq_linking_keyword_page"),
        Index("idx_linking_keyword_rank", "page_id", "is_relevant", "tf_idf_score"),
    )


class KeywordMetric(Base):
    """Search volume data per (project, keyword)"""
    __tablename__ = "keyword_metrics"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(String(255), nullable=False)

    keyword = Column(String(500), nullable=False)
    search_volume = Column(Integer, default=0)
    keyword_difficulty = Column(Float, default=0)  # 0-100
    cpc = Column(Float, default=0)
    competition_index = Column(Float, default=0)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("project_id", "keyword", name="uq_keyword_metric_project"),
    )


class SearchPerformanceRecord(Base):
    """Search Console totals per (project, query, page, date fetched)"""
    __tablename__ = "search_performance_metrics"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(String(255), nullable=False)

    query = Column(String(500), nullable=False)
    page_url = Column(String(2000), nullable=False)
    impressions = Column(Integer, default=0)
    clicks = Column(Integer, default=0)
    ctr = Column(Float, default=0)
    position = Column(Float, default=100)
    metric_date = Column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "project_id", "query", "page_url", "metric_date",
            name="uq_search_metric_project_query_page_date",
        ),
    )


class LinkOpportunityRecord(Base):
    """Suggested internal link produced by an analysis run"""
    __tablename__ = "link_opportunities"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(String(255), nullable=False)
    analysis_run_id = Column(
        Uuid, ForeignKey("linking_analysis_runs.id", ondelete="CASCADE"), nullable=False
    )

    source_page_id = Column(Uuid, ForeignKey("linking_pages.id"), nullable=False)
    source_url = Column(String(2000), nullable=False)
    target_page_id = Column(Uuid, ForeignKey("linking_pages.id"), nullable=False)
    target_url = Column(String(2000), nullable=False)
    keyword = Column(String(500), nullable=False)

    keyword_score = Column(Float, nullable=False)
    page_score = Column(Float, nullable=False)
    priority_score = Column(Float, nullable=False)
    suggested_anchor_text = Column(String(600))
    estimated_traffic_lift = Column(Integer, default=0)

    implementation_status = Column(
        Enum(ImplementationStatus), default=ImplementationStatus.PENDING, nullable=False
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    analysis_run = relationship("AnalysisRun", back_populates="opportunities")

    __table_args__ = (
        Index("idx_link_opportunity_priority", "project_id", "priority_score"),
    )


class InternalLink(Base):
    """Existing internal link between two pages (read for incoming-link counts)"""
    __tablename__ = "internal_links"

    id = Column(Uuid, primary_key=True, default=uuid4)
    project_id = Column(String(255), nullable=False)
    source_page_id = Column(Uuid, ForeignKey("linking_pages.id", ondelete="CASCADE"), nullable=False)
    target_page_id = Column(Uuid, ForeignKey("linking_pages.id", ondelete="CASCADE"), nullable=False)
    anchor_text = Column(String(600))

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_internal_link_target", "target_page_id"),
    )
