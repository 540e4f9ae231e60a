"""
Scoring Helper Functions and Constants

Thresholds and the two scoring formulas used by link opportunity
generation.

Keyword score (how valuable is the anchor keyword):
    (search_volume × impressions) / (keyword_difficulty + 1) × relevance

Page score (how much does the target page gain from one more link):
    ctr_potential = max(0.30 - position × 0.002, 0.01)
    rank_factor   = max(1 - position / 100, 0.1)
    (impressions × ctr_potential) / (incoming_links + 1) × rank_factor
"""

from dataclasses import dataclass
from typing import Dict, Optional

from linkwise.models import SearchPerformanceMetric


# ============================================================================
# THRESHOLDS
# ============================================================================

KEYWORD_SCORE_FLOOR = 100.0       # Keywords scoring below this are skipped
TFIDF_MIN_SCORE = 0.1             # Terms kept by TF-IDF extraction
RELEVANT_TFIDF_SCORE = 0.2        # Terms flagged is_relevant
KEYWORDS_PER_PAGE = 20            # Stored keywords per page
SOURCE_KEYWORDS_PER_PAGE = 10     # Relevant keywords tried as anchors per source page
PERSISTED_OPPORTUNITIES = 50
SUMMARY_OPPORTUNITIES = 10
TRAFFIC_LIFT_RATE = 0.1           # Flat 10% of target impressions

# Relevance multipliers for the keyword score
RELEVANCE_WITH_DATA = 1.0
RELEVANCE_WITHOUT_DATA = 0.5

# Position assumed when a page has no Search Console data
DEFAULT_POSITION = 100.0


@dataclass
class ScoringThresholds:
    """Tunable constants for opportunity generation."""
    keyword_score_floor: float = KEYWORD_SCORE_FLOOR
    tfidf_min_score: float = TFIDF_MIN_SCORE
    relevant_tfidf_score: float = RELEVANT_TFIDF_SCORE
    keywords_per_page: int = KEYWORDS_PER_PAGE
    source_keywords_per_page: int = SOURCE_KEYWORDS_PER_PAGE
    persisted_opportunities: int = PERSISTED_OPPORTUNITIES
    summary_opportunities: int = SUMMARY_OPPORTUNITIES
    traffic_lift_rate: float = TRAFFIC_LIFT_RATE

    @classmethod
    def from_settings(cls, settings) -> "ScoringThresholds":
        """Build thresholds from Settings, keeping defaults for the rest."""
        return cls(
            keyword_score_floor=settings.KEYWORD_SCORE_FLOOR,
            tfidf_min_score=settings.TFIDF_MIN_SCORE,
            relevant_tfidf_score=settings.RELEVANT_TFIDF_SCORE,
        )


# ============================================================================
# FORMULAS
# ============================================================================

def calculate_keyword_score(
    search_volume: float,
    impressions: float,
    keyword_difficulty: float,
    relevance_score: float = RELEVANCE_WITH_DATA,
) -> float:
    """Value of a keyword as anchor text on its source page."""
    return (search_volume * impressions) / (keyword_difficulty + 1) * relevance_score


def calculate_page_score(
    impressions: float,
    avg_position: float,
    incoming_links: int,
) -> float:
    """
    Value of adding one more internal link to a target page.

    Pages that already receive many internal links score lower.
    """
    ctr_potential = max(0.30 - avg_position * 0.002, 0.01)
    rank_factor = max(1 - avg_position / 100, 0.1)
    return (impressions * ctr_potential) / (incoming_links + 1) * rank_factor


def relevance_for(metric: Optional[SearchPerformanceMetric]) -> float:
    """Full relevance when the (keyword, page) pair has Search Console data."""
    return RELEVANCE_WITH_DATA if metric is not None else RELEVANCE_WITHOUT_DATA


@dataclass
class PagePerformance:
    """Search Console totals for one page across all queries."""
    impressions: int = 0
    position: float = DEFAULT_POSITION


def summarize_page_performance(
    search_metrics: Dict[str, SearchPerformanceMetric],
) -> Dict[str, PagePerformance]:
    """
    Total impressions and best position per page URL.

    Args:
        search_metrics: {"query|page": SearchPerformanceMetric}

    Returns:
        {page_url: PagePerformance}
    """
    pages: Dict[str, PagePerformance] = {}
    for metric in search_metrics.values():
        perf = pages.setdefault(metric.page_url, PagePerformance())
        perf.impressions += metric.impressions
        perf.position = min(perf.position, metric.position)
    return pages
