"""
Scoring Module for Linkwise

Turns TF-IDF keywords and external metrics into ranked internal-link
recommendations.

Example Usage:
    from linkwise.scoring import ScoringPage, generate_opportunities, rank_opportunities

    opportunities = generate_opportunities(pages, keyword_metrics, search_metrics)
    ranked = rank_opportunities(opportunities)
"""

from .helpers import (
    KEYWORD_SCORE_FLOOR,
    TFIDF_MIN_SCORE,
    RELEVANT_TFIDF_SCORE,
    KEYWORDS_PER_PAGE,
    SOURCE_KEYWORDS_PER_PAGE,
    PERSISTED_OPPORTUNITIES,
    SUMMARY_OPPORTUNITIES,
    TRAFFIC_LIFT_RATE,
    DEFAULT_POSITION,
    ScoringThresholds,
    PagePerformance,
    calculate_keyword_score,
    calculate_page_score,
    relevance_for,
    summarize_page_performance,
)
from .opportunity import (
    ANCHOR_TEMPLATE,
    LinkOpportunity,
    OpportunityScorer,
    ScoringPage,
    generate_opportunities,
    generate_opportunities_naive,
    select_source_keywords,
    suggest_anchor_text,
)
from .ranking import (
    build_results_summary,
    rank_opportunities,
    select_for_persistence,
)

__all__ = [
    # Constants
    "KEYWORD_SCORE_FLOOR",
    "TFIDF_MIN_SCORE",
    "RELEVANT_TFIDF_SCORE",
    "KEYWORDS_PER_PAGE",
    "SOURCE_KEYWORDS_PER_PAGE",
    "PERSISTED_OPPORTUNITIES",
    "SUMMARY_OPPORTUNITIES",
    "TRAFFIC_LIFT_RATE",
    "DEFAULT_POSITION",
    # Formulas
    "ScoringThresholds",
    "PagePerformance",
    "calculate_keyword_score",
    "calculate_page_score",
    "relevance_for",
    "summarize_page_performance",
    # Generation
    "ANCHOR_TEMPLATE",
    "LinkOpportunity",
    "OpportunityScorer",
    "ScoringPage",
    "generate_opportunities",
    "generate_opportunities_naive",
    "select_source_keywords",
    "suggest_anchor_text",
    # Ranking
    "build_results_summary",
    "rank_opportunities",
    "select_for_persistence",
]
