"""
Opportunity Ranking

Orders link opportunities by priority and builds the run summary.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .helpers import PERSISTED_OPPORTUNITIES, SUMMARY_OPPORTUNITIES
from .opportunity import LinkOpportunity


def rank_opportunities(opportunities: List[LinkOpportunity]) -> List[LinkOpportunity]:
    """Sort by priority_score, highest first. Equal scores keep generation order."""
    return sorted(opportunities, key=lambda o: o.priority_score, reverse=True)


def select_for_persistence(
    ranked: List[LinkOpportunity],
    limit: int = PERSISTED_OPPORTUNITIES,
) -> List[LinkOpportunity]:
    return ranked[:limit]


def build_results_summary(
    ranked: List[LinkOpportunity],
    limit: int = SUMMARY_OPPORTUNITIES,
    enrichment: Optional[Dict[str, bool]] = None,
) -> Dict[str, Any]:
    """
    Snapshot stored on the analysis run.

    Args:
        ranked: All opportunities, already ranked
        limit: Number of top opportunities to include
        enrichment: Which enrichment sources were available
    """
    return {
        "top_opportunities": [
            {
                "keyword": opp.keyword,
                "source_url": opp.source_url,
                "target_url": opp.target_url,
                "priority_score": opp.priority_score,
                "estimated_traffic_lift": opp.estimated_traffic_lift,
            }
            for opp in ranked[:limit]
        ],
        "enrichment": enrichment or {},
        "analysis_date": datetime.utcnow().isoformat(),
    }
