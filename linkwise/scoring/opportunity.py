"""
Link Opportunity Generator

For every (source page, keyword, target page) triple that passes the
filters, emits a LinkOpportunity:

1. Source keywords: top N relevant TF-IDF keywords of the source page
2. Keyword floor: keywords with keyword_score < floor are skipped
3. Containment gate: target content must contain the keyword
   (case-insensitive substring)
4. Page gate: page_score must be > 0

priority_score = keyword_score × page_score

generate_opportunities() finds targets through a keyword → pages
containment index; generate_opportunities_naive() scans every page for every
keyword. Both return the same opportunities in the same order.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional

from linkwise.analysis.tfidf import TermScore
from linkwise.models import KeywordMetrics, SearchPerformanceMetric, performance_key

from .helpers import (
    DEFAULT_POSITION,
    PagePerformance,
    ScoringThresholds,
    calculate_keyword_score,
    calculate_page_score,
    relevance_for,
    summarize_page_performance,
)

logger = logging.getLogger(__name__)

ANCHOR_TEMPLATE = "Learn more about {keyword}"


@dataclass
class ScoringPage:
    """A crawled page as seen by the scorer."""
    page_id: str
    url: str
    content: str
    keywords: List[TermScore] = field(default_factory=list)
    incoming_links: int = 0

    def __post_init__(self):
        self._content_lower = (self.content or "").lower()

    def contains(self, keyword: str) -> bool:
        return keyword.lower() in self._content_lower


@dataclass
class LinkOpportunity:
    """A suggested internal link from source page to target page."""
    source_page_id: str
    source_url: str
    target_page_id: str
    target_url: str
    keyword: str
    keyword_score: float
    page_score: float
    priority_score: float
    suggested_anchor_text: str
    estimated_traffic_lift: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def suggest_anchor_text(keyword: str) -> str:
    return ANCHOR_TEMPLATE.format(keyword=keyword)


def select_source_keywords(page: ScoringPage, thresholds: ScoringThresholds) -> List[TermScore]:
    """Top relevant keywords of a page, highest TF-IDF first."""
    relevant = [k for k in page.keywords if k.tf_idf_score > thresholds.relevant_tfidf_score]
    relevant.sort(key=lambda k: k.tf_idf_score, reverse=True)
    return relevant[: thresholds.source_keywords_per_page]


class OpportunityScorer:
    """
    Scores candidate links for one analysis run.

    Usage:
        scorer = OpportunityScorer(keyword_metrics, search_metrics)
        opportunities = scorer.generate(pages)
    """

    def __init__(
        self,
        keyword_metrics: Dict[str, KeywordMetrics],
        search_metrics: Dict[str, SearchPerformanceMetric],
        thresholds: Optional[ScoringThresholds] = None,
    ):
        self.keyword_metrics = keyword_metrics or {}
        self.search_metrics = search_metrics or {}
        self.thresholds = thresholds or ScoringThresholds()
        self.page_performance: Dict[str, PagePerformance] = summarize_page_performance(
            self.search_metrics
        )

    def keyword_score(self, keyword: str, source_url: str) -> float:
        metric = self.keyword_metrics.get(keyword)
        search = self.search_metrics.get(performance_key(keyword, source_url))

        volume = metric.search_volume if metric else 0
        difficulty = metric.keyword_difficulty if metric else 0
        impressions = search.impressions if search else 0

        return calculate_keyword_score(volume, impressions, difficulty, relevance_for(search))

    def page_score(self, target: ScoringPage) -> float:
        perf = self.page_performance.get(target.url)
        impressions = perf.impressions if perf else 0
        position = perf.position if perf else DEFAULT_POSITION
        return calculate_page_score(impressions, position, target.incoming_links)

    def target_impressions(self, target: ScoringPage) -> int:
        perf = self.page_performance.get(target.url)
        return perf.impressions if perf else 0

    def generate(self, pages: List[ScoringPage]) -> List[LinkOpportunity]:
        """Generate opportunities using a keyword → containing-pages index."""
        index: Dict[str, List[ScoringPage]] = {}

        def containing(keyword: str) -> List[ScoringPage]:
            if keyword not in index:
                index[keyword] = [p for p in pages if p.contains(keyword)]
            return index[keyword]

        opportunities = self._sweep(pages, containing)
        logger.info(
            f"Generated {len(opportunities)} opportunities from {len(pages)} pages "
            f"({len(index)} indexed keywords)"
        )
        return opportunities

    def generate_naive(self, pages: List[ScoringPage]) -> List[LinkOpportunity]:
        """Generate opportunities by scanning every page for every keyword."""
        return self._sweep(pages, lambda keyword: [p for p in pages if p.contains(keyword)])

    def _sweep(
        self,
        pages: List[ScoringPage],
        targets_for: Callable[[str], List[ScoringPage]],
    ) -> List[LinkOpportunity]:
        opportunities: List[LinkOpportunity] = []
        page_scores: Dict[str, float] = {}

        for source in pages:
            for term in select_source_keywords(source, self.thresholds):
                keyword_score = self.keyword_score(term.keyword, source.url)
                if keyword_score < self.thresholds.keyword_score_floor:
                    continue

                for target in targets_for(term.keyword):
                    if target.page_id == source.page_id:
                        continue

                    if target.page_id not in page_scores:
                        page_scores[target.page_id] = self.page_score(target)
                    page_score = page_scores[target.page_id]
                    if page_score <= 0:
                        continue

                    opportunities.append(LinkOpportunity(
                        source_page_id=source.page_id,
                        source_url=source.url,
                        target_page_id=target.page_id,
                        target_url=target.url,
                        keyword=term.keyword,
                        keyword_score=keyword_score,
                        page_score=page_score,
                        priority_score=keyword_score * page_score,
                        suggested_anchor_text=suggest_anchor_text(term.keyword),
                        estimated_traffic_lift=round(
                            self.target_impressions(target) * self.thresholds.traffic_lift_rate
                        ),
                    ))

        return opportunities


def generate_opportunities(
    pages: List[ScoringPage],
    keyword_metrics: Dict[str, KeywordMetrics],
    search_metrics: Dict[str, SearchPerformanceMetric],
    thresholds: Optional[ScoringThresholds] = None,
) -> List[LinkOpportunity]:
    """Convenience wrapper around OpportunityScorer.generate()."""
    return OpportunityScorer(keyword_metrics, search_metrics, thresholds).generate(pages)


def generate_opportunities_naive(
    pages: List[ScoringPage],
    keyword_metrics: Dict[str, KeywordMetrics],
    search_metrics: Dict[str, SearchPerformanceMetric],
    thresholds: Optional[ScoringThresholds] = None,
) -> List[LinkOpportunity]:
    """Reference O(pages² × keywords) sweep."""
    return OpportunityScorer(keyword_metrics, search_metrics, thresholds).generate_naive(pages)
