"""
Linkwise - Data Models

Shared data models passed between the crawler, enrichment fetchers and the
opportunity scorer.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional


@dataclass
class KeywordMetrics:
    """Search volume data for one keyword."""
    keyword: str
    search_volume: int = 0
    keyword_difficulty: float = 0.0  # 0-100
    cpc: float = 0.0
    competition_index: float = 0.0


@dataclass
class SearchPerformanceMetric:
    """Search Console performance aggregated per (query, page)."""
    query: str
    page_url: str
    impressions: int = 0
    clicks: int = 0
    position: float = 100.0  # Best (minimum) position observed

    @property
    def key(self) -> str:
        return performance_key(self.query, self.page_url)

    @property
    def ctr(self) -> float:
        if self.impressions <= 0:
            return 0.0
        return self.clicks / self.impressions


def performance_key(query: str, page_url: str) -> str:
    """Lookup key used by search performance maps."""
    return f"{query}|{page_url}"


@dataclass
class EnrichmentResult:
    """
    Outcome of an external enrichment fetch.

    Either the data was fetched (available=True, data may still be empty when
    the provider has nothing), or the source was unavailable and data is an
    empty map. Scoring treats both as a plain map; the flag lets callers tell
    "measured zero" apart from "no data".
    """
    available: bool
    data: Dict[str, Any] = field(default_factory=dict)
    reason: Optional[str] = None

    @classmethod
    def enriched(cls, data: Dict[str, Any]) -> "EnrichmentResult":
        return cls(available=True, data=data)

    @classmethod
    def unavailable(cls, reason: str) -> "EnrichmentResult":
        return cls(available=False, data={}, reason=reason)

    def __len__(self) -> int:
        return len(self.data)
