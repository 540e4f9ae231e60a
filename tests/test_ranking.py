"""
Tests for opportunity ranking and the run summary.
"""

from linkwise.scoring import (
    LinkOpportunity,
    build_results_summary,
    rank_opportunities,
    select_for_persistence,
)


def make_opportunity(n: int, priority: float) -> LinkOpportunity:
    return LinkOpportunity(
        source_page_id=f"src-{n}",
        source_url=f"https://example.com/src-{n}",
        target_page_id=f"tgt-{n}",
        target_url=f"https://example.com/tgt-{n}",
        keyword=f"keyword{n}",
        keyword_score=priority,
        page_score=1.0,
        priority_score=priority,
        suggested_anchor_text=f"Learn more about keyword{n}",
        estimated_traffic_lift=n,
    )


class TestRanking:
    """Test ordering and caps."""

    def test_sorted_by_priority_descending(self):
        opps = [make_opportunity(i, p) for i, p in enumerate([5.0, 50.0, 0.5, 500.0])]
        ranked = rank_opportunities(opps)
        assert [o.priority_score for o in ranked] == [500.0, 50.0, 5.0, 0.5]

    def test_ties_keep_generation_order(self):
        opps = [make_opportunity(i, 10.0) for i in range(5)]
        assert [o.keyword for o in rank_opportunities(opps)] == [o.keyword for o in opps]

    def test_persists_at_most_fifty(self):
        opps = [make_opportunity(i, float(i)) for i in range(120)]
        persisted = select_for_persistence(rank_opportunities(opps))

        assert len(persisted) == 50
        assert persisted[0].priority_score == 119.0
        assert persisted[-1].priority_score == 70.0

    def test_fewer_than_fifty_are_all_persisted(self):
        opps = [make_opportunity(i, float(i)) for i in range(7)]
        assert len(select_for_persistence(rank_opportunities(opps))) == 7


class TestResultsSummary:
    """Test the summary snapshot stored on the run."""

    def test_top_ten_snapshot(self):
        ranked = rank_opportunities([make_opportunity(i, float(i)) for i in range(30)])
        summary = build_results_summary(
            ranked, enrichment={"keyword_metrics": True, "search_performance": False}
        )

        assert len(summary["top_opportunities"]) == 10
        first = summary["top_opportunities"][0]
        assert first == {
            "keyword": "keyword29",
            "source_url": "https://example.com/src-29",
            "target_url": "https://example.com/tgt-29",
            "priority_score": 29.0,
            "estimated_traffic_lift": 29,
        }
        assert summary["enrichment"] == {"keyword_metrics": True, "search_performance": False}
        assert "analysis_date" in summary

    def test_empty(self):
        summary = build_results_summary([])
        assert summary["top_opportunities"] == []
        assert summary["enrichment"] == {}
