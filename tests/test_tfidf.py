"""
Tests for the TF-IDF engine.
"""

import math

import pytest

from linkwise.analysis import TfIdfCalculator, build_corpus, score_document


class TestCorpusIndex:
    """Test document-frequency bookkeeping."""

    def test_document_frequency_counts_documents_not_occurrences(self):
        corpus = build_corpus(["shoes shoes trail", "trail running"])
        assert corpus.size == 2
        assert corpus.document_frequency["shoes"] == 1
        assert corpus.document_frequency["trail"] == 2
        assert corpus.document_frequency["running"] == 1

    def test_idf_is_zero_for_unknown_terms(self):
        corpus = build_corpus(["shoes trail"])
        assert corpus.idf("unknown") == 0

    def test_idf_monotonic_in_document_frequency(self):
        """A rarer term never has a lower IDF than a more common one."""
        corpus = build_corpus([
            "shoes trail socks",
            "shoes trail",
            "shoes",
        ])
        assert corpus.idf("socks") > corpus.idf("trail") > corpus.idf("shoes")
        assert corpus.idf("shoes") == 0


class TestScoreDocument:
    """Test per-document TF-IDF scoring."""

    def test_scores_match_formula(self):
        corpus = build_corpus(["shoes shoes trail", "trail running"])
        scores = score_document(corpus, 0)

        assert len(scores) == 1
        top = scores[0]
        assert top.keyword == "shoes"
        assert top.tf_idf_score == pytest.approx((2 / 3) * math.log(2))
        assert top.term_frequency == 2
        assert top.document_frequency == 1

    def test_term_in_every_document_is_dropped(self):
        corpus = build_corpus(["shoes trail", "trail running"])
        keywords = [s.keyword for s in score_document(corpus, 0)]
        assert "trail" not in keywords

    def test_low_scores_are_filtered(self):
        """tf = 0.1, idf = ln 2, so the score is below 0.1."""
        doc = "zebra " + " ".join(["common"] * 9)
        corpus = build_corpus([doc, "common other"])
        keywords = [s.keyword for s in score_document(corpus, 0)]
        assert "zebra" not in keywords

    def test_custom_min_score(self):
        doc = "zebra " + " ".join(["common"] * 9)
        corpus = build_corpus([doc, "common other"])
        keywords = [s.keyword for s in score_document(corpus, 0, min_score=0.05)]
        assert keywords == ["zebra"]

    def test_sorted_descending_with_ties_in_appearance_order(self):
        corpus = build_corpus(["beta alpha beta gamma", "delta"])
        scores = score_document(corpus, 0)

        assert [s.keyword for s in scores] == ["beta", "alpha", "gamma"]
        assert scores[1].tf_idf_score == scores[2].tf_idf_score

    def test_empty_document_scores_nothing(self):
        corpus = build_corpus(["", "shoes"])
        assert score_document(corpus, 0) == []

    def test_deterministic(self):
        docs = ["trail running shoes guide", "road running shoes", "marathon nutrition guide"]
        first = [score_document(build_corpus(docs), i) for i in range(len(docs))]
        second = [score_document(build_corpus(docs), i) for i in range(len(docs))]
        assert first == second


class TestTfIdfCalculator:
    """Test the incremental wrapper."""

    def test_matches_two_phase_api(self):
        docs = ["trail running shoes guide", "road running shoes", "marathon nutrition guide"]
        calc = TfIdfCalculator()
        for doc in docs:
            calc.add_document(doc)

        corpus = build_corpus(docs)
        for i in range(len(docs)):
            assert calc.calculate(i) == score_document(corpus, i)

    def test_adding_documents_rebuilds_index(self):
        calc = TfIdfCalculator()
        calc.add_document("shoes trail")
        assert calc.calculate(0) == []  # single document: every idf is zero

        index = calc.add_document("running")
        assert index == 1
        assert calc.document_count == 2
        assert [s.keyword for s in calc.calculate(0)] == ["shoes", "trail"]
