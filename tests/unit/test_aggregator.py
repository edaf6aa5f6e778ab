"""Unit tests for the Agreement Aggregator."""

import logging

import pytest

from clause_resolution.models import (
    AcceptanceStatus,
    ClauseCatalogue,
    MatchStatus,
    PartyPreference,
    ResolutionMethod,
)
from clause_resolution.resolution import (
    AgreementAggregator,
    ClauseResolver,
    StaticTieBreakPolicy,
)


@pytest.fixture
def catalogues():
    return [
        ClauseCatalogue.from_ids("confidentiality", ["C1", "C2", "C3"]),
        ClauseCatalogue.from_ids("indemnity", ["I1", "I2"]),
        ClauseCatalogue.from_ids("governing_law", ["G1", "G2"]),
        ClauseCatalogue.from_ids("termination", ["T1", "T2"]),
    ]


@pytest.fixture
def party_a():
    return {
        "confidentiality": PartyPreference("confidentiality", ("C1", "C2")),
        "indemnity": PartyPreference("indemnity", ("I1", "I2"), frozenset()),
        "governing_law": PartyPreference("governing_law", ("G1",)),
        "termination": PartyPreference("termination", (), frozenset({"T1", "T2"})),
    }


@pytest.fixture
def party_b():
    return {
        "confidentiality": PartyPreference("confidentiality", ("C1",)),
        "indemnity": PartyPreference("indemnity", ("I2", "I1")),
        "governing_law": PartyPreference("governing_law", ("G2",), frozenset({"G1"})),
        "termination": PartyPreference("termination", ("T1",)),
    }


@pytest.fixture
def aggregator():
    resolver = ClauseResolver(tie_break_policy=StaticTieBreakPolicy({"governing_law": "G2"}))
    return AgreementAggregator(resolver=resolver)


class TestAggregation:
    """Tests for building the matching report."""

    def test_one_result_per_clause_in_template_order(
        self, aggregator, catalogues, party_a, party_b
    ):
        """Test results follow catalogue order."""
        report = aggregator.aggregate("nda-v1", catalogues, party_a, party_b)

        assert report.template_id == "nda-v1"
        assert [r.clause_type for r in report.results] == [
            "confidentiality", "indemnity", "governing_law", "termination"
        ]
        assert report.generated_at

    def test_methods_per_clause(self, aggregator, catalogues, party_a, party_b):
        """Test each clause is resolved by the expected method."""
        report = aggregator.aggregate("nda-v1", catalogues, party_a, party_b)

        methods = {c.clause_type: c.method for c in report.clauses}
        assert methods == {
            "confidentiality": ResolutionMethod.DIRECT_MATCH,
            "indemnity": ResolutionMethod.RANKING_COMPROMISE,
            "governing_law": ResolutionMethod.TIE_BREAKER,
            "termination": ResolutionMethod.REQUIRES_NEGOTIATION,
        }

    def test_summary_counts(self, aggregator, catalogues, party_a, party_b):
        """Test the summary counts and zero-filled histogram."""
        report = aggregator.aggregate("nda-v1", catalogues, party_a, party_b)
        summary = report.summary

        assert summary.total == 4
        assert summary.green_count == 3
        assert summary.red_count == 1
        assert summary.high_confidence_count == 1
        assert summary.method_histogram == {
            "direct_match": 1,
            "ranking_compromise": 1,
            "tie_breaker": 1,
            "requires_negotiation": 1,
        }
        assert not summary.is_finalizable

    def test_red_and_green_clauses(self, aggregator, catalogues, party_a, party_b):
        """Test report helpers split clauses by status."""
        report = aggregator.aggregate("nda-v1", catalogues, party_a, party_b)

        assert [c.clause_type for c in report.red_clauses()] == ["termination"]
        assert len(report.green_clauses()) == 3
        assert report.get_result("termination").resolution.match_status == MatchStatus.RED
        assert report.get_result("unknown") is None

    def test_rank_detail(self, aggregator, catalogues, party_a, party_b):
        """Test each party's rank and stance towards the selected variant."""
        report = aggregator.aggregate("nda-v1", catalogues, party_a, party_b)

        indemnity = report.get_result("indemnity").ranks
        assert indemnity.party_a_rank == 1
        assert indemnity.party_b_rank == 2
        assert indemnity.party_a_status == AcceptanceStatus.ACCEPTED

        governing = report.get_result("governing_law").ranks
        assert governing.party_a_rank is None
        assert governing.party_a_status == AcceptanceStatus.UNRANKED
        assert governing.party_b_rank == 1

        termination = report.get_result("termination").ranks
        assert termination.party_a_rank is None
        assert termination.party_a_status is None

    def test_empty_template(self, aggregator):
        """Test an empty template is trivially finalizable."""
        report = aggregator.aggregate("empty", [], {}, {})

        assert report.results == ()
        assert report.summary.total == 0
        assert report.summary.is_finalizable
        assert set(report.summary.method_histogram.values()) == {0}


class TestMissingPreferences:
    """Tests for clause types a party did not submit."""

    def test_missing_preference_is_rejected_all(self, aggregator, catalogues, party_a, party_b):
        """Test silence on a clause type never selects a variant."""
        del party_b["confidentiality"]

        report = aggregator.aggregate("nda-v1", catalogues, party_a, party_b)

        result = report.get_result("confidentiality").resolution
        assert result.method == ResolutionMethod.REQUIRES_NEGOTIATION
        assert result.reasoning == "Party B has rejected all variants"

    def test_unknown_clause_types_are_ignored(
        self, aggregator, catalogues, party_a, party_b, caplog
    ):
        """Test preferences for clause types outside the template are ignored."""
        party_a["arbitration"] = PartyPreference("arbitration", ("X1",))

        with caplog.at_level(logging.WARNING):
            report = aggregator.aggregate("nda-v1", catalogues, party_a, party_b)

        assert report.get_result("arbitration") is None
        assert "arbitration" in caplog.text


class TestConcurrency:
    """Tests for resolving clause types in parallel."""

    def test_parallel_matches_sequential(self, catalogues, party_a, party_b):
        """Test fan-out yields the same results in the same order."""
        policy = StaticTieBreakPolicy({"governing_law": "G2"})
        sequential = AgreementAggregator(ClauseResolver(policy), max_workers=1)
        parallel = AgreementAggregator(ClauseResolver(policy), max_workers=4)

        seq_report = sequential.aggregate("nda-v1", catalogues, party_a, party_b)
        par_report = parallel.aggregate("nda-v1", catalogues, party_a, party_b)

        assert seq_report.results == par_report.results
        assert seq_report.summary == par_report.summary

    def test_invalid_worker_count(self):
        """Test max_workers must be positive."""
        with pytest.raises(ValueError):
            AgreementAggregator(max_workers=0)
