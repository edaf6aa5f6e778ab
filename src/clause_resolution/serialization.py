"""Serialization utilities for resolution inputs and matching reports.

Reports cross the engine boundary as plain dictionaries. The full report
carries both parties' ranks of each selected variant; the party view carries
only the requesting party's rank and the counterpart's stance, never the
counterpart's ranking.
"""

import json
from typing import Any, Dict, Mapping

from .models.enums import PartyRole
from .models.preference import PartyPreference, RawSubmission
from .models.resolution import (
    MatchingReport,
    MatchingResult,
    MutualRankDetail,
    ReportSummary,
    ResolvedClause,
)


class ReportSerializer:
    """
    Handles conversion of MatchingReport structures to JSON-ready data.
    """

    @staticmethod
    def to_dict(report: MatchingReport) -> dict[str, Any]:
        """
        Convert a MatchingReport to a dictionary.

        Args:
            report: The report to convert.

        Returns:
            Dictionary with `template_id`, `generated_at`, `summary` and
            `results`.
        """
        return {
            "template_id": report.template_id,
            "generated_at": report.generated_at,
            "summary": ReportSerializer._summary_to_dict(report.summary),
            "results": [ReportSerializer._result_to_dict(r) for r in report.results],
        }

    @staticmethod
    def to_json(report: MatchingReport) -> str:
        """Serialize a MatchingReport to a JSON string."""
        return json.dumps(
            ReportSerializer.to_dict(report),
            ensure_ascii=False,
            indent=2
        )

    @staticmethod
    def party_view(report: MatchingReport, party: PartyRole) -> dict[str, Any]:
        """
        Build the report as presented to one party.

        Args:
            report: The full report.
            party: The party the view is for.

        Returns:
            Dictionary in which each clause exposes the party's own rank and
            status for the selected variant plus the counterpart's status.
        """
        clauses = []
        for result in report.results:
            data = ReportSerializer.resolved_clause_to_dict(result.resolution)
            own_rank, own_status, other_status = ReportSerializer._party_ranks(
                result.ranks, party
            )
            data["your_rank"] = own_rank
            data["your_status"] = own_status
            data["counterpart_status"] = other_status
            clauses.append(data)

        return {
            "template_id": report.template_id,
            "party": party.value,
            "generated_at": report.generated_at,
            "summary": ReportSerializer._summary_to_dict(report.summary),
            "clauses": clauses,
        }

    @staticmethod
    def resolved_clause_to_dict(clause: ResolvedClause) -> dict[str, Any]:
        """Convert a ResolvedClause to a dictionary."""
        return {
            "clause_type": clause.clause_type,
            "selected_variant": clause.selected_variant,
            "method": clause.method.value,
            "confidence": clause.confidence,
            "confidence_level": clause.confidence_level.value,
            "reasoning": clause.reasoning,
            "alternatives": list(clause.alternatives),
            "match_status": clause.match_status.value,
        }

    @staticmethod
    def _result_to_dict(result: MatchingResult) -> dict[str, Any]:
        data = ReportSerializer.resolved_clause_to_dict(result.resolution)
        data["ranks"] = ReportSerializer._ranks_to_dict(result.ranks)
        return data

    @staticmethod
    def _ranks_to_dict(ranks: MutualRankDetail) -> dict[str, Any]:
        return {
            "party_a_rank": ranks.party_a_rank,
            "party_b_rank": ranks.party_b_rank,
            "party_a_status": ranks.party_a_status.value if ranks.party_a_status else None,
            "party_b_status": ranks.party_b_status.value if ranks.party_b_status else None,
        }

    @staticmethod
    def _party_ranks(ranks: MutualRankDetail, party: PartyRole):
        own = ranks.status_for(party)
        other = ranks.status_for(party.counterpart)
        return (
            ranks.rank_for(party),
            own.value if own else None,
            other.value if other else None,
        )

    @staticmethod
    def _summary_to_dict(summary: ReportSummary) -> dict[str, Any]:
        return {
            "total": summary.total,
            "green_count": summary.green_count,
            "red_count": summary.red_count,
            "high_confidence_count": summary.high_confidence_count,
            "method_histogram": dict(summary.method_histogram),
            "is_finalizable": summary.is_finalizable,
        }


def submission_from_dict(clause_type: str, data: Mapping[str, Any]) -> RawSubmission:
    """
    Build a RawSubmission from intake data.

    Accepts the keys `ranking`, `rejected`, `selected_variant` and
    `reject_all`; `selectedVariant` and `isRejected` are accepted as aliases
    used by the intake forms.

    Raises:
        ValueError: If a field has the wrong shape.
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Submission for '{clause_type}' must be an object")

    ranking = data.get("ranking") or []
    rejected = data.get("rejected") or []
    if not isinstance(ranking, list) or not isinstance(rejected, list):
        raise ValueError(
            f"Submission for '{clause_type}': 'ranking' and 'rejected' must be lists"
        )

    selected = data.get("selected_variant", data.get("selectedVariant"))
    reject_all = data.get("reject_all", data.get("isRejected", False))
    if not isinstance(reject_all, bool):
        raise ValueError(f"Submission for '{clause_type}': 'reject_all' must be a boolean")

    return RawSubmission(
        clause_type=clause_type,
        ranking=list(ranking),
        rejected=list(rejected),
        selected_variant=selected,
        reject_all=reject_all,
    )


def submissions_from_dict(data: Mapping[str, Any]) -> Dict[str, RawSubmission]:
    """Build RawSubmissions for every clause type of one party's intake."""
    return {
        clause_type: submission_from_dict(clause_type, entry)
        for clause_type, entry in data.items()
    }


def preference_to_dict(preference: PartyPreference) -> dict[str, Any]:
    """Convert a normalized PartyPreference to a dictionary."""
    return {
        "clause_type": preference.clause_type,
        "ranking": list(preference.ranking),
        "rejected": sorted(preference.rejected),
    }


def serialize_report(report: MatchingReport) -> str:
    """Convenience function to serialize a MatchingReport."""
    return ReportSerializer.to_json(report)


def report_to_dict(report: MatchingReport) -> dict[str, Any]:
    """Convenience function to convert a MatchingReport to a dictionary."""
    return ReportSerializer.to_dict(report)
