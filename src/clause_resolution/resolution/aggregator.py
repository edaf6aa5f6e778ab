"""Agreement aggregation for the Clause Preference Resolution Engine.

Runs the clause resolver over every clause type of a template and shapes the
results into a MatchingReport with summary counts for the presentation and
export layers.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..interfaces.resolution import IAgreementAggregator, IClauseResolver
from ..models.catalogue import ClauseCatalogue
from ..models.enums import ConfidenceLevel, ResolutionMethod
from ..models.preference import PartyPreference
from ..models.resolution import (
    MatchingReport,
    MatchingResult,
    MutualRankDetail,
    ReportSummary,
    ResolvedClause,
)
from .clause_resolver import ClauseResolver


logger = logging.getLogger(__name__)

ClauseInputs = Tuple[ClauseCatalogue, PartyPreference, PartyPreference]


class AgreementAggregator(IAgreementAggregator):
    """
    Aggregator producing the full matching report for a template.

    A party with no preference for a clause type is treated as having
    rejected every variant of it, so silence never selects a variant neither
    party confirmed.
    """

    def __init__(
        self,
        resolver: Optional[IClauseResolver] = None,
        max_workers: int = 1,
    ):
        """
        Initialize the aggregator.

        Args:
            resolver: Clause resolver to apply per clause type.
            max_workers: Clause types resolved concurrently. 1 resolves them
                sequentially in the calling thread.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._resolver = resolver or ClauseResolver()
        self._max_workers = max_workers

    def aggregate(
        self,
        template_id: str,
        catalogues: Sequence[ClauseCatalogue],
        party_a: Mapping[str, PartyPreference],
        party_b: Mapping[str, PartyPreference],
    ) -> MatchingReport:
        """
        Build the matching report for a template.

        Args:
            template_id: Identifier of the template being negotiated.
            catalogues: Catalogues of every clause type, in template order.
            party_a: Party A's preferences keyed by clause type.
            party_b: Party B's preferences keyed by clause type.

        Returns:
            MatchingReport with one result per clause type, in template order.
        """
        known = {c.clause_type for c in catalogues}
        for label, prefs in (("party_a", party_a), ("party_b", party_b)):
            unknown = sorted(set(prefs) - known)
            if unknown:
                logger.warning(
                    f"Ignoring {label} preferences for clause types not in "
                    f"template '{template_id}': {unknown}"
                )

        inputs: List[ClauseInputs] = [
            (
                catalogue,
                self._preference_for(party_a, catalogue.clause_type),
                self._preference_for(party_b, catalogue.clause_type),
            )
            for catalogue in catalogues
        ]

        resolutions = self._resolve_all(inputs)

        results = tuple(
            MatchingResult(
                resolution=resolution,
                ranks=self._rank_detail(resolution, pref_a, pref_b),
            )
            for resolution, (_, pref_a, pref_b) in zip(resolutions, inputs)
        )

        report = MatchingReport(
            template_id=template_id,
            results=results,
            summary=self.summarize(r.resolution for r in results),
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

        logger.info(
            f"Template '{template_id}': {report.summary.green_count} green, "
            f"{report.summary.red_count} red of {report.summary.total} clauses"
        )
        return report

    def _resolve_all(self, inputs: List[ClauseInputs]) -> List[ResolvedClause]:
        """Resolve every clause type, fanning out when configured to."""
        if self._max_workers == 1 or len(inputs) <= 1:
            return [self._resolver.resolve(*clause_inputs) for clause_inputs in inputs]

        # Clause types are independent; collect in submission order once all
        # futures have completed.
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [
                executor.submit(self._resolver.resolve, *clause_inputs)
                for clause_inputs in inputs
            ]
            return [future.result() for future in futures]

    @staticmethod
    def _preference_for(
        preferences: Mapping[str, PartyPreference],
        clause_type: str,
    ) -> PartyPreference:
        preference = preferences.get(clause_type)
        if preference is None:
            logger.debug(f"No preference for '{clause_type}', treating as rejected all")
            return PartyPreference.rejecting_all(clause_type)
        return preference

    @staticmethod
    def _rank_detail(
        resolution: ResolvedClause,
        party_a: PartyPreference,
        party_b: PartyPreference,
    ) -> MutualRankDetail:
        """Each party's rank of, and stance towards, the selected variant."""
        selected = resolution.selected_variant
        if selected is None:
            return MutualRankDetail()
        return MutualRankDetail(
            party_a_rank=party_a.rank_of(selected),
            party_b_rank=party_b.rank_of(selected),
            party_a_status=party_a.status_of(selected),
            party_b_status=party_b.status_of(selected),
        )

    @staticmethod
    def summarize(resolutions) -> ReportSummary:
        """
        Compute summary counts over resolved clauses.

        Args:
            resolutions: Iterable of ResolvedClause.

        Returns:
            ReportSummary with green/red counts and a zero-filled histogram
            of resolution methods.
        """
        histogram: Dict[str, int] = {m.value: 0 for m in ResolutionMethod}
        total = green = red = high = 0

        for resolution in resolutions:
            total += 1
            histogram[resolution.method.value] += 1
            if resolution.requires_negotiation:
                red += 1
            else:
                green += 1
            if resolution.confidence_level is ConfidenceLevel.HIGH:
                high += 1

        return ReportSummary(
            total=total,
            green_count=green,
            red_count=red,
            high_confidence_count=high,
            method_histogram=histogram,
        )
