"""Rank-weighted overlap scoring for the Clause Preference Resolution Engine.

Every variant that both parties ranked and neither rejected is a candidate.
A candidate's score rewards being near the top of both lists:

    score(v) = (len(ranking_A) - indexA(v)) + (len(ranking_B) - indexB(v))

with 0-based indices. The highest score wins; ties go to the smaller index
sum and then to catalogue order.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..models.catalogue import ClauseCatalogue, VariantId
from ..models.preference import PartyPreference


@dataclass(frozen=True)
class OverlapCandidate:
    """A mutually acceptable variant with its compatibility score."""
    variant_id: VariantId
    score: int
    index_a: int
    index_b: int
    catalogue_order: int

    @property
    def index_sum(self) -> int:
        return self.index_a + self.index_b

    @property
    def rank_a(self) -> int:
        return self.index_a + 1

    @property
    def rank_b(self) -> int:
        return self.index_b + 1

    def sort_key(self) -> Tuple[int, int, int]:
        """Best candidate sorts first."""
        return (-self.score, self.index_sum, self.catalogue_order)


@dataclass(frozen=True)
class OverlapResult:
    """Outcome of overlap scoring for one clause type."""
    best: OverlapCandidate
    candidates: Tuple[OverlapCandidate, ...]

    @property
    def selected_variant(self) -> VariantId:
        return self.best.variant_id

    @property
    def score(self) -> int:
        return self.best.score

    def alternatives(self, limit: int = 3) -> List[VariantId]:
        """
        Other scoring candidates in party A's rank order.

        Args:
            limit: Maximum number of alternatives to return.
        """
        others = [c for c in self.candidates if c.variant_id != self.best.variant_id]
        others.sort(key=lambda c: c.index_a)
        return [c.variant_id for c in others[:limit]]


class OverlapScorer:
    """
    Scorer for mutually acceptable variants.

    Maps the winning score to a confidence of `min(cap, score * step)`.
    With the default step an overlap score below 4 maps to 30 or less,
    the same range as a tie-break.
    """

    def __init__(
        self,
        confidence_step: int = 10,
        confidence_cap: int = 90,
    ):
        """
        Initialize the overlap scorer.

        Args:
            confidence_step: Confidence points awarded per score point.
            confidence_cap: Upper bound for compromise confidence.
        """
        self._confidence_step = confidence_step
        self._confidence_cap = confidence_cap

    def candidates(
        self,
        party_a: PartyPreference,
        party_b: PartyPreference,
        catalogue: ClauseCatalogue,
    ) -> List[OverlapCandidate]:
        """
        Score every mutually acceptable variant.

        Args:
            party_a: Party A's normalized preference.
            party_b: Party B's normalized preference.
            catalogue: The clause type's catalogue, used for final ordering.

        Returns:
            Candidates sorted best first.
        """
        len_a = len(party_a.ranking)
        len_b = len(party_b.ranking)
        rejected = party_a.rejected | party_b.rejected
        index_b = {v: i for i, v in enumerate(party_b.ranking)}

        scored: List[OverlapCandidate] = []
        for i_a, variant_id in enumerate(party_a.ranking):
            i_b = index_b.get(variant_id)
            if i_b is None or variant_id in rejected:
                continue
            scored.append(
                OverlapCandidate(
                    variant_id=variant_id,
                    score=(len_a - i_a) + (len_b - i_b),
                    index_a=i_a,
                    index_b=i_b,
                    catalogue_order=self._catalogue_order(catalogue, variant_id),
                )
            )

        scored.sort(key=lambda c: c.sort_key())
        return scored

    def score(
        self,
        party_a: PartyPreference,
        party_b: PartyPreference,
        catalogue: ClauseCatalogue,
    ) -> Optional[OverlapResult]:
        """
        Find the best mutually acceptable variant.

        Returns:
            OverlapResult for the winning candidate, or None when the two
            rankings share no acceptable variant.
        """
        scored = self.candidates(party_a, party_b, catalogue)
        if not scored:
            return None
        return OverlapResult(best=scored[0], candidates=tuple(scored))

    def confidence_for(self, score: int) -> int:
        """Map an overlap score to a 0-100 confidence."""
        return min(self._confidence_cap, score * self._confidence_step)

    @staticmethod
    def _catalogue_order(catalogue: ClauseCatalogue, variant_id: VariantId) -> int:
        try:
            return catalogue.order_of(variant_id)
        except KeyError:
            return len(catalogue)
