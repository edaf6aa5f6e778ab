"""Preference normalization for the Clause Preference Resolution Engine.

Validates one party's raw intake submission for one clause type against the
clause catalogue and turns it into an immutable PartyPreference.
"""

from typing import Iterable, List, Optional, Set, Union

from ..models.catalogue import ClauseCatalogue, VariantId
from ..models.enums import UnrankedPolicy
from ..models.preference import PartyPreference, RawSubmission
from .exceptions import InvalidPreferenceError


class PreferenceNormalizer:
    """
    Normalizer for party submissions.

    Rules, applied in order:
    1. Every referenced identifier must belong to the catalogue.
    2. An explicit pick may not also be rejected.
    3. `reject_all` rejects the whole catalogue.
    4. The explicit pick, when present, becomes the first choice.
    5. Duplicates are dropped keeping the earliest (most preferred) entry.
    6. Rejected identifiers are removed from the ranking.
    7. Under `accept_last`, unranked and unrejected variants are appended in
       catalogue order.
    """

    def __init__(self, unranked_policy: UnrankedPolicy = UnrankedPolicy.ABSENT):
        """
        Initialize the normalizer.

        Args:
            unranked_policy: Treatment of variants a party neither ranked nor
                rejected. ABSENT leaves them unacceptable; ACCEPT_LAST treats
                them as accepted at the lowest priority.
        """
        self._unranked_policy = unranked_policy

    @property
    def unranked_policy(self) -> UnrankedPolicy:
        return self._unranked_policy

    def normalize(
        self,
        submission: Union[RawSubmission, PartyPreference],
        catalogue: ClauseCatalogue,
    ) -> PartyPreference:
        """
        Normalize a submission against a clause catalogue.

        Args:
            submission: Raw intake data, or an already-normalized preference.
            catalogue: The catalogue of the submission's clause type.

        Returns:
            The normalized PartyPreference.

        Raises:
            InvalidPreferenceError: If the submission references an unknown
                variant, targets another clause type, or is inconsistent.
        """
        if isinstance(submission, PartyPreference):
            submission = RawSubmission(
                clause_type=submission.clause_type,
                ranking=list(submission.ranking),
                rejected=list(submission.rejected),
            )

        clause_type = catalogue.clause_type
        if submission.clause_type != clause_type:
            raise InvalidPreferenceError(
                message=(
                    f"Submission for '{submission.clause_type}' cannot be "
                    f"normalized against catalogue '{clause_type}'"
                ),
                clause_type=clause_type,
            )

        ranking = list(submission.ranking)
        rejected_ids = list(submission.rejected)
        selected = submission.selected_variant

        self._check_members(ranking, catalogue, "ranking")
        self._check_members(rejected_ids, catalogue, "rejected")
        if selected is not None:
            self._check_members([selected], catalogue, "selected_variant")

        rejected: Set[VariantId] = set(rejected_ids)
        if selected is not None and selected in rejected:
            raise InvalidPreferenceError(
                message="Selected variant is also listed as rejected",
                clause_type=clause_type,
                variant_id=selected,
                details={"field": "selected_variant"},
            )

        if submission.reject_all:
            rejected = set(catalogue.variant_ids)

        if selected is not None and not submission.reject_all:
            ranking = [selected] + ranking

        normalized = self._dedupe(v for v in ranking if v not in rejected)

        if self._unranked_policy is UnrankedPolicy.ACCEPT_LAST:
            seen = set(normalized)
            normalized.extend(
                v for v in catalogue.variant_ids
                if v not in seen and v not in rejected
            )

        return PartyPreference(
            clause_type=clause_type,
            ranking=tuple(normalized),
            rejected=frozenset(rejected),
        )

    def _check_members(
        self,
        variant_ids: List[VariantId],
        catalogue: ClauseCatalogue,
        field_name: str,
    ) -> None:
        """Raise on the first identifier that is not in the catalogue."""
        for variant_id in variant_ids:
            if not isinstance(variant_id, str) or not variant_id:
                raise InvalidPreferenceError(
                    message=f"Variant identifiers in '{field_name}' must be non-empty strings",
                    clause_type=catalogue.clause_type,
                    variant_id=None if variant_id is None else str(variant_id),
                    details={"field": field_name},
                )
            if variant_id not in catalogue:
                raise InvalidPreferenceError(
                    message=f"Unknown variant in '{field_name}'",
                    clause_type=catalogue.clause_type,
                    variant_id=variant_id,
                    details={
                        "field": field_name,
                        "known_variants": list(catalogue.variant_ids),
                    },
                )

    @staticmethod
    def _dedupe(variant_ids: Iterable[VariantId]) -> List[VariantId]:
        seen: Set[VariantId] = set()
        result: List[VariantId] = []
        for variant_id in variant_ids:
            if variant_id not in seen:
                seen.add(variant_id)
                result.append(variant_id)
        return result


def normalize_preference(
    submission: RawSubmission,
    catalogue: ClauseCatalogue,
    unranked_policy: Optional[UnrankedPolicy] = None,
) -> PartyPreference:
    """Convenience function to normalize a single submission."""
    normalizer = PreferenceNormalizer(unranked_policy or UnrankedPolicy.ABSENT)
    return normalizer.normalize(submission, catalogue)
