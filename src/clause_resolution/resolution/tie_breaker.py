"""Tie-break resolution for the Clause Preference Resolution Engine."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from ..interfaces.resolution import ITieBreakPolicy
from ..models.catalogue import ClauseCatalogue, VariantId
from ..models.preference import PartyPreference
from .exceptions import MissingDefaultError


logger = logging.getLogger(__name__)


class StaticTieBreakPolicy(ITieBreakPolicy):
    """
    Tie-break policy backed by a fixed clause-type to variant mapping.

    Typically hydrated from the `tie_breakers.json` configuration file.
    """

    def __init__(self, defaults: Optional[Mapping[str, VariantId]] = None):
        self._defaults: Dict[str, VariantId] = dict(defaults or {})

    def default_for(self, clause_type: str) -> Optional[VariantId]:
        return self._defaults.get(clause_type)

    def __len__(self) -> int:
        return len(self._defaults)


@dataclass(frozen=True)
class TieBreakResult:
    """Fallback variant chosen for a clause with no acceptable overlap."""
    variant_id: VariantId
    alternatives: Tuple[VariantId, ...]


class TieBreakResolver:
    """
    Supplies a deterministic fallback variant when no overlap exists.

    The fallback comes from the injected policy. A default that is missing,
    not part of the catalogue, or rejected by either party is unusable and
    raises MissingDefaultError rather than being guessed around.
    """

    def __init__(
        self,
        policy: Optional[ITieBreakPolicy] = None,
        max_alternatives: int = 3,
    ):
        """
        Initialize the tie-break resolver.

        Args:
            policy: Source of per-clause-type fallback variants.
            max_alternatives: Maximum number of alternatives to report.
        """
        self._policy = policy or StaticTieBreakPolicy()
        self._max_alternatives = max_alternatives

    @property
    def policy(self) -> ITieBreakPolicy:
        return self._policy

    def resolve(
        self,
        catalogue: ClauseCatalogue,
        party_a: PartyPreference,
        party_b: PartyPreference,
    ) -> TieBreakResult:
        """
        Pick the configured fallback for a clause type.

        Args:
            catalogue: The clause type's catalogue.
            party_a: Party A's normalized preference.
            party_b: Party B's normalized preference.

        Returns:
            TieBreakResult with the fallback and negotiation alternatives.

        Raises:
            MissingDefaultError: If no usable default is configured.
        """
        clause_type = catalogue.clause_type
        default = self._policy.default_for(clause_type)

        if default is None:
            raise MissingDefaultError(
                message="No tie-break default configured",
                clause_type=clause_type,
            )

        if default not in catalogue:
            raise MissingDefaultError(
                message="Configured tie-break default is not in the catalogue",
                clause_type=clause_type,
                details={"variant_id": default},
            )

        rejecting = [
            name for name, pref in (("party_a", party_a), ("party_b", party_b))
            if default in pref.rejected
        ]
        if rejecting:
            raise MissingDefaultError(
                message="Configured tie-break default is rejected",
                clause_type=clause_type,
                details={"variant_id": default, "rejected_by": rejecting},
            )

        logger.debug(f"Tie-break for '{clause_type}' selected default '{default}'")

        return TieBreakResult(
            variant_id=default,
            alternatives=tuple(self._alternatives(catalogue, party_a, party_b, default)),
        )

    def _alternatives(
        self,
        catalogue: ClauseCatalogue,
        party_a: PartyPreference,
        party_b: PartyPreference,
        selected: VariantId,
    ) -> List[VariantId]:
        """Union of both parties' acceptable variants in catalogue order."""
        acceptable = [
            v for v in list(party_a.ranking) + list(party_b.ranking)
            if v != selected
        ]
        return catalogue.sort_ids(acceptable)[:self._max_alternatives]
