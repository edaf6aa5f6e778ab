"""Party preference models for the Clause Preference Resolution Engine."""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from .catalogue import VariantId
from .enums import AcceptanceStatus


@dataclass
class RawSubmission:
    """
    One party's unvalidated intake payload for one clause type.
    
    Mirrors what the intake form collects: a drag-ordered ranking, an explicit
    reject list, an optional single pick and a "reject all variants" toggle.
    Nothing here is trusted until it has passed through the normalizer.
    """
    clause_type: str
    ranking: List[VariantId] = field(default_factory=list)
    rejected: List[VariantId] = field(default_factory=list)
    selected_variant: Optional[VariantId] = None
    reject_all: bool = False

    def __post_init__(self):
        if self.ranking is None:
            self.ranking = []
        if self.rejected is None:
            self.rejected = []


@dataclass(frozen=True)
class PartyPreference:
    """
    Normalized preference of one party over one clause type.
    
    `ranking` is ordered most-preferred first and contains no duplicates and
    no rejected identifiers. An empty ranking means the party accepts nothing.
    """
    clause_type: str
    ranking: Tuple[VariantId, ...] = field(default_factory=tuple)
    rejected: FrozenSet[VariantId] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "ranking", tuple(self.ranking))
        object.__setattr__(self, "rejected", frozenset(self.rejected))

    @property
    def has_acceptable(self) -> bool:
        return bool(self.ranking)

    @property
    def top_choice(self) -> Optional[VariantId]:
        return self.ranking[0] if self.ranking else None

    def index_of(self, variant_id: VariantId) -> Optional[int]:
        """0-based position of a variant in the ranking, or None."""
        try:
            return self.ranking.index(variant_id)
        except ValueError:
            return None

    def rank_of(self, variant_id: VariantId) -> Optional[int]:
        """1-based rank of a variant, or None when it is not ranked."""
        index = self.index_of(variant_id)
        return None if index is None else index + 1

    def accepts(self, variant_id: VariantId) -> bool:
        return variant_id in self.ranking and variant_id not in self.rejected

    def status_of(self, variant_id: VariantId) -> AcceptanceStatus:
        if variant_id in self.rejected:
            return AcceptanceStatus.REJECTED
        if variant_id in self.ranking:
            return AcceptanceStatus.ACCEPTED
        return AcceptanceStatus.UNRANKED

    @classmethod
    def rejecting_all(cls, clause_type: str) -> "PartyPreference":
        """Preference standing in for a party that submitted nothing."""
        return cls(clause_type=clause_type)
