"""Clause catalogue models for the Clause Preference Resolution Engine."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .enums import RiskLevel

# Opaque identifier of one clause-text option within a clause type.
VariantId = str


@dataclass(frozen=True)
class ClauseVariant:
    """
    One concrete text option offered for a clause type.
    
    The identifier is stable across both parties' submissions; the remaining
    fields are carried through for presentation only.
    """
    id: VariantId
    text: str = ""
    name: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.MEDIUM
    description: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class ClauseCatalogue:
    """
    Ordered set of every variant defined for one clause type.
    
    Owned by the template. Catalogue order is the deterministic fallback
    ordering used whenever two candidates are otherwise indistinguishable.
    """
    clause_type: str
    variants: Tuple[ClauseVariant, ...] = field(default_factory=tuple)
    title: Optional[str] = None
    question_text: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable of variants but store an immutable tuple.
        object.__setattr__(self, "variants", tuple(self.variants))
        ids = [v.id for v in self.variants]
        if len(ids) != len(set(ids)):
            raise ValueError(
                f"Duplicate variant IDs in catalogue for '{self.clause_type}'"
            )

    @classmethod
    def from_ids(
        cls,
        clause_type: str,
        variant_ids: Iterable[VariantId],
        title: Optional[str] = None,
    ) -> "ClauseCatalogue":
        """Build a catalogue whose variants carry nothing but an identifier."""
        return cls(
            clause_type=clause_type,
            variants=tuple(ClauseVariant(id=v, text=v) for v in variant_ids),
            title=title,
        )

    @property
    def variant_ids(self) -> Tuple[VariantId, ...]:
        return tuple(v.id for v in self.variants)

    def __contains__(self, variant_id: object) -> bool:
        return any(v.id == variant_id for v in self.variants)

    def __len__(self) -> int:
        return len(self.variants)

    def get_variant(self, variant_id: VariantId) -> Optional[ClauseVariant]:
        """Get a variant by ID."""
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def order_of(self, variant_id: VariantId) -> int:
        """
        Position of a variant in catalogue order.
        
        Raises:
            KeyError: If the variant is not part of this catalogue.
        """
        for index, variant in enumerate(self.variants):
            if variant.id == variant_id:
                return index
        raise KeyError(variant_id)

    def sort_ids(self, variant_ids: Iterable[VariantId]) -> List[VariantId]:
        """Deduplicate identifiers and sort them into catalogue order."""
        positions: Dict[VariantId, int] = {
            v.id: i for i, v in enumerate(self.variants)
        }
        unique = {v for v in variant_ids if v in positions}
        return sorted(unique, key=lambda v: positions[v])
