"""Direct match detection for the Clause Preference Resolution Engine."""

from typing import Optional

from ..models.catalogue import VariantId
from ..models.preference import PartyPreference


class DirectMatchDetector:
    """
    Detects when both parties independently chose the same first choice.
    """

    def detect(
        self,
        party_a: PartyPreference,
        party_b: PartyPreference,
    ) -> Optional[VariantId]:
        """
        Get the shared top-ranked variant, if any.

        Args:
            party_a: Party A's normalized preference.
            party_b: Party B's normalized preference.

        Returns:
            The shared first choice when both rankings start with the same
            variant and neither party rejects it, otherwise None.
        """
        top_a = party_a.top_choice
        top_b = party_b.top_choice
        if top_a is None or top_a != top_b:
            return None
        if top_a in party_a.rejected or top_a in party_b.rejected:
            return None
        return top_a
