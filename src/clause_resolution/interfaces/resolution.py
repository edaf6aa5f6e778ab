"""Resolution engine interfaces for the Clause Preference Resolution Engine."""

from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence

from ..models.catalogue import ClauseCatalogue, VariantId
from ..models.preference import PartyPreference
from ..models.resolution import MatchingReport, ResolvedClause


class ITieBreakPolicy(ABC):
    """
    Abstract source of fallback variants.
    
    Implementations are supplied by the catalogue owner; the engine only
    consumes the answer and never computes usage statistics itself.
    """

    @abstractmethod
    def default_for(self, clause_type: str) -> Optional[VariantId]:
        """
        Get the configured fallback variant for a clause type.
        
        Args:
            clause_type: The clause type needing a tie-break.
            
        Returns:
            The fallback VariantId, or None when nothing is configured.
        """
        pass


class IClauseResolver(ABC):
    """
    Abstract interface for resolving a single clause type.
    
    Implementations must be pure: the same catalogue and preferences always
    yield the same ResolvedClause.
    """

    @abstractmethod
    def resolve(
        self,
        catalogue: ClauseCatalogue,
        party_a: PartyPreference,
        party_b: PartyPreference,
    ) -> ResolvedClause:
        """
        Resolve one clause type from both parties' normalized preferences.
        
        Args:
            catalogue: The clause type's variant catalogue.
            party_a: Party A's normalized preference.
            party_b: Party B's normalized preference.
            
        Returns:
            ResolvedClause describing the outcome.
        """
        pass


class IAgreementAggregator(ABC):
    """
    Abstract interface for resolving every clause type of a template.
    """

    @abstractmethod
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
            MatchingReport with one result per clause type.
        """
        pass
