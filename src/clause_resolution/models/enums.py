"""Enumerations for the Clause Preference Resolution Engine."""

from enum import Enum


class ResolutionMethod(Enum):
    """How a clause outcome was reached."""
    DIRECT_MATCH = "direct_match"
    RANKING_COMPROMISE = "ranking_compromise"
    TIE_BREAKER = "tie_breaker"
    REQUIRES_NEGOTIATION = "requires_negotiation"


class MatchStatus(Enum):
    """Per-clause indicator of whether negotiation is still required."""
    GREEN = "green"
    RED = "red"


class ConfidenceLevel(Enum):
    """Presentation bands for a resolution confidence score."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, confidence: int) -> "ConfidenceLevel":
        """Band a 0-100 confidence score (>= 80 high, >= 50 medium)."""
        if confidence >= 80:
            return cls.HIGH
        if confidence >= 50:
            return cls.MEDIUM
        return cls.LOW


class RiskLevel(Enum):
    """Risk rating attached to a clause variant by the template owner."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PartyRole(Enum):
    """The two sides of an agreement."""
    PARTY_A = "party_a"
    PARTY_B = "party_b"

    @property
    def counterpart(self) -> "PartyRole":
        if self is PartyRole.PARTY_A:
            return PartyRole.PARTY_B
        return PartyRole.PARTY_A


class AcceptanceStatus(Enum):
    """A party's stance towards one specific variant."""
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UNRANKED = "unranked"


class UnrankedPolicy(Enum):
    """Treatment of catalogue variants a party neither ranked nor rejected."""
    ABSENT = "absent"
    ACCEPT_LAST = "accept_last"
