"""Resolution engine module for the Clause Preference Resolution Engine.

This module provides the normalizer, the per-clause resolution stages and
the aggregator that together turn two parties' preferences into a
matching report.
"""

from .aggregator import AgreementAggregator
from .clause_resolver import ClauseResolver
from .direct_match import DirectMatchDetector
from .exceptions import InvalidPreferenceError, MissingDefaultError, ResolutionError
from .normalizer import PreferenceNormalizer, normalize_preference
from .overlap_scorer import OverlapCandidate, OverlapResult, OverlapScorer
from .tie_breaker import StaticTieBreakPolicy, TieBreakResolver, TieBreakResult

__all__ = [
    "AgreementAggregator",
    "ClauseResolver",
    "DirectMatchDetector",
    "InvalidPreferenceError",
    "MissingDefaultError",
    "ResolutionError",
    "PreferenceNormalizer",
    "normalize_preference",
    "OverlapCandidate",
    "OverlapResult",
    "OverlapScorer",
    "StaticTieBreakPolicy",
    "TieBreakResolver",
    "TieBreakResult",
]
