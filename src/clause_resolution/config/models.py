"""Data models for configuration management."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.catalogue import ClauseCatalogue
from ..models.enums import UnrankedPolicy


class ConfigurationType(Enum):
    """Types of configuration supported by the engine."""
    CATALOGUES = "catalogues"
    TIE_BREAKERS = "tie_breakers"
    SETTINGS = "settings"


@dataclass
class EngineSettings:
    """
    Tunable constants of the resolution engine.
    
    The defaults reproduce the reference scoring: a unanimous first choice
    (95) always outranks a compromise (capped at 90), which always outranks a
    configured fallback (30), which outranks an unresolved clause (0).
    """
    direct_match_confidence: int = 95
    compromise_confidence_cap: int = 90
    compromise_confidence_step: int = 10
    tie_breaker_confidence: int = 30
    max_alternatives: int = 3
    unranked_policy: UnrankedPolicy = UnrankedPolicy.ABSENT
    party_a_label: str = "Party A"
    party_b_label: str = "Party B"
    max_workers: int = 1


@dataclass
class TieBreakDefault:
    """
    Configured fallback variant for one clause type.
    
    Supplied by the catalogue owner (for example the most commonly accepted
    variant); the engine never computes it.
    """
    clause_type: str
    variant_id: str
    description: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    
    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False
    
    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)
    
    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings
        )


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""
    
    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.message = message
        self.validation_result = validation_result


@dataclass
class SystemConfiguration:
    """
    Complete engine configuration.
    
    Aggregates clause catalogues, tie-break defaults and engine settings.
    """
    catalogues: List[ClauseCatalogue] = field(default_factory=list)
    tie_break_defaults: List[TieBreakDefault] = field(default_factory=list)
    settings: EngineSettings = field(default_factory=EngineSettings)
    version: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_catalogue(self, clause_type: str) -> Optional[ClauseCatalogue]:
        """Get the catalogue for a clause type."""
        for catalogue in self.catalogues:
            if catalogue.clause_type == clause_type:
                return catalogue
        return None

    def get_tie_break_map(self) -> Dict[str, str]:
        """Map clause type to its configured fallback variant ID."""
        return {d.clause_type: d.variant_id for d in self.tie_break_defaults}
