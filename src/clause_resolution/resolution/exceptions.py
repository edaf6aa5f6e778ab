"""Custom exceptions for clause preference resolution."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ResolutionError(Exception):
    """
    Base exception for resolution errors.
    
    Attributes:
        message: Human-readable error description.
        clause_type: Clause type the error relates to, if any.
        details: Additional error details.
    """
    message: str
    clause_type: Optional[str] = None
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message]
        if self.clause_type:
            parts.append(f"Clause: {self.clause_type}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "clause_type": self.clause_type,
            "details": self.details,
        }


@dataclass
class InvalidPreferenceError(ResolutionError):
    """
    Exception raised when a party's submission cannot be normalized.
    
    Either a submitted variant is not in the clause catalogue, or the ranking
    and reject sets contradict each other. Not recoverable by the engine: the
    caller must re-request intake from the party.
    """
    variant_id: Optional[str] = None

    def __str__(self) -> str:
        base = super().__str__()
        if self.variant_id is not None:
            return f"{base} | Variant: {self.variant_id}"
        return base

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["variant_id"] = self.variant_id
        return data


@dataclass
class MissingDefaultError(ResolutionError):
    """
    Exception raised when a tie-break is needed but no usable default exists.
    
    This is an expected configuration gap; the clause resolver degrades the
    clause to `requires_negotiation` instead of propagating it.
    """
