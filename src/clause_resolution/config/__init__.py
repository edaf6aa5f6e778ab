"""Configuration management for the Clause Preference Resolution Engine."""

from .config_manager import ConfigurationManager
from .models import (
    ConfigurationType,
    EngineSettings,
    TieBreakDefault,
    SystemConfiguration,
    ConfigurationError,
    ValidationResult,
)

__all__ = [
    "ConfigurationManager",
    "ConfigurationType",
    "EngineSettings",
    "TieBreakDefault",
    "SystemConfiguration",
    "ConfigurationError",
    "ValidationResult",
]
