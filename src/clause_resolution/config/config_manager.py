"""Configuration Manager implementation for the Clause Preference Resolution Engine.

This module provides functionality to load, validate, and manage configuration
for clause catalogues, tie-break defaults, and engine settings.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models.catalogue import ClauseCatalogue, ClauseVariant
from ..models.enums import RiskLevel, UnrankedPolicy
from .models import (
    ConfigurationError,
    ConfigurationType,
    EngineSettings,
    SystemConfiguration,
    TieBreakDefault,
    ValidationResult,
)


logger = logging.getLogger(__name__)

ConfigSource = Union[str, Path, Dict[str, Any], List[Dict[str, Any]]]


class ConfigurationManager:
    """
    Manager for engine configuration.

    Handles loading, validation, and access to clause catalogues,
    tie-break defaults, and engine settings.
    """

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional directory path for configuration files.
        """
        self._config_dir = Path(config_dir) if config_dir else None
        self._configuration = SystemConfiguration()
        self._is_loaded = False

    @property
    def configuration(self) -> SystemConfiguration:
        """Get the current system configuration."""
        return self._configuration

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._is_loaded

    @property
    def settings(self) -> EngineSettings:
        return self._configuration.settings

    # =========================================================================
    # Clause Catalogue Methods
    # =========================================================================

    def load_catalogues(self, source: ConfigSource) -> ValidationResult:
        """
        Load and validate clause catalogues.

        Each entry describes one clause type and its ordered variants.
        Variants may be given as plain identifier strings or as dictionaries
        with `id`, `text`, `name`, `risk_level` and `description`. The intake
        schema key `available_variants` is accepted as an alias of `variants`.

        Args:
            source: File path, dictionary, or list of dictionaries.

        Returns:
            ValidationResult indicating success or failure with details.

        Raises:
            ConfigurationError: If validation fails and configuration cannot be applied.
        """
        raw_data = self._parse_source(source)

        if isinstance(raw_data, dict):
            if "catalogues" in raw_data:
                catalogues_data = raw_data["catalogues"]
            else:
                catalogues_data = [raw_data]
        else:
            catalogues_data = raw_data

        result = ValidationResult(is_valid=True)
        catalogues: List[ClauseCatalogue] = []

        for i, catalogue_dict in enumerate(catalogues_data):
            catalogue_result, catalogue = self._validate_catalogue(
                catalogue_dict, index=i
            )
            result = result.merge(catalogue_result)
            if catalogue:
                catalogues.append(catalogue)

        clause_types = [c.clause_type for c in catalogues]
        duplicates = [ct for ct in clause_types if clause_types.count(ct) > 1]
        if duplicates:
            result.add_error(f"Duplicate clause types found: {set(duplicates)}")

        if not result.is_valid:
            raise ConfigurationError(
                "Clause catalogue validation failed",
                validation_result=result
            )

        self._configuration.catalogues = catalogues
        self._is_loaded = True
        logger.info(f"Loaded {len(catalogues)} clause catalogues")

        return result

    def _validate_catalogue(
        self,
        data: Dict[str, Any],
        index: int = 0
    ) -> tuple[ValidationResult, Optional[ClauseCatalogue]]:
        """Validate a single clause catalogue dictionary."""
        result = ValidationResult(is_valid=True)
        prefix = f"Clause catalogue [{index}]"

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: Expected a dictionary")
            return result, None

        if "clause_type" not in data:
            result.add_error(f"{prefix}: Missing required field 'clause_type'")
        variants_key = "variants" if "variants" in data else "available_variants"
        if variants_key not in data:
            result.add_error(f"{prefix}: Missing required field 'variants'")

        if not result.is_valid:
            return result, None

        clause_type = data["clause_type"]
        if not isinstance(clause_type, str) or not clause_type.strip():
            result.add_error(f"{prefix}: 'clause_type' must be a non-empty string")
            return result, None
        prefix = f"Clause catalogue '{clause_type.strip()}'"

        raw_variants = data[variants_key]
        if not isinstance(raw_variants, list):
            result.add_error(f"{prefix}: '{variants_key}' must be a list")
            return result, None
        if not raw_variants:
            result.add_warning(f"{prefix}: Catalogue defines no variants")

        variants: List[ClauseVariant] = []
        for j, raw_variant in enumerate(raw_variants):
            variant = self._parse_variant(raw_variant, f"{prefix} variant [{j}]", result)
            if variant:
                variants.append(variant)

        ids = [v.id for v in variants]
        duplicates = [v for v in ids if ids.count(v) > 1]
        if duplicates:
            result.add_error(f"{prefix}: Duplicate variant IDs found: {set(duplicates)}")

        if not result.is_valid:
            return result, None

        catalogue = ClauseCatalogue(
            clause_type=clause_type.strip(),
            variants=tuple(variants),
            title=data.get("title"),
            question_text=data.get("question_text"),
        )

        return result, catalogue

    def _parse_variant(
        self,
        raw: Any,
        prefix: str,
        result: ValidationResult
    ) -> Optional[ClauseVariant]:
        """Parse one catalogue variant, recording problems on `result`."""
        if isinstance(raw, str):
            if not raw.strip():
                result.add_error(f"{prefix}: Variant ID must be a non-empty string")
                return None
            return ClauseVariant(id=raw.strip(), text=raw.strip())

        if not isinstance(raw, dict):
            result.add_error(f"{prefix}: Expected a string or dictionary")
            return None

        variant_id = raw.get("id")
        if not isinstance(variant_id, str) or not variant_id.strip():
            result.add_error(f"{prefix}: 'id' must be a non-empty string")
            return None

        risk_value = raw.get("risk_level", RiskLevel.MEDIUM.value)
        try:
            risk_level = RiskLevel(risk_value)
        except ValueError:
            result.add_error(
                f"{prefix}: 'risk_level' must be one of "
                f"{[r.value for r in RiskLevel]}"
            )
            return None

        text = raw.get("text", raw.get("legal_text", ""))
        if not isinstance(text, str):
            result.add_error(f"{prefix}: 'text' must be a string")
            return None

        return ClauseVariant(
            id=variant_id.strip(),
            text=text,
            name=raw.get("name"),
            risk_level=risk_level,
            description=raw.get("description"),
        )

    def get_catalogue(self, clause_type: str) -> Optional[ClauseCatalogue]:
        """Get a clause catalogue by clause type."""
        return self._configuration.get_catalogue(clause_type)

    # =========================================================================
    # Tie-break Default Methods
    # =========================================================================

    def load_tie_break_defaults(self, source: ConfigSource) -> ValidationResult:
        """
        Load and validate tie-break defaults.

        Accepts either a list of `{clause_type, variant_id}` dictionaries or a
        plain `{clause_type: variant_id}` mapping under the `defaults` key.
        Defaults that reference an unknown clause type or variant are reported
        as warnings when catalogues are already loaded; the resolver ignores
        such defaults at resolution time.

        Args:
            source: File path, dictionary, or list of dictionaries.

        Returns:
            ValidationResult indicating success or failure with details.

        Raises:
            ConfigurationError: If validation fails and configuration cannot be applied.
        """
        raw_data = self._parse_source(source)

        if isinstance(raw_data, dict):
            if "defaults" in raw_data:
                defaults_data = raw_data["defaults"]
            elif "clause_type" in raw_data:
                defaults_data = [raw_data]
            else:
                defaults_data = raw_data
        else:
            defaults_data = raw_data

        if isinstance(defaults_data, dict):
            defaults_data = [
                {"clause_type": k, "variant_id": v} for k, v in defaults_data.items()
            ]

        result = ValidationResult(is_valid=True)
        defaults: List[TieBreakDefault] = []

        for i, default_dict in enumerate(defaults_data):
            default_result, default = self._validate_tie_break_default(
                default_dict, index=i
            )
            result = result.merge(default_result)
            if default:
                defaults.append(default)

        clause_types = [d.clause_type for d in defaults]
        duplicates = [ct for ct in clause_types if clause_types.count(ct) > 1]
        if duplicates:
            result.add_error(
                f"Multiple tie-break defaults for clause types: {set(duplicates)}"
            )

        if not result.is_valid:
            raise ConfigurationError(
                "Tie-break default validation failed",
                validation_result=result
            )

        self._configuration.tie_break_defaults = defaults
        self._is_loaded = True

        result = result.merge(self._validate_cross_references(self._configuration))
        logger.info(f"Loaded {len(defaults)} tie-break defaults")

        return result

    def _validate_tie_break_default(
        self,
        data: Dict[str, Any],
        index: int = 0
    ) -> tuple[ValidationResult, Optional[TieBreakDefault]]:
        """Validate a single tie-break default dictionary."""
        result = ValidationResult(is_valid=True)
        prefix = f"Tie-break default [{index}]"

        if not isinstance(data, dict):
            result.add_error(f"{prefix}: Expected a dictionary")
            return result, None

        for field_name in ["clause_type", "variant_id"]:
            if field_name not in data:
                result.add_error(f"{prefix}: Missing required field '{field_name}'")
            elif not isinstance(data[field_name], str) or not data[field_name].strip():
                result.add_error(f"{prefix}: '{field_name}' must be a non-empty string")

        if not result.is_valid:
            return result, None

        default = TieBreakDefault(
            clause_type=data["clause_type"].strip(),
            variant_id=data["variant_id"].strip(),
            description=data.get("description"),
            metadata=data.get("metadata", {}),
        )

        return result, default

    def get_tie_break_defaults(self) -> Dict[str, str]:
        """Get the configured fallback variant per clause type."""
        return self._configuration.get_tie_break_map()

    # =========================================================================
    # Engine Settings Methods
    # =========================================================================

    def load_settings(self, source: Union[str, Path, Dict[str, Any]]) -> ValidationResult:
        """
        Load and validate engine settings.

        Unspecified keys keep their defaults. The confidence constants must
        keep the ordering direct match > compromise cap > tie-breaker > 0.

        Args:
            source: File path or dictionary.

        Returns:
            ValidationResult indicating success or failure with details.

        Raises:
            ConfigurationError: If validation fails and configuration cannot be applied.
        """
        data = self._parse_source(source)
        result = ValidationResult(is_valid=True)

        if not isinstance(data, dict):
            result.add_error("Engine settings: Expected a dictionary")
            raise ConfigurationError(
                "Engine settings validation failed", validation_result=result
            )

        defaults = EngineSettings()
        known_fields = set(defaults.__dataclass_fields__)
        for key in data:
            if key not in known_fields:
                result.add_warning(f"Engine settings: Unknown setting '{key}' ignored")

        int_fields = [
            "direct_match_confidence",
            "compromise_confidence_cap",
            "compromise_confidence_step",
            "tie_breaker_confidence",
            "max_alternatives",
            "max_workers",
        ]
        values: Dict[str, Any] = {}
        for name in int_fields:
            value = data.get(name, getattr(defaults, name))
            if not isinstance(value, int) or isinstance(value, bool):
                result.add_error(f"Engine settings: '{name}' must be an integer")
            else:
                values[name] = value

        for name in ["party_a_label", "party_b_label"]:
            value = data.get(name, getattr(defaults, name))
            if not isinstance(value, str) or not value.strip():
                result.add_error(f"Engine settings: '{name}' must be a non-empty string")
            else:
                values[name] = value.strip()

        policy_value = data.get("unranked_policy", defaults.unranked_policy.value)
        try:
            values["unranked_policy"] = UnrankedPolicy(policy_value)
        except ValueError:
            result.add_error(
                f"Engine settings: 'unranked_policy' must be one of "
                f"{[p.value for p in UnrankedPolicy]}"
            )

        if result.is_valid:
            settings = EngineSettings(**values)
            result = result.merge(self._validate_settings(settings))

        if not result.is_valid:
            raise ConfigurationError(
                "Engine settings validation failed",
                validation_result=result
            )

        self._configuration.settings = settings
        self._is_loaded = True

        return result

    def _validate_settings(self, settings: EngineSettings) -> ValidationResult:
        """Check the value ranges and confidence ordering of settings."""
        result = ValidationResult(is_valid=True)

        for name in [
            "direct_match_confidence",
            "compromise_confidence_cap",
            "tie_breaker_confidence",
        ]:
            value = getattr(settings, name)
            if not 0 <= value <= 100:
                result.add_error(f"Engine settings: '{name}' must be between 0 and 100")

        if not result.is_valid:
            return result

        if not (
            settings.direct_match_confidence
            > settings.compromise_confidence_cap
            > settings.tie_breaker_confidence
            > 0
        ):
            result.add_error(
                "Engine settings: confidences must satisfy direct_match_confidence > "
                "compromise_confidence_cap > tie_breaker_confidence > 0"
            )

        if settings.compromise_confidence_step <= 0:
            result.add_error("Engine settings: 'compromise_confidence_step' must be positive")

        if settings.max_alternatives < 0:
            result.add_error("Engine settings: 'max_alternatives' must be non-negative")

        if settings.max_workers < 1:
            result.add_error("Engine settings: 'max_workers' must be at least 1")

        if settings.party_a_label == settings.party_b_label:
            result.add_warning("Engine settings: both parties share the same label")

        return result

    # =========================================================================
    # Configuration Validation Methods
    # =========================================================================

    def validate_configuration(
        self,
        config: Optional[SystemConfiguration] = None
    ) -> ValidationResult:
        """
        Validate the complete engine configuration.

        Checks the settings ranges and the cross-references between
        tie-break defaults and catalogues.

        Args:
            config: Configuration to validate. Uses current config if None.

        Returns:
            ValidationResult with all errors and warnings.
        """
        config = config or self._configuration
        result = ValidationResult(is_valid=True)

        result = result.merge(self._validate_settings(config.settings))
        result = result.merge(self._validate_cross_references(config))

        return result

    def _validate_cross_references(
        self,
        config: SystemConfiguration
    ) -> ValidationResult:
        """Validate tie-break defaults against the loaded catalogues."""
        result = ValidationResult(is_valid=True)

        if not config.catalogues:
            return result

        for default in config.tie_break_defaults:
            catalogue = config.get_catalogue(default.clause_type)
            if catalogue is None:
                result.add_warning(
                    f"Tie-break default references unknown clause type "
                    f"'{default.clause_type}'"
                )
            elif default.variant_id not in catalogue:
                result.add_warning(
                    f"Tie-break default '{default.variant_id}' is not a variant of "
                    f"'{default.clause_type}' and will be ignored"
                )

        configured = {d.clause_type for d in config.tie_break_defaults}
        missing = [
            c.clause_type for c in config.catalogues if c.clause_type not in configured
        ]
        if missing:
            result.add_warning(
                f"Clause types without a tie-break default will require "
                f"negotiation when preferences do not overlap: {missing}"
            )

        return result

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _parse_source(
        self,
        source: ConfigSource
    ) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        """Parse configuration source to raw data."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")

            with open(path, "r", encoding="utf-8") as f:
                try:
                    return json.load(f)
                except json.JSONDecodeError as e:
                    raise ConfigurationError(f"Invalid JSON in {path}: {e}")

        return source

    def load_from_directory(self, config_dir: Union[str, Path]) -> ValidationResult:
        """
        Load all configuration files from a directory.

        Expects files named:
        - catalogues.json
        - tie_breakers.json
        - settings.json

        Args:
            config_dir: Directory containing configuration files.

        Returns:
            Combined ValidationResult for all loaded configurations, including
            the cross-reference checks of `validate_configuration`.
        """
        config_dir = Path(config_dir)
        result = ValidationResult(is_valid=True)

        loaders = [
            (ConfigurationType.CATALOGUES, "Catalogue", self.load_catalogues),
            (ConfigurationType.TIE_BREAKERS, "Tie-break", self.load_tie_break_defaults),
            (ConfigurationType.SETTINGS, "Settings", self.load_settings),
        ]
        for config_type, label, loader in loaders:
            path = config_dir / f"{config_type.value}.json"
            if not path.exists():
                continue
            try:
                result = result.merge(loader(path))
            except ConfigurationError as e:
                result.add_error(f"{label} loading failed: {e.message}")
                if e.validation_result:
                    result = result.merge(e.validation_result)

        # Cross-references are checked once every file has been read
        result = result.merge(self.validate_configuration())
        result.errors = list(dict.fromkeys(result.errors))
        result.warnings = list(dict.fromkeys(result.warnings))

        self._config_dir = config_dir
        return result

    def save_to_directory(
        self,
        config_dir: Optional[Union[str, Path]] = None
    ) -> None:
        """
        Save current configuration to a directory.

        Args:
            config_dir: Directory to save to. Uses current config_dir if None.
        """
        config_dir = Path(config_dir) if config_dir else self._config_dir
        if not config_dir:
            raise ConfigurationError("No configuration directory specified")

        config_dir.mkdir(parents=True, exist_ok=True)
        data = self.to_dict()

        if self._configuration.catalogues:
            with open(config_dir / "catalogues.json", "w", encoding="utf-8") as f:
                json.dump({"catalogues": data["catalogues"]}, f, indent=2, ensure_ascii=False)

        if self._configuration.tie_break_defaults:
            with open(config_dir / "tie_breakers.json", "w", encoding="utf-8") as f:
                json.dump({"defaults": data["tie_break_defaults"]}, f, indent=2, ensure_ascii=False)

        with open(config_dir / "settings.json", "w", encoding="utf-8") as f:
            json.dump(data["settings"], f, indent=2, ensure_ascii=False)

    def reset(self) -> None:
        """Reset configuration to empty state."""
        self._configuration = SystemConfiguration()
        self._is_loaded = False

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as a dictionary."""
        settings = self._configuration.settings
        return {
            "version": self._configuration.version,
            "catalogues": [
                {
                    "clause_type": c.clause_type,
                    "title": c.title,
                    "question_text": c.question_text,
                    "variants": [
                        {
                            "id": v.id,
                            "text": v.text,
                            "name": v.name,
                            "risk_level": v.risk_level.value,
                            "description": v.description,
                        }
                        for v in c.variants
                    ],
                }
                for c in self._configuration.catalogues
            ],
            "tie_break_defaults": [
                {
                    "clause_type": d.clause_type,
                    "variant_id": d.variant_id,
                    "description": d.description,
                    "metadata": d.metadata,
                }
                for d in self._configuration.tie_break_defaults
            ],
            "settings": {
                "direct_match_confidence": settings.direct_match_confidence,
                "compromise_confidence_cap": settings.compromise_confidence_cap,
                "compromise_confidence_step": settings.compromise_confidence_step,
                "tie_breaker_confidence": settings.tie_breaker_confidence,
                "max_alternatives": settings.max_alternatives,
                "unranked_policy": settings.unranked_policy.value,
                "party_a_label": settings.party_a_label,
                "party_b_label": settings.party_b_label,
                "max_workers": settings.max_workers,
            },
            "metadata": self._configuration.metadata,
        }
