"""Unit tests for the Configuration Manager."""

import json
import tempfile
from pathlib import Path

import pytest

from clause_resolution.config import (
    ConfigurationError,
    ConfigurationManager,
    EngineSettings,
    ValidationResult,
)
from clause_resolution.models import RiskLevel, UnrankedPolicy


CATALOGUES = {
    "catalogues": [
        {
            "clause_type": "confidentiality",
            "title": "Confidentiality Obligations",
            "question_text": "How long should confidentiality survive?",
            "variants": [
                {
                    "id": "conf_2y",
                    "name": "Two years",
                    "text": "Obligations survive for two years.",
                    "risk_level": "low",
                },
                {
                    "id": "conf_5y",
                    "name": "Five years",
                    "legal_text": "Obligations survive for five years.",
                    "risk_level": "medium",
                },
                "conf_perpetual",
            ],
        },
        {
            "clause_type": "governing_law",
            "available_variants": ["ny", "de"],
        },
    ]
}


class TestClauseCatalogues:
    """Tests for clause catalogue configuration."""

    def test_load_catalogues_from_dict(self):
        """Test loading catalogues from a dictionary."""
        manager = ConfigurationManager()

        result = manager.load_catalogues(CATALOGUES)

        assert result.is_valid
        assert manager.is_loaded
        assert len(manager.configuration.catalogues) == 2

        catalogue = manager.get_catalogue("confidentiality")
        assert catalogue.variant_ids == ("conf_2y", "conf_5y", "conf_perpetual")
        assert catalogue.title == "Confidentiality Obligations"
        assert catalogue.get_variant("conf_2y").risk_level == RiskLevel.LOW
        assert catalogue.get_variant("conf_5y").text == "Obligations survive for five years."
        assert catalogue.get_variant("conf_perpetual").display_name == "conf_perpetual"

    def test_available_variants_alias(self):
        """Test the intake schema key is accepted for variants."""
        manager = ConfigurationManager()
        manager.load_catalogues(CATALOGUES)

        assert manager.get_catalogue("governing_law").variant_ids == ("ny", "de")

    def test_load_single_catalogue(self):
        """Test a single catalogue dictionary is accepted."""
        manager = ConfigurationManager()

        manager.load_catalogues({"clause_type": "indemnity", "variants": ["i1", "i2"]})

        assert manager.get_catalogue("indemnity") is not None

    def test_load_catalogues_from_list(self):
        """Test a bare list of catalogues is accepted."""
        manager = ConfigurationManager()

        manager.load_catalogues(CATALOGUES["catalogues"])

        assert len(manager.configuration.catalogues) == 2

    def test_missing_fields(self):
        """Test validation fails for missing required fields."""
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationError) as exc_info:
            manager.load_catalogues([{"title": "No type"}])

        errors = str(exc_info.value.validation_result.errors)
        assert "Missing required field 'clause_type'" in errors
        assert "Missing required field 'variants'" in errors

    def test_duplicate_variant_ids(self):
        """Test validation fails for duplicate variant IDs."""
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationError) as exc_info:
            manager.load_catalogues([{"clause_type": "x", "variants": ["a", "b", "a"]}])

        assert "Duplicate variant IDs" in str(exc_info.value.validation_result.errors)

    def test_duplicate_clause_types(self):
        """Test validation fails for duplicate clause types."""
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationError) as exc_info:
            manager.load_catalogues([
                {"clause_type": "x", "variants": ["a"]},
                {"clause_type": "x", "variants": ["b"]},
            ])

        assert "Duplicate clause types" in str(exc_info.value.validation_result.errors)

    def test_invalid_risk_level(self):
        """Test an unknown risk level is an error."""
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationError):
            manager.load_catalogues([
                {"clause_type": "x", "variants": [{"id": "a", "risk_level": "extreme"}]}
            ])

    def test_empty_catalogue_warns(self):
        """Test a catalogue without variants loads with a warning."""
        manager = ConfigurationManager()

        result = manager.load_catalogues([{"clause_type": "x", "variants": []}])

        assert result.is_valid
        assert any("no variants" in w for w in result.warnings)

    def test_failed_load_keeps_previous_configuration(self):
        """Test a rejected load does not replace loaded catalogues."""
        manager = ConfigurationManager()
        manager.load_catalogues(CATALOGUES)

        with pytest.raises(ConfigurationError):
            manager.load_catalogues([{"clause_type": ""}])

        assert len(manager.configuration.catalogues) == 2


class TestTieBreakDefaults:
    """Tests for tie-break default configuration."""

    def test_load_from_list(self):
        """Test loading defaults from a list of dictionaries."""
        manager = ConfigurationManager()
        manager.load_catalogues(CATALOGUES)

        result = manager.load_tie_break_defaults({
            "defaults": [
                {"clause_type": "confidentiality", "variant_id": "conf_5y"},
                {"clause_type": "governing_law", "variant_id": "de"},
            ]
        })

        assert result.is_valid
        assert manager.get_tie_break_defaults() == {
            "confidentiality": "conf_5y",
            "governing_law": "de",
        }

    def test_load_from_mapping(self):
        """Test loading defaults from a plain clause type mapping."""
        manager = ConfigurationManager()

        manager.load_tie_break_defaults({"confidentiality": "conf_5y"})

        assert manager.get_tie_break_defaults() == {"confidentiality": "conf_5y"}

    def test_load_single_default(self):
        """Test a single default dictionary is not mistaken for a mapping."""
        manager = ConfigurationManager()

        manager.load_tie_break_defaults(
            {"clause_type": "confidentiality", "variant_id": "conf_5y", "description": "Most common"}
        )

        assert manager.get_tie_break_defaults() == {"confidentiality": "conf_5y"}
        assert manager.configuration.tie_break_defaults[0].description == "Most common"

    def test_cross_reference_warnings(self):
        """Test unknown clause types and variants are reported as warnings."""
        manager = ConfigurationManager()
        manager.load_catalogues(CATALOGUES)

        result = manager.load_tie_break_defaults({
            "defaults": {"confidentiality": "conf_10y", "arbitration": "aaa"}
        })

        assert result.is_valid
        warnings = " ".join(result.warnings)
        assert "conf_10y" in warnings
        assert "arbitration" in warnings
        assert "governing_law" in warnings

    def test_duplicate_defaults(self):
        """Test two defaults for one clause type are rejected."""
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationError):
            manager.load_tie_break_defaults([
                {"clause_type": "x", "variant_id": "a"},
                {"clause_type": "x", "variant_id": "b"},
            ])

    def test_missing_variant_id(self):
        """Test a default without a variant is rejected."""
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationError) as exc_info:
            manager.load_tie_break_defaults([{"clause_type": "x"}])

        assert "variant_id" in str(exc_info.value.validation_result.errors)


class TestEngineSettings:
    """Tests for engine settings configuration."""

    def test_defaults(self):
        """Test the default engine constants."""
        settings = ConfigurationManager().settings

        assert settings == EngineSettings()
        assert settings.direct_match_confidence == 95
        assert settings.compromise_confidence_cap == 90
        assert settings.tie_breaker_confidence == 30
        assert settings.max_alternatives == 3
        assert settings.unranked_policy == UnrankedPolicy.ABSENT

    def test_load_partial_settings(self):
        """Test unspecified settings keep their defaults."""
        manager = ConfigurationManager()

        result = manager.load_settings({
            "unranked_policy": "accept_last",
            "party_a_label": "Buyer",
            "party_b_label": "Seller",
            "max_workers": 4,
        })

        assert result.is_valid
        assert manager.settings.unranked_policy == UnrankedPolicy.ACCEPT_LAST
        assert manager.settings.party_a_label == "Buyer"
        assert manager.settings.max_workers == 4
        assert manager.settings.direct_match_confidence == 95

    def test_confidence_ordering_enforced(self):
        """Test settings that break the confidence ordering are rejected."""
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationError) as exc_info:
            manager.load_settings({"tie_breaker_confidence": 92})

        assert "direct_match_confidence > compromise_confidence_cap" in str(
            exc_info.value.validation_result.errors
        )

    @pytest.mark.parametrize("settings", [
        {"direct_match_confidence": 101},
        {"max_alternatives": -1},
        {"max_workers": 0},
        {"compromise_confidence_step": 0},
        {"max_alternatives": True},
        {"tie_breaker_confidence": "30"},
        {"unranked_policy": "sometimes"},
        {"party_a_label": ""},
    ])
    def test_invalid_settings(self, settings):
        """Test out-of-range or mistyped settings are rejected."""
        with pytest.raises(ConfigurationError):
            ConfigurationManager().load_settings(settings)

    def test_unknown_setting_warns(self):
        """Test unknown keys are ignored with a warning."""
        result = ConfigurationManager().load_settings({"colour": "blue"})

        assert result.is_valid
        assert any("colour" in w for w in result.warnings)

    def test_same_labels_warn(self):
        """Test identical party labels are reported."""
        result = ConfigurationManager().load_settings(
            {"party_a_label": "Party", "party_b_label": "Party"}
        )

        assert result.warnings


class TestFileOperations:
    """Tests for file and directory handling."""

    def test_load_from_file(self):
        """Test loading catalogues from a JSON file."""
        manager = ConfigurationManager()

        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(CATALOGUES, f)
            temp_path = f.name

        try:
            result = manager.load_catalogues(temp_path)
            assert result.is_valid
            assert len(manager.configuration.catalogues) == 2
        finally:
            Path(temp_path).unlink()

    def test_missing_file(self):
        """Test a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            ConfigurationManager().load_catalogues("/nonexistent/catalogues.json")

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON raises ConfigurationError."""
        path = tmp_path / "catalogues.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationManager().load_catalogues(path)

        assert "Invalid JSON" in exc_info.value.message

    def test_save_and_load_directory(self, tmp_path):
        """Test a saved configuration directory loads back identically."""
        manager = ConfigurationManager()
        manager.load_catalogues(CATALOGUES)
        manager.load_tie_break_defaults({"confidentiality": "conf_5y", "governing_law": "ny"})
        manager.load_settings({"max_alternatives": 2})
        manager.save_to_directory(tmp_path)

        assert (tmp_path / "catalogues.json").exists()
        assert (tmp_path / "tie_breakers.json").exists()
        assert (tmp_path / "settings.json").exists()

        reloaded = ConfigurationManager()
        result = reloaded.load_from_directory(tmp_path)

        assert result.is_valid
        assert reloaded.configuration.catalogues == manager.configuration.catalogues
        assert reloaded.get_tie_break_defaults() == manager.get_tie_break_defaults()
        assert reloaded.settings == manager.settings

    def test_load_directory_collects_errors(self, tmp_path):
        """Test directory loading reports failures instead of raising."""
        (tmp_path / "settings.json").write_text(
            json.dumps({"max_workers": 0}), encoding="utf-8"
        )

        result = ConfigurationManager().load_from_directory(tmp_path)

        assert not result.is_valid
        assert any("Settings loading failed" in e for e in result.errors)

    def test_load_directory_reports_unknown_default_variant(self, tmp_path):
        """Test a default naming a variant outside its catalogue is reported."""
        (tmp_path / "catalogues.json").write_text(json.dumps(CATALOGUES), encoding="utf-8")
        (tmp_path / "tie_breakers.json").write_text(
            json.dumps({"defaults": {"confidentiality": "conf_10y", "governing_law": "ny"}}),
            encoding="utf-8",
        )

        result = ConfigurationManager().load_from_directory(tmp_path)

        assert result.is_valid
        matching = [w for w in result.warnings if "conf_10y" in w]
        assert len(matching) == 1

    def test_load_directory_warns_without_tie_breakers_file(self, tmp_path):
        """Test clause types without a default are reported when no defaults file exists."""
        (tmp_path / "catalogues.json").write_text(json.dumps(CATALOGUES), encoding="utf-8")

        result = ConfigurationManager().load_from_directory(tmp_path)

        assert result.is_valid
        missing = [w for w in result.warnings if "without a tie-break default" in w]
        assert len(missing) == 1
        assert "confidentiality" in missing[0]
        assert "governing_law" in missing[0]

    def test_validate_configuration(self):
        """Test full validation covers settings and cross-references."""
        manager = ConfigurationManager()
        manager.load_catalogues(CATALOGUES)
        manager.load_tie_break_defaults({"confidentiality": "conf_5y"})

        result = manager.validate_configuration()

        assert result.is_valid
        assert any("governing_law" in w for w in result.warnings)

    def test_save_without_directory(self):
        """Test saving requires a directory."""
        with pytest.raises(ConfigurationError):
            ConfigurationManager().save_to_directory()

    def test_reset(self):
        """Test reset clears the loaded configuration."""
        manager = ConfigurationManager()
        manager.load_catalogues(CATALOGUES)

        manager.reset()

        assert not manager.is_loaded
        assert manager.configuration.catalogues == []


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_merge(self):
        """Test merging keeps all messages and the worst status."""
        first = ValidationResult(is_valid=True)
        first.add_warning("w1")
        second = ValidationResult(is_valid=True)
        second.add_error("e1")

        merged = first.merge(second)

        assert not merged.is_valid
        assert merged.errors == ["e1"]
        assert merged.warnings == ["w1"]
