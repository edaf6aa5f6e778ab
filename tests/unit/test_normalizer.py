"""Unit tests for the Preference Normalizer."""

import pytest

from clause_resolution.models import (
    ClauseCatalogue,
    PartyPreference,
    RawSubmission,
    UnrankedPolicy,
)
from clause_resolution.resolution import (
    InvalidPreferenceError,
    PreferenceNormalizer,
    normalize_preference,
)


@pytest.fixture
def catalogue():
    return ClauseCatalogue.from_ids("confidentiality", ["V1", "V2", "V3", "V4"])


@pytest.fixture
def normalizer():
    return PreferenceNormalizer()


class TestNormalization:
    """Tests for turning raw submissions into preferences."""

    def test_plain_ranking_is_kept(self, normalizer, catalogue):
        """Test a clean ranking passes through unchanged."""
        pref = normalizer.normalize(
            RawSubmission("confidentiality", ranking=["V2", "V1"]), catalogue
        )

        assert pref.ranking == ("V2", "V1")
        assert pref.rejected == frozenset()

    def test_duplicates_keep_first_occurrence(self, normalizer, catalogue):
        """Test duplicate IDs collapse to their most preferred position."""
        pref = normalizer.normalize(
            RawSubmission("confidentiality", ranking=["V3", "V1", "V3", "V2", "V1"]),
            catalogue,
        )

        assert pref.ranking == ("V3", "V1", "V2")

    def test_rejected_ids_removed_from_ranking(self, normalizer, catalogue):
        """Test a rejection wins over a ranking entry for the same variant."""
        pref = normalizer.normalize(
            RawSubmission("confidentiality", ranking=["V1", "V2", "V3"], rejected=["V2"]),
            catalogue,
        )

        assert pref.ranking == ("V1", "V3")
        assert pref.rejected == frozenset({"V2"})
        assert "V2" not in pref.ranking

    def test_reject_all_rejects_whole_catalogue(self, normalizer, catalogue):
        """Test the reject-all toggle empties the ranking."""
        pref = normalizer.normalize(
            RawSubmission("confidentiality", ranking=["V1"], reject_all=True),
            catalogue,
        )

        assert pref.ranking == ()
        assert pref.rejected == frozenset(catalogue.variant_ids)
        assert not pref.has_acceptable

    def test_selected_variant_becomes_first_choice(self, normalizer, catalogue):
        """Test an explicit pick is moved to the front of the ranking."""
        pref = normalizer.normalize(
            RawSubmission(
                "confidentiality", ranking=["V1", "V2", "V3"], selected_variant="V3"
            ),
            catalogue,
        )

        assert pref.ranking == ("V3", "V1", "V2")

    def test_selected_variant_alone(self, normalizer, catalogue):
        """Test a pick with no ranking yields a single-entry ranking."""
        pref = normalizer.normalize(
            RawSubmission("confidentiality", selected_variant="V4"), catalogue
        )

        assert pref.ranking == ("V4",)

    def test_empty_submission(self, normalizer, catalogue):
        """Test an empty submission accepts nothing."""
        pref = normalizer.normalize(RawSubmission("confidentiality"), catalogue)

        assert pref.ranking == ()
        assert not pref.has_acceptable


class TestNormalizationErrors:
    """Tests for invalid submissions."""

    def test_unknown_ranked_variant(self, normalizer, catalogue):
        """Test an unknown ranked ID raises InvalidPreferenceError."""
        with pytest.raises(InvalidPreferenceError) as exc_info:
            normalizer.normalize(
                RawSubmission("confidentiality", ranking=["V1", "V9"]), catalogue
            )

        error = exc_info.value
        assert error.clause_type == "confidentiality"
        assert error.variant_id == "V9"
        assert error.details["field"] == "ranking"
        assert error.details["known_variants"] == ["V1", "V2", "V3", "V4"]

    def test_unknown_rejected_variant(self, normalizer, catalogue):
        """Test an unknown rejected ID raises InvalidPreferenceError."""
        with pytest.raises(InvalidPreferenceError) as exc_info:
            normalizer.normalize(
                RawSubmission("confidentiality", rejected=["nope"]), catalogue
            )

        assert exc_info.value.details["field"] == "rejected"

    def test_unknown_selected_variant(self, normalizer, catalogue):
        """Test an unknown pick raises InvalidPreferenceError."""
        with pytest.raises(InvalidPreferenceError) as exc_info:
            normalizer.normalize(
                RawSubmission("confidentiality", selected_variant="V0"), catalogue
            )

        assert exc_info.value.details["field"] == "selected_variant"

    @pytest.mark.parametrize("bad_id", ["", None, 3])
    def test_non_string_identifiers(self, normalizer, catalogue, bad_id):
        """Test empty or non-string IDs are rejected."""
        with pytest.raises(InvalidPreferenceError):
            normalizer.normalize(
                RawSubmission("confidentiality", ranking=["V1", bad_id]), catalogue
            )

    def test_selected_variant_also_rejected(self, normalizer, catalogue):
        """Test a pick that is also rejected is inconsistent."""
        with pytest.raises(InvalidPreferenceError) as exc_info:
            normalizer.normalize(
                RawSubmission(
                    "confidentiality", selected_variant="V2", rejected=["V2"]
                ),
                catalogue,
            )

        assert exc_info.value.variant_id == "V2"

    def test_clause_type_mismatch(self, normalizer, catalogue):
        """Test a submission cannot be checked against another clause's catalogue."""
        with pytest.raises(InvalidPreferenceError):
            normalizer.normalize(RawSubmission("indemnity", ranking=["V1"]), catalogue)

    def test_error_serialization(self, normalizer, catalogue):
        """Test the error converts to a dictionary for the API layer."""
        with pytest.raises(InvalidPreferenceError) as exc_info:
            normalizer.normalize(
                RawSubmission("confidentiality", ranking=["X"]), catalogue
            )

        data = exc_info.value.to_dict()
        assert data["error_type"] == "InvalidPreferenceError"
        assert data["clause_type"] == "confidentiality"
        assert data["variant_id"] == "X"
        assert "Variant: X" in str(exc_info.value)


class TestUnrankedPolicy:
    """Tests for the treatment of variants a party did not mention."""

    def test_absent_policy_leaves_unranked_out(self, catalogue):
        """Test unranked variants stay unacceptable by default."""
        pref = PreferenceNormalizer(UnrankedPolicy.ABSENT).normalize(
            RawSubmission("confidentiality", ranking=["V2"]), catalogue
        )

        assert pref.ranking == ("V2",)

    def test_accept_last_appends_in_catalogue_order(self, catalogue):
        """Test unranked, unrejected variants are appended at lowest priority."""
        pref = PreferenceNormalizer(UnrankedPolicy.ACCEPT_LAST).normalize(
            RawSubmission("confidentiality", ranking=["V3"], rejected=["V1"]),
            catalogue,
        )

        assert pref.ranking == ("V3", "V2", "V4")
        assert pref.rejected == frozenset({"V1"})

    def test_accept_last_with_reject_all(self, catalogue):
        """Test reject-all still empties the ranking under accept_last."""
        pref = PreferenceNormalizer(UnrankedPolicy.ACCEPT_LAST).normalize(
            RawSubmission("confidentiality", reject_all=True), catalogue
        )

        assert pref.ranking == ()


class TestIdempotence:
    """Tests for normalizing already-normalized preferences."""

    def test_normalizing_preference_returns_equal_value(self, normalizer, catalogue):
        """Test a normalized preference survives a second pass unchanged."""
        first = normalizer.normalize(
            RawSubmission(
                "confidentiality", ranking=["V3", "V1", "V3"], rejected=["V4"]
            ),
            catalogue,
        )
        second = normalizer.normalize(first, catalogue)

        assert second == first

    def test_idempotent_under_accept_last(self, catalogue):
        """Test idempotence also holds when unranked variants are appended."""
        normalizer = PreferenceNormalizer(UnrankedPolicy.ACCEPT_LAST)
        first = normalizer.normalize(
            RawSubmission("confidentiality", ranking=["V2"]), catalogue
        )

        assert normalizer.normalize(first, catalogue) == first

    def test_preference_input_is_validated(self, normalizer, catalogue):
        """Test a hand-built preference is still checked against the catalogue."""
        with pytest.raises(InvalidPreferenceError):
            normalizer.normalize(
                PartyPreference("confidentiality", ranking=("V1", "V7")), catalogue
            )

    def test_convenience_function(self, catalogue):
        """Test normalize_preference matches the normalizer."""
        pref = normalize_preference(
            RawSubmission("confidentiality", ranking=["V1", "V1"]), catalogue
        )

        assert pref.ranking == ("V1",)
