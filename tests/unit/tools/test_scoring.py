"""
Unit tests for deterministic compatibility scoring.

The scorer ranks candidates for the discovery graph. Each factor has a
neutral default when the owner left that preference unset, and the total
is capped at 100.

Edge cases tested include:
  - Empty preferences (all neutral defaults)
  - Candidates without distance or medical data
  - Overdue vaccinations
  - The cap at 100
"""

from datetime import date

import pytest
from pupmatch.models import (
    Candidate,
    CompatibilityPreferences,
    MedicalPreferences,
    MedicalProfile,
    Vaccination,
)
from pupmatch.tools.scoring_tools import (
    calculate_compatibility_score,
    calculate_distance_score,
    calculate_temperament_score,
    score_breakdown,
    vaccinations_current,
)

AS_OF = date(2025, 10, 1)


def _candidate(**overrides) -> Candidate:
    fields = {
        "id": "cand",
        "owner_id": "owner",
        "name": "Cand",
        "breed": "Beagle",
        "age": 4,
        "gender": "Male",
        "size": "Medium",
    }
    fields.update(overrides)
    return Candidate(**fields)


def _medical(**overrides) -> MedicalProfile:
    return MedicalProfile(dog_id="cand", **overrides)


class TestNeutralDefaults:
    """Unset preferences award the documented neutral scores."""

    def test_empty_preferences_breakdown(self):
        breakdown = score_breakdown(CompatibilityPreferences(), _candidate(), AS_OF)
        assert breakdown == {
            "distance": 10.0,
            "age": 10,
            "breed": 5,
            "size": 2,
            "temperament": 10,
            "activity": 5,
            "medical": 12,
            "verification": 0,
        }

    def test_empty_preferences_total(self):
        assert calculate_compatibility_score(None, _candidate(), AS_OF) == 54

    def test_none_preferences_same_as_empty(self):
        candidate = _candidate(distance=3.0)
        assert calculate_compatibility_score(
            None, candidate, AS_OF
        ) == calculate_compatibility_score(CompatibilityPreferences(), candidate, AS_OF)


class TestDistanceScore:
    """Test linear distance decay."""

    def test_zero_distance_full_marks(self):
        assert calculate_distance_score(0.0, 10.0) == 20.0

    def test_half_radius_half_marks(self):
        assert calculate_distance_score(5.0, 10.0) == pytest.approx(10.0)

    def test_at_or_beyond_radius_zero(self):
        assert calculate_distance_score(10.0, 10.0) == 0.0
        assert calculate_distance_score(25.0, 10.0) == 0.0

    def test_missing_distance_neutral(self):
        assert calculate_distance_score(None, 10.0) == 10.0

    def test_missing_radius_neutral(self):
        assert calculate_distance_score(2.0, None) == 10.0

    def test_closer_scores_higher(self):
        assert calculate_distance_score(1.0, 10.0) > calculate_distance_score(4.0, 10.0)


class TestPreferenceFactors:
    """Test age, breed, size, temperament and activity factors."""

    def test_age_inside_range(self):
        prefs = CompatibilityPreferences(min_age=2, max_age=4)
        assert score_breakdown(prefs, _candidate(age=4), AS_OF)["age"] == 10

    def test_age_outside_range(self):
        prefs = CompatibilityPreferences(min_age=5)
        assert score_breakdown(prefs, _candidate(age=4), AS_OF)["age"] == 0

    def test_preferred_breed_case_insensitive(self):
        prefs = CompatibilityPreferences(breeds=["beagle", "Pug"])
        assert score_breakdown(prefs, _candidate(), AS_OF)["breed"] == 7

    def test_other_breed_zero(self):
        prefs = CompatibilityPreferences(breeds=["Pug"])
        assert score_breakdown(prefs, _candidate(), AS_OF)["breed"] == 0

    def test_size_match_and_miss(self):
        assert score_breakdown(
            CompatibilityPreferences(sizes=["Medium"]), _candidate(), AS_OF
        )["size"] == 3
        assert score_breakdown(
            CompatibilityPreferences(sizes=["Small"]), _candidate(), AS_OF
        )["size"] == 0

    def test_temperament_per_trait(self):
        assert calculate_temperament_score(["Playful", "Calm"], ["playful", "calm"]) == 16

    def test_temperament_capped(self):
        traits = ["Playful", "Calm", "Loyal", "Social"]
        assert calculate_temperament_score(traits, traits) == 25

    def test_temperament_no_overlap(self):
        assert calculate_temperament_score(["Shy"], ["Playful"]) == 0

    def test_activity_match(self):
        prefs = CompatibilityPreferences(activity_levels=["High"])
        assert score_breakdown(prefs, _candidate(activity_level="high"), AS_OF)["activity"] == 10

    def test_activity_miss_is_neutral(self):
        prefs = CompatibilityPreferences(activity_levels=["High"])
        assert score_breakdown(prefs, _candidate(activity_level="Low"), AS_OF)["activity"] == 5


class TestMedicalAndVerification:
    """Test medical compatibility and the verification bonus."""

    def test_clean_profile_full_medical(self):
        prefs = CompatibilityPreferences(medical=MedicalPreferences())
        candidate = _candidate(medical_profile=_medical())
        assert score_breakdown(prefs, candidate, AS_OF)["medical"] == 15

    def test_allergies_and_conditions_penalized(self):
        prefs = CompatibilityPreferences(medical=MedicalPreferences())
        candidate = _candidate(
            medical_profile=_medical(allergies=["chicken"], conditions=["arthritis"])
        )
        assert score_breakdown(prefs, candidate, AS_OF)["medical"] == 5

    def test_tolerance_restores_bonus(self):
        prefs = CompatibilityPreferences(
            medical=MedicalPreferences(tolerates_allergies=True, tolerates_conditions=True)
        )
        candidate = _candidate(
            medical_profile=_medical(allergies=["chicken"], conditions=["arthritis"])
        )
        assert score_breakdown(prefs, candidate, AS_OF)["medical"] == 15

    def test_vet_verified_and_current(self):
        medical = _medical(
            vet_clearance=True,
            vaccinations=[
                Vaccination(
                    type="Rabies",
                    administered_on=date(2025, 3, 1),
                    next_due=date(2026, 3, 1),
                )
            ],
        )
        candidate = _candidate(medical_profile=medical)
        assert score_breakdown(None, candidate, AS_OF)["verification"] == 10

    def test_overdue_vaccination_not_current(self):
        medical = _medical(
            vaccinations=[
                Vaccination(
                    type="Rabies",
                    administered_on=date(2024, 3, 1),
                    next_due=date(2025, 3, 1),
                )
            ]
        )
        assert not vaccinations_current(medical, AS_OF)

    def test_latest_shot_per_type_counts(self):
        """A renewed vaccine supersedes the older, overdue record."""
        medical = _medical(
            vaccinations=[
                Vaccination(type="Rabies", administered_on=date(2024, 3, 1), next_due=date(2025, 3, 1)),
                Vaccination(type="Rabies", administered_on=date(2025, 3, 1), next_due=date(2026, 3, 1)),
            ]
        )
        assert vaccinations_current(medical, AS_OF)

    def test_no_vaccinations_not_current(self):
        assert not vaccinations_current(_medical(), AS_OF)
        assert not vaccinations_current(None, AS_OF)


class TestTotalScore:
    """Test the combined score."""

    def test_perfect_candidate_capped_at_100(self):
        prefs = CompatibilityPreferences(
            min_age=1,
            max_age=5,
            breeds=["Beagle"],
            sizes=["Medium"],
            temperaments=["Playful", "Calm", "Loyal", "Social"],
            activity_levels=["High"],
            medical=MedicalPreferences(),
            max_distance_km=10,
        )
        candidate = _candidate(
            distance=0.0,
            temperament=["Playful", "Calm", "Loyal", "Social"],
            activity_level="High",
            medical_profile=_medical(
                vet_clearance=True,
                vaccinations=[
                    Vaccination(type="Rabies", administered_on=date(2025, 3, 1), next_due=date(2026, 3, 1))
                ],
            ),
        )
        # 20 + 10 + 7 + 3 + 25 + 10 + 15 + 10 = 100
        assert calculate_compatibility_score(prefs, candidate, AS_OF) == 100

    def test_worst_candidate_non_negative(self):
        prefs = CompatibilityPreferences(
            min_age=10,
            breeds=["Pug"],
            sizes=["Small"],
            temperaments=["Calm"],
            activity_levels=["Low"],
            medical=MedicalPreferences(),
            max_distance_km=5,
        )
        candidate = _candidate(
            distance=50.0,
            temperament=["Energetic"],
            activity_level="High",
            medical_profile=_medical(allergies=["beef"], conditions=["arthritis"]),
        )
        # 0 + 0 + 0 + 0 + 0 + 5 + 5 + 0
        assert calculate_compatibility_score(prefs, candidate, AS_OF) == 10

    def test_deterministic(self):
        prefs = CompatibilityPreferences(temperaments=["Playful"], max_distance_km=20)
        candidate = _candidate(distance=7.3, temperament=["Playful"])
        scores = {calculate_compatibility_score(prefs, candidate, AS_OF) for _ in range(5)}
        assert len(scores) == 1

    def test_distance_rounding_in_total(self):
        """Fractional distance points are rounded once, on the total."""
        prefs = CompatibilityPreferences(max_distance_km=3)
        candidate = _candidate(distance=1.0)
        # distance 20 * (2/3) = 13.33 -> 13.33 + 10 + 5 + 2 + 10 + 5 + 12 = 57.33
        assert calculate_compatibility_score(prefs, candidate, AS_OF) == 57
