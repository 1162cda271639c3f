"""Deterministic scoring utilities for matching.

Every sub-score has a neutral default for preferences the owner left
unset, so candidates are never penalized for missing requester input.
All functions are pure: the same inputs always give the same score.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pupmatch.models import (
    Candidate,
    CompatibilityPreferences,
    MedicalProfile,
    Vaccination,
)

DISTANCE_MAX = 20.0
DISTANCE_NEUTRAL = 10.0
AGE_FIT = 10
BREED_MATCH, BREED_NEUTRAL = 7, 5
SIZE_MATCH, SIZE_NEUTRAL = 3, 2
TEMPERAMENT_PER_TRAIT, TEMPERAMENT_CAP, TEMPERAMENT_NEUTRAL = 8, 25, 10
ACTIVITY_MATCH, ACTIVITY_NEUTRAL = 10, 5
MEDICAL_BASE, MEDICAL_BONUS, MEDICAL_NEUTRAL = 5, 5, 12
VERIFIED_BONUS, VACCINATION_BONUS = 5, 5


def _folded(values) -> set[str]:
    return {v.strip().casefold() for v in values if v and v.strip()}


def calculate_distance_score(
    distance_km: Optional[float], max_distance_km: Optional[float]
) -> float:
    """Full marks at 0 km, decaying linearly to 0 at max_distance_km."""

    if distance_km is None or not max_distance_km or max_distance_km <= 0:
        return DISTANCE_NEUTRAL

    decay = 1.0 - distance_km / max_distance_km
    return DISTANCE_MAX * min(max(decay, 0.0), 1.0)


def calculate_age_score(age: int, min_age: Optional[int], max_age: Optional[int]) -> int:
    if min_age is not None and age < min_age:
        return 0
    if max_age is not None and age > max_age:
        return 0
    return AGE_FIT


def calculate_breed_score(breed: str, preferred: list[str]) -> int:
    wanted = _folded(preferred)
    if not wanted:
        return BREED_NEUTRAL
    return BREED_MATCH if breed.strip().casefold() in wanted else 0


def calculate_size_score(size: str, preferred: list[str]) -> int:
    wanted = _folded(preferred)
    if not wanted:
        return SIZE_NEUTRAL
    return SIZE_MATCH if size.strip().casefold() in wanted else 0


def calculate_temperament_score(temperament: list[str], preferred: list[str]) -> int:
    wanted = _folded(preferred)
    if not wanted:
        return TEMPERAMENT_NEUTRAL
    overlap = len(wanted & _folded(temperament))
    return min(overlap * TEMPERAMENT_PER_TRAIT, TEMPERAMENT_CAP)


def calculate_activity_score(activity_level: Optional[str], preferred: list[str]) -> int:
    if activity_level and activity_level.strip().casefold() in _folded(preferred):
        return ACTIVITY_MATCH
    return ACTIVITY_NEUTRAL


def calculate_medical_score(
    medical: Optional[MedicalProfile], preferences: CompatibilityPreferences
) -> int:
    if preferences.medical is None:
        return MEDICAL_NEUTRAL

    score = MEDICAL_BASE
    allergies = medical.allergies if medical else []
    conditions = medical.conditions if medical else []
    if not allergies or preferences.medical.tolerates_allergies:
        score += MEDICAL_BONUS
    if not conditions or preferences.medical.tolerates_conditions:
        score += MEDICAL_BONUS
    return score


def vaccinations_current(medical: Optional[MedicalProfile], as_of: date) -> bool:
    """True if every vaccine type's latest shot is not overdue on as_of."""

    if medical is None or not medical.vaccinations:
        return False

    latest: dict[str, Vaccination] = {}
    for vaccination in medical.vaccinations:
        key = vaccination.type.strip().casefold()
        current = latest.get(key)
        if current is None or vaccination.administered_on > current.administered_on:
            latest[key] = vaccination

    return all(v.next_due is None or v.next_due >= as_of for v in latest.values())


def calculate_verification_score(medical: Optional[MedicalProfile], as_of: date) -> int:
    score = 0
    if medical and medical.vet_clearance:
        score += VERIFIED_BONUS
    if vaccinations_current(medical, as_of):
        score += VACCINATION_BONUS
    return score


def score_breakdown(
    preferences: Optional[CompatibilityPreferences],
    candidate: Candidate,
    as_of: Optional[date] = None,
) -> dict[str, float]:
    """Individual sub-scores, keyed by factor name."""

    preferences = preferences or CompatibilityPreferences()
    as_of = as_of or date.today()
    max_distance = preferences.max_distance_km
    medical = candidate.medical_profile

    return {
        "distance": calculate_distance_score(candidate.distance, max_distance),
        "age": calculate_age_score(candidate.age, preferences.min_age, preferences.max_age),
        "breed": calculate_breed_score(candidate.breed, preferences.breeds),
        "size": calculate_size_score(candidate.size, preferences.sizes),
        "temperament": calculate_temperament_score(
            candidate.temperament, preferences.temperaments
        ),
        "activity": calculate_activity_score(
            candidate.activity_level, preferences.activity_levels
        ),
        "medical": calculate_medical_score(medical, preferences),
        "verification": calculate_verification_score(medical, as_of),
    }


def calculate_compatibility_score(
    preferences: Optional[CompatibilityPreferences],
    candidate: Candidate,
    as_of: Optional[date] = None,
) -> int:
    """Calculate deterministic compatibility score (0-100).

    Sums the weighted sub-scores from `score_breakdown` and caps at 100.
    `as_of` pins the date used to decide whether vaccinations are current;
    it defaults to today.
    """

    total = sum(score_breakdown(preferences, candidate, as_of).values())
    return max(0, min(100, round(total)))
