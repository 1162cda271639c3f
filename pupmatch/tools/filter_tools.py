"""Candidate filtering for discovery.

The filtering order is optimized for performance: storage narrows the
pool with a bounding box, cheap id/flag checks run next, and the exact
Haversine distance and medical-profile lookups run only for dogs that
survive them.
"""

from __future__ import annotations

from math import isfinite
from typing import Optional

from pupmatch.config import config
from pupmatch.models import AgeBand, AttributeFilters, Candidate, MedicalProfile
from pupmatch.tools.repository import MatchingRepository
from pupmatch.utils.errors import NotFoundError, ValidationError
from pupmatch.utils.geo import bounding_box, haversine_km, round_distance
from pupmatch.utils.logging_config import logger

# Inclusive bounds in years; None means open-ended.
AGE_BANDS: dict[AgeBand, tuple[Optional[int], Optional[int]]] = {
    AgeBand.PUPPY: (None, 1),
    AgeBand.YOUNG: (1, 3),
    AgeBand.ADULT: (3, 7),
    AgeBand.SENIOR: (7, None),
}

RABIES = "rabies"


def matches_age_band(age: int, band: AgeBand) -> bool:
    low, high = AGE_BANDS[band]
    if low is not None and age < low:
        return False
    if high is not None and age > high:
        return False
    return True


def is_vaccinated(medical: Optional[MedicalProfile]) -> bool:
    """At least one rabies vaccination on record."""

    if medical is None:
        return False
    return any(v.type.strip().casefold() == RABIES for v in medical.vaccinations)


def passes_attribute_filters(candidate: Candidate, filters: AttributeFilters) -> bool:
    """Apply every supplied filter as an AND predicate."""

    medical = candidate.medical_profile

    if filters.age_range and not matches_age_band(candidate.age, filters.age_range):
        return False
    if filters.size and candidate.size.casefold() != filters.size.strip().casefold():
        return False
    if filters.vaccinated and not is_vaccinated(medical):
        return False
    if filters.spayed_neutered and not (medical and medical.is_spayed_neutered):
        return False
    if filters.no_allergies and medical and medical.allergies:
        return False
    if filters.vet_clearance and not (medical and medical.vet_clearance):
        return False
    return True


def validate_coordinates(latitude: Optional[float], longitude: Optional[float]) -> None:
    if latitude is None or longitude is None:
        raise ValidationError("latitude and longitude are required")
    if not (isfinite(latitude) and isfinite(longitude)):
        raise ValidationError("latitude and longitude must be finite numbers")
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValidationError("latitude/longitude out of range")


def find_candidates(
    repository: MatchingRepository,
    requester_dog_id: str,
    latitude: Optional[float],
    longitude: Optional[float],
    max_distance_km: Optional[float] = None,
    filters: Optional[AttributeFilters] = None,
) -> list[Candidate]:
    """Return dogs the requester can be shown next.

    Excludes the requester, dogs it already liked or passed, inactive dogs,
    dogs without a location and dogs farther than max_distance_km, then
    applies the attribute filters. Each candidate carries its distance in
    km rounded to one decimal. Results are ordered by distance, then id,
    and capped at MAX_CANDIDATES after every exclusion has run.

    Raises:
        ValidationError: Missing requester id, bad coordinates, or a radius
            that is negative or above MAX_DISTANCE_LIMIT_KM.
        NotFoundError: The requester dog does not exist.
    """

    if not requester_dog_id:
        raise ValidationError("dog_id is required")
    validate_coordinates(latitude, longitude)

    requester = repository.get_dog(requester_dog_id)
    if requester is None:
        raise NotFoundError(f"Dog not found: {requester_dog_id}")

    if max_distance_km is None:
        max_distance_km = min(requester.search_radius_km, config.MAX_DISTANCE_LIMIT_KM)
    if not isfinite(max_distance_km) or max_distance_km < 0:
        raise ValidationError("max_distance must be a non-negative number")
    if max_distance_km > config.MAX_DISTANCE_LIMIT_KM:
        raise ValidationError(
            f"max_distance cannot exceed {config.MAX_DISTANCE_LIMIT_KM} km"
        )

    filters = filters or AttributeFilters()
    decided = repository.list_decided_target_ids(requester_dog_id)
    # Uncapped: decided dogs and box corners are only dropped below.
    pool = repository.list_active_with_location(
        bbox=bounding_box(latitude, longitude, max_distance_km)
    )

    candidates: dict[str, Candidate] = {}
    for dog in pool:
        if dog.id == requester_dog_id or dog.id in decided or dog.id in candidates:
            continue
        if not dog.is_active or not dog.has_location:
            continue

        distance = round_distance(
            haversine_km(latitude, longitude, dog.latitude, dog.longitude)
        )
        if distance > max_distance_km:
            continue

        candidate = Candidate(
            **dog.model_dump(),
            medical_profile=repository.get_medical_profile(dog.id),
            distance=distance,
        )
        if not passes_attribute_filters(candidate, filters):
            continue

        candidates[dog.id] = candidate

    result = sorted(candidates.values(), key=lambda c: (c.distance, c.id))[
        : config.MAX_CANDIDATES
    ]
    logger.debug(
        "find_candidates dog=%s pool=%s decided=%s result=%s",
        requester_dog_id,
        len(pool),
        len(decided),
        len(result),
    )
    return result
