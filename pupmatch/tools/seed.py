"""Demo data for local development (Bangalore neighbourhood dogs)."""

from __future__ import annotations

from datetime import date

from pupmatch.models import Dog, MedicalProfile, Vaccination
from pupmatch.tools.memory_store import InMemoryRepository
from pupmatch.utils.logging_config import logger


DEMO_DOGS = [
    Dog(
        id="buddy",
        owner_id="user-1",
        name="Buddy",
        breed="Golden Retriever",
        age=3,
        gender="Male",
        size="Large",
        bio="Loves fetch and long walks in Cubbon Park.",
        temperament=["Friendly", "Energetic", "Loyal"],
        activity_level="High",
        latitude=12.9716,
        longitude=77.5946,
        search_radius_km=25,
    ),
    Dog(
        id="luna",
        owner_id="user-2",
        name="Luna",
        breed="Labrador Retriever",
        age=2,
        gender="Female",
        size="Large",
        bio="Sweet and playful, very social at the dog park.",
        temperament=["Playful", "Social", "Friendly"],
        activity_level="High",
        mating_preference=True,
        latitude=12.9352,
        longitude=77.6245,
        search_radius_km=12,
    ),
    Dog(
        id="simba",
        owner_id="user-3",
        name="Simba",
        breed="German Shepherd",
        age=4,
        gender="Male",
        size="Large",
        bio="Intelligent and protective. Great with families.",
        temperament=["Intelligent", "Protective", "Loyal"],
        activity_level="Medium",
        latitude=12.9698,
        longitude=77.6205,
        search_radius_km=20,
    ),
    Dog(
        id="rocky",
        owner_id="user-4",
        name="Rocky",
        breed="Rottweiler",
        age=5,
        gender="Male",
        size="Large",
        bio="Strong and gentle giant. Well-trained.",
        temperament=["Strong", "Gentle", "Protective"],
        activity_level="Medium",
        latitude=12.9719,
        longitude=77.6412,
        search_radius_km=18,
    ),
    Dog(
        id="pepper",
        owner_id="user-5",
        name="Pepper",
        breed="Beagle",
        age=1,
        gender="Female",
        size="Medium",
        bio="Curious nose, boundless energy.",
        temperament=["Curious", "Playful"],
        activity_level="High",
        latitude=12.9141,
        longitude=77.6101,
        search_radius_km=10,
    ),
    Dog(
        id="mochi",
        owner_id="user-6",
        name="Mochi",
        breed="Shih Tzu",
        age=8,
        gender="Female",
        size="Small",
        bio="Calm senior who enjoys short strolls.",
        temperament=["Calm", "Gentle"],
        activity_level="Low",
        latitude=13.0358,
        longitude=77.5970,
        search_radius_km=8,
    ),
]

DEMO_MEDICAL_PROFILES = [
    MedicalProfile(
        dog_id="buddy",
        vaccinations=[
            Vaccination(type="Rabies", administered_on=date(2025, 3, 1), next_due=date(2026, 3, 1)),
            Vaccination(type="DHPP", administered_on=date(2025, 3, 1), next_due=date(2026, 3, 1)),
        ],
        is_spayed_neutered=True,
        vet_clearance=True,
    ),
    MedicalProfile(
        dog_id="luna",
        vaccinations=[
            Vaccination(type="Rabies", administered_on=date(2025, 6, 10), next_due=date(2026, 6, 10)),
        ],
        allergies=["chicken"],
        vet_clearance=True,
    ),
    MedicalProfile(
        dog_id="simba",
        vaccinations=[
            Vaccination(type="DHPP", administered_on=date(2024, 11, 5), next_due=date(2025, 11, 5)),
        ],
        conditions=["hip dysplasia"],
        is_spayed_neutered=True,
    ),
    MedicalProfile(
        dog_id="mochi",
        vaccinations=[
            Vaccination(type="Rabies", administered_on=date(2025, 1, 20), next_due=date(2026, 1, 20)),
        ],
        allergies=["beef"],
        conditions=["arthritis"],
        is_spayed_neutered=True,
        vet_clearance=True,
    ),
]


def seed_demo_data(repository: InMemoryRepository) -> None:
    """Load the demo dogs and their medical profiles."""

    for dog in DEMO_DOGS:
        repository.add_dog(dog)
    for profile in DEMO_MEDICAL_PROFILES:
        repository.save_medical_profile(profile)

    logger.info("Seeded %d demo dogs", len(DEMO_DOGS))
