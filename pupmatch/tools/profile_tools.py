"""Dog and medical profile helpers used by the REST endpoints."""

from __future__ import annotations

from pupmatch.models import (
    Dog,
    DogCreate,
    DogUpdate,
    DogWithMedical,
    MedicalProfile,
    MedicalProfileInput,
)
from pupmatch.tools.repository import MatchingRepository
from pupmatch.utils.errors import NotFoundError, ValidationError
from pupmatch.utils.logging_config import logger

REQUIRED_FIELDS = ("name", "breed", "age", "gender", "size", "is_active")


def get_dog(repository: MatchingRepository, dog_id: str) -> Dog:
    dog = repository.get_dog(dog_id)
    if dog is None:
        raise NotFoundError(f"Dog not found: {dog_id}")
    return dog


def create_dog(repository: MatchingRepository, data: DogCreate) -> Dog:
    if (data.latitude is None) != (data.longitude is None):
        raise ValidationError("latitude and longitude must be set together")
    dog = repository.create_dog(data)
    logger.info("Dog %s created for owner %s", dog.id, dog.owner_id)
    return dog


def update_dog(repository: MatchingRepository, dog_id: str, updates: DogUpdate) -> Dog:
    """Partially update a profile. Deactivating keeps matches and messages."""

    changes = updates.model_dump(exclude_unset=True)
    cleared = [field for field in REQUIRED_FIELDS if field in changes and changes[field] is None]
    if cleared:
        raise ValidationError(f"Fields cannot be null: {', '.join(cleared)}")

    dog = repository.update_dog(dog_id, updates)
    if dog is None:
        raise NotFoundError(f"Dog not found: {dog_id}")
    if (dog.latitude is None) != (dog.longitude is None):
        logger.warning("Dog %s has a partial location", dog_id)
    if changes.get("is_active") is False:
        logger.info("Dog %s deactivated", dog_id)
    return dog


def list_owner_dogs(repository: MatchingRepository, owner_id: str) -> list[DogWithMedical]:
    return [
        DogWithMedical(
            **dog.model_dump(),
            medical_profile=repository.get_medical_profile(dog.id),
        )
        for dog in repository.list_dogs_by_owner(owner_id)
    ]


def get_medical_profile(repository: MatchingRepository, dog_id: str) -> MedicalProfile:
    profile = repository.get_medical_profile(dog_id)
    if profile is None:
        raise NotFoundError(f"Medical profile not found: {dog_id}")
    return profile


def save_medical_profile(
    repository: MatchingRepository, dog_id: str, data: MedicalProfileInput
) -> tuple[MedicalProfile, bool]:
    """Create or replace the dog's medical profile. Returns (profile, created)."""

    get_dog(repository, dog_id)
    existing = repository.get_medical_profile(dog_id)
    profile = MedicalProfile(dog_id=dog_id, **data.model_dump())
    if existing is not None:
        profile.created_at = existing.created_at
    repository.save_medical_profile(profile)
    return profile, existing is None
