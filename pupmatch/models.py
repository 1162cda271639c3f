"""Domain models shared by the tools, graphs and HTTP layer.

Everything is a pydantic model so it serializes straight to JSON for API
responses and graph state. Storage adapters convert to and from their own
document shapes.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from pupmatch.config import config


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def pair_key(dog_a: str, dog_b: str) -> tuple[str, str]:
    """Normalize an unordered dog pair so the smaller id comes first."""

    return (dog_a, dog_b) if dog_a <= dog_b else (dog_b, dog_a)


# ============================================================
# DOGS
# ============================================================
class DogBase(BaseModel):
    owner_id: str
    name: str
    breed: str
    age: int = Field(ge=0)
    gender: str
    size: str
    bio: Optional[str] = None
    photos: list[str] = Field(default_factory=list)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_active: bool = True
    temperament: list[str] = Field(default_factory=list)
    activity_level: Optional[str] = None
    mating_preference: bool = False
    search_radius_km: float = Field(
        default_factory=lambda: config.DEFAULT_MAX_DISTANCE_KM,
        gt=0,
        le=config.MAX_DISTANCE_LIMIT_KM,
    )


class DogCreate(DogBase):
    """Request body for creating a dog profile."""

    model_config = ConfigDict(extra="forbid")


class DogUpdate(BaseModel):
    """Partial profile update. Deactivate with is_active=false."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)
    gender: Optional[str] = None
    size: Optional[str] = None
    bio: Optional[str] = None
    photos: Optional[list[str]] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_active: Optional[bool] = None
    temperament: Optional[list[str]] = None
    activity_level: Optional[str] = None
    mating_preference: Optional[bool] = None
    search_radius_km: Optional[float] = Field(
        default=None, gt=0, le=config.MAX_DISTANCE_LIMIT_KM
    )


class Dog(DogBase):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# ============================================================
# MEDICAL PROFILES
# ============================================================
class Vaccination(BaseModel):
    type: str
    administered_on: date
    next_due: Optional[date] = None


class Medication(BaseModel):
    name: str
    dosage: str
    frequency: str


class MedicalProfileBase(BaseModel):
    vaccinations: list[Vaccination] = Field(default_factory=list)
    medications: list[Medication] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    last_vet_visit: Optional[datetime] = None
    is_spayed_neutered: bool = False
    vet_clearance: bool = False


class MedicalProfileInput(MedicalProfileBase):
    """Request body for creating or replacing a medical profile."""

    model_config = ConfigDict(extra="forbid")


class MedicalProfile(MedicalProfileBase):
    dog_id: str
    created_at: datetime = Field(default_factory=utcnow)


class DogWithMedical(Dog):
    """A dog as returned by discovery: medical profile and distance attached."""

    medical_profile: Optional[MedicalProfile] = None
    distance: Optional[float] = None


Candidate = DogWithMedical


# ============================================================
# DISCOVERY INPUTS
# ============================================================
class AgeBand(str, Enum):
    PUPPY = "puppy"
    YOUNG = "young"
    ADULT = "adult"
    SENIOR = "senior"


class AttributeFilters(BaseModel):
    """Optional AND-predicates applied by the candidate filter."""

    model_config = ConfigDict(extra="forbid")

    age_range: Optional[AgeBand] = None
    size: Optional[str] = None
    vaccinated: bool = False
    spayed_neutered: bool = False
    no_allergies: bool = False
    vet_clearance: bool = False


class MedicalPreferences(BaseModel):
    tolerates_allergies: bool = False
    tolerates_conditions: bool = False


class CompatibilityPreferences(BaseModel):
    """What the requesting owner is looking for. Unset fields score neutrally."""

    model_config = ConfigDict(extra="forbid")

    min_age: Optional[int] = Field(default=None, ge=0)
    max_age: Optional[int] = Field(default=None, ge=0)
    breeds: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    temperaments: list[str] = Field(default_factory=list)
    activity_levels: list[str] = Field(default_factory=list)
    medical: Optional[MedicalPreferences] = None
    max_distance_km: Optional[float] = Field(default=None, gt=0)


# ============================================================
# DECISIONS, MATCHES, MESSAGES
# ============================================================
class Decision(BaseModel):
    decider_dog_id: str
    target_dog_id: str
    is_like: bool
    created_at: datetime = Field(default_factory=utcnow)


class Match(BaseModel):
    id: str = Field(default_factory=new_id)
    dog1_id: str
    dog2_id: str
    created_at: datetime = Field(default_factory=utcnow)

    def involves(self, dog_id: str) -> bool:
        return dog_id in (self.dog1_id, self.dog2_id)

    def other_dog_id(self, dog_id: str) -> str:
        return self.dog2_id if self.dog1_id == dog_id else self.dog1_id


class MatchView(Match):
    """Match as seen from one dog: the other dog and its medical profile."""

    other_dog: Optional[DogWithMedical] = None


class Message(BaseModel):
    id: str = Field(default_factory=new_id)
    match_id: str
    sender_id: str
    content: str
    created_at: datetime = Field(default_factory=utcnow)


class SwipeRequest(BaseModel):
    """Request body for POST /api/swipes."""

    model_config = ConfigDict(extra="forbid")

    decider_dog_id: str = Field(min_length=1)
    target_dog_id: str = Field(min_length=1)
    is_like: StrictBool


class SwipeResult(BaseModel):
    decision: Decision
    match: Optional[Match] = None


class MessageRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sender_id: str = Field(min_length=1)
    content: str
