"""In-memory repository used for local development and tests.

Decisions are indexed per decider so the "already decided" check is a dict
lookup. Matches are indexed by the normalized dog pair; the index is the
uniqueness constraint and is only touched while holding the store lock.
"""

from __future__ import annotations

import threading
from typing import Optional

from pupmatch.models import (
    Decision,
    Dog,
    DogCreate,
    DogUpdate,
    Match,
    MedicalProfile,
    Message,
    pair_key,
)
from pupmatch.tools.repository import MatchingRepository
from pupmatch.utils.errors import ConflictError
from pupmatch.utils.geo import BoundingBox


class InMemoryRepository(MatchingRepository):
    """Dict-backed store. Returned models are copies, never live references."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._dogs: dict[str, Dog] = {}
        self._medical: dict[str, MedicalProfile] = {}
        # decider_dog_id -> target_dog_id -> Decision
        self._decisions: dict[str, dict[str, Decision]] = {}
        self._matches: dict[str, Match] = {}
        self._match_by_pair: dict[tuple[str, str], str] = {}
        self._unmatched_pairs: set[tuple[str, str]] = set()
        self._messages: dict[str, list[Message]] = {}

    # ---- dogs ----------------------------------------------------------
    def get_dog(self, dog_id: str) -> Optional[Dog]:
        dog = self._dogs.get(dog_id)
        return dog.model_copy(deep=True) if dog else None

    def create_dog(self, data: DogCreate) -> Dog:
        dog = Dog(**data.model_dump())
        return self.add_dog(dog)

    def add_dog(self, dog: Dog) -> Dog:
        """Insert a fully-formed dog, keeping its id (seeding and tests)."""

        with self._lock:
            self._dogs[dog.id] = dog.model_copy(deep=True)
        return dog

    def update_dog(self, dog_id: str, updates: DogUpdate) -> Optional[Dog]:
        with self._lock:
            dog = self._dogs.get(dog_id)
            if dog is None:
                return None
            updated = Dog.model_validate(
                {**dog.model_dump(), **updates.model_dump(exclude_unset=True)}
            )
            self._dogs[dog_id] = updated
            return updated.model_copy(deep=True)

    def list_dogs_by_owner(self, owner_id: str) -> list[Dog]:
        return [
            dog.model_copy(deep=True)
            for dog in self._dogs.values()
            if dog.owner_id == owner_id
        ]

    def list_active_with_location(
        self, bbox: Optional[BoundingBox] = None, limit: Optional[int] = None
    ) -> list[Dog]:
        dogs: list[Dog] = []
        for dog in list(self._dogs.values()):
            if not dog.is_active or not dog.has_location:
                continue
            if bbox is not None and not bbox.contains(dog.latitude, dog.longitude):
                continue
            dogs.append(dog.model_copy(deep=True))
            if limit is not None and len(dogs) >= limit:
                break
        return dogs

    # ---- medical profiles ----------------------------------------------
    def get_medical_profile(self, dog_id: str) -> Optional[MedicalProfile]:
        profile = self._medical.get(dog_id)
        return profile.model_copy(deep=True) if profile else None

    def save_medical_profile(self, profile: MedicalProfile) -> MedicalProfile:
        with self._lock:
            self._medical[profile.dog_id] = profile.model_copy(deep=True)
        return profile

    # ---- decisions -----------------------------------------------------
    def save_decision(self, decision: Decision) -> Decision:
        with self._lock:
            by_target = self._decisions.setdefault(decision.decider_dog_id, {})
            by_target[decision.target_dog_id] = decision.model_copy()
        return decision

    def get_decision(self, decider_dog_id: str, target_dog_id: str) -> Optional[Decision]:
        decision = self._decisions.get(decider_dog_id, {}).get(target_dog_id)
        return decision.model_copy() if decision else None

    def list_decided_target_ids(self, decider_dog_id: str) -> set[str]:
        return set(self._decisions.get(decider_dog_id, {}))

    # ---- matches -------------------------------------------------------
    def create_match(self, dog_a: str, dog_b: str) -> Match:
        dog1_id, dog2_id = pair_key(dog_a, dog_b)
        with self._lock:
            if (dog1_id, dog2_id) in self._match_by_pair:
                raise ConflictError(dog1_id, dog2_id)
            match = Match(dog1_id=dog1_id, dog2_id=dog2_id)
            self._matches[match.id] = match
            self._match_by_pair[(dog1_id, dog2_id)] = match.id
        return match.model_copy()

    def get_match(self, match_id: str) -> Optional[Match]:
        match = self._matches.get(match_id)
        return match.model_copy() if match else None

    def get_match_for_pair(self, dog_a: str, dog_b: str) -> Optional[Match]:
        match_id = self._match_by_pair.get(pair_key(dog_a, dog_b))
        return self.get_match(match_id) if match_id else None

    def list_matches_for_dog(self, dog_id: str) -> list[Match]:
        return [
            match.model_copy()
            for match in list(self._matches.values())
            if match.involves(dog_id)
        ]

    def delete_match(self, match_id: str) -> Optional[Match]:
        with self._lock:
            match = self._matches.pop(match_id, None)
            if match is None:
                return None
            pair = (match.dog1_id, match.dog2_id)
            self._match_by_pair.pop(pair, None)
            self._unmatched_pairs.add(pair)
        return match

    def is_pair_unmatched(self, dog_a: str, dog_b: str) -> bool:
        return pair_key(dog_a, dog_b) in self._unmatched_pairs

    # ---- messages ------------------------------------------------------
    def add_message(self, message: Message) -> Message:
        with self._lock:
            self._messages.setdefault(message.match_id, []).append(
                message.model_copy()
            )
        return message

    def list_messages(self, match_id: str) -> list[Message]:
        messages = [m.model_copy() for m in self._messages.get(match_id, [])]
        return sorted(messages, key=lambda m: m.created_at)
