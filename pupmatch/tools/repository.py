"""Storage interface the matching engine depends on.

The engine only talks to `MatchingRepository`; `get_repository` picks the
in-memory or Firestore implementation from config. Implementations must
enforce one match per unordered dog pair at the storage level and raise
`ConflictError` from `create_match` when the pair is already matched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from pupmatch.config import config
from pupmatch.models import (
    Decision,
    Dog,
    DogCreate,
    DogUpdate,
    Match,
    MedicalProfile,
    Message,
)
from pupmatch.utils.geo import BoundingBox
from pupmatch.utils.logging_config import logger


class MatchingRepository(ABC):
    """Dogs, medical profiles, decisions, matches and messages."""

    # ---- dogs ----------------------------------------------------------
    @abstractmethod
    def get_dog(self, dog_id: str) -> Optional[Dog]:
        """Return the dog or None."""

    @abstractmethod
    def create_dog(self, data: DogCreate) -> Dog:
        """Persist a new dog profile."""

    @abstractmethod
    def update_dog(self, dog_id: str, updates: DogUpdate) -> Optional[Dog]:
        """Apply a partial update; None if the dog does not exist."""

    @abstractmethod
    def list_dogs_by_owner(self, owner_id: str) -> list[Dog]:
        """All dogs belonging to an owner, active or not."""

    @abstractmethod
    def list_active_with_location(
        self, bbox: Optional[BoundingBox] = None, limit: Optional[int] = None
    ) -> list[Dog]:
        """Active dogs with coordinates, optionally pre-filtered by a box."""

    # ---- medical profiles ----------------------------------------------
    @abstractmethod
    def get_medical_profile(self, dog_id: str) -> Optional[MedicalProfile]:
        """Return the dog's medical profile or None."""

    @abstractmethod
    def save_medical_profile(self, profile: MedicalProfile) -> MedicalProfile:
        """Create or replace the medical profile for profile.dog_id."""

    # ---- decisions -----------------------------------------------------
    @abstractmethod
    def save_decision(self, decision: Decision) -> Decision:
        """Upsert the decision for its ordered pair (last one wins)."""

    @abstractmethod
    def get_decision(self, decider_dog_id: str, target_dog_id: str) -> Optional[Decision]:
        """Return the decision decider -> target or None."""

    @abstractmethod
    def list_decided_target_ids(self, decider_dog_id: str) -> set[str]:
        """Ids of every dog the decider has liked or passed."""

    # ---- matches -------------------------------------------------------
    @abstractmethod
    def create_match(self, dog_a: str, dog_b: str) -> Match:
        """Create the match for the unordered pair.

        Raises:
            ConflictError: If the pair is already matched.
        """

    @abstractmethod
    def get_match(self, match_id: str) -> Optional[Match]:
        """Return the match or None."""

    @abstractmethod
    def get_match_for_pair(self, dog_a: str, dog_b: str) -> Optional[Match]:
        """Return the match for the unordered pair or None."""

    @abstractmethod
    def list_matches_for_dog(self, dog_id: str) -> list[Match]:
        """Every match where the dog is either side."""

    @abstractmethod
    def delete_match(self, match_id: str) -> Optional[Match]:
        """Remove a match and tombstone its pair; return what was removed."""

    @abstractmethod
    def is_pair_unmatched(self, dog_a: str, dog_b: str) -> bool:
        """True if the pair was matched once and then unmatched."""

    # ---- messages ------------------------------------------------------
    @abstractmethod
    def add_message(self, message: Message) -> Message:
        """Append a message to a match's conversation."""

    @abstractmethod
    def list_messages(self, match_id: str) -> list[Message]:
        """Messages for a match, oldest first."""


_repository: MatchingRepository | None = None


def get_repository() -> MatchingRepository:
    """Get the configured repository, creating it lazily."""
    global _repository

    if _repository is not None:
        return _repository

    if config.STORAGE_BACKEND == "firestore":
        from pupmatch.tools.firestore_tools import FirestoreRepository

        _repository = FirestoreRepository()
    else:
        from pupmatch.tools.memory_store import InMemoryRepository
        from pupmatch.tools.seed import seed_demo_data

        memory = InMemoryRepository()
        if config.SEED_DEMO_DATA:
            seed_demo_data(memory)
        _repository = memory

    logger.info("Using %s repository", config.STORAGE_BACKEND)
    return _repository


def reset_repository() -> None:
    """Drop the cached repository (tests and config reloads)."""
    global _repository

    _repository = None
