"""Firestore-backed repository.

These helpers centralize document mapping, error handling, and logging so
the matching engine stays focused on matching rules. Documents use
camelCase field names.

Uniqueness is enforced by document ids: a decision lives at
swipes/{decider}__{target} (so re-deciding overwrites it) and a match at
matches/{dog1}__{dog2} with the pair normalized. Matches are written with
`create()`, which fails with AlreadyExists when the pair is taken.
"""

from __future__ import annotations

import os
import re
from datetime import date
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import AlreadyExists

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
from pupmatch.utils.errors import ConflictError, StorageError
from pupmatch.utils.geo import BoundingBox
from pupmatch.utils.logging_config import logger

DOGS = "dogs"
MEDICAL_PROFILES = "medicalProfiles"
SWIPES = "swipes"
MATCHES = "matches"
UNMATCHED_PAIRS = "unmatchedPairs"
MESSAGES = "messages"

_db: firestore.Client | None = None


def get_db() -> firestore.Client:
    """Get a Firestore client, initializing Firebase lazily."""
    global _db

    if _db is not None:
        return _db

    try:
        if not firebase_admin._apps:
            cred_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
            if not cred_path:
                raise RuntimeError(
                    "GOOGLE_APPLICATION_CREDENTIALS is not set"
                )

            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred)

        _db = firestore.client()
        return _db

    except Exception as exc:
        logger.error("Failed to initialize Firestore: %s", exc)
        raise StorageError(str(exc)) from exc


def _pair_doc_id(dog_a: str, dog_b: str) -> str:
    return "__".join(pair_key(dog_a, dog_b))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _snake(name: str) -> str:
    return re.sub(r"([A-Z])", r"_\1", name).lower()


def _to_doc(data: dict) -> dict:
    return {_camel(key): value for key, value in data.items()}


def _from_doc(data: dict) -> dict:
    return {_snake(key): value for key, value in data.items()}


def _dog_to_doc(dog: Dog) -> dict:
    return _to_doc(dog.model_dump(exclude={"id"}))


def _dog_from_doc(doc_id: str, data: dict) -> Dog:
    return Dog(id=doc_id, **_from_doc(data))


def _medical_to_doc(profile: MedicalProfile) -> dict:
    data = profile.model_dump()
    # Firestore stores datetimes but not bare dates.
    data["vaccinations"] = [
        {
            "type": v["type"],
            "administeredOn": v["administered_on"].isoformat(),
            "nextDue": v["next_due"].isoformat() if v["next_due"] else None,
        }
        for v in data["vaccinations"]
    ]
    return _to_doc(data)


def _medical_from_doc(data: dict) -> MedicalProfile:
    fields = _from_doc(data)
    fields["vaccinations"] = [
        {
            "type": v.get("type", ""),
            "administered_on": date.fromisoformat(v["administeredOn"]),
            "next_due": date.fromisoformat(v["nextDue"]) if v.get("nextDue") else None,
        }
        for v in fields.get("vaccinations") or []
    ]
    return MedicalProfile(**fields)


class FirestoreRepository(MatchingRepository):
    """MatchingRepository over Firestore collections."""

    # ---- dogs ----------------------------------------------------------
    def get_dog(self, dog_id: str) -> Optional[Dog]:
        try:
            doc = get_db().collection(DOGS).document(dog_id).get()
            if not doc.exists:
                return None
            return _dog_from_doc(doc.id, doc.to_dict() or {})
        except Exception as exc:
            logger.error("Failed to fetch dog: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def create_dog(self, data: DogCreate) -> Dog:
        dog = Dog(**data.model_dump())
        try:
            get_db().collection(DOGS).document(dog.id).set(_dog_to_doc(dog))
            return dog
        except Exception as exc:
            logger.error("Failed to create dog: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def update_dog(self, dog_id: str, updates: DogUpdate) -> Optional[Dog]:
        """Read, validate and write in one transaction; retried on contention."""

        changes = updates.model_dump(exclude_unset=True)
        try:
            db = get_db()
            ref = db.collection(DOGS).document(dog_id)

            @firestore.transactional
            def apply_update(transaction) -> Optional[Dog]:
                doc = ref.get(transaction=transaction)
                if not doc.exists:
                    return None
                current = _dog_from_doc(doc.id, doc.to_dict() or {})
                updated = Dog.model_validate({**current.model_dump(), **changes})
                if changes:
                    transaction.update(ref, _to_doc(changes))
                return updated

            return apply_update(db.transaction())
        except Exception as exc:
            logger.error("Failed to update dog: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def list_dogs_by_owner(self, owner_id: str) -> list[Dog]:
        try:
            query = get_db().collection(DOGS).where("ownerId", "==", owner_id)
            return [_dog_from_doc(doc.id, doc.to_dict() or {}) for doc in query.stream()]
        except Exception as exc:
            logger.error("Failed to query dogs by owner: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def list_active_with_location(
        self, bbox: Optional[BoundingBox] = None, limit: Optional[int] = None
    ) -> list[Dog]:
        """Query active dogs, narrowing by latitude in Firestore.

        Firestore allows range filters on a single field, so longitude is
        checked in memory. isActive + latitude needs a composite index.
        """

        try:
            query = get_db().collection(DOGS).where("isActive", "==", True)
            if bbox is not None:
                query = query.where("latitude", ">=", bbox.min_lat)
                query = query.where("latitude", "<=", bbox.max_lat)
            if limit is not None:
                query = query.limit(limit)

            dogs = [_dog_from_doc(doc.id, doc.to_dict() or {}) for doc in query.stream()]
        except Exception as exc:
            logger.error("Failed to query active dogs: %s", str(exc))
            raise StorageError(str(exc)) from exc

        return [
            dog
            for dog in dogs
            if dog.has_location
            and (bbox is None or bbox.contains(dog.latitude, dog.longitude))
        ]

    # ---- medical profiles ----------------------------------------------
    def get_medical_profile(self, dog_id: str) -> Optional[MedicalProfile]:
        try:
            doc = get_db().collection(MEDICAL_PROFILES).document(dog_id).get()
            if not doc.exists:
                return None
            return _medical_from_doc(doc.to_dict() or {})
        except Exception as exc:
            logger.error("Failed to fetch medical profile: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def save_medical_profile(self, profile: MedicalProfile) -> MedicalProfile:
        try:
            get_db().collection(MEDICAL_PROFILES).document(profile.dog_id).set(
                _medical_to_doc(profile)
            )
            return profile
        except Exception as exc:
            logger.error("Failed to save medical profile: %s", str(exc))
            raise StorageError(str(exc)) from exc

    # ---- decisions -----------------------------------------------------
    def save_decision(self, decision: Decision) -> Decision:
        doc_id = f"{decision.decider_dog_id}__{decision.target_dog_id}"
        try:
            get_db().collection(SWIPES).document(doc_id).set(
                _to_doc(decision.model_dump())
            )
            return decision
        except Exception as exc:
            logger.error("Failed to save swipe: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def get_decision(self, decider_dog_id: str, target_dog_id: str) -> Optional[Decision]:
        doc_id = f"{decider_dog_id}__{target_dog_id}"
        try:
            doc = get_db().collection(SWIPES).document(doc_id).get()
            if not doc.exists:
                return None
            return Decision(**_from_doc(doc.to_dict() or {}))
        except Exception as exc:
            logger.error("Failed to fetch swipe: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def list_decided_target_ids(self, decider_dog_id: str) -> set[str]:
        """Single-field query on deciderDogId; no composite index needed."""

        try:
            query = get_db().collection(SWIPES).where("deciderDogId", "==", decider_dog_id)
            return {
                (doc.to_dict() or {}).get("targetDogId") for doc in query.stream()
            } - {None}
        except Exception as exc:
            logger.error("Failed to query swipes: %s", str(exc))
            raise StorageError(str(exc)) from exc

    # ---- matches -------------------------------------------------------
    def create_match(self, dog_a: str, dog_b: str) -> Match:
        dog1_id, dog2_id = pair_key(dog_a, dog_b)
        match = Match(dog1_id=dog1_id, dog2_id=dog2_id)
        try:
            get_db().collection(MATCHES).document(_pair_doc_id(dog1_id, dog2_id)).create(
                _to_doc(match.model_dump())
            )
            return match
        except AlreadyExists as exc:
            raise ConflictError(dog1_id, dog2_id) from exc
        except Exception as exc:
            logger.error("Failed to create match: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def get_match(self, match_id: str) -> Optional[Match]:
        try:
            query = get_db().collection(MATCHES).where("id", "==", match_id).limit(1)
            for doc in query.stream():
                return Match(**_from_doc(doc.to_dict() or {}))
            return None
        except Exception as exc:
            logger.error("Failed to fetch match: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def get_match_for_pair(self, dog_a: str, dog_b: str) -> Optional[Match]:
        try:
            doc = get_db().collection(MATCHES).document(_pair_doc_id(dog_a, dog_b)).get()
            if not doc.exists:
                return None
            return Match(**_from_doc(doc.to_dict() or {}))
        except Exception as exc:
            logger.error("Failed to fetch match for pair: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def list_matches_for_dog(self, dog_id: str) -> list[Match]:
        """Two single-field queries (dog1Id, dog2Id) merged in memory."""

        try:
            collection = get_db().collection(MATCHES)
            matches: dict[str, Match] = {}
            for field in ("dog1Id", "dog2Id"):
                for doc in collection.where(field, "==", dog_id).stream():
                    match = Match(**_from_doc(doc.to_dict() or {}))
                    matches[match.id] = match
            return list(matches.values())
        except Exception as exc:
            logger.error("Failed to query matches: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def delete_match(self, match_id: str) -> Optional[Match]:
        match = self.get_match(match_id)
        if match is None:
            return None

        doc_id = _pair_doc_id(match.dog1_id, match.dog2_id)
        try:
            db = get_db()
            batch = db.batch()
            batch.delete(db.collection(MATCHES).document(doc_id))
            batch.set(
                db.collection(UNMATCHED_PAIRS).document(doc_id),
                {
                    "dog1Id": match.dog1_id,
                    "dog2Id": match.dog2_id,
                    "matchId": match.id,
                    "unmatchedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            batch.commit()
            return match
        except Exception as exc:
            logger.error("Failed to delete match: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def is_pair_unmatched(self, dog_a: str, dog_b: str) -> bool:
        try:
            return (
                get_db()
                .collection(UNMATCHED_PAIRS)
                .document(_pair_doc_id(dog_a, dog_b))
                .get()
                .exists
            )
        except Exception as exc:
            logger.error("Failed to check unmatched pair: %s", str(exc))
            raise StorageError(str(exc)) from exc

    # ---- messages ------------------------------------------------------
    def add_message(self, message: Message) -> Message:
        try:
            get_db().collection(MESSAGES).document(message.id).set(
                _to_doc(message.model_dump())
            )
            return message
        except Exception as exc:
            logger.error("Failed to save message: %s", str(exc))
            raise StorageError(str(exc)) from exc

    def list_messages(self, match_id: str) -> list[Message]:
        """Sorted in memory to avoid a matchId + createdAt composite index."""

        try:
            query = get_db().collection(MESSAGES).where("matchId", "==", match_id)
            messages = [Message(**_from_doc(doc.to_dict() or {})) for doc in query.stream()]
        except Exception as exc:
            logger.error("Failed to query messages: %s", str(exc))
            raise StorageError(str(exc)) from exc

        return sorted(messages, key=lambda m: m.created_at)
