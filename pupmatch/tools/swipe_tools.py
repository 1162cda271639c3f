"""Swipe ledger, match resolution and the match/conversation index.

A match exists only when both dogs liked each other. `resolve_match` is
the only code path that creates one, and it relies on the repository's
unique pair key rather than in-process locking: when two reciprocal likes
race, one create succeeds and the other sees ConflictError and returns
the match that won.
"""

from __future__ import annotations

from typing import Optional

from pupmatch.models import (
    Decision,
    DogWithMedical,
    Match,
    MatchView,
    Message,
    SwipeResult,
)
from pupmatch.tools.repository import MatchingRepository
from pupmatch.utils.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from pupmatch.utils.logging_config import logger


def _require_dog(repository: MatchingRepository, dog_id: str) -> None:
    if not dog_id:
        raise ValidationError("dog id is required")
    if repository.get_dog(dog_id) is None:
        raise NotFoundError(f"Dog not found: {dog_id}")


# ============================================================
# DECISION LEDGER
# ============================================================
def record_decision(
    repository: MatchingRepository,
    decider_dog_id: str,
    target_dog_id: str,
    is_like: bool,
) -> Decision:
    """Record decider's like/pass on target.

    Re-deciding the same ordered pair overwrites the earlier decision.

    Raises:
        ValidationError: decider and target are the same dog.
        NotFoundError: Either dog does not exist.
    """

    if decider_dog_id == target_dog_id:
        raise ValidationError("A dog cannot swipe on itself")
    _require_dog(repository, decider_dog_id)
    _require_dog(repository, target_dog_id)

    previous = repository.get_decision(decider_dog_id, target_dog_id)
    decision = repository.save_decision(
        Decision(
            decider_dog_id=decider_dog_id,
            target_dog_id=target_dog_id,
            is_like=is_like,
        )
    )
    if previous is not None and previous.is_like != is_like:
        logger.info(
            "Decision %s -> %s changed from %s to %s",
            decider_dog_id,
            target_dog_id,
            "like" if previous.is_like else "pass",
            "like" if is_like else "pass",
        )
    return decision


def get_decision(
    repository: MatchingRepository, decider_dog_id: str, target_dog_id: str
) -> Optional[Decision]:
    return repository.get_decision(decider_dog_id, target_dog_id)


# ============================================================
# MATCH RESOLVER
# ============================================================
def resolve_match(
    repository: MatchingRepository, decider_dog_id: str, target_dog_id: str
) -> Optional[Match]:
    """Create the match for a mutual like, or return the one that exists.

    Returns None when either side's decision is missing or a pass, or when
    the pair was unmatched before.
    """

    forward = repository.get_decision(decider_dog_id, target_dog_id)
    if forward is None or not forward.is_like:
        return None

    reverse = repository.get_decision(target_dog_id, decider_dog_id)
    if reverse is None or not reverse.is_like:
        return None

    existing = repository.get_match_for_pair(decider_dog_id, target_dog_id)
    if existing is not None:
        return existing

    if repository.is_pair_unmatched(decider_dog_id, target_dog_id):
        logger.info(
            "Pair %s/%s was unmatched; not re-matching", decider_dog_id, target_dog_id
        )
        return None

    try:
        match = repository.create_match(decider_dog_id, target_dog_id)
        logger.info("Match %s created for %s/%s", match.id, match.dog1_id, match.dog2_id)
        return match
    except ConflictError as exc:
        logger.info("Match already exists for %s/%s", exc.dog1_id, exc.dog2_id)
        existing = repository.get_match_for_pair(decider_dog_id, target_dog_id)
        if existing is None:
            raise StorageError(
                f"Match conflict for {exc.dog1_id}/{exc.dog2_id} but no match found"
            ) from exc
        return existing


def submit_swipe(
    repository: MatchingRepository,
    decider_dog_id: str,
    target_dog_id: str,
    is_like: bool,
) -> SwipeResult:
    """Record a swipe and, for a like, resolve a possible match."""

    decision = record_decision(repository, decider_dog_id, target_dog_id, is_like)
    match = resolve_match(repository, decider_dog_id, target_dog_id) if is_like else None
    return SwipeResult(decision=decision, match=match)


# ============================================================
# MATCH / CONVERSATION INDEX
# ============================================================
def matches_for(repository: MatchingRepository, dog_id: str) -> list[Match]:
    """All matches where dog_id is either side. Order is unspecified."""

    _require_dog(repository, dog_id)
    return repository.list_matches_for_dog(dog_id)


def matches_with_dogs(repository: MatchingRepository, dog_id: str) -> list[MatchView]:
    """Matches enriched with the other dog and its medical profile, newest first."""

    views: list[MatchView] = []
    for match in matches_for(repository, dog_id):
        other_id = match.other_dog_id(dog_id)
        other = repository.get_dog(other_id)
        other_dog = None
        if other is not None:
            other_dog = DogWithMedical(
                **other.model_dump(),
                medical_profile=repository.get_medical_profile(other_id),
            )
        else:
            logger.warning("Match %s references missing dog %s", match.id, other_id)
        views.append(MatchView(**match.model_dump(), other_dog=other_dog))

    return sorted(views, key=lambda v: v.created_at, reverse=True)


def unmatch(repository: MatchingRepository, match_id: str, dog_id: str) -> Match:
    """Remove a match on behalf of one of its dogs. The pair stays unmatched."""

    match = repository.get_match(match_id)
    if match is None:
        raise NotFoundError(f"Match not found: {match_id}")
    if not match.involves(dog_id):
        raise PermissionDeniedError(f"Dog {dog_id} is not part of match {match_id}")

    removed = repository.delete_match(match_id)
    if removed is None:
        raise NotFoundError(f"Match not found: {match_id}")
    logger.info("Match %s removed by %s", match_id, dog_id)
    return removed


def send_message(
    repository: MatchingRepository, match_id: str, sender_id: str, content: str
) -> Message:
    if not sender_id or not content or not content.strip():
        raise ValidationError("sender_id and content are required")
    if repository.get_match(match_id) is None:
        raise NotFoundError(f"Match not found: {match_id}")

    return repository.add_message(
        Message(match_id=match_id, sender_id=sender_id, content=content.strip())
    )


def list_messages(repository: MatchingRepository, match_id: str) -> list[Message]:
    if repository.get_match(match_id) is None:
        raise NotFoundError(f"Match not found: {match_id}")
    return repository.list_messages(match_id)
