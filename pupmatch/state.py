"""Shared LangGraph state definitions.

Graph states are TypedDicts so state is explicit, serializable, and
consistent across graph nodes.
"""

from __future__ import annotations

from typing import TypedDict

JsonDict = dict[str, object]
JsonList = list[JsonDict]


class DiscoveryState(TypedDict, total=False):
    """State for the ranked discovery graph.

    Fields are optional at runtime because nodes populate them progressively.
    Every field is JSON-serializable for LangGraph persistence/debugging.
    """

    # Identifies the requesting dog.
    dog_id: str
    # Search origin; defaults to the dog's stored location.
    latitude: float
    longitude: float
    # Search radius in km; defaults to the dog's search_radius_km.
    max_distance_km: float
    # Attribute filters (age band, size, medical flags).
    filters: JsonDict
    # Owner preferences used by the compatibility scorer.
    preferences: JsonDict
    # Requesting dog's profile.
    requester: JsonDict
    # Eligible candidates with distance attached.
    candidates: JsonList
    # Candidates with compatibility scores.
    scored_candidates: JsonList
    # Ranked list of top candidates.
    top_candidates: JsonList
    # Final candidates returned to the caller.
    final_candidates: JsonList
    # Error string and category if any node fails.
    error: str
    error_type: str
    # Response metadata for observability.
    response_metadata: JsonDict
