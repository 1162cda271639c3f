"""Ranked discovery graph: filter candidates, score them, return the best."""

from __future__ import annotations

from datetime import date

from langgraph.graph import StateGraph
from pydantic import ValidationError as SchemaValidationError

from pupmatch.config import config
from pupmatch.graphs.base_graph import BaseGraph
from pupmatch.models import (
    AttributeFilters,
    Candidate,
    CompatibilityPreferences,
)
from pupmatch.state import DiscoveryState
from pupmatch.tools.filter_tools import find_candidates
from pupmatch.tools.repository import MatchingRepository
from pupmatch.tools.scoring_tools import (
    calculate_compatibility_score,
    score_breakdown,
)
from pupmatch.utils.errors import NotFoundError, StorageError, ValidationError


def _with_state(state: DiscoveryState, **updates) -> DiscoveryState:
    """Return a new state dict with updates applied."""

    return {**state, **updates}


class DiscoveryGraph(BaseGraph):
    """Multi-step discovery graph: filter, score, rank."""

    def build_graph(self) -> StateGraph:
        graph = StateGraph(DiscoveryState)

        graph.add_node("fetch_requester", self.node_fetch_requester)
        graph.add_node("find_candidates", self.node_find_candidates)
        graph.add_node("score_candidates", self.node_score_candidates)
        graph.add_node("rank_candidates", self.node_rank_candidates)
        graph.add_node("finalize_response", self.node_finalize_response)

        graph.set_entry_point("fetch_requester")
        graph.add_edge("fetch_requester", "find_candidates")
        graph.add_edge("find_candidates", "score_candidates")
        graph.add_edge("score_candidates", "rank_candidates")
        graph.add_edge("rank_candidates", "finalize_response")
        graph.set_finish_point("finalize_response")

        return graph

    def node_fetch_requester(self, state: DiscoveryState) -> DiscoveryState:
        """Load the requesting dog and fill in location/radius defaults."""

        try:
            self._log_node_execution("fetch_requester", state)
            dog_id = state.get("dog_id")
            if not dog_id:
                return _with_state(
                    state, error="dog_id is required", error_type="validation"
                )

            dog = self.repository.get_dog(dog_id)
            if dog is None:
                return _with_state(
                    state,
                    error=f"Dog not found: {dog_id}",
                    error_type="not_found",
                )

            latitude = state.get("latitude", dog.latitude)
            longitude = state.get("longitude", dog.longitude)
            if latitude is None or longitude is None:
                return _with_state(
                    state,
                    error=f"No location available for dog {dog_id}",
                    error_type="validation",
                )

            return _with_state(
                state,
                requester=dog.model_dump(mode="json"),
                latitude=latitude,
                longitude=longitude,
                max_distance_km=state.get("max_distance_km", dog.search_radius_km),
            )
        except StorageError as exc:
            self._log_node_error("fetch_requester", exc)
            return _with_state(
                state,
                error="Storage unavailable. Returning empty candidates.",
                error_type="storage",
            )

    def node_find_candidates(self, state: DiscoveryState) -> DiscoveryState:
        """Apply exclusion, distance and attribute filters."""

        if state.get("error"):
            return state

        try:
            self._log_node_execution("find_candidates", state)
            filters = AttributeFilters.model_validate(state.get("filters") or {})
            candidates = find_candidates(
                self.repository,
                state["dog_id"],
                state["latitude"],
                state["longitude"],
                max_distance_km=state["max_distance_km"],
                filters=filters,
            )
            return _with_state(
                state,
                candidates=[c.model_dump(mode="json") for c in candidates],
            )
        except (SchemaValidationError, ValidationError) as exc:
            self._log_node_error("find_candidates", exc)
            return _with_state(state, error=str(exc), error_type="validation", candidates=[])
        except NotFoundError as exc:
            self._log_node_error("find_candidates", exc)
            return _with_state(state, error=str(exc), error_type="not_found", candidates=[])
        except StorageError as exc:
            self._log_node_error("find_candidates", exc)
            return _with_state(
                state,
                error="Failed to query candidates. Returning empty candidates.",
                error_type="storage",
                candidates=[],
            )

    def node_score_candidates(self, state: DiscoveryState) -> DiscoveryState:
        """Calculate deterministic compatibility scores."""

        if state.get("error"):
            return state

        try:
            self._log_node_execution("score_candidates", state)
            preferences = CompatibilityPreferences.model_validate(
                state.get("preferences") or {}
            )
            if preferences.max_distance_km is None:
                preferences.max_distance_km = state.get("max_distance_km")

            as_of = date.today()
            scored: list[dict] = []
            for raw in state.get("candidates", []):
                candidate = Candidate.model_validate(raw)
                scored.append(
                    {
                        **raw,
                        "compatibility_score": calculate_compatibility_score(
                            preferences, candidate, as_of
                        ),
                        "score_breakdown": score_breakdown(preferences, candidate, as_of),
                    }
                )

            return _with_state(state, scored_candidates=scored)
        except SchemaValidationError as exc:
            self._log_node_error("score_candidates", exc)
            return _with_state(
                state, error=str(exc), error_type="validation", scored_candidates=[]
            )

    def node_rank_candidates(self, state: DiscoveryState) -> DiscoveryState:
        """Sort by score (desc), then distance and id, and keep the top N."""

        if state.get("error"):
            return state

        self._log_node_execution("rank_candidates", state)
        ranked = sorted(
            state.get("scored_candidates", []),
            key=lambda c: (
                -c.get("compatibility_score", 0),
                c.get("distance") if c.get("distance") is not None else float("inf"),
                c.get("id", ""),
            ),
        )
        return _with_state(state, top_candidates=ranked[: config.TOP_CANDIDATES])

    def node_finalize_response(self, state: DiscoveryState) -> DiscoveryState:
        """Construct final candidates and response metadata."""

        if state.get("error"):
            return _with_state(
                state,
                final_candidates=[],
                response_metadata={
                    "success": False,
                    "error": state.get("error"),
                    "error_type": state.get("error_type"),
                    "total_candidates": len(state.get("candidates", [])),
                    "returned_count": 0,
                },
            )

        final_candidates = list(state.get("top_candidates", []))
        metadata = {
            "success": True,
            "error": None,
            "error_type": None,
            "total_candidates": len(state.get("candidates", [])),
            "returned_count": len(final_candidates),
        }

        return _with_state(
            state, final_candidates=final_candidates, response_metadata=metadata
        )


def create_discovery_graph(repository: MatchingRepository | None = None):
    """Build and compile the discovery graph for server usage."""

    graph_builder = DiscoveryGraph(timeout=config.GRAPH_TIMEOUT, repository=repository)
    return graph_builder.compile()
