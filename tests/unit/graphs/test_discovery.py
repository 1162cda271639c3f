"""
Unit tests for the discovery graph.

The graph chains requester lookup, candidate filtering, scoring and
ranking. Failures are reported in response_metadata rather than raised.
"""

from unittest.mock import patch

import pytest
from pupmatch.graphs.discovery import DiscoveryGraph, create_discovery_graph
from pupmatch.utils.errors import GraphExecutionError, StorageError


def _run(repository, **state):
    return create_discovery_graph(repository).invoke(state)


class TestDiscoveryGraph:
    def test_defaults_to_requester_location_and_radius(self, repository, buddy, luna):
        result = _run(repository, dog_id="buddy")

        assert result["response_metadata"]["success"] is True
        assert result["max_distance_km"] == 25
        assert [c["id"] for c in result["final_candidates"]] == ["luna"]
        assert result["final_candidates"][0]["distance"] == 5.2

    def test_candidates_carry_score_and_breakdown(self, repository, buddy, luna):
        result = _run(repository, dog_id="buddy")
        candidate = result["final_candidates"][0]

        assert 0 <= candidate["compatibility_score"] <= 100
        assert candidate["compatibility_score"] == round(sum(candidate["score_breakdown"].values()))

    def test_ranked_by_score(self, repository, buddy, make_dog):
        make_dog("lab", breed="Labrador Retriever", latitude=12.95, longitude=77.60)
        make_dog("pug", breed="Pug")
        result = _run(
            repository,
            dog_id="buddy",
            preferences={"breeds": ["Labrador Retriever"]},
        )

        ids = [c["id"] for c in result["final_candidates"]]
        assert ids == ["lab", "pug"]
        assert result["response_metadata"]["total_candidates"] == 2

    def test_filters_applied(self, repository, buddy, luna, make_medical):
        make_medical("luna", allergies=["chicken"])
        result = _run(repository, dog_id="buddy", filters={"no_allergies": True})

        assert result["final_candidates"] == []
        assert result["response_metadata"]["success"] is True

    def test_top_candidates_limit(self, repository, buddy, make_dog):
        for i in range(15):
            make_dog(f"dog{i:02d}")

        result = _run(repository, dog_id="buddy")
        assert result["response_metadata"]["total_candidates"] == 15
        assert len(result["final_candidates"]) == 10


class TestDiscoveryErrors:
    def test_unknown_dog(self, repository):
        metadata = _run(repository, dog_id="ghost")["response_metadata"]
        assert metadata["success"] is False
        assert metadata["error_type"] == "not_found"

    def test_missing_dog_id(self, repository):
        metadata = _run(repository, dog_id="")["response_metadata"]
        assert metadata["error_type"] == "validation"

    def test_dog_without_location(self, repository, make_dog):
        make_dog("nomad", latitude=None, longitude=None)
        metadata = _run(repository, dog_id="nomad")["response_metadata"]
        assert metadata["error_type"] == "validation"

    def test_bad_filters(self, repository, buddy):
        metadata = _run(repository, dog_id="buddy", filters={"age_range": "ancient"})[
            "response_metadata"
        ]
        assert metadata["error_type"] == "validation"

    def test_invalid_graph_definition(self, repository):
        class BrokenGraph(DiscoveryGraph):
            def build_graph(self):
                raise RuntimeError("no entry point")

        with pytest.raises(GraphExecutionError):
            BrokenGraph(repository=repository).compile()

    def test_storage_failure(self, repository, buddy):
        with patch.object(
            repository, "list_active_with_location", side_effect=StorageError("down")
        ):
            result = _run(repository, dog_id="buddy")

        assert result["final_candidates"] == []
        assert result["response_metadata"]["error_type"] == "storage"
