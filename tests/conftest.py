"""
Pytest configuration and shared fixtures for all tests.

This file is automatically loaded by pytest and provides:
  - Test configuration (env vars) so runs don't depend on local .env files
  - A fresh in-memory repository per test, plus dog/medical factories
  - A FastAPI TestClient wired to that repository
  - A mock Firebase app for Firestore repository tests
"""

import os
from datetime import date

import pytest
from unittest.mock import MagicMock

# Set before any pupmatch module builds its config singleton.
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SEED_DEMO_DATA"] = "False"
os.environ["API_TOKEN"] = ""

from pupmatch.models import Dog, MedicalProfile, Vaccination  # noqa: E402
from pupmatch.tools.memory_store import InMemoryRepository  # noqa: E402

BUDDY_LOCATION = (12.9716, 77.5946)
LUNA_LOCATION = (12.9352, 77.6245)


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """
    Setup test environment variables before running any tests.

    This ensures tests run with predictable configuration and don't
    depend on local .env files.
    """
    test_env = {
        "STORAGE_BACKEND": "memory",
        "SEED_DEMO_DATA": "False",
        "GOOGLE_APPLICATION_CREDENTIALS": "/config/test-serviceAccountKey.json",
        "DEBUG": "True",
    }

    for key, value in test_env.items():
        os.environ[key] = value


@pytest.fixture
def repository():
    """Fresh in-memory repository for each test."""
    return InMemoryRepository()


@pytest.fixture
def make_dog(repository):
    """
    Factory that stores a dog in the test repository.

    Example:
        def test_something(make_dog):
            dog = make_dog("rex", latitude=12.9, longitude=77.6)
    """

    def _make_dog(dog_id: str, **overrides) -> Dog:
        fields = {
            "id": dog_id,
            "owner_id": f"owner-{dog_id}",
            "name": dog_id.title(),
            "breed": "Mixed",
            "age": 3,
            "gender": "Female",
            "size": "Medium",
            "latitude": BUDDY_LOCATION[0],
            "longitude": BUDDY_LOCATION[1],
            "search_radius_km": 25,
        }
        fields.update(overrides)
        return repository.add_dog(Dog(**fields))

    return _make_dog


@pytest.fixture
def make_medical(repository):
    """Factory that stores a medical profile for a dog."""

    def _make_medical(dog_id: str, **overrides) -> MedicalProfile:
        return repository.save_medical_profile(MedicalProfile(dog_id=dog_id, **overrides))

    return _make_medical


@pytest.fixture
def buddy(make_dog):
    return make_dog(
        "buddy",
        name="Buddy",
        breed="Golden Retriever",
        size="Large",
        latitude=BUDDY_LOCATION[0],
        longitude=BUDDY_LOCATION[1],
        search_radius_km=25,
    )


@pytest.fixture
def luna(make_dog):
    return make_dog(
        "luna",
        name="Luna",
        breed="Labrador Retriever",
        age=2,
        size="Large",
        latitude=LUNA_LOCATION[0],
        longitude=LUNA_LOCATION[1],
        search_radius_km=12,
    )


@pytest.fixture
def rabies_shot():
    return Vaccination(
        type="Rabies",
        administered_on=date(2025, 3, 1),
        next_due=date(2026, 3, 1),
    )


@pytest.fixture
def client(repository):
    """Provide a FastAPI TestClient backed by the test repository."""
    from fastapi.testclient import TestClient

    from pupmatch.server import app
    from pupmatch.tools.repository import get_repository

    app.dependency_overrides[get_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def mock_firebase_app(monkeypatch):
    """
    Provide a mock Firebase app for testing.

    Use this fixture in tests that exercise the Firestore repository.
    """
    mock_app = MagicMock()
    mock_db = MagicMock()

    monkeypatch.setattr("firebase_admin._apps", [mock_app])
    monkeypatch.setattr("firebase_admin.initialize_app", MagicMock(return_value=mock_app))
    monkeypatch.setattr("firebase_admin.firestore.client", MagicMock(return_value=mock_db))
    monkeypatch.setattr("pupmatch.tools.firestore_tools._db", None)

    return {"app": mock_app, "db": mock_db}
