"""
Configuration module for the PupMatch matching service.

Loads environment variables and provides configuration singletons.
Uses pydantic for validation.
"""

from pydantic_settings import BaseSettings
from typing import Literal, Optional
import os


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All values come from .env file or system environment.
    Type hints provide validation (pydantic converts types automatically).
    """

    # ============================================================
    # STORAGE CONFIGURATION
    # ============================================================
    STORAGE_BACKEND: Literal["memory", "firestore"] = "memory"
    """Where dogs, swipes and matches live. 'memory' is for local dev and tests."""

    FIREBASE_PROJECT_ID: Optional[str] = None
    """Firebase project ID. Required when STORAGE_BACKEND=firestore."""

    GOOGLE_APPLICATION_CREDENTIALS: str = "/config/serviceAccountKey.json"
    """Path to Firebase service account JSON file."""

    SEED_DEMO_DATA: bool = False
    """Load the Bangalore demo dogs into the in-memory store at startup."""

    # ============================================================
    # DISCOVERY CONFIGURATION
    # ============================================================
    DEFAULT_MAX_DISTANCE_KM: float = 10.0
    """Search radius used when neither the request nor the dog sets one."""

    MAX_DISTANCE_LIMIT_KM: float = 100.0
    """Largest search radius a client may request."""

    MAX_CANDIDATES: int = 100
    """Maximum candidates returned per discovery query, after filtering. Default: 100."""

    TOP_CANDIDATES: int = 10
    """Ranked candidates returned by the discovery graph. Default: 10."""

    GRAPH_TIMEOUT: int = 30
    """Maximum seconds a graph can run before timeout. Default: 30 seconds."""

    # ============================================================
    # SECURITY CONFIGURATION
    # ============================================================
    API_TOKEN: str = os.getenv("API_TOKEN", "")
    """Shared secret for authenticating requests from the web backend."""

    # ============================================================
    # SERVER CONFIGURATION
    # ============================================================
    PORT: int = 8000
    """Port to run FastAPI server on. Default: 8000."""

    HOST: str = "0.0.0.0"
    """Host to bind to. 0.0.0.0 = accessible from network."""

    DEBUG: bool = False
    """Enable debug logging. Set True for development, False for production."""

    class Config:
        """Pydantic configuration."""
        env_file = ".env"  # Read from .env file
        case_sensitive = True  # Variable names are case-sensitive
        extra = "ignore"  # Ignore extra env vars not defined above


# ============================================================
# SINGLETON INSTANCE
# ============================================================
# Load config once at startup, reuse throughout app
config = Config()


# ============================================================
# VALIDATION AT STARTUP
# ============================================================
def validate_config() -> dict:
    """
    Validate that required config values are set.

    Called at app startup to fail fast if config is incomplete.

    Returns:
        dict: Status of each configured area

    Raises:
        ValueError: If required config is missing or inconsistent
    """
    errors = []

    # Firestore needs a project to talk to
    if config.STORAGE_BACKEND == "firestore" and not config.FIREBASE_PROJECT_ID:
        errors.append("FIREBASE_PROJECT_ID is required when STORAGE_BACKEND=firestore")

    if config.MAX_DISTANCE_LIMIT_KM <= 0:
        errors.append("MAX_DISTANCE_LIMIT_KM must be positive")

    if not 0 < config.DEFAULT_MAX_DISTANCE_KM <= config.MAX_DISTANCE_LIMIT_KM:
        errors.append(
            "DEFAULT_MAX_DISTANCE_KM must be between 0 and MAX_DISTANCE_LIMIT_KM"
        )

    if config.MAX_CANDIDATES <= 0 or config.TOP_CANDIDATES <= 0:
        errors.append("MAX_CANDIDATES and TOP_CANDIDATES must be positive")

    if errors:
        raise ValueError(f"Configuration errors:\n" + "\n".join([f"  - {e}" for e in errors]))

    return {
        "storage": config.STORAGE_BACKEND,
        "firebase": "✓ Configured" if config.FIREBASE_PROJECT_ID else "✗ Not set",
        "demo_data": "✓ Enabled" if config.SEED_DEMO_DATA else "✗ Disabled",
        "auth": "✓ Token required" if config.API_TOKEN else "✗ Open",
    }


if __name__ == "__main__":
    """Allow testing config by running: python -m pupmatch.config"""
    try:
        status = validate_config()
        print("✅ Configuration is valid!")
        print("\nConfiguration Status:")
        for key, value in status.items():
            print(f"  {key}: {value}")
    except ValueError as e:
        print(f"❌ Configuration error:\n{e}")
        exit(1)
