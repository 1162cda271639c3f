"""Custom exception types for consistent error handling."""


class ValidationError(Exception):
    """Raised when request input is malformed (self-swipe, bad coordinates, etc.)."""


class NotFoundError(Exception):
    """Raised when a referenced dog, match or profile does not exist."""


class PermissionDeniedError(Exception):
    """Raised when a dog acts on a match it is not part of."""


class ConflictError(Exception):
    """Raised when the store rejects a duplicate match for the same dog pair."""

    def __init__(self, dog1_id: str, dog2_id: str):
        super().__init__(f"Match already exists for pair {dog1_id}/{dog2_id}")
        self.dog1_id = dog1_id
        self.dog2_id = dog2_id


class StorageError(Exception):
    """Raised when the underlying store fails or is unavailable."""


class GraphExecutionError(Exception):
    """Raised when a graph fails to compile or execute."""
