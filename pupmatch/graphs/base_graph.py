"""Base class for LangGraph graphs to share common behavior."""

from __future__ import annotations

from abc import ABC, abstractmethod
from langgraph.graph import StateGraph

from pupmatch.tools.repository import MatchingRepository, get_repository
from pupmatch.utils.errors import GraphExecutionError
from pupmatch.utils.logging_config import logger


class BaseGraph(ABC):
    """Abstract base class for all LangGraph implementations.

    Centralizes logging and repository access and provides a consistent
    compile pattern so graph subclasses focus on node logic.
    """

    def __init__(self, timeout: int = 30, repository: MatchingRepository | None = None):
        self.timeout = timeout
        self.repository = repository or get_repository()
        self.logger = logger

    @abstractmethod
    def build_graph(self) -> StateGraph:
        """Build and return the StateGraph instance."""

    def _log_node_execution(self, node_name: str, state: dict) -> None:
        """Log node execution start with minimal state context."""

        self.logger.debug("Executing node: %s", node_name)

    def _log_node_error(self, node_name: str, error: Exception) -> None:
        """Log node execution error without leaking profile data."""

        self.logger.error("Node %s failed: %s", node_name, str(error))

    def compile(self):
        """Build and compile the graph for execution.

        Raises:
            GraphExecutionError: If the graph definition is invalid.
        """

        try:
            graph = self.build_graph()
            return graph.compile()
        except Exception as exc:
            self.logger.error("Failed to compile %s: %s", type(self).__name__, exc)
            raise GraphExecutionError(str(exc)) from exc
