"""LangGraph orchestration for per-file transformations and batches."""

from refactor_assistant.orchestrator.batch import BatchDriver
from refactor_assistant.orchestrator.exceptions import GraphBuildError, OrchestratorError
from refactor_assistant.orchestrator.graph import build_graph
from refactor_assistant.orchestrator.state import FileTransformState, make_initial_state

__all__ = [
    "BatchDriver",
    "FileTransformState",
    "GraphBuildError",
    "OrchestratorError",
    "build_graph",
    "make_initial_state",
]
