"""Agent components for the refactor assistant."""

from refactor_assistant.agents.exceptions import (
    AgentError,
    CompletionError,
    ExtractionError,
    FileAccessError,
    InstructionError,
)
from refactor_assistant.agents.command_validator import CommandValidator
from refactor_assistant.agents.completion_client import CompletionClient
from refactor_assistant.agents.file_mutator import FileMutator
from refactor_assistant.agents.interfaces import Completer, Validator
from refactor_assistant.agents.prompt_builder import build_conversation
from refactor_assistant.agents.response_extractor import (
    extract_changed_contents,
    extract_reasoning,
)

__all__ = [
    "AgentError",
    "CommandValidator",
    "Completer",
    "CompletionClient",
    "CompletionError",
    "ExtractionError",
    "FileAccessError",
    "FileMutator",
    "InstructionError",
    "Validator",
    "build_conversation",
    "extract_changed_contents",
    "extract_reasoning",
]
