"""Data models for the refactor assistant."""

from refactor_assistant.models.config_models import (
    DEFAULT_MODEL,
    DEFAULT_N_RETRIES,
    RunConfig,
)
from refactor_assistant.models.conversation_models import ChatMessage, MessageRole
from refactor_assistant.models.outcome_models import (
    AttemptOutcome,
    AttemptRecord,
    BatchReport,
    CommandRunResult,
    FileResult,
    FileStatus,
)

__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_N_RETRIES",
    "AttemptOutcome",
    "AttemptRecord",
    "BatchReport",
    "ChatMessage",
    "CommandRunResult",
    "FileResult",
    "FileStatus",
    "MessageRole",
    "RunConfig",
]
