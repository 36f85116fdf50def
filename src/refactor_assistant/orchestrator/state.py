"""State definition for the per-file retry graph."""

import operator
from typing import Annotated, TypedDict

from refactor_assistant.models import AttemptOutcome, AttemptRecord, FileStatus

# Upper bound on graph steps per attempt: request, extract, write, validate, retry
STEPS_PER_ATTEMPT = 5
# snapshot + one terminal node, plus slack
FIXED_STEPS = 5


class FileTransformState(TypedDict):
    """State for one file's transformation.

    ``attempts`` accumulates across nodes; all other fields overwrite.
    """

    # Input
    file_path: str
    instruction: str
    model: str
    validate_command: str | None
    max_attempts: int

    # Content
    original_content: str | None
    current_content: str | None

    # Current attempt
    attempt: int
    completion: str | None
    extracted: str | None
    last_outcome: AttemptOutcome | None

    # Result
    status: FileStatus | None
    attempts: Annotated[list[AttemptRecord], operator.add]


def make_initial_state(
    file_path: str,
    instruction: str,
    model: str,
    validate_command: str | None = None,
    max_attempts: int = 5,
) -> FileTransformState:
    """Create the initial state for one file.

    Args:
        file_path: Target file.
        instruction: Instruction shared by the whole batch.
        model: Model id passed to the completer.
        validate_command: Shell command, or None to accept the first rewrite.
        max_attempts: Retry budget, at least 1.
    """
    return {
        "file_path": file_path,
        "instruction": instruction,
        "model": model,
        "validate_command": validate_command,
        "max_attempts": max(1, max_attempts),
        "original_content": None,
        "current_content": None,
        "attempt": 0,
        "completion": None,
        "extracted": None,
        "last_outcome": None,
        "status": None,
        "attempts": [],
    }


def recursion_limit_for(max_attempts: int) -> int:
    """Graph recursion limit that lets ``max_attempts`` full cycles finish."""
    return max(1, max_attempts) * STEPS_PER_ATTEMPT + FIXED_STEPS
