"""Small text helpers for instructions and change summaries."""

import difflib
import os

from refactor_assistant.agents.exceptions import InstructionError


def load_instruction(value: str) -> str:
    """Return the instruction text for ``value``.

    If ``value`` names an existing file its contents are the instruction,
    otherwise ``value`` itself is. ``os.path.isfile`` is used because long
    literal instructions may not be valid path names.

    Raises:
        InstructionError: If the file exists but cannot be read.
    """
    if not os.path.isfile(value):
        return value
    try:
        with open(value, "r", encoding="utf-8") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as e:
        raise InstructionError(f"Failed to read instruction file '{value}': {e}") from e


def unified_diff(file_path: str, before: str, after: str) -> str:
    """Unified diff of two versions of a file, empty when identical."""
    if before == after:
        return ""
    lines = difflib.unified_diff(
        before.splitlines(),
        after.splitlines(),
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
        lineterm="",
    )
    return "\n".join(lines)

