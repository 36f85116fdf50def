"""Utilities for the refactor assistant."""

from refactor_assistant.utils.file_matcher import InvalidPatternError, expand_pattern
from refactor_assistant.utils.text_helpers import load_instruction, unified_diff

__all__ = [
    "InvalidPatternError",
    "expand_pattern",
    "load_instruction",
    "unified_diff",
]
