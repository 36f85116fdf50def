"""Exceptions for agent operations."""


class AgentError(Exception):
    """Base exception for all agent operations."""


class CompletionError(AgentError):
    """Raised when the completion endpoint fails or returns no usable text."""


class ExtractionError(AgentError):
    """Raised when the changed-contents markers are missing or out of order."""


class FileAccessError(AgentError):
    """Raised when a target file cannot be read or written."""


class InstructionError(AgentError):
    """Raised when the instruction file cannot be loaded."""
