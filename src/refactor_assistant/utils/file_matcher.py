"""Glob expansion into an ordered list of target files."""

import glob
import os


class InvalidPatternError(ValueError):
    """Raised when a file pattern cannot be used."""


def _unclosed_bracket(segment: str) -> bool:
    """True if a ``[`` in ``segment`` starts a character class that never ends."""
    i = 0
    while i < len(segment):
        if segment[i] != "[":
            i += 1
            continue
        j = i + 1
        if j < len(segment) and segment[j] == "!":
            j += 1
        if j < len(segment) and segment[j] == "]":
            j += 1
        close = segment.find("]", j)
        if close == -1:
            return True
        i = close + 1
    return False


def expand_pattern(pattern: str) -> list[str]:
    """Return regular files matching ``pattern`` in sorted order.

    ``**`` matches across directories. Directories and other non-regular
    entries are skipped. Symlinks to regular files are kept.

    Raises:
        InvalidPatternError: If the pattern is empty, contains a NUL byte or
            has an unclosed ``[`` character class.
    """
    if not pattern or not pattern.strip():
        raise InvalidPatternError("File pattern must not be empty")
    if "\x00" in pattern:
        raise InvalidPatternError("File pattern must not contain NUL bytes")

    expanded = os.path.expanduser(pattern)
    # character classes never span a path separator
    segments = expanded.replace(os.sep, "/").split("/")
    if any(_unclosed_bracket(segment) for segment in segments):
        raise InvalidPatternError(f"Unclosed '[' in file pattern '{pattern}'")

    matches = glob.glob(expanded, recursive=True)
    return sorted(path for path in matches if os.path.isfile(path))
