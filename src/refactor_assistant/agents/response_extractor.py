"""Parse delimited sections out of free-form model replies."""

from refactor_assistant.agents.exceptions import ExtractionError
from refactor_assistant.agents.prompt_builder import CHANGED_CONTENTS_TAG, REASONING_TAG

BEGIN_MARKER = f"<{CHANGED_CONTENTS_TAG}>"
END_MARKER = f"</{CHANGED_CONTENTS_TAG}>"


def _find_section(text: str, tag: str) -> str | None:
    begin = f"<{tag}>"
    end = f"</{tag}>"
    start = text.find(begin)
    if start < 0:
        return None
    start += len(begin)
    # The closing tag only counts when it follows the opening one.
    stop = text.find(end, start)
    if stop < 0:
        return None
    return text[start:stop].strip()


def extract_changed_contents(text: str) -> str:
    """Return the trimmed text between the changed-contents markers.

    Uses the first begin marker and the first end marker found after it.

    Raises:
        ExtractionError: If either marker is missing, or the only end
            marker appears before the begin marker.
    """
    if BEGIN_MARKER not in text:
        raise ExtractionError(f"Start tag {BEGIN_MARKER} not found in completion")
    section = _find_section(text, CHANGED_CONTENTS_TAG)
    if section is None:
        raise ExtractionError(
            f"End tag {END_MARKER} not found after {BEGIN_MARKER} in completion"
        )
    return section


def extract_reasoning(text: str) -> str | None:
    """Return the trimmed reasoning block, or None when absent."""
    return _find_section(text, REASONING_TAG)
