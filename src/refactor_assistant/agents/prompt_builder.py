"""Few-shot prompt construction for file transformations.

The worked example below is part of the output contract with the model and
must stay byte-identical between calls.
"""

from refactor_assistant.models import ChatMessage, MessageRole

INSTRUCTION_TAG = "INSTRUCTION"
FILE_CONTENTS_TAG = "FILECONTENTS"
REASONING_TAG = "REASONING"
CHANGED_CONTENTS_TAG = "CHANGED_FILE_CONTENTS"

SYSTEM_PROMPT = (
    "You are an expert code transformation assistant. Your task is to carefully "
    "refactor code based on the user's instruction and return only the modified "
    f"file contents enclosed within <{CHANGED_CONTENTS_TAG}> tags. Additionally, "
    f"provide your reasoning inside <{REASONING_TAG}> tags. Do not include any "
    "other text outside these tags."
)

EXAMPLE_INSTRUCTION = (
    'Replace all variable names that start with "old_" to start with "new_".'
)

EXAMPLE_FILE_CONTENTS = (
    "let old_value = 10;\n"
    'let old_name = "example";\n'
    "let other_var = 5;"
)

EXAMPLE_REASONING = (
    'The instruction is to change all variable names that start with "old_" to '
    '"new_". This is a straightforward text transformation, so the variables '
    "old_value and old_name will be renamed to new_value and new_name, "
    "respectively. Variables that don't start with \"old_\" remain unchanged."
)

EXAMPLE_CHANGED_CONTENTS = (
    "let new_value = 10;\n"
    'let new_name = "example";\n'
    "let other_var = 5;"
)


def _wrap(tag: str, body: str) -> str:
    return f"<{tag}>\n{body}\n</{tag}>"


def format_request(instruction: str, file_content: str) -> str:
    """Render an instruction and file content as a tagged user message."""
    return (
        f"{_wrap(INSTRUCTION_TAG, instruction)}\n\n"
        f"{_wrap(FILE_CONTENTS_TAG, file_content)}"
    )


def format_reply(reasoning: str, changed_content: str) -> str:
    """Render an assistant reply in the format the model is asked to emit."""
    return (
        f"{_wrap(REASONING_TAG, reasoning)}\n\n"
        f"{_wrap(CHANGED_CONTENTS_TAG, changed_content)}"
    )


EXAMPLE_REQUEST = format_request(EXAMPLE_INSTRUCTION, EXAMPLE_FILE_CONTENTS)
EXAMPLE_REPLY = format_reply(EXAMPLE_REASONING, EXAMPLE_CHANGED_CONTENTS)


def build_conversation(instruction: str, file_content: str) -> list[ChatMessage]:
    """Build the four-message conversation for one attempt.

    Args:
        instruction: The natural-language directive for the whole batch.
        file_content: Current on-disk content of the target file.

    Returns:
        system prompt, example request, example reply, real request.
    """
    return [
        ChatMessage(role=MessageRole.SYSTEM, content=SYSTEM_PROMPT),
        ChatMessage(role=MessageRole.USER, content=EXAMPLE_REQUEST),
        ChatMessage(role=MessageRole.ASSISTANT, content=EXAMPLE_REPLY),
        ChatMessage(
            role=MessageRole.USER,
            content=format_request(instruction, file_content),
        ),
    ]
