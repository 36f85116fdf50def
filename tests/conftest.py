from pathlib import Path

import pytest

from refactor_assistant.agents.exceptions import CompletionError
from refactor_assistant.agents.prompt_builder import format_reply
from refactor_assistant.models import RunConfig

RENAME_INSTRUCTION = 'Replace all variable names that start with "old_" to start with "new_"'


def make_completion(content: str, reasoning: str = "Renamed the variables.") -> str:
    """A well-formed model reply carrying ``content``."""
    return format_reply(reasoning, content)


class FakeCompleter:
    """Returns scripted replies in order; Exception items are raised."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, model, conversation):
        self.calls.append((model, conversation))
        reply = self.replies[min(len(self.calls), len(self.replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeValidator:
    """Returns scripted pass/fail results; repeats the last one."""

    def __init__(self, results):
        self.results = list(results)
        self.commands = []

    def validate(self, command):
        self.commands.append(command)
        return self.results[min(len(self.commands), len(self.results)) - 1]


@pytest.fixture
def target_file(tmp_path) -> Path:
    path = tmp_path / "vars.rs"
    path.write_text("old_value = 10\n", encoding="utf-8")
    return path


@pytest.fixture
def make_config():
    def _make(**overrides) -> RunConfig:
        values = {
            "instruction": RENAME_INSTRUCTION,
            "pattern": "*.rs",
            "model": "gpt-4",
            "n_retries": 5,
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


@pytest.fixture
def transport_error():
    return CompletionError("openai request failed: APIConnectionError: boom")


@pytest.fixture
def completer_cls():
    return FakeCompleter


@pytest.fixture
def validator_cls():
    return FakeValidator


@pytest.fixture
def completion():
    return make_completion
