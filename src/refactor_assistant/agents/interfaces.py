"""Narrow seams the retry graph depends on."""

from typing import Protocol

from refactor_assistant.models import ChatMessage


class Completer(Protocol):
    def complete(self, model: str, conversation: list[ChatMessage]) -> str: ...


class Validator(Protocol):
    def validate(self, command: str) -> bool: ...
