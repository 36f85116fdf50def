"""LangGraph retry graph for transforming a single file.

Wires the prompt builder, completer, response extractor, file mutator and
validator into a StateGraph implementing the attempt / validate / retry /
restore state machine.
"""

import sys
from typing import Callable

from langgraph.graph import END, START, StateGraph

from refactor_assistant.agents.command_validator import CommandValidator
from refactor_assistant.agents.exceptions import CompletionError, ExtractionError
from refactor_assistant.agents.file_mutator import FileMutator
from refactor_assistant.agents.interfaces import Completer, Validator
from refactor_assistant.agents.prompt_builder import build_conversation
from refactor_assistant.agents.response_extractor import (
    extract_changed_contents,
    extract_reasoning,
)
from refactor_assistant.models import AttemptOutcome, AttemptRecord, FileStatus
from refactor_assistant.orchestrator.exceptions import GraphBuildError
from refactor_assistant.orchestrator.state import FileTransformState


def _record(state: FileTransformState, outcome: AttemptOutcome, detail: str | None = None) -> dict:
    return {
        "last_outcome": outcome,
        "attempts": [AttemptRecord(attempt=state["attempt"], outcome=outcome, detail=detail)],
    }


def make_snapshot_node(mutator: FileMutator) -> Callable[[FileTransformState], dict]:
    """Factory: node that captures the original content exactly once.

    FileAccessError propagates and aborts the graph for this file.
    """

    def snapshot_node(state: FileTransformState) -> dict:
        original = mutator.snapshot(state["file_path"])
        return {
            "original_content": original,
            "current_content": original,
            "attempt": 1,
        }

    return snapshot_node


def make_request_node(completer: Completer) -> Callable[[FileTransformState], dict]:
    """Factory: node that builds the conversation and calls the completer.

    On CompletionError: records TRANSPORT_FAILED and leaves completion unset.
    """

    def request_node(state: FileTransformState) -> dict:
        path = state["file_path"]
        print(f"Processing file {path} (attempt {state['attempt']}/{state['max_attempts']})")
        conversation = build_conversation(state["instruction"], state["current_content"])
        try:
            completion = completer.complete(state["model"], conversation)
        except CompletionError as exc:
            print(f"Completion request failed for {path}: {exc}", file=sys.stderr)
            return {"completion": None, **_record(state, AttemptOutcome.TRANSPORT_FAILED, str(exc))}
        return {"completion": completion}

    return request_node


def make_extract_node(verbose: bool = False) -> Callable[[FileTransformState], dict]:
    """Factory: node that pulls the changed contents out of the completion."""

    def extract_node(state: FileTransformState) -> dict:
        completion = state["completion"] or ""
        if verbose:
            reasoning = extract_reasoning(completion)
            if reasoning:
                print(f"Reasoning for {state['file_path']}:\n{reasoning}")
        try:
            extracted = extract_changed_contents(completion)
        except ExtractionError as exc:
            print(f"Could not extract changes for {state['file_path']}: {exc}", file=sys.stderr)
            return {"extracted": None, **_record(state, AttemptOutcome.EXTRACTION_FAILED, str(exc))}
        return {"extracted": extracted}

    return extract_node


def make_write_node(mutator: FileMutator) -> Callable[[FileTransformState], dict]:
    """Factory: node that writes the extracted content to disk.

    Without a validator the write is final and recorded as APPLIED.
    """

    def write_node(state: FileTransformState) -> dict:
        mutator.write(state["file_path"], state["extracted"])
        update: dict = {"current_content": state["extracted"]}
        if not state["validate_command"]:
            update.update(_record(state, AttemptOutcome.APPLIED))
        return update

    return write_node


def make_validate_node(validator: Validator) -> Callable[[FileTransformState], dict]:
    """Factory: node that runs the validation command on the written file."""

    def validate_node(state: FileTransformState) -> dict:
        command = state["validate_command"]
        if validator.validate(command):
            return _record(state, AttemptOutcome.VALIDATED_SUCCESS)
        if state["attempt"] < state["max_attempts"]:
            print(f"Validation failed for {state['file_path']}, retrying...")
        else:
            print(f"Validation failed for {state['file_path']}, no retries left")
        return _record(
            state,
            AttemptOutcome.VALIDATION_FAILED,
            f"validation command failed: {command}",
        )

    return validate_node


def make_retry_node(mutator: FileMutator) -> Callable[[FileTransformState], dict]:
    """Factory: node that advances to the next attempt.

    After a validation failure the rejected candidate is re-read from disk and
    becomes the content shown to the model next. After transport or
    extraction failures the current content is left as it was.
    """

    def retry_node(state: FileTransformState) -> dict:
        current = state["current_content"]
        if state["last_outcome"] == AttemptOutcome.VALIDATION_FAILED:
            current = mutator.read_back(state["file_path"])
        return {
            "attempt": state["attempt"] + 1,
            "current_content": current,
            "completion": None,
            "extracted": None,
            "last_outcome": None,
        }

    return retry_node


def make_restore_node(mutator: FileMutator) -> Callable[[FileTransformState], dict]:
    """Factory: node that writes the original snapshot back after exhaustion."""

    def restore_node(state: FileTransformState) -> dict:
        mutator.write(state["file_path"], state["original_content"])
        print(f"Restored original content for {state['file_path']}")
        return {
            "current_content": state["original_content"],
            "status": FileStatus.EXHAUSTED_RESTORED,
        }

    return restore_node


def accept_node(state: FileTransformState) -> dict:
    """Mark the file as SUCCEEDED."""
    if state["last_outcome"] == AttemptOutcome.VALIDATED_SUCCESS:
        print(f"Changes applied and validated for {state['file_path']}")
    else:
        print(f"Changes applied successfully for {state['file_path']}")
    return {"status": FileStatus.SUCCEEDED}


def give_up_node(state: FileTransformState) -> dict:
    """Mark the file as EXHAUSTED_UNRESTORED.

    Only reachable without a validator, where no attempt ever wrote the file.
    """
    print(f"Exceeded retry limit for {state['file_path']}", file=sys.stderr)
    return {"status": FileStatus.EXHAUSTED_UNRESTORED}


def decide_after_failure(state: FileTransformState) -> str:
    """Router for a failed attempt.

    Returns:
        "retry" while budget remains, otherwise "restore" when a validator
        is configured and "give_up" when it is not.
    """
    if state["attempt"] < state["max_attempts"]:
        return "retry"
    if state["validate_command"]:
        return "restore"
    return "give_up"


def route_after_request(state: FileTransformState) -> str:
    if state["last_outcome"] == AttemptOutcome.TRANSPORT_FAILED:
        return decide_after_failure(state)
    return "extract"


def route_after_extract(state: FileTransformState) -> str:
    if state["last_outcome"] == AttemptOutcome.EXTRACTION_FAILED:
        return decide_after_failure(state)
    return "write"


def route_after_write(state: FileTransformState) -> str:
    if state["last_outcome"] == AttemptOutcome.APPLIED:
        return "accept"
    return "validate"


def route_after_validate(state: FileTransformState) -> str:
    if state["last_outcome"] == AttemptOutcome.VALIDATED_SUCCESS:
        return "accept"
    return decide_after_failure(state)


_FAILURE_TARGETS = {
    "retry": "retry_node",
    "restore": "restore_node",
    "give_up": "give_up_node",
}


def build_graph(
    completer: Completer,
    validator: Validator | None = None,
    mutator: FileMutator | None = None,
    verbose: bool = False,
):
    """Build and compile the per-file retry graph.

    Edge topology:
      START -> snapshot_node -> request_node
      request_node -> conditional -> {extract_node, retry_node, restore_node, give_up_node}
      extract_node -> conditional -> {write_node, retry_node, restore_node, give_up_node}
      write_node -> conditional -> {accept_node, validate_node}
      validate_node -> conditional -> {accept_node, retry_node, restore_node}
      retry_node -> request_node
      accept_node, restore_node, give_up_node -> END

    The graph is stateless between invocations, so one compiled graph can
    serve every file of a batch, including from worker threads.

    Args:
        completer: Object with ``complete(model, conversation) -> str``.
        validator: Object with ``validate(command) -> bool``. Only called
            for states carrying a validate_command; defaults to
            CommandValidator().
        mutator: File access; defaults to FileMutator().
        verbose: Print model reasoning for each attempt.

    Returns:
        CompiledStateGraph ready to invoke with a FileTransformState.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    mutator = mutator or FileMutator()
    validator = validator or CommandValidator()
    try:
        graph = StateGraph(FileTransformState)

        graph.add_node("snapshot_node", make_snapshot_node(mutator))
        graph.add_node("request_node", make_request_node(completer))
        graph.add_node("extract_node", make_extract_node(verbose))
        graph.add_node("write_node", make_write_node(mutator))
        graph.add_node("retry_node", make_retry_node(mutator))
        graph.add_node("restore_node", make_restore_node(mutator))
        graph.add_node("accept_node", accept_node)
        graph.add_node("give_up_node", give_up_node)
        graph.add_node("validate_node", make_validate_node(validator))

        graph.add_edge(START, "snapshot_node")
        graph.add_edge("snapshot_node", "request_node")
        graph.add_conditional_edges(
            "request_node",
            route_after_request,
            {"extract": "extract_node", **_FAILURE_TARGETS},
        )
        graph.add_conditional_edges(
            "extract_node",
            route_after_extract,
            {"write": "write_node", **_FAILURE_TARGETS},
        )
        graph.add_conditional_edges(
            "write_node",
            route_after_write,
            {"accept": "accept_node", "validate": "validate_node"},
        )
        graph.add_conditional_edges(
            "validate_node",
            route_after_validate,
            {"accept": "accept_node", **_FAILURE_TARGETS},
        )

        graph.add_edge("retry_node", "request_node")
        graph.add_edge("accept_node", END)
        graph.add_edge("restore_node", END)
        graph.add_edge("give_up_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build file graph: {exc}") from exc
