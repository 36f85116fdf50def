"""Tests for the per-file retry graph: individual nodes and full runs."""

from unittest.mock import MagicMock

import pytest

from refactor_assistant.agents.exceptions import FileAccessError
from refactor_assistant.agents.file_mutator import FileMutator
from refactor_assistant.models import AttemptOutcome, FileStatus
from refactor_assistant.orchestrator.graph import (
    accept_node,
    build_graph,
    decide_after_failure,
    give_up_node,
    make_extract_node,
    make_request_node,
    make_retry_node,
    make_validate_node,
    route_after_validate,
    route_after_write,
)
from refactor_assistant.orchestrator.state import make_initial_state, recursion_limit_for


def _state(path="f.txt", validate_command=None, max_attempts=3, **overrides):
    state = make_initial_state(
        file_path=str(path),
        instruction="Do it",
        model="gpt-4",
        validate_command=validate_command,
        max_attempts=max_attempts,
    )
    state.update(
        {"original_content": "orig", "current_content": "orig", "attempt": 1}
    )
    state.update(overrides)
    return state


def _run(graph, path, validate_command=None, max_attempts=5):
    state = make_initial_state(
        file_path=str(path),
        instruction='Replace all variable names that start with "old_" to start with "new_"',
        model="gpt-4",
        validate_command=validate_command,
        max_attempts=max_attempts,
    )
    return graph.invoke(state, config={"recursion_limit": recursion_limit_for(max_attempts)})


# ---------------------------------------------------------------------------
# Node tests
# ---------------------------------------------------------------------------


class TestRequestNode:
    def test_success_stores_completion(self, completer_cls):
        completer = completer_cls(["reply"])
        result = make_request_node(completer)(_state())
        assert result == {"completion": "reply"}
        model, conversation = completer.calls[0]
        assert model == "gpt-4"
        assert "orig" in conversation[-1].content

    def test_transport_failure_recorded(self, completer_cls, transport_error):
        result = make_request_node(completer_cls([transport_error]))(_state())
        assert result["completion"] is None
        assert result["last_outcome"] == AttemptOutcome.TRANSPORT_FAILED
        assert result["attempts"][0].attempt == 1
        assert "boom" in result["attempts"][0].detail

    def test_prints_progress(self, completer_cls, capsys):
        make_request_node(completer_cls(["r"]))(_state(attempt=2, max_attempts=4))
        assert "Processing file f.txt (attempt 2/4)" in capsys.readouterr().out


class TestExtractNode:
    def test_success(self, completion):
        result = make_extract_node()(_state(completion=completion("new")))
        assert result == {"extracted": "new"}

    def test_failure_recorded(self):
        result = make_extract_node()(_state(completion="no markers"))
        assert result["extracted"] is None
        assert result["last_outcome"] == AttemptOutcome.EXTRACTION_FAILED

    def test_verbose_prints_reasoning(self, completion, capsys):
        make_extract_node(verbose=True)(_state(completion=completion("new", reasoning="why")))
        assert "why" in capsys.readouterr().out


class TestValidateNode:
    def test_pass(self, validator_cls):
        validator = validator_cls([True])
        result = make_validate_node(validator)(_state(validate_command="make test"))
        assert result["last_outcome"] == AttemptOutcome.VALIDATED_SUCCESS
        assert validator.commands == ["make test"]

    def test_fail(self, validator_cls):
        result = make_validate_node(validator_cls([False]))(_state(validate_command="false"))
        assert result["last_outcome"] == AttemptOutcome.VALIDATION_FAILED


class TestRetryNode:
    def test_rereads_after_validation_failure(self):
        mutator = MagicMock()
        mutator.read_back.return_value = "candidate on disk"
        state = _state(last_outcome=AttemptOutcome.VALIDATION_FAILED, current_content="candidate")
        result = make_retry_node(mutator)(state)
        assert result["attempt"] == 2
        assert result["current_content"] == "candidate on disk"
        assert result["last_outcome"] is None
        mutator.read_back.assert_called_once_with("f.txt")

    def test_keeps_content_after_transport_failure(self):
        mutator = MagicMock()
        state = _state(last_outcome=AttemptOutcome.TRANSPORT_FAILED, current_content="same")
        result = make_retry_node(mutator)(state)
        assert result["current_content"] == "same"
        mutator.read_back.assert_not_called()


class TestTerminalNodes:
    def test_accept(self):
        assert accept_node(_state())["status"] == FileStatus.SUCCEEDED

    def test_give_up(self):
        assert give_up_node(_state())["status"] == FileStatus.EXHAUSTED_UNRESTORED


class TestRouters:
    def test_retry_while_budget_remains(self):
        assert decide_after_failure(_state(attempt=2, max_attempts=3)) == "retry"

    def test_restore_when_exhausted_with_validator(self):
        assert decide_after_failure(_state(attempt=3, max_attempts=3, validate_command="x")) == "restore"

    def test_give_up_when_exhausted_without_validator(self):
        assert decide_after_failure(_state(attempt=3, max_attempts=3)) == "give_up"

    def test_write_without_validator_accepts(self):
        assert route_after_write(_state(last_outcome=AttemptOutcome.APPLIED)) == "accept"

    def test_write_with_validator_validates(self):
        assert route_after_write(_state(validate_command="x")) == "validate"

    def test_validate_pass_accepts(self):
        state = _state(validate_command="x", last_outcome=AttemptOutcome.VALIDATED_SUCCESS)
        assert route_after_validate(state) == "accept"


# ---------------------------------------------------------------------------
# Full graph runs
# ---------------------------------------------------------------------------


class TestWithoutValidator:
    def test_single_round_trip_regardless_of_budget(self, target_file, completer_cls, completion):
        completer = completer_cls([completion("new_value = 10")])
        final = _run(build_graph(completer), target_file, max_attempts=5)

        assert len(completer.calls) == 1
        assert final["status"] == FileStatus.SUCCEEDED
        assert target_file.read_text(encoding="utf-8") == "new_value = 10"
        assert [r.outcome for r in final["attempts"]] == [AttemptOutcome.APPLIED]

    def test_extraction_failure_consumes_retry_without_writing(
        self, target_file, completer_cls, completion
    ):
        mutator = FileMutator()
        writes = []
        original_write = mutator.write
        mutator.write = lambda path, content: (writes.append(content), original_write(path, content))

        completer = completer_cls(["I refuse to use tags", completion("new_value = 10")])
        final = _run(build_graph(completer, mutator=mutator), target_file, max_attempts=3)

        assert len(completer.calls) == 2
        assert writes == ["new_value = 10"]
        assert [r.outcome for r in final["attempts"]] == [
            AttemptOutcome.EXTRACTION_FAILED,
            AttemptOutcome.APPLIED,
        ]

    def test_exhaustion_leaves_file_untouched(self, target_file, completer_cls):
        completer = completer_cls(["garbage"])
        final = _run(build_graph(completer), target_file, max_attempts=3)

        assert len(completer.calls) == 3
        assert final["status"] == FileStatus.EXHAUSTED_UNRESTORED
        assert target_file.read_text(encoding="utf-8") == "old_value = 10\n"


class TestWithValidator:
    def test_always_failing_validator_restores_original(
        self, target_file, completer_cls, validator_cls, completion
    ):
        original_bytes = target_file.read_bytes()
        completer = completer_cls([completion("new_value = 10")])
        validator = validator_cls([False])
        final = _run(
            build_graph(completer, validator),
            target_file,
            validate_command="exit 1",
            max_attempts=2,
        )

        assert len(completer.calls) == 2
        assert len(validator.commands) == 2
        assert final["status"] == FileStatus.EXHAUSTED_RESTORED
        assert target_file.read_bytes() == original_bytes

    def test_success_on_attempt_k_stops(self, target_file, completer_cls, validator_cls, completion):
        completer = completer_cls(
            [completion("attempt one"), completion("attempt two"), completion("attempt three")]
        )
        validator = validator_cls([False, True])
        final = _run(
            build_graph(completer, validator),
            target_file,
            validate_command="make check",
            max_attempts=5,
        )

        assert len(completer.calls) == 2
        assert final["status"] == FileStatus.SUCCEEDED
        assert target_file.read_text(encoding="utf-8") == "attempt two"
        assert [r.outcome for r in final["attempts"]] == [
            AttemptOutcome.VALIDATION_FAILED,
            AttemptOutcome.VALIDATED_SUCCESS,
        ]

    def test_failed_candidate_fed_into_next_prompt(
        self, target_file, completer_cls, validator_cls, completion
    ):
        completer = completer_cls([completion("first candidate"), completion("second")])
        validator = validator_cls([False, True])
        _run(build_graph(completer, validator), target_file, validate_command="x", max_attempts=3)

        first_prompt = completer.calls[0][1][-1].content
        second_prompt = completer.calls[1][1][-1].content
        assert "old_value = 10" in first_prompt
        assert "<FILECONTENTS>\nfirst candidate\n</FILECONTENTS>" in second_prompt

    def test_transport_failure_retries_with_same_content(
        self, target_file, completer_cls, validator_cls, completion, transport_error
    ):
        completer = completer_cls([transport_error, completion("new_value = 10")])
        validator = validator_cls([True])
        final = _run(build_graph(completer, validator), target_file, validate_command="x", max_attempts=3)

        assert final["status"] == FileStatus.SUCCEEDED
        assert completer.calls[0][1][-1].content == completer.calls[1][1][-1].content
        assert [r.outcome for r in final["attempts"]] == [
            AttemptOutcome.TRANSPORT_FAILED,
            AttemptOutcome.VALIDATED_SUCCESS,
        ]

    def test_transport_failure_on_last_attempt_restores(
        self, target_file, completer_cls, validator_cls, completion, transport_error
    ):
        original_bytes = target_file.read_bytes()
        completer = completer_cls([completion("bad candidate"), transport_error])
        validator = validator_cls([False])
        final = _run(build_graph(completer, validator), target_file, validate_command="x", max_attempts=2)

        assert final["status"] == FileStatus.EXHAUSTED_RESTORED
        assert target_file.read_bytes() == original_bytes

    def test_prints_restore_message(
        self, target_file, completer_cls, validator_cls, completion, capsys
    ):
        completer = completer_cls([completion("x")])
        _run(build_graph(completer, validator_cls([False])), target_file, validate_command="x", max_attempts=1)
        assert f"Restored original content for {target_file}" in capsys.readouterr().out


class TestFatalFileErrors:
    def test_unreadable_file_raises(self, tmp_path, completer_cls):
        completer = completer_cls(["unused"])
        with pytest.raises(FileAccessError):
            _run(build_graph(completer), tmp_path / "missing.rs")
        assert completer.calls == []
