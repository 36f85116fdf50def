"""CLI entry point for the refactor assistant."""
import argparse
from dotenv import load_dotenv
import json
import os
import sys
import traceback

from pydantic import ValidationError

from refactor_assistant.agents.exceptions import AgentError, InstructionError
from refactor_assistant.models import (
    DEFAULT_MODEL,
    DEFAULT_N_RETRIES,
    BatchReport,
    RunConfig,
)
from refactor_assistant.orchestrator.exceptions import OrchestratorError
from refactor_assistant.utils.file_matcher import InvalidPatternError, expand_pattern
from refactor_assistant.utils.text_helpers import load_instruction

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_AGENT_ERROR = 2
EXIT_ORCHESTRATOR_ERROR = 3
EXIT_FILE_FAILURES = 4
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130

# Credential variable per provider
API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

MAX_INSTRUCTION_PREVIEW = 200


def positive_int(value: str) -> int:
    """argparse type for strictly positive integers."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"'{value}' must be at least 1")
    return number


def positive_float(value: str) -> float:
    """argparse type for strictly positive seconds."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"'{value}' must be greater than 0")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="refactor-assistant",
        description=(
            "Applies changes to files based on instructions using an LLM "
            "and validates them"
        ),
    )
    parser.add_argument(
        "-i",
        "--instruction",
        type=str,
        required=True,
        help="Instruction to follow or a path to a file containing instructions",
    )
    parser.add_argument(
        "-p",
        "--pattern",
        type=str,
        required=True,
        help="File pattern to apply the changes to (e.g. 'src/**/*.py')",
    )
    parser.add_argument(
        "-m",
        "--model",
        type=str,
        default=DEFAULT_MODEL,
        help=f"Model ID to use for the change (default: {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "-v",
        "--validate-with",
        type=str,
        default=None,
        help="Command to validate the change (e.g. 'pytest -q')",
    )
    parser.add_argument(
        "-r",
        "--n-retries",
        type=positive_int,
        default=DEFAULT_N_RETRIES,
        help=f"Number of attempts per file when validating (default: {DEFAULT_N_RETRIES})",
    )
    parser.add_argument(
        "--llm-provider",
        type=str,
        default="openai",
        choices=tuple(API_KEY_ENV_VARS),
        help="LLM provider: openai (default) or anthropic",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=1,
        help="Number of files processed in parallel (default: 1)",
    )
    parser.add_argument(
        "--timeout",
        type=positive_float,
        default=None,
        help="Timeout in seconds for each validation run (default: none)",
    )
    parser.add_argument(
        "--request-timeout",
        type=positive_float,
        default=None,
        help="Timeout in seconds for each completion request (default: none)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print config and matched files, then exit without changing anything",
    )
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    return parser


def build_config(args: argparse.Namespace) -> RunConfig:
    """Turn parsed arguments into a RunConfig.

    Raises:
        InstructionError: If the instruction file cannot be read.
        ValidationError: If a value is rejected by RunConfig.
    """
    return RunConfig(
        instruction=load_instruction(args.instruction),
        pattern=args.pattern,
        model=args.model,
        validate_with=args.validate_with,
        n_retries=args.n_retries,
        workers=args.workers,
        llm_provider=args.llm_provider,
        timeout=args.timeout,
        request_timeout=args.request_timeout,
    )


def resolve_api_key(provider: str) -> str:
    """Read the credential for ``provider`` from the environment.

    Raises:
        SystemExit: With EXIT_INVALID_INPUT when the variable is unset.
    """
    env_var = API_KEY_ENV_VARS[provider]
    api_key = os.getenv(env_var)
    if not api_key:
        print(f"Error: {env_var} must be set in the environment.", file=sys.stderr)
        raise SystemExit(EXIT_INVALID_INPUT)
    return api_key


def create_components(config: RunConfig, api_key: str, verbose: bool = False) -> dict:
    """Create the completion client, validator and compiled graph.

    Imports are deferred so --help and --dry-run do not load the SDKs.

    Returns:
        Dict with keys: client, validator, graph.
    """
    from refactor_assistant.agents.command_validator import CommandValidator
    from refactor_assistant.agents.completion_client import CompletionClient
    from refactor_assistant.orchestrator.graph import build_graph

    client = CompletionClient(
        api_key=api_key,
        provider=config.llm_provider,
        timeout_seconds=config.request_timeout,
    )
    validator = CommandValidator(timeout_seconds=config.timeout)
    graph = build_graph(completer=client, validator=validator, verbose=verbose)
    return {"client": client, "validator": validator, "graph": graph}


def format_report_json(report: BatchReport) -> str:
    """Serialize a BatchReport, including derived counts."""
    payload = report.model_dump(mode="json")
    payload["succeeded_count"] = report.succeeded_count
    payload["failed_count"] = report.failed_count
    payload["passed"] = report.passed
    return json.dumps(payload, indent=2, default=str)


def print_report_human(report: BatchReport, verbose: bool = False) -> None:
    """Print results in human-readable format."""
    print(f"\n{'='*60}")
    print("Refactor Assistant Results")
    print(f"{'='*60}")

    for result in report.results:
        print(f"\n{result.file_path}: {result.status.value} ({len(result.attempts)} attempts)")
        for record in result.attempts:
            detail = f" - {record.detail}" if record.detail else ""
            print(f"  attempt {record.attempt}: {record.outcome.value}{detail}")
        if result.error:
            print(f"  error: {result.error}")
        if verbose and result.diff_text:
            print(result.diff_text)

    print(
        f"\nFiles: {len(report.results)} total, "
        f"{report.succeeded_count} succeeded, {report.failed_count} not changed or failed"
    )
    print(f"{'='*60}")


def determine_exit_code(report: BatchReport) -> int:
    """Exit code for a finished batch."""
    if report.passed:
        return EXIT_SUCCESS
    return EXIT_FILE_FAILURES


def print_config_human(config: RunConfig, files: list[str]) -> None:
    """Print configuration and matched files in human-readable format."""
    print("\nConfiguration:")
    print(f"{'='*40}")
    for key, value in config.model_dump(mode="json").items():
        if key == "instruction" and len(value) > MAX_INSTRUCTION_PREVIEW:
            value = value[:MAX_INSTRUCTION_PREVIEW] + "..."
        print(f"  {key}: {value}")
    print(f"{'='*40}")
    print(f"Matched files ({len(files)}):")
    for path in files:
        print(f"  {path}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Every startup check (instruction, pattern, credential) runs before any
    target file is touched.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return EXIT_SUCCESS if exc.code == 0 else EXIT_INVALID_INPUT

    try:
        config = build_config(args)
        files = expand_pattern(config.pattern)
    except InstructionError as exc:
        return _handle_error("Instruction error", exc, args.verbose, EXIT_INVALID_INPUT)
    except InvalidPatternError as exc:
        return _handle_error("Invalid pattern", exc, args.verbose, EXIT_INVALID_INPUT)
    except ValidationError as exc:
        return _handle_error("Invalid configuration", exc, args.verbose, EXIT_INVALID_INPUT)

    if args.dry_run:
        if args.output_json:
            payload = config.model_dump(mode="json")
            payload["files"] = files
            print(json.dumps(payload, indent=2))
        else:
            print_config_human(config, files)
        return EXIT_SUCCESS

    try:
        api_key = resolve_api_key(config.llm_provider)
    except SystemExit as exc:
        return exc.code

    if not files:
        print(f"No files matched pattern '{config.pattern}'.", file=sys.stderr)
        return EXIT_SUCCESS

    try:
        components = create_components(config, api_key, verbose=args.verbose)

        from refactor_assistant.orchestrator.batch import BatchDriver

        driver = BatchDriver(components["graph"], config, verbose=args.verbose)
        report = driver.run(files)

        if args.output_json:
            print(format_report_json(report))
        else:
            print_report_human(report, verbose=args.verbose)

        return determine_exit_code(report)

    except AgentError as exc:
        return _handle_error("Agent error", exc, args.verbose, EXIT_AGENT_ERROR)

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ORCHESTRATOR_ERROR)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)


if __name__ == "__main__":
    sys.exit(main())
