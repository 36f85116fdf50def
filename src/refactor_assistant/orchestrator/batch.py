"""Batch driver: runs the per-file graph over every matched file."""

import sys
import traceback
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from refactor_assistant.models import BatchReport, FileResult, FileStatus, RunConfig
from refactor_assistant.orchestrator.state import (
    FileTransformState,
    make_initial_state,
    recursion_limit_for,
)
from refactor_assistant.utils.text_helpers import unified_diff


class BatchDriver:
    """Applies one RunConfig to a sequence of files.

    Each file's failure is caught and recorded; it never stops the batch.
    Results are collected first and reported in input order.
    """

    def __init__(self, graph, config: RunConfig, verbose: bool = False) -> None:
        """Initialize the driver.

        Args:
            graph: Compiled graph from ``build_graph``.
            config: Settings shared by every file.
            verbose: Print tracebacks for per-file failures.
        """
        self.graph = graph
        self.config: RunConfig = config
        self.verbose: bool = verbose

    def run(self, paths: list[str]) -> BatchReport:
        """Transform every path and return the collected report.

        With ``config.workers > 1`` files are processed on a thread pool;
        attempts within one file always stay sequential. On
        KeyboardInterrupt, queued files are cancelled, files already in
        progress run to a terminal state, and the interrupt is re-raised.
        """
        report = BatchReport()
        if self.config.workers <= 1 or len(paths) <= 1:
            report.results = [self.transform_file(path) for path in paths]
        else:
            report.results = self._run_pooled(paths)
        report.finished_at = datetime.now()
        return report

    def _run_pooled(self, paths: list[str]) -> list[FileResult]:
        pool = ThreadPoolExecutor(max_workers=self.config.workers)
        try:
            futures = [pool.submit(self.transform_file, path) for path in paths]
            results = [future.result() for future in futures]
        except KeyboardInterrupt:
            print(
                "Interrupted, waiting for in-progress files to finish...",
                file=sys.stderr,
            )
            pool.shutdown(wait=True, cancel_futures=True)
            raise
        pool.shutdown(wait=True)
        return results

    def transform_file(self, path: str) -> FileResult:
        """Run the retry graph for one file and summarize the final state.

        Any exception escaping the graph (unreadable or unwritable file,
        graph failure) is reported and turned into a FAILED result. In that
        case the file keeps whatever the last successful write left on disk.
        """
        state = make_initial_state(
            file_path=path,
            instruction=self.config.instruction,
            model=self.config.model,
            validate_command=self.config.validate_with,
            max_attempts=self.config.n_retries,
        )
        last_state: FileTransformState = state
        try:
            for last_state in self.graph.stream(
                state,
                config={"recursion_limit": recursion_limit_for(self.config.n_retries)},
                stream_mode="values",
            ):
                pass
        except Exception as exc:
            print(f"Error processing file {path}: {exc}", file=sys.stderr)
            if self.verbose:
                traceback.print_exc(file=sys.stderr)
            return FileResult(
                file_path=path,
                status=FileStatus.FAILED,
                attempts=list(last_state["attempts"]),
                error=f"{type(exc).__name__}: {exc}",
            )

        return self._to_result(last_state)

    def _to_result(self, state: FileTransformState) -> FileResult:
        status = state["status"] or FileStatus.FAILED
        error = None
        if status == FileStatus.EXHAUSTED_RESTORED:
            error = "Exceeded retry limit; original content restored"
        elif status == FileStatus.EXHAUSTED_UNRESTORED:
            error = "Exceeded retry limit"
        elif state["status"] is None:
            error = "Graph finished without a terminal status"

        diff_text = ""
        if status == FileStatus.SUCCEEDED:
            diff_text = unified_diff(
                state["file_path"],
                state["original_content"] or "",
                state["current_content"] or "",
            )

        return FileResult(
            file_path=state["file_path"],
            status=status,
            attempts=list(state["attempts"]),
            error=error,
            diff_text=diff_text,
        )
