"""Outcome models for per-file transformations and batches."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AttemptOutcome(str, Enum):
    """Result of a single attempt cycle for one file."""

    VALIDATED_SUCCESS = "validated_success"
    APPLIED = "applied"  # written, no validator configured
    VALIDATION_FAILED = "validation_failed"
    EXTRACTION_FAILED = "extraction_failed"
    TRANSPORT_FAILED = "transport_failed"


class FileStatus(str, Enum):
    """Terminal state of a file's retry state machine."""

    SUCCEEDED = "succeeded"
    EXHAUSTED_RESTORED = "exhausted_restored"
    EXHAUSTED_UNRESTORED = "exhausted_unrestored"
    FAILED = "failed"


class AttemptRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    attempt: int                 # 1-based
    outcome: AttemptOutcome
    detail: str | None = None    # error text or validator exit summary


class CommandRunResult(BaseModel):
    model_config = ConfigDict(frozen=False)

    command: str
    exit_code: int               # -1 on timeout or launch failure
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def passed(self) -> bool:
        return self.exit_code == 0


class FileResult(BaseModel):
    """Final report for one target file."""

    model_config = ConfigDict(frozen=False)

    file_path: str
    status: FileStatus
    attempts: list[AttemptRecord] = Field(default_factory=list)
    error: str | None = None
    diff_text: str = ""          # original vs final content, empty if unchanged

    @property
    def succeeded(self) -> bool:
        return self.status == FileStatus.SUCCEEDED


class BatchReport(BaseModel):
    """Ordered collection of per-file results for one run."""

    model_config = ConfigDict(frozen=False)

    results: list[FileResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @property
    def succeeded_count(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.succeeded_count

    @property
    def passed(self) -> bool:
        return self.failed_count == 0
