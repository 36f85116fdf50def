"""Run configuration assembled from CLI arguments and environment."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MODEL = "gpt-4"
DEFAULT_N_RETRIES = 5


class RunConfig(BaseModel):
    """Immutable settings shared by every file in a batch.

    The API credential is deliberately not part of this model so it can be
    printed or serialized without leaking secrets.
    """

    model_config = ConfigDict(frozen=True)

    instruction: str
    pattern: str
    model: str = DEFAULT_MODEL
    validate_with: str | None = None
    n_retries: int = Field(default=DEFAULT_N_RETRIES, ge=1)
    workers: int = Field(default=1, ge=1)
    llm_provider: Literal["openai", "anthropic"] = "openai"
    timeout: float | None = Field(default=None, gt=0)
    request_timeout: float | None = Field(default=None, gt=0)

    @field_validator("model")
    @classmethod
    def _model_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("model must be a non-empty string")
        return value

    @field_validator("validate_with")
    @classmethod
    def _blank_command_means_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value
