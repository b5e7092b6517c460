"""Pydantic data models for collected repository content."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SkipReason(str, Enum):
    """Why the collector dropped a path instead of collecting it."""

    FETCH_FAILED = "fetch_failed"
    TOO_LARGE = "too_large"
    NO_CONTENT = "no_content"
    DECODE_FAILED = "decode_failed"
    UNSUPPORTED_TYPE = "unsupported_type"


class CollectedFile(BaseModel):
    """A single repository file with decoded, possibly truncated, text."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)  # Relative to the repository root
    content: str


class SkippedEntry(BaseModel):
    """A path the collector skipped, and why."""

    model_config = ConfigDict(frozen=True)

    path: str
    reason: SkipReason
    detail: str | None = None


class CollectionResult(BaseModel):
    """Accumulator shared by every start path of one pipeline run."""

    model_config = ConfigDict(frozen=False)

    files: list[CollectedFile] = Field(default_factory=list)
    skipped: list[SkippedEntry] = Field(default_factory=list)


class RewriteRequest(BaseModel):
    """Everything the model sees for one harmonization run."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    base_branch: str
    note: str
    files: list[CollectedFile] = Field(default_factory=list)
