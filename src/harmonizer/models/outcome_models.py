"""Outcome models for apply runs and whole pipeline runs."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from harmonizer.models.rewrite_models import ProposedChange
from harmonizer.models.schemas import SkippedEntry


class ChangeStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class ChangedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    status: ChangeStatus
    commit_sha: str | None = None


class ApplyOutcome(BaseModel):
    """Result of materializing a rewrite set as branch, commits and PR."""

    model_config = ConfigDict(frozen=False)

    branch_name: str
    pull_request_url: str
    pull_request_number: int
    changed_files: list[ChangedFile] = Field(default_factory=list)
    manifest_path: str | None = None


class PipelineResult(BaseModel):
    """Successful pipeline run in either preview or apply mode."""

    model_config = ConfigDict(frozen=False)

    mode: Literal["preview", "apply"]
    summary: str | None = None
    files: list[ProposedChange] = Field(default_factory=list)
    outcome: ApplyOutcome | None = None
    collected_count: int = 0
    skipped: list[SkippedEntry] = Field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        """Render the JSON body returned by the HTTP surface and `--output-json`."""
        if self.mode == "preview":
            return {
                "ok": True,
                "mode": "preview",
                "summary": self.summary,
                "files": [change.model_dump() for change in self.files],
                "collected": self.collected_count,
                "skipped": [entry.model_dump(mode="json") for entry in self.skipped],
            }
        outcome = self.outcome
        if outcome is None:
            raise ValueError("apply result has no outcome")
        return {
            "ok": True,
            "mode": "apply",
            "summary": self.summary,
            "branch": outcome.branch_name,
            "prUrl": outcome.pull_request_url,
            "prNumber": outcome.pull_request_number,
            "changedFiles": [
                {
                    "path": changed.path,
                    "status": changed.status.value,
                    "commit": changed.commit_sha,
                }
                for changed in outcome.changed_files
            ],
            "manifestPath": outcome.manifest_path,
        }
