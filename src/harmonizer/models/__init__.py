"""Data models for the harmonizer."""

from harmonizer.models.outcome_models import (
    ApplyOutcome,
    ChangedFile,
    ChangeStatus,
    PipelineResult,
)
from harmonizer.models.rewrite_models import ProposedChange, RewriteResult
from harmonizer.models.schemas import (
    CollectedFile,
    CollectionResult,
    RewriteRequest,
    SkippedEntry,
    SkipReason,
)

__all__ = [
    "ApplyOutcome",
    "ChangeStatus",
    "ChangedFile",
    "CollectedFile",
    "CollectionResult",
    "PipelineResult",
    "ProposedChange",
    "RewriteRequest",
    "RewriteResult",
    "SkipReason",
    "SkippedEntry",
]
