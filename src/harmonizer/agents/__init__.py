"""Agent components for the harmonizer."""

from harmonizer.agents.exceptions import (
    AgentError,
    ApplyError,
    EmptyRewriteError,
    MalformedModelResponseError,
    PartialApplyError,
    RewriteError,
)
from harmonizer.agents.change_applier import ChangeApplier, RunManifest
from harmonizer.agents.rewrite_requester import RewriteRequester
from harmonizer.agents.tree_collector import TreeCollector

__all__ = [
    "AgentError",
    "ApplyError",
    "ChangeApplier",
    "EmptyRewriteError",
    "MalformedModelResponseError",
    "PartialApplyError",
    "RewriteError",
    "RewriteRequester",
    "RunManifest",
    "TreeCollector",
]
