"""State definition for the LangGraph harmonization pipeline."""

import operator
from typing import Annotated, TypedDict

from harmonizer.agents.change_applier import RunManifest
from harmonizer.models import ApplyOutcome, CollectionResult, RewriteResult


class HarmonizeState(TypedDict):
    """State for one harmonization run.

    `errors` accumulates across nodes; all other fields are overwritten.
    `failure` holds the exception that stopped the run, if any.
    """

    # Input
    run_id: str | None
    owner: str
    repo: str
    base_branch: str
    note: str
    paths: list[str]
    apply: bool
    title: str | None
    description: str | None
    manifest: RunManifest | None

    # Pipeline products
    collection: CollectionResult | None
    rewrite: RewriteResult | None
    outcome: ApplyOutcome | None

    # Failure
    failure: Exception | None
    errors: Annotated[list[str], operator.add]


def make_initial_state(
    owner: str,
    repo: str,
    base_branch: str,
    note: str,
    paths: list[str],
    apply: bool = False,
    title: str | None = None,
    description: str | None = None,
    manifest: RunManifest | None = None,
    run_id: str | None = None,
) -> HarmonizeState:
    """Create the initial state for a run with every product unset."""
    return {
        "run_id": run_id,
        "owner": owner,
        "repo": repo,
        "base_branch": base_branch,
        "note": note,
        "paths": list(paths),
        "apply": apply,
        "title": title,
        "description": description,
        "manifest": manifest,
        "collection": None,
        "rewrite": None,
        "outcome": None,
        "failure": None,
        "errors": [],
    }
