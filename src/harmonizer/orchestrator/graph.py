"""LangGraph orchestrator graph for the harmonization pipeline.

Wires TreeCollector, RewriteRequester and ChangeApplier into a StateGraph.
Preview runs end after the rewrite node; only apply runs reach apply_node.
"""

import logging
from typing import Callable

from langgraph.graph import END, START, StateGraph

from harmonizer.agents.change_applier import ChangeApplier
from harmonizer.agents.rewrite_requester import RewriteRequester
from harmonizer.agents.tree_collector import TreeCollector
from harmonizer.orchestrator.exceptions import GraphBuildError, NoFilesFoundError
from harmonizer.orchestrator.state import HarmonizeState

logger = logging.getLogger(__name__)


def _log_extra(state: HarmonizeState, step: str) -> dict:
    return {"run_id": state.get("run_id"), "step": step}


def make_collect_node(collector: TreeCollector) -> Callable[[HarmonizeState], dict]:
    """Factory: returns a node closure that collects files from every path.

    On an empty collection: returns {"failure": NoFilesFoundError, ...}
    """

    def collect_node(state: HarmonizeState) -> dict:
        try:
            collection = collector.collect_all(
                state["owner"], state["repo"], state["base_branch"], state["paths"]
            )
        except Exception as exc:
            logger.warning("Collection failed: %s", exc, extra=_log_extra(state, "collect"))
            return {"failure": exc, "errors": [f"collect_node error: {exc}"]}

        if not collection.files:
            failure = NoFilesFoundError(state["paths"])
            return {
                "collection": collection,
                "failure": failure,
                "errors": [f"collect_node error: {failure}"],
            }
        return {"collection": collection}

    return collect_node


def make_rewrite_node(requester: RewriteRequester) -> Callable[[HarmonizeState], dict]:
    """Factory: returns a node closure that asks the model for rewrites."""

    def rewrite_node(state: HarmonizeState) -> dict:
        try:
            rewrite = requester.request_rewrite(
                state["collection"].files,
                owner=state["owner"],
                repo=state["repo"],
                base_branch=state["base_branch"],
                note=state["note"],
            )
        except Exception as exc:
            logger.warning("Rewrite failed: %s", exc, extra=_log_extra(state, "rewrite"))
            return {"failure": exc, "errors": [f"rewrite_node error: {exc}"]}
        return {"rewrite": rewrite}

    return rewrite_node


def make_apply_node(applier: ChangeApplier) -> Callable[[HarmonizeState], dict]:
    """Factory: returns a node closure that creates branch, commits and PR."""

    def apply_node(state: HarmonizeState) -> dict:
        rewrite = state["rewrite"]
        try:
            outcome = applier.apply(
                state["owner"],
                state["repo"],
                state["base_branch"],
                list(rewrite.files),
                state["note"],
                summary=rewrite.summary,
                title=state["title"],
                description=state["description"],
                manifest=state["manifest"],
            )
        except Exception as exc:
            logger.warning("Apply failed: %s", exc, extra=_log_extra(state, "apply"))
            return {"failure": exc, "errors": [f"apply_node error: {exc}"]}
        return {"outcome": outcome}

    return apply_node


def route_after_collect(state: HarmonizeState) -> str:
    if state["failure"] is not None:
        return "done"
    return "rewrite"


def route_after_rewrite(state: HarmonizeState) -> str:
    if state["failure"] is not None or not state["apply"]:
        return "done"
    return "apply"


def build_graph(
    collector: TreeCollector,
    requester: RewriteRequester,
    applier: ChangeApplier,
):
    """Build and compile the pipeline StateGraph.

    Edge topology:
      START -> collect_node -> conditional -> {rewrite_node, END}
      rewrite_node -> conditional -> {apply_node, END}
      apply_node -> END

    Returns:
        CompiledStateGraph ready to invoke.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    try:
        graph = StateGraph(HarmonizeState)

        graph.add_node("collect_node", make_collect_node(collector))
        graph.add_node("rewrite_node", make_rewrite_node(requester))
        graph.add_node("apply_node", make_apply_node(applier))

        graph.add_edge(START, "collect_node")
        graph.add_conditional_edges(
            "collect_node",
            route_after_collect,
            {"rewrite": "rewrite_node", "done": END},
        )
        graph.add_conditional_edges(
            "rewrite_node",
            route_after_rewrite,
            {"apply": "apply_node", "done": END},
        )
        graph.add_edge("apply_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build orchestrator graph: {exc}") from exc
