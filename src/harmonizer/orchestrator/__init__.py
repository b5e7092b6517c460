"""LangGraph orchestrator package for the harmonization pipeline."""

from harmonizer.orchestrator.exceptions import (
    ConfigurationError,
    GraphBuildError,
    HarmonizeValidationError,
    NoFilesFoundError,
    OrchestratorError,
)
from harmonizer.orchestrator.graph import build_graph
from harmonizer.orchestrator.pipeline import HarmonizePipeline
from harmonizer.orchestrator.state import HarmonizeState, make_initial_state

__all__ = [
    "ConfigurationError",
    "GraphBuildError",
    "HarmonizePipeline",
    "HarmonizeState",
    "HarmonizeValidationError",
    "NoFilesFoundError",
    "OrchestratorError",
    "build_graph",
    "make_initial_state",
]
