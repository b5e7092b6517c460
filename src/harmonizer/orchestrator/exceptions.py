"""Exceptions for orchestrator operations.

Note: Names chosen to avoid collisions with pydantic.ValidationError and
framework exceptions.
"""


class OrchestratorError(Exception):
    """Base exception for all orchestrator operations."""


class HarmonizeValidationError(OrchestratorError):
    """Raised before any network call when run input is incomplete."""


class ConfigurationError(HarmonizeValidationError):
    """Raised when a required credential or repository identifier is missing."""


class NoFilesFoundError(OrchestratorError):
    """Raised when no start path yielded a collectable file."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = list(paths)
        super().__init__("No files found in provided paths")


class GraphBuildError(OrchestratorError):
    """Raised when graph construction fails."""
