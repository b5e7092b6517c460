"""Exceptions for agent operations."""


class AgentError(Exception):
    """Base exception for all agent operations."""


class RewriteError(AgentError):
    """Base exception for the language-model rewrite step."""


class MalformedModelResponseError(RewriteError):
    """Raised when the model reply cannot be parsed into a rewrite set."""

    def __init__(self, message: str, raw_reply: str = "") -> None:
        self.raw_reply = raw_reply
        super().__init__(message)


class EmptyRewriteError(RewriteError):
    """Raised when the model reply parses but proposes no files."""


class ApplyError(AgentError):
    """Base exception for materializing a rewrite set on the remote."""


class PartialApplyError(ApplyError):
    """Raised when a step fails after the branch already exists.

    The branch and every path in `written_paths` stay on the remote side.
    """

    def __init__(self, branch: str, step: str, written_paths: list[str], cause: Exception) -> None:
        self.branch = branch
        self.step = step
        self.written_paths = list(written_paths)
        super().__init__(
            f"Apply failed at step '{step}': {cause}. "
            f"Branch '{branch}' was left on the remote with "
            f"{len(self.written_paths)} file(s) already committed."
        )
