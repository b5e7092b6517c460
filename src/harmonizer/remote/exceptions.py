"""Exceptions for remote API calls."""


class RemoteError(Exception):
    """Base exception for remote service operations."""


class RemoteApiError(RemoteError):
    """Raised when a remote call returns a non-success status or cannot complete.

    `status` is None when no HTTP response was received at all.
    """

    def __init__(
        self,
        status: int | None,
        body: str,
        method: str = "",
        url: str = "",
    ) -> None:
        self.status = status
        self.body = body
        self.method = method
        self.url = url
        target = f"{method} {url}".strip()
        prefix = f"{target} failed" if target else "Remote call failed"
        super().__init__(f"{prefix}: {status} {body}")
